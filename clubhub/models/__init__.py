from .user import User
from .organization import Organization, Member

from .athlete import (
    Athlete, AthleteCareerHistory, AthleteEducation, AthleteAchievement,
    AthleteLanguage, AthleteReference, AthleteSponsor,
)
from .coach import Coach, CoachSportsExperience, CoachAchievement, CoachEducation

from .location import Location
from .athlete_group import AthleteGroup, AthleteGroupMember
from .training_session import (
    TrainingSession, TrainingSessionCoach, TrainingSessionAthlete,
    RecurringSessionException, Attendance,
)

from .training_payment import TrainingPayment, TrainingPaymentSession
from .expense import ExpenseCategory, Expense
from .payroll import StaffPayroll

from .events import SportsEvent, EventRegistration
from .event_organization import (
    EventVendor, EventVendorAssignment, EventInventoryItem, EventBudgetLine,
    EventRisk, EventRiskLog,
)

from .stock import Product, StockTransaction, Sale, SaleItem
from .cash_register import CashRegister, CashMovement
from .notifications import NotificationLog
