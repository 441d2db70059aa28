"""Allowed values for the enumerated text columns."""

from clubhub.extensions import db

MEMBER_ROLES = ("owner", "admin", "staff", "member")
USER_STATUSES = ("active", "suspended")

ATHLETE_STATUSES = ("active", "inactive")
ATHLETE_LEVELS = ("beginner", "intermediate", "advanced", "elite")
LEVEL_ORDER = {level: index for index, level in enumerate(ATHLETE_LEVELS)}
SPORTS = (
    "soccer", "basketball", "volleyball", "tennis", "swimming", "athletics",
    "rugby", "hockey", "baseball", "handball", "padel", "golf", "boxing",
    "martial_arts", "other",
)
DOMINANT_SIDES = ("left", "right", "both")
OPPORTUNITY_TYPES = ("professional_team", "university_scholarship", "tryout", "sponsorship")
LANGUAGE_LEVELS = ("basic", "intermediate", "advanced", "native")
ACHIEVEMENT_TYPES = (
    "championship", "award", "selection", "record", "recognition", "mvp",
    "top_scorer", "best_player", "all_star", "scholarship", "other",
)
ACHIEVEMENT_SCOPES = ("individual", "collective")

COACH_STATUSES = ("active", "inactive")

SESSION_STATUSES = ("pending", "confirmed", "completed", "cancelled")
ATTENDANCE_STATUSES = ("pending", "present", "absent", "late", "excused")

PAYMENT_STATUSES = ("pending", "processing", "paid", "partial", "failed", "refunded", "cancelled")
PAYMENT_METHODS = ("cash", "bank_transfer", "mercado_pago", "stripe", "card", "other")

PAYROLL_STATUSES = ("pending", "approved", "paid", "cancelled")
PAYROLL_STAFF_TYPES = ("coach", "staff", "external")
PAYROLL_PERIOD_TYPES = ("monthly", "biweekly", "weekly", "event")
COACH_PAYMENT_TYPES = ("per_session", "fixed")

EXPENSE_CATEGORY_TYPES = ("operational", "personnel", "other")

EVENT_TYPES = ("campus", "camp", "clinic", "showcase", "tournament", "tryout", "other")
EVENT_STATUSES = (
    "draft", "published", "registration_open", "registration_closed",
    "in_progress", "completed", "cancelled",
)
REGISTRATION_STATUSES = ("pending_payment", "confirmed", "waitlist", "cancelled", "refunded", "no_show")

INVENTORY_STATUSES = ("needed", "reserved", "acquired", "deployed", "returned")
BUDGET_LINE_STATUSES = ("planned", "approved", "spent", "cancelled")
RISK_SEVERITIES = ("low", "medium", "high", "critical")
RISK_PROBABILITIES = ("unlikely", "possible", "likely", "almost_certain")
RISK_STATUSES = ("identified", "mitigating", "mitigated", "occurred", "closed")

PRODUCT_CATEGORIES = ("beverage", "food", "apparel", "equipment", "merchandise", "supplement", "other")
PRODUCT_STATUSES = ("active", "inactive", "discontinued")
STOCK_TRANSACTION_TYPES = ("purchase", "sale", "adjustment", "damage", "return", "transfer")
SALE_STATUSES = ("pending", "completed", "cancelled", "refunded")

CASH_REGISTER_STATUSES = ("open", "closed")
CASH_MOVEMENT_TYPES = ("income", "expense", "adjustment")
CASH_MOVEMENT_REFERENCE_TYPES = ("payment", "event_payment", "expense", "manual", "product_sale")

NOTIFICATION_CHANNELS = ("email", "sms", "whatsapp")
DELIVERY_STATUSES = ("pending", "queued", "sent", "delivered", "failed", "bounced", "spam", "unsubscribed")


def check_in(column, values):
    """CHECK constraint restricting ``column`` to ``values``."""
    allowed = ",".join(f"'{value}'" for value in values)
    return db.CheckConstraint(f"{column} IN ({allowed})")
