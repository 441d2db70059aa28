import logging

from sqlalchemy import func, or_

from clubhub.errors import BadRequest, NotFound
from clubhub.extensions import db
from clubhub.models import (
    Coach, Expense, ExpenseCategory, Member, StaffPayroll, TrainingSession,
    TrainingSessionCoach, User,
)
from clubhub.models.constants import PAYROLL_STATUSES
from clubhub.services import cash_register
from clubhub.services.common import apply_fields, get_scoped
from clubhub.utils.dates import utcnow
from clubhub.utils.query import apply_sort, paginate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "period_start": StaffPayroll.period_start,
    "total_amount": StaffPayroll.total_amount,
    "status": StaffPayroll.status,
    "created_at": StaffPayroll.created_at,
}

PERSONNEL_CATEGORY = "Personnel"


def list_payrolls(organization_id, params, query=None, statuses=None, staff_types=None,
                  period_types=None, coach_id=None, user_id=None, date_from=None,
                  date_to=None, min_amount=None, max_amount=None):
    q = StaffPayroll.query.filter(StaffPayroll.organization_id == organization_id)
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(
            StaffPayroll.external_name.ilike(term),
            StaffPayroll.concept.ilike(term),
            StaffPayroll.notes.ilike(term),
        ))
    if statuses:
        q = q.filter(StaffPayroll.status.in_(statuses))
    if staff_types:
        q = q.filter(StaffPayroll.staff_type.in_(staff_types))
    if period_types:
        q = q.filter(StaffPayroll.period_type.in_(period_types))
    if coach_id:
        q = q.filter(StaffPayroll.coach_id == coach_id)
    if user_id:
        q = q.filter(StaffPayroll.user_id == user_id)
    if date_from:
        q = q.filter(StaffPayroll.period_start >= date_from)
    if date_to:
        q = q.filter(StaffPayroll.period_end <= date_to)
    if min_amount is not None:
        q = q.filter(StaffPayroll.total_amount >= min_amount)
    if max_amount is not None:
        q = q.filter(StaffPayroll.total_amount <= max_amount)
    q = apply_sort(q, SORT_COLUMNS, params["sort_by"], params["sort_order"], "period_start")
    return paginate(q, params["limit"], params["offset"])


def get_payroll(organization_id, payroll_id):
    return get_scoped(StaffPayroll, payroll_id, organization_id, "Payroll not found")


def count_coach_sessions(organization_id, coach_id, period_start, period_end, status="completed"):
    q = (
        db.session.query(func.count(TrainingSessionCoach.id))
        .join(TrainingSession, TrainingSessionCoach.session_id == TrainingSession.id)
        .filter(
            TrainingSessionCoach.coach_id == coach_id,
            TrainingSession.organization_id == organization_id,
            TrainingSession.start_time >= period_start,
            TrainingSession.start_time <= period_end,
        )
    )
    if status:
        q = q.filter(TrainingSession.status == status)
    return q.scalar() or 0


def coach_sessions(organization_id, coach_id, period_start, period_end):
    coach = get_scoped(Coach, coach_id, organization_id, "Coach not found")
    return {
        "coach_id": coach.id,
        "coach_name": coach.name,
        "completed_sessions": count_coach_sessions(organization_id, coach.id, period_start, period_end),
        "total_sessions": count_coach_sessions(organization_id, coach.id, period_start, period_end, status=None),
    }


def _check_period(start, end):
    if end <= start:
        raise BadRequest("Period end must be after period start")


def create_payroll(organization_id, user, data):
    data = dict(data)
    _check_period(data["period_start"], data["period_end"])

    if data["staff_type"] == "coach":
        get_scoped(Coach, data["coach_id"], organization_id, "Coach not found")
        if data.get("coach_payment_type") == "per_session":
            rate = data.get("rate_per_session")
            if not rate or rate <= 0:
                raise BadRequest("Rate per session is required for per_session payment type")
            if not data.get("session_count"):
                data["session_count"] = count_coach_sessions(
                    organization_id, data["coach_id"], data["period_start"], data["period_end"]
                )
            data["base_salary"] = data["session_count"] * rate
        else:
            data.pop("session_count", None)
            data.pop("rate_per_session", None)
    else:
        data.pop("coach_payment_type", None)
        data.pop("session_count", None)
        data.pop("rate_per_session", None)
        if data["staff_type"] == "staff":
            member = Member.query.filter_by(organization_id=organization_id, user_id=data["user_id"]).first()
            if not member:
                raise NotFound("User not found")

    payroll = StaffPayroll(organization_id=organization_id, created_by=user.id, **data)
    payroll.compute_total()
    db.session.add(payroll)
    db.session.commit()
    logger.info("Payroll %s created (%s, total %s)", payroll.id, payroll.staff_type, payroll.total_amount)
    return payroll


def update_payroll(organization_id, payroll_id, data):
    payroll = get_payroll(organization_id, payroll_id)
    if payroll.status != "pending":
        raise BadRequest("Can only update pending payrolls")
    _check_period(data.get("period_start", payroll.period_start), data.get("period_end", payroll.period_end))

    apply_fields(payroll, data)
    if payroll.coach_payment_type == "per_session" and payroll.rate_per_session:
        payroll.base_salary = (payroll.session_count or 0) * payroll.rate_per_session
    payroll.compute_total()
    db.session.commit()
    return payroll


def approve_payroll(organization_id, payroll_id, user):
    payroll = get_payroll(organization_id, payroll_id)
    if payroll.status != "pending":
        raise BadRequest("Can only approve pending payrolls")
    payroll.status = "approved"
    payroll.approved_by = user.id
    payroll.approved_at = utcnow()
    db.session.commit()
    return payroll


def _personnel_category(organization_id):
    category = ExpenseCategory.query.filter_by(organization_id=organization_id, type="personnel").first()
    if category is None:
        category = ExpenseCategory(
            organization_id=organization_id,
            name=PERSONNEL_CATEGORY,
            description="Salaries and staff payments",
            type="personnel",
        )
        db.session.add(category)
        db.session.flush()
    return category


def mark_as_paid(organization_id, payroll_id, user, data):
    payroll = get_payroll(organization_id, payroll_id)
    if payroll.status != "approved":
        raise BadRequest("Can only mark approved payrolls as paid")

    payment_date = data.get("payment_date") or utcnow()
    if data.get("create_expense", True):
        recipient = payroll.staff_name or "External"
        description = payroll.concept or (
            f"Payment to {recipient} - {payroll.period_start:%Y-%m-%d} to {payroll.period_end:%Y-%m-%d}"
        )
        expense = Expense(
            organization_id=organization_id,
            category_id=_personnel_category(organization_id).id,
            amount=payroll.total_amount,
            currency=payroll.currency,
            description=description,
            expense_date=payment_date,
            payment_method=data["payment_method"],
            vendor=recipient,
            notes=f"Payroll ID: {payroll.id}",
            recorded_by=user.id,
        )
        db.session.add(expense)
        db.session.flush()
        payroll.expense_id = expense.id

    cash_register.record_cash_movement(
        organization_id, data["payment_method"], "expense", payroll.total_amount,
        f"Payroll payment to {payroll.staff_name or 'External'}",
        "expense", payroll.expense_id, user,
    )
    payroll.status = "paid"
    payroll.payment_method = data["payment_method"]
    payroll.payment_date = payment_date
    payroll.paid_by = user.id
    db.session.commit()
    logger.info("Payroll %s paid (expense %s)", payroll.id, payroll.expense_id)
    return payroll


def cancel_payroll(organization_id, payroll_id):
    payroll = get_payroll(organization_id, payroll_id)
    if payroll.status == "paid":
        raise BadRequest("Cannot cancel paid payrolls")
    payroll.status = "cancelled"
    db.session.commit()
    return payroll


def delete_payroll(organization_id, payroll_id):
    payroll = get_payroll(organization_id, payroll_id)
    if payroll.status not in ("pending", "cancelled"):
        raise BadRequest("Can only delete pending or cancelled payrolls")
    db.session.delete(payroll)
    db.session.commit()


def bulk_delete(organization_id, ids):
    deleted = StaffPayroll.query.filter(
        StaffPayroll.organization_id == organization_id,
        StaffPayroll.id.in_(ids),
        StaffPayroll.status.in_(("pending", "cancelled")),
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def bulk_approve(organization_id, ids, user):
    approved = StaffPayroll.query.filter(
        StaffPayroll.organization_id == organization_id,
        StaffPayroll.id.in_(ids),
        StaffPayroll.status == "pending",
    ).update(
        {"status": "approved", "approved_by": user.id, "approved_at": utcnow()},
        synchronize_session=False,
    )
    db.session.commit()
    return approved


def export_rows(organization_id, ids=None):
    q = StaffPayroll.query.filter(StaffPayroll.organization_id == organization_id)
    if ids:
        q = q.filter(StaffPayroll.id.in_(ids))
    headers = [
        "Staff", "Type", "Period Start", "Period End", "Period Type", "Sessions",
        "Rate", "Base Salary", "Bonuses", "Deductions", "Total", "Currency",
        "Status", "Payment Method", "Payment Date",
    ]
    rows = [
        [
            p.staff_name, p.staff_type, f"{p.period_start:%Y-%m-%d}", f"{p.period_end:%Y-%m-%d}",
            p.period_type, p.session_count, p.rate_per_session, p.base_salary, p.bonuses,
            p.deductions, p.total_amount, p.currency, p.status, p.payment_method,
            f"{p.payment_date:%Y-%m-%d}" if p.payment_date else "",
        ]
        for p in q.order_by(StaffPayroll.period_start.desc()).all()
    ]
    return headers, rows


def summary(organization_id):
    rows = (
        db.session.query(
            StaffPayroll.status,
            func.count(StaffPayroll.id),
            func.coalesce(func.sum(StaffPayroll.total_amount), 0),
        )
        .filter(StaffPayroll.organization_id == organization_id)
        .group_by(StaffPayroll.status)
        .all()
    )
    by_status = {status: {"count": 0, "total": 0} for status in PAYROLL_STATUSES}
    for status, count, total in rows:
        by_status[status] = {"count": count, "total": int(total)}
    return {
        "by_status": by_status,
        "total_count": sum(item["count"] for item in by_status.values()),
        "total_amount": sum(
            item["total"] for status, item in by_status.items() if status != "cancelled"
        ),
    }


def list_staff_options(organization_id):
    """Coaches and staff members that can be put on payroll."""
    coaches = Coach.query.filter_by(organization_id=organization_id, status="active").all()
    staff = (
        User.query.join(Member, Member.user_id == User.id)
        .filter(Member.organization_id == organization_id, Member.role.in_(("owner", "admin", "staff")))
        .order_by(User.name.asc())
        .all()
    )
    return {
        "coaches": [{"id": c.id, "name": c.name, "specialty": c.specialty} for c in coaches],
        "staff": [{"id": u.id, "name": u.name, "email": u.email} for u in staff],
    }
