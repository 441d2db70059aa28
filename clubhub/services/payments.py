import logging
from datetime import timedelta

from sqlalchemy import func, or_

from clubhub.errors import BadRequest
from clubhub.extensions import db
from clubhub.models import Athlete, TrainingPayment, TrainingPaymentSession, TrainingSession, User
from clubhub.services import cash_register
from clubhub.services.common import apply_fields, get_scoped, scoped_ids
from clubhub.utils.dates import day_start, month_start, utcnow, week_start
from clubhub.utils.query import apply_sort, paginate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "amount": TrainingPayment.amount,
    "status": TrainingPayment.status,
    "payment_date": TrainingPayment.payment_date,
    "created_at": TrainingPayment.created_at,
}


def status_for(amount, paid_amount):
    if paid_amount >= amount:
        return "paid"
    if paid_amount > 0:
        return "partial"
    return None


def list_payments(organization_id, params, query=None, statuses=None, athlete_id=None,
                  payment_methods=None, date_from=None, date_to=None):
    q = TrainingPayment.query.filter(TrainingPayment.organization_id == organization_id)
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.outerjoin(Athlete, TrainingPayment.athlete_id == Athlete.id).outerjoin(
            User, Athlete.user_id == User.id
        ).filter(or_(
            User.name.ilike(term),
            TrainingPayment.description.ilike(term),
            TrainingPayment.receipt_number.ilike(term),
        ))
    if statuses:
        q = q.filter(TrainingPayment.status.in_(statuses))
    if athlete_id:
        q = q.filter(TrainingPayment.athlete_id == athlete_id)
    if payment_methods:
        q = q.filter(TrainingPayment.payment_method.in_(payment_methods))
    if date_from:
        q = q.filter(TrainingPayment.payment_date >= date_from)
    if date_to:
        q = q.filter(TrainingPayment.payment_date <= date_to)
    q = apply_sort(q, SORT_COLUMNS, params["sort_by"], params["sort_order"], "created_at")
    return paginate(q, params["limit"], params["offset"])


def get_payment(organization_id, payment_id):
    return get_scoped(TrainingPayment, payment_id, organization_id, "Payment not found")


def create_payment(organization_id, user, data):
    data = dict(data)
    session_ids = data.pop("session_ids", None) or []

    get_scoped(Athlete, data["athlete_id"], organization_id, "Athlete not found")
    if data.get("session_id"):
        get_scoped(TrainingSession, data["session_id"], organization_id, "Session not found")
    if session_ids and len(scoped_ids(TrainingSession, session_ids, organization_id)) != len(set(session_ids)):
        raise BadRequest("One or more sessions not found")

    payment = TrainingPayment(organization_id=organization_id, recorded_by=user.id, **data)
    if "status" not in data and payment.paid_amount:
        payment.status = status_for(payment.amount, payment.paid_amount) or "pending"
    for session_id in dict.fromkeys(session_ids):
        payment.session_links.append(TrainingPaymentSession(session_id=session_id))
    db.session.add(payment)
    db.session.flush()
    cash_register.record_cash_movement(
        organization_id, payment.payment_method, "income", payment.paid_amount,
        f"Training payment #{payment.id}", "payment", payment.id, user,
    )
    db.session.commit()
    logger.info("Payment %s created for athlete %s", payment.id, payment.athlete_id)
    return payment


def update_payment(organization_id, payment_id, data):
    payment = get_payment(organization_id, payment_id)
    data = dict(data)
    session_ids = data.pop("session_ids", None)

    if "athlete_id" in data:
        get_scoped(Athlete, data["athlete_id"], organization_id, "Athlete not found")
    if data.get("session_id"):
        get_scoped(TrainingSession, data["session_id"], organization_id, "Session not found")

    # Status follows paid_amount unless given explicitly
    if "paid_amount" in data and "status" not in data:
        status = status_for(data.get("amount", payment.amount), data["paid_amount"])
        if status:
            data["status"] = status
    apply_fields(payment, data)

    if session_ids is not None:
        if len(scoped_ids(TrainingSession, session_ids, organization_id)) != len(set(session_ids)):
            raise BadRequest("One or more sessions not found")
        payment.session_links.clear()
        db.session.flush()
        for session_id in dict.fromkeys(session_ids):
            payment.session_links.append(TrainingPaymentSession(session_id=session_id))

    db.session.commit()
    return payment


def record_payment(organization_id, payment_id, user, data):
    """Adds ``amount`` to what has been paid so far."""
    payment = get_payment(organization_id, payment_id)
    payment.paid_amount = (payment.paid_amount or 0) + data["amount"]
    payment.status = "paid" if payment.paid_amount >= payment.amount else "partial"
    payment.payment_method = data.get("payment_method") or payment.payment_method
    payment.payment_date = data.get("payment_date") or utcnow()
    payment.receipt_number = data.get("receipt_number") or payment.receipt_number
    if data.get("notes") is not None:
        payment.notes = data["notes"]
    payment.recorded_by = user.id
    cash_register.record_cash_movement(
        organization_id, payment.payment_method, "income", data["amount"],
        f"Training payment #{payment.id}", "payment", payment.id, user,
    )
    db.session.commit()
    logger.info("Recorded %s on payment %s (%s)", data["amount"], payment.id, payment.status)
    return payment


def delete_payment(organization_id, payment_id):
    payment = get_payment(organization_id, payment_id)
    db.session.delete(payment)
    db.session.commit()


def _collected(organization_id, start=None, end=None):
    q = db.session.query(
        func.coalesce(func.sum(TrainingPayment.paid_amount), 0), func.count(TrainingPayment.id)
    ).filter(TrainingPayment.organization_id == organization_id, TrainingPayment.status == "paid")
    if start is not None:
        q = q.filter(TrainingPayment.payment_date >= start, TrainingPayment.payment_date <= end)
    total, count = q.one()
    return {"total": int(total), "count": count}


def summary(organization_id, now=None):
    now = now or utcnow()
    today_end = day_start(now) + timedelta(days=1) - timedelta(microseconds=1)

    pending_total, pending_count = db.session.query(
        func.coalesce(func.sum(TrainingPayment.amount - TrainingPayment.paid_amount), 0),
        func.count(TrainingPayment.id),
    ).filter(
        TrainingPayment.organization_id == organization_id,
        TrainingPayment.status.in_(("pending", "partial")),
    ).one()

    return {
        "today": _collected(organization_id, day_start(now), today_end),
        "week": _collected(organization_id, week_start(now), today_end),
        "month": _collected(organization_id, month_start(now), today_end),
        "pending": {"total": int(pending_total), "count": pending_count},
        "total_collected": _collected(organization_id),
    }


def list_my_payments(organization_id, user):
    athlete = Athlete.query.filter_by(organization_id=organization_id, user_id=user.id).first()
    if not athlete:
        return [], None, {"total": 0, "paid": 0, "pending": 0}

    payments = (
        TrainingPayment.query.filter_by(organization_id=organization_id, athlete_id=athlete.id)
        .order_by(TrainingPayment.created_at.desc())
        .all()
    )
    totals = {"total": 0, "paid": 0, "pending": 0}
    for payment in payments:
        totals["total"] += payment.amount
        if payment.status == "paid":
            totals["paid"] += payment.paid_amount
        else:
            totals["pending"] += payment.amount - payment.paid_amount
    return payments, athlete, totals
