"""
Daily cash register.

One register per organization and local day. Cash settled anywhere in the
app (training payments, sales, payroll, expenses) is posted as a movement
on today's register while it is open.
"""

import logging

from sqlalchemy import func

from clubhub.errors import BadRequest, Conflict, NotFound
from clubhub.extensions import db
from clubhub.models import CashMovement, CashRegister, Organization, Product, TrainingPayment
from clubhub.services import stock
from clubhub.services.common import commit_or_conflict, get_scoped
from clubhub.utils.dates import local_date, local_day_bounds, utcnow
from clubhub.utils.query import paginate

logger = logging.getLogger(__name__)

NO_OPEN_REGISTER = "No cash register open for today. Please open the cash register first."


def _timezone(organization_id):
    organization = db.session.get(Organization, organization_id)
    return organization.timezone if organization else "UTC"


def today(organization_id, now=None):
    return local_date(_timezone(organization_id), now)


def get_current(organization_id, now=None):
    """Today's register, or None when it has not been opened."""
    return CashRegister.query.filter_by(
        organization_id=organization_id, date=today(organization_id, now)
    ).first()


def get_register(organization_id, register_id):
    return get_scoped(CashRegister, register_id, organization_id, "Cash register not found")


def open_register(organization_id, user, data, now=None):
    day = today(organization_id, now)
    if CashRegister.query.filter_by(organization_id=organization_id, date=day).first():
        raise Conflict("Cash register for today already exists")
    register = CashRegister(
        organization_id=organization_id,
        date=day,
        opening_balance=data.get("opening_balance") or 0,
        notes=data.get("notes"),
        status="open",
        opened_by=user.id,
        opened_at=utcnow(),
    )
    db.session.add(register)
    commit_or_conflict("Cash register for today already exists")
    logger.info("Cash register %s opened for %s in organization %s", register.id, day, organization_id)
    return register


def close_register(organization_id, register_id, user, data):
    register = get_register(organization_id, register_id)
    if register.status == "closed":
        raise BadRequest("Cash register is already closed")
    register.status = "closed"
    register.closing_balance = data["closing_balance"]
    register.closed_by = user.id
    register.closed_at = utcnow()
    if data.get("notes") is not None:
        register.notes = data["notes"]
    db.session.commit()
    logger.info("Cash register %s closed with %s", register.id, register.closing_balance)
    return register


def list_history(organization_id, params, statuses=None, date_from=None, date_to=None):
    q = CashRegister.query.filter(CashRegister.organization_id == organization_id)
    if statuses:
        q = q.filter(CashRegister.status.in_(statuses))
    if date_from:
        q = q.filter(CashRegister.date >= date_from)
    if date_to:
        q = q.filter(CashRegister.date <= date_to)
    q = q.order_by(CashRegister.date.desc())
    return paginate(q, params["limit"], params["offset"])


def list_movements(organization_id, register_id, params, types=None, reference_types=None):
    register = get_register(organization_id, register_id)
    q = CashMovement.query.filter(CashMovement.cash_register_id == register.id)
    if types:
        q = q.filter(CashMovement.type.in_(types))
    if reference_types:
        q = q.filter(CashMovement.reference_type.in_(reference_types))
    q = q.order_by(CashMovement.created_at.desc(), CashMovement.id.desc())
    return paginate(q, params["limit"], params["offset"])


def add_manual_movement(organization_id, user, data, now=None):
    """Records a movement on today's open register, selling ``products`` out of stock if given."""
    register = get_current(organization_id, now)
    if register is None:
        raise NotFound(NO_OPEN_REGISTER)
    if register.status == "closed":
        raise BadRequest("Cash register is closed. Cannot add movements.")

    items = data.get("products") or []
    products = {}
    requested = {}
    for item in items:
        product = products.get(item["product_id"]) or get_scoped(
            Product, item["product_id"], organization_id, f"Product not found: {item['product_id']}"
        )
        products[product.id] = product
        requested[product.id] = requested.get(product.id, 0) + item["quantity"]
        if product.track_stock and product.current_stock < requested[product.id]:
            raise BadRequest(f"Insufficient stock for: {product.name}")

    movement = CashMovement(
        cash_register_id=register.id,
        organization_id=organization_id,
        type=data["type"],
        amount=data["amount"],
        description=data["description"],
        reference_type="manual",
        recorded_by=user.id,
    )
    db.session.add(movement)
    db.session.flush()

    for product_id, quantity in requested.items():
        product = products[product_id]
        if product.track_stock:
            stock._move_stock(
                product, -quantity, "sale", user, reference_id=movement.id,
                reference_type="cash_movement", reason=data["description"],
            )
    db.session.commit()
    logger.info("Manual %s of %s on cash register %s", movement.type, movement.amount, register.id)
    return movement


def record_cash_movement(organization_id, payment_method, type_, amount, description,
                         reference_type, reference_id=None, user=None, now=None):
    """
    Posts a movement for money settled in cash. Does nothing unless the
    method is cash, the amount is positive, and today's register is open.

    The caller commits.
    """
    if payment_method != "cash" or not amount or amount <= 0:
        return None
    register = get_current(organization_id, now)
    if register is None or register.status != "open":
        return None
    movement = CashMovement(
        cash_register_id=register.id,
        organization_id=organization_id,
        type=type_,
        amount=amount,
        description=description,
        reference_type=reference_type,
        reference_id=reference_id,
        recorded_by=user.id if user else None,
    )
    db.session.add(movement)
    db.session.flush()
    logger.info("Cash %s of %s posted to register %s (%s %s)", type_, amount, register.id, reference_type, reference_id)
    return movement


def daily_summary(organization_id, day=None, now=None):
    day = day or today(organization_id, now)
    register = CashRegister.query.filter_by(organization_id=organization_id, date=day).first()

    totals = {type_: {"total": 0, "count": 0} for type_ in ("income", "expense", "adjustment")}
    if register is not None:
        rows = db.session.query(
            CashMovement.type, func.coalesce(func.sum(CashMovement.amount), 0), func.count(CashMovement.id)
        ).filter(CashMovement.cash_register_id == register.id).group_by(CashMovement.type).all()
        for type_, total, count in rows:
            totals[type_] = {"total": int(total), "count": count}

    start, end = local_day_bounds(_timezone(organization_id), day)
    received_total, received_count = db.session.query(
        func.coalesce(func.sum(TrainingPayment.paid_amount), 0), func.count(TrainingPayment.id)
    ).filter(
        TrainingPayment.organization_id == organization_id,
        TrainingPayment.status == "paid",
        TrainingPayment.payment_date >= start,
        TrainingPayment.payment_date <= end,
    ).one()

    net = totals["income"]["total"] - totals["expense"]["total"] + totals["adjustment"]["total"]
    opening = register.opening_balance if register else 0
    return {
        "date": day.isoformat(),
        "cash_register": register.to_dict() if register else None,
        "income": totals["income"],
        "expense": totals["expense"],
        "adjustment": totals["adjustment"],
        "payments_received": {"total": int(received_total), "count": received_count},
        "net_cash_flow": net,
        "expected_balance": opening + net,
    }
