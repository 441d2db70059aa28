"""Event logistics: vendors, inventory, budget, risks and the financial projection."""

import logging
import math
from collections import OrderedDict

from sqlalchemy import or_

from clubhub.errors import NotFound
from clubhub.extensions import db
from clubhub.models import (
    EventBudgetLine, EventInventoryItem, EventRegistration, EventRisk, EventRiskLog,
    EventVendor, EventVendorAssignment, Expense, ExpenseCategory, SportsEvent,
)
from clubhub.services.common import apply_fields, commit_or_conflict, get_scoped
from clubhub.utils.dates import utcnow

logger = logging.getLogger(__name__)

SEVERITY_SCORES = {"low": 1, "medium": 2, "high": 3, "critical": 4}
PROBABILITY_SCORES = {"unlikely": 1, "possible": 2, "likely": 3, "almost_certain": 4}


def verify_event_ownership(event_id, organization_id):
    event = SportsEvent.query.filter_by(id=event_id, organization_id=organization_id).first()
    if not event:
        raise NotFound("Event not found")
    return event


def _event_item(model, event_id, item_id, message):
    item = model.query.filter_by(id=item_id, event_id=event_id).first()
    if not item:
        raise NotFound(message)
    return item


def _check_vendor(organization_id, vendor_id):
    if vendor_id:
        get_scoped(EventVendor, vendor_id, organization_id, "Vendor not found")


# Vendors

def list_vendors(organization_id, query=None, is_active=None, category=None):
    q = EventVendor.query.filter(EventVendor.organization_id == organization_id)
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(
            EventVendor.name.ilike(term),
            EventVendor.contact_name.ilike(term),
            EventVendor.email.ilike(term),
        ))
    if is_active is not None:
        q = q.filter(EventVendor.is_active.is_(is_active))
    vendors = q.order_by(EventVendor.name.asc()).all()
    if category:
        vendors = [v for v in vendors if category in (v.categories or [])]
    return vendors


def get_vendor(organization_id, vendor_id):
    return get_scoped(EventVendor, vendor_id, organization_id, "Vendor not found")


def create_vendor(organization_id, user, data):
    vendor = EventVendor(organization_id=organization_id, created_by=user.id, **data)
    db.session.add(vendor)
    db.session.commit()
    return vendor


def update_vendor(organization_id, vendor_id, data):
    vendor = get_vendor(organization_id, vendor_id)
    apply_fields(vendor, data)
    db.session.commit()
    return vendor


def delete_vendor(organization_id, vendor_id):
    vendor = get_vendor(organization_id, vendor_id)
    db.session.delete(vendor)
    db.session.commit()


# Vendor assignments

def list_assignments(organization_id, event_id):
    event = verify_event_ownership(event_id, organization_id)
    return EventVendorAssignment.query.filter_by(event_id=event.id).order_by(EventVendorAssignment.created_at.asc()).all()


def create_assignment(organization_id, event_id, data):
    event = verify_event_ownership(event_id, organization_id)
    _check_vendor(organization_id, data["vendor_id"])
    assignment = EventVendorAssignment(event_id=event.id, **data)
    if assignment.is_confirmed:
        assignment.confirmed_at = utcnow()
    db.session.add(assignment)
    commit_or_conflict("This vendor is already assigned to the event")
    return assignment


def update_assignment(organization_id, event_id, assignment_id, data):
    event = verify_event_ownership(event_id, organization_id)
    assignment = _event_item(EventVendorAssignment, event.id, assignment_id, "Vendor assignment not found")
    data = dict(data)
    data.pop("vendor_id", None)
    if data.get("is_confirmed") and not assignment.is_confirmed:
        assignment.confirmed_at = utcnow()
    elif data.get("is_confirmed") is False:
        assignment.confirmed_at = None
    apply_fields(assignment, data)
    db.session.commit()
    return assignment


def delete_assignment(organization_id, event_id, assignment_id):
    event = verify_event_ownership(event_id, organization_id)
    assignment = _event_item(EventVendorAssignment, event.id, assignment_id, "Vendor assignment not found")
    db.session.delete(assignment)
    db.session.commit()


# Inventory

def list_inventory(organization_id, event_id, category=None, statuses=None, zone=None):
    event = verify_event_ownership(event_id, organization_id)
    q = EventInventoryItem.query.filter_by(event_id=event.id)
    if category:
        q = q.filter(EventInventoryItem.category == category)
    if statuses:
        q = q.filter(EventInventoryItem.status.in_(statuses))
    if zone:
        q = q.filter(EventInventoryItem.zone == zone)
    return q.order_by(EventInventoryItem.name.asc()).all()


def create_inventory_item(organization_id, event_id, user, data):
    event = verify_event_ownership(event_id, organization_id)
    _check_vendor(organization_id, data.get("vendor_id"))
    item = EventInventoryItem(event_id=event.id, organization_id=organization_id, created_by=user.id, **data)
    if item.total_cost is None and item.unit_cost is not None:
        item.total_cost = item.unit_cost * (item.quantity_needed or 1)
    db.session.add(item)
    db.session.commit()
    return item


def update_inventory_item(organization_id, event_id, item_id, data):
    event = verify_event_ownership(event_id, organization_id)
    item = _event_item(EventInventoryItem, event.id, item_id, "Inventory item not found")
    _check_vendor(organization_id, data.get("vendor_id"))
    apply_fields(item, data)
    db.session.commit()
    return item


def delete_inventory_item(organization_id, event_id, item_id):
    event = verify_event_ownership(event_id, organization_id)
    item = _event_item(EventInventoryItem, event.id, item_id, "Inventory item not found")
    db.session.delete(item)
    db.session.commit()


# Budget lines

def list_budget_lines(organization_id, event_id):
    event = verify_event_ownership(event_id, organization_id)
    return (
        EventBudgetLine.query.filter_by(event_id=event.id)
        .order_by(EventBudgetLine.is_revenue.desc(), EventBudgetLine.created_at.asc())
        .all()
    )


def _check_budget_refs(organization_id, data):
    if data.get("category_id"):
        get_scoped(ExpenseCategory, data["category_id"], organization_id, "Category not found")
    _check_vendor(organization_id, data.get("vendor_id"))


def create_budget_line(organization_id, event_id, user, data):
    event = verify_event_ownership(event_id, organization_id)
    _check_budget_refs(organization_id, data)
    line = EventBudgetLine(event_id=event.id, organization_id=organization_id, created_by=user.id, **data)
    if line.status == "approved":
        line.approved_by = user.id
        line.approved_at = utcnow()
    db.session.add(line)
    db.session.commit()
    return line


def update_budget_line(organization_id, event_id, line_id, user, data):
    event = verify_event_ownership(event_id, organization_id)
    line = _event_item(EventBudgetLine, event.id, line_id, "Budget line not found")
    _check_budget_refs(organization_id, data)
    if data.get("status") == "approved" and line.status != "approved":
        line.approved_by = user.id
        line.approved_at = utcnow()
    apply_fields(line, data)
    db.session.commit()
    return line


def delete_budget_line(organization_id, event_id, line_id):
    event = verify_event_ownership(event_id, organization_id)
    line = _event_item(EventBudgetLine, event.id, line_id, "Budget line not found")
    db.session.delete(line)
    db.session.commit()


# Risks

def risk_score(severity, probability):
    return SEVERITY_SCORES[severity] * PROBABILITY_SCORES[probability]


def list_risks(organization_id, event_id, statuses=None):
    event = verify_event_ownership(event_id, organization_id)
    q = EventRisk.query.filter_by(event_id=event.id)
    if statuses:
        q = q.filter(EventRisk.status.in_(statuses))
    return q.order_by(EventRisk.risk_score.desc(), EventRisk.created_at.asc()).all()


def create_risk(organization_id, event_id, user, data):
    event = verify_event_ownership(event_id, organization_id)
    risk = EventRisk(event_id=event.id, organization_id=organization_id, created_by=user.id, **data)
    risk.severity = risk.severity or "medium"
    risk.probability = risk.probability or "possible"
    risk.status = risk.status or "identified"
    risk.risk_score = risk_score(risk.severity, risk.probability)
    risk.logs.append(EventRiskLog(
        action="created", new_status=risk.status, description=risk.title, user_id=user.id,
    ))
    db.session.add(risk)
    db.session.commit()
    return risk


def update_risk(organization_id, event_id, risk_id, user, data):
    event = verify_event_ownership(event_id, organization_id)
    risk = _event_item(EventRisk, event.id, risk_id, "Risk not found")
    previous_status = risk.status

    apply_fields(risk, data)
    risk.risk_score = risk_score(risk.severity, risk.probability)
    risk.last_reviewed_at = utcnow()
    if "status" in data and data["status"] != previous_status:
        risk.logs.append(EventRiskLog(
            action="status_change", previous_status=previous_status,
            new_status=data["status"], user_id=user.id,
        ))
    db.session.commit()
    return risk


def delete_risk(organization_id, event_id, risk_id):
    event = verify_event_ownership(event_id, organization_id)
    risk = _event_item(EventRisk, event.id, risk_id, "Risk not found")
    db.session.delete(risk)
    db.session.commit()


def list_risk_logs(organization_id, event_id, risk_id):
    event = verify_event_ownership(event_id, organization_id)
    return _event_item(EventRisk, event.id, risk_id, "Risk not found").logs


# Projection

def _round_half_up(value):
    return int(math.floor(value + 0.5))


def _percent(part, whole):
    return _round_half_up(part * 100 / whole) if whole > 0 else 0


def get_projection(organization_id, event_id):
    """Expected vs actual income and costs for an event."""
    event = verify_event_ownership(event_id, organization_id)
    registrations = EventRegistration.query.filter_by(event_id=event.id).all()
    budget_lines = EventBudgetLine.query.filter_by(event_id=event.id).all()
    recorded_expenses = Expense.query.filter_by(event_id=event.id, organization_id=organization_id).all()

    by_status = OrderedDict(
        (status, 0) for status in
        ("confirmed", "pending_payment", "waitlist", "cancelled", "refunded", "no_show")
    )
    expected = collected = refunded = discounts = 0
    for registration in registrations:
        by_status[registration.status] += 1
        if registration.status in ("confirmed", "pending_payment"):
            expected += registration.price
            collected += registration.paid_amount or 0
        elif registration.status == "refunded":
            refunded += registration.paid_amount or 0
        discounts += registration.discount_amount or 0

    planned_costs = actual_costs = planned_revenue = actual_revenue = 0
    breakdown = []
    for line in budget_lines:
        if line.is_revenue:
            planned_revenue += line.planned_amount
            actual_revenue += line.actual_amount
        else:
            planned_costs += line.planned_amount
            actual_costs += line.actual_amount
            breakdown.append({
                "name": line.name,
                "planned": line.planned_amount,
                "actual": line.actual_amount,
                "variance": line.planned_amount - line.actual_amount,
            })

    recorded = OrderedDict()
    for expense in recorded_expenses:
        name = expense.category.name if expense.category else expense.description
        recorded[name] = recorded.get(name, 0) + expense.amount
    for name, amount in recorded.items():
        actual_costs += amount
        breakdown.append({"name": name, "planned": 0, "actual": amount, "variance": -amount})

    projected_profit = expected - planned_costs
    current_profit = collected - actual_costs
    if planned_costs > 0:
        execution_rate = _percent(actual_costs, planned_costs)
    else:
        execution_rate = 100 if actual_costs > 0 else 0

    return {
        "registrations": {
            "total": by_status["confirmed"] + by_status["pending_payment"],
            "by_status": dict(by_status),
        },
        "revenue": {
            "expected": expected,
            "collected": collected,
            "pending": max(0, expected - collected),
            "refunded": refunded,
            "discounts": discounts,
            "collection_rate": _percent(collected, expected),
        },
        "expenses": {
            "planned": planned_costs,
            "actual": actual_costs,
            "variance": planned_costs - actual_costs,
            "execution_rate": execution_rate,
            "breakdown": breakdown,
        },
        "budget_revenue": {"planned": planned_revenue, "actual": actual_revenue},
        "profit": {
            "projected": projected_profit,
            "current": current_profit,
            "projected_margin": _percent(projected_profit, expected),
            "current_margin": _percent(current_profit, collected),
        },
        "summary": {
            "total_expected_income": expected + planned_revenue,
            "total_actual_income": collected + actual_revenue,
            "total_planned_costs": planned_costs,
            "total_actual_costs": actual_costs,
            "projected_balance": expected + planned_revenue - planned_costs,
            "current_balance": collected + actual_revenue - actual_costs,
        },
    }
