from datetime import timedelta

from sqlalchemy import func, or_

from clubhub.extensions import db
from clubhub.models import Expense, ExpenseCategory, SportsEvent
from clubhub.services import cash_register
from clubhub.services.common import apply_fields, commit_or_conflict, get_scoped
from clubhub.utils.dates import day_start, month_start, utcnow, week_start
from clubhub.utils.query import apply_sort, paginate

DUPLICATE_CATEGORY = "A category with this name already exists"

SORT_COLUMNS = {
    "amount": Expense.amount,
    "expense_date": Expense.expense_date,
    "description": Expense.description,
    "created_at": Expense.created_at,
}


# Categories

def list_categories(organization_id, include_inactive=False):
    q = ExpenseCategory.query.filter_by(organization_id=organization_id)
    if not include_inactive:
        q = q.filter_by(is_active=True)
    return q.order_by(ExpenseCategory.name.asc()).all()


def get_category(organization_id, category_id):
    return get_scoped(ExpenseCategory, category_id, organization_id, "Category not found")


def create_category(organization_id, data):
    category = ExpenseCategory(organization_id=organization_id, **data)
    db.session.add(category)
    commit_or_conflict(DUPLICATE_CATEGORY)
    return category


def update_category(organization_id, category_id, data):
    category = get_category(organization_id, category_id)
    apply_fields(category, data)
    commit_or_conflict(DUPLICATE_CATEGORY)
    return category


def delete_category(organization_id, category_id):
    category = get_category(organization_id, category_id)
    db.session.delete(category)
    db.session.commit()


# Expenses

def list_expenses(organization_id, params, query=None, category_ids=None, event_id=None,
                  payment_methods=None, date_from=None, date_to=None):
    q = Expense.query.filter(Expense.organization_id == organization_id)
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(
            Expense.description.ilike(term),
            Expense.vendor.ilike(term),
            Expense.receipt_number.ilike(term),
        ))
    if category_ids:
        q = q.filter(Expense.category_id.in_(category_ids))
    if event_id:
        q = q.filter(Expense.event_id == event_id)
    if payment_methods:
        q = q.filter(Expense.payment_method.in_(payment_methods))
    if date_from:
        q = q.filter(Expense.expense_date >= date_from)
    if date_to:
        q = q.filter(Expense.expense_date <= date_to)
    q = apply_sort(q, SORT_COLUMNS, params["sort_by"], params["sort_order"], "expense_date")
    return paginate(q, params["limit"], params["offset"])


def get_expense(organization_id, expense_id):
    return get_scoped(Expense, expense_id, organization_id, "Expense not found")


def _check_references(organization_id, data):
    if data.get("event_id"):
        get_scoped(SportsEvent, data["event_id"], organization_id, "Event not found")
    if data.get("category_id"):
        get_category(organization_id, data["category_id"])


def create_expense(organization_id, user, data):
    _check_references(organization_id, data)
    expense = Expense(organization_id=organization_id, recorded_by=user.id, **data)
    db.session.add(expense)
    db.session.flush()
    cash_register.record_cash_movement(
        organization_id, expense.payment_method, "expense", expense.amount,
        expense.description, "expense", expense.id, user,
    )
    db.session.commit()
    return expense


def update_expense(organization_id, expense_id, data):
    expense = get_expense(organization_id, expense_id)
    _check_references(organization_id, data)
    apply_fields(expense, data)
    db.session.commit()
    return expense


def delete_expense(organization_id, expense_id):
    expense = get_expense(organization_id, expense_id)
    db.session.delete(expense)
    db.session.commit()


def export_rows(organization_id, ids=None):
    q = Expense.query.filter(Expense.organization_id == organization_id)
    if ids:
        q = q.filter(Expense.id.in_(ids))
    headers = ["Date", "Description", "Category", "Amount", "Currency", "Payment Method", "Vendor", "Receipt"]
    rows = [
        [
            f"{e.expense_date:%Y-%m-%d}", e.description, e.category.name if e.category else "",
            e.amount, e.currency, e.payment_method, e.vendor, e.receipt_number,
        ]
        for e in q.order_by(Expense.expense_date.desc()).all()
    ]
    return headers, rows


def _spent(organization_id, start=None, end=None):
    q = db.session.query(
        func.coalesce(func.sum(Expense.amount), 0), func.count(Expense.id)
    ).filter(Expense.organization_id == organization_id)
    if start is not None:
        q = q.filter(Expense.expense_date >= start, Expense.expense_date <= end)
    total, count = q.one()
    return {"total": int(total), "count": count}


def summary(organization_id, now=None):
    now = now or utcnow()
    today_end = day_start(now) + timedelta(days=1) - timedelta(microseconds=1)

    by_category = (
        db.session.query(
            ExpenseCategory.id,
            ExpenseCategory.name,
            func.coalesce(func.sum(Expense.amount), 0).label("total"),
            func.count(Expense.id),
        )
        .join(Expense, Expense.category_id == ExpenseCategory.id)
        .filter(Expense.organization_id == organization_id)
        .group_by(ExpenseCategory.id, ExpenseCategory.name)
        .order_by(func.sum(Expense.amount).desc())
        .all()
    )
    categories = [
        {"id": cid, "name": name, "total": int(total), "count": count}
        for cid, name, total, count in by_category
    ]
    return {
        "today": _spent(organization_id, day_start(now), today_end),
        "week": _spent(organization_id, week_start(now), today_end),
        "month": _spent(organization_id, month_start(now), today_end),
        "total": _spent(organization_id),
        "by_category": categories,
        "top_category": categories[0] if categories else None,
    }
