from flask import Blueprint, g, jsonify, request

from clubhub.models import Expense
from clubhub.routes import load_json
from clubhub.schemas.base import BulkIdsSchema
from clubhub.schemas.finance import ExpenseCategorySchema, ExpenseSchema
from clubhub.services import expenses as service
from clubhub.services.common import bulk_delete
from clubhub.utils.decorators import org_required
from clubhub.utils.query import (
    arg_bool, arg_datetime, arg_ids, arg_int, arg_list, csv_response, list_params, page_response,
)

expenses_bp = Blueprint("expenses", __name__)
category_schema = ExpenseCategorySchema()
expense_schema = ExpenseSchema()
bulk_ids_schema = BulkIdsSchema()


# Categories

@expenses_bp.route("/categories", methods=["GET"])
@org_required("admin")
def list_categories():
    items = service.list_categories(g.organization.id, include_inactive=bool(arg_bool("include_inactive")))
    return jsonify({"items": [item.to_dict() for item in items], "total": len(items)}), 200


@expenses_bp.route("/categories", methods=["POST"])
@org_required("admin")
def create_category():
    category = service.create_category(g.organization.id, load_json(category_schema))
    return jsonify({"msg": "Category created", "category": category.to_dict()}), 201


@expenses_bp.route("/categories/<int:category_id>", methods=["PATCH"])
@org_required("admin")
def update_category(category_id):
    category = service.update_category(g.organization.id, category_id, load_json(category_schema, partial=True))
    return jsonify({"msg": "Category updated", "category": category.to_dict()}), 200


@expenses_bp.route("/categories/<int:category_id>", methods=["DELETE"])
@org_required("admin")
def delete_category(category_id):
    service.delete_category(g.organization.id, category_id)
    return jsonify({"msg": "Category deleted"}), 200


# Expenses

@expenses_bp.route("", methods=["GET"])
@org_required("admin")
def list_expenses():
    category_ids = arg_ids("category_id")
    items, total = service.list_expenses(
        g.organization.id,
        list_params(default_sort="expense_date"),
        query=request.args.get("query"),
        category_ids=category_ids,
        event_id=arg_int("event_id"),
        payment_methods=arg_list("payment_method"),
        date_from=arg_datetime("from"),
        date_to=arg_datetime("to"),
    )
    return jsonify(page_response(items, total)), 200


@expenses_bp.route("/summary", methods=["GET"])
@org_required("admin")
def expenses_summary():
    return jsonify(service.summary(g.organization.id)), 200


@expenses_bp.route("/export", methods=["GET"])
@org_required("admin")
def export_expenses():
    headers, rows = service.export_rows(g.organization.id, arg_ids())
    return csv_response("expenses", headers, rows)


@expenses_bp.route("/<int:expense_id>", methods=["GET"])
@org_required("admin")
def get_expense(expense_id):
    return jsonify(service.get_expense(g.organization.id, expense_id).to_dict()), 200


@expenses_bp.route("", methods=["POST"])
@org_required("admin")
def create_expense():
    expense = service.create_expense(g.organization.id, g.current_user, load_json(expense_schema))
    return jsonify({"msg": "Expense created", "expense": expense.to_dict()}), 201


@expenses_bp.route("/<int:expense_id>", methods=["PATCH"])
@org_required("admin")
def update_expense(expense_id):
    expense = service.update_expense(g.organization.id, expense_id, load_json(expense_schema, partial=True))
    return jsonify({"msg": "Expense updated", "expense": expense.to_dict()}), 200


@expenses_bp.route("/<int:expense_id>", methods=["DELETE"])
@org_required("admin")
def delete_expense(expense_id):
    service.delete_expense(g.organization.id, expense_id)
    return jsonify({"msg": "Expense deleted"}), 200


@expenses_bp.route("/bulk-delete", methods=["POST"])
@org_required("admin")
def bulk_delete_expenses():
    data = load_json(bulk_ids_schema)
    count = bulk_delete(Expense, data["ids"], g.organization.id)
    return jsonify({"msg": f"{count} expenses deleted", "count": count}), 200
