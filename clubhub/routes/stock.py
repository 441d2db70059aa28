from flask import Blueprint, g, jsonify, request

from clubhub.routes import load_json
from clubhub.schemas.stock import CompleteSaleSchema, ProductSchema, SaleSchema, StockAdjustmentSchema
from clubhub.services import stock as service
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_bool, arg_datetime, arg_int, arg_list, list_params, page_response

stock_bp = Blueprint("stock", __name__)
product_schema = ProductSchema()
adjustment_schema = StockAdjustmentSchema()
sale_schema = SaleSchema()
complete_schema = CompleteSaleSchema()


# Products

@stock_bp.route("/products", methods=["GET"])
@org_required("staff")
def list_products():
    items, total = service.list_products(
        g.organization.id,
        list_params(default_sort="name", default_order="asc"),
        query=request.args.get("query"),
        categories=arg_list("category"),
        statuses=arg_list("status"),
        low_stock=arg_bool("low_stock"),
        include_inactive=bool(arg_bool("include_inactive")),
    )
    return jsonify(page_response(items, total)), 200


@stock_bp.route("/products/low-stock", methods=["GET"])
@org_required("staff")
def low_stock():
    return jsonify([p.to_dict() for p in service.low_stock_products(g.organization.id)]), 200


@stock_bp.route("/products/<int:product_id>", methods=["GET"])
@org_required("staff")
def get_product(product_id):
    return jsonify(service.get_product(g.organization.id, product_id).to_dict()), 200


@stock_bp.route("/products", methods=["POST"])
@org_required("admin")
def create_product():
    product = service.create_product(g.organization.id, g.current_user, load_json(product_schema))
    return jsonify({"msg": "Product created", "product": product.to_dict()}), 201


@stock_bp.route("/products/<int:product_id>", methods=["PATCH"])
@org_required("admin")
def update_product(product_id):
    product = service.update_product(g.organization.id, product_id, load_json(product_schema, partial=True))
    return jsonify({"msg": "Product updated", "product": product.to_dict()}), 200


@stock_bp.route("/products/<int:product_id>", methods=["DELETE"])
@org_required("admin")
def delete_product(product_id):
    service.delete_product(g.organization.id, product_id)
    return jsonify({"msg": "Product deleted"}), 200


@stock_bp.route("/products/<int:product_id>/adjust", methods=["POST"])
@org_required("admin")
def adjust_stock(product_id):
    transaction = service.adjust_stock(g.organization.id, product_id, g.current_user, load_json(adjustment_schema))
    return jsonify({
        "msg": "Stock adjusted",
        "transaction": transaction.to_dict(),
        "product": transaction.product.to_dict(),
    }), 200


@stock_bp.route("/products/<int:product_id>/transactions", methods=["GET"])
@org_required("staff")
def list_transactions(product_id):
    limit = min(arg_int("limit") or 50, 200)
    transactions = service.list_transactions(g.organization.id, product_id, limit=limit)
    return jsonify([t.to_dict() for t in transactions]), 200


# Sales

@stock_bp.route("/sales", methods=["GET"])
@org_required("staff")
def list_sales():
    items, total = service.list_sales(
        g.organization.id,
        list_params(),
        statuses=arg_list("status"),
        athlete_id=arg_int("athlete_id"),
        date_from=arg_datetime("from"),
        date_to=arg_datetime("to"),
    )
    return jsonify(page_response(items, total)), 200


@stock_bp.route("/sales/<int:sale_id>", methods=["GET"])
@org_required("staff")
def get_sale(sale_id):
    return jsonify(service.get_sale(g.organization.id, sale_id).to_dict()), 200


@stock_bp.route("/sales", methods=["POST"])
@org_required("staff")
def create_sale():
    sale = service.create_sale(g.organization.id, g.current_user, load_json(sale_schema))
    return jsonify({"msg": "Sale created", "sale": sale.to_dict()}), 201


@stock_bp.route("/sales/<int:sale_id>/complete", methods=["POST"])
@org_required("staff")
def complete_sale(sale_id):
    data = load_json(complete_schema)
    sale = service.complete_sale(g.organization.id, sale_id, data.get("payment_method"), g.current_user)
    return jsonify({"msg": "Sale completed", "sale": sale.to_dict()}), 200


@stock_bp.route("/sales/<int:sale_id>/cancel", methods=["POST"])
@org_required("admin")
def cancel_sale(sale_id):
    reason = (request.get_json(silent=True) or {}).get("reason")
    sale = service.cancel_sale(g.organization.id, sale_id, g.current_user, reason)
    return jsonify({"msg": "Sale cancelled", "sale": sale.to_dict()}), 200
