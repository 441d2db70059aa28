import logging

from sqlalchemy import or_

from clubhub.errors import BadRequest, NotFound
from clubhub.extensions import db
from clubhub.models import Athlete, Product, Sale, SaleItem, StockTransaction
from clubhub.services import cash_register
from clubhub.services.common import apply_fields, commit_or_conflict, get_scoped
from clubhub.utils.dates import utcnow
from clubhub.utils.query import apply_sort, paginate

logger = logging.getLogger(__name__)

DUPLICATE_SKU = "A product with this SKU already exists"

PRODUCT_SORT_COLUMNS = {
    "name": Product.name,
    "category": Product.category,
    "selling_price": Product.selling_price,
    "current_stock": Product.current_stock,
    "created_at": Product.created_at,
}
SALE_SORT_COLUMNS = {
    "total_amount": Sale.total_amount,
    "payment_status": Sale.payment_status,
    "created_at": Sale.created_at,
}


# Products

def list_products(organization_id, params, query=None, categories=None, statuses=None,
                  low_stock=None, include_inactive=False):
    q = Product.query.filter(Product.organization_id == organization_id)
    if not include_inactive:
        q = q.filter(Product.is_active.is_(True))
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(Product.name.ilike(term), Product.sku.ilike(term), Product.barcode.ilike(term)))
    if categories:
        q = q.filter(Product.category.in_(categories))
    if statuses:
        q = q.filter(Product.status.in_(statuses))
    if low_stock:
        q = q.filter(Product.track_stock.is_(True), Product.current_stock <= Product.low_stock_threshold)
    q = apply_sort(q, PRODUCT_SORT_COLUMNS, params["sort_by"], params["sort_order"], "name")
    return paginate(q, params["limit"], params["offset"])


def low_stock_products(organization_id):
    return (
        Product.query.filter(
            Product.organization_id == organization_id,
            Product.is_active.is_(True),
            Product.track_stock.is_(True),
            Product.current_stock <= Product.low_stock_threshold,
        )
        .order_by(Product.current_stock.asc(), Product.name.asc())
        .all()
    )


def get_product(organization_id, product_id):
    return get_scoped(Product, product_id, organization_id, "Product not found")


def create_product(organization_id, user, data):
    product = Product(organization_id=organization_id, created_by=user.id, **data)
    db.session.add(product)
    db.session.flush()
    if product.current_stock:
        db.session.add(StockTransaction(
            organization_id=organization_id,
            product_id=product.id,
            type="purchase",
            quantity=product.current_stock,
            previous_stock=0,
            new_stock=product.current_stock,
            unit_cost=product.cost_price,
            reason="Initial stock",
            recorded_by=user.id,
        ))
    commit_or_conflict(DUPLICATE_SKU)
    return product


def update_product(organization_id, product_id, data):
    product = get_product(organization_id, product_id)
    data = dict(data)
    # Stock only moves through transactions
    data.pop("current_stock", None)
    apply_fields(product, data)
    commit_or_conflict(DUPLICATE_SKU)
    return product


def delete_product(organization_id, product_id):
    product = get_product(organization_id, product_id)
    product.is_active = False
    product.status = "discontinued"
    db.session.commit()
    return product


def _move_stock(product, quantity, type_, user, reference_id=None, reference_type=None,
                reason=None, notes=None, unit_cost=None):
    previous = product.current_stock
    product.current_stock = previous + quantity
    transaction = StockTransaction(
        organization_id=product.organization_id,
        product_id=product.id,
        type=type_,
        quantity=quantity,
        previous_stock=previous,
        new_stock=product.current_stock,
        unit_cost=unit_cost,
        reference_type=reference_type,
        reference_id=reference_id,
        reason=reason,
        notes=notes,
        recorded_by=user.id,
    )
    db.session.add(transaction)
    return transaction


def adjust_stock(organization_id, product_id, user, data):
    product = get_product(organization_id, product_id)
    if product.current_stock + data["quantity"] < 0:
        raise BadRequest("Stock cannot be negative")
    transaction = _move_stock(
        product, data["quantity"], data.get("type", "adjustment"), user,
        reason=data.get("reason"), notes=data.get("notes"), unit_cost=data.get("unit_cost"),
    )
    db.session.commit()
    logger.info("Stock of product %s moved %+d to %s", product.id, data["quantity"], product.current_stock)
    return transaction


def list_transactions(organization_id, product_id, limit=50):
    product = get_product(organization_id, product_id)
    return (
        StockTransaction.query.filter_by(product_id=product.id)
        .order_by(StockTransaction.created_at.desc(), StockTransaction.id.desc())
        .limit(limit)
        .all()
    )


# Sales

def list_sales(organization_id, params, statuses=None, athlete_id=None, date_from=None, date_to=None):
    q = Sale.query.filter(Sale.organization_id == organization_id)
    if statuses:
        q = q.filter(Sale.payment_status.in_(statuses))
    if athlete_id:
        q = q.filter(Sale.athlete_id == athlete_id)
    if date_from:
        q = q.filter(Sale.created_at >= date_from)
    if date_to:
        q = q.filter(Sale.created_at <= date_to)
    q = apply_sort(q, SALE_SORT_COLUMNS, params["sort_by"], params["sort_order"], "created_at")
    return paginate(q, params["limit"], params["offset"])


def get_sale(organization_id, sale_id):
    return get_scoped(Sale, sale_id, organization_id, "Sale not found")


def _next_sale_number(organization_id):
    count = Sale.query.filter_by(organization_id=organization_id).count()
    return f"S-{utcnow():%Y%m%d}-{count + 1:05d}"


def create_sale(organization_id, user, data):
    """Creates a pending sale and takes the items out of stock."""
    if data.get("athlete_id"):
        get_scoped(Athlete, data["athlete_id"], organization_id, "Athlete not found")

    product_ids = {item["product_id"] for item in data["items"]}
    products = {
        p.id: p for p in Product.query.filter(
            Product.organization_id == organization_id, Product.id.in_(product_ids)
        ).all()
    }

    requested = {}
    for item in data["items"]:
        product = products.get(item["product_id"])
        if product is None:
            raise NotFound(f"Product not found: {item['product_id']}")
        requested[product.id] = requested.get(product.id, 0) + item["quantity"]
        if product.track_stock and product.current_stock < requested[product.id]:
            raise BadRequest(f"Insufficient stock for: {product.name}")

    sale = Sale(
        organization_id=organization_id,
        sale_number=_next_sale_number(organization_id),
        athlete_id=data.get("athlete_id"),
        customer_name=data.get("customer_name"),
        payment_method=data.get("payment_method"),
        notes=data.get("notes"),
        payment_status="pending",
        sold_by=user.id,
    )
    subtotal = 0
    for item in data["items"]:
        product = products[item["product_id"]]
        unit_price = item.get("unit_price")
        if unit_price is None:
            unit_price = product.selling_price
        discount = item.get("discount_amount") or 0
        total_price = unit_price * item["quantity"] - discount
        sale.items.append(SaleItem(
            product_id=product.id,
            product_name=product.name,
            quantity=item["quantity"],
            unit_price=unit_price,
            discount_amount=discount,
            total_price=total_price,
        ))
        subtotal += total_price

    sale.subtotal = subtotal
    sale.discount_amount = data.get("discount_amount") or 0
    sale.total_amount = subtotal - sale.discount_amount
    db.session.add(sale)
    db.session.flush()

    for item in sale.items:
        product = products[item.product_id]
        if product.track_stock:
            _move_stock(product, -item.quantity, "sale", user, reference_id=sale.id, reference_type="sale")

    db.session.commit()
    logger.info("Sale %s created (%s items, total %s)", sale.sale_number, len(sale.items), sale.total_amount)
    return sale


def complete_sale(organization_id, sale_id, payment_method=None, user=None):
    sale = get_sale(organization_id, sale_id)
    if sale.payment_status != "pending":
        raise BadRequest("Sale has already been processed")
    sale.payment_status = "completed"
    sale.paid_at = utcnow()
    if payment_method:
        sale.payment_method = payment_method
    movement = cash_register.record_cash_movement(
        organization_id, sale.payment_method, "income", sale.total_amount,
        f"Sale {sale.sale_number}", "product_sale", sale.id, user,
    )
    if movement is not None:
        sale.cash_movement_id = movement.id
    db.session.commit()
    return sale


def cancel_sale(organization_id, sale_id, user, reason=None):
    sale = get_sale(organization_id, sale_id)
    if sale.payment_status == "cancelled":
        raise BadRequest("Sale has already been cancelled")

    for item in sale.items:
        product = item.product
        if product is not None and product.track_stock:
            _move_stock(
                product, item.quantity, "return", user, reference_id=sale.id,
                reference_type="sale", reason=reason or "Sale cancelled",
            )
    sale.payment_status = "cancelled"
    db.session.commit()
    return sale
