from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import (
    PAYMENT_METHODS, PRODUCT_CATEGORIES, PRODUCT_STATUSES, SALE_STATUSES,
    STOCK_TRANSACTION_TYPES, check_in,
)
from clubhub.utils.dates import iso


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    sku = db.Column(db.String(64))
    barcode = db.Column(db.String(64))
    category = db.Column(db.String(20), check_in("category", PRODUCT_CATEGORIES), nullable=False, default="other")
    cost_price = db.Column(db.Integer, nullable=False, default=0)
    selling_price = db.Column(db.Integer, nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default="ARS")
    track_stock = db.Column(db.Boolean, nullable=False, default=True)
    low_stock_threshold = db.Column(db.Integer, default=5)
    current_stock = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), check_in("status", PRODUCT_STATUSES), nullable=False, default="active", index=True)
    image_url = db.Column(db.String(255))
    tax_rate = db.Column(db.Integer, default=0)  # percent
    notes = db.Column(db.Text)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("organization_id", "sku", name="uq_product_org_sku"),
    )

    @property
    def is_low_stock(self):
        return bool(self.track_stock and self.current_stock <= (self.low_stock_threshold or 0))

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "sku": self.sku,
            "barcode": self.barcode,
            "category": self.category,
            "cost_price": self.cost_price,
            "selling_price": self.selling_price,
            "currency": self.currency,
            "track_stock": self.track_stock,
            "low_stock_threshold": self.low_stock_threshold,
            "current_stock": self.current_stock,
            "is_low_stock": self.is_low_stock,
            "status": self.status,
            "image_url": self.image_url,
            "tax_rate": self.tax_rate,
            "notes": self.notes,
            "is_active": self.is_active,
        }


class StockTransaction(db.Model):
    __tablename__ = "stock_transactions"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    type = db.Column(db.String(20), check_in("type", STOCK_TRANSACTION_TYPES), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)  # signed
    previous_stock = db.Column(db.Integer, nullable=False)
    new_stock = db.Column(db.Integer, nullable=False)
    unit_cost = db.Column(db.Integer)
    reference_type = db.Column(db.String(20))
    reference_id = db.Column(db.Integer)
    reason = db.Column(db.String(255))
    notes = db.Column(db.Text)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    product = db.relationship("Product")

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "type": self.type,
            "quantity": self.quantity,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "unit_cost": self.unit_cost,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "reason": self.reason,
            "notes": self.notes,
            "created_at": iso(self.created_at),
        }


class Sale(db.Model):
    __tablename__ = "sales"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    sale_number = db.Column(db.String(30))
    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="SET NULL"))
    customer_name = db.Column(db.String(150))
    subtotal = db.Column(db.Integer, nullable=False, default=0)
    tax_amount = db.Column(db.Integer, nullable=False, default=0)
    discount_amount = db.Column(db.Integer, nullable=False, default=0)
    total_amount = db.Column(db.Integer, nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default="ARS")
    payment_method = db.Column(db.String(20), check_in("payment_method", PAYMENT_METHODS))
    payment_status = db.Column(db.String(20), check_in("payment_status", SALE_STATUSES), nullable=False, default="pending", index=True)
    paid_at = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    sold_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    cash_movement_id = db.Column(db.Integer, db.ForeignKey("cash_movements.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    athlete = db.relationship("Athlete")
    items = db.relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "sale_number": self.sale_number,
            "athlete_id": self.athlete_id,
            "customer_name": self.customer_name or (self.athlete.name if self.athlete else None),
            "subtotal": self.subtotal,
            "tax_amount": self.tax_amount,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
            "currency": self.currency,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "paid_at": iso(self.paid_at),
            "cash_movement_id": self.cash_movement_id,
            "notes": self.notes,
            "items": [item.to_dict() for item in self.items],
            "created_at": iso(self.created_at),
        }


class SaleItem(db.Model):
    __tablename__ = "sale_items"

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"))
    product_name = db.Column(db.String(150), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Integer, nullable=False)  # price at time of sale
    total_price = db.Column(db.Integer, nullable=False)
    discount_amount = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "discount_amount": self.discount_amount,
        }
