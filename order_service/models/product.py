import uuid
from datetime import datetime, timezone
from order_service.extensions import db


class Product(db.Model):
    __tablename__ = "products"

    product_id = db.Column(db.UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = db.Column(db.String(255), nullable=False)
    offer_price = db.Column(db.Integer, nullable=False)  # whole currency units
    in_stock = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        db.CheckConstraint("offer_price >= 0", name="ck_products_offer_price"),
    )

    def to_dict(self):
        return {
            "_id": str(self.product_id),
            "name": self.name,
            "offerPrice": self.offer_price,
            "inStock": self.in_stock,
        }
