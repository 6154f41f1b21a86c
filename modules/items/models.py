"""SQLAlchemy models for the item inventory."""

from datetime import datetime

from extensions import db

DEFAULT_UNIT = "pcs"

# Columns accepted on create/update and in import files, in export order
ITEM_FIELDS = ("sku", "name", "description", "category", "location", "unit", "quantity")


class Item(db.Model):
    """A stock-keeping unit held in the warehouse."""

    __tablename__ = "items"

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(64))
    location = db.Column(db.String(64))
    unit = db.Column(db.String(16), nullable=False, default=DEFAULT_UNIT)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "location": self.location,
            "unit": self.unit,
            "quantity": self.quantity,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Item {self.sku}: {self.name}>"


def normalize_sku(sku: str) -> str:
    return sku.strip().upper()
