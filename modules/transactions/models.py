"""SQLAlchemy models for the transaction ledger."""

from datetime import datetime

from extensions import db

TYPE_IN = "IN"
TYPE_OUT = "OUT"
TRANSACTION_TYPES = (TYPE_IN, TYPE_OUT)


class Transaction(db.Model):
    """
    One stock movement. Rows are append-only: the item's quantity is
    adjusted in the same commit that writes the row, never afterwards.
    """

    __tablename__ = "transactions"

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    type = db.Column(db.String(8), nullable=False)  # IN, OUT
    quantity = db.Column(db.Integer, nullable=False)
    note = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    item = db.relationship("Item")
    user = db.relationship("User")

    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_transactions_quantity_positive"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "sku": self.item.sku if self.item else None,
            "user_id": self.user_id,
            "user_email": self.user.email if self.user else None,
            "type": self.type,
            "quantity": self.quantity,
            "note": self.note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Transaction {self.type} {self.quantity} item={self.item_id}>"
