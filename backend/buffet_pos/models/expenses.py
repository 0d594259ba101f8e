from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Expense(db.Model):
    """Operating expense logged by a manager or admin."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_date", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(64), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    description = db.Column(db.Text, nullable=True)

    recorded_by_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True, index=True)
    expense_date = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    recorder = db.relationship("Profile")

    def to_dict(self, include_recorder: bool = False) -> dict:
        data = {
            "id": self.id,
            "category": self.category,
            "amount_cents": self.amount_cents,
            "description": self.description,
            "recorded_by_id": self.recorded_by_id,
            "expense_date": self.expense_date.isoformat() if self.expense_date else None,
            "created_at": to_utc_z(self.created_at),
        }
        if include_recorder:
            data["recorder"] = self.recorder.to_dict() if self.recorder else None
        return data
