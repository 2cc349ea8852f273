"""
Expense ledger model for OfficeDesk
Accountant-entered costs that feed the income/expense summary
"""

from init_db import db
from utils.timezone_helper import utc_now, isoformat_utc


class Expense(db.Model):
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    purpose = db.Column(db.String(200), nullable=False)

    # Amount stored as Decimal for precision
    amount = db.Column(db.Numeric(precision=12, scale=2), nullable=False)
    note = db.Column(db.Text, default="")

    # User Tracking
    added_by_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now)

    added_by = db.relationship('User')

    def to_dict(self):
        return {
            "id": self.id,
            "date": isoformat_utc(self.date),
            "purpose": self.purpose,
            "amount": float(self.amount),
            "note": self.note or "",
            "addedBy": self.added_by.to_public_dict() if self.added_by else None,
        }

    def __repr__(self):
        return f"<Expense {self.id}: {self.purpose} {self.amount}>"
