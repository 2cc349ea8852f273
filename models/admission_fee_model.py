from init_db import db
from sqlalchemy import Enum, ForeignKey
from utils.timezone_helper import utc_now, isoformat_utc

PAYMENT_METHODS = ("Bkash", "Nagad", "Rocket", "Bank Transfer", "Cash on Hand")

FEE_PENDING = "Pending"
FEE_APPROVED = "Approved"
FEE_REJECTED = "Rejected"
FEE_STATUSES = (FEE_PENDING, FEE_APPROVED, FEE_REJECTED)


class AdmissionFee(db.Model):
    __tablename__ = "admission_fees"

    id = db.Column(db.Integer, primary_key=True)
    lead_id = db.Column(db.Integer, ForeignKey("leads.id"), nullable=False, index=True)
    course_name = db.Column(db.String(200), nullable=False)
    amount = db.Column(db.Numeric(precision=12, scale=2), nullable=False)
    method = db.Column(Enum(*PAYMENT_METHODS, name="payment_method"), nullable=False)
    payment_date = db.Column(db.DateTime, nullable=False)
    note = db.Column(db.Text, default="")

    status = db.Column(Enum(*FEE_STATUSES, name="fee_status"), nullable=False, default=FEE_PENDING, index=True)
    submitted_by_user_id = db.Column(db.Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Accountant decision
    decided_by_user_id = db.Column(db.Integer, ForeignKey("users.id"), nullable=True)
    decided_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    lead = db.relationship('Lead', backref='admission_fees')
    submitted_by = db.relationship('User', foreign_keys=[submitted_by_user_id])
    decided_by = db.relationship('User', foreign_keys=[decided_by_user_id])

    def to_dict(self):
        return {
            "id": self.id,
            "lead": self.lead.to_summary_dict() if self.lead else None,
            "courseName": self.course_name,
            "amount": float(self.amount) if self.amount is not None else None,
            "method": self.method,
            "paymentDate": isoformat_utc(self.payment_date),
            "note": self.note or "",
            "status": self.status,
            "submittedBy": self.submitted_by.to_public_dict() if self.submitted_by else None,
            "decidedBy": self.decided_by.to_public_dict() if self.decided_by else None,
            "decidedAt": isoformat_utc(self.decided_at),
            "createdAt": isoformat_utc(self.created_at),
        }

    def __repr__(self):
        return f"<AdmissionFee {self.id}: {self.amount} [{self.status}]>"
