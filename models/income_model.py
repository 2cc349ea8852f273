from init_db import db
from sqlalchemy import Enum, ForeignKey, UniqueConstraint
from utils.timezone_helper import utc_now, isoformat_utc

REF_ADMISSION_FEE = "AdmissionFee"
REF_MANUAL = "Manual"
ADMISSION_FEE_SOURCE = "Admission Fee"


class Income(db.Model):
    """
    Income ledger entry

    Rows booked from an approved admission fee carry ref_type='AdmissionFee'
    and the fee id in ref_id. The unique (ref_type, ref_id) pair caps those at
    one row per fee; manual rows have a NULL ref_id, which never collides.
    """
    __tablename__ = "incomes"
    __table_args__ = (
        UniqueConstraint("ref_type", "ref_id", name="uq_incomes_ref"),
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    source = db.Column(db.String(120), nullable=False)  # e.g., "Admission Fee", "Other"
    amount = db.Column(db.Numeric(precision=12, scale=2), nullable=False)
    ref_type = db.Column(Enum(REF_ADMISSION_FEE, REF_MANUAL, name="income_ref_type"), nullable=False, default=REF_MANUAL)
    ref_id = db.Column(db.Integer, nullable=True)
    added_by_user_id = db.Column(db.Integer, ForeignKey("users.id"), nullable=False)
    note = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    added_by = db.relationship('User')

    @classmethod
    def for_fee(cls, fee_id):
        return cls.query.filter_by(ref_type=REF_ADMISSION_FEE, ref_id=fee_id).first()

    def to_dict(self):
        return {
            "id": self.id,
            "date": isoformat_utc(self.date),
            "source": self.source,
            "amount": float(self.amount),
            "refType": self.ref_type,
            "refId": self.ref_id,
            "addedBy": self.added_by.to_public_dict() if self.added_by else None,
            "note": self.note or "",
        }

    def __repr__(self):
        return f"<Income {self.id}: {self.amount} ({self.ref_type})>"
