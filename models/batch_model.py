from init_db import db
from sqlalchemy import UniqueConstraint
from utils.timezone_helper import utc_now


class Batch(db.Model):
    __tablename__ = 'batches'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=True)

    # Batch Lifecycle Management
    status = db.Column(db.String(20), default='Active')  # Active, Completed, Archived
    created_at = db.Column(db.DateTime, default=utc_now)

    # Relationships
    course = db.relationship('Course', backref='batches')
    admitted_students = db.relationship(
        'BatchAdmission',
        back_populates='batch',
        order_by='BatchAdmission.id',
        cascade='all, delete-orphan'
    )

    def has_admitted(self, lead_id):
        """True when the roster already references this lead"""
        return any(entry.lead_id == lead_id for entry in self.admitted_students)

    def admit(self, lead, admitted_at=None):
        """
        Add a lead to the roster unless it is already there

        Returns:
            BatchAdmission or None: the new roster row, None when the lead was present
        """
        if self.has_admitted(lead.id):
            return None
        entry = BatchAdmission(lead_id=lead.id, admitted_at=admitted_at or utc_now())
        self.admitted_students.append(entry)
        return entry

    def __repr__(self):
        return f"<Batch {self.name}>"


class BatchAdmission(db.Model):
    """One admitted lead on a batch roster"""
    __tablename__ = 'batch_admissions'
    __table_args__ = (
        UniqueConstraint('batch_id', 'lead_id', name='uq_batch_admissions_batch_lead'),
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id', ondelete='CASCADE'), nullable=False, index=True)
    lead_id = db.Column(db.Integer, db.ForeignKey('leads.id'), nullable=False, index=True)
    admitted_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    batch = db.relationship('Batch', back_populates='admitted_students')
    lead = db.relationship('Lead')
