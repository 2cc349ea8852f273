from init_db import db
from sqlalchemy import Enum, ForeignKey, Index, event
from utils.timezone_helper import utc_now, isoformat_utc
from utils.lead_transitions import LEAD_STATUSES, TERMINAL_STATUSES, ASSIGNED

LEAD_SOURCES = ("Meta Lead", "LinkedIn Lead", "Manually Generated Lead", "Others")
DEFAULT_LEAD_SOURCE = "Manually Generated Lead"


class Lead(db.Model):
    __tablename__ = "leads"

    id = db.Column(db.Integer, primary_key=True)
    lead_id = db.Column(db.String(32), unique=True, nullable=False, index=True)  # e.g., LEAD-2025-0001

    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(20), index=True)
    email = db.Column(db.String(255), index=True)  # stored lower-cased
    interested_course = db.Column(db.String(200), default="")
    source = db.Column(Enum(*LEAD_SOURCES, name="lead_source"), nullable=False, default=DEFAULT_LEAD_SOURCE)

    # Pipeline status, see utils.lead_transitions for the state machine
    status = db.Column(Enum(*LEAD_STATUSES, name="lead_status"), nullable=False, index=True, default=ASSIGNED)

    assigned_to_user_id = db.Column(db.Integer, ForeignKey("users.id"), nullable=True, index=True)  # Admission member
    assigned_by_user_id = db.Column(db.Integer, ForeignKey("users.id"), nullable=True)  # Digital Marketing member

    # Set once, on first entry into the state
    counseling_at = db.Column(db.DateTime)
    admitted_at = db.Column(db.DateTime)

    admitted_to_course_id = db.Column(db.Integer, ForeignKey("courses.id"), nullable=True)
    admitted_to_batch_id = db.Column(db.Integer, ForeignKey("batches.id"), nullable=True)

    next_follow_up_at = db.Column(db.DateTime, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utc_now, index=True)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        Index("ix_leads_assigned_status", "assigned_to_user_id", "status"),
    )

    # Relationships
    assigned_to = db.relationship('User', foreign_keys=[assigned_to_user_id], backref='assigned_leads')
    assigned_by = db.relationship('User', foreign_keys=[assigned_by_user_id])
    admitted_to_course = db.relationship('Course')
    admitted_to_batch = db.relationship('Batch')
    followups = db.relationship(
        'LeadFollowUp',
        back_populates='lead',
        order_by='LeadFollowUp.id',
        cascade='all, delete-orphan'
    )

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def mark_counseling_started(self, at):
        """Record the first entry into Counseling; later calls keep the original time"""
        if self.counseling_at is None:
            self.counseling_at = at
        return self.counseling_at

    def mark_admitted(self, at):
        """Record the first entry into Admitted; later calls keep the original time"""
        if self.admitted_at is None:
            self.admitted_at = at
        return self.admitted_at

    def add_followup(self, note, by_user_id, at):
        """Append a follow-up entry; the history is never rewritten"""
        entry = LeadFollowUp(note=note, created_by_user_id=by_user_id, created_at=at)
        self.followups.append(entry)
        return entry

    def to_dict(self):
        """Convert Lead object to the JSON shape used by the API"""
        return {
            'id': self.id,
            'leadId': self.lead_id,
            'name': self.name,
            'phone': self.phone,
            'email': self.email,
            'interestedCourse': self.interested_course or '',
            'source': self.source,
            'status': self.status,
            'assignedTo': self.assigned_to.to_public_dict() if self.assigned_to else None,
            'assignedBy': self.assigned_by.to_public_dict() if self.assigned_by else None,
            'counselingAt': isoformat_utc(self.counseling_at),
            'admittedAt': isoformat_utc(self.admitted_at),
            'admittedToCourse': self.admitted_to_course_id,
            'admittedToBatch': self.admitted_to_batch_id,
            'followUps': [f.to_dict() for f in self.followups],
            'nextFollowUpDate': isoformat_utc(self.next_follow_up_at),
            'createdAt': isoformat_utc(self.created_at),
            'updatedAt': isoformat_utc(self.updated_at),
        }

    def to_summary_dict(self):
        """Short form embedded in fee records"""
        return {
            'id': self.id,
            'leadId': self.lead_id,
            'name': self.name,
            'phone': self.phone,
            'email': self.email,
            'status': self.status,
        }

    def __repr__(self):
        return f"<Lead {self.lead_id}: {self.name} [{self.status}]>"


class LeadFollowUp(db.Model):
    __tablename__ = "lead_followups"

    id = db.Column(db.Integer, primary_key=True)
    lead_id = db.Column(db.Integer, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    note = db.Column(db.Text, nullable=False)
    created_by_user_id = db.Column(db.Integer, ForeignKey("users.id"))
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    # Relationships
    lead = db.relationship('Lead', back_populates='followups')
    created_by = db.relationship('User')

    def to_dict(self):
        return {
            'note': self.note,
            'at': isoformat_utc(self.created_at),
            'by': self.created_by.to_public_dict() if self.created_by else None,
        }

    def __repr__(self):
        return f"<LeadFollowUp {self.id}: Lead {self.lead_id}>"


@event.listens_for(LeadFollowUp, "before_update")
def _reject_followup_update(mapper, connection, target):
    raise ValueError("Follow-up history is append-only")
