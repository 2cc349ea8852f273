"""
Lead intake: identifier generation, deduplication, single and bulk creation,
and assignment to Admission members.
"""

import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from init_db import db
from models.lead_model import Lead, LEAD_SOURCES, DEFAULT_LEAD_SOURCE
from models.lead_sequence_model import LeadSequence
from models.user_model import User
from utils.csv_processor import CSVProcessor
from utils.errors import (
    ValidationError, NotFoundError, ForbiddenError, InvalidStateError, DuplicateLeadError
)
from utils.lead_transitions import ASSIGNED
from utils.roles import Role, has_permission
from utils.timezone_helper import utc_now, utc_to_local
from utils.validators import text_field

logger = logging.getLogger(__name__)

BULK_DEFAULT_SOURCE = "Others"


def _norm_phone(p):
    return "".join(text_field(p, "phone").split()).replace("-", "") or None


def _norm_email(e):
    return text_field(e, "email").lower() or None


def _to_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def generate_lead_id(now=None):
    """
    Next LEAD-<year>-<seq> identifier for the year of `now` (local office time)

    Must run inside the transaction that inserts the lead so that an aborted
    insert gives the number back.
    """
    year = utc_to_local(now or utc_now()).year
    seq = LeadSequence.next_value(year)
    prefix = current_app.config.get("LEAD_ID_PREFIX", "LEAD")
    pad = current_app.config.get("LEAD_ID_PAD", 4)
    return f"{prefix}-{year}-{seq:0{pad}d}"


def find_recent_duplicate(phone, email, now=None):
    """
    Return a lead created inside the dedupe window sharing the phone or email

    Only non-empty values take part in the match, so two leads without a phone
    are never considered duplicates of each other.
    """
    clauses = []
    if phone:
        clauses.append(Lead.phone == phone)
    if email:
        clauses.append(Lead.email == email)
    if not clauses:
        return None

    window_days = current_app.config.get("LEAD_DEDUPE_WINDOW_DAYS", 180)
    since = (now or utc_now()) - timedelta(days=window_days)

    return (
        Lead.query
        .filter(Lead.created_at >= since, or_(*clauses))
        .order_by(Lead.created_at.desc())
        .first()
    )


def check_duplicate(phone, email):
    """Pre-check used by the entry form before submitting a lead"""
    phone, email = _norm_phone(phone), _norm_email(email)
    if not phone and not email:
        raise ValidationError("Provide phone or email")
    return find_recent_duplicate(phone, email)


def _resolve_assignee(user_id):
    """Load an assignee and check that it is an Admission member"""
    pk = _to_int(user_id)
    user = db.session.get(User, pk) if pk is not None else None
    if not user or user.is_deleted:
        raise NotFoundError("Assignee not found")
    if not user.has_role(Role.ADMISSION):
        raise ForbiddenError("Assignee must be Admission member")
    return user


def _build_lead(actor, name, phone, email, interested_course, source, now, assignee=None):
    lead = Lead(
        lead_id=generate_lead_id(now),
        name=name,
        phone=phone,
        email=email,
        interested_course=interested_course or "",
        source=source,
        status=ASSIGNED,
        assigned_by_user_id=actor.id,
        assigned_to_user_id=assignee.id if assignee else None,
        created_at=now,
        updated_at=now,
    )
    db.session.add(lead)
    return lead


def create_lead(actor, data):
    """
    Create a single lead (Digital Marketing)

    Raises:
        ValidationError: name missing or unknown source
        DuplicateLeadError: same phone/email inside the dedupe window
        NotFoundError / ForbiddenError: bad optional assignee
    """
    if not has_permission(actor.role, "lead.create"):
        raise ForbiddenError("Not allowed")

    name = text_field(data.get("name"), "name")
    if not name:
        raise ValidationError("Name required")

    source = text_field(data.get("source"), "source") or DEFAULT_LEAD_SOURCE
    if source not in LEAD_SOURCES:
        raise ValidationError(f"Source must be one of: {', '.join(LEAD_SOURCES)}")

    phone = _norm_phone(data.get("phone"))
    email = _norm_email(data.get("email"))
    interested_course = text_field(data.get("interestedCourse"), "interestedCourse")
    now = utc_now()

    if find_recent_duplicate(phone, email, now):
        raise DuplicateLeadError("Duplicate phone/email in recent leads")

    assignee = None
    if data.get("assignedTo"):
        assignee = _resolve_assignee(data.get("assignedTo"))

    lead = _build_lead(
        actor, name, phone, email,
        interested_course, source, now, assignee
    )
    db.session.commit()

    logger.info(f"Lead {lead.lead_id} created by user {actor.id}")
    return lead


def import_leads_csv(actor, csv_text):
    """
    Bulk create leads from CSV text with header Name,Phone,Email,InterestedCourse,Source

    Best effort per row: each created lead is committed on its own, so a later
    failure never undoes earlier rows.

    Returns:
        dict: {"created": int, "skipped": int}
    """
    if not has_permission(actor.role, "lead.bulk_create"):
        raise ForbiddenError("Not allowed")

    rows = CSVProcessor.read_lead_rows(csv_text)

    created, skipped = 0, 0
    for line_no, row in enumerate(rows, start=2):
        name = row["Name"]
        if not name:
            skipped += 1
            continue

        phone = _norm_phone(row["Phone"])
        email = _norm_email(row["Email"])
        source = row["Source"] if row["Source"] in LEAD_SOURCES else BULK_DEFAULT_SOURCE
        now = utc_now()

        try:
            if find_recent_duplicate(phone, email, now):
                skipped += 1
                continue

            _build_lead(actor, name, phone, email, row["InterestedCourse"], source, now)
            db.session.commit()
            created += 1
        except SQLAlchemyError as e:
            db.session.rollback()
            skipped += 1
            logger.warning(f"Bulk lead import: row {line_no} failed: {e}")

    logger.info(f"Bulk lead import by user {actor.id}: created={created} skipped={skipped}")
    return {"created": created, "skipped": skipped}


def assign_lead(actor, lead_pk, assignee_id):
    """
    Assign (or reassign) a lead to an Admission member

    The lead goes back to Assigned so the new owner starts the pipeline;
    admitted or rejected leads keep their owner.
    """
    if not has_permission(actor.role, "lead.assign"):
        raise ForbiddenError("Not allowed")
    if not assignee_id:
        raise ValidationError("assignedTo required")

    pk = _to_int(lead_pk)
    lead = db.session.get(Lead, pk) if pk is not None else None
    if not lead:
        raise NotFoundError("Lead not found")

    assignee = _resolve_assignee(assignee_id)

    if lead.is_terminal:
        raise InvalidStateError(f"Cannot reassign a lead that is {lead.status}")

    previous = lead.assigned_to_user_id
    lead.assigned_to_user_id = assignee.id
    lead.status = ASSIGNED
    db.session.commit()

    logger.info(f"Lead {lead.lead_id} assigned to user {assignee.id} (was {previous}) by user {actor.id}")
    return lead


def list_leads(status=None):
    """All leads, newest first, optionally filtered by status"""
    query = Lead.query
    if status:
        query = query.filter(Lead.status == status)
    return query.order_by(Lead.created_at.desc(), Lead.id.desc()).all()
