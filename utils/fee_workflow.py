"""
Admission fee workflow: submission by the lead's Admission owner, and the
Accountant decision that books income.
"""

import logging

from sqlalchemy.exc import IntegrityError

from init_db import db
from models.admission_fee_model import (
    AdmissionFee, PAYMENT_METHODS, FEE_PENDING, FEE_APPROVED, FEE_REJECTED
)
from models.income_model import Income, REF_ADMISSION_FEE, ADMISSION_FEE_SOURCE
from models.lead_model import Lead
from utils.errors import ValidationError, NotFoundError, ForbiddenError, InvalidStateError
from utils.lead_transitions import ADMITTED
from utils.roles import Role
from utils.timezone_helper import utc_now
from utils.validators import text_field, parse_amount, parse_required_date

logger = logging.getLogger(__name__)

REQUIRED_FEE_FIELDS = ("leadId", "courseName", "amount", "method", "paymentDate")


def _missing(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _find_lead(ref):
    """Accept either the store id or the LEAD-YYYY-NNNN identifier"""
    if isinstance(ref, str) and not ref.strip().isdigit():
        return Lead.query.filter_by(lead_id=ref.strip()).first()
    try:
        return db.session.get(Lead, int(ref))
    except (TypeError, ValueError):
        return None


def submit_fee(actor, data):
    """
    Record a fee collected from an admitted lead

    Only the Admission member who owns the lead may submit, and only once
    the lead is Admitted. The fee starts Pending; the lead is not modified.
    """
    if actor.role != Role.ADMISSION:
        raise ForbiddenError("Admission only")

    if any(_missing(data.get(field)) for field in REQUIRED_FEE_FIELDS):
        raise ValidationError("Missing required fields")

    amount = parse_amount(data.get("amount"))
    method = text_field(data.get("method"), "method")
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"method must be one of: {', '.join(PAYMENT_METHODS)}")
    payment_date = parse_required_date(data.get("paymentDate"), "paymentDate")
    course_name = text_field(data.get("courseName"), "courseName")
    note = text_field(data.get("note"), "note")

    lead = _find_lead(data.get("leadId"))
    if not lead:
        raise NotFoundError("Lead not found")

    if str(lead.assigned_to_user_id) != str(actor.id):
        raise ForbiddenError("Cannot submit fee for unassigned lead")
    if lead.status != ADMITTED:
        raise InvalidStateError("Lead must be Admitted")

    fee = AdmissionFee(
        lead_id=lead.id,
        course_name=course_name,
        amount=amount,
        method=method,
        payment_date=payment_date,
        note=note,
        status=FEE_PENDING,
        submitted_by_user_id=actor.id,
    )
    db.session.add(fee)
    db.session.commit()

    logger.info(f"Fee {fee.id} ({amount} via {method}) submitted for lead {lead.lead_id} by user {actor.id}")
    return fee


def _get_fee(fee_pk):
    try:
        fee = db.session.get(AdmissionFee, int(fee_pk))
    except (TypeError, ValueError):
        fee = None
    if not fee:
        raise NotFoundError("Fee not found")
    return fee


def book_fee_income(fee, actor):
    """
    Insert the income row for an approved fee unless one already exists

    The unique (ref_type, ref_id) constraint backs the existence check, so a
    concurrent approval that slips past the check loses at insert time.

    Returns:
        tuple: (Income, created)
    """
    existing = Income.for_fee(fee.id)
    if existing:
        return existing, False

    note = f"{fee.lead.lead_id if fee.lead else ''} {fee.course_name or ''}".strip()
    try:
        with db.session.begin_nested():
            income = Income(
                date=fee.payment_date,
                source=ADMISSION_FEE_SOURCE,
                amount=fee.amount,
                ref_type=REF_ADMISSION_FEE,
                ref_id=fee.id,
                added_by_user_id=actor.id,
                note=note,
            )
            db.session.add(income)
    except IntegrityError:
        logger.info(f"Income for fee {fee.id} was booked concurrently")
        return Income.for_fee(fee.id), False

    return income, True


def approve_fee(actor, fee_pk):
    """
    Approve a fee and recognize its income exactly once

    Approving an approved fee is safe: the status stays Approved and the
    existing income row is reused. Rejected fees cannot be approved.
    """
    fee = _get_fee(fee_pk)
    if fee.status == FEE_REJECTED:
        raise InvalidStateError("Rejected fee cannot be approved")

    if fee.status != FEE_APPROVED:
        fee.status = FEE_APPROVED
        fee.decided_by_user_id = actor.id
        fee.decided_at = utc_now()

    income, created = book_fee_income(fee, actor)
    db.session.commit()

    if created:
        logger.info(f"Fee {fee.id} approved by user {actor.id}; income {income.id} booked ({fee.amount})")
    else:
        logger.info(f"Fee {fee.id} approved by user {actor.id}; income {income.id} already booked")
    return fee


def reject_fee(actor, fee_pk):
    """
    Reject a pending fee; never books income

    Rejecting a rejected fee is a no-op. Approved fees cannot be rejected.
    """
    fee = _get_fee(fee_pk)
    if fee.status == FEE_APPROVED:
        raise InvalidStateError("Approved fee cannot be rejected")

    if fee.status != FEE_REJECTED:
        fee.status = FEE_REJECTED
        fee.decided_by_user_id = actor.id
        fee.decided_at = utc_now()
        db.session.commit()
        logger.info(f"Fee {fee.id} rejected by user {actor.id}")
    return fee


def list_fees(actor=None, status=None):
    """
    Fees newest first; Admission members only see the fees they submitted
    """
    query = AdmissionFee.query
    if actor is not None and actor.role == Role.ADMISSION:
        query = query.filter(AdmissionFee.submitted_by_user_id == actor.id)
    if status:
        query = query.filter(AdmissionFee.status == status)
    return query.order_by(AdmissionFee.created_at.desc(), AdmissionFee.id.desc()).all()
