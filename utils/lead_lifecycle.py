"""
Admission pipeline orchestration

transition_lead() validates a request completely (status, lead, ownership,
legality, references) before touching the lead, then runs the side effects
registered for the target status and writes the new status in the same
transaction.
"""

import logging
from collections import namedtuple

from init_db import db
from models.batch_model import Batch
from models.course_model import Course
from models.lead_model import Lead
from utils.errors import (
    InvalidStatusError, NotFoundError, ForbiddenError, BadTransitionError, ValidationError
)
from utils.lead_transitions import (
    COUNSELING, ADMITTED, IN_FOLLOW_UP, NOT_ADMITTED, is_target_status, is_allowed
)
from utils.roles import Role, has_permission, can_act_on_lead
from utils.timezone_helper import utc_now, parse_iso_datetime
from utils.validators import text_field

logger = logging.getLogger(__name__)

NOT_ADMITTED_NOTE_PREFIX = "Not Admitted: "

# Everything a side effect needs, resolved before any write happens
TransitionContext = namedtuple(
    "TransitionContext",
    ["actor", "notes", "course", "batch", "next_follow_up_at", "now"]
)


def _to_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _enter_counseling(lead, ctx):
    lead.mark_counseling_started(ctx.now)


def _enter_admitted(lead, ctx):
    lead.mark_admitted(ctx.now)

    if ctx.course is not None:
        lead.admitted_to_course_id = ctx.course.id
        lead.interested_course = ctx.course.course_name

    if ctx.batch is not None:
        lead.admitted_to_batch_id = ctx.batch.id
        if ctx.batch.admit(lead, admitted_at=ctx.now) is None:
            logger.info(f"Lead {lead.lead_id} already on batch {ctx.batch.id} roster")


def _log_follow_up(lead, ctx):
    if ctx.notes:
        lead.add_followup(ctx.notes, ctx.actor.id, ctx.now)
    if ctx.next_follow_up_at is not None:
        lead.next_follow_up_at = ctx.next_follow_up_at


def _enter_not_admitted(lead, ctx):
    if ctx.notes:
        lead.add_followup(NOT_ADMITTED_NOTE_PREFIX + ctx.notes, ctx.actor.id, ctx.now)


SIDE_EFFECTS = {
    COUNSELING: _enter_counseling,
    ADMITTED: _enter_admitted,
    IN_FOLLOW_UP: _log_follow_up,
    NOT_ADMITTED: _enter_not_admitted,
}


def _authorize(actor, lead):
    if not has_permission(actor.role, "pipeline.transition"):
        raise ForbiddenError("Not allowed")
    if not can_act_on_lead(actor.role, actor.id, lead):
        raise ForbiddenError("Cannot update unassigned lead")


def _build_context(actor, target_status, notes, course_id, batch_id, next_follow_up_date):
    course = batch = next_follow_up_at = None

    if target_status == ADMITTED:
        # Course name lookup is best effort; an unknown course is simply not linked
        if course_id not in (None, ""):
            pk = _to_int(course_id)
            course = db.session.get(Course, pk) if pk is not None else None
            if course is None:
                logger.warning(f"Admission course {course_id!r} not found; interested course left as is")

        if batch_id not in (None, ""):
            pk = _to_int(batch_id)
            batch = db.session.get(Batch, pk) if pk is not None else None
            if batch is None:
                raise NotFoundError("Batch not found")

    if target_status == IN_FOLLOW_UP and next_follow_up_date:
        try:
            next_follow_up_at = parse_iso_datetime(next_follow_up_date)
        except (TypeError, ValueError):
            raise ValidationError("nextFollowUpDate must be an ISO date")

    return TransitionContext(
        actor=actor,
        notes=notes,
        course=course,
        batch=batch,
        next_follow_up_at=next_follow_up_at,
        now=utc_now(),
    )


def transition_lead(actor, lead_pk, target_status, notes=None, course_id=None,
                    batch_id=None, next_follow_up_date=None):
    """
    Move a lead through the Admission pipeline

    Args:
        actor: CurrentUser performing the change
        lead_pk: store id of the lead
        target_status: one of Counseling, Admitted, In Follow Up, Not Admitted
        notes: follow-up text (In Follow Up / Not Admitted)
        course_id, batch_id: admission targets (Admitted only)
        next_follow_up_date: ISO date for the next follow-up (In Follow Up only)

    Returns:
        Lead: the updated lead

    Raises:
        InvalidStatusError, NotFoundError, ForbiddenError, BadTransitionError,
        ValidationError; nothing is written when any of them is raised.
    """
    if not is_target_status(target_status):
        raise InvalidStatusError("Invalid target status")
    notes = text_field(notes, "notes")

    pk = _to_int(lead_pk)
    lead = db.session.get(Lead, pk) if pk is not None else None
    if not lead:
        raise NotFoundError("Lead not found")

    _authorize(actor, lead)

    from_status = lead.status
    if not is_allowed(from_status, target_status, notes):
        raise BadTransitionError(f"Cannot move {from_status} -> {target_status}")

    ctx = _build_context(actor, target_status, notes, course_id, batch_id, next_follow_up_date)

    SIDE_EFFECTS[target_status](lead, ctx)
    lead.status = target_status
    db.session.commit()

    if from_status == target_status:
        logger.info(f"Lead {lead.lead_id}: follow-up logged by user {actor.id}")
    else:
        logger.info(f"Lead {lead.lead_id}: {from_status} -> {target_status} by user {actor.id}")
    return lead


def list_pipeline_leads(actor, status=None):
    """
    Leads visible in the Admission pipeline

    Admission members see the leads assigned to them; Admin and SuperAdmin see all.
    """
    if not has_permission(actor.role, "pipeline.list"):
        raise ForbiddenError("Not allowed")

    query = Lead.query
    if actor.role == Role.ADMISSION:
        query = query.filter(Lead.assigned_to_user_id == _to_int(actor.id))
    if status:
        query = query.filter(Lead.status == status)
    return query.order_by(Lead.created_at.desc(), Lead.id.desc()).all()
