from datetime import datetime
from unittest.mock import patch

import pytest

from init_db import db
from models.batch_model import BatchAdmission
from models.lead_model import LeadFollowUp
from utils.errors import (
    InvalidStatusError, NotFoundError, ForbiddenError, BadTransitionError, ValidationError
)
from utils.lead_intake import create_lead
from utils.lead_lifecycle import transition_lead, list_pipeline_leads
from utils.lead_transitions import (
    ASSIGNED, COUNSELING, IN_FOLLOW_UP, ADMITTED, NOT_ADMITTED
)


@pytest.fixture
def owner(users, as_actor):
    return as_actor(users["admission"])


@pytest.fixture
def lead(users, as_actor):
    return create_lead(as_actor(users["dm"]), {
        "name": "Ayesha Rahman",
        "phone": "01711112222",
        "interestedCourse": "Web Design",
        "source": "Meta Lead",
        "assignedTo": users["admission"].id,
    })


def _clock(at):
    return patch("utils.lead_lifecycle.utc_now", return_value=at)


class TestValidationOrder:
    def test_unknown_target_status(self, owner, lead):
        with pytest.raises(InvalidStatusError) as exc:
            transition_lead(owner, lead.id, "Enrolled")
        assert exc.value.code == "INVALID_STATUS"

        # Assigned is a state but never a target
        with pytest.raises(InvalidStatusError):
            transition_lead(owner, lead.id, ASSIGNED)

    def test_status_checked_before_lead_lookup(self, owner):
        with pytest.raises(InvalidStatusError):
            transition_lead(owner, 9999, "Enrolled")

    def test_missing_lead(self, owner):
        with pytest.raises(NotFoundError):
            transition_lead(owner, 9999, COUNSELING)

    def test_illegal_move_is_reported_with_both_states(self, owner, lead):
        with pytest.raises(BadTransitionError) as exc:
            transition_lead(owner, lead.id, ADMITTED)

        assert exc.value.message == "Cannot move Assigned -> Admitted"
        assert lead.status == ASSIGNED

    def test_terminal_states_are_final(self, owner, lead):
        transition_lead(owner, lead.id, COUNSELING)
        transition_lead(owner, lead.id, NOT_ADMITTED, notes="Fee too high")

        for target in (COUNSELING, IN_FOLLOW_UP, ADMITTED, NOT_ADMITTED):
            with pytest.raises(BadTransitionError):
                transition_lead(owner, lead.id, target, notes="retry")


class TestOwnership:
    def test_other_admission_member_is_forbidden(self, users, as_actor, lead):
        with pytest.raises(ForbiddenError):
            transition_lead(as_actor(users["admission2"]), lead.id, COUNSELING)
        assert lead.status == ASSIGNED

    def test_unassigned_lead_is_forbidden_for_admission(self, users, as_actor):
        unassigned = create_lead(as_actor(users["dm"]), {"name": "Walk-in"})
        with pytest.raises(ForbiddenError):
            transition_lead(as_actor(users["admission"]), unassigned.id, COUNSELING)

    @pytest.mark.parametrize("role_key", ["admin", "superadmin"])
    def test_supervisors_act_on_any_lead(self, users, as_actor, lead, role_key):
        updated = transition_lead(as_actor(users[role_key]), lead.id, COUNSELING)
        assert updated.status == COUNSELING

    @pytest.mark.parametrize("role_key", ["dm", "accountant", "recruitment"])
    def test_other_roles_are_forbidden(self, users, as_actor, lead, role_key):
        with pytest.raises(ForbiddenError):
            transition_lead(as_actor(users[role_key]), lead.id, COUNSELING)


class TestTimestamps:
    def test_counseling_and_admission_times_are_set_once(self, owner, lead, course):
        t1, t2, t3 = datetime(2025, 8, 1, 5), datetime(2025, 8, 3, 5), datetime(2025, 8, 9, 5)

        with _clock(t1):
            transition_lead(owner, lead.id, COUNSELING)
        with _clock(t2):
            transition_lead(owner, lead.id, IN_FOLLOW_UP, notes="Call back after salary day")
        with _clock(t3):
            transition_lead(owner, lead.id, ADMITTED, course_id=course.id)

        assert lead.counseling_at == t1
        assert lead.admitted_at == t3

        # Later attempts fail and leave both stamps alone
        with _clock(datetime(2025, 9, 1)):
            with pytest.raises(BadTransitionError):
                transition_lead(owner, lead.id, COUNSELING)
            with pytest.raises(BadTransitionError):
                transition_lead(owner, lead.id, ADMITTED)

        db.session.refresh(lead)
        assert lead.counseling_at == t1
        assert lead.admitted_at == t3


class TestFollowUps:
    def test_repeated_follow_ups_append_in_order(self, owner, lead):
        transition_lead(owner, lead.id, COUNSELING)
        notes = ["Asked about weekend batch", "Will visit on Sunday", "Sent brochure"]
        for note in notes:
            transition_lead(owner, lead.id, IN_FOLLOW_UP, notes=note)

        assert lead.status == IN_FOLLOW_UP
        assert [f.note for f in lead.followups] == notes
        assert all(f.created_by_user_id == owner.id for f in lead.followups)

    def test_follow_up_history_is_append_only(self, owner, lead):
        transition_lead(owner, lead.id, COUNSELING)
        transition_lead(owner, lead.id, IN_FOLLOW_UP, notes="First call")

        entry = LeadFollowUp.query.filter_by(lead_id=lead.id).one()
        entry.note = "Rewritten"
        with pytest.raises(ValueError):
            db.session.commit()
        db.session.rollback()

        assert LeadFollowUp.query.filter_by(lead_id=lead.id).one().note == "First call"

    def test_repeat_without_note_is_rejected(self, owner, lead):
        transition_lead(owner, lead.id, COUNSELING)
        transition_lead(owner, lead.id, IN_FOLLOW_UP, notes="First call")

        with pytest.raises(BadTransitionError):
            transition_lead(owner, lead.id, IN_FOLLOW_UP, notes="  ")
        assert len(lead.followups) == 1

    def test_notes_must_be_text(self, owner, lead):
        transition_lead(owner, lead.id, COUNSELING)

        with pytest.raises(ValidationError):
            transition_lead(owner, lead.id, IN_FOLLOW_UP, notes=5)
        assert lead.status == COUNSELING
        assert lead.followups == []

    def test_next_follow_up_date(self, owner, lead):
        transition_lead(owner, lead.id, COUNSELING)
        transition_lead(owner, lead.id, IN_FOLLOW_UP, next_follow_up_date="2025-08-20")

        assert lead.next_follow_up_at == datetime(2025, 8, 20)
        assert lead.followups == []

    def test_bad_follow_up_date(self, owner, lead):
        transition_lead(owner, lead.id, COUNSELING)
        with pytest.raises(ValidationError):
            transition_lead(owner, lead.id, IN_FOLLOW_UP, notes="x", next_follow_up_date="next week")
        assert lead.status == COUNSELING

    def test_not_admitted_note_is_prefixed(self, owner, lead):
        transition_lead(owner, lead.id, COUNSELING)
        transition_lead(owner, lead.id, NOT_ADMITTED, notes="Moved abroad")

        assert lead.status == NOT_ADMITTED
        assert [f.note for f in lead.followups] == ["Not Admitted: Moved abroad"]


class TestAdmission:
    def test_course_and_batch_are_linked(self, owner, lead, course, batch):
        transition_lead(owner, lead.id, COUNSELING)
        transition_lead(owner, lead.id, ADMITTED, course_id=course.id, batch_id=batch.id)

        assert lead.admitted_to_course_id == course.id
        assert lead.interested_course == course.course_name
        assert lead.admitted_to_batch_id == batch.id
        assert [entry.lead_id for entry in batch.admitted_students] == [lead.id]

    def test_unknown_course_is_tolerated(self, owner, lead):
        transition_lead(owner, lead.id, COUNSELING)
        transition_lead(owner, lead.id, ADMITTED, course_id=4242)

        assert lead.status == ADMITTED
        assert lead.admitted_to_course_id is None
        assert lead.interested_course == "Web Design"

    def test_unknown_batch_writes_nothing(self, owner, lead):
        transition_lead(owner, lead.id, COUNSELING)

        with pytest.raises(NotFoundError):
            transition_lead(owner, lead.id, ADMITTED, batch_id=4242)
        db.session.rollback()

        db.session.refresh(lead)
        assert lead.status == COUNSELING
        assert lead.admitted_at is None

    def test_roster_holds_a_lead_once(self, owner, lead, batch):
        transition_lead(owner, lead.id, COUNSELING)
        transition_lead(owner, lead.id, ADMITTED, batch_id=batch.id)

        assert batch.admit(lead) is None
        assert BatchAdmission.query.filter_by(batch_id=batch.id, lead_id=lead.id).count() == 1


def test_pipeline_listing_is_scoped_to_owner(users, as_actor, lead):
    other = create_lead(as_actor(users["dm"]), {"name": "Tanvir", "assignedTo": users["admission2"].id})

    own = list_pipeline_leads(as_actor(users["admission"]))
    assert [l.id for l in own] == [lead.id]

    everyone = list_pipeline_leads(as_actor(users["admin"]))
    assert {l.id for l in everyone} == {lead.id, other.id}

    with pytest.raises(ForbiddenError):
        list_pipeline_leads(as_actor(users["dm"]))
