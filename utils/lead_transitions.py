"""
Admission pipeline transition table

Pure lookups only: nothing here touches the database, so the legality rules
can be checked in isolation from the side effects in utils.lead_lifecycle.

    Assigned     -> Counseling
    Counseling   -> Admitted | In Follow Up | Not Admitted
    In Follow Up -> Admitted | Not Admitted
    In Follow Up -> In Follow Up   (only to log another follow-up note)
"""

ASSIGNED = "Assigned"
COUNSELING = "Counseling"
IN_FOLLOW_UP = "In Follow Up"
ADMITTED = "Admitted"
NOT_ADMITTED = "Not Admitted"
INTERESTED = "Interested"  # legacy value, never produced by the pipeline

LEAD_STATUSES = (ASSIGNED, COUNSELING, IN_FOLLOW_UP, ADMITTED, NOT_ADMITTED, INTERESTED)

# Statuses a transition request may target
TARGET_STATUSES = (COUNSELING, ADMITTED, IN_FOLLOW_UP, NOT_ADMITTED)

TERMINAL_STATUSES = frozenset({ADMITTED, NOT_ADMITTED})

TRANSITIONS = {
    ASSIGNED: frozenset({COUNSELING}),
    COUNSELING: frozenset({ADMITTED, IN_FOLLOW_UP, NOT_ADMITTED}),
    IN_FOLLOW_UP: frozenset({ADMITTED, NOT_ADMITTED}),
}


def is_target_status(status):
    return status in TARGET_STATUSES


def is_follow_up_log(from_status, to_status, notes):
    """Repeat In Follow Up with a non-empty note: log only, no status change"""
    return (
        from_status == IN_FOLLOW_UP
        and to_status == IN_FOLLOW_UP
        and isinstance(notes, str)
        and bool(notes.strip())
    )


def is_allowed(from_status, to_status, notes=None):
    """
    Decide whether a lead in `from_status` may move to `to_status`

    Returns:
        bool: True for a pair in TRANSITIONS or the follow-up logging exception
    """
    if to_status in TRANSITIONS.get(from_status, ()):
        return True
    return is_follow_up_log(from_status, to_status, notes)


def allowed_targets(from_status):
    """Targets reachable from a status, for UI hints"""
    return sorted(TRANSITIONS.get(from_status, ()))
