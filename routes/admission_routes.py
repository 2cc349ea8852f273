# admission_routes.py - Admission pipeline and fee submission

from flask import Blueprint, request, jsonify, g

from utils.auth import role_required
from utils.errors import ValidationError
from utils.fee_workflow import submit_fee, list_fees
from utils.lead_lifecycle import transition_lead, list_pipeline_leads
from utils.lead_transitions import LEAD_STATUSES

admission_bp = Blueprint("admission", __name__, url_prefix="/admission")


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

# ==============================================================================
# Pipeline
# ==============================================================================

@admission_bp.route("/leads", methods=["GET"])
@role_required("pipeline.list")
def leads():
    status = (request.args.get("status") or "").strip() or None
    if status and status not in LEAD_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(LEAD_STATUSES)}")

    rows = list_pipeline_leads(g.current_user, status)
    return jsonify({"leads": [lead.to_dict() for lead in rows]})


@admission_bp.route("/leads/<int:lead_id>/status", methods=["PATCH"])
@role_required("pipeline.transition")
def update_status(lead_id):
    """
    Body: {status, notes?, courseId?, batchId?, nextFollowUpDate?}
    """
    data = _json_body()
    lead = transition_lead(
        g.current_user,
        lead_id,
        data.get("status"),
        notes=data.get("notes"),
        course_id=data.get("courseId"),
        batch_id=data.get("batchId"),
        next_follow_up_date=data.get("nextFollowUpDate"),
    )
    return jsonify({"lead": lead.to_dict()})

# ==============================================================================
# Fees
# ==============================================================================

@admission_bp.route("/fees", methods=["POST"])
@role_required("fee.submit")
def create_fee():
    fee = submit_fee(g.current_user, _json_body())
    return jsonify({"fee": fee.to_dict()}), 201


@admission_bp.route("/fees", methods=["GET"])
@role_required("fee.list_own")
def fees():
    rows = list_fees(g.current_user)
    return jsonify({"fees": [fee.to_dict() for fee in rows]})
