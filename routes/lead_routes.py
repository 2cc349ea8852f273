# lead_routes.py - lead intake for the Digital Marketing team

from flask import Blueprint, request, jsonify, g

from utils.auth import role_required
from utils.csv_processor import CSVProcessor
from utils.errors import ValidationError
from utils.lead_intake import (
    create_lead, import_leads_csv, check_duplicate, assign_lead, list_leads
)
from utils.lead_transitions import LEAD_STATUSES

lead_bp = Blueprint("leads", __name__, url_prefix="/leads")

# ==============================================================================
# Helpers
# ==============================================================================

def _json_body():
    """Request body as a dict; an empty or non-JSON body counts as {}"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _status_filter():
    status = (request.args.get("status") or "").strip()
    if status and status not in LEAD_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(LEAD_STATUSES)}")
    return status or None

# ==============================================================================
# Intake
# ==============================================================================

@lead_bp.route("", methods=["POST"])
@role_required("lead.create")
def create():
    lead = create_lead(g.current_user, _json_body())
    return jsonify({"lead": lead.to_dict()}), 201


@lead_bp.route("/bulk", methods=["POST"])
@role_required("lead.bulk_create")
def bulk_create():
    """Accept either {"csv": "<text>"} or a multipart upload named `file`"""
    upload = request.files.get("file")
    if upload is not None and upload.filename:
        csv_text = CSVProcessor.decode_upload(upload)
    else:
        csv_text = _json_body().get("csv")

    if not isinstance(csv_text, str) or not csv_text.strip():
        raise ValidationError("csv string required")

    result = import_leads_csv(g.current_user, csv_text)
    return jsonify({"ok": True, **result})


@lead_bp.route("/dedupe-check", methods=["GET"])
@role_required("lead.create")
def dedupe_check():
    existing = check_duplicate(request.args.get("phone"), request.args.get("email"))
    return jsonify({
        "hasDuplicate": existing is not None,
        "lead": existing.to_summary_dict() if existing else None,
    })

# ==============================================================================
# Listing & assignment
# ==============================================================================

@lead_bp.route("", methods=["GET"])
@role_required("lead.list")
def index():
    leads = list_leads(_status_filter())
    return jsonify({"leads": [lead.to_dict() for lead in leads]})


@lead_bp.route("/<int:lead_id>/assign", methods=["POST", "PATCH"])
@role_required("lead.assign")
def assign(lead_id):
    lead = assign_lead(g.current_user, lead_id, _json_body().get("assignedTo"))
    return jsonify({"lead": lead.to_dict()})
