# accounting_routes.py - fee decisions, income/expense ledger and summary

from flask import Blueprint, request, jsonify, g

from models.admission_fee_model import FEE_STATUSES
from utils.auth import role_required
from utils.errors import ValidationError
from utils.fee_workflow import approve_fee, reject_fee, list_fees
from utils.ledger import (
    add_manual_income, list_income, add_expense, list_expenses, delete_expense,
    ledger_summary
)

accounting_bp = Blueprint("accounting", __name__, url_prefix="/accounting")


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

# ==============================================================================
# Admission fees
# ==============================================================================

@accounting_bp.route("/fees", methods=["GET"])
@role_required("fee.list")
def fees():
    status = (request.args.get("status") or "").strip() or None
    if status and status not in FEE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(FEE_STATUSES)}")

    rows = list_fees(status=status)
    return jsonify({"fees": [fee.to_dict() for fee in rows]})


@accounting_bp.route("/fees/<int:fee_id>/approve", methods=["PATCH"])
@role_required("fee.decide")
def approve(fee_id):
    fee = approve_fee(g.current_user, fee_id)
    return jsonify({"fee": fee.to_dict()})


@accounting_bp.route("/fees/<int:fee_id>/reject", methods=["PATCH"])
@role_required("fee.decide")
def reject(fee_id):
    fee = reject_fee(g.current_user, fee_id)
    return jsonify({"fee": fee.to_dict()})

# ==============================================================================
# Income
# ==============================================================================

@accounting_bp.route("/income", methods=["GET"])
@role_required("ledger.view")
def income():
    return jsonify({"income": [row.to_dict() for row in list_income()]})


@accounting_bp.route("/income", methods=["POST"])
@role_required("ledger.write")
def create_income():
    row = add_manual_income(g.current_user, _json_body())
    return jsonify({"income": row.to_dict()}), 201

# ==============================================================================
# Expense
# ==============================================================================

@accounting_bp.route("/expense", methods=["GET"])
@role_required("ledger.view")
def expenses():
    return jsonify({"expenses": [row.to_dict() for row in list_expenses()]})


@accounting_bp.route("/expense", methods=["POST"])
@role_required("ledger.write")
def create_expense():
    row = add_expense(g.current_user, _json_body())
    return jsonify({"expense": row.to_dict()}), 201


@accounting_bp.route("/expense/<int:expense_id>", methods=["DELETE"])
@role_required("ledger.write")
def remove_expense(expense_id):
    delete_expense(g.current_user, expense_id)
    return jsonify({"ok": True})

# ==============================================================================
# Summary
# ==============================================================================

@accounting_bp.route("/summary", methods=["GET"])
@role_required("ledger.view")
def summary():
    return jsonify(ledger_summary(request.args.get("from"), request.args.get("to")))
