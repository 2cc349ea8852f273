"""
Error taxonomy and JSON error envelope for OfficeDesk

Services raise LeadFlowError subclasses; the handlers registered by
register_error_handlers() turn them into {"code": ..., "message": ...}
responses with the matching HTTP status.
"""

import logging
import uuid

from flask import jsonify, request, session
from werkzeug.exceptions import HTTPException

from init_db import db

logger = logging.getLogger(__name__)


class LeadFlowError(Exception):
    """Base class for every caller-visible failure"""

    code = "SERVER_ERROR"
    status = 500

    def __init__(self, message=None, code=None, status=None):
        super().__init__(message or self.code)
        self.message = message or self.code
        if code:
            self.code = code
        if status:
            self.status = status

    def to_dict(self):
        return {"code": self.code, "message": self.message}


class ValidationError(LeadFlowError):
    code = "VALIDATION_ERROR"
    status = 400


class UnauthenticatedError(LeadFlowError):
    code = "UNAUTHENTICATED"
    status = 401


class ForbiddenError(LeadFlowError):
    code = "FORBIDDEN"
    status = 403


class NotFoundError(LeadFlowError):
    code = "NOT_FOUND"
    status = 404


class InvalidStatusError(LeadFlowError):
    code = "INVALID_STATUS"
    status = 400


class InvalidStateError(LeadFlowError):
    code = "INVALID_STATE"
    status = 400


class BadTransitionError(LeadFlowError):
    code = "BAD_TRANSITION"
    status = 400


class DuplicateLeadError(LeadFlowError):
    code = "DUPLICATE"
    status = 409


def error_response(code, message, status):
    return jsonify({"code": code, "message": message}), status


def register_error_handlers(app):
    """Attach the JSON error envelope to the Flask app"""

    @app.errorhandler(LeadFlowError)
    def handle_lead_flow_error(error):
        db.session.rollback()
        if error.status == 403:
            logger.warning(
                f"Denied: user {session.get('user_id')} ({session.get('role')}) "
                f"on {request.method} {request.path}: {error.message}"
            )
        else:
            logger.info(f"{error.code} on {request.method} {request.path}: {error.message}")
        return error_response(error.code, error.message, error.status)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        db.session.rollback()
        code = {
            400: "VALIDATION_ERROR",
            401: "UNAUTHENTICATED",
            403: "FORBIDDEN",
            404: "NOT_FOUND",
            405: "VALIDATION_ERROR",
            413: "VALIDATION_ERROR",
        }.get(error.code, "SERVER_ERROR")
        return error_response(code, error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        # Short id the user can quote when reporting the problem
        error_id = str(uuid.uuid4())[:8].upper()
        logger.exception(
            f"Error ID {error_id}: {error} | User: {session.get('user_id')} | "
            f"Route: {request.endpoint}"
        )
        return error_response("SERVER_ERROR", f"Unexpected server error (ref {error_id})", 500)
