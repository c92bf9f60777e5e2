"""
Resident blueprint — roster, progress and the acknowledgment inbox.

Endpoints:
    GET /api/v1/residents                          — residents by ?status (default active), senior first
    GET /api/v1/residents/<id>/progress            — per-EPA progress + summary stats
    GET /api/v1/residents/<id>/unacknowledged      — unacknowledged assessments, newest first
"""

import logging

from flask import Blueprint, jsonify, request

from rms.blueprints import get_store, register_error_handlers
from rms.models.program import RESIDENT_STATUSES
from rms.services import reference_service
from rms.services.assessment_service import AssessmentService
from rms.services.progress_service import ProgressAggregator
from rms.utils.errors import E, api_error

logger = logging.getLogger(__name__)

resident_bp = Blueprint("residents", __name__, url_prefix="/api/v1/residents")
register_error_handlers(resident_bp)


@resident_bp.route("", methods=["GET"])
def list_residents():
    status = request.args.get("status", "active")
    if status not in RESIDENT_STATUSES:
        return api_error(E.VALIDATION_INVALID, f"Unknown resident status: {status}",
                         details={"status": f"must be one of: {', '.join(sorted(RESIDENT_STATUSES))}"})
    return jsonify(reference_service.list_residents(status))


@resident_bp.route("/<resident_id>/progress", methods=["GET"])
def get_progress(resident_id):
    result = ProgressAggregator(get_store()).get_progress(resident_id)
    body = result.to_dict()
    body["resident"] = reference_service.resident_summary(result.resident)
    return jsonify(body)


@resident_bp.route("/<resident_id>/unacknowledged", methods=["GET"])
def list_unacknowledged(resident_id):
    records = AssessmentService(get_store()).list_unacknowledged(resident_id)
    return jsonify(reference_service.describe_assessments(records))
