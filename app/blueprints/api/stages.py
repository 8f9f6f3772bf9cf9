"""Stage parameter table (read-only)."""

from __future__ import annotations

from flask import Blueprint, Response

from app.blueprints.api._common import success
from app.domain.stage_parameters import STAGE_PARAMETERS
from app.services.application.threshold_evaluator import SEVERITY_MARGINS
from app.utils.http import safe_route

stages_api = Blueprint("stages_api", __name__)


@stages_api.get("")
@safe_route("Failed to get stage parameters")
def list_stages() -> Response:
    return success(
        {
            "stages": [params.to_dict() for params in STAGE_PARAMETERS.values()],
            "critical_margins": {kind.value: margin for kind, margin in SEVERITY_MARGINS.items()},
        }
    )
