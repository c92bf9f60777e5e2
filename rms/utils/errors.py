"""Standardised API error responses.

Usage
-----
    from rms.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Assessment id=assess-001 not found")
    return api_error(E.VALIDATION_REQUIRED, "epa_id is required",
                     details={"epa_id": "required"})
"""

from __future__ import annotations

from flask import jsonify


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants. ``ERR_`` prefix throughout."""

    # Validation – HTTP 422 (400 for an unreadable body)
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    BAD_REQUEST = "ERR_BAD_REQUEST"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"
    METHOD_NOT_ALLOWED = "ERR_METHOD_NOT_ALLOWED"

    # Server – HTTP 5xx
    STORE_UNAVAILABLE = "ERR_STORE_UNAVAILABLE"
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 422,
    E.VALIDATION_INVALID: 422,
    E.BAD_REQUEST: 400,
    E.NOT_FOUND: 404,
    E.METHOD_NOT_ALLOWED: 405,
    E.STORE_UNAVAILABLE: 503,
    E.INTERNAL: 500,
}


def validation_code(details: dict | None) -> str:
    """Pick REQUIRED when every failing field is merely missing, else INVALID."""
    if details and all(v == "required" for v in details.values()):
        return E.VALIDATION_REQUIRED
    return E.VALIDATION_INVALID


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for developers / UI.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Field-level breakdown of validation failures.

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status
