"""
Helper functions shared by the API blueprints.
"""

import io

from flask import request, send_file

from services.errors import ServiceError


def get_json_body():
    """
    Parsed JSON object from the current request.

    Raises:
        ServiceError: body missing or not a JSON object
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ServiceError("Request body must be a JSON object")
    return data


def ensure_valid(result):
    """
    Raise on a failed ``(is_valid, error_message)`` validator result.

    Args:
        result: Tuple returned by one of the validators.validate_* functions
    """
    is_valid, error = result[0], result[1]
    if not is_valid:
        raise ServiceError(error)


def pdf_response(content, filename):
    """Send PDF bytes as a download."""
    return send_file(
        io.BytesIO(content),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename
    )
