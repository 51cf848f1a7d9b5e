"""
Utilities Package

Shared helper functions used across the API blueprints.
"""

from app.utils.helpers import (
    get_json_body,
    ensure_valid,
    pdf_response,
)

__all__ = [
    'get_json_body',
    'ensure_valid',
    'pdf_response',
]
