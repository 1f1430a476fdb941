"""
Input sanitization for write payloads.

String values are entity-escaped (& < > " ') before validation and storage,
so nothing stored can be interpreted as markup by a client that renders it.
Read paths are never sanitized.
"""
from typing import Any

from django.utils.html import escape
from ninja import Schema
from pydantic import field_validator


def sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        return escape(value)
    return value


def sanitize_payload(payload: dict) -> dict:
    """Escape every top-level string value of ``payload`` in place."""
    for key, value in payload.items():
        payload[key] = sanitize_value(value)
    return payload


class SanitizedSchema(Schema):
    """
    Base for ninja request schemas whose string fields must be escaped.

    Runs per field before type validation, so length limits apply to the
    escaped text. Schema's own root validator wraps the input before any
    model-level validator sees it, hence the field hook.
    """

    @field_validator("*", mode="before")
    @classmethod
    def _sanitize_strings(cls, value: Any) -> Any:
        return sanitize_value(value)
