"""Custom exception hierarchy for reqcheck."""

from __future__ import annotations


class ReqCheckError(Exception):
    """Base exception for all reqcheck errors."""


class InvalidRequestError(ReqCheckError):
    """Raised when an analysis request fails validation before streaming."""


class ConfigurationError(ReqCheckError):
    """Raised when a required credential or setting is absent."""


class TransportError(ReqCheckError):
    """Raised when the completion stream fails mid-flight."""


class ParseFailureError(ReqCheckError):
    """Raised when the finished stream cannot be parsed as a JSON object."""


class SchemaViolationError(ReqCheckError):
    """Raised when a parsed report violates the report schema."""


class StreamClosedError(ReqCheckError):
    """Raised when a fragment is appended to a closed chunk sequence."""


class MalformedJSONError(ReqCheckError):
    """Raised by the permissive parser on input no continuation can repair."""
