# File: markets/errors.py
"""Failure taxonomy shared by the form, the gateways and the API layer.

Every error is scoped to the single user action that raised it; none of them
is fatal to the process.
"""
from __future__ import annotations


class ValidationError(Exception):
    """User-correctable problem with a draft listing."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationError):
            return NotImplemented
        return self.code == other.code

    def __hash__(self) -> int:
        return hash(self.code)

    def __repr__(self) -> str:
        return f"ValidationError({self.code!r})"


class GeocodeFailure(Exception):
    """Geocoding request failed. Non-critical: callers log it and move on."""


class StoreError(Exception):
    """The listing store rejected or could not complete a request."""


class SubmissionFailure(Exception):
    """Creating a listing failed; the draft is preserved for a retry."""


class DeletionFailure(Exception):
    """Deleting a listing failed; the local list is left unchanged."""


class FormBusy(Exception):
    """A submission is already in flight for this form."""


class AuthError(Exception):
    """The identity token is missing, expired or not valid."""
