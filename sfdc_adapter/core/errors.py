"""
sfdc_adapter.core.errors - Error kinds raised by the adapter
============================================================

Every error raised by the adapter derives from SalesforceError so callers
can catch the whole family at once.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class SalesforceError(RuntimeError):
    """Base class for all adapter errors."""


class RemoteFault(SalesforceError):
    """
    A structured fault reported by the remote SOAP service.

    Attributes
    ----------
    code : str
        Fault code, e.g. "sf:INVALID_SESSION_ID"
    message : str
        Fault string as sent by the service
    detail : str, optional
        Fault detail text, if any
    """

    def __init__(self, code: str, message: str, detail: Optional[str] = None):
        super().__init__(f"{code}: {message}" if code else message)
        self.code = code or ""
        self.message = message or ""
        self.detail = detail

    def matches(self, code_fragment: str) -> bool:
        """True if the fault code contains the given fragment."""
        return code_fragment in self.code


class LoginFailed(SalesforceError):
    """The service rejected the supplied credentials."""


class SessionTimeout(SalesforceError):
    """The session could not be re-established within the retry ceiling."""


class FieldNotFound(SalesforceError):
    """No candidate form of a logical column name exists on the schema type."""

    def __init__(self, message: str, column: str = "", candidates: Sequence[str] = ()):
        super().__init__(message)
        self.column = column
        self.candidates = list(candidates)


class ResultError(SalesforceError):
    """
    An error carrying the full per-item result sequence of a remote call.

    Attributes
    ----------
    results : list
        Every item result, in request order (failing and succeeding)
    """

    def __init__(self, message: str, results: Sequence[Any]):
        super().__init__(message)
        self.results = list(results)

    @property
    def failures(self) -> list:
        """(index, result) pairs for the items that did not succeed."""
        from sfdc_adapter.core.results import item_succeeded

        return [(i, r) for i, r in enumerate(self.results) if not item_succeeded(r)]


class QueryError(ResultError):
    pass


class CreateError(ResultError):
    pass


class UpdateError(ResultError):
    pass


class DeleteError(ResultError):
    pass
