"""
sfdc_adapter.core.session - Salesforce session management
=========================================================

Owns the authenticated session for one connection:
- Login with optional organization scope
- Session / client headers injected on every later call
- Transparent re-login and retry when the session expires
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar
import logging
import threading

from sfdc_adapter.core.driver import Driver, OutboundHeader
from sfdc_adapter.core.errors import LoginFailed, RemoteFault, SessionTimeout


T = TypeVar("T")

INVALID_LOGIN = "INVALID_LOGIN"
INVALID_SESSION_ID = "INVALID_SESSION_ID"

# Re-logins allowed per call before giving up
MAX_RECONNECTS = 5

CLIENT_NAME = "client"


@dataclass(frozen=True)
class Credentials:
    """
    Login credentials.

    Parameters
    ----------
    username : str
        Salesforce username (already percent-decoded)
    password : str
        Password, with the security token appended if the org requires one
    organization_id : str, optional
        Organization to scope the login to
    """
    username: str
    password: str = field(repr=False)
    organization_id: Optional[str] = None


@dataclass(frozen=True)
class Session:
    """A live session as returned by a successful login."""
    session_id: str = field(repr=False)
    server_url: str
    user_id: str
    user_details: Dict[str, Any] = field(default_factory=dict)

    @property
    def organization_id(self) -> Optional[str]:
        return self.user_details.get("organizationId")


@dataclass(frozen=True)
class _Attempt:
    value: Any = None
    expired: Optional[RemoteFault] = None


class SessionManager:
    """
    Login, header injection and reconnect-and-retry for one driver.

    Parameters
    ----------
    driver : Driver
        RPC client the session is established on
    credentials : Credentials
        Login credentials

    Examples
    --------
    >>> mgr = SessionManager(driver, Credentials("user@example.com", "pw"))
    >>> mgr.ensure_session().user_id
    '005...'
    >>> mgr.with_reconnection(lambda: driver.query("SELECT Id FROM Account"))
    """

    def __init__(self, driver: Driver, credentials: Credentials) -> None:
        self.driver = driver
        self.credentials = credentials
        self.logger = logging.getLogger("sfdc_adapter.session")

        self._session: Optional[Session] = None
        self._lock = threading.RLock()

    @property
    def session(self) -> Optional[Session]:
        """The current session, or None before login / after expiry."""
        return self._session

    def ensure_session(self) -> Session:
        """Return the current session, logging in first if there is none."""
        current = self._session
        if current is not None:
            return current
        with self._lock:
            if self._session is None:
                return self.login()
            return self._session

    # ---------------- login ----------------

    def _scope_headers(self) -> Tuple[OutboundHeader, ...]:
        if not self.credentials.organization_id:
            return ()
        return (
            OutboundHeader(
                "LoginScopeHeader",
                {"organizationId": self.credentials.organization_id},
            ),
        )

    def login(self) -> Session:
        """
        Log in and install the session headers on the driver.

        Raises
        ------
        LoginFailed
            If the service rejects the credentials
        RemoteFault
            Any other fault, unchanged
        """
        with self._lock:
            scope = self._scope_headers()
            self.driver.set_headers(scope)

            try:
                result = self.driver.login(
                    self.credentials.username, self.credentials.password
                )
            except RemoteFault as fault:
                if fault.matches(INVALID_LOGIN):
                    raise LoginFailed(fault.message) from fault
                raise

            self.driver.endpoint_url = result.server_url
            self.driver.set_headers(scope + (
                OutboundHeader("SessionHeader", {"sessionId": result.session_id}),
                OutboundHeader("CallOptions", {"client": CLIENT_NAME}),
            ))

            self._session = Session(
                session_id=result.session_id,
                server_url=result.server_url,
                user_id=result.user_id,
                user_details=dict(result.user_info),
            )
            self.logger.debug(
                "Logged in as %s (%s)", self.credentials.username, result.server_url
            )
            return self._session

    def invalidate(self, stale: Optional[Session] = None) -> None:
        """Forget the current session (only if it is still `stale`, when given)."""
        with self._lock:
            if stale is None or self._session is stale:
                self._session = None

    # ---------------- retry boundary ----------------

    def _attempt(self, operation: Callable[[], T]) -> _Attempt:
        try:
            return _Attempt(value=operation())
        except RemoteFault as fault:
            if fault.matches(INVALID_SESSION_ID):
                return _Attempt(expired=fault)
            raise

    def with_reconnection(self, operation: Callable[[], T]) -> T:
        """
        Run `operation`, re-logging in and retrying on session expiry.

        Up to MAX_RECONNECTS re-logins are made for a single call. Faults
        other than an invalid session propagate on the first occurrence.

        Raises
        ------
        SessionTimeout
            If the call still reports an expired session after the last retry
        """
        reconnects = 0
        while True:
            session = self.ensure_session()
            outcome = self._attempt(operation)
            if outcome.expired is None:
                return outcome.value

            if reconnects >= MAX_RECONNECTS:
                raise SessionTimeout(
                    "The Salesforce session could not be established"
                ) from outcome.expired

            reconnects += 1
            self.logger.debug(
                "Got an invalid session id; reconnecting (%d/%d)",
                reconnects, MAX_RECONNECTS,
            )
            with self._lock:
                # another caller may already have replaced the session
                if self._session is session or self._session is None:
                    self._session = None
                    self.login()
