"""
sfdc_adapter.core.connection - Salesforce connection façade
===========================================================

Provides Connection, the entry point for queries and batch mutations.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Generator, List, Mapping, Optional, Sequence, Type
from urllib.parse import unquote
import os

from sfdc_adapter.core.driver import (
    BatchItemResult,
    Driver,
    DriverConfig,
    QueryResult,
    ZeepDriver,
)
from sfdc_adapter.core.errors import (
    CreateError,
    DeleteError,
    QueryError,
    RemoteFault,
    ResultError,
    SalesforceError,
    UpdateError,
)
from sfdc_adapter.core.results import aggregate_results
from sfdc_adapter.core.session import Credentials, Session, SessionManager
from sfdc_adapter.schema.builder import ObjectBuilder, RemoteObjectSpec
from sfdc_adapter.schema.fields import FieldResolver


class Connection:
    """
    Authenticated connection to the Salesforce enterprise SOAP API.

    Logs in on construction. Every query and mutation runs through the
    session manager, so an expired session is renewed and the call retried
    without the caller noticing.

    Parameters
    ----------
    username : str, optional
        Username, percent-encoded or not. Falls back to SF_USERNAME env var.
    password : str, optional
        Password (plus security token). Falls back to SF_PASSWORD env var.
    wsdl_path : str, optional
        Enterprise WSDL path or URL. Falls back to SF_WSDL_PATH env var.
    api_dir : str, optional
        Directory for the schema binding cache. Falls back to SF_API_DIR.
    organization_id : str, optional
        Organization to scope the login to. Falls back to SF_ORGANIZATION_ID.
    driver : Driver, optional
        Pre-built driver; a ZeepDriver is created when omitted
    config : DriverConfig, optional
        Transport configuration for the default driver

    Examples
    --------
    >>> conn = Connection("user%40example.com", "secret", "enterprise.wsdl", "/tmp/sf")
    >>> conn.query("SELECT Id, Name FROM Account LIMIT 10").records
    >>> acme = conn.make_object("Account", {"name": "Acme", "fax": ""})
    >>> conn.create([acme])
    """

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        wsdl_path: Optional[str] = None,
        api_dir: Optional[str] = None,
        organization_id: Optional[str] = None,
        *,
        driver: Optional[Driver] = None,
        config: Optional[DriverConfig] = None,
    ) -> None:
        username = username or os.environ.get("SF_USERNAME", "")
        password = password or os.environ.get("SF_PASSWORD", "")
        self._wsdl_path = wsdl_path or os.environ.get("SF_WSDL_PATH", "")
        self._api_dir = api_dir or os.environ.get("SF_API_DIR", "")
        organization_id = organization_id or os.environ.get("SF_ORGANIZATION_ID") or None

        if not (username and password):
            raise ValueError(
                "Missing credentials. Set SF_USERNAME/SF_PASSWORD environment "
                "variables or pass username/password parameters."
            )

        if driver is None:
            if not (self._wsdl_path and self._api_dir):
                raise ValueError(
                    "Missing schema location. Set SF_WSDL_PATH/SF_API_DIR "
                    "environment variables or pass wsdl_path/api_dir parameters."
                )
            driver = ZeepDriver(self._wsdl_path, self._api_dir, config)

        self.driver = driver
        self.sessions = SessionManager(
            driver, Credentials(unquote(username), password, organization_id)
        )
        self.resolver = FieldResolver(driver.declared_fields)
        self.builder = ObjectBuilder(self.resolver)
        self._closed = False

        self.sessions.ensure_session()

    def close(self) -> None:
        """Drop the session and close the driver's transport."""
        self._closed = True
        self.sessions.invalidate()
        close = getattr(self.driver, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- session info ----------------

    @property
    def session(self) -> Session:
        if self._closed:
            raise SalesforceError("Connection is closed")
        return self.sessions.ensure_session()

    @property
    def user_id(self) -> str:
        return self.session.user_id

    @property
    def user_details(self) -> Dict[str, Any]:
        return self.session.user_details

    @property
    def organization_id(self) -> Optional[str]:
        """Organization id reported by the service at login."""
        return self.session.organization_id

    @property
    def wsdl_path(self) -> str:
        return self._wsdl_path

    @property
    def api_dir(self) -> Optional[Path]:
        return Path(self._api_dir) if self._api_dir else None

    # ---------------- schema helpers ----------------

    def field_name_for(self, type_name: str, column: str) -> str:
        """Resolve a logical column to its field identifier on `type_name`."""
        return self.resolver.resolve(type_name, column)

    def make_object(
        self,
        type_name: str,
        values: Mapping[str, Any],
        id: Optional[str] = None,
    ) -> RemoteObjectSpec:
        """Build a request object from logical column names; pass `id` for updates."""
        return self.builder.build(type_name, values, id)

    def list_fields(self, type_name: str) -> List[str]:
        return self.resolver.fields(type_name)

    # ---------------- queries ----------------

    def query(self, statement: str) -> QueryResult:
        """
        Run a SOQL statement and return its first page.

        Raises
        ------
        QueryError
            If the service rejects the query
        """
        try:
            return self.sessions.with_reconnection(lambda: self.driver.query(statement))
        except RemoteFault as e:
            raise QueryError(e.message, []) from e

    def query_more(self, query_locator: str) -> QueryResult:
        """Fetch the page following `query_locator`."""
        try:
            return self.sessions.with_reconnection(
                lambda: self.driver.query_more(query_locator)
            )
        except RemoteFault as e:
            raise QueryError(e.message, []) from e

    def iterate(
        self,
        statement: str,
        *,
        max_pages: Optional[int] = None,
    ) -> Generator[List[Any], None, None]:
        """
        Yield each page of records for `statement`.

        Parameters
        ----------
        statement : str
            SOQL statement
        max_pages : int, optional
            Maximum number of pages to fetch
        """
        page = self.query(statement)
        yielded = 0
        seen = set()
        while True:
            if page.records:
                yield page.records
                yielded += 1
                if max_pages is not None and yielded >= int(max_pages):
                    return

            locator = page.query_locator
            if page.done or not locator or locator in seen:
                return
            seen.add(locator)
            page = self.query_more(locator)

    def query_all(self, statement: str, *, max_pages: Optional[int] = None) -> List[Any]:
        """Collect the records of every page of `statement`."""
        out: List[Any] = []
        for page in self.iterate(statement, max_pages=max_pages):
            out.extend(page)
        return out

    # ---------------- mutations ----------------

    def create(self, objects: Sequence[Any]) -> Sequence[BatchItemResult]:
        return self._call_api("create", CreateError, "creating", objects)

    def update(self, objects: Sequence[Any]) -> Sequence[BatchItemResult]:
        return self._call_api("update", UpdateError, "updating", objects)

    def delete(self, keys: Sequence[str]) -> Sequence[BatchItemResult]:
        return self._call_api("delete", DeleteError, "deleting", keys)

    def _call_api(
        self,
        method: str,
        error_cls: Type[ResultError],
        verb: str,
        args: Sequence[Any],
    ) -> Sequence[BatchItemResult]:
        operation = getattr(self.driver, method)
        return self.sessions.with_reconnection(
            lambda: aggregate_results(
                operation(list(args)),
                f"Got some errors while {verb} Salesforce objects",
                error_cls,
            )
        )
