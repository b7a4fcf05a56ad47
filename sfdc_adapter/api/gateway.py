"""
sfdc_adapter.api.gateway - FastAPI Salesforce Gateway
=====================================================

Optional REST API gateway exposing one shared Salesforce connection.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Any, Callable, Dict, List, NoReturn, Optional

from fastapi import FastAPI, HTTPException, Header, Depends
from fastapi.middleware.cors import CORSMiddleware

from sfdc_adapter import __version__
from sfdc_adapter.core.connection import Connection
from sfdc_adapter.core.driver import DriverConfig
from sfdc_adapter.core.errors import (
    FieldNotFound,
    LoginFailed,
    RemoteFault,
    ResultError,
    SalesforceError,
    SessionTimeout,
)
from sfdc_adapter.core.results import item_succeeded
from sfdc_adapter.api.models import (
    BatchResponse,
    DeleteRequest,
    ItemResult,
    ObjectsRequest,
    QueryRequest,
    QueryResponse,
)


logger = logging.getLogger("sfdc_adapter.api")


class SalesforceGateway:
    """
    Configuration and connection holder for the API gateway.

    Reads configuration from environment variables by default. The
    connection is created on first use and shared; calls through it are
    serialized because a re-login rewrites the driver's headers.
    """

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        wsdl_path: Optional[str] = None,
        api_dir: Optional[str] = None,
        organization_id: Optional[str] = None,
        api_key: Optional[str] = None,
        connection_factory: Optional[Callable[[], Connection]] = None,
    ):
        self.username = username or os.environ.get("SF_USERNAME", "")
        self.password = password or os.environ.get("SF_PASSWORD", "")
        self.wsdl_path = wsdl_path or os.environ.get("SF_WSDL_PATH", "")
        self.api_dir = api_dir or os.environ.get("SF_API_DIR", "")
        self.organization_id = organization_id or os.environ.get("SF_ORGANIZATION_ID")
        self.api_key = api_key or os.environ.get("SFDC_API_KEY", "")

        self._connection_factory = connection_factory or self._build_connection
        self._connection: Optional[Connection] = None
        self.lock = threading.RLock()

    def validate(self) -> None:
        """Validate configuration. Raises RuntimeError if invalid."""
        if not (self.username and self.password):
            raise RuntimeError("Missing SF_USERNAME/SF_PASSWORD")
        if not (self.wsdl_path and self.api_dir):
            raise RuntimeError("Missing SF_WSDL_PATH/SF_API_DIR")
        if not self.api_key:
            raise RuntimeError("Missing SFDC_API_KEY - required for security")

    def _build_connection(self) -> Connection:
        cfg = DriverConfig(
            timeout=float(os.environ.get("SF_TIMEOUT", "60")),
            retries=int(os.environ.get("SF_RETRIES", "3")),
            backoff=float(os.environ.get("SF_BACKOFF", "0.5")),
            verify=os.environ.get("SF_VERIFY_TLS", "true").lower() != "false",
        )
        return Connection(
            self.username,
            self.password,
            self.wsdl_path,
            self.api_dir,
            self.organization_id,
            config=cfg,
        )

    @property
    def connection(self) -> Connection:
        with self.lock:
            if self._connection is None:
                self._connection = self._connection_factory()
            return self._connection

    def close(self) -> None:
        with self.lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None


# Global gateway instance (lazy init)
_gateway: Optional[SalesforceGateway] = None


def get_gateway() -> SalesforceGateway:
    """Get or create the global gateway instance."""
    global _gateway
    if _gateway is None:
        _gateway = SalesforceGateway()
    return _gateway


def _item(result: Any) -> ItemResult:
    if isinstance(result, dict):
        return ItemResult(
            success=item_succeeded(result),
            id=result.get("id"),
            errors=list(result.get("errors") or []),
        )
    return ItemResult(
        success=item_succeeded(result),
        id=getattr(result, "id", None),
        errors=[dict(e) for e in getattr(result, "errors", ()) or ()],
    )


def raise_http_error(e: SalesforceError) -> NoReturn:
    """Translate an adapter error into an HTTPException."""
    if isinstance(e, LoginFailed):
        raise HTTPException(status_code=401, detail={"error": str(e)})
    if isinstance(e, FieldNotFound):
        raise HTTPException(
            status_code=400,
            detail={"error": str(e), "column": e.column, "candidates": e.candidates},
        )
    if isinstance(e, ResultError):
        raise HTTPException(
            status_code=422,
            detail={
                "error": str(e),
                "results": [_item(r).model_dump() for r in e.results],
            },
        )
    if isinstance(e, SessionTimeout):
        raise HTTPException(status_code=504, detail={"error": str(e)})
    if isinstance(e, RemoteFault):
        raise HTTPException(
            status_code=502,
            detail={"fault_code": e.code, "error": e.message},
        )
    raise HTTPException(status_code=500, detail={"error": str(e)})


def create_app(
    gateway: Optional[SalesforceGateway] = None,
    validate_on_startup: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Parameters
    ----------
    gateway : SalesforceGateway, optional
        Custom gateway configuration. If None, reads from environment.
    validate_on_startup : bool
        If True, validate configuration on startup.

    Returns
    -------
    FastAPI
        Configured FastAPI application
    """
    global _gateway

    if gateway:
        _gateway = gateway
    else:
        _gateway = SalesforceGateway()

    if validate_on_startup:
        try:
            _gateway.validate()
        except RuntimeError as e:
            # Allow app creation without validation for testing
            logger.warning("Gateway configuration incomplete: %s", e)

    app = FastAPI(
        title="Salesforce SOAP Gateway",
        description="""
## Salesforce SOAP Gateway

REST access to the Salesforce enterprise SOAP API through one managed
session. Expired sessions are renewed transparently.

Objects are sent with **logical column names** (`first_name`,
`custom_field`); they are resolved against the schema type's fields.
Empty strings and nulls clear the field.

### Authentication
Include your API key in the `x-api-key` header.
        """,
        version=__version__,
        openapi_tags=[
            {"name": "Discovery", "description": "Schema field discovery"},
            {"name": "Query", "description": "SOQL queries"},
            {"name": "SObjects", "description": "Batch create, update and delete"},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Dependencies
    # -------------------------------------------------------------------------

    def require_api_key(x_api_key: str = Header(...)) -> None:
        gw = get_gateway()
        if gw.api_key and x_api_key != gw.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    @app.get("/health")
    def health() -> Dict[str, Any]:
        """Health check endpoint."""
        return {"ok": True, "version": __version__}

    @app.get("/fields/{type_name}", tags=["Discovery"])
    def list_fields(
        type_name: str,
        _: None = Depends(require_api_key),
    ) -> Dict[str, Any]:
        """List the fields declared on a schema type."""
        gw = get_gateway()
        try:
            with gw.lock:
                fields = gw.connection.list_fields(type_name)
        except SalesforceError as e:
            raise_http_error(e)
        return {"type": type_name, "fields": fields}

    @app.post("/query", response_model=QueryResponse, tags=["Query"])
    def run_query(
        req: QueryRequest,
        _: None = Depends(require_api_key),
    ) -> QueryResponse:
        """Execute a SOQL query."""
        gw = get_gateway()
        try:
            with gw.lock:
                conn = gw.connection
                if req.all_pages:
                    records = conn.query_all(req.soql, max_pages=req.max_pages)
                    return QueryResponse(
                        count=len(records), done=True, records=records
                    )
                page = conn.query(req.soql)
        except SalesforceError as e:
            raise_http_error(e)
        return QueryResponse(
            count=len(page.records),
            done=page.done,
            query_locator=page.query_locator,
            records=page.records,
        )

    def _object_spec(conn: Connection, type_name: str, values: Dict[str, Any]) -> Any:
        values = dict(values)
        record_id = values.pop("Id", None)
        record_id = values.pop("id", record_id)
        return conn.make_object(type_name, values, record_id)

    def _mutate(type_name: str, objects: List[Dict[str, Any]], method: str) -> BatchResponse:
        gw = get_gateway()
        try:
            with gw.lock:
                conn = gw.connection
                specs = [_object_spec(conn, type_name, values) for values in objects]
                results = getattr(conn, method)(specs)
        except SalesforceError as e:
            raise_http_error(e)
        return BatchResponse(count=len(results), results=[_item(r) for r in results])

    @app.post("/sobjects/delete", response_model=BatchResponse, tags=["SObjects"])
    def delete_objects(
        req: DeleteRequest,
        _: None = Depends(require_api_key),
    ) -> BatchResponse:
        """Delete records by id."""
        gw = get_gateway()
        try:
            with gw.lock:
                results = gw.connection.delete(req.ids)
        except SalesforceError as e:
            raise_http_error(e)
        return BatchResponse(count=len(results), results=[_item(r) for r in results])

    @app.post("/sobjects/{type_name}", response_model=BatchResponse, tags=["SObjects"])
    def create_objects(
        type_name: str,
        req: ObjectsRequest,
        _: None = Depends(require_api_key),
    ) -> BatchResponse:
        """Create objects of `type_name`."""
        return _mutate(type_name, req.objects, "create")

    @app.patch("/sobjects/{type_name}", response_model=BatchResponse, tags=["SObjects"])
    def update_objects(
        type_name: str,
        req: ObjectsRequest,
        _: None = Depends(require_api_key),
    ) -> BatchResponse:
        """Update objects of `type_name`; each object must carry its `id`."""
        return _mutate(type_name, req.objects, "update")

    return app
