"""
Salesforce SOAP adapter (sfdc_adapter)
======================================

A session-managing client for the Salesforce enterprise SOAP API.
Logs in once, renews expired sessions transparently, maps logical
column names onto schema fields, and turns partial batch failures into
a single error.

Usage
-----
>>> from sfdc_adapter import Connection
>>>
>>> with Connection("user@example.com", "secret", "enterprise.wsdl", "/tmp/sf") as conn:
...     accounts = conn.query_all("SELECT Id, Name FROM Account")
...     acme = conn.make_object("Account", {"name": "Acme", "fax": ""})
...     conn.create([acme])

Subpackages
-----------
- sfdc_adapter.core: Connection, session management, SOAP driver, errors
- sfdc_adapter.schema: Field resolution and request object construction
- sfdc_adapter.api: Optional FastAPI REST gateway

"""

__version__ = "0.1.0"

# Core exports - available at package root
from sfdc_adapter.core.errors import (
    SalesforceError,
    RemoteFault,
    LoginFailed,
    SessionTimeout,
    FieldNotFound,
    ResultError,
    QueryError,
    CreateError,
    UpdateError,
    DeleteError,
)

from sfdc_adapter.core.driver import DriverConfig, ZeepDriver, BatchItemResult, QueryResult
from sfdc_adapter.core.session import Credentials, SessionManager
from sfdc_adapter.core.connection import Connection

# Convenience re-exports
from sfdc_adapter.schema import FieldResolver, ObjectBuilder, RemoteObjectSpec

__all__ = [
    # Version
    "__version__",
    # Core
    "Connection",
    "Credentials",
    "SessionManager",
    "DriverConfig",
    "ZeepDriver",
    "BatchItemResult",
    "QueryResult",
    # Errors
    "SalesforceError",
    "RemoteFault",
    "LoginFailed",
    "SessionTimeout",
    "FieldNotFound",
    "ResultError",
    "QueryError",
    "CreateError",
    "UpdateError",
    "DeleteError",
    # Schema
    "FieldResolver",
    "ObjectBuilder",
    "RemoteObjectSpec",
]
