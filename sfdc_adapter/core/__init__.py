"""
sfdc_adapter.core - Session, driver and connection
==================================================

- Connection: façade for query / create / update / delete
- SessionManager: login, header injection, reconnect-and-retry
- ZeepDriver: zeep-based SOAP driver (see Driver for the protocol)
- aggregate_results: batch mutation result handling
- Error kinds: LoginFailed, SessionTimeout, QueryError, CreateError, ...

"""

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

from sfdc_adapter.core.driver import (
    Driver,
    DriverConfig,
    ZeepDriver,
    OutboundHeader,
    LoginResult,
    QueryResult,
    BatchItemResult,
)

from sfdc_adapter.core.session import Credentials, Session, SessionManager
from sfdc_adapter.core.results import aggregate_results
from sfdc_adapter.core.connection import Connection

__all__ = [
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
    # Driver
    "Driver",
    "DriverConfig",
    "ZeepDriver",
    "OutboundHeader",
    "LoginResult",
    "QueryResult",
    "BatchItemResult",
    # Session
    "Credentials",
    "Session",
    "SessionManager",
    "aggregate_results",
    "Connection",
]
