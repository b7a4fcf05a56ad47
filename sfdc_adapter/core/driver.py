"""
sfdc_adapter.core.driver - SOAP driver for the Salesforce enterprise API
========================================================================

The session layer talks to the remote service only through the Driver
protocol defined here. ZeepDriver is the concrete implementation:

- zeep client over a requests session with urllib3 retries
- WSDL cache stored in the bindings directory
- Outbound SOAP headers attached to every call
- Replaceable endpoint URL (login redirects to a per-org server)
- zeep faults translated into RemoteFault
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union
import logging
import time

from lxml import etree
import requests
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from zeep import Client
from zeep.cache import SqliteCache
from zeep.exceptions import Fault
from zeep.helpers import serialize_object
from zeep.transports import Transport

from sfdc_adapter.core.errors import RemoteFault


ENTERPRISE_NS = "urn:enterprise.soap.sforce.com"
SOBJECT_NS = "urn:sobject.enterprise.soap.sforce.com"
SOBJECT_BASE = "sObject"
DEFAULT_BINDING = f"{{{ENTERPRISE_NS}}}SoapBinding"


@dataclass(frozen=True)
class OutboundHeader:
    """
    A SOAP header sent with every outbound call.

    Parameters
    ----------
    name : str
        Header element name, e.g. "SessionHeader"
    value : mapping
        Header element children, e.g. {"sessionId": "..."}
    """
    name: str
    value: Mapping[str, Any]


@dataclass(frozen=True)
class LoginResult:
    session_id: str
    server_url: str
    user_id: str
    user_info: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryResult:
    """One page of a SOQL query."""
    records: List[Any]
    size: int = 0
    done: bool = True
    query_locator: Optional[str] = None


@dataclass(frozen=True)
class BatchItemResult:
    """
    Outcome of one item in a create/update/delete call.

    Attributes
    ----------
    success : bool
        Whether the service applied this item
    id : str, optional
        Record id, when the service returned one
    errors : tuple of dict
        Service diagnostics (statusCode, message, fields)
    """
    success: bool
    id: Optional[str] = None
    errors: tuple = ()


class Driver(Protocol):
    """Capabilities the session layer needs from an RPC client."""

    endpoint_url: str

    def set_headers(self, headers: Sequence[OutboundHeader]) -> None: ...

    def login(self, username: str, password: str) -> LoginResult: ...

    def query(self, query_string: str) -> QueryResult: ...

    def query_more(self, query_locator: str) -> QueryResult: ...

    def create(self, objects: Sequence[Any]) -> List[BatchItemResult]: ...

    def update(self, objects: Sequence[Any]) -> List[BatchItemResult]: ...

    def delete(self, ids: Sequence[str]) -> List[BatchItemResult]: ...

    def declared_fields(self, type_name: str) -> List[str]: ...


@dataclass
class DriverConfig:
    """
    Transport configuration for ZeepDriver.

    Parameters
    ----------
    timeout : float
        Per-operation timeout in seconds (default: 60.0)
    wsdl_timeout : float
        Timeout for loading WSDL/XSD documents (default: 300.0)
    retries : int
        HTTP-level retry attempts for 429/5xx responses (default: 3)
    backoff : float
        Backoff factor for HTTP retries (default: 0.5)
    verify : bool or str
        SSL verification (True, False, or path to CA bundle)
    user_agent : str
        User-Agent header value
    binding : str
        Qualified name of the SOAP binding used for endpoint replacement
    cache_ttl : int
        Seconds a cached WSDL/XSD document stays valid
    """
    timeout: float = 60.0
    wsdl_timeout: float = 300.0
    retries: int = 3
    backoff: float = 0.5
    verify: Union[bool, str] = True
    user_agent: str = "sfdc-adapter/0.1"
    binding: str = DEFAULT_BINDING
    cache_ttl: int = 3600


class ZeepDriver:
    """
    zeep-backed Driver for the Salesforce enterprise WSDL.

    Parameters
    ----------
    wsdl_path : str
        Path or URL of the enterprise WSDL
    api_dir : str or Path
        Directory holding the WSDL cache for this schema
    cfg : DriverConfig, optional
        Transport configuration

    Examples
    --------
    >>> driver = ZeepDriver("enterprise.wsdl", "/tmp/sf_api")
    >>> driver.declared_fields("Account")
    ['Name', 'Fax', 'Phone', ...]
    """

    def __init__(
        self,
        wsdl_path: str,
        api_dir: Union[str, Path],
        cfg: Optional[DriverConfig] = None,
    ) -> None:
        self.cfg = cfg or DriverConfig()
        self.wsdl_path = wsdl_path
        self.api_dir = Path(api_dir)
        self.logger = logging.getLogger("sfdc_adapter.driver")

        self.session = self._build_session()
        self.client = Client(wsdl_path, transport=self._build_transport())

        self._service = self.client.service
        self._endpoint_url: Optional[str] = self._port_address()
        self._headers: tuple = ()
        self._base_fields: Optional[frozenset] = None

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    # ---------------- transport ----------------

    def _build_session(self) -> Session:
        sess = requests.Session()
        sess.verify = self.cfg.verify
        sess.headers.update({"User-Agent": self.cfg.user_agent})

        retry = Retry(
            total=self.cfg.retries,
            backoff_factor=self.cfg.backoff,
            status_forcelist=(429, 502, 503, 504),
            allowed_methods=frozenset({"GET", "POST"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=20)
        sess.mount("https://", adapter)
        sess.mount("http://", adapter)
        return sess

    def _build_transport(self) -> Transport:
        self.api_dir.mkdir(parents=True, exist_ok=True)
        cache = SqliteCache(
            path=str(self.api_dir / "wsdl_cache.sqlite"),
            timeout=self.cfg.cache_ttl,
        )
        return Transport(
            session=self.session,
            cache=cache,
            timeout=self.cfg.wsdl_timeout,
            operation_timeout=self.cfg.timeout,
        )

    # ---------------- endpoint / headers ----------------

    def _port_address(self) -> Optional[str]:
        """Service address declared by the WSDL port using the configured binding."""
        for service in self.client.wsdl.services.values():
            for port in service.ports.values():
                if port.binding.name.text == self.cfg.binding:
                    return port.binding_options.get("address")
        return None

    @property
    def endpoint_url(self) -> Optional[str]:
        return self._endpoint_url

    @endpoint_url.setter
    def endpoint_url(self, url: str) -> None:
        self._service = self.client.create_service(self.cfg.binding, url)
        self._endpoint_url = url

    def set_headers(self, headers: Sequence[OutboundHeader]) -> None:
        self._headers = tuple(headers)

    def _header_elements(self) -> list:
        return [
            self.client.get_element(f"{{{ENTERPRISE_NS}}}{h.name}")(**dict(h.value))
            for h in self._headers
        ]

    def _call(self, operation: str, **kwargs: Any) -> Any:
        t0 = time.perf_counter()
        try:
            result = getattr(self._service, operation)(
                _soapheaders=self._header_elements(), **kwargs
            )
        except Fault as fault:
            raise RemoteFault(
                str(fault.code or ""),
                fault.message,
                _detail_text(fault.detail),
            ) from fault
        finally:
            dt = (time.perf_counter() - t0) * 1000.0
            self.logger.debug("%s %s %sms", operation, self._endpoint_url, round(dt, 1))
        return result

    # ---------------- operations ----------------

    def login(self, username: str, password: str) -> LoginResult:
        r = self._call("login", username=username, password=password)
        return LoginResult(
            session_id=r.sessionId,
            server_url=r.serverUrl,
            user_id=r.userId,
            user_info=dict(serialize_object(r.userInfo) or {}),
        )

    def query(self, query_string: str) -> QueryResult:
        return self._query_result(self._call("query", queryString=query_string))

    def query_more(self, query_locator: str) -> QueryResult:
        return self._query_result(self._call("queryMore", queryLocator=query_locator))

    def create(self, objects: Sequence[Any]) -> List[BatchItemResult]:
        return self._batch_results(self._call("create", sObjects=self._to_sobjects(objects)))

    def update(self, objects: Sequence[Any]) -> List[BatchItemResult]:
        return self._batch_results(self._call("update", sObjects=self._to_sobjects(objects)))

    def delete(self, ids: Sequence[str]) -> List[BatchItemResult]:
        return self._batch_results(self._call("delete", ids=list(ids)))

    # ---------------- schema ----------------

    def _sobject_type(self, type_name: str) -> Any:
        return self.client.get_type(f"{{{SOBJECT_NS}}}{type_name}")

    def _inherited_fields(self) -> frozenset:
        if self._base_fields is None:
            self._base_fields = frozenset(
                name for name, _ in self._sobject_type(SOBJECT_BASE).elements
            )
        return self._base_fields

    def declared_fields(self, type_name: str) -> List[str]:
        """
        Field names a schema type declares itself, in WSDL order.

        zeep flattens the extension base into `elements`, so everything the
        type inherits from sObject (Id, fieldsToNull) is subtracted again.
        """
        inherited = self._inherited_fields()
        return [
            name for name, _ in self._sobject_type(type_name).elements
            if name not in inherited
        ]

    # ---------------- conversion helpers ----------------

    def _to_sobjects(self, objects: Sequence[Any]) -> list:
        out = []
        for obj in objects:
            type_name = getattr(obj, "type_name", None)
            if type_name is None:
                # already an xsd value
                out.append(obj)
                continue
            values = dict(obj.fields)
            if getattr(obj, "id", None):
                values["Id"] = obj.id
            if obj.fields_to_null:
                values["fieldsToNull"] = list(obj.fields_to_null)
            out.append(self._sobject_type(type_name)(**values))
        return out

    def _query_result(self, r: Any) -> QueryResult:
        records = [serialize_object(rec) for rec in (r.records or [])]
        return QueryResult(
            records=records,
            size=int(r.size or 0),
            done=bool(r.done),
            query_locator=r.queryLocator,
        )

    def _batch_results(self, results: Any) -> List[BatchItemResult]:
        out: List[BatchItemResult] = []
        for r in results or []:
            errors = tuple(dict(serialize_object(e)) for e in (r.errors or []))
            out.append(BatchItemResult(success=bool(r.success), id=r.id, errors=errors))
        return out


def _detail_text(detail: Any) -> Optional[str]:
    if detail is None:
        return None
    if etree.iselement(detail):
        if detail.text and detail.text.strip():
            return detail.text.strip()
        return etree.tostring(detail, encoding="unicode")
    return str(detail)
