"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Callable, Dict, List, Optional

from sfdc_adapter.core.driver import BatchItemResult, LoginResult, QueryResult


SCHEMA = {
    "Account": ["Name", "Fax", "Phone", "Custom_Field__c"],
    "Contact": ["FirstName", "LastName", "Custom_Field__c"],
}


class FakeDriver:
    """
    Scripted stand-in for a SOAP driver.

    Each operation pops its next behaviour from a queue: an exception to
    raise, a callable to run, or a value to return. An empty queue falls
    back to the default value.
    """

    def __init__(self, schema: Optional[Dict[str, List[str]]] = None) -> None:
        self.schema = schema if schema is not None else dict(SCHEMA)
        self.endpoint_url = "https://login.salesforce.com/services/Soap/c/59.0"
        self.headers: tuple = ()
        self.header_history: List[tuple] = []
        self.calls: List[tuple] = []
        self.scripts: Dict[str, List[Any]] = {}
        self.login_count = 0

    def script(self, operation: str, *outcomes: Any) -> None:
        self.scripts.setdefault(operation, []).extend(outcomes)

    def _run(self, operation: str, default: Callable[[], Any]) -> Any:
        queue = self.scripts.get(operation) or []
        if not queue:
            return default()
        outcome = queue.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome()
        return outcome

    def set_headers(self, headers) -> None:
        self.headers = tuple(headers)
        self.header_history.append(self.headers)

    def login(self, username: str, password: str) -> LoginResult:
        self.calls.append(("login", username, password))

        def ok() -> LoginResult:
            self.login_count += 1
            return LoginResult(
                session_id=f"SESSION-{self.login_count}",
                server_url=f"https://na{self.login_count}.salesforce.com/services/Soap/c/59.0",
                user_id="005000000000001",
                user_info={"organizationId": "00D000000000001", "userName": username},
            )

        return self._run("login", ok)

    def query(self, query_string: str) -> QueryResult:
        self.calls.append(("query", query_string))
        return self._run("query", lambda: QueryResult(records=[], size=0))

    def query_more(self, query_locator: str) -> QueryResult:
        self.calls.append(("query_more", query_locator))
        return self._run("query_more", lambda: QueryResult(records=[], size=0))

    def create(self, objects) -> List[BatchItemResult]:
        self.calls.append(("create", list(objects)))
        return self._run("create", lambda: [BatchItemResult(True, f"001{i}") for i, _ in enumerate(objects)])

    def update(self, objects) -> List[BatchItemResult]:
        self.calls.append(("update", list(objects)))
        return self._run("update", lambda: [BatchItemResult(True) for _ in objects])

    def delete(self, ids) -> List[BatchItemResult]:
        self.calls.append(("delete", list(ids)))
        return self._run("delete", lambda: [BatchItemResult(True, i) for i in ids])

    def declared_fields(self, type_name: str) -> List[str]:
        self.calls.append(("declared_fields", type_name))
        return list(self.schema[type_name])

    def count(self, operation: str) -> int:
        return sum(1 for c in self.calls if c[0] == operation)


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def connection(driver):
    from sfdc_adapter.core.connection import Connection
    return Connection("user%40example.com", "secret", driver=driver)


@pytest.fixture
def sample_records():
    """Sample query records as serialized by the driver."""
    return [
        {"Id": "001A", "Name": "Acme"},
        {"Id": "001B", "Name": "Globex"},
    ]
