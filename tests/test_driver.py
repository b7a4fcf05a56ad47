"""
Tests for sfdc_adapter.core.driver (zeep client mocked).
"""

import pytest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from lxml import etree
from zeep.exceptions import Fault

from sfdc_adapter.core.driver import (
    DEFAULT_BINDING,
    BatchItemResult,
    DriverConfig,
    OutboundHeader,
    ZeepDriver,
)
from sfdc_adapter.core.errors import FieldNotFound, RemoteFault
from sfdc_adapter.schema.builder import RemoteObjectSpec
from sfdc_adapter.schema.fields import FieldResolver


LOGIN_URL = "https://login.salesforce.com/services/Soap/c/59.0"

# Account extends sObject, as in the generated enterprise WSDL
ENTERPRISE_WSDL = """<?xml version="1.0" encoding="UTF-8"?>
<definitions targetNamespace="urn:enterprise.soap.sforce.com"
    xmlns="http://schemas.xmlsoap.org/wsdl/"
    xmlns:soap="http://schemas.xmlsoap.org/wsdl/soap/"
    xmlns:xsd="http://www.w3.org/2001/XMLSchema"
    xmlns:tns="urn:enterprise.soap.sforce.com"
    xmlns:ens="urn:sobject.enterprise.soap.sforce.com">
  <types>
    <schema xmlns="http://www.w3.org/2001/XMLSchema" elementFormDefault="qualified"
        targetNamespace="urn:sobject.enterprise.soap.sforce.com">
      <complexType name="sObject">
        <sequence>
          <element name="fieldsToNull" type="xsd:string" nillable="true" minOccurs="0" maxOccurs="unbounded"/>
          <element name="Id" type="xsd:string" nillable="true" minOccurs="0"/>
        </sequence>
      </complexType>
      <complexType name="Account">
        <complexContent>
          <extension base="ens:sObject">
            <sequence>
              <element name="Fax" type="xsd:string" nillable="true" minOccurs="0"/>
              <element name="Name" type="xsd:string" nillable="true" minOccurs="0"/>
            </sequence>
          </extension>
        </complexContent>
      </complexType>
    </schema>
    <schema xmlns="http://www.w3.org/2001/XMLSchema" elementFormDefault="qualified"
        targetNamespace="urn:enterprise.soap.sforce.com">
      <element name="delete">
        <complexType>
          <sequence>
            <element name="ids" type="xsd:string" minOccurs="0" maxOccurs="unbounded"/>
          </sequence>
        </complexType>
      </element>
      <element name="deleteResponse">
        <complexType>
          <sequence>
            <element name="result" type="xsd:string" minOccurs="0" maxOccurs="unbounded"/>
          </sequence>
        </complexType>
      </element>
    </schema>
  </types>
  <message name="deleteRequest">
    <part element="tns:delete" name="parameters"/>
  </message>
  <message name="deleteResponse">
    <part element="tns:deleteResponse" name="parameters"/>
  </message>
  <portType name="Soap">
    <operation name="delete">
      <input message="tns:deleteRequest"/>
      <output message="tns:deleteResponse"/>
    </operation>
  </portType>
  <binding name="SoapBinding" type="tns:Soap">
    <soap:binding style="document" transport="http://schemas.xmlsoap.org/soap/http"/>
    <operation name="delete">
      <soap:operation soapAction=""/>
      <input><soap:body parts="parameters" use="literal"/></input>
      <output><soap:body use="literal"/></output>
    </operation>
  </binding>
  <service name="SforceService">
    <port binding="tns:SoapBinding" name="Soap">
      <soap:address location="https://login.salesforce.com/services/Soap/c/59.0"/>
    </port>
  </service>
</definitions>
"""


@pytest.fixture
def zeep_client():
    client = MagicMock()
    port = SimpleNamespace(
        binding=SimpleNamespace(name=etree.QName(DEFAULT_BINDING)),
        binding_options={"address": LOGIN_URL},
    )
    client.wsdl.services = {"SforceService": SimpleNamespace(ports={"Soap": port})}
    return client


@pytest.fixture
def zeep_driver(zeep_client, tmp_path):
    with patch("sfdc_adapter.core.driver.Client", return_value=zeep_client), \
            patch("sfdc_adapter.core.driver.SqliteCache"):
        yield ZeepDriver("enterprise.wsdl", tmp_path / "api")


class TestDriverConfig:

    def test_default_values(self):
        cfg = DriverConfig()
        assert cfg.timeout == 60.0
        assert cfg.retries == 3
        assert cfg.verify is True
        assert cfg.binding == DEFAULT_BINDING


class TestZeepDriver:
    """Tests for ZeepDriver."""

    def test_creates_api_dir(self, zeep_driver, tmp_path):
        assert (tmp_path / "api").is_dir()
        assert zeep_driver.endpoint_url == LOGIN_URL

    def test_endpoint_replacement(self, zeep_driver, zeep_client):
        zeep_driver.endpoint_url = "https://na1.salesforce.com/services/Soap/c/59.0/00D"

        zeep_client.create_service.assert_called_once_with(
            DEFAULT_BINDING, "https://na1.salesforce.com/services/Soap/c/59.0/00D"
        )
        assert zeep_driver.endpoint_url.startswith("https://na1.")

    def test_headers_sent_with_each_call(self, zeep_driver, zeep_client):
        zeep_driver.set_headers([OutboundHeader("SessionHeader", {"sessionId": "SID"})])
        zeep_client.service.delete.return_value = []

        zeep_driver.delete(["001A"])

        zeep_client.get_element.assert_called_with("{urn:enterprise.soap.sforce.com}SessionHeader")
        element = zeep_client.get_element.return_value
        element.assert_called_with(sessionId="SID")
        kwargs = zeep_client.service.delete.call_args.kwargs
        assert kwargs["_soapheaders"] == [element.return_value]
        assert kwargs["ids"] == ["001A"]

    def test_fault_translated(self, zeep_driver, zeep_client):
        zeep_client.service.query.side_effect = Fault(
            "Invalid Session ID found in SessionHeader",
            code="sf:INVALID_SESSION_ID",
        )

        with pytest.raises(RemoteFault) as exc:
            zeep_driver.query("SELECT Id FROM Account")

        assert exc.value.code == "sf:INVALID_SESSION_ID"
        assert exc.value.message == "Invalid Session ID found in SessionHeader"
        assert isinstance(exc.value.__cause__, Fault)

    def test_login_result(self, zeep_driver, zeep_client):
        zeep_client.service.login.return_value = SimpleNamespace(
            sessionId="SID",
            serverUrl="https://na1.salesforce.com",
            userId="005A",
            userInfo={"organizationId": "00D1"},
        )

        result = zeep_driver.login("user", "pw")

        assert result.session_id == "SID"
        assert result.user_info == {"organizationId": "00D1"}
        kwargs = zeep_client.service.login.call_args.kwargs
        assert kwargs["username"] == "user"
        assert kwargs["password"] == "pw"

    def test_query_result(self, zeep_driver, zeep_client):
        zeep_client.service.query.return_value = SimpleNamespace(
            records=[{"Id": "001A"}],
            size=2,
            done=False,
            queryLocator="01gA-2000",
        )

        page = zeep_driver.query("SELECT Id FROM Account")

        assert page.records == [{"Id": "001A"}]
        assert page.size == 2
        assert page.done is False
        assert page.query_locator == "01gA-2000"

    def test_batch_results(self, zeep_driver, zeep_client):
        zeep_client.service.create.return_value = [
            SimpleNamespace(success=True, id="001A", errors=None),
            SimpleNamespace(
                success=False,
                id=None,
                errors=[{"statusCode": "REQUIRED_FIELD_MISSING", "message": "Name"}],
            ),
        ]

        results = zeep_driver.create([])

        assert results[0] == BatchItemResult(True, "001A")
        assert results[1].success is False
        assert results[1].errors[0]["statusCode"] == "REQUIRED_FIELD_MISSING"

    def test_specs_converted_to_sobjects(self, zeep_driver, zeep_client):
        zeep_client.service.update.return_value = []
        spec = RemoteObjectSpec("Account", {"Name": "Acme"}, ("Fax",), id="001A")

        zeep_driver.update([spec])

        zeep_client.get_type.assert_called_with("{urn:sobject.enterprise.soap.sforce.com}Account")
        zeep_client.get_type.return_value.assert_called_once_with(
            Name="Acme", Id="001A", fieldsToNull=["Fax"]
        )

    def test_declared_fields_exclude_sobject_base(self, zeep_driver, zeep_client):
        types = {
            "{urn:sobject.enterprise.soap.sforce.com}sObject": SimpleNamespace(
                elements=[("fieldsToNull", None), ("Id", None)],
            ),
            "{urn:sobject.enterprise.soap.sforce.com}Account": SimpleNamespace(
                elements=[("fieldsToNull", None), ("Id", None), ("Name", None), ("Fax", None)],
            ),
        }
        zeep_client.get_type.side_effect = types.__getitem__

        assert zeep_driver.declared_fields("Account") == ["Name", "Fax"]
        assert zeep_driver.declared_fields("Account") == ["Name", "Fax"]
        sobject_lookups = [
            c for c in zeep_client.get_type.call_args_list
            if c.args[0].endswith("}sObject")
        ]
        assert len(sobject_lookups) == 1

    def test_fault_detail_element_serialized(self, zeep_driver, zeep_client):
        detail = etree.fromstring(
            '<detail><fault xmlns="urn:fault.enterprise.soap.sforce.com">'
            "<exceptionCode>INVALID_FIELD</exceptionCode></fault></detail>"
        )
        zeep_client.service.query.side_effect = Fault(
            "No such column 'Bogus' on entity 'Account'",
            code="sf:INVALID_FIELD",
            detail=detail,
        )

        with pytest.raises(RemoteFault) as exc:
            zeep_driver.query("SELECT Bogus FROM Account")

        assert exc.value.detail.startswith("<detail>")
        assert "<exceptionCode>INVALID_FIELD</exceptionCode>" in exc.value.detail

    def test_fault_detail_text(self, zeep_driver, zeep_client):
        zeep_client.service.query.side_effect = Fault(
            "boom", code="sf:UNKNOWN_EXCEPTION", detail=etree.fromstring("<detail> oops </detail>"),
        )

        with pytest.raises(RemoteFault) as exc:
            zeep_driver.query("SELECT Id FROM Account")

        assert exc.value.detail == "oops"

    def test_no_matching_port_leaves_endpoint_unset(self, zeep_client, tmp_path):
        cfg = DriverConfig(binding="{urn:partner.soap.sforce.com}SoapBinding")
        with patch("sfdc_adapter.core.driver.Client", return_value=zeep_client), \
                patch("sfdc_adapter.core.driver.SqliteCache"):
            driver = ZeepDriver("enterprise.wsdl", tmp_path / "api", cfg)

        assert driver.endpoint_url is None


class TestEnterpriseWsdl:
    """ZeepDriver against a real (minimal) enterprise WSDL."""

    @pytest.fixture
    def wsdl_driver(self, tmp_path):
        wsdl = tmp_path / "enterprise.wsdl"
        wsdl.write_text(ENTERPRISE_WSDL, encoding="utf-8")
        driver = ZeepDriver(str(wsdl), tmp_path / "api")
        yield driver
        driver.close()

    def test_endpoint_read_from_port(self, wsdl_driver):
        assert wsdl_driver.endpoint_url == LOGIN_URL

    def test_declared_fields_are_own_fields_only(self, wsdl_driver):
        fields = wsdl_driver.declared_fields("Account")

        assert fields == ["Fax", "Name"]
        assert "Id" not in fields

    def test_inherited_id_is_not_resolvable(self, wsdl_driver):
        resolver = FieldResolver(wsdl_driver.declared_fields)

        assert resolver.resolve("Account", "name") == "Name"
        with pytest.raises(FieldNotFound):
            resolver.resolve("Account", "id")

    def test_record_id_set_on_sobject(self, wsdl_driver):
        spec = RemoteObjectSpec("Account", {"Name": "Acme"}, ("Fax",), id="001A")

        sobject = wsdl_driver._to_sobjects([spec])[0]

        assert sobject.Id == "001A"
        assert sobject.Name == "Acme"
        assert sobject.fieldsToNull == ["Fax"]
