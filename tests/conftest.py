import pytest
from loguru import logger

COMPANY_XSD = """<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
  <xs:simpleType name="RoleType">
    <xs:restriction base="xs:string">
      <xs:enumeration value="Engineer"/> <!-- Builds things -->
      <xs:enumeration value="Manager"/> <!-- Runs the team -->
      <xs:enumeration value="Intern">
        <xs:annotation><xs:documentation>Temporary position</xs:documentation></xs:annotation>
      </xs:enumeration>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="LeadRole">
    <xs:restriction base="RoleType"/>
  </xs:simpleType>
  <xs:element name="company">
    <xs:complexType>
      <xs:sequence>
        <xs:element name="name" type="xs:string">
          <xs:annotation><xs:documentation>Registered company name</xs:documentation></xs:annotation>
        </xs:element>
        <xs:element name="founded" type="xs:date"/>
        <xs:element name="headcount" type="xs:integer"/>
        <xs:element name="lead" type="LeadRole"/>
        <xs:element name="contact">
          <xs:complexType><xs:sequence>
            <xs:element name="email" type="xs:string"/>
            <xs:element name="phone" type="xs:string"/>
            <xs:element name="website" type="xs:string"/>
          </xs:sequence></xs:complexType>
        </xs:element>
        <xs:element name="employees">
          <xs:complexType><xs:sequence>
            <xs:element name="employee" maxOccurs="unbounded">
              <xs:complexType>
                <xs:sequence>
                  <xs:element name="fullName" type="xs:string"/>
                  <xs:element name="email" type="xs:string"/>
                  <xs:element name="role" type="RoleType"/>
                </xs:sequence>
                <xs:attribute name="id" type="xs:string"/>
              </xs:complexType>
            </xs:element>
          </xs:sequence></xs:complexType>
        </xs:element>
      </xs:sequence>
      <xs:attribute name="version" type="xs:string"/>
    </xs:complexType>
  </xs:element>
</xs:schema>
"""

COMPANY_XML = """<?xml version="1.0" encoding="UTF-8"?>
<company version="2">
  <name>Acme Corp</name>
  <founded>1999-04-01</founded>
  <headcount>42</headcount>
  <lead>Manager</lead>
  <contact>
    <email>info@acme.com</email>
    <phone>+1 415-555-0100</phone>
    <website>https://acme.example.com</website>
  </contact>
  <employees>
    <employee id="e1">
      <fullName>Ada Lovelace</fullName>
      <email>ada@acme.com</email>
      <role>Engineer</role>
    </employee>
    <employee id="e2">
      <fullName>Grace Hopper</fullName>
      <email>grace@acme.com</email>
      <role>Manager</role>
    </employee>
  </employees>
</company>
"""

ITEMS_XML = "<items><item><a>1</a><b>2</b></item><item><a>3</a><b>4</b></item></items>"


@pytest.fixture
def company_xml() -> str:
    return COMPANY_XML

@pytest.fixture
def company_xsd() -> str:
    return COMPANY_XSD

@pytest.fixture
def items_xml() -> str:
    return ITEMS_XML

@pytest.fixture
def log_messages():
    """Loguru messages emitted while the test runs."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
