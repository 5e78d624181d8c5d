from xmlform.validation import summary, validate


def test_valid_document(company_xml, company_xsd):
    result = validate(company_xml, company_xsd)
    assert result.is_valid, result.errors
    assert result.warnings == []
    assert summary(result).startswith("Valid")


def test_enum_violation_is_an_error(company_xml, company_xsd):
    result = validate(company_xml.replace("<role>Engineer</role>", "<role>Wizard</role>"), company_xsd)
    assert not result.is_valid
    assert any('"Wizard"' in e for e in result.errors)
    assert summary(result) == "Invalid - 1 error(s) found"


def test_undeclared_elements_are_warnings(company_xml, company_xsd):
    xml = company_xml.replace("<name>Acme Corp</name>", "<name>Acme Corp</name><motto>Go</motto>")
    result = validate(xml, company_xsd)
    assert result.is_valid
    assert result.warnings == ['Element "motto" is not explicitly defined in the XSD schema']
    assert summary(result) == "Valid with 1 warning(s)"


def test_undeclared_root(company_xsd):
    result = validate("<shop><name>x</name></shop>", company_xsd)
    assert not result.is_valid
    assert 'Root element "shop" is not defined in the XSD schema' in result.errors


def test_malformed_inputs(company_xsd):
    result = validate("<a><b></a>", "<xs:schema")
    assert not result.is_valid
    assert len(result.errors) == 2
    assert result.errors[0].startswith("XML parsing error")
    assert result.errors[1].startswith("SCHEMA parsing error")


def test_empty_input(company_xsd):
    result = validate("  ", company_xsd)
    assert result.errors == ["XML content is empty"]


def test_schema_root_must_be_schema(company_xml):
    result = validate(company_xml, "<notaschema/>")
    assert result.errors == ["XSD root element must be xs:schema or schema"]
