from xmlform import schema_index
from xmlform.models import FieldKind, STRING_FIELD
from xmlform.schema_index import SchemaFieldIndex, TypeRegistry, heuristic_doc
from xmlform.textutils import escape_text


def test_kinds_and_enumerations(company_xsd):
    index = schema_index.build(company_xsd)
    assert index["role"].kind == FieldKind.ENUM
    assert index["role"].enumeration_values == ["Engineer", "Manager", "Intern"]
    assert index["founded"].kind == FieldKind.DATE
    assert index["headcount"].kind == FieldKind.NUMBER
    assert index["fullName"].kind == FieldKind.STRING
    assert index.root_names == ["company"]


def test_enum_inherited_through_named_base(company_xsd):
    lead = schema_index.build(company_xsd)["lead"]
    assert lead.is_enum
    assert lead.type_name == "LeadRole"
    assert lead.enumeration_values == ["Engineer", "Manager", "Intern"]


def test_enumeration_documentation_tiers(company_xsd):
    docs = schema_index.build(company_xsd)["role"].enumeration_docs
    assert docs["Intern"] == "Temporary position"
    assert docs["Engineer"] == "Builds things"
    assert docs["Manager"] == "Runs the team"


def test_element_documentation(company_xsd):
    assert schema_index.build(company_xsd)["name"].documentation == "Registered company name"


def test_preceding_comment_style():
    xsd = """<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
      <xs:element name="size"><xs:simpleType><xs:restriction base="xs:string">
        <!-- Small cup -->
        <xs:enumeration value="S"/>
        <!-- Large cup -->
        <xs:enumeration value="L"/>
      </xs:restriction></xs:simpleType></xs:element>
    </xs:schema>"""
    docs = schema_index.build(xsd)["size"].enumeration_docs
    assert docs == {"S": "Small cup", "L": "Large cup"}


def test_preceding_comment_belongs_to_next_value():
    xsd = ('<!-- Small cup -->\n  <xs:enumeration value="S"/>\n'
           "  <!-- Large cup -->\n  <xs:enumeration value='L'/>")
    assert heuristic_doc(xsd, "S", "preceding") == "Small cup"
    assert heuristic_doc(xsd, "L", "preceding") == "Large cup"


def test_following_comment_style():
    xsd = ('<xs:enumeration value="S"/> <!-- Small cup -->\n'
           '<xs:enumeration value="L"/> <!-- Large cup -->')
    assert heuristic_doc(xsd, "S", "following") == "Small cup"
    assert heuristic_doc(xsd, "L", "following") == "Large cup"


def test_labelled_comment_fallback():
    assert heuristic_doc("<!-- XL: extra large -->", "XL", "following") == "extra large"


def test_escaped_schema_is_unescaped(company_xsd):
    index = schema_index.build(escape_text(company_xsd))
    assert index["role"].is_enum


def test_unparsable_schema_gives_empty_index(log_messages):
    index = schema_index.build("<xs:schema><broken")
    assert index.is_empty
    assert index.get("anything") is STRING_FIELD
    assert any("Schema ignored" in m for m in log_messages)


def test_first_declaration_wins():
    xsd = """<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
      <xs:element name="code" type="xs:integer"/>
      <xs:element name="code" type="xs:date"/>
    </xs:schema>"""
    assert schema_index.build(xsd)["code"].kind == FieldKind.NUMBER


def test_unknown_tag_falls_back_to_string():
    assert SchemaFieldIndex().get("missing") == STRING_FIELD


def test_type_registry_ids_are_stable():
    reg = TypeRegistry()
    first = reg.register("A", object())
    assert reg.register("B", object()) == first + 1
    assert reg.register("A", object()) == first
    assert reg.id_of("a") is None
    assert len(reg) == 2
