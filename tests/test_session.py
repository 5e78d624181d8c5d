from xmlform.config import Settings
from xmlform.editor import CommitField
from xmlform.models import InvalidDocument
from xmlform.session import ConversionSession
from xmlform.xmlio import parse_xml, serialize


def test_load_edit_save(company_xml, company_xsd):
    session = ConversionSession()
    session.load_schema(company_xsd)
    session.load_xml(company_xml)
    session.dispatch(CommitField(target="0.2", value="43"))
    result = session.save()
    assert result.ok
    assert "<headcount>43</headcount>" in result.xml
    assert session.document.find("0.2").raw_value == "43"


def test_bad_xml_keeps_previous_document(company_xml):
    session = ConversionSession()
    session.load_xml(company_xml)
    before = session.document
    result = session.load_xml("<company><broken></company>")
    assert isinstance(result, InvalidDocument)
    assert session.document == before
    assert session.messages[-1].startswith("XML parsing error")


def test_schema_reload_rebuilds_view(company_xml, company_xsd):
    session = ConversionSession()
    session.load_xml(company_xml)
    assert not session.document.find("0.3").choices
    session.load_schema(company_xsd)
    assert session.document.find("0.3").choices == ["Engineer", "Manager", "Intern"]


def test_cancel_restores_last_saved(company_xml):
    session = ConversionSession()
    session.load_xml(company_xml)
    session.dispatch(CommitField(target="0.0", value="Changed"))
    session.cancel()
    assert session.document.find("0.0").raw_value == "Acme Corp"


def test_rejected_edit_is_reported(company_xml, company_xsd):
    session = ConversionSession()
    session.load_schema(company_xsd)
    session.load_xml(company_xml)
    session.dispatch(CommitField(target="0.3", value="CEO"))
    assert "CEO" in session.messages[-1]


def test_save_markup_round_trip(company_xml):
    session = ConversionSession()
    session.load_xml(company_xml)
    markup = session.render_html().replace(">Acme Corp<", ">Acme Ltd<")
    result = session.save_markup(markup)
    assert result.ok
    assert "<name>Acme Ltd</name>" in result.xml


def test_broken_markup_keeps_last_good_xml(company_xml):
    session = ConversionSession()
    session.load_xml(company_xml)
    result = session.save_markup("<div>no document here</div>")
    assert not result.ok
    assert result.xml == serialize(parse_xml(company_xml))
    assert session.document is not None


def test_indent_setting(company_xml):
    session = ConversionSession(Settings(indent=4))
    session.load_xml(company_xml)
    assert "\n    <name>Acme Corp</name>" in session.save().xml


def test_render_without_document():
    assert "no document loaded" in ConversionSession().render_html()
