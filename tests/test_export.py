import pytest

from xmlform.errors import ParseFailure
from xmlform.export import export_artifact


def test_xml_artifact(company_xml):
    art = export_artifact(company_xml, "xml", source_name="acme.xml")
    assert art.filename == "acme.xml"
    assert art.media_type == "application/xml"
    assert art.data.startswith(b'<?xml version="1.0" encoding="UTF-8"?>')


def test_html_artifact(company_xml, company_xsd):
    art = export_artifact(company_xml, "html", company_xsd, source_name="acme.xml")
    assert art.filename == "acme_preview.html"
    assert art.media_type == "text/html"
    text = art.data.decode("utf-8")
    assert text.startswith("<!DOCTYPE html>")
    assert "<select" in text


def test_word_artifact(company_xml):
    art = export_artifact(company_xml, "doc", source_name="acme.xml")
    assert art.filename == "acme_converted.doc"
    assert art.media_type == "application/msword"
    text = art.data.decode("utf-8")
    assert 'xmlns:w="urn:schemas-microsoft-com:office:word"' in text
    assert "Acme Corp" in text


def test_unknown_format(company_xml):
    with pytest.raises(ValueError):
        export_artifact(company_xml, "pdf")


def test_malformed_xml_is_not_exported():
    with pytest.raises(ParseFailure):
        export_artifact("<r>", "xml")
