"""Downloadable artifacts: the XML itself, a standalone HTML page, or a Word-openable .doc."""
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from . import schema_index
from .config import DEFAULT_SETTINGS, Settings
from .forward import to_document
from .markup import CSS, render_html
from .xmlio import parse_xml, serialize

MEDIA_TYPES = {"xml": "application/xml", "html": "text/html", "doc": "application/msword"}

WORD_HEAD = """<!DOCTYPE html>
<html xmlns:o="urn:schemas-microsoft-com:office:office" xmlns:w="urn:schemas-microsoft-com:office:word" xmlns="http://www.w3.org/TR/REC-html40">
<head>
<meta charset="UTF-8">
<meta name="ProgId" content="Word.Document">
<title>{title}</title>
<!--[if gte mso 9]><xml><w:WordDocument><w:View>Print</w:View><w:Zoom>90</w:Zoom><w:DoNotPromptForConvert/></w:WordDocument></xml><![endif]-->
<style>
@page {{ margin: 1in; }}
body {{ font-family: 'Times New Roman', serif; font-size: 12pt; line-height: 1.6; }}
{css}
</style>
</head>
<body>
"""


class Artifact(BaseModel):
    filename: str
    media_type: str
    data: bytes


def artifact_name(source_name: str, fmt: str) -> str:
    stem = Path(source_name).stem or "document"
    if fmt == "doc":
        return f"{stem}_converted.doc"
    if fmt == "html":
        return f"{stem}_preview.html"
    return f"{stem}.xml"

def export_artifact(xml_text: str, fmt: str = "xml", schema_text: Optional[str] = None,
                    source_name: str = "document.xml", settings: Settings = DEFAULT_SETTINGS) -> Artifact:
    """Package a document for download. Raises ParseFailure on malformed XML, ValueError on an unknown format."""
    if fmt not in MEDIA_TYPES:
        raise ValueError(f"unknown export format {fmt!r}; expected one of {', '.join(MEDIA_TYPES)}")
    root = parse_xml(xml_text, settings)
    if fmt == "xml":
        body = serialize(root, settings.indent)
    else:
        index = schema_index.build(schema_text) if schema_text else None
        doc = to_document(root, index, settings)
        if fmt == "html":
            body = render_html(doc, settings, standalone=True)
        else:
            body = WORD_HEAD.format(title=doc.label, css=CSS) + render_html(doc, settings) + "\n</body>\n</html>\n"
    return Artifact(filename=artifact_name(source_name, fmt), media_type=MEDIA_TYPES[fmt],
                    data=body.encode("utf-8"))
