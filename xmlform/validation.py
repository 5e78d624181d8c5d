"""Structural check of a document against its schema.

This is not XSD validation: it checks well-formedness, that the root is
declared, flags undeclared elements and checks enumerated values. Use
`xmllint --schema` or lxml's XMLSchema when conformance matters.
"""
from typing import List

from loguru import logger
from lxml import etree
from pydantic import BaseModel, Field

from . import schema_index
from .errors import ParseFailure
from .xmlio import direct_text, local_name, parse_document


class ValidationResult(BaseModel):
    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def fail(self, message: str):
        self.errors.append(message)
        self.is_valid = False


def well_formed(text: str, source: str, result: ValidationResult):
    if not (text or "").strip():
        result.fail(f"{source.upper()} content is empty")
        return None
    try:
        return parse_document(text, source=source)
    except ParseFailure as e:
        result.fail(str(e))
        return None

def validate(xml_text: str, schema_text: str) -> ValidationResult:
    result = ValidationResult()
    doc = well_formed(xml_text, "xml", result)
    xsd = well_formed(schema_text, "schema", result)
    if doc is None or xsd is None:
        return result

    if local_name(xsd) != "schema":
        result.fail("XSD root element must be xs:schema or schema")
        return result

    index = schema_index.build(schema_text)
    root_name = local_name(doc)
    if root_name not in index:
        result.fail(f'Root element "{root_name}" is not defined in the XSD schema')
    elif index.root_names and root_name not in index.root_names:
        result.warnings.append(f'Root element "{root_name}" is declared, but not as a top-level element')

    undeclared = set()
    for el in doc.iter(etree.Element):
        name = local_name(el)
        if name not in index:
            if name not in undeclared and name != root_name:
                undeclared.add(name)
                result.warnings.append(f'Element "{name}" is not explicitly defined in the XSD schema')
            continue
        desc = index[name]
        value = direct_text(el)
        if desc.is_enum and value and value not in desc.enumeration_values:
            result.fail(f'Element "{name}" (line {el.sourceline}) has value "{value}", '
                        f'expected one of: {", ".join(desc.enumeration_values)}')

    logger.debug(f"Validation: {len(result.errors)} errors, {len(result.warnings)} warnings")
    return result

def summary(result: ValidationResult) -> str:
    if result.is_valid:
        if result.warnings:
            return f"Valid with {len(result.warnings)} warning(s)"
        return "Valid - XML conforms to the schema's declared elements"
    return f"Invalid - {len(result.errors)} error(s) found"
