import argparse, json, sys
from pathlib import Path

from loguru import logger

from .config import Settings, configure_logging
from .content import classify
from .errors import XmlFormError
from .export import MEDIA_TYPES, export_artifact
from .schema_gen import generate_schema
from .session import ConversionSession
from .validation import summary, validate
from .xmlio import parse_xml, serialize


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")

def open_session(args, settings: Settings) -> ConversionSession:
    session = ConversionSession(settings)
    if getattr(args, "schema", None):
        session.load_schema(read_text(args.schema))
    return session

def count_units(doc) -> dict:
    units = list(doc.walk())
    return {"units": len(units), "tables": sum(1 for u in units if u.has_table),
            "fields": sum(1 for u in units if u.is_editable)}


# ---------- Commands ----------
def cmd_render(args, settings: Settings) -> int:
    session = open_session(args, settings)
    doc = session.load_xml(read_text(args.xml))
    if session.document is None:
        print(f"ERROR: {doc.message}", file=sys.stderr)
        return 2
    out = args.out or args.xml.with_suffix(".html")
    out.write_text(session.render_html(standalone=True), encoding="utf-8")
    print(json.dumps({"wrote_html": str(out), **count_units(doc)}, ensure_ascii=False))
    return 0

def cmd_save(args, settings: Settings) -> int:
    result = ConversionSession(settings).save_markup(read_text(args.html))
    if not result.ok:
        print(f"ERROR: {result.message}", file=sys.stderr)
        return 2
    args.out.write_text(result.xml, encoding="utf-8")
    print(json.dumps({"wrote_xml": str(args.out)}, ensure_ascii=False))
    return 0

def cmd_roundtrip(args, settings: Settings) -> int:
    session = open_session(args, settings)
    source = read_text(args.xml)
    doc = session.load_xml(source)
    if session.document is None:
        print(f"ERROR: {doc.message}", file=sys.stderr)
        return 2
    result = session.save_markup(session.render_html())
    if not result.ok:
        print(f"ERROR: {result.message}", file=sys.stderr)
        return 2
    same = result.xml == serialize(parse_xml(source, settings), settings.indent)
    if args.out:
        args.out.write_text(result.xml, encoding="utf-8")
    elif not same:
        sys.stdout.write(result.xml)
    print(json.dumps({"identical": same, **count_units(doc),
                      **({"wrote_xml": str(args.out)} if args.out else {})}, ensure_ascii=False))
    return 0 if same else 1

def cmd_classify(args, settings: Settings) -> int:
    rows = [{"text": t, "kind": classify(t, settings.paragraph_threshold).value} for t in args.text]
    print(json.dumps(rows, ensure_ascii=False))
    return 0

def cmd_validate(args, settings: Settings) -> int:
    result = validate(read_text(args.xml), read_text(args.xsd))
    print(json.dumps({"summary": summary(result), **result.model_dump()}, ensure_ascii=False))
    return 0 if result.is_valid else 1

def cmd_gen_schema(args, settings: Settings) -> int:
    xsd = generate_schema(parse_xml(read_text(args.xml), settings))
    if args.out:
        args.out.write_text(xsd, encoding="utf-8")
        print(json.dumps({"wrote_schema": str(args.out)}, ensure_ascii=False))
    else:
        sys.stdout.write(xsd)
    return 0

def cmd_export(args, settings: Settings) -> int:
    schema_text = read_text(args.schema) if args.schema else None
    art = export_artifact(read_text(args.xml), args.format, schema_text, args.xml.name, settings)
    out = args.out or args.xml.with_name(art.filename)
    out.write_bytes(art.data)
    print(json.dumps({"wrote": str(out), "media_type": art.media_type, "bytes": len(art.data)}, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="xmlform", description="XML <-> editable document transcoder.")
    ap.add_argument("--log-level", type=str, default=None, help="Override LOGURU_LEVEL / XMLFORM_LOG_LEVEL")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("render", help="XML -> standalone HTML document view")
    p.add_argument("xml", type=Path)
    p.add_argument("--schema", type=Path, default=None, help="XSD used for enumerations and field kinds")
    p.add_argument("--out", type=Path, default=None, help="Output HTML (default: next to the XML)")
    p.set_defaults(func=cmd_render)

    p = sub.add_parser("save", help="Edited HTML -> XML")
    p.add_argument("html", type=Path)
    p.add_argument("--out", type=Path, required=True, help="Output XML")
    p.set_defaults(func=cmd_save)

    p = sub.add_parser("roundtrip", help="XML -> HTML -> XML, report whether anything changed")
    p.add_argument("xml", type=Path)
    p.add_argument("--schema", type=Path, default=None)
    p.add_argument("--out", type=Path, default=None)
    p.set_defaults(func=cmd_roundtrip)

    p = sub.add_parser("classify", help="Content kind of each TEXT")
    p.add_argument("text", nargs="+")
    p.set_defaults(func=cmd_classify)

    p = sub.add_parser("validate", help="Structural check of XML against XSD")
    p.add_argument("xml", type=Path)
    p.add_argument("xsd", type=Path)
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("gen-schema", help="Infer an XSD skeleton from a sample XML")
    p.add_argument("xml", type=Path)
    p.add_argument("--out", type=Path, default=None)
    p.set_defaults(func=cmd_gen_schema)

    p = sub.add_parser("export", help="Package XML as .xml, .html or .doc")
    p.add_argument("xml", type=Path)
    p.add_argument("--format", choices=sorted(MEDIA_TYPES), default="xml")
    p.add_argument("--schema", type=Path, default=None)
    p.add_argument("--out", type=Path, default=None)
    p.set_defaults(func=cmd_export)
    return ap

def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.log_level:
        settings = settings.model_copy(update={"log_level": args.log_level})
    configure_logging(settings.log_level)

    for name in ("xml", "html", "xsd", "schema"):
        path = getattr(args, name, None)
        if path is not None and not path.exists():
            print(f"ERROR: file not found: {path}", file=sys.stderr)
            return 1
    try:
        return args.func(args, settings)
    except XmlFormError as e:
        logger.debug(f"{args.command} failed: {e!r}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

if __name__ == "__main__":
    sys.exit(main())
