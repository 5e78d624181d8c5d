import re

# ---------- Regex (public) ----------
EMAIL_RE      = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
DOMAIN_URL_RE = re.compile(
    r"^(https?://)?(www\.)?[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*\.[A-Za-z]{2,}(/\S*)?$"
)
PHONE_CHARS_RE = re.compile(r"^\+?[\d\s\-()]+$")
PHONE_SEP_RE   = re.compile(r"[\s\-()]")
YMD_RE        = re.compile(r"^(\d{4})([-/])(\d{1,2})\2(\d{1,2})$")
DMY_RE        = re.compile(r"^(\d{1,2})([-/])(\d{1,2})\2(\d{4})$")
ISO_DT_RE     = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?$"
)
TIME_RE       = re.compile(r"^(?:[01]?\d|2[0-3]):[0-5]\d(?::[0-5]\d)?(?:\s?[AaPp][Mm])?$")
CURRENCY_CODES = ("USD", "EUR", "GBP", "JPY", "INR", "CAD", "AUD", "CHF", "CNY")
_AMOUNT       = r"(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{1,2})?"
_CODES        = "|".join(CURRENCY_CODES)
CURRENCY_SYMBOL_RE = re.compile(rf"^-?[$€£¥₹]\s?-?{_AMOUNT}$")
CURRENCY_CODE_RE   = re.compile(rf"^(?:-?{_AMOUNT}\s?(?:{_CODES})|(?:{_CODES})\s?-?{_AMOUNT})$", re.I)
NUMBER_RE     = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")

CAMEL_RE      = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
SEPARATOR_RE  = re.compile(r"[_\-.]+")

HTML_ENTITIES = (("&lt;", "<"), ("&gt;", ">"), ("&quot;", '"'), ("&#x27;", "'"), ("&amp;", "&"))

# ---------- Small helpers ----------
def format_tag_name(tag: str) -> str:
    """'firstName' -> 'First Name', 'order_items' -> 'Order items'."""
    words = SEPARATOR_RE.sub(" ", CAMEL_RE.sub(" ", tag or ""))
    words = re.sub(r"\s+", " ", words).strip()
    return words[:1].upper() + words[1:]

def looks_escaped(text: str) -> bool:
    return (text or "").lstrip().startswith("&lt;")

def unescape_html(text: str) -> str:
    # &amp; last, otherwise "&amp;lt;" would decode twice
    for ent, ch in HTML_ENTITIES:
        text = text.replace(ent, ch)
    return text

def escape_text(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")

def escape_attr(text: str) -> str:
    return escape_text(text).replace('"', "&quot;")

def digit_count(text: str) -> int:
    return sum(1 for ch in text if ch.isdigit())

def collapse_ws(s: str) -> str:
    return re.sub(r"\s+", " ", s or "").strip()
