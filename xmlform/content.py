"""Leaf-content classification.

Infers what a text value looks like (email, phone, date, ...) so the
document view can pick a display/editing affordance. The stored value is
never changed by this; the kind is recomputed every time a value is shown.
"""
import datetime as dt
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from .textutils import (
    EMAIL_RE, DOMAIN_URL_RE, PHONE_CHARS_RE, PHONE_SEP_RE, YMD_RE, DMY_RE, ISO_DT_RE,
    TIME_RE, CURRENCY_SYMBOL_RE, CURRENCY_CODE_RE, NUMBER_RE, digit_count,
)

PARAGRAPH_THRESHOLD = 100


class ContentKind(str, Enum):
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"
    DATE = "date"
    TIME = "time"
    CURRENCY = "currency"
    NUMBER = "number"
    PARAGRAPH = "paragraph"
    PLAIN = "plain"


LABELS = {
    ContentKind.EMAIL: "Email",
    ContentKind.URL: "Link",
    ContentKind.PHONE: "Phone",
    ContentKind.DATE: "Date",
    ContentKind.TIME: "Time",
    ContentKind.CURRENCY: "Amount",
    ContentKind.NUMBER: "Value",
    ContentKind.PARAGRAPH: "Text",
    ContentKind.PLAIN: "",
}


# ---------- Individual checks ----------
def is_email(t: str) -> bool:
    return bool(EMAIL_RE.match(t))

def is_url(t: str) -> bool:
    if " " in t:
        return False
    try:
        parts = urlsplit(t)
    except ValueError:  # e.g. unbalanced IPv6 brackets
        return False
    if parts.scheme and parts.netloc and parts.scheme.isalpha():
        return True
    return bool(DOMAIN_URL_RE.match(t))

def is_date_shaped(t: str) -> bool:
    return bool(YMD_RE.match(t) or DMY_RE.match(t) or ISO_DT_RE.match(t))

def parse_date(t: str) -> Optional[dt.date]:
    """Calendar date for a date-shaped string, None when the shape or the date is invalid."""
    m = YMD_RE.match(t)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(3)), int(m.group(4)))
    m = ISO_DT_RE.match(t)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    m = DMY_RE.match(t)
    if m:
        a, b, y = int(m.group(1)), int(m.group(3)), int(m.group(4))
        # DD/MM first, MM/DD when that is the only valid reading
        return _safe_date(y, b, a) or _safe_date(y, a, b)
    return None

def _safe_date(y: int, m: int, d: int) -> Optional[dt.date]:
    try:
        return dt.date(y, m, d)
    except ValueError:
        return None

def is_phone(t: str) -> bool:
    if not PHONE_CHARS_RE.match(t) or is_date_shaped(t):
        return False
    n = digit_count(t)
    if not 7 <= n <= 15:
        return False
    if t.count("(") != t.count(")") or t.endswith("-") or t.startswith("-"):
        return False
    has_sep = t.startswith("+") or bool(PHONE_SEP_RE.search(t))
    return has_sep or n >= 10

def is_time(t: str) -> bool:
    return bool(TIME_RE.match(t))

def is_currency(t: str) -> bool:
    return bool(CURRENCY_SYMBOL_RE.match(t) or CURRENCY_CODE_RE.match(t))

def is_number(t: str) -> bool:
    return bool(NUMBER_RE.match(t)) and not is_date_shaped(t)


# ---------- Public ----------
def classify(text: str, paragraph_threshold: int = PARAGRAPH_THRESHOLD) -> ContentKind:
    t = (text or "").strip()
    if not t:
        return ContentKind.PLAIN
    if is_email(t): return ContentKind.EMAIL
    if is_url(t): return ContentKind.URL
    if is_phone(t): return ContentKind.PHONE
    if parse_date(t) is not None: return ContentKind.DATE
    if is_time(t): return ContentKind.TIME
    if is_currency(t): return ContentKind.CURRENCY
    if is_number(t): return ContentKind.NUMBER
    if len(t) > paragraph_threshold: return ContentKind.PARAGRAPH
    return ContentKind.PLAIN

def describe(kind: ContentKind) -> str:
    return LABELS.get(kind, "")

def format_date_display(text: str) -> str:
    """'2024-01-15' -> 'January 15, 2024'; anything else is returned unchanged."""
    d = parse_date((text or "").strip())
    if d is None:
        return text
    return f"{d.strftime('%B')} {d.day}, {d.year}"
