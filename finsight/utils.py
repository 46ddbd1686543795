import os
import re
import logging
from datetime import datetime
from typing import Optional, Any

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}
GENERIC_CONTENT_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


# Upload validation helpers
def is_pdf(filename: Optional[str], content_type: Optional[str] = None) -> bool:
    """Client-side guard for uploads: only PDF documents go to the backend.

    A PDF content type is enough on its own. A ".pdf" name is accepted when
    the browser sent no content type or a generic binary one.
    """
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type in PDF_CONTENT_TYPES:
        return True

    extension = os.path.splitext(filename or "")[1].lower()
    return extension == ".pdf" and content_type in GENERIC_CONTENT_TYPES


# Display formatting helpers
def format_inr(amount: Any) -> str:
    """Format a rupee amount with Indian digit grouping, e.g. ₹10,80,000"""
    try:
        value = int(round(float(amount)))
    except (TypeError, ValueError, OverflowError):
        value = 0

    sign = "-" if value < 0 else ""
    digits = str(abs(value))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}₹{digits}"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        logger.debug(f"Unparseable timestamp: {value!r}")
        return None


def format_timestamp(value: Optional[str]) -> str:
    """Render an ISO-8601 timestamp as 'Jul 29, 2025, 03:59 AM'.

    Malformed timestamps are shown as received.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or ""
    return parsed.strftime("%b %d, %Y, %I:%M %p")


def format_date(value: Optional[str]) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or ""
    return parsed.strftime("%b %d, %Y")


def title_case(text: str) -> str:
    """Capitalise every word, lower-casing the rest: 'PUBLIC provident' -> 'Public Provident'"""
    return re.sub(r"\b\w+\b", lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)
