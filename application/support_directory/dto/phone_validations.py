import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_phone(phone: Optional[str]) -> str:
    """Strip every whitespace character; no other rewriting is applied."""
    if not phone:
        return ""
    return _WHITESPACE.sub("", str(phone)).strip()


def phones_match(stored: Optional[str], verified: Optional[str]) -> bool:
    stored_phone = normalize_phone(stored)
    return bool(stored_phone) and stored_phone == normalize_phone(verified)
