from __future__ import annotations

import re

from toll_checker.utils.errors import InvalidPlateError

_SEPARATORS = re.compile(r"[\s\-._/]+")


def normalize_plate(raw: str | None) -> str:
    """
    What it does:
    - Uppercases a plate and strips separators ("ab-123 cd" -> "AB123CD").

    Behavior:
    - Idempotent: normalize_plate(normalize_plate(p)) == normalize_plate(p).
    - Raises InvalidPlateError when nothing is left.
    """
    value = _SEPARATORS.sub("", raw or "").upper()
    if not value:
        raise InvalidPlateError("missing plate")
    return value
