"""
Fuzzy recovery of the claimed Ada number from raw OCR text.

Used only when no structured pattern found an Ada number: the label may be
unreadable while the digits survive. We search for the USER'S number with
every digit widened to its optical look-alikes and optional whitespace
between positions ("1 2 3 4" across table cells).

A hit confirms presence; the value returned is the claim exactly as typed,
never the matched substring.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# Character classes per digit; matched case-insensitively
_LOOKALIKES: dict[str, str] = {
    "1": "[1lI|]",
    "0": "[0Oo]",
    "5": "[5Ss]",
    "8": "[8B]",
}


def build_fuzzy_pattern(claimed: str) -> re.Pattern[str] | None:
    """Compile the OCR-tolerant pattern for ``claimed``.

    Example:
        "1058" → [1lI|]\\s*[0Oo]\\s*[5Ss]\\s*[8B]

    Returns:
        None when the claim is blank.
    """
    chars = [c for c in claimed.strip() if not c.isspace()]
    if not chars:
        return None
    positions = [_LOOKALIKES.get(c, re.escape(c)) for c in chars]
    return re.compile(r"\s*".join(positions), re.IGNORECASE)


def recover_identifier(text: str, claimed: str) -> str | None:
    """Return ``claimed`` (stripped) if an OCR-tolerant rendition appears in ``text``."""
    pattern = build_fuzzy_pattern(claimed)
    if pattern is None:
        return None

    match = pattern.search(text)
    if match is None:
        logger.info("Fuzzy recovery found no rendition of %r", claimed.strip())
        return None

    logger.warning(
        "Fuzzy recovery matched %r for claimed Ada number %r", match.group(0), claimed.strip()
    )
    return claimed.strip()
