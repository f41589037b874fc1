"""
Investment track code ("kod maslul hashkaa") parsing.

The code is 30 digits:
- digits 1-9: company registration (H.P.) number
- digits 10-23: fund income-tax approval number
- digits 24-30: investment track number
"""
import re
from typing import Optional

import structlog

from product_matching.models.domain import MaslulCodeParts

logger = structlog.get_logger(__name__)

MASLUL_CODE_LENGTH = 30

_WHITESPACE = re.compile(r"\s")
_DIGITS = re.compile(r"^\d+$")


def _clean(code: Optional[str]) -> str:
    return _WHITESPACE.sub("", code or "")


def is_valid_maslul_code(code: Optional[str]) -> bool:
    cleaned = _clean(code)
    return len(cleaned) == MASLUL_CODE_LENGTH and bool(_DIGITS.match(cleaned))


def parse_maslul_code(code: Optional[str]) -> Optional[MaslulCodeParts]:
    """Split a track code into its parts; None if it is not 30 digits"""
    if not is_valid_maslul_code(code):
        logger.warning("Invalid investment track code", code=code)
        return None

    cleaned = _clean(code)
    return MaslulCodeParts(
        hp_number=cleaned[0:9],
        tax_approval_number=cleaned[9:23],
        track_number=cleaned[23:30],
    )


def get_tax_approval_number(code: Optional[str]) -> Optional[str]:
    parts = parse_maslul_code(code)
    return parts.tax_approval_number if parts else None
