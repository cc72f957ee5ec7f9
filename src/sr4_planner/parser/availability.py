"""Parse availability codes like "12R", "8+2F", or "-"."""

import re
from dataclasses import dataclass

RESTRICTED = "R"
FORBIDDEN = "F"

_AVAIL_RE = re.compile(r"^\s*(\d+)(?:\s*\+\s*(\d+))?\s*([RrFf])?\s*$")


@dataclass(frozen=True, slots=True)
class Availability:
    rating: int = 0
    restriction: str | None = None   # "R", "F", or None

    @property
    def restricted(self) -> bool:
        return self.restriction == RESTRICTED

    @property
    def forbidden(self) -> bool:
        return self.restriction == FORBIDDEN


def parse_availability(raw: str | None) -> Availability:
    """Parse an availability string.

    Empty or "-" means freely available (0). "8+2" sums to 10. The
    restriction letter is upper-cased.
    """
    if raw is None:
        return Availability()
    text = raw.strip()
    if not text or text == "-":
        return Availability()
    match = _AVAIL_RE.match(text)
    if match is None:
        raise ValueError(f"Unrecognised availability: {raw!r}")
    rating = int(match.group(1))
    if match.group(2):
        rating += int(match.group(2))
    restriction = match.group(3).upper() if match.group(3) else None
    return Availability(rating=rating, restriction=restriction)
