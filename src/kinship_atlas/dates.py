"""Birth/death date normalization.

Dates arrive from the persistence layer as ISO strings, but hand-entered and
imported records also carry genealogy-style dates ("ABT 1905", "25 NOV 1954",
"April 17, 1850"). Everything is normalized to ``YYYY-MM-DD`` so callers can
compare dates as strings and pull out the birth year for generation seeding.
"""

import re

MONTH_MAP = {
    "JAN": 1,
    "JANUARY": 1,
    "FEB": 2,
    "FEBRUARY": 2,
    "MAR": 3,
    "MARCH": 3,
    "APR": 4,
    "APRIL": 4,
    "MAY": 5,
    "JUN": 6,
    "JUNE": 6,
    "JUL": 7,
    "JULY": 7,
    "AUG": 8,
    "AUGUST": 8,
    "SEP": 9,
    "SEPT": 9,
    "SEPTEMBER": 9,
    "OCT": 10,
    "OCTOBER": 10,
    "NOV": 11,
    "NOVEMBER": 11,
    "DEC": 12,
    "DECEMBER": 12,
}

_QUALIFIERS = re.compile(
    r"^(ABT\.?|ABOUT|BEF\.?|BEFORE|AFT\.?|AFTER|EST\.?|CAL\.?|FROM|TO|BET\.?|AND|CIRCA|CA\.?|AROUND):?\s*",
    flags=re.IGNORECASE,
)

# (pattern, order of the captured groups); "M" is a numeric month, "N" a month name
_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ][\d:.]+(?:Z|[+-]\d{2}:?\d{2})?)?$"), "YMD"),
    (re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$"), "DNY"),
    (re.compile(r"^([A-Za-z]+)\.?,?\s*(\d{4})$"), "NY"),
    (re.compile(r"^(\d{4})$"), "Y"),
    (re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$"), "MDY"),
    (re.compile(r"^(\d{1,2})\s+(\d{1,2})\s+(\d{4})$"), "MDY"),
    (re.compile(r"^([A-Za-z]+)\.?\s*(\d{1,2}),?\s*(\d{4})$"), "NDY"),
]


def _build_iso(fields: dict[str, str]) -> str | None:
    year = int(fields["Y"])
    if "N" in fields:
        month = MONTH_MAP.get(fields["N"].upper().rstrip("."))
        if month is None:
            return None
    else:
        month = int(fields.get("M", "1")) or 1
    day = int(fields.get("D", "1")) or 1
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_date_string(date_str: str | None) -> str | None:
    """
    Parse a date string into ISO format (YYYY-MM-DD).
    Returns None if the date cannot be parsed.

    Handles formats like:
    - "1950-01-01" and "1950-01-01T00:00:00Z"
    - "25 NOV 1954", "08 March 1893", "02 May1838"
    - "JAN 1905", "May, 1837"
    - "1698", "ABOUT 1905", "(1789?)"
    - "01-27-1920", "05/15/1923", "04 05 1911"
    - "April 17, 1850", "SEPT. 17,1910"
    A "00" month or day (as in "1746-00-00") is read as the first.
    """
    if not date_str:
        return None

    s = date_str.strip().strip("()").rstrip("?")
    s = _QUALIFIERS.sub("", s).strip()
    if not s:
        return None

    for pattern, order in _PATTERNS:
        match = pattern.match(s)
        if match:
            iso = _build_iso(dict(zip(order, match.groups())))
            if iso:
                return iso
    return None


def year_of(date_str: str | None) -> int | None:
    iso = parse_date_string(date_str)
    return int(iso[:4]) if iso else None
