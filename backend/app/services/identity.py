"""Name and date-of-birth heuristics for OCR'd government ID documents."""

import re
from datetime import date
from typing import Optional

NOISE_TOKENS = {
    "REST", "NONE", "SPN", "END", "CLASS", "DLN", "DOB", "EXP", "ISS", "EYES",
    "HAIR", "HGT", "WGT", "SEX", "DRIVER", "LICENSE", "USA", "POS", "ID",
}

LABELED_DOB_PATTERNS = (
    re.compile(r"\b(?:dob|date of birth|birth)\b[:\s]*([0-9]{1,2}[/\-][0-9]{1,2}[/\-][0-9]{4})", re.IGNORECASE),
    re.compile(r"\b(?:dob|date of birth|birth)\b[:\s]*([0-9]{1,2}[/\-][0-9]{1,2}[/\-][0-9]{2})\b", re.IGNORECASE),
    re.compile(r"\b([0-9]{4}[/\-][0-9]{1,2}[/\-][0-9]{1,2})\b"),
)
FALLBACK_DOB_PATTERN = re.compile(r"\b([0-9]{1,2}/[0-9]{1,2}/[0-9]{2,4})\b")

LABELED_NAME_PATTERN = re.compile(r"\b(?:full name|name)\b[:\s]*([A-Z][A-Z'\- ]{2,})", re.IGNORECASE)
# Driver-license layout: "1 LAST ... 2 FIRST MIDDLE"
NUMBERED_NAME_PATTERN = re.compile(r"\b1\s*([A-Z'\-]+)\b.*?\b2\s*([A-Z'\-]+(?:\s+[A-Z'\-]+)*)", re.IGNORECASE)
NOISE_PATTERN = re.compile(r"\b(?:" + "|".join(sorted(NOISE_TOKENS - {"POS", "ID"})) + r")\b", re.IGNORECASE)


def clean_spaces(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def normalize_text(value: str) -> str:
    """Drop OCR debris, keeping letters, digits and date punctuation."""
    value = value.replace("|", " ")
    value = re.sub(r"[^A-Za-z0-9/:\-. ]+", " ", value)
    return clean_spaces(value)


def expand_two_digit_year(value: str, today: Optional[date] = None) -> str:
    """Turn M/D/YY into M/D/YYYY, choosing the century that keeps it in the past."""
    parts = re.split(r"[/\-]", value)
    if len(parts) != 3 or len(parts[0]) == 4 or len(parts[2]) != 2:
        return value
    year = int(parts[2])
    current = (today or date.today()).year % 100
    century = 1900 if year > current else 2000
    return f"{parts[0]}/{parts[1]}/{century + year}"


def parse_dob(text: str, today: Optional[date] = None) -> Optional[str]:
    """Date of birth: label-anchored dates first, then a bare ISO-like date."""
    if not text:
        return None
    normalized = normalize_text(text)
    for pattern in LABELED_DOB_PATTERNS:
        match = pattern.search(normalized)
        if match:
            return expand_two_digit_year(match.group(1), today)
    match = FALLBACK_DOB_PATTERN.search(normalized)
    if match:
        return expand_two_digit_year(match.group(1), today)
    return None


def to_title_case(value: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in value.lower().split(" ") if part)


def clean_name_candidate(value: str) -> Optional[str]:
    normalized = clean_spaces(re.sub(r"[^A-Za-z'\- ]+", " ", value or ""))
    tokens = [
        token for token in normalized.split(" ")
        if token and token.upper() not in NOISE_TOKENS and token not in ("-", "'") and len(token) > 1
    ]
    if len(tokens) < 2:
        return None
    return to_title_case(" ".join(tokens))


def parse_name(text: str) -> Optional[str]:
    """Person name: "name"/"full name" label first, then the numbered ID layout."""
    if not text:
        return None
    cleaned = clean_spaces(NOISE_PATTERN.sub(" ", normalize_text(text)))

    labeled = LABELED_NAME_PATTERN.search(cleaned)
    if labeled:
        name = clean_name_candidate(labeled.group(1))
        if name:
            return name

    numbered = NUMBERED_NAME_PATTERN.search(cleaned)
    if numbered:
        return clean_name_candidate(f"{numbered.group(2)} {numbered.group(1)}")
    return None
