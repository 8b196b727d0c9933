"""Heuristic extraction of candidate fields from resume plain text.

Every field is an ordered list of (pattern, normalizer) rules evaluated by
first_match(): the first match whose normalizer returns a non-empty value
wins. Keyword tables live in constants.py.
"""

from __future__ import annotations

import re
from typing import Callable

from .constants import (
    DEFAULT_DOMAIN,
    DEFAULT_EXPERIENCE_BUCKET,
    DOMAIN_KEYWORDS,
    EXPERIENCE_BUCKETS,
    FRESHER_BUCKET,
    FRESHER_PHRASES,
    MAX_EXPERIENCE_YEARS,
    NAME_HEADER_WORDS,
    NAME_SCAN_LINES,
    RESUME_TEXT_LIMIT,
)
from .models import ParsedResume

Normalizer = Callable[[re.Match], "str | None"]
Rule = tuple[re.Pattern, Normalizer]


def first_match(text: str, rules: list[Rule]) -> str:
    """Return the first normalized value produced by the ordered rules, or ""."""
    for pattern, normalize in rules:
        for match in pattern.finditer(text):
            value = normalize(match)
            if value:
                return value
    return ""


# --- email ---

_EMAIL = r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"


def _email_value(match: re.Match) -> str:
    return match.group(1).rstrip(".").lower()


EMAIL_RULES: list[Rule] = [
    (re.compile(rf"\be-?mail(?:\s*(?:id|address))?\s*[:\-–]?\s*({_EMAIL})", re.IGNORECASE), _email_value),
    (re.compile(rf"({_EMAIL})"), _email_value),
]


def extract_email(text: str) -> str:
    return first_match(text, EMAIL_RULES)


# --- phone ---

_URL_RE = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)
_DOMAIN_RE = re.compile(r"\b[\w.-]+\.(?:com|in|org|net|io|co|dev|me|ai)(?:/\S*)?", re.IGNORECASE)
_YEAR_PREFIX_RANGE = (1950, 2030)


def normalize_phone(raw: str) -> str | None:
    """Normalize a captured phone string, or return None to reject it.

    Only the first of several numbers joined by "|", "/" or "," is kept.
    """
    segment = re.split(r"[|/,]", raw)[0]
    cleaned = re.sub(r"[^\d+]", "", segment)
    has_plus = cleaned.startswith("+")
    digits = cleaned.replace("+", "")

    if len(digits) < 10:
        return None
    if digits.startswith("91") and len(digits) >= 12:
        return "+91" + digits[-10:]
    if has_plus:
        return "+" + digits

    # A run that opens with a year is a date range, not a number.
    if _YEAR_PREFIX_RANGE[0] <= int(digits[:4]) <= _YEAR_PREFIX_RANGE[1]:
        return None
    return digits[-10:]


def _phone_value(match: re.Match) -> str | None:
    return normalize_phone(match.group(1))


PHONE_RULES: list[Rule] = [
    (
        re.compile(
            r"\b(?:phone|mobile|mob|cell|contact|tel|telephone|ph|whatsapp)\.?"
            r"(?:[ \t]*(?:no\.?|number|#))?[ \t]*[:\-–]?[ \t]*"
            r"(\+?\d[\d \t\-().|/,+]{8,40})",
            re.IGNORECASE,
        ),
        _phone_value,
    ),
    (re.compile(r"(?<![\d+])(\+\d[\d \t\-().]{9,18}\d)(?!\d)"), _phone_value),
    (re.compile(r"(?<![\d+])(\d[\d \t\-().]{8,16}\d)(?!\d)"), _phone_value),
]


def extract_phone(text: str) -> str:
    stripped = _DOMAIN_RE.sub(" ", _URL_RE.sub(" ", text))
    return first_match(stripped, PHONE_RULES)


# --- name ---

_NAME_LINE_RE = re.compile(r"^[A-Za-z]+(?:\s+[A-Za-z]+){1,3}$")


def _looks_like_name(line: str) -> bool:
    if not 4 <= len(line) <= 50 or not _NAME_LINE_RE.match(line):
        return False
    return not any(word in NAME_HEADER_WORDS for word in line.lower().split())


def _labeled_name(match: re.Match) -> str | None:
    value = " ".join(match.group(1).split())
    return value or None


NAME_RULES: list[Rule] = [
    (
        # The name ends at the line end or where another field starts on the same line.
        re.compile(
            r"^[ \t]*(?:full[ \t]+name|name)[ \t]*[:\-–][ \t]*"
            r"([A-Za-z][A-Za-z .'-]{0,48}?[A-Za-z.])[ \t]*(?=$|[|,;]|\t| {3,})",
            re.IGNORECASE | re.MULTILINE,
        ),
        _labeled_name,
    ),
]


def extract_name(text: str) -> str:
    labeled = first_match(text, NAME_RULES)
    if labeled:
        return labeled

    lines = [line.strip() for line in text.splitlines() if line.strip()]
    for line in lines[:NAME_SCAN_LINES]:
        lower = line.lower()
        if "@" in line or "http" in lower or "www." in lower or "linkedin" in lower:
            continue
        if line[0].isdigit() or ":" in line:
            continue
        candidate = " ".join(line.split())
        if _looks_like_name(candidate):
            return candidate
    return ""


# --- notice period ---

_NOTICE_LABEL = r"notice[ \t]*period[ \t]*(?:of|is|[:\-–])?[ \t]*"
_DURATION = r"(\d{1,3})[ \t]*(days?|weeks?|months?)"


def _notice_duration(match: re.Match) -> str:
    return f"{int(match.group(1))} {match.group(2).lower()}"


NOTICE_RULES: list[Rule] = [
    (re.compile(_NOTICE_LABEL + _DURATION, re.IGNORECASE), _notice_duration),
    (re.compile(_NOTICE_LABEL + r"immediate(?:ly)?", re.IGNORECASE), lambda m: "Immediate"),
    (
        re.compile(_NOTICE_LABEL + r"currently[ \t]+serving(?:[^\n\d]{0,30}" + _DURATION + ")?", re.IGNORECASE),
        lambda m: f"Currently serving ({_notice_duration(m)})" if m.group(1) else "Currently serving",
    ),
    (re.compile(r"\bimmediate(?:ly)?[ \t]+(?:available|joiner|joining)\b", re.IGNORECASE), lambda m: "Immediate"),
    (
        re.compile(r"\bcurrently[ \t]+serving[ \t]+(?:my[ \t]+|the[ \t]+)?notice(?:[ \t]+period)?\b", re.IGNORECASE),
        lambda m: "Currently serving",
    ),
]


def extract_notice_period(text: str) -> str:
    return first_match(text, NOTICE_RULES)


# --- domain ---


def detect_domain(text: str, domain_keywords: dict[str, list[str]] | None = None) -> str:
    """Return the domain with the most keyword hits; ties keep the earlier entry."""
    table = DOMAIN_KEYWORDS if domain_keywords is None else domain_keywords
    lower = text.lower()

    best_domain = DEFAULT_DOMAIN
    best_count = 0
    for domain, keywords in table.items():
        count = sum(1 for kw in keywords if kw in lower)
        if count > best_count:
            best_domain = domain
            best_count = count
    return best_domain


# --- experience ---

_YEARS = r"(?:years?|yrs?)"
_NUMBER = r"(\d{1,2}(?:\.\d+)?)"


def _years_value(match: re.Match) -> str | None:
    years = float(match.group(1))
    if 0 < years <= MAX_EXPERIENCE_YEARS:
        return match.group(1)
    return None


EXPERIENCE_RULES: list[Rule] = [
    (re.compile(rf"\b(?:total[ \t]+)?experience[ \t]*[:\-–][ \t]*{_NUMBER}[ \t]*\+?[ \t]*{_YEARS}", re.IGNORECASE), _years_value),
    (
        re.compile(
            rf"\b{_NUMBER}[ \t]*\+?[ \t]*{_YEARS}[ \t]+(?:of[ \t]+)?"
            r"(?:(?:professional|total|work|industry|relevant|hands-on)[ \t]+)?experience",
            re.IGNORECASE,
        ),
        _years_value,
    ),
    (re.compile(rf"\b(\d{{1,2}})[ \t]*(?:-|–|to)[ \t]*\d{{1,2}}[ \t]*{_YEARS}\b", re.IGNORECASE), _years_value),
    (re.compile(rf"\b{_NUMBER}[ \t]*\+?[ \t]*{_YEARS}\b", re.IGNORECASE), _years_value),
]

_FRESHER_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in FRESHER_PHRASES) + r")\b",
    re.IGNORECASE,
)


def extract_years(text: str) -> float:
    value = first_match(text, EXPERIENCE_RULES)
    return float(value) if value else 0.0


def experience_bucket(years: float) -> str:
    for minimum, label in EXPERIENCE_BUCKETS:
        if years >= minimum:
            return label
    return DEFAULT_EXPERIENCE_BUCKET


def detect_experience_level(text: str) -> str:
    years = extract_years(text)
    if years == 0 and _FRESHER_RE.search(text):
        return FRESHER_BUCKET
    return experience_bucket(years)


# --- all fields ---


def parse_resume_text(text: str) -> ParsedResume:
    """Derive every candidate field from resume plain text. No I/O."""
    text = text or ""
    return ParsedResume(
        name=extract_name(text),
        email=extract_email(text),
        phone=extract_phone(text),
        domain=detect_domain(text),
        experience_level=detect_experience_level(text),
        notice_period=extract_notice_period(text),
        resume_text=text[:RESUME_TEXT_LIMIT],
    )
