"""Keyword scoring that decides whether an email is a job application."""

from .constants import (
    CONFIDENCE_PER_MATCH,
    CONFIDENCE_THRESHOLD,
    MIN_KEYWORD_MATCHES,
    NEGATIVE_KEYWORDS,
    NEGATIVE_WEIGHT,
    POSITIVE_KEYWORDS,
)
from .models import ClassificationResult


def classify(
    subject: str,
    body_text: str,
    positive_keywords: list[str] | None = None,
    negative_keywords: list[str] | None = None,
) -> ClassificationResult:
    """Score subject + body against the keyword lexicons.

    Each distinct positive phrase adds one point, each negative phrase costs
    NEGATIVE_WEIGHT points. Confidence is the clamped score times
    CONFIDENCE_PER_MATCH, capped at 100. The message counts as an application
    when confidence reaches CONFIDENCE_THRESHOLD or at least
    MIN_KEYWORD_MATCHES positive phrases were found.
    """
    positive = POSITIVE_KEYWORDS if positive_keywords is None else positive_keywords
    negative = NEGATIVE_KEYWORDS if negative_keywords is None else negative_keywords

    text = f"{subject or ''} {body_text or ''}".lower()

    matched = [kw for kw in dict.fromkeys(positive) if kw in text]
    negative_hits = sum(1 for kw in dict.fromkeys(negative) if kw in text)

    raw_score = max(0, len(matched) - NEGATIVE_WEIGHT * negative_hits)
    confidence = min(100, raw_score * CONFIDENCE_PER_MATCH)

    return ClassificationResult(
        is_job_application=confidence >= CONFIDENCE_THRESHOLD or len(matched) >= MIN_KEYWORD_MATCHES,
        confidence=confidence,
        matched_keywords=matched,
    )
