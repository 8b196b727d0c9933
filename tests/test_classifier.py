"""Tests for the job application classifier."""

from resume_intake.classifier import classify


def test_two_positive_matches_accept():
    """Two distinct positive phrases and no negatives should pass."""
    result = classify("Application for", "resume")
    assert result.is_job_application is True
    assert result.matched_keywords == ["application for", "resume"]
    assert result.confidence == 30


def test_no_positive_matches_reject():
    result = classify("Team lunch on Friday", "Bring snacks")
    assert result.is_job_application is False
    assert result.confidence == 0
    assert result.matched_keywords == []


def test_single_match_below_threshold():
    result = classify("Updated resume", "")
    assert result.is_job_application is False
    assert result.confidence == 15


def test_negative_keywords_reduce_confidence():
    """Negatives lower confidence but matched positives still count toward the OR rule."""
    result = classify(
        "Job application received",
        "Thanks for applying for the position. Click to unsubscribe from our newsletter.",
    )
    # positives: job application, applying for, position -> 3; negatives: 2 -> -4
    assert result.confidence == 0
    assert result.is_job_application is True


def test_confidence_capped_at_100():
    text = (
        "Job application for the Senior Engineer position. Please find attached my resume "
        "and cover letter. I have 8 years of experience in Python and work experience as a developer "
        "and I am applying for this job opening / vacancy. Notice period 30 days."
    )
    result = classify("Application for Senior Engineer", text)
    assert result.confidence == 100


def test_case_insensitive():
    assert classify("APPLICATION FOR DEVELOPER ROLE", "").is_job_application is True


def test_custom_lexicons():
    result = classify("hola", "currículum adjunto", positive_keywords=["hola", "currículum"], negative_keywords=[])
    assert result.is_job_application is True
