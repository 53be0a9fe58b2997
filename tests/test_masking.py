"""Tests for log redaction helpers."""

from mock_kyc.utils.masking import describe_applicant, redact_dob, redact_email, redact_ssn


def test_redact_ssn():
    assert redact_ssn("123-45-6789") == "***-**-6789"
    assert redact_ssn("12") == "***-**-****"
    assert redact_ssn(None) == "***-**-****"


def test_redact_dob_keeps_year_only():
    assert redact_dob("1990-04-12") == "****-**-** (1990)"
    assert redact_dob("unknown") == "****-**-**"


def test_redact_email():
    assert redact_email("jane.doe@example.com") == "j***@example.com"
    assert redact_email("not-an-email") == "***"


def test_describe_applicant_hides_pii(applicant):
    line = describe_applicant(applicant)

    assert "6789" in line
    assert "123-45" not in line
    assert "04-12" not in line
    assert "Doe" not in line
