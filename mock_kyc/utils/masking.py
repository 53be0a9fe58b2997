import re
from typing import Optional

from mock_kyc.schemas import PersonalInfo


def redact_ssn(value: Optional[str]) -> str:
    digits = re.sub(r"[^0-9]", "", value or "")
    return f"***-**-{digits[-4:]}" if len(digits) >= 4 else "***-**-****"


def redact_dob(value: Optional[str]) -> str:
    match = re.search(r"(19|20)\d{2}", value or "")
    return f"****-**-** ({match.group()})" if match else "****-**-**"


def redact_email(value: Optional[str]) -> str:
    if not value or "@" not in value:
        return "***"
    local, domain = value.split("@", 1)
    return f"{local[:1]}***@{domain}"


def describe_applicant(info: PersonalInfo) -> str:
    """One-line applicant summary that is safe to write to logs."""
    return (
        f"{info.first_name} {info.last_name[:1]}. "
        f"ssn={redact_ssn(info.ssn)} dob={redact_dob(info.date_of_birth)} "
        f"email={redact_email(info.email)}"
    )
