import asyncio
import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, Mapping, Optional, Protocol, Tuple, Union

from pydantic import ValidationError

from mock_kyc.config import Settings, get_settings
from mock_kyc.exceptions import KycInputError
from mock_kyc.schemas import (
    AddressDetails,
    AddressResult,
    EmailDetails,
    EmailResult,
    IdentityDetails,
    IdentityResult,
    KycStatus,
    MockKycResult,
    OfacMatch,
    OfacResult,
    PersonalInfo,
    PhoneDetails,
    PhoneResult,
    VerificationResults,
)

logger = logging.getLogger(__name__)

PROVIDER_NAME = "Mock KYC Provider v1.0"

# Demo-only screening heuristics. These are placeholders for a real provider
# and must not be reused as compliance policy.
SUSPICIOUS_NAME_PATTERNS = ["sanchez", "mohammed", "vladimir", "suspicious"]
DISPOSABLE_EMAIL_MARKERS = ["tempmail", "10min"]

WEIGHTS = {
    "identity": 0.4,
    "address": 0.2,
    "phone": 0.2,
    "email": 0.1,
    "ofac": 0.1,
}
FAIL_BELOW = 0.6
REVIEW_BELOW = 0.8
OFAC_FAILURE_CONFIDENCE = 0.1
IDENTITY_FAILURE_CONFIDENCE = 0.2


class RandomSource(Protocol):
    def random(self) -> float: ...


Sleep = Callable[[float], Awaitable[None]]


def generate_identity_result(info: PersonalInfo, rng: RandomSource) -> IdentityResult:
    r = rng.random()

    if "test" in info.last_name.lower() or r < 0.05:
        return IdentityResult(
            passed=False,
            confidence=0.2 + rng.random() * 0.3,
            details=IdentityDetails(
                name_match=False,
                date_of_birth_match=rng.random() > 0.5,
                ssn_match=False,
                issues=("SSN not found in records", "Name mismatch with government records"),
            ),
        )
    if r < 0.15:
        # passes, but with discrepancies worth a manual look
        return IdentityResult(
            passed=True,
            confidence=0.6 + rng.random() * 0.2,
            details=IdentityDetails(
                name_match=True,
                date_of_birth_match=rng.random() > 0.3,
                ssn_match=True,
                issues=("Middle name discrepancy", "Minor address variation in records"),
            ),
        )
    return IdentityResult(
        passed=True,
        confidence=0.85 + rng.random() * 0.15,
        details=IdentityDetails(name_match=True, date_of_birth_match=True, ssn_match=True),
    )


def generate_address_result(info: PersonalInfo, rng: RandomSource) -> AddressResult:
    r = rng.random()

    if r < 0.08:
        return AddressResult(
            passed=False,
            confidence=0.3 + rng.random() * 0.3,
            details=AddressDetails(
                address_verified=False,
                utility_bill_match=False,
                issues=("Address not found in postal records", "No utility services found at address"),
            ),
        )
    if r < 0.2:
        return AddressResult(
            passed=True,
            confidence=0.7 + rng.random() * 0.15,
            details=AddressDetails(
                address_verified=True,
                utility_bill_match=rng.random() > 0.5,
                issues=("Address format standardized", "Minor zip code extension added"),
            ),
        )
    return AddressResult(
        passed=True,
        confidence=0.85 + rng.random() * 0.15,
        details=AddressDetails(address_verified=True, utility_bill_match=True),
    )


def generate_phone_result(info: PersonalInfo, rng: RandomSource) -> PhoneResult:
    r = rng.random()

    if r < 0.06:
        return PhoneResult(
            passed=False,
            confidence=0.2 + rng.random() * 0.4,
            details=PhoneDetails(
                phone_verified=False,
                carrier_verified=False,
                issues=("Phone number not in service", "Unable to verify carrier"),
            ),
        )
    if r < 0.15:
        return PhoneResult(
            passed=True,
            confidence=0.6 + rng.random() * 0.2,
            details=PhoneDetails(
                phone_verified=True,
                carrier_verified=rng.random() > 0.3,
                issues=("VoIP number detected", "Recent number port detected"),
            ),
        )
    return PhoneResult(
        passed=True,
        confidence=0.8 + rng.random() * 0.2,
        details=PhoneDetails(phone_verified=True, carrier_verified=True),
    )


def is_disposable_email(email: str) -> bool:
    return any(marker in email for marker in DISPOSABLE_EMAIL_MARKERS)


def generate_email_result(info: PersonalInfo, rng: RandomSource) -> EmailResult:
    r = rng.random()

    if is_disposable_email(info.email) or r < 0.03:
        return EmailResult(
            passed=False,
            confidence=0.1 + rng.random() * 0.3,
            details=EmailDetails(
                email_verified=False,
                domain_verified=False,
                issues=("Disposable email detected", "Domain not verified"),
            ),
        )
    if r < 0.1:
        return EmailResult(
            passed=True,
            confidence=0.7 + rng.random() * 0.2,
            details=EmailDetails(
                email_verified=True,
                domain_verified=rng.random() > 0.3,
                issues=("Email recently created", "Limited email history"),
            ),
        )
    return EmailResult(
        passed=True,
        confidence=0.85 + rng.random() * 0.15,
        details=EmailDetails(email_verified=True, domain_verified=True),
    )


def has_suspicious_name(info: PersonalInfo) -> bool:
    full_name = f"{info.first_name} {info.last_name}".lower()
    return any(pattern in full_name for pattern in SUSPICIOUS_NAME_PATTERNS)


def generate_ofac_result(info: PersonalInfo, rng: RandomSource) -> OfacResult:
    """
    Simulated sanctions screening.

    A name hitting one of the suspicious patterns gets a 30% chance of an
    SDN match. Anything that does not end up there gets a fresh draw with a
    2% chance of a low-confidence false positive on the consolidated list.
    """
    if has_suspicious_name(info) and rng.random() < 0.3:
        return OfacResult(
            passed=False,
            matches=(
                OfacMatch(
                    name=f"{info.first_name} {info.last_name}",
                    confidence=0.7 + rng.random() * 0.25,
                    list_type="SDN List",
                    details="Potential match found on OFAC Specially Designated Nationals list",
                ),
            ),
        )

    if rng.random() < 0.02:
        return OfacResult(
            passed=False,
            matches=(
                OfacMatch(
                    name="Similar Name Found",
                    confidence=0.4 + rng.random() * 0.3,
                    list_type="Consolidated List",
                    details="Low confidence match found - manual review recommended",
                ),
            ),
        )

    return OfacResult(passed=True, matches=())


def generate_results(info: PersonalInfo, rng: RandomSource) -> VerificationResults:
    # Draw order is fixed so a seeded source reproduces a result exactly
    return VerificationResults(
        identity=generate_identity_result(info, rng),
        address=generate_address_result(info, rng),
        phone=generate_phone_result(info, rng),
        email=generate_email_result(info, rng),
        ofac=generate_ofac_result(info, rng),
    )


def weighted_confidence(results: VerificationResults) -> float:
    score = 0.0
    score += results.identity.confidence * WEIGHTS["identity"]
    score += results.address.confidence * WEIGHTS["address"]
    score += results.phone.confidence * WEIGHTS["phone"]
    score += results.email.confidence * WEIGHTS["email"]
    score += float(results.ofac.passed) * WEIGHTS["ofac"]
    return score


def has_issues(results: VerificationResults) -> bool:
    components = [results.identity, results.address, results.phone, results.email]
    return any(c.details is not None and bool(c.details.issues) for c in components)


def status_for_confidence(confidence: float, issues_found: bool) -> KycStatus:
    if confidence < FAIL_BELOW:
        return KycStatus.FAILED
    if confidence < REVIEW_BELOW or issues_found:
        return KycStatus.NEEDS_REVIEW
    return KycStatus.PASSED


def calculate_overall_status(results: VerificationResults) -> Tuple[KycStatus, float]:
    """
    Collapse the five component checks into one status and confidence.

    A sanctions hit or a failed identity check fails the verification outright
    with a fixed confidence; otherwise the weighted component confidence
    decides between failed, needs_review and passed.
    """
    if not results.ofac.passed:
        return KycStatus.FAILED, OFAC_FAILURE_CONFIDENCE

    if not results.identity.passed:
        return KycStatus.FAILED, IDENTITY_FAILURE_CONFIDENCE

    confidence = weighted_confidence(results)
    return status_for_confidence(confidence, has_issues(results)), confidence


def _coerce_personal_info(personal_info: Union[PersonalInfo, Mapping]) -> PersonalInfo:
    if isinstance(personal_info, PersonalInfo):
        return personal_info
    try:
        return PersonalInfo.model_validate(personal_info)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise KycInputError(f"Invalid personal information: {', '.join(fields)}", fields, cause=e) from e


def new_verification_id() -> str:
    return f"kyc_{uuid.uuid4().hex}"


async def verify_personal_info(
    personal_info: Union[PersonalInfo, Mapping],
    rng: Optional[RandomSource] = None,
    sleep: Sleep = asyncio.sleep,
    settings: Optional[Settings] = None,
) -> MockKycResult:
    """
    Run the simulated provider checks against one applicant.

    Waits somewhere in the settings latency window (1-3s by default) before
    answering, the way a remote provider would. Cancelling the awaiting task abandons the call cleanly.
    A failed or needs_review outcome is returned, not raised; only malformed
    input raises (KycInputError).
    """
    info = _coerce_personal_info(personal_info)
    rng = rng if rng is not None else random.Random()
    settings = settings or get_settings()

    window = settings.KYC_MAX_LATENCY_MS - settings.KYC_MIN_LATENCY_MS
    delay_ms = settings.KYC_MIN_LATENCY_MS + rng.random() * window
    await sleep(delay_ms / 1000.0)

    results = generate_results(info, rng)
    status, confidence = calculate_overall_status(results)

    result = MockKycResult(
        provider=PROVIDER_NAME,
        verification_id=new_verification_id(),
        status=status,
        confidence=confidence,
        verified_at=datetime.now(timezone.utc) if status != KycStatus.PENDING else None,
        results=results,
    )
    logger.info(
        "KYC %s finished: status=%s confidence=%.3f delay_ms=%.0f",
        result.verification_id, result.status.value, result.confidence, delay_ms,
    )
    return result
