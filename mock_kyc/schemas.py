from datetime import datetime
from enum import Enum
from typing import Any, Optional, Dict, Tuple
from pydantic import BaseModel, ConfigDict, Field


class KycStatus(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"
    NEEDS_REVIEW = "needs_review"


class PersonalInfo(BaseModel):
    first_name: str
    last_name: str
    email: str
    date_of_birth: Optional[str] = None  # YYYY-MM-DD
    ssn: Optional[str] = None
    phone: Optional[str] = None
    mailing_address: Any = None  # carried for provider parity, not scored


class IdentityDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    name_match: bool
    date_of_birth_match: bool
    ssn_match: bool
    issues: Optional[Tuple[str, ...]] = None


class AddressDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    address_verified: bool
    utility_bill_match: bool
    issues: Optional[Tuple[str, ...]] = None


class PhoneDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    phone_verified: bool
    carrier_verified: bool
    issues: Optional[Tuple[str, ...]] = None


class EmailDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    email_verified: bool
    domain_verified: bool
    issues: Optional[Tuple[str, ...]] = None


class IdentityResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    confidence: float = Field(ge=0.0, le=1.0)
    details: Optional[IdentityDetails] = None


class AddressResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    confidence: float = Field(ge=0.0, le=1.0)
    details: Optional[AddressDetails] = None


class PhoneResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    confidence: float = Field(ge=0.0, le=1.0)
    details: Optional[PhoneDetails] = None


class EmailResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    confidence: float = Field(ge=0.0, le=1.0)
    details: Optional[EmailDetails] = None


class OfacMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    confidence: float
    list_type: str
    details: str


class OfacResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    matches: Tuple[OfacMatch, ...] = ()


class VerificationResults(BaseModel):
    model_config = ConfigDict(frozen=True)

    identity: IdentityResult
    address: AddressResult
    phone: PhoneResult
    email: EmailResult
    ofac: OfacResult


class MockKycResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: str
    verification_id: str
    status: KycStatus
    confidence: float
    verified_at: Optional[datetime] = None  # set iff status != pending
    results: VerificationResults


class KycVerificationRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    application_id: str
    status: KycStatus
    provider: str
    verification_id: str
    confidence: float
    verified_at: Optional[datetime] = None
    results: VerificationResults


class AuditTrailEntry(BaseModel):
    action: str
    description: str
    performed_by: str = "system"
    changes: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class ApplicationSummary(BaseModel):
    id: str
    has_personal_info: bool
    kyc_status: Optional[KycStatus] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
