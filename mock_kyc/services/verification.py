import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Set

from mock_kyc.config import Settings, get_settings
from mock_kyc.exceptions import (
    ApplicationNotFoundError,
    KycAlreadyInitiatedError,
    KycNotFoundError,
    KycVerificationFailedError,
)
from mock_kyc.schemas import AuditTrailEntry, KycVerificationRecord, MockKycResult, PersonalInfo
from mock_kyc.services.scorer import RandomSource, Sleep, verify_personal_info
from mock_kyc.store import ApplicationRecord, InMemoryApplicationStore
from mock_kyc.utils.masking import describe_applicant

logger = logging.getLogger(__name__)


class KycVerificationService:
    """
    Runs the provider checks for an account-opening application and keeps
    the outcome on the application.

    The provider call is awaited inline, so initiation returns the final
    record. A negative outcome (failed / needs_review) is stored like any
    other; only a broken or timed-out provider call raises.
    """

    def __init__(
        self,
        store: InMemoryApplicationStore,
        settings: Optional[Settings] = None,
        rng: Optional[RandomSource] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.rng = rng
        self.sleep = sleep
        self._in_flight: Set[str] = set()

    async def verify(self, personal_info: PersonalInfo) -> MockKycResult:
        """Score an applicant without touching any stored application."""
        return await verify_personal_info(
            personal_info, rng=self.rng, sleep=self.sleep, settings=self.settings
        )

    async def _get_application(self, application_id: str) -> ApplicationRecord:
        application = await self.store.get(application_id)
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return application

    async def initiate_kyc_verification(self, application_id: str) -> KycVerificationRecord:
        application = await self._get_application(application_id)

        if (
            application.kyc_verification is not None
            or application.personal_info is None
            or application_id in self._in_flight
        ):
            raise KycAlreadyInitiatedError(application_id)

        self._in_flight.add(application_id)
        try:
            logger.info("Starting KYC for application %s (%s)", application_id, describe_applicant(application.personal_info))
            try:
                result = await asyncio.wait_for(
                    verify_personal_info(
                        application.personal_info, rng=self.rng, sleep=self.sleep, settings=self.settings
                    ),
                    timeout=self.settings.KYC_TIMEOUT_SECONDS,
                )
            except Exception as e:
                logger.exception("KYC verification failed for application %s", application_id)
                raise KycVerificationFailedError(application_id, cause=e) from e

            record = KycVerificationRecord(
                id=f"kycv_{uuid.uuid4().hex[:16]}",
                application_id=application_id,
                status=result.status,
                provider=result.provider,
                verification_id=result.verification_id,
                confidence=result.confidence,
                verified_at=result.verified_at,
                results=result.results,
            )
            await self.store.save_kyc_verification(application_id, record)
            await self.store.add_audit_entry(
                application_id,
                AuditTrailEntry(
                    action="kyc_verification_initiated",
                    description=f"KYC verification initiated with status: {result.status.value}",
                    changes={
                        "kyc_status": {"from": None, "to": result.status.value},
                        "provider": result.provider,
                        "confidence": result.confidence,
                    },
                    created_at=datetime.now(timezone.utc),
                ),
            )
            return record
        finally:
            self._in_flight.discard(application_id)

    async def get_kyc_verification_status(self, application_id: str) -> KycVerificationRecord:
        application = await self._get_application(application_id)
        if application.kyc_verification is None:
            raise KycNotFoundError(application_id)
        return application.kyc_verification
