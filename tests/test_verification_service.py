"""Tests for the application-level KYC service."""

import asyncio

import pytest
from pydantic import ValidationError

from conftest import RecordingSleep, ScriptedRandom
from mock_kyc.config import Settings
from mock_kyc.exceptions import (
    ApplicationNotFoundError,
    KycAlreadyInitiatedError,
    KycNotFoundError,
    KycVerificationFailedError,
)
from mock_kyc.schemas import KycStatus
from mock_kyc.services.verification import KycVerificationService


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def service(store, clean_rng, instant_sleep):
    return KycVerificationService(store, Settings(), rng=clean_rng, sleep=instant_sleep)


class TestInitiateKycVerification:
    """Tests for initiate_kyc_verification."""

    def test_unknown_application(self, service):
        with pytest.raises(ApplicationNotFoundError) as exc_info:
            run(service.initiate_kyc_verification("app_missing"))

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Application not found"

    def test_application_without_personal_info(self, service, store):
        run(store.create("app_1"))

        with pytest.raises(KycAlreadyInitiatedError) as exc_info:
            run(service.initiate_kyc_verification("app_1"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "KYC already initiated or application not ready"

    def test_success_persists_record_and_audit_entry(self, service, store, applicant):
        run(store.save_personal_info("app_1", applicant))

        record = run(service.initiate_kyc_verification("app_1"))

        assert record.application_id == "app_1"
        assert record.status == KycStatus.PASSED
        assert record.provider == "Mock KYC Provider v1.0"
        assert record.verification_id.startswith("kyc_")
        assert record.verified_at is not None

        application = run(store.get("app_1"))
        assert application.kyc_verification == record
        assert "last_activity" in application.metadata
        assert len(application.audit_trail) == 1
        entry = application.audit_trail[0]
        assert entry.action == "kyc_verification_initiated"
        assert entry.description == "KYC verification initiated with status: passed"
        assert entry.changes["kyc_status"] == {"from": None, "to": "passed"}
        assert entry.changes["confidence"] == record.confidence

    def test_negative_outcome_is_stored_not_raised(self, service, store, applicant):
        run(store.save_personal_info("app_1", applicant.model_copy(update={"last_name": "Tester"})))

        record = run(service.initiate_kyc_verification("app_1"))

        assert record.status == KycStatus.FAILED
        assert record.confidence == 0.2
        assert run(store.get("app_1")).kyc_verification.status == KycStatus.FAILED

    def test_second_initiation_rejected(self, service, store, applicant):
        run(store.save_personal_info("app_1", applicant))
        run(service.initiate_kyc_verification("app_1"))

        with pytest.raises(KycAlreadyInitiatedError):
            run(service.initiate_kyc_verification("app_1"))

    def test_concurrent_initiation_runs_once(self, service, store, applicant):
        async def scenario():
            await store.save_personal_info("app_1", applicant)
            return await asyncio.gather(
                service.initiate_kyc_verification("app_1"),
                service.initiate_kyc_verification("app_1"),
                return_exceptions=True,
            )

        outcomes = run(scenario())

        errors = [o for o in outcomes if isinstance(o, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], KycAlreadyInitiatedError)
        assert len(run(store.get("app_1")).audit_trail) == 1

    def test_provider_timeout_is_reported_and_not_persisted(self, store, applicant):
        service = KycVerificationService(
            store, Settings(KYC_TIMEOUT_SECONDS=0.01), rng=ScriptedRandom(fallback=0.5)
        )
        run(store.save_personal_info("app_1", applicant))

        with pytest.raises(KycVerificationFailedError) as exc_info:
            run(service.initiate_kyc_verification("app_1"))

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "KYC verification failed"
        assert isinstance(exc_info.value.cause, asyncio.TimeoutError)
        application = run(store.get("app_1"))
        assert application.kyc_verification is None
        assert application.audit_trail == []

    def test_retry_allowed_after_provider_failure(self, store, applicant, instant_sleep):
        class BrokenRandom:
            def random(self):
                raise RuntimeError("entropy source unavailable")

        run(store.save_personal_info("app_1", applicant))
        broken = KycVerificationService(store, Settings(), rng=BrokenRandom(), sleep=instant_sleep)

        with pytest.raises(KycVerificationFailedError):
            run(broken.initiate_kyc_verification("app_1"))

        broken.rng = ScriptedRandom(fallback=0.9)
        record = run(broken.initiate_kyc_verification("app_1"))
        assert record.status == KycStatus.PASSED


class TestGetKycVerificationStatus:
    """Tests for get_kyc_verification_status."""

    def test_unknown_application(self, service):
        with pytest.raises(ApplicationNotFoundError):
            run(service.get_kyc_verification_status("app_missing"))

    def test_no_verification_yet(self, service, store, applicant):
        run(store.save_personal_info("app_1", applicant))

        with pytest.raises(KycNotFoundError) as exc_info:
            run(service.get_kyc_verification_status("app_1"))

        assert exc_info.value.status_code == 404
        assert exc_info.value.to_dict()["message"] == "Application or KYC verification not found"

    def test_returns_stored_record(self, service, store, applicant):
        run(store.save_personal_info("app_1", applicant))
        record = run(service.initiate_kyc_verification("app_1"))

        assert run(service.get_kyc_verification_status("app_1")) == record


class TestVerify:
    """Tests for stateless scoring through the service."""

    def test_uses_injected_sources(self, service, applicant, instant_sleep):
        result = run(service.verify(applicant))

        assert result.status == KycStatus.PASSED
        assert instant_sleep.delays == [pytest.approx(2.8)]

    def test_uses_injected_latency_window(self, store, applicant):
        sleep = RecordingSleep()
        settings = Settings(KYC_MIN_LATENCY_MS=10, KYC_MAX_LATENCY_MS=20)
        service = KycVerificationService(store, settings, rng=ScriptedRandom([0.5]), sleep=sleep)

        run(service.verify(applicant))

        assert sleep.delays == [pytest.approx(0.015)]


class TestInjectedSettings:
    """The service's own settings reach the scorer, not the cached ones."""

    def test_initiation_uses_injected_latency_window(self, store, applicant, monkeypatch):
        monkeypatch.setenv("KYC_MIN_LATENCY_MS", "5000")
        monkeypatch.setenv("KYC_MAX_LATENCY_MS", "9000")
        sleep = RecordingSleep()
        settings = Settings(KYC_MIN_LATENCY_MS=10, KYC_MAX_LATENCY_MS=20)
        service = KycVerificationService(store, settings, rng=ScriptedRandom([0.5]), sleep=sleep)
        run(store.save_personal_info("app_1", applicant))

        record = run(service.initiate_kyc_verification("app_1"))

        assert sleep.delays == [pytest.approx(0.015)]
        assert record.status == KycStatus.PASSED

    def test_short_window_fits_inside_timeout(self, store, applicant):
        settings = Settings(KYC_MIN_LATENCY_MS=1, KYC_MAX_LATENCY_MS=5, KYC_TIMEOUT_SECONDS=1)
        service = KycVerificationService(store, settings, rng=ScriptedRandom(fallback=0.9))
        run(store.save_personal_info("app_1", applicant))

        record = run(service.initiate_kyc_verification("app_1"))

        assert record.status == KycStatus.PASSED


class TestStoredRecordImmutability:
    def test_stored_results_cannot_be_changed_through_returned_record(self, service, store, applicant):
        run(store.save_personal_info("app_1", applicant))
        record = run(service.initiate_kyc_verification("app_1"))

        with pytest.raises(ValidationError):
            record.results.identity.passed = False
        with pytest.raises(ValidationError):
            record.results.phone.details.phone_verified = False

        stored = run(store.get("app_1")).kyc_verification
        assert stored.results.identity.passed is True
        assert stored.results.phone.details.phone_verified is True
