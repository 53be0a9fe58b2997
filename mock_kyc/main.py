import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from mock_kyc.config import Settings, get_settings
from mock_kyc.exceptions import KycError
from mock_kyc.schemas import ApplicationSummary, KycVerificationRecord, MockKycResult, PersonalInfo
from mock_kyc.services.verification import KycVerificationService
from mock_kyc.store import InMemoryApplicationStore

settings: Settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Mock KYC Provider", version="1.0.0")

# Process-wide singletons (lazy init)
_store: Optional[InMemoryApplicationStore] = None
_kyc_service: Optional[KycVerificationService] = None


def application_store() -> InMemoryApplicationStore:
    global _store
    if _store is None:
        _store = InMemoryApplicationStore()
    return _store


def kyc_service() -> KycVerificationService:
    global _kyc_service
    if _kyc_service is None:
        _kyc_service = KycVerificationService(application_store(), settings)
    return _kyc_service


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.exception_handler(KycError)
async def kyc_error_handler(request: Request, exc: KycError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error", "error": str(exc)},
    )


@app.post("/api/kyc/verify", response_model=MockKycResult)
async def kyc_verify(personal_info: PersonalInfo, service: KycVerificationService = Depends(kyc_service)):
    return await service.verify(personal_info)


@app.put("/api/applications/{application_id}/personal-info", response_model=ApplicationSummary)
async def save_personal_info(
    application_id: str,
    personal_info: PersonalInfo,
    store: InMemoryApplicationStore = Depends(application_store),
):
    record = await store.save_personal_info(application_id, personal_info)
    return record.summary()


@app.post("/api/applications/{application_id}/kyc/initiate", response_model=KycVerificationRecord)
async def initiate_kyc(application_id: str, service: KycVerificationService = Depends(kyc_service)):
    return await service.initiate_kyc_verification(application_id)


@app.get("/api/applications/{application_id}/kyc/status", response_model=KycVerificationRecord)
async def kyc_status(application_id: str, service: KycVerificationService = Depends(kyc_service)):
    return await service.get_kyc_verification_status(application_id)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("mock_kyc.main:app", host="0.0.0.0", port=8000, reload=True)
