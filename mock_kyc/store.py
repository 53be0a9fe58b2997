import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from mock_kyc.schemas import ApplicationSummary, AuditTrailEntry, KycVerificationRecord, PersonalInfo


@dataclass
class ApplicationRecord:
    id: str
    personal_info: Optional[PersonalInfo] = None
    kyc_verification: Optional[KycVerificationRecord] = None
    audit_trail: List[AuditTrailEntry] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def summary(self) -> ApplicationSummary:
        return ApplicationSummary(
            id=self.id,
            has_personal_info=self.personal_info is not None,
            kyc_status=self.kyc_verification.status if self.kyc_verification else None,
            metadata=dict(self.metadata),
        )


class InMemoryApplicationStore:
    """Process-local application store. Everything is lost on restart."""

    def __init__(self):
        self._applications: Dict[str, ApplicationRecord] = {}
        self.lock = asyncio.Lock()

    async def get(self, application_id: str) -> Optional[ApplicationRecord]:
        return self._applications.get(application_id)

    async def create(self, application_id: str) -> ApplicationRecord:
        async with self.lock:
            return self._applications.setdefault(application_id, ApplicationRecord(id=application_id))

    async def save_personal_info(self, application_id: str, personal_info: PersonalInfo) -> ApplicationRecord:
        record = await self.create(application_id)
        async with self.lock:
            record.personal_info = personal_info
            record.metadata["last_activity"] = datetime.now(timezone.utc).isoformat()
            return record

    async def save_kyc_verification(self, application_id: str, verification: KycVerificationRecord) -> None:
        async with self.lock:
            record = self._applications[application_id]
            record.kyc_verification = verification
            record.metadata["last_activity"] = datetime.now(timezone.utc).isoformat()

    async def add_audit_entry(self, application_id: str, entry: AuditTrailEntry) -> None:
        async with self.lock:
            self._applications[application_id].audit_trail.append(entry)
