"""Profile drafts saved on the device for reuse at future events."""

from dataclasses import asdict, dataclass, field
from typing import Any
from uuid import uuid4

import orjson
import structlog

from core.clock import utcnow
from core.exceptions import ValidationError
from domain.repositories.local_storage import IKeyValueStore
from domain.services.directory_service import UPDATABLE_FIELDS, validate_profile_fields

logger = structlog.get_logger()

STORAGE_KEY = "saved_profiles"


@dataclass
class ProfileDraft:
    profile_data: dict[str, Any]
    id: str = field(default_factory=lambda: f"local_{uuid4().hex[:12]}")
    created_at: str = field(default_factory=lambda: utcnow().isoformat())


class ProfileDraftService:
    """Save, list and delete local profile drafts."""

    def __init__(self, storage: IKeyValueStore) -> None:
        self._storage = storage

    async def save(self, profile_data: dict[str, Any]) -> ProfileDraft:
        unknown = set(profile_data) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError("Unknown profile fields", {"fields": sorted(unknown)})
        validate_profile_fields(profile_data)

        drafts = await self.list_drafts()
        draft = ProfileDraft(profile_data=dict(profile_data))
        drafts.append(draft)
        await self._write(drafts)
        logger.info("profile_draft_saved", draft_id=draft.id)
        return draft

    async def list_drafts(self) -> list[ProfileDraft]:
        raw = await self._storage.get(STORAGE_KEY)
        if not raw:
            return []
        try:
            return [ProfileDraft(**entry) for entry in orjson.loads(raw)]
        except (orjson.JSONDecodeError, TypeError) as e:
            logger.error("profile_drafts_unreadable", error=str(e))
            return []

    async def delete(self, draft_id: str) -> bool:
        drafts = await self.list_drafts()
        remaining = [draft for draft in drafts if draft.id != draft_id]
        if len(remaining) == len(drafts):
            return False
        await self._write(remaining)
        logger.info("profile_draft_deleted", draft_id=draft_id)
        return True

    async def _write(self, drafts: list[ProfileDraft]) -> None:
        await self._storage.set(STORAGE_KEY, orjson.dumps([asdict(d) for d in drafts]).decode())
