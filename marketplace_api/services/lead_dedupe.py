# marketplace_api/services/lead_dedupe.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.db.base import utcnow
from marketplace_api.db.session import session_scope
from marketplace_api.models.lead import Lead
from marketplace_api.services.normalization import normalize_phone, normalize_text

logger = get_structlog_logger(__name__)

DEFAULT_SOURCE = "welcome_popup"


@dataclass(frozen=True)
class LeadUpsertResult:
    lead: Lead
    created: bool


class LeadDeduper:
    """Phone-keyed lead registry holding at most one lead per phone number."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    async def upsert(self, name: str, phone: str, source: Optional[str] = None) -> LeadUpsertResult:
        """Refresh the existing lead for ``phone`` or create a new one."""
        phone = normalize_phone(phone)

        async with session_scope(self._sessionmaker) as session:
            existing = await self._touch(session, phone)
            if existing is not None:
                return LeadUpsertResult(lead=existing, created=False)

            now = utcnow()
            lead = Lead(
                name=normalize_text(name),
                phone=phone,
                source=normalize_text(source) or DEFAULT_SOURCE,
                status="new",
                notes="",
                created_at=now,
                updated_at=now,
            )
            session.add(lead)
            try:
                await session.commit()
            except IntegrityError:
                # Lost an insert race on the unique phone index
                await session.rollback()
                existing = await self._touch(session, phone)
                if existing is None:
                    raise
                return LeadUpsertResult(lead=existing, created=False)

        logger.info("lead.created", lead_id=lead.id, source=lead.source)
        return LeadUpsertResult(lead=lead, created=True)

    async def _touch(self, session: AsyncSession, phone: str) -> Optional[Lead]:
        result = await session.execute(select(Lead).where(Lead.phone == phone))
        lead = result.scalar_one_or_none()
        if lead is None:
            return None

        lead.updated_at = utcnow()
        await session.commit()
        logger.info("lead.refreshed", lead_id=lead.id)
        return lead

    async def list(self) -> List[Lead]:
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(select(Lead).order_by(Lead.created_at.desc(), Lead.id.desc()))
            return list(result.scalars().all())

    async def update(self, lead_id: int, fields: Mapping[str, Any]) -> Optional[Lead]:
        """Apply an administrative status/notes edit; None when the lead doesn't exist."""
        values = {key: value for key, value in fields.items() if key in ("status", "notes") and value is not None}
        async with session_scope(self._sessionmaker) as session:
            if values:
                await session.execute(
                    update(Lead).where(Lead.id == lead_id).values(**values, updated_at=utcnow())
                )
                await session.commit()
            return await session.get(Lead, lead_id)

    async def delete(self, lead_id: int) -> bool:
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(delete(Lead).where(Lead.id == lead_id))
            await session.commit()
        return result.rowcount > 0
