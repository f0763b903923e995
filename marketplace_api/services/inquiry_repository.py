from __future__ import annotations

from typing import Any, List, Mapping, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.db.base import utcnow
from marketplace_api.db.session import session_scope
from marketplace_api.models.seller_inquiry import SellerInquiry

logger = get_structlog_logger(__name__)

_IMMUTABLE_COLUMNS = frozenset({"id", "created_at", "updated_at"})
MUTABLE_COLUMNS = frozenset(
    column.key for column in SellerInquiry.__table__.columns if column.key not in _IMMUTABLE_COLUMNS
)


class InquiryRepository:
    """Persistence for seller inquiries.

    Every call opens its own session, so the repository can be shared by
    request handlers and background enrichment tasks alike.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    async def create(self, values: Mapping[str, Any]) -> SellerInquiry:
        inquiry = SellerInquiry.new(**values)
        async with session_scope(self._sessionmaker) as session:
            session.add(inquiry)
            await session.commit()
        logger.info("inquiry.created", inquiry_id=inquiry.id, reg_no=inquiry.reg_no)
        return inquiry

    async def merge_update(self, inquiry_id: int, fields: Mapping[str, Any]) -> bool:
        """Set only ``fields`` on the stored row in one UPDATE statement.

        Returns False when no row has ``inquiry_id``.
        """
        unknown = set(fields) - MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unknown inquiry fields: {', '.join(sorted(unknown))}")
        if not fields:
            return await self.get(inquiry_id) is not None

        stmt = (
            update(SellerInquiry)
            .where(SellerInquiry.id == inquiry_id)
            .values(**fields, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(stmt)
            await session.commit()

        matched = result.rowcount > 0
        logger.info(
            "inquiry.merge_updated",
            inquiry_id=inquiry_id,
            fields=sorted(fields),
            matched=matched,
        )
        return matched

    async def get(self, inquiry_id: int) -> Optional[SellerInquiry]:
        async with session_scope(self._sessionmaker) as session:
            return await session.get(SellerInquiry, inquiry_id)

    async def list(self, status: Optional[str] = None) -> List[SellerInquiry]:
        """All inquiries, newest first."""
        stmt = select(SellerInquiry).order_by(SellerInquiry.created_at.desc(), SellerInquiry.id.desc())
        if status:
            stmt = stmt.where(SellerInquiry.status == status)
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def delete(self, inquiry_id: int) -> bool:
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(
                delete(SellerInquiry).where(SellerInquiry.id == inquiry_id)
            )
            await session.commit()

        deleted = result.rowcount > 0
        if deleted:
            logger.info("inquiry.deleted", inquiry_id=inquiry_id)
        return deleted
