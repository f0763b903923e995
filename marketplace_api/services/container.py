# marketplace_api/services/container.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import aiohttp
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from marketplace_api.core.config import Settings
from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.db.session import create_database_engine, create_sessionmaker, init_models
from marketplace_api.services.enrichment import BackgroundEnricher, EnrichmentScheduler
from marketplace_api.services.inquiry_repository import InquiryRepository
from marketplace_api.services.intake import IntakeService
from marketplace_api.services.lead_dedupe import LeadDeduper
from marketplace_api.services.media_store import MediaStore
from marketplace_api.services.registry_client import RegistryLookupClient

logger = get_structlog_logger(__name__)


@dataclass
class ServiceContainer:
    """Explicitly constructed collaborators shared by the routes."""

    settings: Settings
    inquiries: InquiryRepository
    leads: LeadDeduper
    registry: RegistryLookupClient
    media: MediaStore
    scheduler: EnrichmentScheduler
    intake: IntakeService
    sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
    engine: Optional[AsyncEngine] = None
    http_session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def assemble(
        cls,
        settings: Settings,
        *,
        inquiries: Any,
        leads: Any,
        registry: Any,
        media: Any,
        sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None,
        engine: Optional[AsyncEngine] = None,
        http_session: Optional[aiohttp.ClientSession] = None,
    ) -> "ServiceContainer":
        """Wire the enrichment pipeline around the given collaborators."""
        enricher = BackgroundEnricher(inquiries, media, registry, folder=settings.media_folder)
        scheduler = EnrichmentScheduler(enricher)
        return cls(
            settings=settings,
            inquiries=inquiries,
            leads=leads,
            registry=registry,
            media=media,
            scheduler=scheduler,
            intake=IntakeService(inquiries, scheduler),
            sessionmaker=sessionmaker,
            engine=engine,
            http_session=http_session,
        )

    async def aclose(self) -> None:
        outcomes = await self.scheduler.drain(timeout=self.settings.enrichment_drain_timeout_seconds)
        logger.info("enrichment.drained", completed=len(outcomes), abandoned=self.scheduler.pending)

        if self.http_session is not None:
            await self.http_session.close()
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("database.connection_closed")


async def build_container(settings: Settings) -> ServiceContainer:
    engine = create_database_engine(settings)
    if settings.database_auto_create:
        await init_models(engine)
    sessionmaker = create_sessionmaker(engine)

    http_session = aiohttp.ClientSession()
    registry = RegistryLookupClient(
        http_session,
        settings.registry_base_url,
        settings.registry_api_key,
        timeout=settings.registry_timeout_seconds,
    )

    return ServiceContainer.assemble(
        settings,
        inquiries=InquiryRepository(sessionmaker),
        leads=LeadDeduper(sessionmaker),
        registry=registry,
        media=MediaStore.from_settings(settings),
        sessionmaker=sessionmaker,
        engine=engine,
        http_session=http_session,
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_intake_service(request: Request) -> IntakeService:
    return get_container(request).intake


def get_inquiry_repository(request: Request) -> InquiryRepository:
    return get_container(request).inquiries


def get_registry_client(request: Request) -> RegistryLookupClient:
    return get_container(request).registry


def get_lead_deduper(request: Request) -> LeadDeduper:
    return get_container(request).leads
