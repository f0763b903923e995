"""Out-of-band enrichment of seller inquiries.

A freshly created inquiry is enriched with uploaded media URLs and vehicle
registry details. The work runs as an independent asyncio task; nothing it
does can reach the request that scheduled it.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from marketplace_api.core.exceptions import StorageError
from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.services.attachments import (
    Attachment,
    InquiryAttachments,
    discard_local_file,
)
from marketplace_api.services.inquiry_repository import InquiryRepository
from marketplace_api.services.media_store import MediaStore
from marketplace_api.services.registry_client import RegistryLookupClient

logger = get_structlog_logger(__name__)


@dataclass
class EnrichmentOutcome:
    inquiry_id: int
    photo_urls: List[str] = field(default_factory=list)
    failed_uploads: int = 0
    rc_card_url: str = ""
    registry_found: bool = False
    merged: bool = False
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.merged


class BackgroundEnricher:
    def __init__(
        self,
        repository: InquiryRepository,
        media: MediaStore,
        registry: RegistryLookupClient,
        folder: str = "seller-inquiries",
    ) -> None:
        self._repository = repository
        self._media = media
        self._registry = registry
        self.folder = folder

    async def enrich(
        self,
        inquiry_id: int,
        attachments: InquiryAttachments,
        reg_no: str,
    ) -> EnrichmentOutcome:
        """Upload media, look up the registry, then merge once into the stored inquiry.

        Never raises: failures are logged and reported on the outcome.
        """
        log = logger.bind(inquiry_id=inquiry_id, reg_no=reg_no)
        outcome = EnrichmentOutcome(inquiry_id=inquiry_id)
        pending: List[Attachment] = list(attachments)

        try:
            for photo in attachments.photos:
                url = await self._upload(photo, log)
                pending.remove(photo)
                if url:
                    outcome.photo_urls.append(url)
                else:
                    outcome.failed_uploads += 1

            if attachments.rc_card is not None:
                outcome.rc_card_url = await self._upload(attachments.rc_card, log) or ""
                pending.remove(attachments.rc_card)
                if not outcome.rc_card_url:
                    outcome.failed_uploads += 1

            record = await self._registry.fetch(reg_no)
            outcome.registry_found = record is not None

            fields: Dict[str, Any] = {
                "photos": outcome.photo_urls,
                "rc_card": outcome.rc_card_url,
            }
            if record is not None:
                fields.update(record.as_fields())

            outcome.merged = await self._repository.merge_update(inquiry_id, fields)
            if outcome.merged:
                log.info(
                    "enrichment.completed",
                    photos=len(outcome.photo_urls),
                    failed_uploads=outcome.failed_uploads,
                    rc_card=bool(outcome.rc_card_url),
                    registry_found=outcome.registry_found,
                )
            else:
                log.warning("enrichment.inquiry_missing")

        except Exception as e:
            outcome.error = str(e) or type(e).__name__
            log.error("enrichment.failed", error_type=type(e).__name__, error=str(e), exc_info=True)

        finally:
            for attachment in pending:
                discard_local_file(attachment.path)

        return outcome

    async def _upload(self, attachment: Attachment, log: Any) -> Optional[str]:
        try:
            return await self._media.upload(attachment.path, self.folder)
        except StorageError as e:
            log.warning(
                "media.upload_failed",
                filename=attachment.filename,
                reason=e.message,
                **e.details,
            )
            return None
        except Exception as e:
            # Per-file failures never abort the run
            log.error(
                "media.upload_crashed",
                filename=attachment.filename,
                error_type=type(e).__name__,
                error=str(e)[:200],
            )
            discard_local_file(attachment.path)
            return None


class EnrichmentScheduler:
    """Spawns enrichment tasks and keeps track of them until they finish.

    Each task's result is its ``EnrichmentOutcome``. Tasks are not persisted;
    anything still running when the process exits is lost.
    """

    def __init__(self, enricher: BackgroundEnricher) -> None:
        self._enricher = enricher
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(
        self,
        inquiry_id: int,
        attachments: InquiryAttachments,
        reg_no: str,
    ) -> asyncio.Task:
        task = asyncio.create_task(
            self._enricher.enrich(inquiry_id, attachments, reg_no),
            name=f"enrich-inquiry-{inquiry_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.info(
            "enrichment.scheduled",
            inquiry_id=inquiry_id,
            attachments=len(attachments),
            in_flight=len(self._tasks),
        )
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("enrichment.cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("enrichment.task_crashed", task=task.get_name(), error=str(exc))

    async def drain(self, timeout: Optional[float] = None) -> List[EnrichmentOutcome]:
        """Wait for in-flight enrichments; returns outcomes of the tasks that finished."""
        if not self._tasks:
            return []
        done, not_done = await asyncio.wait(set(self._tasks), timeout=timeout)
        if not_done:
            logger.warning("enrichment.drain_timeout", abandoned=len(not_done))
        return [
            task.result()
            for task in done
            if not task.cancelled() and task.exception() is None
        ]
