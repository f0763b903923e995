# marketplace_api/services/intake.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from marketplace_api.core.exceptions import BaseAPIException, DatabaseError
from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.models.seller_inquiry import SellerInquiry
from marketplace_api.services.attachments import InquiryAttachments, discard_attachments
from marketplace_api.services.enrichment import EnrichmentScheduler
from marketplace_api.services.inquiry_repository import InquiryRepository
from marketplace_api.services.validation import parse_submission

logger = get_structlog_logger(__name__)


@dataclass(frozen=True)
class IntakeResult:
    inquiry: SellerInquiry
    enrichment_pending: bool


class IntakeService:
    """Accepts seller inquiries: persist first, enrich later."""

    def __init__(self, repository: InquiryRepository, scheduler: EnrichmentScheduler) -> None:
        self._repository = repository
        self._scheduler = scheduler

    async def submit(
        self,
        fields: Mapping[str, Any],
        attachments: InquiryAttachments,
    ) -> IntakeResult:
        """Validate and store the base record, then hand media and lookup off to a background task.

        Returns as soon as the record is committed. Attachments are owned by
        this call until they are handed to the scheduler.
        """
        try:
            submission = parse_submission(fields)
            inquiry = await self._repository.create(submission.as_values())
        except BaseAPIException:
            discard_attachments(attachments)
            raise
        except Exception as e:
            discard_attachments(attachments)
            logger.error("inquiry.create_failed", error_type=type(e).__name__, error=str(e))
            raise DatabaseError(message="Could not save seller inquiry") from e

        enrichment_pending = True
        try:
            self._scheduler.schedule(inquiry.id, attachments, inquiry.reg_no)
        except Exception as e:
            enrichment_pending = False
            discard_attachments(attachments)
            logger.error(
                "enrichment.schedule_failed",
                inquiry_id=inquiry.id,
                error_type=type(e).__name__,
                error=str(e),
            )

        return IntakeResult(inquiry=inquiry, enrichment_pending=enrichment_pending)
