from __future__ import annotations

import asyncio
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import JSONResponse

from marketplace_api.core.config import settings
from marketplace_api.core.exceptions import NotFoundError, ValidationError
from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.schemas.common import envelope
from marketplace_api.schemas.registry import RegistryLookupOut
from marketplace_api.schemas.seller_inquiry import SellerInquiryOut, SellerInquiryUpdate
from marketplace_api.services.attachments import (
    Attachment,
    InquiryAttachments,
    discard_local_file,
    spool_upload,
)
from marketplace_api.services.auth import Identity, require_identity
from marketplace_api.services.container import (
    get_inquiry_repository,
    get_intake_service,
    get_registry_client,
)
from marketplace_api.services.inquiry_repository import InquiryRepository
from marketplace_api.services.intake import IntakeService
from marketplace_api.services.normalization import normalize_reg_no
from marketplace_api.services.registry_client import RegistryLookupClient

logger = get_structlog_logger(__name__)

router = APIRouter(prefix="/seller-inquiries", tags=["seller-inquiries"])


def _spool_attachments(photos: List[UploadFile], rc_card: Optional[UploadFile]) -> InquiryAttachments:
    max_bytes = settings.max_upload_bytes
    spooled: List[Attachment] = []
    try:
        for upload in photos:
            spooled.append(spool_upload(upload, settings.upload_tmp_dir, max_bytes, "photo"))
        rc_card_attachment = (
            spool_upload(rc_card, settings.upload_tmp_dir, max_bytes, "rcCard") if rc_card is not None else None
        )
    except Exception:
        for attachment in spooled:
            discard_local_file(attachment.path)
        raise
    return InquiryAttachments(photos=spooled, rc_card=rc_card_attachment)


async def _lookup(plate: str, registry: RegistryLookupClient) -> RegistryLookupOut:
    reg_no = normalize_reg_no(plate)
    if not reg_no:
        raise ValidationError(
            message="Registration number is required",
            details={"errors": [{"field": "regNo", "message": "registration number is required"}]},
        )

    record = await registry.fetch(reg_no)
    if record is None:
        raise NotFoundError(
            message="Vehicle details not found for this registration number",
            details={"reg_no": reg_no},
        )
    return RegistryLookupOut(reg_no=reg_no, **record.model_dump())


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_seller_inquiry(
    name: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    reg_no: Optional[str] = Form(None, alias="regNo"),
    km_driven: Optional[str] = Form(None, alias="kmDriven"),
    demand: Optional[str] = Form(None),
    vehicle_type: Optional[str] = Form(None, alias="type"),
    photo: Optional[List[UploadFile]] = File(None),
    rc_card: Optional[UploadFile] = File(None, alias="rcCard"),
    intake: IntakeService = Depends(get_intake_service),
):
    """Submit a seller inquiry. Media and registry details are filled in afterwards."""
    photos = [upload for upload in (photo or []) if upload.filename]
    if rc_card is not None and not rc_card.filename:
        rc_card = None

    if len(photos) > settings.max_inquiry_photos:
        raise ValidationError(
            message=f"At most {settings.max_inquiry_photos} photos may be attached",
            details={"errors": [{"field": "photo", "message": "too many photos"}]},
        )

    attachments = await asyncio.to_thread(_spool_attachments, photos, rc_card)
    fields = {
        "name": name,
        "phone": phone,
        "regNo": reg_no,
        "kmDriven": km_driven,
        "demand": demand,
        "type": vehicle_type,
    }
    result = await intake.submit(fields, attachments)

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=envelope(
            SellerInquiryOut.model_validate(result.inquiry),
            message="Seller inquiry submitted successfully",
            enrichmentPending=result.enrichment_pending,
        ),
    )


@router.get("/lookup/{plate}")
async def lookup_vehicle(
    plate: str,
    registry: RegistryLookupClient = Depends(get_registry_client),
    identity: Identity = Depends(require_identity),
):
    """Look up registry details for a plate number."""
    record = await _lookup(plate, registry)
    logger.info("registry.lookup", reg_no=record.reg_no, subject=identity.subject)
    return envelope(record)


@router.get("/public-lookup/{plate}")
async def public_lookup_vehicle(
    plate: str,
    registry: RegistryLookupClient = Depends(get_registry_client),
):
    """Public plate lookup; the registry already masks owner details."""
    return envelope(await _lookup(plate, registry))


@router.get("")
async def list_seller_inquiries(
    status_filter: Optional[Literal["new", "contacted", "completed", "rejected"]] = Query(None, alias="status"),
    repository: InquiryRepository = Depends(get_inquiry_repository),
    identity: Identity = Depends(require_identity),
):
    """List seller inquiries, newest first."""
    inquiries = await repository.list(status=status_filter)
    return envelope(
        [SellerInquiryOut.model_validate(inquiry) for inquiry in inquiries],
        count=len(inquiries),
    )


@router.get("/{inquiry_id}")
async def get_seller_inquiry(
    inquiry_id: int,
    repository: InquiryRepository = Depends(get_inquiry_repository),
    identity: Identity = Depends(require_identity),
):
    """Get seller inquiry details by ID."""
    inquiry = await repository.get(inquiry_id)
    if inquiry is None:
        raise NotFoundError(message="Seller inquiry not found", details={"inquiry_id": inquiry_id})
    return envelope(SellerInquiryOut.model_validate(inquiry))


@router.put("/{inquiry_id}")
async def update_seller_inquiry(
    inquiry_id: int,
    payload: SellerInquiryUpdate,
    repository: InquiryRepository = Depends(get_inquiry_repository),
    identity: Identity = Depends(require_identity),
):
    """Update status and notes of a seller inquiry."""
    fields = payload.model_dump(exclude_none=True)
    if not await repository.merge_update(inquiry_id, fields):
        raise NotFoundError(message="Seller inquiry not found", details={"inquiry_id": inquiry_id})

    logger.info("inquiry.updated", inquiry_id=inquiry_id, fields=sorted(fields), subject=identity.subject)
    return envelope(SellerInquiryOut.model_validate(await repository.get(inquiry_id)))


@router.delete("/{inquiry_id}")
async def delete_seller_inquiry(
    inquiry_id: int,
    repository: InquiryRepository = Depends(get_inquiry_repository),
    identity: Identity = Depends(require_identity),
):
    """Delete a seller inquiry."""
    if not await repository.delete(inquiry_id):
        raise NotFoundError(message="Seller inquiry not found", details={"inquiry_id": inquiry_id})

    logger.info("inquiry.deleted_by_admin", inquiry_id=inquiry_id, subject=identity.subject)
    return envelope(message="Seller inquiry deleted successfully")
