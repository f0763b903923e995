from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from marketplace_api.core.exceptions import NotFoundError
from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.schemas.common import envelope
from marketplace_api.schemas.lead import LeadIn, LeadOut, LeadUpdate
from marketplace_api.services.auth import Identity, require_identity
from marketplace_api.services.container import get_lead_deduper
from marketplace_api.services.lead_dedupe import LeadDeduper

logger = get_structlog_logger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lead(
    payload: LeadIn,
    leads: LeadDeduper = Depends(get_lead_deduper),
):
    """Register an interested user; a known phone number only refreshes its lead."""
    result = await leads.upsert(payload.name, payload.phone, payload.source)

    if result.created:
        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content=envelope(LeadOut.model_validate(result.lead), message="Lead created successfully"),
        )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=envelope(LeadOut.model_validate(result.lead), message="Lead already exists, updated timestamp"),
    )


@router.get("")
async def list_leads(
    leads: LeadDeduper = Depends(get_lead_deduper),
    identity: Identity = Depends(require_identity),
):
    """List leads, newest first."""
    records = await leads.list()
    return envelope([LeadOut.model_validate(lead) for lead in records], count=len(records))


@router.put("/{lead_id}")
async def update_lead(
    lead_id: int,
    payload: LeadUpdate,
    leads: LeadDeduper = Depends(get_lead_deduper),
    identity: Identity = Depends(require_identity),
):
    """Update lead status and notes."""
    lead = await leads.update(lead_id, payload.model_dump(exclude_none=True))
    if lead is None:
        raise NotFoundError(message="Lead not found", details={"lead_id": lead_id})

    logger.info("lead.updated", lead_id=lead_id, subject=identity.subject)
    return envelope(LeadOut.model_validate(lead))


@router.delete("/{lead_id}")
async def delete_lead(
    lead_id: int,
    leads: LeadDeduper = Depends(get_lead_deduper),
    identity: Identity = Depends(require_identity),
):
    """Delete a lead."""
    if not await leads.delete(lead_id):
        raise NotFoundError(message="Lead not found", details={"lead_id": lead_id})

    logger.info("lead.deleted", lead_id=lead_id, subject=identity.subject)
    return envelope(message="Lead deleted successfully")
