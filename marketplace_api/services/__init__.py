# marketplace_api/services/__init__.py
"""
Business logic services organized by domain functionality.
"""

from marketplace_api.services.enrichment import (
    BackgroundEnricher,
    EnrichmentOutcome,
    EnrichmentScheduler,
)
from marketplace_api.services.inquiry_repository import InquiryRepository
from marketplace_api.services.intake import IntakeResult, IntakeService
from marketplace_api.services.lead_dedupe import LeadDeduper, LeadUpsertResult
from marketplace_api.services.media_store import MediaStore
from marketplace_api.services.registry_client import RegistryLookupClient, parse_registry_payload

__all__ = [
    # Enrichment
    "BackgroundEnricher",
    "EnrichmentOutcome",
    "EnrichmentScheduler",
    # Intake
    "IntakeResult",
    "IntakeService",
    "InquiryRepository",
    # External collaborators
    "MediaStore",
    "RegistryLookupClient",
    "parse_registry_payload",
    # Leads
    "LeadDeduper",
    "LeadUpsertResult",
]
