from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

import aiohttp

from marketplace_api.core.exceptions import UpstreamUnavailable
from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.schemas.registry import RegistryRecord
from marketplace_api.services.normalization import normalize_reg_no

logger = get_structlog_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key)
    return value if isinstance(value, Mapping) else {}


def _first_section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key)
    if isinstance(value, list) and value and isinstance(value[0], Mapping):
        return value[0]
    return {}


def _text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _flag(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1")
    return False


def parse_registry_payload(payload: Any) -> Optional[RegistryRecord]:
    """Decode the registry's nested response into a flat record.

    Every field is read with a fallback; only a payload that is not a
    successful object with a ``detail`` section yields None.
    """
    if not isinstance(payload, Mapping) or not payload.get("success"):
        return None
    detail = payload.get("detail")
    if not isinstance(detail, Mapping) or not detail:
        return None

    brand = _section(detail, "brand")
    model = _section(detail, "model")
    year = _section(detail, "year")
    variant = _section(_first_section(detail, "ds_details"), "variant")

    return RegistryRecord(
        make=_text(brand, "make_display"),
        model=_text(model, "model_display"),
        variant=_text(variant, "variant_name"),
        variant_display_name=_text(variant, "variant_display_name"),
        year=_text(year, "year"),
        regn_year=_text(detail, "regn_year"),
        color=_text(detail, "color"),
        body_type=_text(model, "bodyType"),
        fuel_type=_text(variant, "fuel_type") or _text(detail, "fuelType"),
        raw_fuel_type=_text(detail, "rawFuelType"),
        transmission_type=_text(variant, "transmission_type"),
        registered_place=_text(detail, "registeredPlace"),
        registered_at=_text(detail, "registeredAt"),
        vehicle_category=_text(detail, "vehicleCategory"),
        vehicle_class_desc=_text(detail, "vehicleClassDesc"),
        rc_model=_text(detail, "rc_model"),
        rc_status=_text(detail, "rcStatus"),
        rc_owner_count=_text(detail, "rc_owner_sr"),
        rc_owner_name_masked=_text(detail, "rc_owner_name_masked"),
        insurance_company=_text(detail, "insuranceCompany"),
        insurance_up_to=_text(detail, "insuranceUpTo"),
        fitness_up_to=_text(detail, "fitnessUpTo"),
        puc_up_to=_text(detail, "pucUpTo"),
        tax_up_to=_text(detail, "taxUpTo"),
        hypothecation=_flag(detail, "hypothecation"),
        financier=_text(detail, "financier"),
        rto_noc_issued=_text(detail, "rtoNocIssued"),
        manufacturing_month_yr=_text(detail, "manufacturingMonthYr"),
        unladen_wt=_text(detail, "unladenWt"),
        seat_cap=_text(detail, "seatCap"),
    )


class RegistryLookupClient:
    """Looks up vehicles by plate number in the third-party registry."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {
            "Accept": "application/json, text/plain, */*",
            "Authorization": f"Basic {api_key}",
            "User-Agent": "GaadiMarketplace-Registry/1.0",
        }

    async def fetch(self, plate_number: str) -> Optional[RegistryRecord]:
        """Return the normalized record, or None on a miss or any upstream failure."""
        reg_no = normalize_reg_no(plate_number)
        if not reg_no:
            return None
        if not self.base_url:
            logger.warning("registry.not_configured", reg_no=reg_no)
            return None

        try:
            payload = await self._get_detail(reg_no)
        except UpstreamUnavailable as e:
            logger.warning("registry.lookup_failed", reg_no=reg_no, reason=e.message, **e.details)
            return None

        record = parse_registry_payload(payload)
        if record is None:
            logger.info("registry.no_match", reg_no=reg_no)
        else:
            logger.info("registry.match", reg_no=reg_no, make=record.make, model=record.model)
        return record

    async def _get_detail(self, reg_no: str) -> Dict[str, Any]:
        url = f"{self.base_url}/{quote(reg_no, safe='')}"
        try:
            async with self._session.get(
                url,
                headers=self._headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    raise UpstreamUnavailable(
                        "Registry returned an error status",
                        details={"http_status": response.status},
                    )
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise UpstreamUnavailable(
                        "Registry returned a malformed payload",
                        details={"error": str(e)[:200]},
                    ) from e
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable("Registry request timed out") from e
        except aiohttp.ClientError as e:
            raise UpstreamUnavailable(
                "Registry request failed",
                details={"error": str(e)[:200]},
            ) from e
