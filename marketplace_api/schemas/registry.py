# marketplace_api/schemas/registry.py
from __future__ import annotations

from typing import Any, Dict

from marketplace_api.schemas.common import CamelModel


class RegistryRecord(CamelModel):
    """Flat vehicle record decoded from the registry; unknown values stay empty."""

    # Basic info
    make: str = ""
    model: str = ""
    variant: str = ""
    variant_display_name: str = ""
    year: str = ""
    regn_year: str = ""
    color: str = ""
    body_type: str = ""

    # Fuel & transmission
    fuel_type: str = ""
    raw_fuel_type: str = ""
    transmission_type: str = ""

    # Registration
    registered_place: str = ""
    registered_at: str = ""
    vehicle_category: str = ""
    vehicle_class_desc: str = ""
    rc_model: str = ""
    rc_status: str = ""
    rc_owner_count: str = ""
    rc_owner_name_masked: str = ""

    # Insurance & fitness
    insurance_company: str = ""
    insurance_up_to: str = ""
    fitness_up_to: str = ""
    puc_up_to: str = ""
    tax_up_to: str = ""

    # Finance
    hypothecation: bool = False
    financier: str = ""
    rto_noc_issued: str = ""

    # Manufacturing
    manufacturing_month_yr: str = ""
    unladen_wt: str = ""
    seat_cap: str = ""

    def as_fields(self) -> Dict[str, Any]:
        """Column values for a merge-update."""
        return self.model_dump()


class RegistryLookupOut(RegistryRecord):
    reg_no: str


REGISTRY_FIELDS = tuple(RegistryRecord.model_fields)
