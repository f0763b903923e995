"""Validation of seller-inquiry submissions."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from marketplace_api.core.exceptions import ValidationError
from marketplace_api.models.seller_inquiry import VEHICLE_TYPES, SellerInquiry
from marketplace_api.services.normalization import (
    normalize_phone,
    normalize_reg_no,
    normalize_text,
    parse_number,
)


@dataclass(frozen=True)
class InquirySubmission:
    name: str
    phone: str
    reg_no: str
    km_driven: float
    demand: float
    vehicle_type: str = "car"

    def as_values(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "reg_no": self.reg_no,
            "km_driven": self.km_driven,
            "demand": self.demand,
            "vehicle_type": self.vehicle_type,
        }


_COLUMNS = SellerInquiry.__table__.c
NAME_MAX_LENGTH = _COLUMNS.name.type.length
PHONE_MAX_LENGTH = _COLUMNS.phone.type.length
REG_NO_MAX_LENGTH = _COLUMNS.reg_no.type.length


def _error(field: str, message: str) -> Dict[str, str]:
    return {"field": field, "message": message}


def _required_text(errors: List[Dict[str, str]], field: str, label: str, value: str, max_length: int) -> None:
    if not value:
        errors.append(_error(field, f"{label} is required"))
    elif len(value) > max_length:
        errors.append(_error(field, f"{label} must be at most {max_length} characters"))


def collect_submission_errors(fields: Mapping[str, Any]) -> List[Dict[str, str]]:
    """Validate submission data and return one error per offending field."""
    errors = []

    _required_text(errors, "name", "name", normalize_text(fields.get("name")), NAME_MAX_LENGTH)
    _required_text(errors, "phone", "phone", normalize_phone(fields.get("phone")), PHONE_MAX_LENGTH)
    _required_text(
        errors, "regNo", "registration number", normalize_reg_no(fields.get("regNo")), REG_NO_MAX_LENGTH
    )

    raw_km = fields.get("kmDriven")
    km_driven = parse_number(raw_km)
    if raw_km is None or normalize_text(raw_km) == "":
        errors.append(_error("kmDriven", "KM driven is required"))
    elif km_driven is None:
        errors.append(_error("kmDriven", "KM driven must be a number"))
    elif km_driven < 0:
        errors.append(_error("kmDriven", "KM driven cannot be negative"))

    raw_demand = fields.get("demand")
    if raw_demand is None or normalize_text(raw_demand) == "":
        errors.append(_error("demand", "demand is required"))
    elif parse_number(raw_demand) is None:
        errors.append(_error("demand", "demand must be a number"))

    vehicle_type = normalize_text(fields.get("type")).lower()
    if vehicle_type and vehicle_type not in VEHICLE_TYPES:
        errors.append(_error("type", f"type must be one of {', '.join(VEHICLE_TYPES)}"))

    return errors


def parse_submission(fields: Mapping[str, Any]) -> InquirySubmission:
    """Validate and normalize a submission, reporting every failing field at once."""
    errors = collect_submission_errors(fields)
    if errors:
        failing = ", ".join(error["field"] for error in errors)
        raise ValidationError(
            message=f"Invalid or missing fields: {failing}",
            code="validation_error",
            details={"errors": errors},
        )

    return InquirySubmission(
        name=normalize_text(fields.get("name")),
        phone=normalize_phone(fields.get("phone")),
        reg_no=normalize_reg_no(fields.get("regNo")),
        km_driven=parse_number(fields.get("kmDriven")),
        demand=parse_number(fields.get("demand")),
        vehicle_type=normalize_text(fields.get("type")).lower() or "car",
    )
