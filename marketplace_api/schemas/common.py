# marketplace_api/schemas/common.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def envelope(
    data: Any = None,
    *,
    message: Optional[str] = None,
    success: bool = True,
    errors: Any = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build the ``{success, message?, data?, errors?}`` response body."""
    body: Dict[str, Any] = {"success": success}
    if message is not None:
        body["message"] = message
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, mode="json")
    elif isinstance(data, list):
        data = [
            item.model_dump(by_alias=True, mode="json") if isinstance(item, BaseModel) else item
            for item in data
        ]
    if data is not None:
        body["data"] = data
    if errors is not None:
        body["errors"] = errors
    body.update(extra)
    return body
