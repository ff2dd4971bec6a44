"""
Base pydantic model for has_filters schemas.

Fields are exposed under camelCase aliases for API payloads while still
accepting their snake_case names.
"""

from __future__ import annotations

from humps import camelize
from pydantic import BaseModel, ConfigDict


class _FilterModel(BaseModel):
    """
    A base Pydantic model for all has_filters schemas.

    `model_config` generates camelCase aliases, allows population by field name
    and reads attributes from ORM objects.
    """

    model_config = ConfigDict(
        alias_generator=camelize,
        populate_by_name=True,
        from_attributes=True,
    )
