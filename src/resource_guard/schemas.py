"""Pydantic bases for authorization service payloads.

The service speaks camelCase JSON. Payload models are immutable, accept
either the camelCase alias or the snake_case name on input, and always
dump by alias.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


_SERVICE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    serialize_by_alias=True,
    validate_default=True,
    frozen=True,
)


class ServiceRequest(BaseModel):
    """Outgoing payload. Unknown fields are rejected."""

    model_config = ConfigDict(**_SERVICE_CONFIG, extra="forbid")


class ServiceResponse(BaseModel):
    """Incoming payload. Unknown fields are dropped so that new service
    properties do not break parsing."""

    model_config = ConfigDict(**_SERVICE_CONFIG, extra="ignore")
