# schemas/event.py

import json
from datetime import datetime
from typing import Optional, Union

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, IPvAnyAddress, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from event_analytics.core.errors import ValidationError

_URL = TypeAdapter(AnyUrl)


def _check_uri(v: str) -> str:
    # validate, but keep the submitted text rather than pydantic's normalized form
    try:
        _URL.validate_python(v)
    except PydanticValidationError:
        raise ValueError("must be a valid uri") from None
    return v


def parse_iso8601(text: str) -> datetime:
    """ISO-8601 date or date-time text only; numbers and epoch strings are refused."""
    return datetime.fromisoformat(text.strip())


class EventMetadata(BaseModel):
    # keys may be left out, but a present key must hold a string
    browser: Optional[str] = None
    os: Optional[str] = None
    screenSize: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("browser", "os", "screenSize", mode="before")
    @classmethod
    def _present_means_string(cls, v):
        if not isinstance(v, str):
            raise ValueError("must be a string")
        return v


class EventCollect(BaseModel):
    event: str = Field(..., min_length=1)
    url: str
    referrer: Optional[str] = None
    device: str = Field(..., min_length=1)
    ip_address: IPvAnyAddress = Field(..., alias="ipAddress")
    user_id: Optional[str] = Field(default=None, alias="userId")
    timestamp: datetime

    # either the object itself or its JSON text
    event_metadata: Optional[Union[EventMetadata, str]] = Field(default=None, alias="metadata")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @field_validator("url")
    @classmethod
    def _absolute_url(cls, v: str) -> str:
        return _check_uri(v)

    @field_validator("referrer")
    @classmethod
    def _optional_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        return _check_uri(v)

    @field_validator("ip_address", mode="before")
    @classmethod
    def _ip_literal(cls, v):
        # an integer would otherwise be read as a packed address
        if not isinstance(v, str):
            raise ValueError("must be an IP address string")
        return v

    @field_validator("timestamp", mode="before")
    @classmethod
    def _iso_timestamp(cls, v):
        if isinstance(v, datetime):
            return v
        if not isinstance(v, str):
            raise ValueError("must be in ISO 8601 date format")
        try:
            return parse_iso8601(v)
        except ValueError:
            raise ValueError("must be in ISO 8601 date format") from None

    @field_validator("event_metadata")
    @classmethod
    def _serialized_metadata_is_object(cls, v):
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
            except ValueError as e:
                raise ValueError("metadata must be an object or its JSON serialization") from e
            if not isinstance(parsed, dict):
                raise ValueError("metadata must be an object or its JSON serialization")
            try:
                EventMetadata.model_validate(parsed)
            except PydanticValidationError:
                raise ValueError("metadata may only hold browser, os and screenSize strings") from None
        return v


class EventCollected(BaseModel):
    success: bool = True
    message: str = "Event recorded successfully"


def parse_date_bound(value: Optional[str], field: str) -> Optional[datetime]:
    """Parses an ISO-8601 date or date-time query value; a bare date means midnight."""
    if value is None or value == "":
        return None
    try:
        return parse_iso8601(value)
    except ValueError:
        raise ValidationError(
            "Validation Error",
            errors=[{"field": field, "message": f'"{field}" must be in ISO 8601 date format', "value": value}],
        ) from None
