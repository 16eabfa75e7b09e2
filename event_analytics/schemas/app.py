# schemas/app.py

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AppType = Literal["website", "mobile", "desktop"]


class ApplicationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    domain: Optional[str] = Field(default=None, max_length=255)
    type: AppType


class ApplicationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    domain: Optional[str] = Field(default=None, max_length=255)
    type: Optional[AppType] = None


class AppIdRequest(BaseModel):
    app_id: str = Field(..., min_length=1, alias="appId")

    model_config = ConfigDict(populate_by_name=True)


class AccessKeyRead(BaseModel):
    id: int
    key_prefix: str
    is_active: bool
    expires_at: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class AccessKeyIssued(BaseModel):
    api_key: str  # shown once
    expires_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApplicationRead(BaseModel):
    id: str
    account_id: str
    name: str
    domain: Optional[str] = None
    type: str
    created_at: datetime
    updated_at: datetime
    api_keys: List[AccessKeyRead] = []

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class ApplicationRegistered(BaseModel):
    app_id: str
    api_key: str  # shown once
    expires_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
