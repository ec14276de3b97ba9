from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ValidateTokenRequest(BaseModel):
    token: str = Field(default="", max_length=4096)


class SessionUserResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    uuid: str
    email: str | None
    display_name: str | None
    avatar_url: str | None
    stream_key: str
    oauth_provider: str | None


class OAuthLoginUserPayload(SessionUserResponse):
    is_new_user: bool
    account_linked: bool


class ValidateTokenResponse(BaseModel):
    user: SessionUserResponse
