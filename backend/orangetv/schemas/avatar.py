from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AvatarIn(BaseModel):
    """Avatar upload: base64 data URL or http(s) URL, validated in the route."""
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    avatar: str = Field(min_length=1)
    target_user: Optional[str] = Field(default=None, alias='targetUser', max_length=64)


class AvatarOut(BaseModel):
    avatar: Optional[str] = None
