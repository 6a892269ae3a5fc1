from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserEntry(BaseModel):
    """Per-user admin settings. Unknown keys are kept."""
    model_config = ConfigDict(extra='allow')

    username: str
    role: str = 'user'
    banned: bool = False


class UserSettings(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    users: List[UserEntry] = Field(default_factory=list, alias='Users')


class SiteSettings(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    enable_chat: bool = Field(default=True, alias='EnableChat')


class AdminConfig(BaseModel):
    """Decoded admin settings blob ({"SiteConfig": ..., "UserConfig": ...})."""
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    site: SiteSettings = Field(default_factory=SiteSettings, alias='SiteConfig')
    users: UserSettings = Field(default_factory=UserSettings, alias='UserConfig')

    def find_user(self, username: str) -> Optional[UserEntry]:
        for entry in self.users.users:
            if entry.username == username:
                return entry
        return None


class PublicConfigOut(BaseModel):
    model_config = ConfigDict(extra='forbid')

    EnableChat: bool = True
