from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from orangetv.security.sanitizer import InputSanitizer


class FriendOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    added_at: int


class FriendAddIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    username: str = Field(min_length=1, max_length=64)


class FriendRequestIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    to_user: str = Field(min_length=1, max_length=64)
    message: Optional[str] = Field(default=None, max_length=500)

    @field_validator('message')
    @classmethod
    def validate_message(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return InputSanitizer.sanitize_message_content(v, max_length=500)


class FriendRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    from_user: str
    to_user: str
    message: Optional[str] = None
    status: str
    created_at: int
    updated_at: int


class FriendRequestRespondIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    status: Literal['accepted', 'rejected']


class ConversationIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str = Field(default='', max_length=255)
    participants: List[str] = Field(min_length=1, max_length=100)
    type: Literal['private', 'group'] = 'private'

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return InputSanitizer.sanitize_string(v, max_length=255).strip()


class ConversationUpdateIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: Optional[str] = Field(default=None, max_length=255)
    participants: Optional[List[str]] = Field(default=None, min_length=1, max_length=100)
    type: Optional[Literal['private', 'group']] = None


class ConversationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    participants: List[str]
    type: str
    created_at: int
    updated_at: int


class MessageIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    content: str = Field(min_length=1, max_length=5000)
    message_type: Literal['text', 'image', 'file'] = 'text'

    @field_validator('content')
    @classmethod
    def validate_content(cls, v: str) -> str:
        return InputSanitizer.sanitize_message_content(v)


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: str
    sender_id: str
    sender_name: str
    content: str
    message_type: str
    timestamp: int
    is_read: bool


class StatusOut(BaseModel):
    status: str = 'ok'
