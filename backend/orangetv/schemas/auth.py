from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from orangetv.security.sanitizer import InputSanitizer


class LoginIn(BaseModel):
    """
    Login request. In shared-password mode only `password` is used.
    """
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    username: Optional[str] = Field(default=None, max_length=64)
    password: str = Field(min_length=1, max_length=128)
    machine_code: Optional[str] = Field(default=None, alias='machineCode', max_length=128)

    @field_validator('password')
    @classmethod
    def validate_password_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Password cannot be empty')
        return v

    @field_validator('machine_code')
    @classmethod
    def validate_machine_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return InputSanitizer.sanitize_machine_code(v)


class LoginOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    username: Optional[str] = None
    machine_code_bound: bool = Field(default=False, alias='machineCodeBound')


class RegisterIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=1, max_length=128)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        return InputSanitizer.sanitize_username(v)


class ChangePasswordIn(BaseModel):
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    new_password: str = Field(min_length=1, max_length=128, alias='newPassword')

    @field_validator('new_password')
    @classmethod
    def validate_password_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Password cannot be empty')
        return v


class MachineCodeIn(BaseModel):
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    machine_code: str = Field(alias='machineCode', max_length=128)
    device_info: str = Field(default='', alias='deviceInfo', max_length=255)

    @field_validator('machine_code')
    @classmethod
    def validate_machine_code(cls, v: str) -> str:
        return InputSanitizer.sanitize_machine_code(v)

    @field_validator('device_info')
    @classmethod
    def validate_device_info(cls, v: str) -> str:
        return InputSanitizer.sanitize_string(v, max_length=255)


class MachineCodeOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    machine_code: Optional[str] = Field(default=None, alias='machineCode')
    is_bound: bool = Field(default=False, alias='isBound')


class BindingOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    username: str
    machine_code: str = Field(alias='machineCode')
    device_info: str = Field(default='', alias='deviceInfo')
    bind_time: int = Field(alias='bindTime')
