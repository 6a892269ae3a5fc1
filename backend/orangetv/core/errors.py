"""
Service error taxonomy.

Every error raised by the crud/security layers derives from ServiceError and
carries the HTTP status it is rendered with plus optional flags that end up
in the JSON body next to "error".
"""
from __future__ import annotations

from typing import Any

from fastapi import status


class ServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: str | None = None, **flags: Any) -> None:
        self.message = message or self.default_message
        self.flags = flags
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, **self.flags}


class InvalidInput(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid username or password"


class AccountBanned(Unauthorized):
    default_message = "Account is banned"


class MalformedCredential(Unauthorized):
    default_message = "Malformed session credential"


class PermissionDenied(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Permission denied"


class DeviceConflict(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Device conflict"


class CodeRequired(DeviceConflict):
    default_message = "This account is bound to a device, machine code required"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, requireMachineCode=True)


class CodeMismatch(DeviceConflict):
    default_message = "Machine code mismatch, this account can only be used on its bound device"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, machineCodeMismatch=True)


class DeviceCodeTaken(ServiceError):
    # Discloses the owning handle so a human can resolve the conflict.
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, owner: str) -> None:
        self.owner = owner
        super().__init__(
            f"Machine code is already bound to user {owner}",
            machineCodeTaken=True,
            owner=owner,
        )


class DuplicateHandle(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Username already exists"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class TooManyAttempts(ServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many login attempts"


class StorageFailure(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Database error"
