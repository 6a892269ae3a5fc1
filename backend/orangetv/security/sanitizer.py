"""
Input sanitization utilities.

Prevents:
- Null bytes and control characters in single-line fields
- Script/XSS payloads in chat text
- Malformed or oversized avatar payloads
"""
import base64
import binascii
import re
from typing import Optional

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

_http_url = TypeAdapter(AnyHttpUrl)


class InputSanitizer:
    """Validates and sanitizes user input."""

    NULL_BYTE_PATTERN = re.compile(r'\x00')
    CONTROL_CHAR_PATTERN = re.compile(r'[\x00-\x08\x0b-\x0c\x0e-\x1f\x7f]')  # Except \t=0x09, \n=0x0a, \r=0x0d
    SCRIPT_PATTERN = re.compile(r'<script|javascript:|onerror|onclick|<iframe|<embed', re.IGNORECASE)
    USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_\-]+$')
    MACHINE_CODE_PATTERN = re.compile(r'^[a-zA-Z0-9\-]{4,128}$')

    @staticmethod
    def sanitize_string(value: str, max_length: Optional[int] = None, allow_newlines: bool = False) -> str:
        """
        Sanitize string input.

        Raises:
            ValueError: If input contains dangerous patterns
        """
        if not isinstance(value, str):
            raise ValueError("Input must be string")

        if InputSanitizer.NULL_BYTE_PATTERN.search(value):
            raise ValueError("Null bytes not allowed")

        if allow_newlines:
            stripped = InputSanitizer.CONTROL_CHAR_PATTERN.sub('', value)
            if stripped != value:
                raise ValueError("Control characters not allowed")
        elif InputSanitizer.CONTROL_CHAR_PATTERN.search(value) or '\n' in value or '\r' in value:
            raise ValueError("Control characters not allowed")

        if max_length and len(value) > max_length:
            raise ValueError(f"Input exceeds max length of {max_length}")

        return value

    @staticmethod
    def sanitize_username(value: str) -> str:
        """Validate username format (alphanumeric + underscore/dash)."""
        value = InputSanitizer.sanitize_string(value, max_length=64).strip()
        if len(value) < 3:
            raise ValueError("Username must be at least 3 characters")

        if not InputSanitizer.USERNAME_PATTERN.match(value):
            raise ValueError("Username must contain only alphanumeric, dash, underscore")

        return value

    @staticmethod
    def sanitize_machine_code(value: str) -> str:
        value = InputSanitizer.sanitize_string(value, max_length=128).strip()
        if not InputSanitizer.MACHINE_CODE_PATTERN.match(value):
            raise ValueError("Invalid machine code format")
        return value

    @staticmethod
    def sanitize_message_content(value: str, max_length: int = 5000) -> str:
        """Chat text: newlines allowed, script payloads rejected."""
        if not value or not value.strip():
            raise ValueError("Message cannot be empty")
        value = InputSanitizer.sanitize_string(value, max_length=max_length, allow_newlines=True)
        if InputSanitizer.SCRIPT_PATTERN.search(value):
            raise ValueError("Script/XSS patterns not allowed")
        return value

    @staticmethod
    def validate_avatar(value: str, max_bytes: int) -> str:
        """
        Accept either an inline data:image/...;base64,<data> payload no larger
        than max_bytes once decoded, or an absolute http(s) URL.

        Raises:
            ValueError: If the avatar is neither, or too large
        """
        if not isinstance(value, str) or not value:
            raise ValueError("Avatar must be a non-empty string")

        if value.startswith('data:image/'):
            header, _, data = value.partition(',')
            if not data or not header.endswith(';base64'):
                raise ValueError("Invalid base64 image format")
            if len(data) * 3 // 4 > max_bytes:
                raise ValueError(f"Image must not exceed {max_bytes // (1024 * 1024)}MB")
            try:
                base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError):
                raise ValueError("Invalid base64 image format")
            return value

        if value.startswith(('http://', 'https://')):
            try:
                _http_url.validate_python(value)
            except ValidationError:
                raise ValueError("Invalid image URL")
            return value

        raise ValueError("Avatar must be a base64 data URL or an http(s) URL")
