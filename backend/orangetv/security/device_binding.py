"""
One-machine-per-account policy, evaluated at login.

    existing binding | supplied code        | outcome
    -----------------+----------------------+--------------------------------
    none             | none                 | proceed, unbound
    yes              | none                 | CodeRequired
    yes              | differs (any case)   | CodeMismatch
    yes              | matches (any case)   | proceed, bound
    none             | held by another user | DeviceCodeTaken(owner)
    none             | free                 | proceed, unbound; caller binds

Binding itself goes through crud.bindings.bind, which is a single atomic
conditional write, so two logins racing for the same free code cannot both
end up holding it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from orangetv.core.errors import CodeMismatch, CodeRequired, DeviceCodeTaken
from orangetv.crud import bindings as bindings_crud

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BindingCheck:
    bound: bool
    machine_code: str | None = None


def codes_match(a: str, b: str) -> bool:
    return bindings_crud.normalize_code(a) == bindings_crud.normalize_code(b)


def check_and_bind(db: Session, username: str, supplied_code: str | None = None) -> BindingCheck:
    """
    Evaluate the binding state machine for a login attempt.
    Raises: CodeRequired, CodeMismatch, DeviceCodeTaken, StorageFailure
    """
    binding = bindings_crud.get_binding(db, username)

    if binding is not None:
        if not supplied_code:
            raise CodeRequired()
        if not codes_match(supplied_code, binding.machine_code):
            logger.info("Machine code mismatch for %r", username)
            raise CodeMismatch()
        return BindingCheck(bound=True, machine_code=binding.machine_code)

    if supplied_code:
        owner = bindings_crud.get_code_owner(db, supplied_code)
        if owner and owner != username:
            raise DeviceCodeTaken(owner)

    return BindingCheck(bound=False)


def bind_device(db: Session, username: str, machine_code: str, device_info: str = "") -> bindings_crud.BindingRecord:
    """Explicit bind step. Raises: DeviceCodeTaken, StorageFailure"""
    return bindings_crud.bind(db, username, machine_code, device_info)
