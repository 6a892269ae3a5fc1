# backend/orangetv/api/routes/machine_code.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orangetv.core.errors import PermissionDenied
from orangetv.core.security import CurrentSession, get_current_user
from orangetv.crud import bindings as bindings_crud
from orangetv.db.session import get_db
from orangetv.schemas.auth import BindingOut, MachineCodeIn, MachineCodeOut
from orangetv.schemas.social import StatusOut
from orangetv.security.device_binding import bind_device

router = APIRouter(prefix="/api", tags=["machine-code"])


def _binding_out(record: bindings_crud.BindingRecord) -> BindingOut:
    return BindingOut(
        username=record.username,
        machine_code=record.machine_code,
        device_info=record.device_info,
        bind_time=record.bind_time,
    )


@router.get("/machine-code", response_model=MachineCodeOut, response_model_by_alias=True)
def get_machine_code(
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    code = bindings_crud.get_machine_code(db, session.username)
    return MachineCodeOut(machine_code=code, is_bound=code is not None)


@router.post("/machine-code", response_model=BindingOut, response_model_by_alias=True)
def bind_machine_code(
    payload: MachineCodeIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    record = bind_device(db, session.username, payload.machine_code, payload.device_info)
    return _binding_out(record)


@router.delete("/machine-code", response_model=StatusOut)
def unbind_machine_code(
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    bindings_crud.unbind(db, session.username)
    return StatusOut()


@router.get("/admin/machine-codes", response_model=List[BindingOut], response_model_by_alias=True)
def list_machine_codes(
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    if not session.is_privileged:
        raise PermissionDenied()
    return [_binding_out(r) for r in bindings_crud.list_bindings(db)]


@router.delete("/admin/machine-codes/{username}", response_model=StatusOut)
def admin_unbind_machine_code(
    username: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    if not session.is_privileged:
        raise PermissionDenied()
    bindings_crud.unbind(db, username)
    return StatusOut()
