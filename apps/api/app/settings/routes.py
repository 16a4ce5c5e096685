"""Settings API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import require_admin
from app.common.db import get_db
from app.common.models import Setting, User
from app.settings import schemas
from app.settings.service import SettingsService

router = APIRouter(prefix="/admin/settings", tags=["settings"])


def setting_response(setting: Setting) -> schemas.SettingResponse:
    return schemas.SettingResponse(
        key=setting.key,
        value=setting.value,
        description=setting.description,
        updated_by=setting.updated_by,
        updated_at=setting.updated_at.isoformat(),
    )


@router.get("", response_model=list[schemas.SettingResponse])
async def list_settings(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return [setting_response(s) for s in SettingsService.list_settings(db)]


@router.get("/{key}", response_model=schemas.SettingResponse)
async def get_setting(
    key: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Get a setting. Known settings are seeded with their default on first read."""
    return setting_response(SettingsService.get_or_create_setting(db, key))


@router.put("/{key}", response_model=schemas.SettingResponse)
async def update_setting(
    key: str,
    request: schemas.SettingUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create or update a setting."""
    setting = SettingsService.set_setting(
        db,
        admin.id,
        key,
        request.value,
        description=request.description,
    )
    return setting_response(setting)
