"""Settings service layer: administrator-editable key/value settings."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.common.models import Setting
from app.core.config import settings as app_settings
from app.core.errors import NotFoundError, ValidationAPIError

logger = logging.getLogger(__name__)

BASIC_SPLIT_KEY = "basic_contribution_split_lift"

# Stored contribution percentages keep two decimals
PERCENTAGE_PLACES = Decimal("0.01")

# Seed values for settings that must always resolve
DEFAULT_SETTINGS = {
    BASIC_SPLIT_KEY: (
        "50",
        "Percentage of each BASIC contribution allocated to the LIFT bucket",
    ),
}


def parse_percentage(value: object) -> Optional[Decimal]:
    """Parse a 0-100 percentage, returning None when it is unusable."""
    try:
        pct = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not pct.is_finite() or pct < 0 or pct > 100:
        return None
    return pct


class SettingsService:
    """Service for reading and upserting settings."""

    @staticmethod
    def list_settings(db: Session) -> list[Setting]:
        """List all settings ordered by key."""
        return list(db.execute(select(Setting).order_by(Setting.key)).scalars().all())

    @staticmethod
    def get_setting(db: Session, key: str) -> Setting:
        """Get a setting by key."""
        setting = db.get(Setting, key)
        if not setting:
            raise NotFoundError("Setting", key)
        return setting

    @staticmethod
    def get_or_create_setting(db: Session, key: str) -> Setting:
        """Get a setting, seeding it from DEFAULT_SETTINGS when missing."""
        setting = db.get(Setting, key)
        if setting:
            return setting

        if key not in DEFAULT_SETTINGS:
            raise NotFoundError("Setting", key)

        value, description = DEFAULT_SETTINGS[key]
        setting = Setting(key=key, value=value, description=description)
        db.add(setting)
        db.commit()
        db.refresh(setting)
        logger.info("Seeded default setting", extra={"key": key, "value": value})
        return setting

    @staticmethod
    def set_setting(
        db: Session,
        actor_id: UUID,
        key: str,
        value: str,
        description: Optional[str] = None,
    ) -> Setting:
        """Create or update a setting.

        The split percentage is validated here because BASIC contributions
        read it on every create and update.
        """
        if key == BASIC_SPLIT_KEY:
            pct = parse_percentage(value)
            if pct is None:
                raise ValidationAPIError(
                    "Split percentage must be between 0 and 100", field="value"
                )
            if pct.as_tuple().exponent < -2:
                raise ValidationAPIError(
                    "Split percentage allows at most two decimal places",
                    field="value",
                )

        setting = db.get(Setting, key)
        if setting:
            setting.value = value
            if description is not None:
                setting.description = description
            setting.updated_by = actor_id
        else:
            setting = Setting(
                key=key,
                value=value,
                description=description,
                updated_by=actor_id,
            )
            db.add(setting)

        db.commit()
        db.refresh(setting)
        logger.info(
            "Setting updated",
            extra={"key": key, "value": value, "actor_id": str(actor_id)},
        )
        return setting

    @staticmethod
    def get_default_lift_percentage(db: Session) -> Decimal:
        """Current LIFT share for BASIC contributions.

        Falls back to ``settings.default_lift_split`` when the row is missing
        or holds something that is not a 0-100 number.
        """
        fallback = Decimal(str(app_settings.default_lift_split))
        setting = db.get(Setting, BASIC_SPLIT_KEY)
        if setting is None:
            return fallback

        pct = parse_percentage(setting.value)
        if pct is None:
            logger.warning(
                "Ignoring unusable split setting",
                extra={"key": BASIC_SPLIT_KEY, "value": setting.value},
            )
            return fallback
        return pct.quantize(PERCENTAGE_PLACES, rounding=ROUND_HALF_UP)
