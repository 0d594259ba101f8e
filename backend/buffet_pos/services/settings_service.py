# Overview: Service-layer operations for store settings (flat key/value rows).

from __future__ import annotations

from ..extensions import db
from ..models import Setting
from ..validation import ValidationError


KNOWN_SETTING_KEYS = ("store_name", "tax_rate", "currency", "receipt_footer", "paper_size")
MAX_KEY_LENGTH = 128


def list_settings() -> list[Setting]:
    return db.session.query(Setting).order_by(Setting.key.asc()).all()


def as_dict() -> dict[str, str | None]:
    return {row.key: row.value for row in list_settings()}


def get_setting(key: str) -> Setting | None:
    return db.session.query(Setting).filter_by(key=key).first()


def get_value(key: str, default: str | None = None) -> str | None:
    row = get_setting(key)
    if row is None or row.value is None:
        return default
    return row.value


def upsert_setting(key: str, value: str | None, *, commit: bool = True) -> Setting:
    key = (key or "").strip()
    if not key:
        raise ValidationError("key is required")
    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError(f"key exceeds max length {MAX_KEY_LENGTH}")
    if value is not None and not isinstance(value, str):
        value = str(value)

    row = get_setting(key)
    if row is None:
        row = Setting(key=key, value=value)
        db.session.add(row)
    else:
        row.value = value

    if commit:
        db.session.commit()
    return row


def upsert_many(values: dict) -> list[Setting]:
    """Save several keys in one commit (the settings page saves all fields together)."""
    if not isinstance(values, dict) or not values:
        raise ValidationError("settings object required")
    rows = [upsert_setting(key, value, commit=False) for key, value in values.items()]
    db.session.commit()
    return rows


def ensure_defaults(defaults: dict[str, str]) -> int:
    """Insert missing keys without overwriting existing values. Returns rows created."""
    created = 0
    for key, value in defaults.items():
        if get_setting(key) is None:
            db.session.add(Setting(key=key, value=value))
            created += 1
    db.session.commit()
    return created
