from __future__ import annotations

from typing import Optional

from extensions import db
from models import AppSetting


def get_setting(key: str, default: Optional[str] = None) -> Optional[str]:
    row = db.session.execute(db.select(AppSetting).filter_by(key=key)).scalar_one_or_none()
    if row is None or row.value is None:
        return default
    return row.value


def set_setting(key: str, value: Optional[str]) -> None:
    row = db.session.execute(db.select(AppSetting).filter_by(key=key)).scalar_one_or_none()
    if row is None:
        row = AppSetting(key=key)
        db.session.add(row)
    row.value = value
    db.session.commit()
