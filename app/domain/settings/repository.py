"""Settings repository - Database operations for key/value settings"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Setting

ADMIN_PASSWORD_HASH_KEY = "admin_password_hash"


class SettingsRepository:
    """Repository for settings database operations"""

    @staticmethod
    def get_value(db: Session, key: str) -> Optional[str]:
        setting = db.query(Setting).filter(Setting.key == key).first()
        return setting.value if setting else None

    @staticmethod
    def set_value(db: Session, key: str, value: str) -> Setting:
        """Insert or overwrite a setting"""
        setting = db.query(Setting).filter(Setting.key == key).first()
        if setting:
            setting.value = value
        else:
            setting = Setting(key=key, value=value)
            db.add(setting)

        db.commit()
        db.refresh(setting)
        return setting
