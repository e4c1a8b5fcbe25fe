from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping

from .db import default_db_path


@dataclass(frozen=True)
class Settings:
    db_path: Path
    user_id: str | None
    timezone: str | None
    journal_mode: str
    log_level: str


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    return text or None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    db_text = _clean(env.get("POMOLOG_DB"))
    return Settings(
        db_path=Path(db_text) if db_text else default_db_path(),
        user_id=_clean(env.get("POMOLOG_USER")),
        timezone=_clean(env.get("POMOLOG_TIMEZONE")),
        journal_mode=(_clean(env.get("POMOLOG_JOURNAL_MODE")) or "MEMORY").upper(),
        log_level=(_clean(env.get("POMOLOG_LOG_LEVEL")) or "WARNING").upper(),
    )
