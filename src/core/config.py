"""
Centralised settings for the query layer, loaded from environment / .env file.
"""
from __future__ import annotations

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Project root is two levels up from this file
_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(_ROOT / ".env")


class Settings(BaseSettings):
    # ── Metadata ─────────────────────────────────────────
    entity_defs_path: Path = _ROOT / "metadata" / "entity_defs.yml"
    strict_entity_types: bool = True

    # ── Query defaults ───────────────────────────────────
    default_order_by: str = "id"

    # ── App ──────────────────────────────────────────────
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
