"""Configuration loading for the survey builder service.

This module loads application configuration with the following rules:
- Primary source: `survey_config.json` at the project root.
- Overrides: environment variables (a local `.env` is loaded first without
  overriding real variables), then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("survey_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class StoreConfig(BaseModel):
    dsn: str
    table: str = Field(default="kv_record")

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("store.dsn must be a non-empty string")
        return v

    @field_validator("table")
    @classmethod
    def table_must_be_identifier(cls, v: str) -> str:
        if not v.replace("_", "").isalnum():
            raise ValueError("store.table must be a plain SQL identifier")
        return v


class GatewayConfig(BaseModel):
    # Empty key is allowed at load time; conversion fails with GatewayFailure.
    api_key: str = ""
    model: str = Field(default="gemini-2.0-flash")


class AuthConfig(BaseModel):
    scrypt_n: int = Field(default=2**14, gt=1)
    scrypt_r: int = Field(default=8, gt=0)
    scrypt_p: int = Field(default=1, gt=0)

    @field_validator("scrypt_n")
    @classmethod
    def n_must_be_power_of_two(cls, v: int) -> int:
        if v & (v - 1):
            raise ValueError("auth.scrypt_n must be a power of two")
        return v


class ExportConfig(BaseModel):
    include_bom: bool = Field(default=True)


class CorsConfig(BaseModel):
    origins: List[str] = Field(default_factory=lambda: ["*"])


class AppConfig(BaseModel):
    store: StoreConfig
    gateway: GatewayConfig
    auth: AuthConfig
    export: ExportConfig
    cors: CorsConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def _as_bool(text: object) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) survey_config.json at project root (primary base)
    4) Safe defaults for development
    """

    load_dotenv(find_dotenv(usecwd=True), override=False)
    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    # Store
    dsn = _env("DATABASE_URL") or _read_config_file("store.dsn") or _base("store.dsn") or "sqlite+pysqlite:///:memory:"
    table = _env("STORE_TABLE") or _read_config_file("store.table") or _base("store.table", "kv_record")

    # Gateway
    api_key = _env("GEMINI_API_KEY") or _read_config_file("gateway.api_key") or _base("gateway.api_key", "")
    model = _env("LLM_MODEL") or _read_config_file("gateway.model") or _base("gateway.model", "gemini-2.0-flash")

    # Auth
    scrypt_n = _env("SCRYPT_N") or _read_config_file("auth.scrypt_n") or _base("auth.scrypt_n", str(2**14))
    scrypt_r = _env("SCRYPT_R") or _read_config_file("auth.scrypt_r") or _base("auth.scrypt_r", "8")
    scrypt_p = _env("SCRYPT_P") or _read_config_file("auth.scrypt_p") or _base("auth.scrypt_p", "1")

    # Export / CORS
    include_bom = _env("CSV_EXPORT_INCLUDE_BOM") or _read_config_file("export.include_bom") or _base("export.include_bom", "true")
    origins_text = _env("CORS_ORIGINS") or _read_config_file("cors.origins") or _base("cors.origins", "*")

    try:
        cfg = AppConfig(
            store=StoreConfig(dsn=dsn, table=str(table).strip()),
            gateway=GatewayConfig(api_key=(api_key or "").strip(), model=str(model).strip()),
            auth=AuthConfig(
                scrypt_n=int(str(scrypt_n).strip()),
                scrypt_r=int(str(scrypt_r).strip()),
                scrypt_p=int(str(scrypt_p).strip()),
            ),
            export=ExportConfig(include_bom=_as_bool(include_bom)),
            cors=CorsConfig(origins=[o.strip() for o in str(origins_text).split(",") if o.strip()]),
        )
        return cfg
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "StoreConfig",
    "GatewayConfig",
    "AuthConfig",
    "ExportConfig",
    "CorsConfig",
    "load_config",
]
