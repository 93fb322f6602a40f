"""Store key layout."""

from __future__ import annotations

USERS_KEY = "survey_app_users"
DATA_KEY_PREFIX = "survey_app_data_"


def survey_data_key(username: str) -> str:
    return f"{DATA_KEY_PREFIX}{username}"


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


__all__ = ["USERS_KEY", "DATA_KEY_PREFIX", "survey_data_key", "normalize_username"]
