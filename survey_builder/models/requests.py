"""Request payload models for the ``/api/data`` POST actions."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ActionEnvelope(BaseModel):
    action: Optional[str] = None
    payload: Any = None


class SaveUserPayload(BaseModel):
    username: str
    password: str


class AuthenticatePayload(BaseModel):
    username: str
    password_raw: str


class AddResponsePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    owner_username: str = Field(alias="ownerUsername")
    answers: Dict[str, Any]


class CreateSurveyPayload(BaseModel):
    text: str


__all__ = [
    "ActionEnvelope",
    "SaveUserPayload",
    "AuthenticatePayload",
    "AddResponsePayload",
    "CreateSurveyPayload",
]
