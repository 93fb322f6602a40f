"""User directory: one store record mapping username to credential.

Registration also writes the creator's initial data record, so every
directory entry has a matching data record from the moment it exists.
"""

from __future__ import annotations

import logging
import re
from typing import Dict

from survey_builder.logic.credentials import CredentialHasher
from survey_builder.logic.errors import AlreadyExists, InvalidCredentials, ValidationError
from survey_builder.logic.events import USER_REGISTERED, publish
from survey_builder.logic.keys import USERS_KEY, normalize_username, survey_data_key
from survey_builder.logic.record_store import RecordStore
from survey_builder.models.survey import CreatorData, Credential

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
_WHITESPACE = re.compile(r"\s")


def validate_registration(username: str, password: str) -> None:
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters.")
    if _WHITESPACE.search(username):
        raise ValidationError("Username must not contain whitespace.")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")


class UserDirectory:
    def __init__(self, store: RecordStore, hasher: CredentialHasher) -> None:
        self.store = store
        self.hasher = hasher

    def _users(self) -> Dict[str, dict]:
        return self.store.get(USERS_KEY) or {}

    def exists(self, username: str) -> bool:
        return normalize_username(username) in self._users()

    def register(self, username: str, password: str) -> str:
        """Create a credential and the creator's empty data record.

        Returns the normalized username. Raises `AlreadyExists` when the
        username is taken; the stored credential is never overwritten.
        """
        name = normalize_username(username)
        validate_registration(name, password)
        users = self._users()
        if name in users:
            logger.info("register_rejected_duplicate username=%s", name)
            raise AlreadyExists("This username already exists.")
        users[name] = Credential(username=name, password=self.hasher.hash(password)).model_dump()
        self.store.set(USERS_KEY, users)
        self.store.set(survey_data_key(name), CreatorData.initial().to_wire())
        publish(USER_REGISTERED, {"username": name})
        return name

    def authenticate(self, username: str, password: str) -> str:
        name = normalize_username(username)
        users = self._users()
        record = users.get(name)
        if record is None:
            raise InvalidCredentials("Invalid username or password.")
        credential = Credential.model_validate(record)
        if not self.hasher.verify(password or "", credential.password):
            raise InvalidCredentials("Invalid username or password.")
        if self.hasher.needs_rehash(credential.password):
            users[name] = Credential(username=name, password=self.hasher.hash(password)).model_dump()
            self.store.set(USERS_KEY, users)
            logger.info("credential_rehashed username=%s", name)
        return name


__all__ = [
    "UserDirectory",
    "validate_registration",
    "MIN_USERNAME_LENGTH",
    "MIN_PASSWORD_LENGTH",
]
