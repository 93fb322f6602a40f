"""Per-creator data repository.

Each registered creator owns one `CreatorData` record keyed by username.
Mutations are read-modify-write over the whole record with no version
check: two concurrent writers for the same creator race and the last write
wins. Callers assume a single creator session at a time.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from survey_builder.logic.errors import NotFound, OwnerNotFound, ValidationError
from survey_builder.logic.events import (
    CREATOR_DATA_REPAIRED,
    RESPONSE_SUBMITTED,
    SURVEY_SAVED,
    publish,
)
from survey_builder.logic.keys import normalize_username, survey_data_key
from survey_builder.logic.record_store import RecordStore
from survey_builder.logic.user_directory import UserDirectory
from survey_builder.models.survey import CreatorData, PublicSurvey, Survey, SurveyResponse

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SurveyRepository:
    """Creator data access.

    The HTTP surface writes whole records through `replace` (the `saveData`
    action) and responses through `append_response`. `store_survey`,
    `delete_survey` and `set_survey_open` are the same edits as named
    operations for code that embeds the repository, such as admin scripts.
    """

    def __init__(
        self,
        store: RecordStore,
        directory: UserDirectory,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.store = store
        self.directory = directory
        self.clock = clock

    def fetch_or_initialize(self, username: str) -> CreatorData:
        """Return the creator's data, creating the default record if a
        registered user has none yet.

        Raises `NotFound` when the username is not in the directory.
        """
        name = normalize_username(username)
        raw = self.store.get(survey_data_key(name))
        if raw is not None:
            return CreatorData.model_validate(raw)
        if not self.directory.exists(name):
            raise NotFound("User not found")
        data = CreatorData.initial()
        self.store.set(survey_data_key(name), data.to_wire())
        publish(CREATOR_DATA_REPAIRED, {"username": name})
        return data

    def find(self, username: str) -> Optional[CreatorData]:
        try:
            return self.fetch_or_initialize(username)
        except NotFound:
            return None

    def replace(self, username: str, data: CreatorData) -> None:
        name = normalize_username(username)
        self.store.set(survey_data_key(name), data.to_wire())
        publish(
            SURVEY_SAVED,
            {
                "username": name,
                "has_survey": data.survey is not None,
                "responses": len(data.responses),
                "is_survey_open": data.is_survey_open,
            },
        )

    def append_response(self, username: str, answers: Mapping[str, object]) -> SurveyResponse:
        """Append a respondent's answers to the owner's record.

        The open/closed flag is not checked here; closing a survey only
        hides the submit action from respondents.
        """
        try:
            data = self.fetch_or_initialize(username)
        except NotFound:
            raise OwnerNotFound("Survey owner not found.")
        now = self.clock()
        last_id = max((r.id for r in data.responses), default=0)
        try:
            response = SurveyResponse(id=max(now, last_id + 1), submitted_at=now, answers=dict(answers))
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid response payload: {exc.errors()[0].get('msg', 'invalid answers')}")
        data.responses.append(response)
        self.replace(username, data)
        publish(RESPONSE_SUBMITTED, {"owner": normalize_username(username), "response_id": response.id})
        return response

    def store_survey(self, username: str, survey: Survey) -> CreatorData:
        """Install a new survey; earlier responses no longer match it and
        are cleared, and the survey opens for responses."""
        self.fetch_or_initialize(username)
        data = CreatorData(survey=survey, responses=[], is_survey_open=True)
        self.replace(username, data)
        return data

    def delete_survey(self, username: str) -> CreatorData:
        data = self.fetch_or_initialize(username)
        # isSurveyOpen is carried over unchanged.
        data = CreatorData(survey=None, responses=[], is_survey_open=data.is_survey_open)
        self.replace(username, data)
        return data

    def set_survey_open(self, username: str, is_open: bool) -> CreatorData:
        data = self.fetch_or_initialize(username)
        data.is_survey_open = is_open
        self.replace(username, data)
        return data

    def public_survey(self, survey_id: str) -> PublicSurvey:
        data = self.find(survey_id)
        if data is None or data.survey is None:
            raise NotFound("Survey not found")
        return data.public_view()


__all__ = ["SurveyRepository"]
