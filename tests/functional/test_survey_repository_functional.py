"""Functional tests for the per-creator data repository."""

from __future__ import annotations

import pytest

from survey_builder.logic.errors import NotFound, OwnerNotFound, ValidationError
from survey_builder.logic.events import CREATOR_DATA_REPAIRED, RESPONSE_SUBMITTED, get_buffered_events
from survey_builder.logic.keys import USERS_KEY, survey_data_key
from survey_builder.models.survey import (
    CreatorData,
    MultipleAnswer,
    Question,
    SingleAnswer,
    Survey,
)


@pytest.fixture
def survey() -> Survey:
    return Survey(
        title="Course feedback",
        questions=[
            Question(id=1, text="Lectures were useful", type="likert-5", options=["a", "b"]),
            Question(id=2, text="Tools", type="multiple-choice", options=["Excel", "R"]),
        ],
    )


@pytest.fixture
def owner(directory) -> str:
    return directory.register("owner", "secret1")


def test_fetch_after_registration_returns_defaults(repository, owner):
    data = repository.fetch_or_initialize(owner)
    assert data.to_wire() == {"survey": None, "responses": [], "isSurveyOpen": True}


def test_fetch_unknown_user_raises_not_found(repository, store):
    with pytest.raises(NotFound):
        repository.fetch_or_initialize("ghost")
    assert store.get(survey_data_key("ghost")) is None
    assert repository.find("ghost") is None


def test_fetch_repairs_missing_record_for_registered_user(repository, store):
    store.set(USERS_KEY, {"legacy": {"username": "legacy", "password": "x"}})

    data = repository.fetch_or_initialize("legacy")

    assert data == CreatorData.initial()
    assert store.get(survey_data_key("legacy")) == CreatorData.initial().to_wire()
    assert get_buffered_events()[-1]["type"] == CREATOR_DATA_REPAIRED


def test_sequential_responses_are_both_kept_with_distinct_ids(repository, owner, survey):
    repository.store_survey(owner, survey)

    first = repository.append_response(owner, {"q-1": "أوافق", "q-2": ["Excel"]})
    second = repository.append_response(owner, {"q-1": "محايد", "q-2": ["R", "Excel"]})

    data = repository.fetch_or_initialize(owner)
    assert len(data.responses) == 2
    assert first.id != second.id
    assert [r.id for r in data.responses] == [first.id, second.id]
    assert [e["type"] for e in get_buffered_events()].count(RESPONSE_SUBMITTED) == 2


def test_response_ids_stay_unique_when_clock_stalls(store, directory, survey):
    from survey_builder.logic.survey_repository import SurveyRepository

    repo = SurveyRepository(store, directory, clock=lambda: 1000)
    directory.register("stalled", "secret1")
    repo.store_survey("stalled", survey)

    ids = [repo.append_response("stalled", {"q-1": "محايد"}).id for _ in range(3)]

    assert ids == [1000, 1001, 1002]
    assert all(r.submitted_at == 1000 for r in repo.fetch_or_initialize("stalled").responses)


def test_answers_are_tagged_by_shape(repository, owner, survey):
    repository.store_survey(owner, survey)
    response = repository.append_response(owner, {"q-1": "أوافق", "q-2": ["Excel", "R"]})

    assert response.answer_for(1) == SingleAnswer(value="أوافق")
    assert response.answer_for(2) == MultipleAnswer(values=["Excel", "R"])
    stored = repository.fetch_or_initialize(owner).to_wire()["responses"][0]
    assert stored["answers"] == {"q-1": "أوافق", "q-2": ["Excel", "R"]}
    assert set(stored) == {"id", "submittedAt", "answers"}


def test_response_for_unregistered_owner_fails_without_creating_record(repository, store):
    with pytest.raises(OwnerNotFound):
        repository.append_response("nobody", {"q-1": "x"})
    assert store.get(survey_data_key("nobody")) is None


def test_response_is_accepted_when_survey_closed(repository, owner, survey):
    repository.store_survey(owner, survey)
    repository.set_survey_open(owner, False)

    repository.append_response(owner, {"q-1": "أوافق"})

    data = repository.fetch_or_initialize(owner)
    assert data.is_survey_open is False
    assert len(data.responses) == 1


def test_invalid_answer_shape_is_rejected(repository, owner, survey):
    repository.store_survey(owner, survey)
    with pytest.raises(ValidationError):
        repository.append_response(owner, {"q-1": {"nested": True}})
    with pytest.raises(ValidationError):
        repository.append_response(owner, {"q-2": ["Excel", 3]})
    assert repository.fetch_or_initialize(owner).responses == []


def test_delete_survey_clears_responses_and_preserves_open_flag(repository, owner, survey):
    repository.store_survey(owner, survey)
    repository.append_response(owner, {"q-1": "أوافق"})
    repository.set_survey_open(owner, False)

    repository.delete_survey(owner)

    data = repository.fetch_or_initialize(owner)
    assert data.survey is None
    assert data.responses == []
    assert data.is_survey_open is False


def test_replace_overwrites_whole_record(repository, owner, survey):
    repository.store_survey(owner, survey)
    repository.append_response(owner, {"q-1": "أوافق"})

    repository.replace(owner, CreatorData(survey=None, responses=[], is_survey_open=True))

    assert repository.fetch_or_initialize(owner) == CreatorData.initial()


def test_store_survey_reopens_and_clears_previous_responses(repository, owner, survey):
    repository.store_survey(owner, survey)
    repository.append_response(owner, {"q-1": "أوافق"})
    repository.set_survey_open(owner, False)

    data = repository.store_survey(owner, survey)

    assert data.responses == []
    assert data.is_survey_open is True


def test_public_survey_requires_existing_survey(repository, owner, survey):
    with pytest.raises(NotFound):
        repository.public_survey(owner)
    with pytest.raises(NotFound):
        repository.public_survey("ghost")

    repository.store_survey(owner, survey)
    public = repository.public_survey(owner).to_wire()
    assert set(public) == {"survey", "isSurveyOpen"}


def test_events_stay_buffered_until_drained(repository, owner, survey):
    repository.store_survey(owner, survey)

    peeked = get_buffered_events(clear=False)
    assert peeked
    assert get_buffered_events() == peeked
    assert get_buffered_events() == []
