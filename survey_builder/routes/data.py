"""The ``/api/data`` endpoint: creator reads, public survey reads and the
action-dispatched POST operations."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from survey_builder.logic.errors import (
    InternalError,
    MethodNotAllowed,
    SurveyBuilderError,
    ValidationError,
)
from survey_builder.models.requests import (
    ActionEnvelope,
    AddResponsePayload,
    AuthenticatePayload,
    CreateSurveyPayload,
    SaveUserPayload,
)
from survey_builder.models.survey import CreatorData
from survey_builder.services import Services, get_services

router = APIRouter()
logger = logging.getLogger(__name__)

CREATOR_DATA_FIELDS = ("survey", "responses", "isSurveyOpen")


def _success(status_code: int = 200) -> JSONResponse:
    return JSONResponse({"success": True}, status_code=status_code)


def _parse(model: type[BaseModel], payload: Any, message: str) -> Any:
    if not isinstance(payload, dict):
        raise ValidationError(message)
    try:
        return model.model_validate(payload)
    except PydanticValidationError:
        raise ValidationError(message)


@router.get("/api/data", summary="Creator data or public survey")
def read_data(
    x_username: Optional[str] = Header(None),
    id: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    if x_username:
        # Unknown creator: 200 with a null body.
        data = services.repository.find(x_username)
        return JSONResponse(data.to_wire() if data is not None else None)
    if id:
        public = services.repository.public_survey(id)
        return JSONResponse(public.to_wire())
    raise ValidationError("Username header or survey ID is required")


def _save_user(services: Services, payload: Any, request: Request) -> JSONResponse:
    body = _parse(SaveUserPayload, payload, "Username and password are required")
    services.directory.register(body.username, body.password)
    return _success(201)


def _authenticate_user(services: Services, payload: Any, request: Request) -> JSONResponse:
    body = _parse(AuthenticatePayload, payload, "Username and password are required")
    services.directory.authenticate(body.username, body.password_raw)
    return _success()


def _save_data(services: Services, payload: Any, request: Request) -> JSONResponse:
    username = request.headers.get("x-username")
    if not username:
        raise ValidationError("Username header is required")
    if not isinstance(payload, dict) or any(f not in payload for f in CREATOR_DATA_FIELDS):
        raise ValidationError("Payload must contain survey, responses and isSurveyOpen")
    try:
        data = CreatorData.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid survey data: {exc.errors()[0].get('msg', 'invalid')}")
    services.repository.replace(username, data)
    return _success()


def _add_response(services: Services, payload: Any, request: Request) -> JSONResponse:
    if not isinstance(payload, dict) or not payload.get("ownerUsername") or payload.get("answers") is None:
        raise ValidationError("Invalid response payload")
    body = _parse(AddResponsePayload, payload, "Invalid response payload")
    services.repository.append_response(body.owner_username, body.answers)
    return _success()


def _create_survey(services: Services, payload: Any, request: Request) -> JSONResponse:
    if not isinstance(payload, dict) or not payload.get("text"):
        raise ValidationError("Survey text is required")
    body = _parse(CreateSurveyPayload, payload, "Survey text is required")
    survey = services.converter.create_survey(body.text)
    return JSONResponse(survey.model_dump(mode="json"))


ACTIONS: Dict[str, Callable[[Services, Any, Request], JSONResponse]] = {
    "saveUser": _save_user,
    "authenticateUser": _authenticate_user,
    "saveData": _save_data,
    "addResponse": _add_response,
    "createSurvey": _create_survey,
}


@router.post("/api/data", summary="Dispatch a data action")
async def post_data(request: Request, services: Services = Depends(get_services)):
    try:
        raw = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be JSON")
    envelope = _parse(ActionEnvelope, raw, "Request body must be an object")
    handler = ACTIONS.get(envelope.action or "")
    if handler is None:
        raise ValidationError("Invalid action")
    logger.info("data_action action=%s", envelope.action)
    try:
        return await run_in_threadpool(handler, services, envelope.payload, request)
    except SurveyBuilderError:
        raise
    except Exception as exc:
        logger.error("data_action_failed action=%s", envelope.action, exc_info=True)
        raise InternalError(str(exc) or None)


@router.api_route(
    "/api/data",
    methods=["PUT", "PATCH", "DELETE", "OPTIONS", "HEAD", "TRACE"],
    include_in_schema=False,
)
def reject_method(request: Request):
    raise MethodNotAllowed(f"Method {request.method} Not Allowed")


__all__ = ["router", "ACTIONS", "read_data", "post_data"]
