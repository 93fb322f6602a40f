"""Creator-only results endpoints: aggregation, raw table and CSV export."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse, Response

from survey_builder.logic.errors import NotFound, ValidationError
from survey_builder.logic.results import (
    RESPONSE_ID_HEADER,
    build_export_csv,
    build_raw_rows,
    build_results,
    build_summary,
    export_filename,
)
from survey_builder.models.survey import CreatorData
from survey_builder.services import Services, get_services

router = APIRouter()
logger = logging.getLogger(__name__)


def _creator_survey(services: Services, username: Optional[str]) -> CreatorData:
    if not username:
        raise ValidationError("Username header is required")
    data = services.repository.find(username)
    if data is None:
        raise NotFound("User not found")
    if data.survey is None:
        raise NotFound("Survey not found")
    return data


@router.get("/api/data/results", summary="Aggregated results per question")
def get_results(
    x_username: Optional[str] = Header(None),
    services: Services = Depends(get_services),
):
    data = _creator_survey(services, x_username)
    return JSONResponse(
        {
            "summary": build_summary(data.survey, data.responses, data.is_survey_open),
            "results": build_results(data.survey, data.responses),
        }
    )


@router.get("/api/data/results/raw", summary="Raw response table")
def get_raw_results(
    x_username: Optional[str] = Header(None),
    services: Services = Depends(get_services),
):
    data = _creator_survey(services, x_username)
    columns = [RESPONSE_ID_HEADER] + [f"q-{q.id}" for q in data.survey.questions]
    return JSONResponse({"columns": columns, "rows": build_raw_rows(data.survey, data.responses)})


@router.get("/api/data/export.csv", summary="Download responses as CSV")
def export_csv(
    x_username: Optional[str] = Header(None),
    services: Services = Depends(get_services),
):
    data = _creator_survey(services, x_username)
    body = build_export_csv(
        data.survey,
        data.responses,
        include_bom=services.config.export.include_bom,
    )
    filename = export_filename(data.survey)
    logger.info("csv_export rows=%d bytes=%d", len(data.responses), len(body))
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


__all__ = ["router", "get_results", "get_raw_results", "export_csv"]
