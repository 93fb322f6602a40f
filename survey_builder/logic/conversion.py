"""Text-to-survey conversion.

The generative model is an external collaborator behind `ConversionGateway`:
it takes the creator's raw question list and returns a survey-shaped dict.
Its output is never trusted as-is; `normalize_survey` assigns missing ids,
pins likert options to the canonical scale and rejects anything malformed.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Protocol

import google.generativeai as genai

from survey_builder.logic.errors import GatewayFailure, ValidationError
from survey_builder.logic.events import SURVEY_CREATED, publish
from survey_builder.models.survey import (
    BINARY_DEFAULT_OPTIONS,
    LIKERT_5_SCALE,
    Question,
    QuestionType,
    Survey,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = f"""
You convert a plain-text list of survey questions into JSON.
Return ONLY a JSON object, no markdown, with this shape:
{{
  "title": "<short survey title in the language of the questions>",
  "questions": [
    {{"id": 1, "text": "<question text>", "type": "<type>", "options": ["..."]}}
  ]
}}
Allowed types:
- "single-choice": one answer from "options"
- "multiple-choice": any number of answers from "options"
- "likert-5": agreement statement; options are exactly {json.dumps(list(LIKERT_5_SCALE), ensure_ascii=False)}
- "binary": yes/no question; options are {json.dumps(list(BINARY_DEFAULT_OPTIONS), ensure_ascii=False)}
- "text": free text answer; "options" is an empty list
Keep the questions in their original order and number them from 1.
"""


class ConversionGateway(Protocol):
    def convert(self, text: str) -> Dict[str, Any]:
        ...


def _strip_code_fence(text: str) -> str:
    body = text.strip()
    if body.startswith("```"):
        body = body.split("\n", 1)[1] if "\n" in body else ""
        if body.endswith("```"):
            body = body[:-3]
    return body.strip()


class GeminiConversionGateway:
    """Gemini-backed gateway using google-generativeai."""

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash") -> None:
        self.api_key = api_key
        self.model_name = model

    def convert(self, text: str) -> Dict[str, Any]:
        if not self.api_key:
            raise GatewayFailure("GEMINI_API_KEY is not set")
        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(
            self.model_name,
            generation_config={"response_mime_type": "application/json"},
        )
        resp = model.generate_content([SYSTEM_PROMPT, text])
        raw = getattr(resp, "text", "") or ""
        try:
            parsed = json.loads(_strip_code_fence(raw))
        except json.JSONDecodeError as exc:
            logger.error("gateway_output_not_json preview=%s", raw[:200])
            raise GatewayFailure(f"Model returned invalid JSON: {exc.msg}")
        if not isinstance(parsed, dict):
            raise GatewayFailure("Model returned a non-object survey")
        return parsed


def _normalize_type(value: object) -> str:
    name = str(value or "").strip().lower().replace("_", "-")
    if name not in QuestionType.ALL:
        raise GatewayFailure(f"Unsupported question type: {value!r}")
    return name


def _normalize_options(value: object) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise GatewayFailure("Question options must be a list")
    return [str(o).strip() for o in value if str(o).strip()]


def normalize_survey(raw: Dict[str, Any]) -> Survey:
    """Validate gateway output and apply the post-conversion rules.

    - A question without an ``id`` gets its 1-based position.
    - ``likert-5`` options are always replaced by the canonical scale.
    - ``binary`` questions without options get the default yes/no pair.
    - ``text`` questions carry no options.
    Anything else malformed raises `GatewayFailure`; no partial survey.
    """
    if not isinstance(raw, dict):
        raise GatewayFailure("Survey must be an object")
    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        raise GatewayFailure("Survey title is missing")
    items = raw.get("questions")
    if not isinstance(items, list) or not items:
        raise GatewayFailure("Survey has no questions")

    questions: List[Question] = []
    seen: set[int] = set()
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise GatewayFailure(f"Question {index + 1} is not an object")
        text = item.get("text")
        if not isinstance(text, str) or not text.strip():
            raise GatewayFailure(f"Question {index + 1} has no text")
        qtype = _normalize_type(item.get("type"))
        raw_id = item.get("id")
        if raw_id is None:
            qid = index + 1
        else:
            try:
                qid = int(raw_id)
            except (TypeError, ValueError):
                raise GatewayFailure(f"Question {index + 1} has a non-integer id")
        if qid in seen:
            raise GatewayFailure(f"Duplicate question id {qid}")
        seen.add(qid)

        options = _normalize_options(item.get("options"))
        if qtype == QuestionType.LIKERT_5:
            options = list(LIKERT_5_SCALE)
        elif qtype == QuestionType.BINARY and not options:
            options = list(BINARY_DEFAULT_OPTIONS)
        elif qtype == QuestionType.TEXT:
            options = []
        elif not options:
            raise GatewayFailure(f"Question {qid} needs options for type {qtype}")
        questions.append(Question(id=qid, text=text.strip(), type=qtype, options=options))

    return Survey(title=title.strip(), questions=questions)


class SurveyConverter:
    def __init__(self, gateway: ConversionGateway) -> None:
        self.gateway = gateway

    def create_survey(self, text: str) -> Survey:
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Survey text is required")
        try:
            raw = self.gateway.convert(text)
        except GatewayFailure:
            logger.error("survey_conversion_failed", exc_info=True)
            raise
        except Exception as exc:
            logger.error("survey_conversion_failed", exc_info=True)
            raise GatewayFailure(f"Survey conversion failed: {exc}")
        survey = normalize_survey(raw)
        publish(SURVEY_CREATED, {"title": survey.title, "questions": len(survey.questions)})
        return survey


__all__ = [
    "ConversionGateway",
    "GeminiConversionGateway",
    "SurveyConverter",
    "normalize_survey",
    "SYSTEM_PROMPT",
]
