"""Results aggregation and raw/CSV export for a creator's survey.

Export cells use the display value of an answer: multiple selections are
joined with ", " and a likert label becomes its 1-based position on the
canonical scale (e.g. "أوافق" -> 4). Labels not on the question's scale
pass through unchanged.
"""

from __future__ import annotations

import csv
import io
import re
from typing import Dict, Iterable, List, Optional, Union

from survey_builder.models.survey import (
    MultipleAnswer,
    Question,
    QuestionType,
    SingleAnswer,
    Survey,
    SurveyResponse,
    answer_key,
)

UTF8_BOM = "\ufeff"
RESPONSE_ID_HEADER = "Response ID"

AnswerValue = Optional[Union[SingleAnswer, MultipleAnswer]]


def response_value(question: Question, answer: AnswerValue) -> Union[str, int]:
    if answer is None:
        return ""
    if isinstance(answer, MultipleAnswer):
        return ", ".join(answer.values)
    if question.type == QuestionType.LIKERT_5 and question.options:
        try:
            return question.options.index(answer.value) + 1
        except ValueError:
            return answer.value
    return answer.value


def build_results(survey: Survey, responses: Iterable[SurveyResponse]) -> Dict[str, dict]:
    """Aggregate answers per question key (``q-<id>``).

    ``total`` counts responses with a non-empty answer to the question;
    option counts start at zero for every declared option.
    """
    results: Dict[str, dict] = {}
    for q in survey.questions:
        results[answer_key(q.id)] = {
            "questionId": q.id,
            "text": q.text,
            "type": q.type,
            "counts": {opt: 0 for opt in q.options},
            "total": 0,
            "textResponses": [],
        }

    for res in responses:
        for q in survey.questions:
            entry = results[answer_key(q.id)]
            answer = res.answer_for(q.id)
            if answer is None or answer.is_blank():
                continue
            entry["total"] += 1
            if q.type == QuestionType.TEXT:
                if isinstance(answer, SingleAnswer) and answer.value.strip():
                    entry["textResponses"].append(answer.value)
                continue
            for selected in answer.selected():
                entry["counts"][selected] = entry["counts"].get(selected, 0) + 1

    for entry in results.values():
        total = entry["total"]
        entry["percentages"] = {
            opt: round(count / total * 100, 1) if total else 0.0
            for opt, count in entry["counts"].items()
        }
    return results


def build_summary(survey: Optional[Survey], responses: List[SurveyResponse], is_survey_open: bool) -> dict:
    return {
        "title": survey.title if survey else None,
        "questionCount": len(survey.questions) if survey else 0,
        "responseCount": len(responses),
        "isSurveyOpen": is_survey_open,
    }


def build_raw_rows(survey: Survey, responses: Iterable[SurveyResponse]) -> List[list]:
    """One row per response: ``[id, value(q1), value(q2), ...]``."""
    rows: List[list] = []
    for res in responses:
        rows.append([res.id] + [response_value(q, res.answer_for(q.id)) for q in survey.questions])
    return rows


def build_export_csv(survey: Survey, responses: Iterable[SurveyResponse], include_bom: bool = True) -> bytes:
    buf = io.StringIO(newline="")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([RESPONSE_ID_HEADER] + [q.text for q in survey.questions])
    for row in build_raw_rows(survey, responses):
        writer.writerow([str(cell) for cell in row])
    text = buf.getvalue()
    if include_bom:
        text = UTF8_BOM + text
    return text.encode("utf-8")


def export_filename(survey: Survey) -> str:
    return re.sub(r"\s", "_", survey.title) + "_responses.csv"


__all__ = [
    "response_value",
    "build_results",
    "build_summary",
    "build_raw_rows",
    "build_export_csv",
    "export_filename",
    "RESPONSE_ID_HEADER",
    "UTF8_BOM",
]
