"""FastAPI application package for the survey builder service.

Creators upload a plain-text question list which is converted into a
structured survey; anonymous respondents answer it through a public link and
the creator reads aggregated results or exports them as CSV. Business logic
lives in `survey_builder/logic/` and route handlers in
`survey_builder/routes/`.
"""

from __future__ import annotations

from survey_builder.main import create_app

__all__ = ["create_app"]
