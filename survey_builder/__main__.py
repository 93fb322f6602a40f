"""Run the service with uvicorn: ``python -m survey_builder``."""

from __future__ import annotations

import os

import uvicorn

from survey_builder.main import create_app


def main() -> None:
    uvicorn.run(
        create_app(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
