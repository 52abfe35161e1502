"""Run the API with uvicorn: python -m thesis_support."""

import os

import uvicorn

from thesis_support.shared.telemetry.logging import setup_logging


def main() -> None:
    setup_logging()
    uvicorn.run(
        "thesis_support.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        workers=int(os.environ.get("WEB_CONCURRENCY", "1")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
