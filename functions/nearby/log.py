"""
Logging setup for the API process.
"""

from __future__ import annotations

import logging


class HealthCheckFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return "/health" not in record.getMessage()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    for logger_name in ["uvicorn.access", "nearby.app"]:
        logging.getLogger(logger_name).addFilter(HealthCheckFilter())
