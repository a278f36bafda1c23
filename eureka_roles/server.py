"""
Eureka Roles — Policy service entrypoint.

Configures structured logging and serves ``eureka_roles.service.app`` with
uvicorn. This is the entrypoint for the policy service container.
"""

from __future__ import annotations

import logging

import structlog
import uvicorn

from eureka_roles.config import settings


def configure_logging() -> None:
    """Configure structured logging."""
    logging.basicConfig(level=logging.getLevelName(settings.log_level.upper()), format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.dev.ConsoleRenderer()
                if settings.log_format != "json"
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def main() -> None:
    configure_logging()
    log = structlog.get_logger()
    log.info(
        "eureka_roles.server.starting",
        host=settings.service_host,
        port=settings.service_port,
    )
    uvicorn.run(
        "eureka_roles.service.app:app",
        host=settings.service_host,
        port=settings.service_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
