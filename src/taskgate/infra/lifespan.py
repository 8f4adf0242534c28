"""Lifespan helper: bootstrap observability, hand out a controller, drain it.

Usage::

    async with controller_lifespan() as controller:
        batch = await controller.execute_tasks(
            (url, partial(audit_page, url)) for url in urls
        )
    # controller is stopped and drained here
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from taskgate.concurrency.controller import ConcurrencyController, build_controller
from taskgate.configs.config import AppConfig, get_app_config
from taskgate.infra.logging import setup_logging
from taskgate.infra.telemetry import init_telemetry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def controller_lifespan(
    config: AppConfig | None = None,
    *,
    setup_observability: bool = True,
) -> AsyncGenerator[ConcurrencyController[Any], None]:
    """Yield a configured controller; on exit stop it and wait for drain.

    With ``setup_observability`` the root logger and the OTEL tracer
    provider are configured from ``config.logging`` / ``config.tracing``
    first.  Pass ``False`` when the host application owns those.
    """
    if config is None:
        config = get_app_config()
    if setup_observability:
        setup_logging(config.logging)
        init_telemetry(config.tracing)

    controller = build_controller(config)
    try:
        yield controller
    finally:
        controller.stop()
        await controller.wait_for_completion()
        logger.info("Concurrency controller drained")
