"""Tests for ``controller_lifespan``."""

from __future__ import annotations

import asyncio
import logging

import pytest

from taskgate.concurrency import Ok
from taskgate.configs.config import AppConfig
from taskgate.infra.lifespan import controller_lifespan


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestControllerLifespan:
    @pytest.mark.asyncio
    async def test_yields_configured_controller(self):
        config = AppConfig(concurrency={"max_concurrency": 4})
        async with controller_lifespan(config, setup_observability=False) as controller:
            assert controller.concurrency_limit == 4
            assert not controller.is_stopped
            result = await controller.execute_task("a", lambda: "done")
            assert result == Ok("done")

        assert controller.is_stopped

    @pytest.mark.asyncio
    async def test_exit_drains_in_flight_tasks(self):
        config = AppConfig(concurrency={"max_concurrency": 1})
        finished: list[str] = []

        async def work() -> str:
            await asyncio.sleep(0.01)
            finished.append("work")
            return "work"

        async with controller_lifespan(config, setup_observability=False) as controller:
            pending = asyncio.create_task(controller.execute_task("w", work))
            await asyncio.sleep(0)

        assert finished == ["work"]
        assert pending.done()
        assert pending.result() == Ok("work")

    @pytest.mark.asyncio
    async def test_stops_on_error(self):
        with pytest.raises(RuntimeError):
            async with controller_lifespan(
                AppConfig(), setup_observability=False
            ) as controller:
                raise RuntimeError("orchestrator crashed")
        assert controller.is_stopped

    @pytest.mark.asyncio
    async def test_sets_up_logging(self):
        config = AppConfig(logging={"level": "WARNING"})
        async with controller_lifespan(config):
            root = logging.getLogger()
            assert root.level == logging.WARNING
            assert any(type(h).__name__ == "_TaskgateHandler" for h in root.handlers)
