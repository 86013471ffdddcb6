# ruff: noqa: D100,D101,D102,D103,D107
from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.huum_sauna.api import HuumClient
from custom_components.huum_sauna.bridge import SaunaBridge
from custom_components.huum_sauna.config import DeviceConfig
from custom_components.huum_sauna.host import ThermostatService
from custom_components.huum_sauna.units import TemperatureUnit


def pytest_configure(config: pytest.Config) -> None:
    """Register custom pytest markers used across the suite."""

    if not config.pluginmanager.hasplugin("pytest_asyncio"):
        config.addinivalue_line(
            "markers", "asyncio: mark test as requiring asyncio event loop support."
        )


def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async tests when pytest-asyncio is unavailable."""

    if pyfuncitem.config.pluginmanager.hasplugin("pytest_asyncio"):
        return None

    testfunction = pyfuncitem.obj
    if not inspect.iscoroutinefunction(testfunction):
        return None

    marker = pyfuncitem.get_closest_marker("asyncio")
    if marker is None:
        return None

    with asyncio.Runner(debug=False) as runner:
        runner.run(testfunction(**pyfuncitem.funcargs))
    return True


async def drain(cycles: int = 10) -> None:
    """Let scheduled tasks run to their next suspension point."""

    for _ in range(cycles):
        await asyncio.sleep(0)


class TickSleep:
    """Sleep replacement that only returns when the test calls ``tick``."""

    def __init__(self) -> None:
        self.calls: list[float] = []
        self._queue: asyncio.Queue[None] | None = None

    def _ensure_queue(self) -> asyncio.Queue[None]:
        if self._queue is None:
            self._queue = asyncio.Queue()
        return self._queue

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await self._ensure_queue().get()

    def tick(self) -> None:
        self._ensure_queue().put_nowait(None)


def make_client(
    status: dict[str, Any] | None = None,
    *,
    status_exc: BaseException | None = None,
) -> MagicMock:
    """Return a HUUM client double with awaitable endpoints."""

    client = MagicMock(spec=HuumClient)
    if status_exc is not None:
        client.async_get_status = AsyncMock(side_effect=status_exc)
    else:
        client.async_get_status = AsyncMock(return_value=status or {})
    client.async_start = AsyncMock(return_value=None)
    client.async_stop = AsyncMock(return_value=None)
    return client


@pytest.fixture
def service() -> ThermostatService:
    return ThermostatService()


@pytest.fixture
def bridge_factory(
    service: ThermostatService,
) -> Callable[..., SaunaBridge]:
    """Return a helper building bridges without starting the poll loop."""

    def _factory(
        client: MagicMock,
        *,
        unit: TemperatureUnit = TemperatureUnit.FAHRENHEIT,
        poll_interval: float = 30,
        **kwargs: Any,
    ) -> SaunaBridge:
        config = DeviceConfig(
            username="sauna@example.com",
            password="secret",
            temperature_unit=unit,
            poll_interval=poll_interval,
        )
        kwargs.setdefault("start_polling", False)
        return SaunaBridge(config, client, service, **kwargs)

    return _factory
