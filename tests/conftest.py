"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import datetime
from pathlib import Path

import pytest

from eta_calculator.core.clock import ManualClock
from eta_calculator.core.eta_calculator import EtaCalculator
from eta_calculator.types.models import RegressionPolicy
from eta_calculator.utils.logging import clear_session_id

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def clock() -> ManualClock:
    """Provide a manual clock starting at tick 0."""
    return ManualClock()


@pytest.fixture
def fixed_now() -> datetime:
    """Provide the pinned wall-clock time used by ``make_calculator``."""
    return FIXED_NOW


@pytest.fixture
def make_calculator(clock: ManualClock, fixed_now: datetime) -> Callable[..., EtaCalculator]:
    """Provide a factory for calculators driven by the shared manual clock.

    The wall clock is pinned to ``fixed_now`` so absolute ETAs are predictable.
    """

    def factory(
        minimum_data: int = 2,
        maximum_duration: float = 30.0,
        *,
        tolerance: float = 0.001,
        regression_policy: RegressionPolicy = RegressionPolicy.CLAMP,
    ) -> EtaCalculator:
        return EtaCalculator(
            minimum_data,
            maximum_duration,
            tolerance=tolerance,
            regression_policy=regression_policy,
            clock=clock,
            wall_clock=lambda: fixed_now,
        )

    return factory


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[[str, str], Path]:
    """Provide a helper that writes YAML text to a file under tmp_path."""

    def writer(name: str, content: str) -> Path:
        path = tmp_path / name
        _ = path.write_text(content, encoding="utf-8")
        return path

    return writer


@pytest.fixture(autouse=True)
def _reset_session_id() -> Generator[None, None, None]:  # pyright: ignore[reportUnusedFunction]  # pytest autouse fixture
    """Ensure no session ID leaks between tests."""
    yield
    clear_session_id()
