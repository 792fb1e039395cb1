"""Pytest fixtures shared across the pipeline tests."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from discharge_analysis.core.aggregator import AggregateEntry
from discharge_analysis.core.base_component import BaseComponent


@pytest.fixture(autouse=True)
def close_figures():
    """Keep figures from piling up between tests."""

    yield
    plt.close("all")


@pytest.fixture
def context():
    """Return a defaults-only pipeline context without an output directory."""

    return BaseComponent().context


@pytest.fixture
def entries() -> tuple[AggregateEntry, ...]:
    """Return a small aggregate with distinct values."""

    return (
        AggregateEntry("Diseases and Disorders of the Circulatory System", 12),
        AggregateEntry("Pregnancy, Childbirth", 3),
        AggregateEntry("Newborns", 7),
    )


@pytest.fixture
def measure():
    """Return a deterministic text measurement of 7px per character."""

    def fixed_width(text: str) -> float:
        return 7.0 * len(text)

    return fixed_width
