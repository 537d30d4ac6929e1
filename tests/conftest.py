"""Shared fixtures for layout engine tests."""

from typing import List

import pytest

from app.core.config import AssignPolicy, Settings
from app.core.logging import setup_logging
from app.domain.schemas.layout import LessonBlockSchema
from tests.fixtures.layout import make_block


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Route engine logs through the structlog pipeline once per run."""
    setup_logging()


@pytest.fixture
def coverage_settings() -> Settings:
    return Settings(ASSIGN_POLICY=AssignPolicy.COVERAGE)


@pytest.fixture
def origin_only_settings() -> Settings:
    return Settings(ASSIGN_POLICY=AssignPolicy.ORIGIN_ONLY)


@pytest.fixture
def blocks() -> List[LessonBlockSchema]:
    """Four ungrouped text blocks."""
    return [make_block(f"block-{i}") for i in range(4)]
