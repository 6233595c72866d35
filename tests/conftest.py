"""
Shared fixtures for engine tests.
"""

from datetime import datetime, timezone

import pytest
import structlog

from taskdeps.core.config import get_settings
from taskdeps.core.ids import sequential_ids
from taskdeps.schemas.common import DependencyType
from taskdeps.schemas.dependencies import Dependency
from taskdeps.schemas.tasks import TaskSnapshot

FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_task(id: str, title: str = "", completed: bool = False, **kwargs) -> TaskSnapshot:
    return TaskSnapshot(id=id, title=title or f"Task {id}", completed=completed, **kwargs)


def make_edge(
    task_id: str,
    depends_on: str,
    type: DependencyType = DependencyType.BLOCKS,
    id: str = "",
) -> Dependency:
    return Dependency(
        id=id or f"dep-{task_id}-{depends_on}",
        task_id=task_id,
        depends_on_task_id=depends_on,
        type=type,
        created_at=FIXED_NOW,
    )


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def id_factory():
    return sequential_ids()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def api_tasks() -> list[TaskSnapshot]:
    return [
        make_task("1", "Design API"),
        make_task("2", "Implement API"),
        make_task("3", "Test API"),
    ]


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
