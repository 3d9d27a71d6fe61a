from datetime import date
from unittest.mock import AsyncMock

import pytest

from helpers.mock_store import MockRepository
from wset_workflow.dashboard import DashboardService
from wset_workflow.processor import OrderProcessor
from wset_workflow.workflow_log import WorkflowLogger

# Monday; every date-dependent test pins "today" here.
TODAY = date(2026, 3, 2)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def mock_repo():
    """Fresh MockRepository for each test."""
    return MockRepository()


@pytest.fixture
def mock_db(mock_repo):
    """AsyncMock standing in for AsyncSession; rollback discards pending rows."""
    db = AsyncMock()
    db.rollback = AsyncMock(side_effect=mock_repo.rollback)
    db.commit = AsyncMock(side_effect=mock_repo.commit)
    return db


@pytest.fixture
def workflow_logger(mock_repo):
    return WorkflowLogger(mock_repo)


@pytest.fixture
def processor(mock_repo, workflow_logger):
    return OrderProcessor(repository=mock_repo, workflow_logger=workflow_logger)


@pytest.fixture
def dashboard(mock_repo, workflow_logger):
    return DashboardService(repository=mock_repo, workflow_logger=workflow_logger)
