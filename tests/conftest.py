import os
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

os.environ["ENVIRONMENT"] = "test"
os.environ["DEFAULT_TIMEZONE"] = "UTC"
os.environ["RATE_LIMIT_PER_MINUTE"] = "1000"

from chatimport.main import create_app
from chatimport.services.parsing.grammar import GrammarMatcher, PlausibilityWindow
from chatimport.services.parsing.pipeline import ChatImportPipeline

FIXTURES = Path(__file__).parent / "fixtures"
NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture()
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def window() -> PlausibilityWindow:
    return PlausibilityWindow(earliest=date(2009, 1, 1), future_tolerance=timedelta(hours=24))


@pytest.fixture()
def matcher(window) -> GrammarMatcher:
    return GrammarMatcher(window, timezone.utc)


@pytest.fixture()
def pipeline(window) -> ChatImportPipeline:
    return ChatImportPipeline(window=window)


@pytest.fixture()
def client():
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
