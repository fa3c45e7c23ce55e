"""Pytest configuration file."""

from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prompt_optimizer.api.app import create_app


@pytest.fixture
def app() -> FastAPI:
    """Create a test FastAPI application."""
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create a test client."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def no_custom_rules(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Point the custom rules file somewhere empty so user rules never leak in."""
    from prompt_optimizer.config import settings

    monkeypatch.setattr(settings, "CUSTOM_RULES_PATH", str(tmp_path / "custom-rules.json"))
