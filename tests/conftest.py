import pytest
from unittest.mock import patch
from PyQt6.QtCore import QSettings, QStandardPaths

from core.config import AppConfig
from core.models.record import ClassificationRecord, ClassificationResponse
from core.reference import ReferenceTable


def pytest_configure(config):
    # Redirects Qt's writable locations to ~/.qttest so tests never touch real user data
    QStandardPaths.setTestModeEnabled(True)
    config.addinivalue_line("markers", "level2: intensive integration tests (run with --level2)")


def pytest_addoption(parser):
    parser.addoption(
        "--level2", action="store_true", default=False, help="run level 2 intensive integration tests"
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--level2"):
        # --level2 given in cli: do not skip
        return
    skip_level2 = pytest.mark.skip(reason="need --level2 option to run")
    for item in items:
        if "level2" in item.keywords:
            item.add_marker(skip_level2)


@pytest.fixture(autouse=True)
def no_env_api_key(monkeypatch):
    """Keeps a developer's GEMINI_API_KEY out of the tests."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


@pytest.fixture
def app_config(tmp_path):
    """AppConfig backed by a cleared test QSettings scope and a temporary library file."""
    settings = QSettings("DeweyFlux", "TestConfig")
    settings.clear()

    config = AppConfig()
    config.settings = settings
    with patch.object(AppConfig, "get_data_dir", return_value=tmp_path):
        yield config
    settings.clear()


@pytest.fixture
def reference():
    return ReferenceTable.load()


def make_record(record_id, code, path=(), title=None, keywords=(), summary="A summary."):
    """Builds a record directly, bypassing the classification service."""
    return ClassificationRecord(
        id=record_id,
        call_number=record_id,
        title=title or f"Document {record_id}",
        summary=summary,
        keywords=tuple(keywords),
        ddc={
            "number": code,
            "name": path[-1][1] if path else "",
            "path": [{"number": n, "name": name} for n, name in path],
        },
        source_text=f"Text of {record_id}",
    )


def make_response(code="512", title="Linear Algebra Notes", keywords=("algebra", "matrices")):
    """A valid classification answer as the AI backend would deliver it."""
    return {
        "title": title,
        "summary": "Lecture notes on vector spaces.",
        "keywords": list(keywords),
        "ddc": {
            "number": code,
            "name": "Algebra",
            "path": [
                {"number": "500", "name": "Science"},
                {"number": "510", "name": "Mathematics"},
                {"number": code, "name": "Algebra"},
            ],
        },
        "ontologyReport": {
            "skos:prefLabel": "Linear algebra",
            "skos:definition": "Study of vector spaces.",
            "Self": "s", "Thought": "t", "Logic": "l", "Unity": "u", "Existence": "e",
            "Improvement": "i", "Mastery": "m", "Resonance": "r",
            "Transcendence": "tr", "Everything": "ev",
        },
    }


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def sample_response():
    return ClassificationResponse.model_validate(make_response())
