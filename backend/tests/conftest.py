"""Pytest setup: point the app at a throwaway data dir and provide deterministic ids."""
from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
os.environ.setdefault("WEBNOVEL_DATA_DIR", tempfile.mkdtemp(prefix="webnovel_test_"))


class SequentialIds:
    def __init__(self, prefix: str = "gen") -> None:
        self.prefix = prefix
        self.count = 0

    def new_id(self) -> str:
        self.count += 1
        return f"{self.prefix}_{self.count:04d}"


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture
def app_main(tmp_path: Path, monkeypatch):
    import main as app_main
    from services.chat_service import ChatService
    from services.settings_service import SettingsService
    from services.story_service import StoryService
    from services.universe_service import UniverseService
    from storage.fs_store import FSStore

    store = FSStore(tmp_path / "data")
    universes = UniverseService(store)
    monkeypatch.setattr(app_main, "store", store)
    monkeypatch.setattr(app_main, "settings_service", SettingsService(store))
    monkeypatch.setattr(app_main, "universe_service", universes)
    monkeypatch.setattr(app_main, "story_service", StoryService(store, universes))
    monkeypatch.setattr(app_main, "chat_service", ChatService(store))
    return app_main
