from __future__ import annotations

import logging
from typing import Any, Callable

from schemas.json_schemas import PROSE_STYLES
from services.chat_service import chat_file
from services.export_service import export_filename, parse_import, render_export
from services.migration_service import (
    UNIVERSE_NAME_DEFAULTS,
    IdGenerator,
    UuidIdGenerator,
    migrate_story_data,
)
from services.universe_service import UniverseService
from storage.fs_store import FSStore, upsert_by_id

logger = logging.getLogger(__name__)

REAL_WORLD_NAME = "Real World"
CHAPTER_WORD = {"en": "Chapter", "id": "Bab"}
UNIVERSE_DESCRIPTION = {
    "en": "World-building saved from the story '{title}'.",
    "id": "Pembangunan dunia yang disimpan dari cerita '{title}'.",
}


def _cleared_world(doc: dict[str, Any]) -> None:
    doc.update({"locations": [], "factions": [], "lore": [], "magicSystem": "", "worldBuilding": "", "disguiseRealWorldNames": False})


def _has_world(doc: dict[str, Any]) -> bool:
    return bool(doc.get("worldBuilding") or doc.get("magicSystem") or doc["locations"] or doc["factions"] or doc["lore"])


def _find_chapter(doc: dict[str, Any], chapter_id: str) -> dict[str, Any]:
    for c in doc["chapters"]:
        if isinstance(c, dict) and c.get("id") == chapter_id:
            return c
    raise FileNotFoundError(chapter_id)


class StoryService:
    def __init__(self, store: FSStore, universes: UniverseService, ids: IdGenerator | None = None) -> None:
        self.store = store
        self.universes = universes
        self.ids = ids or UuidIdGenerator()

    def _migrate(self, raw: Any) -> dict[str, Any]:
        return migrate_story_data(raw, self.ids)

    def _load_all(self) -> list[dict[str, Any]]:
        return self.store.load_migrated("stories", self._migrate)

    def _update(self, fn: Callable[[list[dict[str, Any]]], Any]) -> Any:
        return self.store.update_collection("stories", self._migrate, fn)

    def _edit_story(self, story_id: str, change: Callable[[dict[str, Any]], None]) -> dict[str, Any]:
        """Apply ``change`` to one stored story under the collection lock; returns the re-migrated story."""

        def apply(rows: list[dict[str, Any]]) -> dict[str, Any]:
            for i, s in enumerate(rows):
                if s["id"] == story_id:
                    change(s)
                    rows[i] = self._migrate(s)
                    return rows[i]
            raise FileNotFoundError(story_id)

        return self._update(apply)

    def list_stories(self) -> list[dict[str, Any]]:
        return self._load_all()

    def get_story(self, story_id: str) -> dict[str, Any]:
        for s in self._load_all():
            if s["id"] == story_id:
                return s
        raise FileNotFoundError(story_id)

    def save_story(self, data: dict[str, Any]) -> dict[str, Any]:
        doc = self._migrate(data)
        self._update(lambda rows: upsert_by_id(rows, doc))
        return doc

    def delete_story(self, story_id: str) -> bool:
        def apply(rows: list[dict[str, Any]]) -> bool:
            kept = [s for s in rows if s["id"] != story_id]
            removed = len(kept) != len(rows)
            rows[:] = kept
            return removed

        if not self._update(apply):
            return False
        self.store.delete_json(chat_file(story_id))
        logger.info("deleted story %s", story_id)
        return True

    def create_blank(self, language: str = "en") -> dict[str, Any]:
        if language not in CHAPTER_WORD:
            raise ValueError("language must be en|id")
        protagonist = {
            "id": self.ids.new_id(), "name": "", "roles": ["Protagonist"], "age": "", "gender": "",
            "physicalDescription": "", "voiceAndSpeechStyle": "", "personalityTraits": "", "habits": "",
            "goal": "", "principles": "", "conflict": "", "customFields": [],
        }
        doc = {
            "id": self.ids.new_id(),
            "language": language,
            "title": "", "genres": [], "otherGenre": "", "setting": "", "totalChapters": "", "wordsPerChapter": "", "mainPlot": "",
            "characters": [protagonist],
            "relationships": [],
            "storyArc": [{"title": "Babak 1" if language == "id" else "Act 1", "description": "", "plotPoints": []}],
            "comedyLevel": "5", "romanceLevel": "5", "actionLevel": "5", "maturityLevel": "1",
            "proseStyle": PROSE_STYLES[language][0],
            "customProseStyleByExample": "",
            "chapters": [{"id": self.ids.new_id(), "title": f"{CHAPTER_WORD[language]} 1", "content": ""}],
            "universeId": None,
            "universeName": UNIVERSE_NAME_DEFAULTS[language],
            "locations": [], "factions": [], "lore": [], "magicSystem": "", "worldBuilding": "",
            "disguiseRealWorldNames": False,
        }
        return self.save_story(doc)

    # --- chapters ---

    def add_chapter(self, story_id: str) -> dict[str, Any]:
        chapter_id = self.ids.new_id()

        def change(doc: dict[str, Any]) -> None:
            title = f"{CHAPTER_WORD[doc['language']]} {len(doc['chapters']) + 1}"
            doc["chapters"].append({"id": chapter_id, "title": title, "content": ""})

        return _find_chapter(self._edit_story(story_id, change), chapter_id)

    def update_chapter(self, story_id: str, chapter_id: str, title: str | None = None, content: str | None = None) -> dict[str, Any]:
        def change(doc: dict[str, Any]) -> None:
            chapter = _find_chapter(doc, chapter_id)
            if title is not None:
                chapter["title"] = title
            if content is not None:
                chapter["content"] = content

        return _find_chapter(self._edit_story(story_id, change), chapter_id)

    def delete_chapter(self, story_id: str, chapter_id: str) -> dict[str, Any]:
        def change(doc: dict[str, Any]) -> None:
            if len(doc["chapters"]) <= 1:
                raise ValueError("cannot delete the last chapter")
            kept = [c for c in doc["chapters"] if not (isinstance(c, dict) and c.get("id") == chapter_id)]
            if len(kept) == len(doc["chapters"]):
                raise FileNotFoundError(chapter_id)
            doc["chapters"] = kept

        return self._edit_story(story_id, change)

    # --- universe linking ---

    def attach_universe(self, story_id: str, universe_id: str) -> dict[str, Any]:
        universe = self.universes.get(universe_id)

        def change(doc: dict[str, Any]) -> None:
            doc["universeId"] = universe["id"]
            doc["universeName"] = universe["name"]
            for key in ("locations", "factions", "lore"):
                doc[key] = [{**entry, "id": self.ids.new_id()} for entry in universe[key] if isinstance(entry, dict)]
            doc["magicSystem"] = universe.get("magicSystem", "")
            doc["worldBuilding"] = universe.get("worldBuilding", "")
            doc["disguiseRealWorldNames"] = False

        return self._edit_story(story_id, change)

    def use_blank_canvas(self, story_id: str) -> dict[str, Any]:
        def change(doc: dict[str, Any]) -> None:
            doc["universeId"] = None
            doc["universeName"] = UNIVERSE_NAME_DEFAULTS[doc["language"]]
            _cleared_world(doc)

        return self._edit_story(story_id, change)

    def use_real_world(self, story_id: str, disguise_names: bool = False) -> dict[str, Any]:
        def change(doc: dict[str, Any]) -> None:
            doc["universeId"] = None
            doc["universeName"] = REAL_WORLD_NAME
            _cleared_world(doc)
            doc["disguiseRealWorldNames"] = disguise_names

        return self._edit_story(story_id, change)

    def save_as_universe(self, story_id: str, name: str) -> dict[str, Any]:
        doc = self.get_story(story_id)
        if not name.strip():
            raise ValueError("universe name is required")
        if not _has_world(doc):
            raise ValueError("story has no world-building to save")
        universe = {
            "id": self.ids.new_id(),
            "language": doc["language"],
            "name": name,
            "description": UNIVERSE_DESCRIPTION[doc["language"]].format(title=doc.get("title", "")),
            "locations": doc["locations"],
            "factions": doc["factions"],
            "lore": doc["lore"],
            "magicSystem": doc.get("magicSystem", ""),
            "worldBuilding": doc.get("worldBuilding", ""),
        }
        return self.universes.save(universe)

    # --- import / export ---

    def export_story(self, story_id: str) -> tuple[str, str]:
        doc = self.get_story(story_id)
        return export_filename(doc.get("title", ""), doc["id"]), render_export(doc.get("title", ""), "Story Encyclopedia", doc)

    def import_story(self, text: str) -> dict[str, Any]:
        doc = self._migrate(parse_import(text))

        def apply(rows: list[dict[str, Any]]) -> None:
            if any(s["id"] == doc["id"] for s in rows):
                doc["id"] = self.ids.new_id()
            rows.append(doc)

        self._update(apply)
        logger.info("imported story %s", doc["id"])
        return doc
