from __future__ import annotations

import logging
from typing import Any, Callable

from services.export_service import export_filename, parse_import, render_export
from services.migration_service import IdGenerator, UuidIdGenerator, migrate_universe_data
from storage.fs_store import FSStore, upsert_by_id

logger = logging.getLogger(__name__)


class UniverseService:
    def __init__(self, store: FSStore, ids: IdGenerator | None = None) -> None:
        self.store = store
        self.ids = ids or UuidIdGenerator()

    def _migrate(self, raw: Any) -> dict[str, Any]:
        return migrate_universe_data(raw, self.ids)

    def _load_all(self) -> list[dict[str, Any]]:
        return self.store.load_migrated("universes", self._migrate)

    def _update(self, fn: Callable[[list[dict[str, Any]]], Any]) -> Any:
        return self.store.update_collection("universes", self._migrate, fn)

    def list_universes(self) -> list[dict[str, Any]]:
        rows = self._load_all()
        return sorted(rows, key=lambda u: (not u.get("isFavorite"), str(u.get("name", "")).casefold()))

    def get(self, universe_id: str) -> dict[str, Any]:
        for u in self._load_all():
            if u["id"] == universe_id:
                return u
        raise FileNotFoundError(universe_id)

    def save(self, data: dict[str, Any]) -> dict[str, Any]:
        doc = self._migrate(data)
        self._update(lambda rows: upsert_by_id(rows, doc))
        return doc

    def delete(self, universe_id: str) -> bool:
        def apply(rows: list[dict[str, Any]]) -> bool:
            kept = [u for u in rows if u["id"] != universe_id]
            removed = len(kept) != len(rows)
            rows[:] = kept
            return removed

        if not self._update(apply):
            return False
        logger.info("deleted universe %s", universe_id)
        return True

    def toggle_favorite(self, universe_id: str) -> dict[str, Any]:
        def apply(rows: list[dict[str, Any]]) -> dict[str, Any]:
            for u in rows:
                if u["id"] == universe_id:
                    u["isFavorite"] = not u.get("isFavorite", False)
                    return u
            raise FileNotFoundError(universe_id)

        return self._update(apply)

    def export_universe(self, universe_id: str) -> tuple[str, str]:
        doc = self.get(universe_id)
        return export_filename(doc.get("name", ""), doc["id"]), render_export(doc.get("name", ""), "Universe", doc)

    def import_universe(self, text: str) -> dict[str, Any]:
        doc = self._migrate(parse_import(text))

        def apply(rows: list[dict[str, Any]]) -> None:
            if any(u["id"] == doc["id"] for u in rows):
                doc["id"] = self.ids.new_id()
            rows.append(doc)

        self._update(apply)
        logger.info("imported universe %s", doc["id"])
        return doc
