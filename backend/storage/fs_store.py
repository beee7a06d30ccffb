from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml
from filelock import FileLock

logger = logging.getLogger(__name__)

COLLECTIONS = {"stories": "stories.json", "universes": "universes.json"}


def upsert_by_id(rows: list[dict[str, Any]], doc: dict[str, Any]) -> None:
    for i, row in enumerate(rows):
        if row["id"] == doc["id"]:
            rows[i] = doc
            return
    rows.append(doc)


@dataclass
class FSStore:
    """Named JSON collections plus YAML settings files under one data directory.

    Every write goes through a temp file and ``os.replace``, so readers never
    see a half-written file. Read-modify-write cycles hold the file's lock for
    the whole cycle.
    """

    data_dir: Path
    _locks: dict[str, FileLock] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _safe_path(self, *parts: str) -> Path:
        base = self.data_dir.resolve()
        target = base.joinpath(*parts).resolve()
        if not str(target).startswith(str(base)):
            raise ValueError("Path traversal blocked")
        return target

    def _lock(self, path: Path) -> FileLock:
        # One FileLock per file, so nested acquisition in the same thread is reentrant.
        key = str(path) + ".lock"
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks.setdefault(key, FileLock(key))
        return lock

    def _replace_text(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        with self._lock(path):
            tmp.write_text(text, encoding="utf-8")
            os.replace(tmp, path)

    def read_yaml(self, rel: str) -> dict[str, Any]:
        path = self._safe_path(rel)
        if not path.exists():
            return {}
        text = path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        data = yaml.safe_load(text)
        return data if isinstance(data, dict) else {}

    def write_yaml(self, rel: str, data: dict[str, Any]) -> None:
        self._replace_text(self._safe_path(rel), yaml.safe_dump(data, allow_unicode=True, sort_keys=False))

    def read_json(self, rel: str) -> Any:
        path = self._safe_path(rel)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def write_json(self, rel: str, data: Any) -> None:
        self._replace_text(self._safe_path(rel), json.dumps(data, ensure_ascii=False, indent=2))

    def delete_json(self, rel: str) -> bool:
        path = self._safe_path(rel)
        with self._lock(path):
            if not path.exists():
                return False
            path.unlink()
        return True

    def _read_list(self, rel: str) -> tuple[list[Any], bool]:
        try:
            data = self.read_json(rel)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error("failed to parse %s, starting from an empty collection: %s", rel, e)
            return [], False
        if data is None:
            return [], True
        if not isinstance(data, list):
            logger.error("%s does not hold a list (got %s), starting from an empty collection", rel, type(data).__name__)
            return [], False
        return data, True

    def read_list(self, rel: str) -> list[Any]:
        """Raw entries of a JSON list file; unreadable or non-list content reads as empty."""
        return self._read_list(rel)[0]

    def read_collection(self, name: str) -> list[Any]:
        return self.read_list(COLLECTIONS[name])

    def write_collection(self, name: str, items: list[dict[str, Any]]) -> None:
        self.write_json(COLLECTIONS[name], items)

    def _migrate_rows(self, rel: str, raw_items: list[Any], migrate: Callable[[Any], dict[str, Any]]):
        docs: list[dict[str, Any]] = []
        failed: list[Any] = []
        changed = False
        for i, raw in enumerate(raw_items):
            try:
                doc = migrate(raw)
            except Exception as e:
                logger.warning("skipping %s entry #%d that failed to migrate: %s", rel, i, e)
                failed.append(raw)
                continue
            changed = changed or doc != raw
            docs.append(doc)
        return docs, failed, changed

    def load_migrated(self, name: str, migrate: Callable[[Any], dict[str, Any]]) -> list[dict[str, Any]]:
        """Collection entries run through ``migrate``.

        An entry that fails to migrate is logged and left out. When every entry
        migrated and at least one changed, the upgraded collection is written
        back so generated ids stay stable across loads.
        """
        rel = COLLECTIONS[name]
        with self._lock(self._safe_path(rel)):
            docs, failed, changed = self._migrate_rows(rel, self.read_list(rel), migrate)
            if changed and not failed:
                logger.info("upgraded %s to the current schema", rel)
                self.write_json(rel, docs)
        return docs

    def update_list(
        self,
        rel: str,
        fn: Callable[[list[Any]], Any],
        migrate: Callable[[Any], dict[str, Any]] | None = None,
    ) -> Any:
        """Locked read-modify-write of a JSON list file.

        ``fn`` edits the rows in place and its return value is passed through;
        nothing is written when it raises. With ``migrate``, ``fn`` only sees
        entries that migrated, and entries that failed are written back
        untouched after them. An unreadable file is moved aside to
        ``<name>.corrupt`` before it is replaced.
        """
        path = self._safe_path(rel)
        with self._lock(path):
            raw_items, readable = self._read_list(rel)
            if migrate is None:
                rows, failed = raw_items, []
            else:
                rows, failed, _ = self._migrate_rows(rel, raw_items, migrate)
            result = fn(rows)
            if not readable and path.exists():
                backup = path.with_name(path.name + ".corrupt")
                os.replace(path, backup)
                logger.warning("moved unreadable %s aside to %s", rel, backup.name)
            self.write_json(rel, rows + failed)
        return result

    def update_collection(
        self,
        name: str,
        migrate: Callable[[Any], dict[str, Any]],
        fn: Callable[[list[dict[str, Any]]], Any],
    ) -> Any:
        return self.update_list(COLLECTIONS[name], fn, migrate)
