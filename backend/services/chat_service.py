from __future__ import annotations

import re
import time
from typing import Any

from services.migration_service import IdGenerator, UuidIdGenerator
from storage.fs_store import FSStore

MESSAGE_AUTHORS = ("user", "ai")


def chat_file(story_id: str) -> str:
    return f"chats/{re.sub(r'[^A-Za-z0-9_-]', '_', story_id)}.json"


class ChatService:
    """Assistant conversation history, one JSON list per story."""

    def __init__(self, store: FSStore, ids: IdGenerator | None = None) -> None:
        self.store = store
        self.ids = ids or UuidIdGenerator()

    def list_messages(self, story_id: str) -> list[dict[str, Any]]:
        return [m for m in self.store.read_list(chat_file(story_id)) if isinstance(m, dict)]

    def append(self, story_id: str, author: str, text: Any) -> dict[str, Any]:
        if author not in MESSAGE_AUTHORS:
            raise ValueError("author must be user|ai")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("message text is required")
        message = {"id": self.ids.new_id(), "author": author, "text": text, "timestamp": int(time.time() * 1000)}
        self.store.update_list(chat_file(story_id), lambda rows: rows.append(message))
        return message

    def clear(self, story_id: str) -> bool:
        return self.store.delete_json(chat_file(story_id))
