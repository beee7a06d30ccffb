from __future__ import annotations

from typing import Any

from storage.fs_store import FSStore

SETTINGS_FILE = "_global/settings.yaml"

DEFAULT_SETTINGS: dict[str, Any] = {
    "ui_language": "en",
    "content_language": "en",
    "model": "gemini-2.5-flash",
    "thinking_mode": False,
    "api_key": "",
}


def _model_meta(model_id: str, display_name: str, description: str, supports_thinking: bool) -> dict[str, Any]:
    return {
        "model_id": model_id,
        "display_name": display_name,
        "description": description,
        "supports_thinking": supports_thinking,
    }


MODELS_META: list[dict[str, Any]] = [
    _model_meta("gemini-2.5-flash", "Flash", "Fast and capable model for a wide range of tasks.", False),
    _model_meta("gemini-2.5-pro", "Pro", "Most capable model for highly complex tasks.", True),
]

MAX_THINKING_BUDGET = 32768


class SettingsService:
    def __init__(self, store: FSStore) -> None:
        self.store = store
        self._ensure_defaults()

    def _ensure_defaults(self) -> None:
        if not self.store.read_yaml(SETTINGS_FILE):
            self.store.write_yaml(SETTINGS_FILE, dict(DEFAULT_SETTINGS))

    def read(self) -> dict[str, Any]:
        return {**DEFAULT_SETTINGS, **self.store.read_yaml(SETTINGS_FILE)}

    def update(self, patch: dict[str, Any]) -> dict[str, Any]:
        current = self.read()
        for key, value in patch.items():
            if key not in DEFAULT_SETTINGS:
                raise ValueError(f"unknown setting: {key}")
            current[key] = value
        for key in ("ui_language", "content_language"):
            if current[key] not in ("en", "id"):
                raise ValueError(f"{key} must be en|id")
        if current["model"] not in {m["model_id"] for m in MODELS_META}:
            raise ValueError(f"unsupported model: {current['model']}")
        current["thinking_mode"] = bool(current["thinking_mode"])
        self.store.write_yaml(SETTINGS_FILE, current)
        return current

    def public(self) -> dict[str, Any]:
        data = self.read()
        data["api_key_set"] = bool(data.pop("api_key", ""))
        return data

    def generation_config(self) -> dict[str, Any]:
        """Model selection handed to the generative-language collaborator."""
        data = self.read()
        cfg: dict[str, Any] = {"model": "gemini-2.5-pro" if data["thinking_mode"] else data["model"]}
        if data["thinking_mode"]:
            cfg["thinking_budget"] = MAX_THINKING_BUDGET
        return cfg
