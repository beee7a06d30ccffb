from __future__ import annotations

import json
import re
from typing import Any

JSON_BLOCK_RE = re.compile(r"```json\s*\n(.*?)\n```", re.DOTALL)


def render_export(title: str, kind: str, doc: dict[str, Any]) -> str:
    body = json.dumps(doc, ensure_ascii=False, indent=2)
    return f"# {title or 'Untitled'}\n\n_{kind} export_\n\n```json\n{body}\n```\n"


def parse_import(text: str) -> dict[str, Any]:
    """JSON payload of an exported file: the first fenced json block, else the whole text."""
    m = JSON_BLOCK_RE.search(text)
    raw = m.group(1) if m else text
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"import does not contain valid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise ValueError("import must contain a JSON object")
    return data


def export_filename(title: str, doc_id: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", title or "").strip("_").lower()
    return f"{slug or 'document'}_{doc_id[:8]}.md"
