"""Upgrade stored Story / Universe documents to the current schema.

Both entry points are pure: the input is deep-copied, every default fires only
when the field is missing, and every id is generated only when the current one
is falsy, so running a migration over its own output changes nothing.
"""

from __future__ import annotations

import copy
import logging
import uuid
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)

CHARACTER_TEXT_FIELDS = [
    "name",
    "age",
    "gender",
    "physicalDescription",
    "voiceAndSpeechStyle",
    "personalityTraits",
    "habits",
    "goal",
    "principles",
    "conflict",
]

# legacy key -> canonical key
CHARACTER_ALIASES = {
    "voiceDescription": "voiceAndSpeechStyle",
    "protagonistPersonality": "personalityTraits",
    "protagonistGoal": "goal",
    "protagonistConflict": "conflict",
}

LEGACY_ROLE_KEYS = [
    ("protagonist", "Protagonist"),
    ("loveInterests", "Love Interest"),
    ("antagonists", "Antagonist"),
]

LORE_KEYS = ["locations", "factions", "lore"]

UNIVERSE_NAME_DEFAULTS = {"en": "Custom World", "id": "Dunia Kustom"}
ACT_TITLE_DEFAULTS = {"en": "Act 1", "id": "Babak 1"}
SUPPORTED_LANGUAGES = ("en", "id")


class IdGenerator(Protocol):
    def new_id(self) -> str: ...


class UuidIdGenerator:
    def new_id(self) -> str:
        return str(uuid.uuid4())


class RelationshipFormat(str, Enum):
    # Stored data carries no version tag; the format is sniffed structurally.
    LEGACY_NAMES = "legacy_names"
    MISSING_IDS = "missing_ids"
    CURRENT = "current"


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _doc_id(value: Any, ids: IdGenerator) -> str:
    # Older data may hold numeric timestamp ids; anything else non-string is replaced.
    if isinstance(value, str) and value:
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ids.new_id()


def _language(raw: dict[str, Any]) -> str:
    lang = raw.get("language")
    return lang if lang in SUPPORTED_LANGUAGES else "en"


def normalize_character(raw: Any, default_roles: list[str], ids: IdGenerator) -> dict[str, Any]:
    """Build a canonical character from a bare name or a (possibly legacy) object.

    Canonical fields win over their legacy aliases; anything malformed degrades
    to an empty string. Unknown keys are carried over, alias keys are not.
    """
    if isinstance(raw, str):
        out: dict[str, Any] = {"id": ids.new_id(), "name": raw, "roles": list(default_roles)}
        for field in CHARACTER_TEXT_FIELDS[1:]:
            out[field] = ""
        out["customFields"] = []
        return out

    src = raw if isinstance(raw, dict) else {}
    out = {k: copy.deepcopy(v) for k, v in src.items() if k not in CHARACTER_ALIASES}
    out["id"] = _doc_id(src.get("id"), ids)
    for field in CHARACTER_TEXT_FIELDS:
        out[field] = _text(src.get(field))
    for legacy, field in CHARACTER_ALIASES.items():
        if not out[field]:
            out[field] = _text(src.get(legacy))
    roles = src.get("roles")
    out["roles"] = list(roles) if isinstance(roles, list) and roles else list(default_roles)
    custom = src.get("customFields")
    out["customFields"] = copy.deepcopy(custom) if isinstance(custom, list) else []
    return out


def absorb_legacy_characters(doc: dict[str, Any], ids: IdGenerator) -> dict[str, Any]:
    """Fold protagonist / loveInterests / antagonists into ``characters``.

    Order matters: each absorbed entry is checked against everything appended
    before it, by exact name. A love interest sharing the protagonist's name is
    dropped on purpose.
    """
    out = dict(doc)
    characters = list(out.get("characters") or [])
    names = {c.get("name") for c in characters if isinstance(c, dict) and isinstance(c.get("name"), str)}
    absorbed: list[str] = []

    for key, role in LEGACY_ROLE_KEYS:
        value = out.get(key)
        if value is None:
            continue
        if key == "protagonist":
            candidates, need_name = [value], False
        else:
            candidates, need_name = (value if isinstance(value, list) else []), True
        for entry in candidates:
            char = normalize_character(entry, [role], ids)
            if need_name and not char["name"]:
                continue
            if char["name"] in names:
                continue
            characters.append(char)
            names.add(char["name"])
            absorbed.append(key)

    for key, _role in LEGACY_ROLE_KEYS:
        out.pop(key, None)
    if absorbed:
        logger.debug("absorbed %d legacy characters from %s", len(absorbed), sorted(set(absorbed)))
    out["characters"] = characters
    return out


def sniff_relationship_format(raw: list[Any]) -> RelationshipFormat:
    # A list can look both name-keyed and id-less; the name-keyed check wins.
    first = raw[0] if raw else None
    if isinstance(first, dict) and "character1" in first:
        return RelationshipFormat.LEGACY_NAMES
    if any(not (isinstance(r, dict) and isinstance(r.get("id"), str) and r["id"]) for r in raw):
        return RelationshipFormat.MISSING_IDS
    return RelationshipFormat.CURRENT


def migrate_relationships(raw: Any, characters: list[dict[str, Any]], ids: IdGenerator) -> list[dict[str, Any]]:
    if not isinstance(raw, list) or not raw:
        return []

    fmt = sniff_relationship_format(raw)
    if fmt is RelationshipFormat.LEGACY_NAMES:
        name_to_id = {c["name"]: c.get("id") for c in characters if isinstance(c.get("name"), str)}
        out = []
        for rel in raw:
            rel = rel if isinstance(rel, dict) else {}
            c1, c2 = rel.get("character1"), rel.get("character2")
            out.append({
                "id": ids.new_id(),
                "character1Id": name_to_id.get(c1, "") if isinstance(c1, str) else "",
                "character2Id": name_to_id.get(c2, "") if isinstance(c2, str) else "",
                "type": _text(rel.get("type")),
                "description": _text(rel.get("description")),
            })
        resolved = [r for r in out if r["character1Id"] and r["character2Id"]]
        if len(resolved) != len(out):
            logger.debug("dropped %d name-keyed relationships that did not resolve", len(out) - len(resolved))
        return resolved

    if fmt is RelationshipFormat.MISSING_IDS:
        out = []
        for rel in raw:
            if not isinstance(rel, dict):
                continue
            rel = copy.deepcopy(rel)
            rel["id"] = _doc_id(rel.get("id"), ids)
            out.append(rel)
        return out

    return copy.deepcopy(raw)


def keep_linked_relationships(relationships: list[dict[str, Any]], characters: list[dict[str, Any]]) -> list[dict[str, Any]]:
    known = {c["id"] for c in characters if isinstance(c.get("id"), str) and c["id"]}
    kept = [
        r for r in relationships
        if isinstance(r.get("character1Id"), str) and isinstance(r.get("character2Id"), str)
        and r["character1Id"] in known and r["character2Id"] in known
    ]
    if len(kept) != len(relationships):
        logger.debug("dropped %d relationships pointing at unknown characters", len(relationships) - len(kept))
    return kept


def default_lore_lists(doc: dict[str, Any]) -> None:
    for key in LORE_KEYS:
        if not isinstance(doc.get(key), list):
            doc[key] = []


def migrate_story_arc(raw: Any, language: str) -> list[dict[str, Any]]:
    if not isinstance(raw, list) or not raw:
        return [{"title": ACT_TITLE_DEFAULTS[language], "description": "", "plotPoints": []}]
    acts = []
    for act in raw:
        act = dict(act) if isinstance(act, dict) else {"title": "", "description": ""}
        if not isinstance(act.get("plotPoints"), list):
            act["plotPoints"] = []
        acts.append(act)
    return acts


def default_chapters(raw: Any, ids: IdGenerator) -> list[Any]:
    if isinstance(raw, list) and raw:
        return raw
    return [{"id": ids.new_id(), "title": "Chapter 1", "content": ""}]


def migrate_story_data(raw: Any, ids: IdGenerator | None = None) -> dict[str, Any]:
    ids = ids or UuidIdGenerator()
    doc: dict[str, Any] = copy.deepcopy(raw) if isinstance(raw, dict) else {}
    language = _language(doc)

    doc["id"] = _doc_id(doc.get("id"), ids)
    doc["language"] = language
    if "universeId" not in doc:
        doc["universeId"] = None
    if doc.get("universeName") is None:
        doc["universeName"] = UNIVERSE_NAME_DEFAULTS[language]
    if doc.get("disguiseRealWorldNames") is None:
        doc["disguiseRealWorldNames"] = False

    current = doc.get("characters")
    doc["characters"] = [normalize_character(c, [], ids) for c in current] if isinstance(current, list) else []
    doc = absorb_legacy_characters(doc, ids)

    relationships = migrate_relationships(doc.get("relationships"), doc["characters"], ids)
    doc["relationships"] = keep_linked_relationships(relationships, doc["characters"])

    default_lore_lists(doc)
    doc["chapters"] = default_chapters(doc.get("chapters"), ids)
    doc["storyArc"] = migrate_story_arc(doc.get("storyArc"), language)
    if doc.get("customProseStyleByExample") is None:
        doc["customProseStyleByExample"] = ""
    return doc


def migrate_universe_data(raw: Any, ids: IdGenerator | None = None) -> dict[str, Any]:
    ids = ids or UuidIdGenerator()
    doc: dict[str, Any] = copy.deepcopy(raw) if isinstance(raw, dict) else {}
    doc["id"] = _doc_id(doc.get("id"), ids)
    doc["language"] = _language(doc)
    for key in ("name", "description"):
        if doc.get(key) is None:
            doc[key] = ""
    default_lore_lists(doc)
    return doc
