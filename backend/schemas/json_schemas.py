CUSTOM_FIELD_SCHEMA = {
    "type": "object",
    "required": ["label", "value"],
    "properties": {
        "id": {"type": "string"},
        "label": {"type": "string", "description": "The name of the custom detail, e.g., 'Magical Ability'."},
        "value": {"type": "string", "description": "The description of the custom detail."},
    },
}

CHARACTER_SCHEMA = {
    "type": "object",
    "required": ["name", "roles", "age", "gender", "physicalDescription", "voiceAndSpeechStyle", "personalityTraits", "habits", "goal", "principles", "conflict"],
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "roles": {"type": "array", "items": {"type": "string"}, "description": "Roles for this character, e.g., ['Protagonist', 'Mentor']."},
        "age": {"type": "string"},
        "gender": {"type": "string"},
        "physicalDescription": {"type": "string", "description": "A 1-2 sentence description of their physical appearance."},
        "voiceAndSpeechStyle": {"type": "string", "description": "Their physical voice and typical speech patterns."},
        "personalityTraits": {"type": "string", "description": "A 1-2 sentence summary of their key personality traits."},
        "habits": {"type": "string", "description": "A notable habit or quirk."},
        "goal": {"type": "string", "description": "Their primary motivation or goal in the story."},
        "principles": {"type": "string", "description": "A core principle or value they live by."},
        "conflict": {"type": "string", "description": "The central internal or external conflict they face."},
        "customFields": {"type": "array", "items": CUSTOM_FIELD_SCHEMA},
    },
}

RELATIONSHIP_SCHEMA = {
    "type": "object",
    "required": ["character1Id", "character2Id", "type", "description"],
    "properties": {
        "id": {"type": "string"},
        "character1Id": {"type": "string", "description": "The ID of the first character in the relationship."},
        "character2Id": {"type": "string", "description": "The ID of the second character in the relationship."},
        "type": {"type": "string", "description": "e.g., 'Rivals', 'Childhood Friends', 'Mentor-Mentee'."},
        "description": {"type": "string", "description": "A 1-sentence description of their dynamic."},
    },
}

LORE_ENTRY_SCHEMA = {
    "type": "object",
    "required": ["name", "description"],
    "properties": {"id": {"type": "string"}, "name": {"type": "string"}, "description": {"type": "string"}},
}

PLOT_POINT_SCHEMA = {
    "type": "object",
    "required": ["summary"],
    "properties": {"id": {"type": "string"}, "summary": {"type": "string", "description": "A brief summary of the plot point or scene."}},
}

STORY_ARC_ACT_SCHEMA = {
    "type": "object",
    "required": ["title", "description", "plotPoints"],
    "properties": {"title": {"type": "string"}, "description": {"type": "string"}, "plotPoints": {"type": "array", "items": PLOT_POINT_SCHEMA}},
}

CHAPTER_SCHEMA = {
    "type": "object",
    "required": ["id", "title", "content"],
    "properties": {"id": {"type": "string"}, "title": {"type": "string"}, "content": {"type": "string"}},
}

_LORE_LIST = {"type": "array", "items": LORE_ENTRY_SCHEMA}

STORY_SCHEMA = {
    "type": "object",
    "required": [
        "id", "language", "universeId", "universeName", "disguiseRealWorldNames", "characters", "relationships",
        "locations", "factions", "lore", "chapters", "storyArc", "customProseStyleByExample",
    ],
    "properties": {
        "id": {"type": "string"},
        "language": {"type": "string", "enum": ["en", "id"]},
        "title": {"type": "string"},
        "genres": {"type": "array", "items": {"type": "string"}},
        "otherGenre": {"type": "string"},
        "setting": {"type": "string"},
        "totalChapters": {"type": "string"},
        "wordsPerChapter": {"type": "string"},
        "mainPlot": {"type": "string"},
        "characters": {"type": "array", "items": CHARACTER_SCHEMA},
        "relationships": {"type": "array", "items": RELATIONSHIP_SCHEMA},
        "storyArc": {"type": "array", "minItems": 1, "items": STORY_ARC_ACT_SCHEMA},
        "comedyLevel": {"type": "string"},
        "romanceLevel": {"type": "string"},
        "actionLevel": {"type": "string"},
        "maturityLevel": {"type": "string"},
        "proseStyle": {"type": "string"},
        "customProseStyleByExample": {"type": "string"},
        "chapters": {"type": "array", "minItems": 1, "items": CHAPTER_SCHEMA},
        "universeId": {"type": ["string", "null"]},
        "universeName": {"type": "string"},
        "locations": _LORE_LIST,
        "factions": _LORE_LIST,
        "lore": _LORE_LIST,
        "magicSystem": {"type": "string"},
        "worldBuilding": {"type": "string"},
        "disguiseRealWorldNames": {"type": "boolean"},
    },
}

UNIVERSE_SCHEMA = {
    "type": "object",
    "required": ["id", "language", "name", "description", "locations", "factions", "lore"],
    "properties": {
        "id": {"type": "string"},
        "language": {"type": "string", "enum": ["en", "id"]},
        "name": {"type": "string"},
        "description": {"type": "string"},
        "isFavorite": {"type": "boolean"},
        "locations": _LORE_LIST,
        "factions": _LORE_LIST,
        "lore": _LORE_LIST,
        "magicSystem": {"type": "string"},
        "worldBuilding": {"type": "string"},
    },
}

ENTITY_SCHEMAS = {
    "character": CHARACTER_SCHEMA,
    "relationship": RELATIONSHIP_SCHEMA,
    "lore_entry": LORE_ENTRY_SCHEMA,
    "plot_point": PLOT_POINT_SCHEMA,
    "story_arc_act": STORY_ARC_ACT_SCHEMA,
    "chapter": CHAPTER_SCHEMA,
    "story": STORY_SCHEMA,
    "universe": UNIVERSE_SCHEMA,
}

GENRES = {
    "en": ["Harem", "Transmigration", "Romance", "System", "Fantasy", "Sci-Fi", "Action", "Adventure", "Comedy", "Mystery", "Urban", "Wuxia", "Xianxia", "Mature"],
    "id": ["Harem", "Transmigrasi", "Romansa", "Sistem", "Fantasi", "Fiksi Ilmiah", "Aksi", "Petualangan", "Komedi", "Misteri", "Perkotaan", "Wuxia", "Xianxia", "Dewasa"],
}

PROSE_STYLES = {
    "en": [
        "Light and descriptive, with witty dialogue.",
        "Fast-paced and punchy, focusing on action.",
        "Deeply introspective and character-focused.",
        "Formal and elegant, like a classic novel.",
        "Informal and conversational, first-person POV.",
    ],
    "id": [
        "Ringan dan deskriptif, dengan dialog jenaka.",
        "Cepat dan lugas, berfokus pada aksi.",
        "Sangat introspektif dan berfokus pada karakter.",
        "Formal dan elegan, seperti novel klasik.",
        "Informal dan seperti percakapan, sudut pandang orang pertama.",
    ],
}
