"""
JSON schemas for script analysis and storyboard generation.
Pass these to llm_utils.generate_text(response_json_schema=...) for structured output.
"""

_TOPIC_ITEM = {
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "description": "Click-worthy video title that reuses the reference's title pattern on a new subject.",
        },
        "rationale": {
            "type": "string",
            "description": "Why this topic works and which detected pattern it reuses.",
        },
    },
    "required": ["title", "rationale"],
}

# --- Analysis (single or multiple reference scripts) ---
ANALYSIS_SCHEMA = {
    "type": "object",
    "title": "script_analysis",
    "properties": {
        "structure_summary": {
            "type": "string",
            "description": "Breakdown of the reference's narrative structure, hook, pacing, tone and target audience.",
        },
        "topics": {
            "type": "array",
            "items": _TOPIC_ITEM,
            "minItems": 5,
            "maxItems": 5,
            "description": "Exactly 5 retitled topic variations.",
        },
    },
    "required": ["structure_summary", "topics"],
}

# --- Topic regeneration (re-uses an existing structure summary) ---
TOPICS_SCHEMA = {
    "type": "object",
    "title": "topic_variations",
    "properties": {
        "topics": {
            "type": "array",
            "items": _TOPIC_ITEM,
            "minItems": 5,
            "maxItems": 5,
        },
    },
    "required": ["topics"],
}

# --- Storyboard scene breakdown ---
STORYBOARD_SCHEMA = {
    "type": "object",
    "title": "storyboard",
    "properties": {
        "scenes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "scene_number": {"type": "integer"},
                    "description": {
                        "type": "string",
                        "description": "What happens in this scene and which part of the script it covers.",
                    },
                    "visual_prompt": {
                        "type": "string",
                        "description": "English image-generation prompt for this scene in the chosen visual style.",
                    },
                },
                "required": ["scene_number", "description", "visual_prompt"],
            },
        },
    },
    "required": ["scenes"],
}
