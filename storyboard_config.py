"""
Storyboard option sets shared across scene breakdown, image generation and the UI.
"""
from enum import Enum
from urllib.parse import quote

from config import Config


class VisualStyle(str, Enum):
    CINEMATIC = "cinematic"
    K_DRAMA = "k-drama"
    WEBTOON = "webtoon"
    PIXAR = "pixar"
    FOLK_PAINTING = "folk-painting"
    FAIRY_TALE = "fairy-tale"
    DIORAMA = "diorama"
    WOOL_FELT = "wool-felt"


# Display name shown in the settings panel
VISUAL_STYLE_NAMES = {
    VisualStyle.CINEMATIC: "Cinematic",
    VisualStyle.K_DRAMA: "K-Drama",
    VisualStyle.WEBTOON: "Webtoon",
    VisualStyle.PIXAR: "3D Animation",
    VisualStyle.FOLK_PAINTING: "Folk Painting",
    VisualStyle.FAIRY_TALE: "Fairy Tale",
    VisualStyle.DIORAMA: "Diorama",
    VisualStyle.WOOL_FELT: "Wool Felt",
}

# Style hint appended to every scene's image prompt
VISUAL_STYLE_PROMPTS = {
    VisualStyle.CINEMATIC: "cinematic live-action film still, anamorphic lens, dramatic lighting, shallow depth of field",
    VisualStyle.K_DRAMA: "Korean drama live-action still, soft natural light, warm color grading, emotional close framing",
    VisualStyle.WEBTOON: "Korean webtoon illustration, clean line art, flat vibrant colors, manhwa style",
    VisualStyle.PIXAR: "3D animated film style, Pixar-like character design, soft global illumination",
    VisualStyle.FOLK_PAINTING: "traditional Korean minhwa folk painting, ink outlines, mineral pigments on hanji paper",
    VisualStyle.FAIRY_TALE: "storybook fairy tale illustration, gentle watercolor textures, whimsical details",
    VisualStyle.DIORAMA: "miniature diorama, tilt-shift photography, handcrafted tiny props",
    VisualStyle.WOOL_FELT: "needle-felted wool doll scene, soft fuzzy textures, handmade stop-motion look",
}

for _table in (VISUAL_STYLE_NAMES, VISUAL_STYLE_PROMPTS):
    _missing = [s.value for s in VisualStyle if s not in _table]
    if _missing:
        raise RuntimeError(f"Visual styles missing an entry: {_missing}")

VISUAL_STYLES = [s.value for s in VisualStyle]

# Image engines (see llm_utils.resolve_image_model for the model each one maps to)
ENGINES = ["nano", "banana", "pro"]
ENGINE_DESCRIPTIONS = {
    "nano": "fast, lightweight",
    "banana": "balanced, follows prompts closely",
    "pro": "highest quality, slowest",
}

ASPECT_RATIOS = ["16:9", "9:16"]
ASPECT_RATIO_DIMENSIONS = {
    "16:9": (1024, 576),
    "9:16": (576, 1024),
}

MIN_SCENE_COUNT = Config.min_scene_count
MAX_SCENE_COUNT = Config.max_scene_count

DEFAULT_VISUAL_STYLE = VisualStyle.CINEMATIC.value
DEFAULT_ENGINE = "nano"
DEFAULT_ASPECT_RATIO = "16:9"
DEFAULT_SCENE_COUNT = Config.default_scene_count

# Placeholder labels
PLACEHOLDER_API_KEY_REQUIRED = "API Key Required"
PLACEHOLDER_QUOTA_EXCEEDED = "Quota Exceeded"
PLACEHOLDER_GENERATION_FAILED = "Generation Failed"


def get_visual_style_prompt(visual_style: str) -> str:
    return VISUAL_STYLE_PROMPTS[VisualStyle(visual_style)]


def get_visual_style_options() -> list[tuple[str, str]]:
    """(label, id) pairs for a selection widget."""
    return [(VISUAL_STYLE_NAMES[s], s.value) for s in VisualStyle]


def validate_setting(field: str, value) -> None:
    """Raise ValueError when value is outside the option set for a storyboard setting."""
    if field == "visual_style":
        if value not in VISUAL_STYLES:
            raise ValueError(f"Invalid visual_style '{value}'. Must be one of: {VISUAL_STYLES}")
    elif field == "engine":
        if value not in ENGINES:
            raise ValueError(f"Invalid engine '{value}'. Must be one of: {ENGINES}")
    elif field == "aspect_ratio":
        if value not in ASPECT_RATIOS:
            raise ValueError(f"Invalid aspect_ratio '{value}'. Must be one of: {ASPECT_RATIOS}")
    elif field == "scene_count":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"scene_count must be an integer. Got: {value!r}")
        if not MIN_SCENE_COUNT <= value <= MAX_SCENE_COUNT:
            raise ValueError(
                f"scene_count must be between {MIN_SCENE_COUNT} and {MAX_SCENE_COUNT}. Got: {value}"
            )
    else:
        raise ValueError(f"Unknown storyboard setting '{field}'")


def placeholder_image_url(aspect_ratio: str, label: str = PLACEHOLDER_GENERATION_FAILED) -> str:
    """Deterministic placeholder image sized for the aspect ratio."""
    width, height = ASPECT_RATIO_DIMENSIONS.get(aspect_ratio, ASPECT_RATIO_DIMENSIONS[DEFAULT_ASPECT_RATIO])
    return f"https://placehold.co/{width}x{height}/1a1a1a/white?text={quote(label)}"
