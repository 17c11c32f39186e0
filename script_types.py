"""
Value records passed between the generation client, the workflow and the UI.
All records are immutable; updates produce new instances via dataclasses.replace.
"""
from dataclasses import dataclass, field, replace

import storyboard_config


@dataclass(frozen=True)
class SuggestedTopic:
    title: str
    rationale: str


@dataclass(frozen=True)
class AnalysisResult:
    structure_summary: str
    topics: tuple[SuggestedTopic, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class StoryboardSettings:
    visual_style: str = storyboard_config.DEFAULT_VISUAL_STYLE
    engine: str = storyboard_config.DEFAULT_ENGINE
    aspect_ratio: str = storyboard_config.DEFAULT_ASPECT_RATIO
    scene_count: int = storyboard_config.DEFAULT_SCENE_COUNT

    def merged(self, **changes) -> "StoryboardSettings":
        """Return a copy with changes applied; every value must be inside its option set."""
        for name, value in changes.items():
            storyboard_config.validate_setting(name, value)
        return replace(self, **changes)


@dataclass(frozen=True)
class StoryboardScene:
    scene_number: int
    description: str
    visual_prompt: str
    image_url: str | None = None
    is_generating: bool = False
    # Set when image generation failed; shown instead of image_url
    placeholder_url: str | None = None

    @property
    def display_url(self) -> str | None:
        return self.image_url or self.placeholder_url

    @property
    def is_resolved(self) -> bool:
        return not self.is_generating and self.display_url is not None
