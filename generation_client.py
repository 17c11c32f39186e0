"""
Generation client: one request/response round trip per operation.

Operations:
  analyze                 - structure summary + topic variations for one reference
  analyze_multiple        - same, over up to 3 references (common patterns only)
  regenerate_topics       - fresh topics re-using an existing structure summary
  generate_script         - full markdown script for a topic and structure guide
  analyze_for_storyboard  - numbered scenes with image prompts
  generate_scene_image    - one image per call

The client holds configuration only. API keys are looked up from the
CredentialProvider on every call; JSON payloads are shape-checked before
anything is returned (ResultMissing otherwise).
"""
import json

import config
import llm_utils
import prompt_builders
import storyboard_config
import structure_catalog
from config import Config
from credentials import CredentialProvider, credential_for_provider
from generation_errors import ResultMissing
from script_schemas import ANALYSIS_SCHEMA, STORYBOARD_SCHEMA, TOPICS_SCHEMA
from script_types import AnalysisResult, StoryboardScene, SuggestedTopic

ANALYST_SYSTEM_PROMPT = (
    "You are an expert YouTube content strategist. You analyze why scripts perform "
    "and reuse their structural patterns on new subjects without copying content."
)
WRITER_SYSTEM_PROMPT = (
    "You are a professional YouTube scriptwriter. You write complete, original scripts "
    "that follow a given narrative structure."
)
STORYBOARD_SYSTEM_PROMPT = (
    "You are a storyboard artist. You break scripts into visual scenes and write precise "
    "image-generation prompts."
)


def clean_json_response(content: str) -> str:
    """Remove markdown code blocks from JSON response."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def parse_json_payload(content: str) -> dict:
    """Parse a JSON object response; anything else is ResultMissing."""
    try:
        data = json.loads(clean_json_response(content))
    except json.JSONDecodeError as e:
        raise ResultMissing(f"Response was not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ResultMissing(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _require_text(item: dict, field: str, what: str) -> str:
    value = item.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ResultMissing(f"{what} is missing required field '{field}'")
    return value.strip()


def parse_topics(data: dict, limit: int) -> tuple[SuggestedTopic, ...]:
    """Validate the 'topics' array; keep at most `limit` entries."""
    items = data.get("topics")
    if not isinstance(items, list) or not items:
        raise ResultMissing("Response has no 'topics' array")
    topics = []
    for i, item in enumerate(items[:limit]):
        if not isinstance(item, dict):
            raise ResultMissing(f"Topic {i + 1} is not an object")
        topics.append(SuggestedTopic(
            title=_require_text(item, "title", f"Topic {i + 1}"),
            rationale=_require_text(item, "rationale", f"Topic {i + 1}"),
        ))
    if len(items) < limit:
        print(f"[ANALYSIS] WARNING: Expected {limit} topics, got {len(items)}.")
    return tuple(topics)


def parse_scenes(data: dict, scene_count: int) -> tuple[StoryboardScene, ...]:
    """
    Validate the 'scenes' array and renumber 1..n in the order returned.
    Extra scenes beyond scene_count are dropped.
    """
    items = data.get("scenes")
    if not isinstance(items, list) or not items:
        raise ResultMissing("Response has no 'scenes' array")
    scenes = []
    for i, item in enumerate(items[:scene_count]):
        if not isinstance(item, dict):
            raise ResultMissing(f"Scene {i + 1} is not an object")
        scenes.append(StoryboardScene(
            scene_number=i + 1,
            description=_require_text(item, "description", f"Scene {i + 1}"),
            visual_prompt=_require_text(item, "visual_prompt", f"Scene {i + 1}"),
        ))
    if len(items) != scene_count:
        print(f"[STORYBOARD] WARNING: Requested {scene_count} scenes, model returned {len(items)}.")
    return tuple(scenes)


class GenerationClient:
    """Stateless wrapper around the text and image backends."""

    def __init__(
        self,
        credentials: CredentialProvider | None = None,
        text_provider: str | None = None,
        image_provider: str | None = None,
        text_model: str | None = None,
        temperature: float | None = None,
        topic_count: int | None = None,
    ):
        cfg = Config()
        self.credentials = credentials if credentials is not None else CredentialProvider()
        self.text_provider = (text_provider or config.TEXT_PROVIDER).lower()
        self.image_provider = (image_provider or config.IMAGE_PROVIDER).lower()
        self.text_model = text_model
        self.temperature = cfg.text_temperature if temperature is None else temperature
        self.topic_count = topic_count or cfg.topic_count
        self.max_reference_files = cfg.max_reference_files

    def _text_key(self) -> str:
        return self.credentials.get(credential_for_provider(self.text_provider))

    def _image_key(self) -> str:
        return self.credentials.get(credential_for_provider(self.image_provider))

    def _generate(self, system_prompt: str, user_prompt: str, schema: dict | None = None, temperature: float | None = None) -> str:
        return llm_utils.generate_text(
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            api_key=self._text_key(),
            model=self.text_model,
            provider=self.text_provider,
            temperature=self.temperature if temperature is None else temperature,
            response_json_schema=schema,
        )

    def analyze(self, reference_text: str, required_keywords: str | None = None) -> AnalysisResult:
        if not reference_text or not reference_text.strip():
            raise ValueError("reference_text is empty")
        content = self._generate(
            ANALYST_SYSTEM_PROMPT,
            prompt_builders.build_analysis_prompt(reference_text, required_keywords, self.topic_count),
            schema=ANALYSIS_SCHEMA,
        )
        return self._parse_analysis(content)

    def analyze_multiple(self, reference_texts: list[str], required_keywords: str | None = None) -> AnalysisResult:
        if not reference_texts:
            raise ValueError("reference_texts is empty")
        if len(reference_texts) > self.max_reference_files:
            raise ValueError(
                f"At most {self.max_reference_files} reference scripts can be analyzed at once. Got: {len(reference_texts)}"
            )
        content = self._generate(
            ANALYST_SYSTEM_PROMPT,
            prompt_builders.build_multi_analysis_prompt(reference_texts, required_keywords, self.topic_count),
            schema=ANALYSIS_SCHEMA,
        )
        return self._parse_analysis(content)

    def _parse_analysis(self, content: str) -> AnalysisResult:
        data = parse_json_payload(content)
        summary = _require_text(data, "structure_summary", "Analysis")
        topics = parse_topics(data, self.topic_count)
        print(f"[ANALYSIS] {len(topics)} topics: {prompt_builders.summarize_topics_for_log(list(topics))}")
        return AnalysisResult(structure_summary=summary, topics=topics)

    def regenerate_topics(self, structure_summary: str, reference_text: str, new_keywords: str) -> tuple[SuggestedTopic, ...]:
        content = self._generate(
            ANALYST_SYSTEM_PROMPT,
            prompt_builders.build_regenerate_topics_prompt(
                structure_summary, reference_text, new_keywords, self.topic_count
            ),
            schema=TOPICS_SCHEMA,
            temperature=max(self.temperature, 0.9),
        )
        topics = parse_topics(parse_json_payload(content), self.topic_count)
        print(f"[ANALYSIS] Regenerated {len(topics)} topics with keywords: {new_keywords}")
        return topics

    def generate_script(
        self,
        topic: SuggestedTopic,
        reference_text: str,
        structure_id: str,
        structure_guide: str | None = None,
    ) -> str:
        """
        Write a full markdown script.

        structure_guide defaults to the catalog guide for structure_id; callers
        using 'original' must pass the guide (see structure_catalog.resolve_guide).
        """
        if structure_guide is None:
            structure_guide = structure_catalog.guide_for(structure_id)
        content = self._generate(
            WRITER_SYSTEM_PROMPT,
            prompt_builders.build_script_prompt(
                topic,
                reference_text,
                structure_catalog.get_structure_display_name(structure_id),
                structure_guide,
            ),
        )
        script = content.strip()
        print(f"[SCRIPT] Generated {len(script)} chars for '{topic.title}' ({structure_id})")
        return script

    def analyze_for_storyboard(self, script: str, scene_count: int, visual_style: str) -> tuple[StoryboardScene, ...]:
        storyboard_config.validate_setting("scene_count", scene_count)
        storyboard_config.validate_setting("visual_style", visual_style)
        if not script or not script.strip():
            raise ValueError("script is empty")
        content = self._generate(
            STORYBOARD_SYSTEM_PROMPT,
            prompt_builders.build_storyboard_prompt(script, scene_count, visual_style),
            schema=STORYBOARD_SCHEMA,
        )
        scenes = parse_scenes(parse_json_payload(content), scene_count)
        print(f"[STORYBOARD] {len(scenes)} scenes ({visual_style})")
        return scenes

    def generate_scene_image(
        self,
        prompt: str,
        aspect_ratio: str,
        engine: str = storyboard_config.DEFAULT_ENGINE,
        visual_style: str | None = None,
    ) -> str:
        """One image for one scene. Raises a GenerationError subclass on failure."""
        return llm_utils.generate_image(
            prompt=prompt_builders.build_scene_image_prompt(prompt, visual_style),
            api_key=self._image_key(),
            aspect_ratio=aspect_ratio,
            provider=self.image_provider,
            engine=engine,
        )
