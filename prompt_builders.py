"""
Modular prompt builders for script analysis, topic ideation, script writing and storyboards.
Shared blocks are factored out so every call asks for the same rules.
"""
import json
from typing import Optional

from script_types import SuggestedTopic
import storyboard_config

NO_TEXT_CONSTRAINT: str = """
CRITICAL: Do NOT include any text, words, letters, numbers, titles, labels, watermarks, or any written content in the image. The image must be completely text-free."""


def parse_keywords(raw: Optional[str]) -> list[str]:
    """Split a comma-separated keyword string, dropping blanks."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def get_keyword_requirement_prompt(required_keywords: Optional[str]) -> str:
    """Title constraint block for required keywords; empty string when there are none."""
    keywords = parse_keywords(required_keywords)
    if not keywords:
        return ""
    quoted = ", ".join(f'"{k}"' for k in keywords)
    return f"""REQUIRED KEYWORDS (CRITICAL):
- Every title MUST naturally include ALL of these keywords: {quoted}
- Do not force them into awkward positions; the title must still read like a real, clickable video title"""


def get_originality_rules_prompt() -> str:
    """What may and may not be borrowed from a reference script."""
    return """ORIGINALITY RULES (CRITICAL):
- Borrow ONLY the structural pattern and the tone of the reference
- NEVER reuse its specific cases, examples, stories, anecdotes or sentences, even lightly edited
- NEVER mention its proper nouns, people or brands
- DO mirror: the overall flow (e.g. problem -> solution -> conclusion), sentence length and rhythm,
  how it talks to the viewer (friendly, expert, ...), and how it delivers information (numbering, analogies, questions)"""


def get_topic_variation_rules_prompt(topic_count: int) -> str:
    return f"""TOPIC VARIATIONS:
- Propose exactly {topic_count} NEW video topics on subjects different from the reference
- Each title must reuse the reference's detected title pattern (hook style, length, punctuation, numbers, curiosity gap)
- Each topic must be able to follow the same structure as the reference
- Write each one as a click-worthy title, not a bare subject
- For each topic give a short rationale: why it will perform and which detected pattern it reuses"""


def build_analysis_prompt(reference_text: str, required_keywords: Optional[str] = None, topic_count: int = 5) -> str:
    """Prompt for analyze(): structure breakdown plus topic variations for one reference."""
    keyword_block = get_keyword_requirement_prompt(required_keywords)
    return f"""Analyze the following text (a YouTube script or a rough video idea).

STRUCTURE ANALYSIS:
- Identify the narrative structure: hook, development, turning points, conclusion and call to action
- Identify the tone and voice, sentence rhythm, and the target audience
- Identify the title pattern and the hooking strategy
Summarize this as "structure_summary" - concrete enough that another writer could reproduce the structure on a different subject.

{get_topic_variation_rules_prompt(topic_count)}
{keyword_block}

REFERENCE TEXT:
\"\"\"
{reference_text.strip()}
\"\"\""""


def format_reference_scripts(reference_texts: list[str]) -> str:
    """Label each reference as [Script N] and separate them with rules."""
    return "\n---\n\n".join(
        f"[Script {i + 1}]\n{text.strip()}\n" for i, text in enumerate(reference_texts)
    )


def build_multi_analysis_prompt(reference_texts: list[str], required_keywords: Optional[str] = None, topic_count: int = 5) -> str:
    """Prompt for analyze_multiple(): common patterns across all references, then topic variations."""
    keyword_block = get_keyword_requirement_prompt(required_keywords)
    return f"""You are an expert YouTube content analyst. Analyze the {len(reference_texts)} scripts below.

COMMON PATTERN EXTRACTION:
- Find the success factors ALL of these scripts share: structure, tone, hooking strategy, target audience, pacing
- Ignore anything that appears in only one script
Summarize the shared patterns as "structure_summary".

{get_topic_variation_rules_prompt(topic_count)}
- Apply only the shared patterns; do not reuse any script's specific content or story, so there is no copyright risk
{keyword_block}

SCRIPTS TO ANALYZE:
{format_reference_scripts(reference_texts)}"""


def build_regenerate_topics_prompt(
    structure_summary: str,
    reference_text: str,
    new_keywords: str,
    topic_count: int = 5,
) -> str:
    """Prompt for regenerate_topics(): reuse a prior structure summary, no re-analysis."""
    return f"""A reference script has already been analyzed. Do NOT analyze it again; use this analysis as-is:

STRUCTURE ANALYSIS:
{structure_summary.strip()}

{get_topic_variation_rules_prompt(topic_count)}
- These must be FRESH ideas, different from any topics suggested before
{get_keyword_requirement_prompt(new_keywords)}

REFERENCE SCRIPT (for title pattern and tone only):
\"\"\"
{reference_text.strip()}
\"\"\""""


def build_script_prompt(topic: SuggestedTopic, reference_text: str, structure_name: str, structure_guide: str) -> str:
    """Prompt for generate_script(): a complete markdown script on the topic, shaped by the structure guide."""
    return f"""You are a professional YouTube scriptwriter. Write a complete script for the chosen topic.

CHOSEN TOPIC: "{topic.title}"
WHY THIS TOPIC: {topic.rationale}

NARRATIVE STRUCTURE: {structure_name}
{structure_guide.strip()}

{get_originality_rules_prompt()}

WRITING INSTRUCTIONS:
1. Follow the stages of the narrative structure above, in order
2. Every stage must contain 100% new content, cases and examples that fit the chosen topic
3. Write naturally and immersively in the same language as the reference script
4. Use markdown headers (##) for stages and bold (**) for emphasis where it helps
5. Write the full script from the opening hook to the outro - no outlines, no placeholders

REFERENCE SCRIPT (structure and tone only):
\"\"\"
{reference_text.strip()}
\"\"\""""


def build_storyboard_prompt(script: str, scene_count: int, visual_style: str) -> str:
    """Prompt for analyze_for_storyboard(): split a script into numbered scenes with image prompts."""
    style_name = storyboard_config.VISUAL_STYLE_NAMES[storyboard_config.VisualStyle(visual_style)]
    style_hint = storyboard_config.get_visual_style_prompt(visual_style)
    return f"""Split the following video script into exactly {scene_count} storyboard scenes.

SCENE RULES:
- Number scenes 1 to {scene_count}, in script order, covering the whole script with no gaps
- "description": 1-3 sentences on what happens and what the narration says at that point
- "visual_prompt": an English image-generation prompt describing one concrete frame
  (subject, action, setting, camera framing, lighting, mood)
- Keep recurring characters and locations visually consistent across scenes
- Every visual_prompt must match the visual style: {style_name} ({style_hint})
- No text, captions or logos inside the frame

SCRIPT:
\"\"\"
{script.strip()}
\"\"\""""


def build_scene_image_prompt(visual_prompt: str, visual_style: Optional[str] = None) -> str:
    """Final image prompt: scene prompt plus style hint (once) plus the no-text constraint."""
    prompt = visual_prompt.strip()
    if visual_style:
        style_hint = storyboard_config.get_visual_style_prompt(visual_style)
        if style_hint.lower() not in prompt.lower():
            prompt = f"{prompt}, {style_hint}"
    return prompt + NO_TEXT_CONSTRAINT


def summarize_topics_for_log(topics: list[SuggestedTopic]) -> str:
    return json.dumps([t.title for t in topics], ensure_ascii=False)
