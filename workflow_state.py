"""
Workflow stages, the single WorkflowState record, and pure transition functions.

Every transition takes a state and returns a new one; nothing here performs I/O.
WorkflowOrchestrator (workflow.py) decides when each transition applies.
"""
from dataclasses import dataclass, replace
from enum import Enum

from script_types import AnalysisResult, StoryboardScene, StoryboardSettings, SuggestedTopic


class Stage(str, Enum):
    INPUT = "INPUT"
    TOPIC_SELECTION = "TOPIC_SELECTION"
    STRUCTURE_SELECTION = "STRUCTURE_SELECTION"
    SCRIPT_VIEW = "SCRIPT_VIEW"
    STORYBOARD_SETTINGS = "STORYBOARD_SETTINGS"
    STORYBOARD_VIEW = "STORYBOARD_VIEW"


STAGE_LABELS = {
    Stage.INPUT: "1. Script input",
    Stage.TOPIC_SELECTION: "2. Topic",
    Stage.STRUCTURE_SELECTION: "3. Structure",
    Stage.SCRIPT_VIEW: "4. Script",
    Stage.STORYBOARD_SETTINGS: "5. Storyboard settings",
    Stage.STORYBOARD_VIEW: "6. Storyboard",
}
STAGE_ORDER = list(Stage)


@dataclass(frozen=True)
class WorkflowState:
    stage: Stage = Stage.INPUT
    raw_input: str = ""
    required_keywords: str = ""
    regenerate_keywords: str = ""
    structure_summary: str = ""
    topics: tuple[SuggestedTopic, ...] = ()
    selected_topic: SuggestedTopic | None = None
    selected_structure: str | None = None
    generated_script: str = ""
    storyboard_settings: StoryboardSettings | None = None
    storyboard_scenes: tuple[StoryboardScene, ...] = ()
    # Incremented for every storyboard produced; scene image updates carry it
    storyboard_batch: int = 0
    # Uploaded reference scripts (INPUT stage); the first one is the reference for generation
    reference_texts: tuple[str, ...] = ()
    reference_names: tuple[str, ...] = ()
    is_loading: bool = False
    error: str | None = None

    @property
    def reference_text(self) -> str:
        """First uploaded file wins; otherwise the free-text input."""
        return self.reference_texts[0] if self.reference_texts else self.raw_input

    @property
    def images_resolved(self) -> int:
        return sum(1 for s in self.storyboard_scenes if s.is_resolved)


def initial_state() -> WorkflowState:
    return WorkflowState()


def begin_request(state: WorkflowState, **pending) -> WorkflowState:
    """Enter the loading state; the previous error is cleared. pending records the request's inputs."""
    return replace(state, is_loading=True, error=None, **pending)


def fail_request(state: WorkflowState, message: str) -> WorkflowState:
    """Leave the loading state with an error; the stage does not move."""
    return replace(state, is_loading=False, error=message)


def set_error(state: WorkflowState, message: str | None) -> WorkflowState:
    return replace(state, error=message)


def apply_analysis(
    state: WorkflowState,
    result: AnalysisResult,
    raw_input: str,
    required_keywords: str = "",
    reference_texts: tuple[str, ...] = (),
    reference_names: tuple[str, ...] = (),
) -> WorkflowState:
    """INPUT -> TOPIC_SELECTION with a fresh summary and topic list."""
    return replace(
        state,
        stage=Stage.TOPIC_SELECTION,
        raw_input=raw_input,
        required_keywords=required_keywords,
        structure_summary=result.structure_summary,
        topics=tuple(result.topics),
        selected_topic=None,
        selected_structure=None,
        generated_script="",
        reference_texts=tuple(reference_texts),
        reference_names=tuple(reference_names),
        is_loading=False,
        error=None,
    )


def apply_regenerated_topics(state: WorkflowState, topics: tuple[SuggestedTopic, ...]) -> WorkflowState:
    """Replace the topic list only; the structure summary is kept as-is."""
    return replace(
        state,
        topics=tuple(topics),
        regenerate_keywords="",
        is_loading=False,
        error=None,
    )


def select_topic(state: WorkflowState, topic: SuggestedTopic) -> WorkflowState:
    return replace(state, stage=Stage.STRUCTURE_SELECTION, selected_topic=topic, error=None)


def apply_script(state: WorkflowState, structure_id: str, script: str) -> WorkflowState:
    """STRUCTURE_SELECTION -> SCRIPT_VIEW (or overwrite the script when regenerating)."""
    return replace(
        state,
        stage=Stage.SCRIPT_VIEW,
        selected_structure=structure_id,
        generated_script=script,
        is_loading=False,
        error=None,
    )


def start_storyboard(state: WorkflowState) -> WorkflowState:
    return replace(
        state,
        stage=Stage.STORYBOARD_SETTINGS,
        storyboard_settings=StoryboardSettings(),
        storyboard_scenes=(),
        error=None,
    )


def update_settings(state: WorkflowState, **changes) -> WorkflowState:
    """Merge validated setting changes. Raises ValueError for out-of-range values."""
    settings = state.storyboard_settings or StoryboardSettings()
    return replace(state, storyboard_settings=settings.merged(**changes), error=None)


def apply_storyboard(state: WorkflowState, scenes: tuple[StoryboardScene, ...]) -> WorkflowState:
    """STORYBOARD_SETTINGS -> STORYBOARD_VIEW with a new batch of unresolved scenes."""
    return replace(
        state,
        stage=Stage.STORYBOARD_VIEW,
        storyboard_scenes=tuple(
            replace(s, image_url=None, is_generating=False, placeholder_url=None) for s in scenes
        ),
        storyboard_batch=state.storyboard_batch + 1,
        is_loading=False,
        error=None,
    )


def is_batch_active(state: WorkflowState, batch: int) -> bool:
    return state.stage == Stage.STORYBOARD_VIEW and state.storyboard_batch == batch


def update_scene(state: WorkflowState, batch: int, scene_number: int, **changes) -> tuple[WorkflowState, bool]:
    """
    Apply changes to one scene of the given batch.

    Returns (new_state, applied). Updates for a batch that is no longer active,
    or for a scene number that does not exist, leave the state untouched.
    """
    if not is_batch_active(state, batch):
        return state, False
    scenes = list(state.storyboard_scenes)
    for i, scene in enumerate(scenes):
        if scene.scene_number == scene_number:
            scenes[i] = replace(scene, **changes)
            return replace(state, storyboard_scenes=tuple(scenes)), True
    return state, False


def go_back(state: WorkflowState) -> WorkflowState:
    """
    One step backwards. Downstream fields are discarded, upstream ones kept.
    INPUT has no previous stage and is returned unchanged.
    """
    if state.stage == Stage.TOPIC_SELECTION:
        return replace(
            state,
            stage=Stage.INPUT,
            topics=(),
            structure_summary="",
            selected_topic=None,
            regenerate_keywords="",
            error=None,
        )
    if state.stage == Stage.STRUCTURE_SELECTION:
        return replace(
            state,
            stage=Stage.TOPIC_SELECTION,
            selected_topic=None,
            selected_structure=None,
            error=None,
        )
    if state.stage == Stage.SCRIPT_VIEW:
        return replace(
            state,
            stage=Stage.STRUCTURE_SELECTION,
            generated_script="",
            selected_structure=None,
            error=None,
        )
    if state.stage in (Stage.STORYBOARD_SETTINGS, Stage.STORYBOARD_VIEW):
        return replace(
            state,
            stage=Stage.SCRIPT_VIEW,
            storyboard_settings=None,
            storyboard_scenes=(),
            error=None,
        )
    return state


def reset_state(state: WorkflowState) -> WorkflowState:
    """Full reset. The batch counter survives so a running image filler sees its batch as stale."""
    return replace(initial_state(), storyboard_batch=state.storyboard_batch)
