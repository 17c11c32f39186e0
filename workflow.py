"""
WorkflowOrchestrator: owns the WorkflowState and runs every user event against it.

Foreground generation calls (analysis, topic regeneration, script, storyboard breakdown)
run one at a time: while one is in flight, is_loading is set and any further event is
ignored rather than queued. The Scene Image Filler runs on a separate single-worker
executor and writes back through apply_scene_update, which drops stale batches.

Every public method returns the state snapshot after the event.
"""
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

import config
import prompt_builders
import structure_catalog
import workflow_state as ws
from config import Config
from file_inputs import FileInputError, ReferenceFile, check_file_count, read_reference_files
from generation_client import GenerationClient
from generation_errors import user_message
from scene_image_filler import FillReport, fill_scene_images
from workflow_state import Stage, WorkflowState

ANALYSIS_FAILED = "Script analysis failed. Please try again."
REGENERATE_FAILED = "Could not generate new topics. Please try again."
SCRIPT_FAILED = "Script generation failed. Please try again."
STORYBOARD_FAILED = "Storyboard generation failed. Please try again."


def _log(msg: str, verbose_only: bool = False) -> None:
    """Log with [WORKFLOW] prefix. Use verbose_only for extra debug output."""
    if verbose_only and not config.DEBUG:
        return
    print(f"[WORKFLOW] {msg}")


class WorkflowOrchestrator:
    def __init__(
        self,
        client: GenerationClient | None = None,
        delay_seconds: float | None = None,
        executor: ThreadPoolExecutor | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client if client is not None else GenerationClient()
        self.delay_seconds = Config().image_request_delay if delay_seconds is None else delay_seconds
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="scene-images")
        self._sleep = sleep
        self._lock = threading.Lock()
        self._state = ws.initial_state()
        self._filler_future: Future | None = None

    @property
    def state(self) -> WorkflowState:
        with self._lock:
            return self._state

    # ---- internal helpers ----

    def _accepts(self, event: str, *stages: Stage) -> bool:
        """Caller holds the lock. False (and logged) while loading or outside the given stages."""
        if self._state.is_loading:
            _log(f"Ignoring '{event}': a request is already in flight")
            return False
        if stages and self._state.stage not in stages:
            _log(f"Ignoring '{event}' in stage {self._state.stage.value}")
            return False
        return True

    def _set_error(self, message: str) -> WorkflowState:
        with self._lock:
            self._state = ws.set_error(self._state, message)
            return self._state

    def _foreground(
        self,
        event: str,
        stage: Stage,
        call: Callable[[WorkflowState], object],
        apply: Callable[[WorkflowState, object], WorkflowState],
        fallback: str,
        pending: dict | None = None,
    ) -> tuple[WorkflowState, bool]:
        """
        Run one foreground generation call.

        Loading is entered under the lock; the call itself runs outside it. On failure
        the stage is left where it was and a user message is stored in state.error.
        Returns (state, succeeded).
        """
        with self._lock:
            if not self._accepts(event, stage):
                return self._state, False
            self._state = ws.begin_request(self._state, **(pending or {}))
            snapshot = self._state

        _log(f"{event}: started")
        try:
            result = call(snapshot)
        except Exception as e:
            _log(f"{event}: failed: {type(e).__name__}: {e}")
            with self._lock:
                self._state = ws.fail_request(self._state, user_message(e, fallback))
                return self._state, False

        with self._lock:
            self._state = apply(self._state, result)
            _log(f"{event}: done -> {self._state.stage.value}")
            return self._state, True

    # ---- INPUT ----

    def submit_input(self, raw_input: str, required_keywords: str = "") -> WorkflowState:
        if not raw_input or not raw_input.strip():
            with self._lock:
                if not self._accepts("submit input", Stage.INPUT):
                    return self._state
            return self._set_error("Enter a reference script or a video idea first.")

        state, _ = self._foreground(
            "submit input",
            Stage.INPUT,
            lambda s: self.client.analyze(raw_input, required_keywords),
            lambda s, result: ws.apply_analysis(s, result, raw_input, required_keywords),
            ANALYSIS_FAILED,
        )
        return state

    def submit_files(self, files: list[ReferenceFile], required_keywords: str = "") -> WorkflowState:
        try:
            check_file_count(len(files))
        except FileInputError as e:
            _log(f"Rejected upload: {e}")
            return self._set_error(str(e))

        texts = tuple(f.text for f in files)
        names = tuple(f.name for f in files)
        raw_input = f"[{len(files)} files analyzed]"
        state, _ = self._foreground(
            "submit files",
            Stage.INPUT,
            lambda s: self.client.analyze_multiple(list(texts), required_keywords),
            lambda s, result: ws.apply_analysis(s, result, raw_input, required_keywords, texts, names),
            ANALYSIS_FAILED,
        )
        return state

    def submit_file_paths(self, paths: list, required_keywords: str = "") -> WorkflowState:
        """Read uploaded files from disk, then analyze them. Read errors leave INPUT untouched."""
        try:
            files = read_reference_files(paths)
        except FileInputError as e:
            _log(f"Rejected upload: {e}")
            return self._set_error(str(e))
        return self.submit_files(files, required_keywords)

    # ---- TOPIC_SELECTION ----

    def select_topic(self, index: int) -> WorkflowState:
        with self._lock:
            if not self._accepts("select topic", Stage.TOPIC_SELECTION):
                return self._state
            if not 0 <= index < len(self._state.topics):
                _log(f"Ignoring topic index {index}: {len(self._state.topics)} topics available")
                return self._state
            topic = self._state.topics[index]
            self._state = ws.select_topic(self._state, topic)
            _log(f"Selected topic: {topic.title}")
            return self._state

    def regenerate_topics(self, new_keywords: str) -> WorkflowState:
        if not prompt_builders.parse_keywords(new_keywords):
            with self._lock:
                if not self._accepts("regenerate topics", Stage.TOPIC_SELECTION):
                    return self._state
            return self._set_error("Enter at least one keyword to regenerate topics.")

        state, _ = self._foreground(
            "regenerate topics",
            Stage.TOPIC_SELECTION,
            lambda s: self.client.regenerate_topics(s.structure_summary, s.reference_text, new_keywords),
            ws.apply_regenerated_topics,
            REGENERATE_FAILED,
            pending={"regenerate_keywords": new_keywords},
        )
        return state

    # ---- STRUCTURE_SELECTION / SCRIPT_VIEW ----

    def _write_script(self, s: WorkflowState, structure_id: str) -> str:
        guide = structure_catalog.resolve_guide(structure_id, s.structure_summary)
        return self.client.generate_script(s.selected_topic, s.reference_text, structure_id, guide)

    def select_structure(self, structure_id: str) -> WorkflowState:
        if not structure_catalog.is_valid_structure(structure_id):
            _log(f"Ignoring unknown structure '{structure_id}'")
            return self.state

        state, _ = self._foreground(
            "select structure",
            Stage.STRUCTURE_SELECTION,
            lambda s: self._write_script(s, structure_id),
            lambda s, script: ws.apply_script(s, structure_id, script),
            SCRIPT_FAILED,
        )
        return state

    def regenerate_script(self) -> WorkflowState:
        """Write a new script for the same topic and structure, replacing the current one."""
        structure_id = self.state.selected_structure
        if not structure_id:
            return self.state

        state, _ = self._foreground(
            "regenerate script",
            Stage.SCRIPT_VIEW,
            lambda s: self._write_script(s, structure_id),
            lambda s, script: ws.apply_script(s, structure_id, script),
            SCRIPT_FAILED,
        )
        return state

    def copy_script(self) -> str:
        """Text for the clipboard: the finished script, verbatim."""
        script = self.state.generated_script
        if script:
            _log(f"Script copied ({len(script)} chars)")
        return script

    def create_storyboard(self) -> WorkflowState:
        with self._lock:
            if not self._accepts("create storyboard", Stage.SCRIPT_VIEW):
                return self._state
            if not self._state.generated_script:
                return self._state
            self._state = ws.start_storyboard(self._state)
            return self._state

    # ---- STORYBOARD_SETTINGS / STORYBOARD_VIEW ----

    def change_settings(self, **changes) -> WorkflowState:
        with self._lock:
            if not self._accepts("change settings", Stage.STORYBOARD_SETTINGS):
                return self._state
            try:
                self._state = ws.update_settings(self._state, **changes)
            except ValueError as e:
                _log(f"Rejected settings {changes}: {e}")
                self._state = ws.set_error(self._state, str(e))
            return self._state

    def generate_storyboard(self) -> WorkflowState:
        def call(s: WorkflowState):
            settings = s.storyboard_settings
            return self.client.analyze_for_storyboard(s.generated_script, settings.scene_count, settings.visual_style)

        state, ok = self._foreground(
            "generate storyboard",
            Stage.STORYBOARD_SETTINGS,
            call,
            ws.apply_storyboard,
            STORYBOARD_FAILED,
        )
        if ok:
            self._start_filler(state)
        return state

    def _start_filler(self, state: WorkflowState) -> None:
        settings = state.storyboard_settings
        self._filler_future = self._executor.submit(
            fill_scene_images,
            batch=state.storyboard_batch,
            scenes=state.storyboard_scenes,
            aspect_ratio=settings.aspect_ratio,
            engine=settings.engine,
            visual_style=settings.visual_style,
            generate_image=self._generate_scene_image,
            apply_update=self.apply_scene_update,
            is_active=self.is_batch_active,
            delay_seconds=self.delay_seconds,
            sleep=self._sleep,
        )

    def _generate_scene_image(self, prompt: str, aspect_ratio: str, engine: str, visual_style: str | None) -> str:
        return self.client.generate_scene_image(prompt, aspect_ratio, engine=engine, visual_style=visual_style)

    def is_batch_active(self, batch: int) -> bool:
        with self._lock:
            return ws.is_batch_active(self._state, batch)

    def apply_scene_update(self, batch: int, scene_number: int, **changes) -> bool:
        with self._lock:
            self._state, applied = ws.update_scene(self._state, batch, scene_number, **changes)
        if not applied:
            _log(f"Dropped update for scene {scene_number} of batch {batch}", verbose_only=True)
        return applied

    def images_pending(self) -> bool:
        return self._filler_future is not None and not self._filler_future.done()

    def wait_for_images(self, timeout: float | None = None) -> FillReport | None:
        """Block until the latest image fill-in finishes; None if none was started."""
        if self._filler_future is None:
            return None
        return self._filler_future.result(timeout=timeout)

    # ---- navigation ----

    def go_back(self) -> WorkflowState:
        with self._lock:
            if not self._accepts("back"):
                return self._state
            previous = self._state.stage
            self._state = ws.go_back(self._state)
            if previous != self._state.stage:
                _log(f"Back: {previous.value} -> {self._state.stage.value}")
            return self._state

    def reset(self) -> WorkflowState:
        with self._lock:
            if not self._accepts("reset"):
                return self._state
            self._state = ws.reset_state(self._state)
            _log("Reset to INPUT")
            return self._state

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
