"""
Tests for the plain rendering helpers in app.py, plus a smoke test that the
Gradio interface builds without launching.
"""

import unittest
import sys
from pathlib import Path
from unittest.mock import MagicMock

sys.path.insert(0, str(Path(__file__).parent.parent))

import app
import workflow_state as ws
from script_types import AnalysisResult, StoryboardScene, SuggestedTopic
from workflow_state import Stage


class TestRenderStepIndicator(unittest.TestCase):

    def test_marks_past_active_upcoming(self):
        out = app.render_step_indicator(Stage.SCRIPT_VIEW)
        self.assertEqual(out.count("tubescript-step past"), 3)
        self.assertEqual(out.count("tubescript-step active"), 1)
        self.assertEqual(out.count("tubescript-step upcoming"), 2)
        self.assertIn("4. Script", out)

    def test_first_stage(self):
        out = app.render_step_indicator(Stage.INPUT)
        self.assertNotIn("tubescript-step past", out)


class TestRenderTopics(unittest.TestCase):

    def test_numbered_topics(self):
        out = app.render_topics([SuggestedTopic("First", "r1"), SuggestedTopic("Second", "r2")])
        self.assertIn("**1. First**", out)
        self.assertIn("**2. Second**", out)
        self.assertIn("r2", out)

    def test_empty(self):
        self.assertEqual(app.render_topics(()), "_No topics yet._")


class TestRenderStoryboard(unittest.TestCase):

    def test_image_placeholder_and_pending(self):
        scenes = [
            StoryboardScene(1, "Opening <shot>", "p1", image_url="data:image/png;base64,AA"),
            StoryboardScene(2, "Middle", "p2", placeholder_url="https://placehold.co/1024x576/1a1a1a/white?text=Generation%20Failed"),
            StoryboardScene(3, "End", "p3", is_generating=True),
            StoryboardScene(4, "After", "p4"),
        ]
        out = app.render_storyboard_html(scenes, "16:9")
        self.assertIn('src="data:image/png;base64,AA"', out)
        self.assertIn("placehold.co/1024x576", out)
        self.assertIn("Generating...", out)
        self.assertIn("Waiting...", out)
        self.assertIn("Opening &lt;shot&gt;", out)
        self.assertLess(out.index("Scene 1"), out.index("Scene 4"))

    def test_empty(self):
        self.assertIn("No scenes", app.render_storyboard_html([], "16:9"))


class TestRenderStatus(unittest.TestCase):

    def _view_state(self, scenes):
        state = ws.apply_analysis(ws.initial_state(), AnalysisResult("s", (SuggestedTopic("t", "r"),)), "idea")
        state = ws.apply_script(ws.select_topic(state, state.topics[0]), "three-act", "script")
        return ws.apply_storyboard(ws.start_storyboard(state), scenes)

    def test_image_status_counts_resolved(self):
        state = self._view_state(tuple(StoryboardScene(i, "d", "p") for i in range(1, 4)))
        self.assertEqual(app.render_image_status(state), "Images: 0/3 ready...")
        state, _ = ws.update_scene(state, state.storyboard_batch, 1, image_url="data:x")
        state, _ = ws.update_scene(state, state.storyboard_batch, 2, placeholder_url="https://placehold.co/x")
        state, _ = ws.update_scene(state, state.storyboard_batch, 3, image_url="data:y")
        self.assertEqual(app.render_image_status(state), "All 3 images ready.")

    def test_no_scenes(self):
        self.assertEqual(app.render_image_status(ws.initial_state()), "")

    def test_render_error(self):
        self.assertEqual(app.render_error(ws.initial_state()), "")
        self.assertEqual(app.render_error(ws.set_error(ws.initial_state(), "boom")), "**Error:** boom")


class TestRenderKeyStatus(unittest.TestCase):

    def test_saved_env_and_missing(self):
        creds = MagicMock()
        creds.has_saved.return_value = True
        self.assertIn("is saved", app.render_key_status(creds, "gemini_api_key"))
        creds.has_saved.return_value = False
        creds.get.return_value = "from-env"
        self.assertIn("environment", app.render_key_status(creds, "gemini_api_key"))
        creds.get.return_value = ""
        self.assertIn("not set", app.render_key_status(creds, "gemini_api_key"))


class TestCreateInterface(unittest.TestCase):

    def test_builds_blocks(self):
        creds = MagicMock()
        creds.has_saved.return_value = False
        creds.get.return_value = ""
        orchestrator = MagicMock()
        orchestrator.state = ws.initial_state()
        demo = app.create_interface(orchestrator=orchestrator, credentials=creds)
        self.assertIsInstance(demo, app.gr.Blocks)


if __name__ == "__main__":
    unittest.main()
