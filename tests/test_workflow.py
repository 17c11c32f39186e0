"""
Tests for WorkflowOrchestrator: stage transitions, re-entrancy guard, file-count
boundary, and the background scene image fill-in.
The generation client is mocked; nothing here touches the network.
"""

import threading
import unittest
import sys
from pathlib import Path
from unittest.mock import patch, MagicMock

sys.path.insert(0, str(Path(__file__).parent.parent))

import structure_catalog
import workflow
from credentials import CredentialProvider, EnvDefaults
from file_inputs import ReferenceFile
from generation_client import GenerationClient
from generation_errors import GenerationFailed, MissingCredential, QuotaExceeded
from script_types import AnalysisResult, StoryboardScene, SuggestedTopic
from workflow import WorkflowOrchestrator
from workflow_state import Stage

TOPICS = tuple(SuggestedTopic(f"Topic {i}", f"Because {i}") for i in range(1, 6))
SUMMARY = "Hook with a question, three tips, recap, call to action."


def _scenes(n):
    return tuple(StoryboardScene(i, f"Scene {i} description", f"prompt {i}") for i in range(1, n + 1))


def _mock_client():
    client = MagicMock()
    client.analyze.return_value = AnalysisResult(SUMMARY, TOPICS)
    client.analyze_multiple.return_value = AnalysisResult(SUMMARY, TOPICS)
    client.regenerate_topics.return_value = tuple(SuggestedTopic(f"Fresh {i}", "new") for i in range(5))
    client.generate_script.return_value = "## Hook\nA brand new script."
    client.analyze_for_storyboard.side_effect = lambda script, count, style: _scenes(count)
    client.generate_scene_image.side_effect = lambda prompt, aspect_ratio, **kw: f"data:image/png;base64,{prompt}"
    return client


class _OrchestratorTest(unittest.TestCase):

    def setUp(self):
        self.client = _mock_client()
        self.sleep = MagicMock()
        self.orch = WorkflowOrchestrator(self.client, delay_seconds=2.0, sleep=self.sleep)

    def tearDown(self):
        self.orch.close()

    def _to_script(self, structure_id="save-the-cat"):
        self.orch.submit_input("video about cooking pasta", "")
        self.orch.select_topic(0)
        return self.orch.select_structure(structure_id)

    def _to_settings(self):
        self._to_script()
        return self.orch.create_storyboard()


class TestInputStage(_OrchestratorTest):

    def test_scenario_a_single_input(self):
        state = self.orch.submit_input("video about cooking pasta", "")
        self.client.analyze.assert_called_once_with("video about cooking pasta", "")
        self.assertEqual(state.stage, Stage.TOPIC_SELECTION)
        self.assertEqual(len(state.topics), 5)
        self.assertEqual(state.structure_summary, SUMMARY)
        self.assertFalse(state.is_loading)
        self.assertIsNone(state.error)

    def test_empty_input_sets_error_without_call(self):
        state = self.orch.submit_input("   ")
        self.client.analyze.assert_not_called()
        self.assertEqual(state.stage, Stage.INPUT)
        self.assertTrue(state.error)

    def test_analysis_failure_stays_in_input(self):
        self.client.analyze.side_effect = GenerationFailed("500")
        state = self.orch.submit_input("idea")
        self.assertEqual(state.stage, Stage.INPUT)
        self.assertEqual(state.error, workflow.ANALYSIS_FAILED)
        self.assertFalse(state.is_loading)

    def test_quota_failure_message(self):
        self.client.analyze.side_effect = QuotaExceeded("429")
        state = self.orch.submit_input("idea")
        self.assertEqual(state.error, QuotaExceeded.user_message)

    def test_error_cleared_on_next_request(self):
        self.client.analyze.side_effect = [GenerationFailed("x"), AnalysisResult(SUMMARY, TOPICS)]
        self.orch.submit_input("idea")
        state = self.orch.submit_input("idea")
        self.assertIsNone(state.error)
        self.assertEqual(state.stage, Stage.TOPIC_SELECTION)

    def test_four_files_rejected_without_backend_call(self):
        files = [ReferenceFile(f"{i}.txt", f"script {i}") for i in range(4)]
        state = self.orch.submit_files(files)
        self.client.analyze_multiple.assert_not_called()
        self.assertEqual(state.stage, Stage.INPUT)
        self.assertTrue(state.error)

    def test_three_files_accepted(self):
        files = [ReferenceFile(f"{i}.txt", f"script {i}") for i in range(3)]
        state = self.orch.submit_files(files, "pasta")
        self.client.analyze_multiple.assert_called_once_with(["script 0", "script 1", "script 2"], "pasta")
        self.assertEqual(state.stage, Stage.TOPIC_SELECTION)
        self.assertEqual(state.raw_input, "[3 files analyzed]")
        self.assertEqual(state.reference_text, "script 0")

    def test_unreadable_upload_leaves_input_intact(self):
        state = self.orch.submit_file_paths(["/nonexistent/script.txt"])
        self.client.analyze_multiple.assert_not_called()
        self.assertEqual(state.stage, Stage.INPUT)
        self.assertIn("script.txt", state.error)


class TestReentrancy(_OrchestratorTest):

    def test_second_submit_while_loading_is_ignored(self):
        started = threading.Event()
        release = threading.Event()

        def slow_analyze(text, keywords):
            started.set()
            release.wait(5)
            return AnalysisResult(SUMMARY, TOPICS)

        self.client.analyze.side_effect = slow_analyze
        worker = threading.Thread(target=self.orch.submit_input, args=("first", ""))
        worker.start()
        self.assertTrue(started.wait(5))

        during = self.orch.submit_input("second", "")
        self.assertTrue(during.is_loading)
        self.assertEqual(during.topics, ())
        self.assertEqual(self.orch.reset().stage, Stage.INPUT)
        self.assertTrue(self.orch.state.is_loading)

        release.set()
        worker.join(5)
        self.assertEqual(self.client.analyze.call_count, 1)
        self.assertEqual(self.orch.state.raw_input, "first")
        self.assertEqual(self.orch.state.stage, Stage.TOPIC_SELECTION)

    def test_script_not_mutated_by_ignored_request(self):
        self._to_script()
        started = threading.Event()
        release = threading.Event()

        def slow_script(*args):
            started.set()
            release.wait(5)
            return "second version"

        self.client.generate_script.side_effect = slow_script
        worker = threading.Thread(target=self.orch.regenerate_script)
        worker.start()
        self.assertTrue(started.wait(5))
        self.orch.regenerate_script()
        self.assertEqual(self.orch.state.generated_script, "## Hook\nA brand new script.")
        release.set()
        worker.join(5)
        self.assertEqual(self.client.generate_script.call_count, 2)
        self.assertEqual(self.orch.state.generated_script, "second version")


class TestTopicStage(_OrchestratorTest):

    def test_select_topic(self):
        self.orch.submit_input("idea")
        state = self.orch.select_topic(2)
        self.assertEqual(state.stage, Stage.STRUCTURE_SELECTION)
        self.assertEqual(state.selected_topic, TOPICS[2])

    def test_select_topic_out_of_range_is_noop(self):
        self.orch.submit_input("idea")
        state = self.orch.select_topic(9)
        self.assertEqual(state.stage, Stage.TOPIC_SELECTION)

    def test_event_in_wrong_stage_is_noop(self):
        state = self.orch.select_topic(0)
        self.assertEqual(state.stage, Stage.INPUT)
        state = self.orch.generate_storyboard()
        self.assertEqual(state.stage, Stage.INPUT)
        self.client.analyze_for_storyboard.assert_not_called()

    def test_regenerate_keeps_summary_byte_equal(self):
        before = self.orch.submit_input("idea").structure_summary
        state = self.orch.regenerate_topics("crypto, 2025")
        self.client.regenerate_topics.assert_called_once_with(SUMMARY, "idea", "crypto, 2025")
        self.assertEqual(state.structure_summary.encode("utf-8"), before.encode("utf-8"))
        self.assertEqual(state.topics[0].title, "Fresh 0")
        self.assertEqual(state.stage, Stage.TOPIC_SELECTION)
        self.assertEqual(state.regenerate_keywords, "")

    def test_regenerate_requires_keywords(self):
        self.orch.submit_input("idea")
        state = self.orch.regenerate_topics(" , ")
        self.client.regenerate_topics.assert_not_called()
        self.assertTrue(state.error)
        self.assertEqual(state.topics, TOPICS)

    def test_regenerate_failure_keeps_topics_and_keywords(self):
        self.orch.submit_input("idea")
        self.client.regenerate_topics.side_effect = GenerationFailed("x")
        state = self.orch.regenerate_topics("crypto")
        self.assertEqual(state.topics, TOPICS)
        self.assertEqual(state.regenerate_keywords, "crypto")
        self.assertEqual(state.error, workflow.REGENERATE_FAILED)

    def test_back_discards_topics(self):
        self.orch.submit_input("idea")
        state = self.orch.go_back()
        self.assertEqual(state.stage, Stage.INPUT)
        self.assertEqual(state.topics, ())
        self.assertEqual(state.structure_summary, "")


class TestScriptStage(_OrchestratorTest):

    def test_scenario_b_save_the_cat(self):
        state = self._to_script("save-the-cat")
        self.client.generate_script.assert_called_once_with(
            TOPICS[0], "video about cooking pasta", "save-the-cat", structure_catalog.guide_for("save-the-cat")
        )
        self.assertEqual(state.stage, Stage.SCRIPT_VIEW)
        self.assertTrue(state.generated_script)
        self.assertEqual(state.selected_structure, "save-the-cat")

    def test_original_structure_uses_summary(self):
        self._to_script(structure_catalog.ORIGINAL_STRUCTURE)
        guide = self.client.generate_script.call_args[0][3]
        self.assertIn(SUMMARY, guide)

    def test_unknown_structure_ignored(self):
        self.orch.submit_input("idea")
        self.orch.select_topic(0)
        state = self.orch.select_structure("five-act")
        self.client.generate_script.assert_not_called()
        self.assertEqual(state.stage, Stage.STRUCTURE_SELECTION)

    def test_script_failure_stays_in_structure_selection(self):
        self.client.generate_script.side_effect = GenerationFailed("x")
        state = self._to_script()
        self.assertEqual(state.stage, Stage.STRUCTURE_SELECTION)
        self.assertEqual(state.error, workflow.SCRIPT_FAILED)
        self.assertEqual(state.generated_script, "")

    def test_regenerate_script_overwrites(self):
        self._to_script()
        self.client.generate_script.return_value = "Another take"
        state = self.orch.regenerate_script()
        self.assertEqual(state.generated_script, "Another take")
        self.assertEqual(state.stage, Stage.SCRIPT_VIEW)

    def test_copy_script(self):
        self._to_script()
        self.assertEqual(self.orch.copy_script(), "## Hook\nA brand new script.")

    def test_back_from_script(self):
        self._to_script()
        state = self.orch.go_back()
        self.assertEqual(state.stage, Stage.STRUCTURE_SELECTION)
        self.assertEqual(state.generated_script, "")
        self.assertIsNone(state.selected_structure)

    def test_reset_from_script(self):
        self._to_script()
        state = self.orch.reset()
        self.assertEqual(state.stage, Stage.INPUT)
        self.assertEqual(state.raw_input, "")
        self.assertIsNone(state.selected_topic)


class TestStoryboard(_OrchestratorTest):

    def test_change_settings(self):
        self._to_settings()
        state = self.orch.change_settings(scene_count=30, aspect_ratio="9:16")
        self.assertEqual(state.storyboard_settings.scene_count, 30)
        self.assertEqual(state.storyboard_settings.aspect_ratio, "9:16")

    def test_invalid_settings_rejected(self):
        self._to_settings()
        state = self.orch.change_settings(scene_count=500)
        self.assertEqual(state.stage, Stage.STORYBOARD_SETTINGS)
        self.assertTrue(state.error)
        self.assertEqual(state.storyboard_settings.scene_count, 10)

    def test_scenario_c_thirty_scenes(self):
        self._to_settings()
        self.orch.change_settings(scene_count=30, aspect_ratio="16:9")
        state = self.orch.generate_storyboard()
        self.assertEqual(state.stage, Stage.STORYBOARD_VIEW)
        self.assertEqual(len(state.storyboard_scenes), 30)

        report = self.orch.wait_for_images(timeout=10)

        self.assertEqual(report.succeeded, 30)
        self.assertEqual(self.client.generate_scene_image.call_count, 30)
        self.assertEqual(self.sleep.call_count, 29)
        final = self.orch.state
        self.assertEqual([s.scene_number for s in final.storyboard_scenes], list(range(1, 31)))
        for scene in final.storyboard_scenes:
            self.assertTrue(scene.is_resolved)
            self.assertFalse(scene.is_generating)
        self.assertFalse(self.orch.images_pending())

    def test_partial_failure_isolated(self):
        def image(prompt, aspect_ratio, **kw):
            if prompt == "prompt 3":
                raise QuotaExceeded("429")
            return f"data:{prompt}"

        self.client.generate_scene_image.side_effect = image
        self._to_settings()
        self.orch.change_settings(scene_count=5)
        self.orch.generate_storyboard()
        report = self.orch.wait_for_images(timeout=10)

        self.assertEqual((report.succeeded, report.failed), (4, 1))
        scenes = self.orch.state.storyboard_scenes
        self.assertIsNone(scenes[2].image_url)
        self.assertFalse(scenes[2].is_generating)
        self.assertIn("Quota%20Exceeded", scenes[2].placeholder_url)
        for i in (0, 1, 3, 4):
            self.assertEqual(scenes[i].image_url, f"data:prompt {i + 1}")

    def test_storyboard_failure_stays_in_settings(self):
        self.client.analyze_for_storyboard.side_effect = GenerationFailed("x")
        self._to_settings()
        state = self.orch.generate_storyboard()
        self.assertEqual(state.stage, Stage.STORYBOARD_SETTINGS)
        self.assertEqual(state.error, workflow.STORYBOARD_FAILED)
        self.assertIsNone(self.orch.wait_for_images())

    def test_navigating_away_drops_stale_writes(self):
        started = threading.Event()
        release = threading.Event()

        def slow_image(prompt, aspect_ratio, **kw):
            started.set()
            release.wait(5)
            return "data:late"

        self.client.generate_scene_image.side_effect = slow_image
        self._to_settings()
        self.orch.change_settings(scene_count=5)
        self.orch.generate_storyboard()
        self.assertTrue(started.wait(5))

        state = self.orch.go_back()
        self.assertEqual(state.stage, Stage.SCRIPT_VIEW)
        release.set()
        report = self.orch.wait_for_images(timeout=10)

        self.assertTrue(report.cancelled)
        self.assertEqual(self.client.generate_scene_image.call_count, 1)
        self.assertEqual(self.orch.state.storyboard_scenes, ())
        self.assertEqual(self.orch.state.stage, Stage.SCRIPT_VIEW)

    def test_back_from_view(self):
        self._to_settings()
        self.orch.generate_storyboard()
        self.orch.wait_for_images(timeout=10)
        state = self.orch.go_back()
        self.assertEqual(state.stage, Stage.SCRIPT_VIEW)
        self.assertIsNone(state.storyboard_settings)
        self.assertEqual(state.storyboard_scenes, ())


class TestMissingCredential(unittest.TestCase):

    @patch("google.genai.Client")
    def test_scenario_d(self, mock_client_class):
        store = MagicMock()
        store.get.return_value = None
        creds = CredentialProvider(store=store, defaults=EnvDefaults({}))
        orch = WorkflowOrchestrator(GenerationClient(credentials=creds, text_provider="google"), delay_seconds=0)
        try:
            state = orch.submit_input("video about cooking pasta")
        finally:
            orch.close()
        mock_client_class.assert_not_called()
        self.assertEqual(state.stage, Stage.INPUT)
        self.assertEqual(state.error, MissingCredential.user_message)


if __name__ == "__main__":
    unittest.main()
