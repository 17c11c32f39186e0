"""
Tests for scene_image_filler: ordering, pacing, failure isolation and cancellation.
"""

import unittest
import sys
from pathlib import Path
from unittest.mock import MagicMock

sys.path.insert(0, str(Path(__file__).parent.parent))

import storyboard_config
from generation_errors import GenerationFailed, MissingCredential, QuotaExceeded
from scene_image_filler import fill_scene_images, placeholder_label
from script_types import StoryboardScene


def _scenes(n):
    return [StoryboardScene(i, f"d{i}", f"prompt {i}") for i in range(1, n + 1)]


class _Recorder:
    """Collects apply_update calls as a scene_number -> fields map."""

    def __init__(self, active=True):
        self.updates = []
        self.fields = {}
        self.active = active

    def apply(self, batch, scene_number, **changes):
        self.updates.append((batch, scene_number, changes))
        self.fields.setdefault(scene_number, {}).update(changes)
        return True

    def is_active(self, batch):
        return self.active


class TestFillSceneImages(unittest.TestCase):

    def _run(self, scenes, generate, recorder, sleep, delay=2.0):
        return fill_scene_images(
            batch=1,
            scenes=scenes,
            aspect_ratio="16:9",
            engine="nano",
            visual_style="cinematic",
            generate_image=generate,
            apply_update=recorder.apply,
            is_active=recorder.is_active,
            delay_seconds=delay,
            sleep=sleep,
        )

    def test_thirty_scenes_sequential_with_delay(self):
        generate = MagicMock(side_effect=lambda prompt, *a: f"data:{prompt}")
        sleep = MagicMock()
        recorder = _Recorder()

        report = self._run(_scenes(30), generate, recorder, sleep)

        self.assertEqual(generate.call_count, 30)
        self.assertEqual([c.args[0] for c in generate.call_args_list], [f"prompt {i}" for i in range(1, 31)])
        self.assertEqual(sleep.call_count, 29)
        sleep.assert_called_with(2.0)
        self.assertEqual(report.as_dict(), {"batch": 1, "succeeded": 30, "failed": 0, "cancelled": False})
        for n in range(1, 31):
            self.assertEqual(recorder.fields[n]["image_url"], f"data:prompt {n}")
            self.assertFalse(recorder.fields[n]["is_generating"])

    def test_marks_generating_before_request(self):
        recorder = _Recorder()

        def generate(prompt, *args):
            self.assertTrue(recorder.fields[1]["is_generating"])
            return "data:x"

        self._run(_scenes(1), generate, recorder, MagicMock())
        self.assertEqual(recorder.updates[0], (1, 1, {"is_generating": True}))

    def test_unordered_input_processed_ascending(self):
        generate = MagicMock(return_value="data:x")
        scenes = list(reversed(_scenes(3)))
        self._run(scenes, generate, _Recorder(), MagicMock())
        self.assertEqual([c.args[0] for c in generate.call_args_list], ["prompt 1", "prompt 2", "prompt 3"])

    def test_failed_scene_is_isolated(self):
        def generate(prompt, *args):
            if prompt == "prompt 2":
                raise GenerationFailed("model error")
            return f"data:{prompt}"

        recorder = _Recorder()
        report = self._run(_scenes(4), generate, recorder, MagicMock())

        self.assertEqual(report.succeeded, 3)
        self.assertEqual(report.failed, 1)
        self.assertIsNone(recorder.fields[2]["image_url"])
        self.assertFalse(recorder.fields[2]["is_generating"])
        self.assertEqual(
            recorder.fields[2]["placeholder_url"],
            storyboard_config.placeholder_image_url("16:9", storyboard_config.PLACEHOLDER_GENERATION_FAILED),
        )
        for n in (1, 3, 4):
            self.assertEqual(recorder.fields[n]["image_url"], f"data:prompt {n}")
            self.assertFalse(recorder.fields[n]["is_generating"])

    def test_unexpected_exception_does_not_stop_run(self):
        generate = MagicMock(side_effect=[RuntimeError("boom"), "data:2"])
        recorder = _Recorder()
        report = self._run(_scenes(2), generate, recorder, MagicMock())
        self.assertEqual((report.succeeded, report.failed), (1, 1))

    def test_cancelled_when_batch_inactive(self):
        recorder = _Recorder()

        def generate(prompt, *args):
            if prompt == "prompt 2":
                recorder.active = False
            return "data:x"

        report = self._run(_scenes(5), generate, recorder, MagicMock())
        self.assertTrue(report.cancelled)
        self.assertEqual(report.succeeded, 2)
        self.assertNotIn(3, recorder.fields)

    def test_zero_delay_does_not_sleep(self):
        sleep = MagicMock()
        self._run(_scenes(3), MagicMock(return_value="data:x"), _Recorder(), sleep, delay=0)
        sleep.assert_not_called()


class TestPlaceholderLabel(unittest.TestCase):

    def test_labels(self):
        self.assertEqual(placeholder_label(MissingCredential()), storyboard_config.PLACEHOLDER_API_KEY_REQUIRED)
        self.assertEqual(placeholder_label(QuotaExceeded()), storyboard_config.PLACEHOLDER_QUOTA_EXCEEDED)
        self.assertEqual(placeholder_label(ValueError()), storyboard_config.PLACEHOLDER_GENERATION_FAILED)


if __name__ == "__main__":
    unittest.main()
