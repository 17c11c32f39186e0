"""
Scene Image Filler: resolves storyboard scene images one at a time, in scene order.

Runs after a storyboard batch is produced. Requests are strictly sequential with a
fixed pause between them. A failed scene gets a placeholder and the run continues.
The run stops early once its batch is no longer the active one; any write for a
stale batch is dropped by apply_update.
"""
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from generation_errors import MissingCredential, QuotaExceeded, user_message
from script_types import StoryboardScene
import storyboard_config


@dataclass
class FillReport:
    batch: int
    succeeded: int = 0
    failed: int = 0
    cancelled: bool = False

    def as_dict(self) -> dict:
        return {
            "batch": self.batch,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "cancelled": self.cancelled,
        }


def placeholder_label(exc: Exception) -> str:
    """Placeholder text for a failed scene image."""
    if isinstance(exc, MissingCredential):
        return storyboard_config.PLACEHOLDER_API_KEY_REQUIRED
    if isinstance(exc, QuotaExceeded):
        return storyboard_config.PLACEHOLDER_QUOTA_EXCEEDED
    return storyboard_config.PLACEHOLDER_GENERATION_FAILED


def fill_scene_images(
    batch: int,
    scenes: Sequence[StoryboardScene],
    aspect_ratio: str,
    engine: str,
    visual_style: str | None,
    generate_image: Callable[..., str],
    apply_update: Callable[..., bool],
    is_active: Callable[[int], bool],
    delay_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> FillReport:
    """
    Generate one image per scene, ascending by scene_number.

    Args:
        batch: Storyboard batch id the scenes belong to.
        scenes: Snapshot of the batch's scenes.
        generate_image: (prompt, aspect_ratio, engine, visual_style) -> image reference.
        apply_update: (batch, scene_number, **changes) -> bool; False when the write was dropped.
        is_active: batch -> bool; checked before each request.
        delay_seconds: Pause between requests (not after the last one).
        sleep: Injected for tests.
    """
    report = FillReport(batch=batch)
    ordered = sorted(scenes, key=lambda s: s.scene_number)
    print(f"[IMAGE] Batch {batch}: generating {len(ordered)} scene images ({aspect_ratio}, {engine})")

    for i, scene in enumerate(ordered):
        if i > 0 and delay_seconds > 0:
            sleep(delay_seconds)
        if not is_active(batch):
            report.cancelled = True
            print(f"[IMAGE] Batch {batch}: no longer active, stopping after {i} of {len(ordered)} scenes")
            break

        apply_update(batch, scene.scene_number, is_generating=True)
        try:
            url = generate_image(scene.visual_prompt, aspect_ratio, engine, visual_style)
        except Exception as e:
            report.failed += 1
            print(f"[IMAGE] Scene {scene.scene_number}: failed: {user_message(e)} ({e})")
            apply_update(
                batch,
                scene.scene_number,
                image_url=None,
                is_generating=False,
                placeholder_url=storyboard_config.placeholder_image_url(aspect_ratio, placeholder_label(e)),
            )
            continue

        report.succeeded += 1
        print(f"[IMAGE] Scene {scene.scene_number}: done")
        apply_update(batch, scene.scene_number, image_url=url, is_generating=False, placeholder_url=None)

    print(f"[IMAGE] Batch {batch}: {report.as_dict()}")
    return report
