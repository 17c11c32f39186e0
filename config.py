"""
Configuration settings for script and storyboard generation.
Provider/model selection and pacing come from .env; workflow defaults live on Config.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# LLM provider and model selection (from .env); used by llm_utils
# TEXT_PROVIDER: "google" or "openai"
# IMAGE_PROVIDER: "google", "huggingface" or "openai"
TEXT_PROVIDER = os.getenv("TEXT_PROVIDER", "google").lower()
TEXT_MODEL_GOOGLE = os.getenv("TEXT_MODEL_GOOGLE", "gemini-2.5-flash")
TEXT_MODEL_OPENAI = os.getenv("TEXT_MODEL_OPENAI", "gpt-4o-mini")
IMAGE_PROVIDER = os.getenv("IMAGE_PROVIDER", "google").lower()

# Storyboard engines map onto Google image models
IMAGE_MODEL_NANO = os.getenv("IMAGE_MODEL_NANO", "imagen-4.0-fast-generate-001")
IMAGE_MODEL_BANANA = os.getenv("IMAGE_MODEL_BANANA", "gemini-2.5-flash-image")
IMAGE_MODEL_PRO = os.getenv("IMAGE_MODEL_PRO", "imagen-4.0-generate-001")
IMAGE_MODEL_OPENAI = os.getenv("IMAGE_MODEL_OPENAI", "gpt-image-1")
IMAGE_MODEL_HUGGINGFACE = os.getenv("IMAGE_MODEL_HUGGINGFACE", "stabilityai/stable-diffusion-xl-base-1.0")

# Seconds to wait between scene image requests (free tiers are slow and rate limited)
IMAGE_REQUEST_DELAY_SECONDS = float(os.getenv("IMAGE_REQUEST_DELAY_SECONDS", "2.0"))

CREDENTIALS_FILE = Path(
    os.getenv("TUBESCRIPT_CREDENTIALS_FILE", str(Path.home() / ".tubescript" / "credentials.json"))
)

DEBUG = os.getenv("DEBUG", "").lower() in ("1", "true", "yes")


class Config:
    # Topic ideation
    topic_count = 5            # Topic variations requested per analysis / regeneration
    max_reference_files = 3    # Uploaded reference scripts accepted per analysis

    # Storyboard
    min_scene_count = 5
    max_scene_count = 100
    default_scene_count = 10

    # Generation
    text_temperature = 0.7
    image_request_delay = IMAGE_REQUEST_DELAY_SECONDS

    @property
    def scene_count_range(self) -> tuple[int, int]:
        """Inclusive (min, max) bounds for storyboard scene counts."""
        return self.min_scene_count, self.max_scene_count
