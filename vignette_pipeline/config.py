"""Run configuration and credential lookup."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from vignette_pipeline.errors import ConfigurationError
from vignette_pipeline.models import Frame, OpenAIModels
from vignette_pipeline.schemas import Band

logger = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_OUTPUT_DIR = Path("output")
DEFAULT_PROMPTS_DIR = Path("prompts")


class RatingThresholds(BaseModel):
    """Minimum (or maximum) 1-7 ratings a vignette must reach."""

    emphasis_min: int = 5
    off_frame_max: int = 4
    policy_match_min: int = 5
    neutrality_min: int = 5
    partisan_cues_min: int = 5


class PipelineConfig(BaseModel):
    """Settings shared by the generator and validator."""

    frame: Frame = Frame.ECONOMIC
    model: str = OpenAIModels.GPT_4O_MINI.value
    generation_temperature: float = 0.7
    rating_temperature: float = 0.0
    max_tokens: int = 2000
    request_timeout: float = Field(
        120.0, description="Seconds before a single request is abandoned."
    )
    vignette_count: int = 3
    policies: list[str] = Field(default_factory=lambda: ["solar", "wind", "EVs"])

    word_band: Band = Band(minimum=150, maximum=175)
    grade_band: Band = Band(minimum=6, maximum=10)
    sentiment_sd_multiplier: float = 2.0
    rating_thresholds: RatingThresholds = Field(default_factory=RatingThresholds)

    output_dir: Path = DEFAULT_OUTPUT_DIR
    prompt_file: Path | None = None

    @property
    def generated_csv(self) -> Path:
        return self.output_dir / f"vignettes_{self.frame}_frame.csv"

    @property
    def generated_json(self) -> Path:
        return self.output_dir / f"vignettes_{self.frame}_frame.json"

    @property
    def validated_csv(self) -> Path:
        return self.output_dir / "vignettes_validated.csv"

    @property
    def report_json(self) -> Path:
        return self.output_dir / "validation_report.json"

    def resolve_prompt_file(self) -> Path:
        """Return the configured prompt file or the per-frame default location."""
        if self.prompt_file is not None:
            return self.prompt_file
        return DEFAULT_PROMPTS_DIR / f"{self.frame}_frame.txt"


def get_api_key() -> str | None:
    """
    Look up the service credential from the environment (or a .env file).

    Returns:
        str | None: The API key, or None if it is not configured.
    """
    load_dotenv()
    api_key = os.getenv(API_KEY_ENV, "").strip()
    return api_key or None


def require_api_key() -> str:
    """
    Look up the service credential, failing if it is absent.

    Returns:
        str: The API key.

    Raises:
        ConfigurationError: If the credential is not set.
    """
    api_key = get_api_key()
    if api_key is None:
        raise ConfigurationError(
            f"{API_KEY_ENV} not set. Export it or add it to a .env file."
        )
    return api_key
