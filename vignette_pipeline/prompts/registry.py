from vignette_pipeline.prompts.generation_prompt import (
    ECONOMIC_FRAME_PROMPT,
    MORAL_FRAME_PROMPT,
)
from vignette_pipeline.prompts.rating_prompt import RATING_PROMPT

_PROMPTS: dict[str, str] = {
    "economic": ECONOMIC_FRAME_PROMPT,
    "moral": MORAL_FRAME_PROMPT,
    "rating": RATING_PROMPT,
}


def resolve(name: str) -> str:
    """Resolve prompt template by name."""
    return _PROMPTS[name]


def list_all() -> list[str]:
    """List all prompt names."""
    return sorted(_PROMPTS.keys())
