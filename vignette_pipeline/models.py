from enum import StrEnum


class OpenAIModels(StrEnum):
    GPT_4O_MINI = "gpt-4o-mini"
    GPT_4O = "gpt-4o"
    GPT_41_MINI = "gpt-4.1-mini"
    GPT_41 = "gpt-4.1"


class Frame(StrEnum):
    """Rhetorical framing varied across vignette conditions."""

    ECONOMIC = "economic"
    MORAL = "moral"


# USD per one million tokens: (prompt, completion)
_MODEL_PRICING: dict[OpenAIModels, tuple[float, float]] = {
    OpenAIModels.GPT_4O_MINI: (0.15, 0.60),
    OpenAIModels.GPT_4O: (2.50, 10.00),
    OpenAIModels.GPT_41_MINI: (0.40, 1.60),
    OpenAIModels.GPT_41: (2.00, 8.00),
}


def get_pricing(model_name: str) -> tuple[float, float]:
    """
    Get per-million-token pricing for a model name.

    Unknown models fall back to gpt-4o-mini pricing so cost estimates stay
    available for custom deployments.

    Args:
        model_name: The model name to look up.

    Returns:
        tuple[float, float]: Prompt and completion price per million tokens.
    """
    model_lower = model_name.lower()
    for model, pricing in _MODEL_PRICING.items():
        if model.value == model_lower:
            return pricing
    return _MODEL_PRICING[OpenAIModels.GPT_4O_MINI]
