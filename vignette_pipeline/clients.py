import logging

import openai
from openai import OpenAI
from pydantic import BaseModel

from vignette_pipeline.config import require_api_key
from vignette_pipeline.errors import ServiceError
from vignette_pipeline.models import OpenAIModels, get_pricing
from vignette_pipeline.schemas import UsageTotals

logger = logging.getLogger(__name__)


class OpenAIClientConfig(BaseModel):
    api_key: str | None = None
    timeout: float = 120.0

    def create_client(self) -> OpenAI:
        """
        Creates an OpenAI API client.

        Requests are never retried; a failed call surfaces immediately.

        Returns:
            openai.OpenAI: Configured OpenAI client instance.
        """
        return OpenAI(
            api_key=self.api_key or require_api_key(),
            timeout=self.timeout,
            max_retries=0,
        )


class Completion(BaseModel):
    """Completion text and token usage for one request."""

    content: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


_openai_client = None
usage_totals = UsageTotals()


def get_openai_client(timeout: float = 120.0) -> OpenAI:
    """Get or create OpenAI client instance, rebuilding it when the timeout changes."""
    global _openai_client
    if _openai_client is None or _openai_client.timeout != timeout:
        _openai_client = OpenAIClientConfig(timeout=timeout).create_client()
    return _openai_client


def record_usage(completion: Completion, totals: UsageTotals | None = None) -> float:
    """
    Add a completion's token usage to the running totals.

    Args:
        completion (Completion): Completed request.
        totals (UsageTotals, optional): Tracker to update. Defaults to the
            module-level tracker.

    Returns:
        float: Estimated cost of this request in USD.
    """
    totals = usage_totals if totals is None else totals
    prompt_price, completion_price = get_pricing(completion.model)
    cost = (
        completion.prompt_tokens * prompt_price
        + completion.completion_tokens * completion_price
    ) / 1_000_000

    totals.calls += 1
    totals.prompt_tokens += completion.prompt_tokens
    totals.completion_tokens += completion.completion_tokens
    totals.total_tokens += completion.total_tokens
    totals.cost_usd += cost

    logger.info(
        f"Cost: ${cost:.6f} | Total: ${totals.cost_usd:.4f} | "
        f"Tokens: {completion.total_tokens}"
    )
    return cost


def invoke_openai(
    prompt: str,
    model: str = OpenAIModels.GPT_4O_MINI,
    temperature: float = 0.7,
    max_tokens: int | None = None,
    client: OpenAI | None = None,
) -> Completion:
    """
    Invokes the OpenAI chat completions API with a single user message.

    Args:
        prompt (str): Text prompt to send to the model.
        model (str, optional): Model identifier. Defaults to gpt-4o-mini.
        temperature (float, optional): Sampling temperature. Defaults to 0.7.
        max_tokens (int, optional): Maximum completion size. Defaults to None.
        client (OpenAI, optional): Client to use. Defaults to the shared client.

    Returns:
        Completion: Completion text and token usage.

    Raises:
        ServiceError: If the request fails or returns a non-success status.
    """
    client = client or get_openai_client()
    request: dict = {
        "model": str(model),
        "messages": [{"role": "user", "content": prompt}],
        "temperature": temperature,
    }
    if max_tokens is not None:
        request["max_tokens"] = max_tokens

    try:
        result = client.chat.completions.create(**request)
    except openai.APIStatusError as exc:
        raise ServiceError(
            f"API error {exc.status_code}: {exc.message}", status_code=exc.status_code
        )
    except openai.APIError as exc:
        raise ServiceError(f"API request failed: {exc}")

    if not result.choices:
        raise ServiceError("API returned no completion choices")
    content = result.choices[0].message.content
    if content is None:
        raise ServiceError("API returned an empty completion")

    usage = result.usage
    completion = Completion(
        content=content,
        model=str(model),
        prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
        total_tokens=getattr(usage, "total_tokens", 0) or 0,
    )
    record_usage(completion)
    return completion


def check_connection(
    model: str = OpenAIModels.GPT_4O_MINI, client: OpenAI | None = None
) -> str:
    """
    Send a trivial prompt to confirm the credential and endpoint work.

    Returns:
        str: The model's reply.

    Raises:
        ServiceError: If the request fails.
    """
    completion = invoke_openai(
        "Say 'API connection successful!'", model=model, client=client
    )
    return completion.content
