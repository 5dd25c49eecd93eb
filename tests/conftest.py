"""Shared fixtures: a scripted OpenAI client and vignette text builders."""

import json
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace

import httpx
import openai
import pytest

from vignette_pipeline.config import PipelineConfig


class _FakeCompletions:
    """
    Serves scripted chat completions.

    Strings become completions and exceptions are raised. Prebuilt response
    objects pass through unchanged.
    """

    def __init__(self, responses: list[str | Exception]) -> None:
        self._responses = list(responses)
        self.calls: list[dict] = []

    def create(self, **kwargs) -> SimpleNamespace:
        self.calls.append(kwargs)
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, SimpleNamespace):
            return response
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=response))],
            usage=SimpleNamespace(
                prompt_tokens=100, completion_tokens=50, total_tokens=150
            ),
        )


class _FakeOpenAI:
    """Test stand-in exposing client.chat.completions.create."""

    def __init__(self, responses: list[str | Exception]) -> None:
        self.completions = _FakeCompletions(responses)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def fake_openai() -> Callable[[list[str | Exception]], _FakeOpenAI]:
    return _FakeOpenAI


@pytest.fixture
def api_status_error() -> Callable[[int], openai.APIStatusError]:
    """Build a real openai.APIStatusError with the given HTTP status."""

    def _build(status_code: int = 500) -> openai.APIStatusError:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        response = httpx.Response(
            status_code,
            request=request,
            json={"error": {"message": "forced failure"}},
        )
        return openai.APIStatusError("forced failure", response=response, body=None)

    return _build


@pytest.fixture
def words() -> Callable[[int], str]:
    """Build a passage with exactly n word tokens."""

    def _build(n: int) -> str:
        vocabulary = ["solar", "panels", "lower", "bills", "for", "families"]
        tokens = [vocabulary[i % len(vocabulary)] for i in range(n)]
        sentences = [" ".join(tokens[i : i + 12]) for i in range(0, n, 12)]
        return ". ".join(sentence.capitalize() for sentence in sentences) + "."

    return _build


@pytest.fixture
def vignette_payload(words: Callable[[int], str]) -> Callable[..., str]:
    """Serialize a service response with one vignette per word count."""

    def _build(*counts: int, fenced: bool = False) -> str:
        policies = ["solar", "wind", "EVs"]
        items = [
            {
                "id": index + 1,
                "text": words(count),
                "words": 160,
                "policy": policies[index % len(policies)],
            }
            for index, count in enumerate(counts)
        ]
        body = json.dumps(items)
        return f"```json\n{body}\n```" if fenced else body

    return _build


@pytest.fixture
def config(tmp_path: Path) -> PipelineConfig:
    return PipelineConfig(
        output_dir=tmp_path / "output",
        prompt_file=tmp_path / "prompts" / "missing.txt",
    )


@pytest.fixture
def api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    return "test-key"
