"""End-to-end tests: generate, validate, and report with a scripted service."""

import json
from collections.abc import Callable
from datetime import datetime

import pytest

from vignette_pipeline.config import PipelineConfig
from vignette_pipeline.pipeline import (
    run_pipeline,
    validate_records,
    validate_vignettes,
)
from vignette_pipeline.report import build_report, failed_gates
from vignette_pipeline.schemas import VignetteRecord

_RATING = json.dumps(
    {
        "economic_emphasis": 6,
        "moral_emphasis": 2,
        "policy_match": 7,
        "neutrality": 6,
        "partisan_cues": 7,
        "flags": "none",
    }
)


def _passing(record_id: int) -> VignetteRecord:
    return VignetteRecord(
        id=record_id,
        text="t",
        policy="solar",
        actual_word_count=160,
        reading_grade=8.0,
        sentiment_score=0,
        words_ok=True,
        reading_ok=True,
        sentiment_ok=True,
        basic_ok=True,
    )


def test_word_count_failures_flow_into_report(
    api_key: str,
    config: PipelineConfig,
    fake_openai: Callable,
    vignette_payload: Callable[..., str],
) -> None:
    """160, 200 and 140 words: only the first is inside 150-175."""
    client = fake_openai([vignette_payload(160, 200, 140, fenced=True)])

    result = run_pipeline(config, use_llm=False, client=client, lexicon={})

    assert result.report.n_vignettes == 3
    assert result.report.word_count.passed == 1
    assert result.report.word_count.failing_ids == [2, 3]
    assert result.report.all_pass is False
    assert "words_ok" in result.report.failures[2]
    assert "words_ok" in result.report.failures[3]
    assert result.report.llm_validation.enabled is False
    assert config.validated_csv.exists()
    saved = json.loads(config.report_json.read_text())
    assert saved["word_count"]["failing_ids"] == [2, 3]
    assert set(saved["failures"]) >= {"2", "3"}


def test_validation_reads_persisted_generator_output(
    api_key: str,
    config: PipelineConfig,
    fake_openai: Callable,
    vignette_payload: Callable[..., str],
) -> None:
    client = fake_openai([vignette_payload(160, 165)])
    run_pipeline(config, use_llm=False, client=client, lexicon={})

    again = validate_vignettes(config, use_llm=False, lexicon={})

    assert [record.id for record in again.records] == [1, 2]
    assert all(record.words_ok for record in again.records)


def test_validate_vignettes_without_generator_output(config: PipelineConfig) -> None:
    with pytest.raises(FileNotFoundError):
        validate_vignettes(config, use_llm=False, lexicon={})


def test_failed_rating_request_is_reported_as_missing(
    config: PipelineConfig,
    fake_openai: Callable,
    api_status_error: Callable,
    words: Callable[[int], str],
) -> None:
    records = [
        VignetteRecord(id=i, text=words(160), policy=policy)
        for i, policy in enumerate(["solar", "wind", "EVs"], start=1)
    ]
    client = fake_openai([_RATING, api_status_error(500), _RATING])

    result = validate_records(
        records, config, use_llm=True, client=client, lexicon={}
    )

    llm = result.report.llm_validation
    assert llm.enabled is True
    assert llm.rated == 2
    assert llm.passed == 2
    assert llm.missing_ids == [2]
    assert llm.failing_ids == []
    assert result.records[1].economic_emphasis is None
    assert result.records[1].llm_error.startswith("service error")
    assert "llm_ok" in result.report.failures[2]
    assert result.report.all_pass is False


def test_llm_pass_skipped_without_api_key(
    monkeypatch: pytest.MonkeyPatch,
    config: PipelineConfig,
    words: Callable[[int], str],
) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    records = [VignetteRecord(id=1, text=words(160), policy="solar")]

    result = validate_records(records, config, lexicon={})

    assert result.report.llm_validation.enabled is False
    assert result.records[0].llm_ok is None


def test_all_pass_requires_every_enabled_gate() -> None:
    config = PipelineConfig()
    records = [_passing(1), _passing(2)]

    assert build_report(records, config, llm_enabled=False).all_pass is True

    records[1] = records[1].model_copy(update={"llm_ok": False})
    assert build_report(records, config, llm_enabled=False).all_pass is True
    assert build_report(records, config, llm_enabled=True).all_pass is False

    records[0] = records[0].model_copy(update={"reading_ok": False})
    report = build_report(records, config, llm_enabled=False)
    assert report.all_pass is False
    assert report.failures == {1: ["reading_ok"]}
    assert report.reading_level.failing_ids == [1]


def test_failed_gates_lists_each_failure() -> None:
    record = _passing(1).model_copy(update={"words_ok": False, "llm_ok": None})

    assert failed_gates(record, llm_enabled=False) == ["words_ok"]
    assert failed_gates(record, llm_enabled=True) == ["words_ok", "llm_ok"]


def test_report_is_deterministic_for_fixed_timestamp() -> None:
    records = [_passing(1), _passing(2)]
    timestamp = datetime(2026, 1, 1)

    first = build_report(records, PipelineConfig(), False, timestamp=timestamp)
    second = build_report(records, PipelineConfig(), False, timestamp=timestamp)

    assert first == second
    assert first.word_count.target == "150-175"
    assert first.sentiment.threshold is None


def test_report_records_rating_statistics_over_rated_records(
    api_key: str,
    config: PipelineConfig,
    fake_openai: Callable,
    api_status_error: Callable,
    vignette_payload: Callable[..., str],
) -> None:
    low_economic = json.loads(_RATING) | {"economic_emphasis": 4}
    client = fake_openai(
        [
            vignette_payload(160, 160, 160),
            _RATING,
            api_status_error(500),
            json.dumps(low_economic),
        ]
    )

    run_pipeline(config, use_llm=True, client=client, lexicon={})

    saved = json.loads(config.report_json.read_text())
    stats = saved["llm_validation"]["stats"]
    assert set(stats) == {
        "economic_emphasis",
        "moral_emphasis",
        "policy_match",
        "neutrality",
        "partisan_cues",
    }
    assert stats["economic_emphasis"]["n"] == 2
    assert stats["economic_emphasis"]["mean"] == pytest.approx(5.0)
    assert stats["economic_emphasis"]["sd"] == pytest.approx(2**0.5)
    assert stats["policy_match"]["mean"] == pytest.approx(7.0)
    assert stats["policy_match"]["sd"] == pytest.approx(0.0)
    assert saved["llm_validation"]["missing_ids"] == [2]


def test_report_omits_rating_statistics_when_llm_disabled() -> None:
    report = build_report([_passing(1)], PipelineConfig(), llm_enabled=False)

    assert report.llm_validation.stats == {}
