"""Tests for the deterministic word count, reading level, and sentiment checks."""

from collections.abc import Callable

import pytest

from vignette_pipeline import validator
from vignette_pipeline.config import PipelineConfig
from vignette_pipeline.schemas import Band, VignetteRecord
from vignette_pipeline.utils.text_metrics import Readability


def _record(record_id: int, text: str, policy: str = "solar") -> VignetteRecord:
    return VignetteRecord(id=record_id, text=text, policy=policy)


@pytest.mark.parametrize(
    ("n_words", "expected"),
    [(149, False), (150, True), (175, True), (176, False)],
)
def test_word_band_is_inclusive(
    words: Callable[[int], str], n_words: int, expected: bool
) -> None:
    [checked] = validator.check_word_counts(
        [_record(1, words(n_words))], Band(minimum=150, maximum=175)
    )

    assert checked.actual_word_count == n_words
    assert checked.words_ok is expected


@pytest.mark.parametrize(
    ("grade", "expected"),
    [(5.99, False), (6.0, True), (10.0, True), (10.01, False)],
)
def test_grade_band_is_inclusive(
    monkeypatch: pytest.MonkeyPatch, grade: float, expected: bool
) -> None:
    monkeypatch.setattr(
        validator,
        "readability",
        lambda _text: Readability(
            grade=grade, ease=60.0, sentences=1, words=10, syllables=14
        ),
    )

    [checked] = validator.check_reading_level(
        [_record(1, "placeholder")], Band(minimum=6, maximum=10)
    )

    assert checked.reading_grade == grade
    assert checked.reading_ok is expected


def test_reading_level_of_empty_text_fails() -> None:
    [checked] = validator.check_reading_level(
        [_record(1, "")], Band(minimum=6, maximum=10)
    )

    assert checked.reading_grade is None
    assert checked.reading_ok is False


def test_outlier_rule_uses_batch_including_candidate() -> None:
    """
    Including the extreme score inflates the SD enough to mask it.

    mean = 10, sample SD ~= 22.37, so the threshold is ~= 44.7 and the
    50 sits only 40 from the mean.
    """
    check = validator.sentiment_outlier_flags([0, 1, -1, 0, 50])

    assert check.mean == pytest.approx(10.0)
    assert check.sd == pytest.approx(500.5**0.5)
    assert check.passed == [True, True, True, True, True]


def test_outlier_rule_flags_extreme_score_in_larger_batch() -> None:
    check = validator.sentiment_outlier_flags([0] * 9 + [50])

    assert check.mean == pytest.approx(5.0)
    assert check.threshold == pytest.approx(2 * 15.8114, rel=1e-4)
    assert check.passed == [True] * 9 + [False]


@pytest.mark.parametrize("scores", [[7], [3, 3, 3], []])
def test_outlier_rule_passes_everything_without_variance(scores: list[int]) -> None:
    check = validator.sentiment_outlier_flags(scores)

    assert check.passed == [True] * len(scores)
    assert check.threshold is None


def test_check_sentiment_records_scores_and_flags() -> None:
    lexicon = {"great": 3, "terrible": -3}
    records = [_record(i, "Solar power.") for i in range(1, 10)]
    records.append(_record(10, " ".join(["terrible"] * 20)))

    checked, outliers = validator.check_sentiment(records, lexicon)

    assert [record.sentiment_score for record in checked] == [0] * 9 + [-60]
    assert [record.sentiment_ok for record in checked] == [True] * 9 + [False]
    assert checked[-1].sentiment_words == 20
    assert outliers.threshold is not None


def test_describe_ignores_missing_values() -> None:
    stats = validator.describe([150, None, 170])

    assert stats.n == 2
    assert stats.mean == pytest.approx(160.0)
    assert stats.min == 150
    assert stats.max == 170


def test_describe_single_value_has_no_sd() -> None:
    assert validator.describe([160]).sd is None


def test_validate_basic_is_idempotent_and_leaves_inputs_untouched(
    words: Callable[[int], str],
) -> None:
    config = PipelineConfig()
    lexicon = {"lower": 2, "bills": -1}
    records = [_record(1, words(160)), _record(2, words(140), "wind")]
    originals = [record.model_copy() for record in records]

    first = validator.validate_basic(records, config, lexicon=lexicon, verbose=False)
    second = validator.validate_basic(records, config, lexicon=lexicon, verbose=False)

    assert [r.model_dump() for r in first] == [r.model_dump() for r in second]
    assert records == originals
    assert [record.id for record in first] == [1, 2]
    assert [record.words_ok for record in first] == [True, False]
    assert first[1].basic_ok is False


def test_validate_basic_sets_combined_flag(
    monkeypatch: pytest.MonkeyPatch, words: Callable[[int], str]
) -> None:
    monkeypatch.setattr(
        validator,
        "readability",
        lambda _text: Readability(
            grade=8.0, ease=65.0, sentences=10, words=160, syllables=220
        ),
    )
    records = [_record(1, words(160)), _record(2, words(120))]

    checked = validator.validate_basic(
        records, PipelineConfig(), lexicon={}, verbose=False
    )

    assert [record.basic_ok for record in checked] == [True, False]
