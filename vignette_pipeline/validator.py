"""Deterministic vignette checks: word count, reading level, sentiment outliers."""

import logging
from collections.abc import Mapping

import pandas as pd
import typer
from pydantic import BaseModel

from vignette_pipeline.config import PipelineConfig
from vignette_pipeline.core import count_words
from vignette_pipeline.schemas import Band, BatchStats, VignetteRecord
from vignette_pipeline.utils.persistence import records_to_frame
from vignette_pipeline.utils.text_metrics import (
    load_afinn_lexicon,
    readability,
    score_sentiment,
)

logger = logging.getLogger(__name__)


class OutlierCheck(BaseModel):
    """Per-record outcome of the batch-relative outlier rule."""

    passed: list[bool]
    mean: float | None
    sd: float | None
    threshold: float | None


def _optional(value: float) -> float | None:
    return None if pd.isna(value) else float(value)


def describe(values: list[float | None]) -> BatchStats:
    """
    Compute mean, sample standard deviation, min, and max, ignoring missing values.

    The standard deviation uses n - 1 and is None for fewer than two values.
    """
    series = pd.Series(values, dtype=float).dropna()
    if series.empty:
        return BatchStats(n=0)
    return BatchStats(
        n=len(series),
        mean=_optional(series.mean()),
        sd=_optional(series.std()),
        min=_optional(series.min()),
        max=_optional(series.max()),
    )


def sentiment_outlier_flags(scores: list[int], multiplier: float = 2.0) -> OutlierCheck:
    """
    Flag scores that sit at least `multiplier` standard deviations from the mean.

    Mean and standard deviation are computed over the full batch, including the
    score being judged. With no variance (a single record, or identical scores)
    no outlier can be defined and every record passes.

    Args:
        scores (list[int]): Sentiment score per record.
        multiplier (float): Number of standard deviations. Defaults to 2.

    Returns:
        OutlierCheck: Pass flag per record plus the statistics used.
    """
    stats = describe(scores)
    if stats.sd is None or stats.sd == 0:
        return OutlierCheck(
            passed=[True] * len(scores),
            mean=stats.mean,
            sd=stats.sd,
            threshold=None,
        )

    threshold = multiplier * stats.sd
    passed = [abs(score - stats.mean) < threshold for score in scores]
    return OutlierCheck(
        passed=passed, mean=stats.mean, sd=stats.sd, threshold=threshold
    )


def check_word_counts(
    records: list[VignetteRecord], band: Band
) -> list[VignetteRecord]:
    """Recompute word counts and flag records outside the band."""
    checked = []
    for record in records:
        actual = count_words(record.text)
        checked.append(
            record.model_copy(
                update={"actual_word_count": actual, "words_ok": band.contains(actual)}
            )
        )
    return checked


def check_reading_level(
    records: list[VignetteRecord], band: Band
) -> list[VignetteRecord]:
    """Score Flesch-Kincaid grade and Flesch ease; flag grades outside the band."""
    checked = []
    for record in records:
        try:
            scores = readability(record.text)
        except ValueError:
            logger.warning(f"Vignette {record.id} has no words to score")
            checked.append(
                record.model_copy(
                    update={
                        "reading_grade": None,
                        "reading_ease": None,
                        "reading_ok": False,
                    }
                )
            )
            continue
        checked.append(
            record.model_copy(
                update={
                    "reading_grade": scores.grade,
                    "reading_ease": scores.ease,
                    "reading_ok": band.contains(scores.grade),
                }
            )
        )
    return checked


def check_sentiment(
    records: list[VignetteRecord],
    lexicon: Mapping[str, int],
    multiplier: float = 2.0,
) -> tuple[list[VignetteRecord], OutlierCheck]:
    """Score lexicon sentiment per record and flag batch outliers."""
    sentiments = [score_sentiment(record.text, lexicon) for record in records]
    outliers = sentiment_outlier_flags(
        [sentiment.score for sentiment in sentiments], multiplier
    )
    checked = [
        record.model_copy(
            update={
                "sentiment_score": sentiment.score,
                "sentiment_words": sentiment.matched,
                "sentiment_mean": sentiment.mean,
                "sentiment_ok": passed,
            }
        )
        for record, sentiment, passed in zip(
            records, sentiments, outliers.passed, strict=True
        )
    ]
    return checked, outliers


def _print_check(
    title: str,
    records: list[VignetteRecord],
    stats: BatchStats,
    flag: str,
    label: str,
    detail_column: str,
) -> None:
    typer.echo(f"\n=== {title} ===")
    typer.echo(pd.DataFrame([stats.model_dump()]).to_string(index=False))

    passed = sum(1 for record in records if getattr(record, flag))
    typer.echo(f"\n{label}: {passed}/{len(records)}")
    failing = [record for record in records if not getattr(record, flag)]
    if failing:
        typer.echo(f"FAIL: {len(failing)} vignettes did not pass")
        columns = ["id", "policy", detail_column]
        typer.echo(records_to_frame(failing, columns).to_string(index=False))
    else:
        typer.echo("PASS: all vignettes")


def validate_basic(
    records: list[VignetteRecord],
    config: PipelineConfig,
    lexicon: Mapping[str, int] | None = None,
    verbose: bool = True,
) -> list[VignetteRecord]:
    """
    Run the word count, reading level, and sentiment checks on a batch.

    The input records are not modified; annotated copies are returned in the
    same order.

    Args:
        records (list[VignetteRecord]): Batch to validate.
        config (PipelineConfig): Bands and sentiment multiplier.
        lexicon (Mapping[str, int], optional): Sentiment lexicon. Defaults to AFINN.
        verbose (bool): Print per-check summaries. Defaults to True.

    Returns:
        list[VignetteRecord]: Records with metrics and pass flags set.
    """
    if lexicon is None:
        lexicon = load_afinn_lexicon()

    checked = check_word_counts(records, config.word_band)
    checked = check_reading_level(checked, config.grade_band)
    checked, _ = check_sentiment(checked, lexicon, config.sentiment_sd_multiplier)
    checked = [
        record.model_copy(
            update={
                "basic_ok": bool(
                    record.words_ok and record.reading_ok and record.sentiment_ok
                )
            }
        )
        for record in checked
    ]
    logger.info(
        f"Deterministic checks passed by "
        f"{sum(1 for record in checked if record.basic_ok)}/{len(checked)} vignettes"
    )

    if verbose:
        _print_check(
            "WORD COUNT VALIDATION",
            checked,
            describe([record.actual_word_count for record in checked]),
            "words_ok",
            f"Within target range ({config.word_band.label})",
            "actual_word_count",
        )
        _print_check(
            "READING LEVEL VALIDATION",
            checked,
            describe([record.reading_grade for record in checked]),
            "reading_ok",
            f"Within grade range ({config.grade_band.label})",
            "reading_grade",
        )
        _print_check(
            "SENTIMENT VALIDATION",
            checked,
            describe([record.sentiment_score for record in checked]),
            "sentiment_ok",
            "No sentiment outliers",
            "sentiment_score",
        )
    return checked
