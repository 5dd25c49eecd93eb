"""Validation report assembly and the final verdict."""

from datetime import datetime

import typer

from vignette_pipeline.config import PipelineConfig
from vignette_pipeline.rater import describe_thresholds, flagged_concerns
from vignette_pipeline.schemas import (
    RATING_FIELDS,
    BandSummary,
    LLMSummary,
    SentimentSummary,
    ValidationReport,
    VignetteRecord,
)
from vignette_pipeline.utils.persistence import records_to_frame
from vignette_pipeline.validator import describe, sentiment_outlier_flags

BASIC_GATES = ("words_ok", "reading_ok", "sentiment_ok")

DETAIL_COLUMNS = [
    "id",
    "policy",
    "actual_word_count",
    "reading_grade",
    "sentiment_score",
    "words_ok",
    "reading_ok",
    "sentiment_ok",
]

LLM_DETAIL_COLUMNS = [
    "economic_emphasis",
    "moral_emphasis",
    "policy_match",
    "llm_ok",
]


def _failing_ids(records: list[VignetteRecord], flag: str) -> list[int]:
    return [record.id for record in records if not getattr(record, flag)]


def failed_gates(record: VignetteRecord, llm_enabled: bool) -> list[str]:
    """Names of the enabled gates a record did not clear."""
    gates = list(BASIC_GATES) + (["llm_ok"] if llm_enabled else [])
    return [gate for gate in gates if not getattr(record, gate)]


def build_report(
    records: list[VignetteRecord],
    config: PipelineConfig,
    llm_enabled: bool,
    timestamp: datetime | None = None,
) -> ValidationReport:
    """
    Summarize a fully annotated batch into a validation report.

    all_pass is True only when every record clears every enabled gate. When
    the LLM pass is disabled its gate is not counted.

    Args:
        records (list[VignetteRecord]): Annotated records.
        config (PipelineConfig): Bands and thresholds used.
        llm_enabled (bool): Whether the LLM rating pass ran.
        timestamp (datetime, optional): Report time. Defaults to now.

    Returns:
        ValidationReport: Immutable report.
    """
    n = len(records)
    word_stats = describe([record.actual_word_count for record in records])
    grade_stats = describe([record.reading_grade for record in records])
    sentiment_scores = [record.sentiment_score or 0 for record in records]
    outliers = sentiment_outlier_flags(
        sentiment_scores, config.sentiment_sd_multiplier
    )

    word_count = BandSummary(
        target=config.word_band.label,
        target_min=config.word_band.minimum,
        target_max=config.word_band.maximum,
        mean=word_stats.mean,
        sd=word_stats.sd,
        min=word_stats.min,
        max=word_stats.max,
        passed=n - len(_failing_ids(records, "words_ok")),
        failing_ids=_failing_ids(records, "words_ok"),
    )
    reading_level = BandSummary(
        target=config.grade_band.label,
        target_min=config.grade_band.minimum,
        target_max=config.grade_band.maximum,
        mean=grade_stats.mean,
        sd=grade_stats.sd,
        min=grade_stats.min,
        max=grade_stats.max,
        passed=n - len(_failing_ids(records, "reading_ok")),
        failing_ids=_failing_ids(records, "reading_ok"),
    )
    sentiment = SentimentSummary(
        sd_multiplier=config.sentiment_sd_multiplier,
        threshold=outliers.threshold,
        mean=outliers.mean,
        sd=outliers.sd,
        range=(
            float(max(sentiment_scores) - min(sentiment_scores))
            if sentiment_scores
            else None
        ),
        passed=n - len(_failing_ids(records, "sentiment_ok")),
        failing_ids=_failing_ids(records, "sentiment_ok"),
    )

    if llm_enabled:
        missing_ids = [r.id for r in records if r.llm_error is not None]
        rated = [record for record in records if record.llm_error is None]
        llm_validation = LLMSummary(
            enabled=True,
            thresholds=describe_thresholds(config.frame, config.rating_thresholds),
            passed=sum(1 for record in records if record.llm_ok),
            rated=n - len(missing_ids),
            missing_ids=missing_ids,
            failing_ids=[
                r.id for r in records if r.llm_error is None and not r.llm_ok
            ],
            flagged=flagged_concerns(records),
            stats={
                field: describe([getattr(record, field) for record in rated])
                for field in RATING_FIELDS
            },
        )
    else:
        llm_validation = LLMSummary(enabled=False)

    failures = {}
    for record in records:
        gates = failed_gates(record, llm_enabled)
        if gates:
            failures[record.id] = gates

    return ValidationReport(
        timestamp=timestamp or datetime.now(),
        n_vignettes=n,
        frame=str(config.frame),
        word_count=word_count,
        reading_level=reading_level,
        sentiment=sentiment,
        llm_validation=llm_validation,
        failures=failures,
        all_pass=not failures,
    )


def print_verdict(report: ValidationReport, records: list[VignetteRecord]) -> None:
    """Print the summary counts, verdict banner, and per-vignette details."""
    llm_enabled = report.llm_validation.enabled
    typer.echo("\n=== VALIDATION SUMMARY ===")
    typer.echo(f"words_pass:     {report.word_count.passed}/{report.n_vignettes}")
    typer.echo(f"reading_pass:   {report.reading_level.passed}/{report.n_vignettes}")
    typer.echo(f"sentiment_pass: {report.sentiment.passed}/{report.n_vignettes}")
    if llm_enabled:
        typer.echo(
            f"llm_pass:       {report.llm_validation.passed}/{report.n_vignettes}"
        )
    else:
        typer.echo("llm_pass:       skipped")

    if report.all_pass:
        typer.echo("\n*** ALL VALIDATION CHECKS PASSED ***")
        typer.echo("Ready for pilot testing with manipulation checks")
    else:
        typer.echo("\n!!! SOME CHECKS FAILED - Review and iterate !!!")
        typer.echo("Problem vignettes:")
        for record_id, gates in report.failures.items():
            typer.echo(f"  vignette {record_id}: failed {', '.join(gates)}")

    columns = DETAIL_COLUMNS + (LLM_DETAIL_COLUMNS if llm_enabled else [])
    typer.echo("\n=== PER-VIGNETTE DETAILS ===")
    typer.echo(records_to_frame(records, columns).to_string(index=False))
