"""End-to-end validation run and the combined generate + validate pipeline."""

import logging
from collections.abc import Mapping
from pathlib import Path

import typer
from openai import OpenAI
from pydantic import BaseModel

from vignette_pipeline.config import PipelineConfig, get_api_key
from vignette_pipeline.generator import generate_vignettes
from vignette_pipeline.rater import apply_ratings, print_rating_summary, rate_vignettes
from vignette_pipeline.report import build_report, print_verdict
from vignette_pipeline.schemas import ValidationReport, VignetteRecord
from vignette_pipeline.utils.persistence import (
    load_vignettes,
    write_records_csv,
    write_report,
)
from vignette_pipeline.validator import validate_basic

logger = logging.getLogger(__name__)


class ValidationResult(BaseModel):
    """Annotated records and the report of one validation run."""

    records: list[VignetteRecord]
    report: ValidationReport


def validate_records(
    records: list[VignetteRecord],
    config: PipelineConfig,
    use_llm: bool | None = None,
    client: OpenAI | None = None,
    lexicon: Mapping[str, int] | None = None,
) -> ValidationResult:
    """
    Run every enabled check on a batch and assemble the report.

    Args:
        records (list[VignetteRecord]): Batch to validate.
        config (PipelineConfig): Run configuration.
        use_llm (bool, optional): Force the LLM pass on or off. Defaults to
            running it only when an API key is configured.
        client (OpenAI, optional): Client for the LLM pass.
        lexicon (Mapping[str, int], optional): Sentiment lexicon override.

    Returns:
        ValidationResult: Annotated records and the report.
    """
    annotated = validate_basic(records, config, lexicon=lexicon)

    typer.echo("\n=== LLM SUBSTANTIVE VALIDATION ===")
    if use_llm is None:
        use_llm = get_api_key() is not None
        if not use_llm:
            logger.info("OPENAI_API_KEY not set. Skipping LLM validation.")

    if use_llm:
        outcomes = rate_vignettes(annotated, config, client=client)
        annotated = apply_ratings(annotated, outcomes, config)
        print_rating_summary(annotated)
    else:
        typer.echo("LLM validation skipped")

    report = build_report(annotated, config, llm_enabled=use_llm)
    print_verdict(report, annotated)
    return ValidationResult(records=annotated, report=report)


def validate_vignettes(
    config: PipelineConfig,
    input_path: Path | None = None,
    use_llm: bool | None = None,
    client: OpenAI | None = None,
    lexicon: Mapping[str, int] | None = None,
) -> ValidationResult:
    """
    Load the generator's output, validate it, and persist the results.

    Args:
        config (PipelineConfig): Run configuration.
        input_path (Path, optional): Vignette JSON. Defaults to the generator's
            output location for the configured frame.
        use_llm (bool, optional): Force the LLM pass on or off.
        client (OpenAI, optional): Client for the LLM pass.
        lexicon (Mapping[str, int], optional): Sentiment lexicon override.

    Returns:
        ValidationResult: Annotated records and the report.

    Raises:
        FileNotFoundError: If the vignette file does not exist.
    """
    records = load_vignettes(input_path or config.generated_json)
    typer.echo(f"Loaded {len(records)} vignettes for validation")

    result = validate_records(
        records, config, use_llm=use_llm, client=client, lexicon=lexicon
    )
    write_records_csv(result.records, config.validated_csv)
    write_report(result.report, config.report_json)
    return result


def run_pipeline(
    config: PipelineConfig,
    use_llm: bool | None = None,
    client: OpenAI | None = None,
    lexicon: Mapping[str, int] | None = None,
) -> ValidationResult:
    """Generate a batch, then validate the persisted output."""
    generate_vignettes(config, client=client)
    return validate_vignettes(
        config, use_llm=use_llm, client=client, lexicon=lexicon
    )
