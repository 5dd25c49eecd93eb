"""Vignette generation: one prompt, one request, one batch of records."""

import logging

import typer
from openai import OpenAI
from pydantic import ValidationError

from vignette_pipeline.clients import get_openai_client, invoke_openai
from vignette_pipeline.config import PipelineConfig, require_api_key
from vignette_pipeline.core import (
    count_words,
    decode_json_payload,
    load_prompt_template,
    render_prompt,
)
from vignette_pipeline.errors import ResponseParseError, ResponseSchemaError
from vignette_pipeline.prompts import registry
from vignette_pipeline.schemas import (
    GENERATOR_COLUMNS,
    ServiceVignette,
    VignetteRecord,
)
from vignette_pipeline.utils.persistence import (
    ensure_unique_ids,
    records_to_frame,
    write_records_csv,
    write_records_json,
)

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "id",
    "policy",
    "declared_word_count",
    "actual_word_count",
    "in_range",
]


def build_generation_prompt(config: PipelineConfig) -> str:
    """
    Build the generation prompt from the template file or the frame default.

    Args:
        config (PipelineConfig): Run configuration.

    Returns:
        str: Rendered prompt text.
    """
    template = load_prompt_template(
        config.resolve_prompt_file(), fallback=registry.resolve(str(config.frame))
    )
    return render_prompt(
        template,
        count=config.vignette_count,
        policies=", ".join(config.policies),
        frame=config.frame,
    )


def parse_vignettes(raw_text: str, config: PipelineConfig) -> list[VignetteRecord]:
    """
    Decode the service response into records with recomputed word counts.

    Args:
        raw_text (str): Raw completion text.
        config (PipelineConfig): Run configuration (word band).

    Returns:
        list[VignetteRecord]: One record per array element, in response order.

    Raises:
        ResponseParseError: If the response is not a JSON array of vignettes.
    """
    payload = decode_json_payload(raw_text, expected=list)
    if not payload:
        raise ResponseSchemaError("Response contained no vignettes", raw_text)

    try:
        items = [ServiceVignette.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise ResponseSchemaError(f"Malformed vignette object: {exc}", raw_text)

    records = []
    for item in items:
        actual = count_words(item.text)
        records.append(
            VignetteRecord(
                id=item.id,
                text=item.text,
                policy=item.policy,
                declared_word_count=item.words,
                actual_word_count=actual,
                word_diff=actual - item.words,
                in_range=config.word_band.contains(actual),
            )
        )

    try:
        ensure_unique_ids(records)
    except ValueError as exc:
        raise ResponseSchemaError(str(exc), raw_text)
    return records


def print_generation_summary(
    records: list[VignetteRecord], config: PipelineConfig
) -> None:
    """Print the batch size, per-record word counts, and a preview."""
    typer.echo(f"Generated {len(records)} vignettes\n")
    typer.echo("Word count summary:")
    typer.echo(records_to_frame(records, SUMMARY_COLUMNS).to_string(index=False))

    out_of_range = [record for record in records if not record.in_range]
    if out_of_range:
        typer.echo(
            f"\nWARNING: {len(out_of_range)} vignettes outside word range "
            f"({config.word_band.label})!"
        )
    else:
        typer.echo(
            f"\nAll vignettes within target word range ({config.word_band.label})"
        )

    typer.echo("\n--- Preview of first vignette ---")
    typer.echo(records[0].text)


def generate_vignettes(
    config: PipelineConfig,
    client: OpenAI | None = None,
    persist: bool = True,
) -> list[VignetteRecord]:
    """
    Generate a batch of vignettes with a single request to the service.

    Args:
        config (PipelineConfig): Run configuration.
        client (OpenAI, optional): Client to use. Defaults to the shared client.
        persist (bool): Write CSV and JSON outputs. Defaults to True.

    Returns:
        list[VignetteRecord]: Generated records.

    Raises:
        ConfigurationError: If no API key is configured.
        ServiceError: If the request fails.
        ResponseParseError: If the response cannot be decoded.
    """
    require_api_key()
    prompt = build_generation_prompt(config)
    logger.info(f"Generating vignettes with model: {config.model}")
    logger.debug(f"Prompt preview: {prompt[:500]}")

    completion = invoke_openai(
        prompt,
        model=config.model,
        temperature=config.generation_temperature,
        max_tokens=config.max_tokens,
        client=client or get_openai_client(timeout=config.request_timeout),
    )
    try:
        records = parse_vignettes(completion.content, config)
    except ResponseParseError as exc:
        logger.error(
            f"Failed to parse vignettes: {exc}. Raw response:\n{exc.raw_text}"
        )
        raise

    print_generation_summary(records, config)

    if persist:
        write_records_csv(records, config.generated_csv, GENERATOR_COLUMNS)
        write_records_json(records, config.generated_json, GENERATOR_COLUMNS)
    return records
