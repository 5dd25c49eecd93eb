"""Optional LLM pass that rates each vignette's framing fidelity."""

import logging

import pandas as pd
import typer
from openai import OpenAI
from pydantic import ValidationError

from vignette_pipeline.clients import get_openai_client, invoke_openai
from vignette_pipeline.config import PipelineConfig, RatingThresholds
from vignette_pipeline.core import decode_json_payload, render_prompt
from vignette_pipeline.errors import ResponseParseError, ServiceError
from vignette_pipeline.models import Frame
from vignette_pipeline.prompts.rating_prompt import FRAME_DESCRIPTIONS, RATING_PROMPT
from vignette_pipeline.schemas import (
    RATING_FIELDS,
    RatingOutcome,
    VignetteRating,
    VignetteRecord,
)
from vignette_pipeline.utils.persistence import records_to_frame

logger = logging.getLogger(__name__)


def build_rating_prompt(record: VignetteRecord, frame: Frame) -> str:
    """Render the rating prompt for one vignette."""
    return render_prompt(
        RATING_PROMPT,
        text=record.text,
        frame=frame,
        frame_description=FRAME_DESCRIPTIONS.get(str(frame), str(frame)),
        policy=record.policy,
    )


def parse_rating(raw_text: str) -> VignetteRating:
    """
    Decode a rating response into a VignetteRating.

    Raises:
        ResponseParseError: If the response is not the expected JSON object.
    """
    payload = decode_json_payload(raw_text, expected=dict)
    try:
        return VignetteRating.model_validate(payload)
    except ValidationError as exc:
        raise ResponseParseError(f"Unexpected rating shape: {exc}", raw_text)


def rate_vignette(
    record: VignetteRecord,
    frame: Frame,
    client: OpenAI,
    model: str,
    temperature: float = 0.0,
) -> RatingOutcome:
    """
    Rate one vignette, returning the failure reason instead of raising.

    Args:
        record (VignetteRecord): Vignette to rate.
        frame (Frame): Intended frame.
        client (OpenAI): Client to use.
        model (str): Model identifier.
        temperature (float): Sampling temperature. Defaults to 0.

    Returns:
        RatingOutcome: The rating, or the error that prevented it.
    """
    try:
        completion = invoke_openai(
            build_rating_prompt(record, frame),
            model=model,
            temperature=temperature,
            client=client,
        )
        rating = parse_rating(completion.content)
    except ServiceError as exc:
        logger.warning(f"Rating request failed for vignette {record.id}: {exc}")
        return RatingOutcome(id=record.id, error=f"service error: {exc}")
    except ResponseParseError as exc:
        logger.warning(
            f"Could not parse rating for vignette {record.id}: {exc}. "
            f"Raw response: {exc.raw_text!r}"
        )
        return RatingOutcome(id=record.id, error=f"parse error: {exc}")
    return RatingOutcome(id=record.id, rating=rating)


def rate_vignettes(
    records: list[VignetteRecord],
    config: PipelineConfig,
    client: OpenAI | None = None,
) -> list[RatingOutcome]:
    """
    Rate every vignette sequentially, one request per record.

    Returns:
        list[RatingOutcome]: One outcome per record, in record order.
    """
    client = client or get_openai_client(timeout=config.request_timeout)
    logger.info(f"Validating {len(records)} vignettes with LLM")
    outcomes = []
    for record in records:
        outcomes.append(
            rate_vignette(
                record,
                frame=config.frame,
                client=client,
                model=config.model,
                temperature=config.rating_temperature,
            )
        )
    failed = sum(1 for outcome in outcomes if not outcome.ok)
    if failed:
        logger.warning(f"{failed}/{len(outcomes)} ratings are missing")
    return outcomes


def rating_passes(
    rating: VignetteRating, frame: Frame, thresholds: RatingThresholds
) -> bool:
    """
    Decide whether a rating shows the intended frame, topic, and tone.

    The intended frame's emphasis must be high and the other frame's low.
    """
    if frame == Frame.MORAL:
        on_frame, off_frame = rating.moral_emphasis, rating.economic_emphasis
    else:
        on_frame, off_frame = rating.economic_emphasis, rating.moral_emphasis
    return (
        on_frame >= thresholds.emphasis_min
        and off_frame <= thresholds.off_frame_max
        and rating.policy_match >= thresholds.policy_match_min
        and rating.neutrality >= thresholds.neutrality_min
        and rating.partisan_cues >= thresholds.partisan_cues_min
    )


def describe_thresholds(frame: Frame, thresholds: RatingThresholds) -> dict[str, str]:
    """Human-readable acceptance rule for the report."""
    on_frame, off_frame = (
        ("moral_emphasis", "economic_emphasis")
        if frame == Frame.MORAL
        else ("economic_emphasis", "moral_emphasis")
    )
    return {
        on_frame: f">= {thresholds.emphasis_min}",
        off_frame: f"<= {thresholds.off_frame_max}",
        "policy_match": f">= {thresholds.policy_match_min}",
        "neutrality": f">= {thresholds.neutrality_min}",
        "partisan_cues": f">= {thresholds.partisan_cues_min}",
    }


def apply_ratings(
    records: list[VignetteRecord],
    outcomes: list[RatingOutcome],
    config: PipelineConfig,
) -> list[VignetteRecord]:
    """
    Join rating outcomes onto records by id.

    Records without a rating get llm_ok False and the reason in llm_error.

    Raises:
        ValueError: If outcomes and records do not match one-to-one by id.
    """
    by_id = {outcome.id: outcome for outcome in outcomes}
    if len(by_id) != len(outcomes) or set(by_id) != {record.id for record in records}:
        raise ValueError("Rating outcomes do not match vignette ids one-to-one")

    rated = []
    for record in records:
        outcome = by_id[record.id]
        if outcome.rating is None:
            update = {field: None for field in RATING_FIELDS}
            update.update(llm_flags=None, llm_error=outcome.error, llm_ok=False)
        else:
            update = outcome.rating.model_dump(include=set(RATING_FIELDS))
            update.update(
                llm_flags=outcome.rating.flags,
                llm_error=None,
                llm_ok=rating_passes(
                    outcome.rating, config.frame, config.rating_thresholds
                ),
            )
        rated.append(record.model_copy(update=update))
    return rated


def flagged_concerns(records: list[VignetteRecord]) -> dict[int, str]:
    """Collect non-empty flags other than 'none' for human review."""
    concerns = {}
    for record in records:
        flags = (record.llm_flags or "").strip()
        if flags and flags.lower().rstrip(".") != "none":
            concerns[record.id] = flags
    return concerns


def print_rating_summary(records: list[VignetteRecord]) -> None:
    """Print ratings, substantive failures, missing ratings, and flagged concerns."""
    typer.echo("\nLLM Ratings (1-7 scale):")
    columns = ["id", "policy", *RATING_FIELDS]
    typer.echo(records_to_frame(records, columns).to_string(index=False))

    passed = sum(1 for record in records if record.llm_ok)
    typer.echo(f"\nSubstantive validation pass: {passed}/{len(records)}")

    failing = [r for r in records if r.llm_error is None and not r.llm_ok]
    if failing:
        typer.echo("WARNING: Some vignettes may have substantive issues")
        columns = ["id", "policy", "economic_emphasis", "moral_emphasis", "llm_flags"]
        typer.echo(records_to_frame(failing, columns).to_string(index=False))

    missing = [record for record in records if record.llm_error is not None]
    if missing:
        typer.echo("WARNING: Ratings missing for some vignettes")
        typer.echo(
            records_to_frame(missing, ["id", "policy", "llm_error"]).to_string(
                index=False
            )
        )

    concerns = flagged_concerns(records)
    if concerns:
        typer.echo("\nLLM flagged concerns:")
        frame = pd.DataFrame(
            {"id": list(concerns), "llm_flags": list(concerns.values())}
        )
        typer.echo(frame.to_string(index=False))
