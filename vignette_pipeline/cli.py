import logging
from pathlib import Path

import typer

from vignette_pipeline.clients import check_connection, usage_totals
from vignette_pipeline.config import PipelineConfig, get_api_key
from vignette_pipeline.errors import ResponseParseError, VignettePipelineError
from vignette_pipeline.generator import generate_vignettes
from vignette_pipeline.loggy import setup_logging
from vignette_pipeline.models import Frame, OpenAIModels
from vignette_pipeline.pipeline import run_pipeline, validate_vignettes
from vignette_pipeline.prompts import registry

setup_logging(level=logging.INFO)
logger = logging.getLogger(__name__)

app = typer.Typer()


def _build_config(
    frame: Frame,
    model: str,
    output_dir: Path,
    prompt_file: Path | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    count: int | None = None,
) -> PipelineConfig:
    overrides = {
        "generation_temperature": temperature,
        "max_tokens": max_tokens,
        "vignette_count": count,
    }
    return PipelineConfig(
        frame=frame,
        model=model,
        output_dir=output_dir,
        prompt_file=prompt_file,
        **{key: value for key, value in overrides.items() if value is not None},
    )


def _fail(exc: Exception) -> None:
    logger.error(f"Pipeline failed: {exc}")
    if isinstance(exc, ResponseParseError):
        logger.error(f"Raw response:\n{exc.raw_text}")
    raise typer.Exit(code=1)


def _log_usage() -> None:
    if usage_totals.calls:
        logger.info(
            f"API usage: {usage_totals.calls} calls, "
            f"{usage_totals.total_tokens} tokens, ${usage_totals.cost_usd:.4f}"
        )


@app.command()
def generate(
    frame: Frame = typer.Option(Frame.ECONOMIC, "--frame", "-f", help="Vignette frame"),
    model: str = typer.Option(
        OpenAIModels.GPT_4O_MINI.value, "--model", "-m", help="Model name to use"
    ),
    prompt_file: Path | None = typer.Option(
        None,
        "--prompt-file",
        "-p",
        help="Prompt template (defaults to prompts/<frame>_frame.txt, then inline)",
    ),
    temperature: float | None = typer.Option(
        None, "--temperature", "-t", help="Sampling temperature"
    ),
    max_tokens: int | None = typer.Option(
        None, "--max-tokens", help="Maximum completion size"
    ),
    count: int | None = typer.Option(
        None, "--count", "-n", help="Number of vignettes to request"
    ),
    output_dir: Path = typer.Option(
        Path("output"), "--output-dir", "-o", help="Directory for output files"
    ),
):
    """Generate a batch of vignettes with one API request."""
    config = _build_config(
        frame, model, output_dir, prompt_file, temperature, max_tokens, count
    )
    try:
        generate_vignettes(config)
    except VignettePipelineError as exc:
        _fail(exc)
    _log_usage()
    typer.echo(
        "\n=== NEXT STEPS ===\n"
        "1. Run validation: vignette-pipeline validate\n"
        "2. If issues found, iterate on prompt and regenerate\n"
        "3. Generate the other frame with --frame\n"
    )


@app.command()
def validate(
    frame: Frame = typer.Option(Frame.ECONOMIC, "--frame", "-f", help="Vignette frame"),
    model: str = typer.Option(
        OpenAIModels.GPT_4O_MINI.value, "--model", "-m", help="Model for LLM rating"
    ),
    input_path: Path | None = typer.Option(
        None,
        "--input",
        "-i",
        help="Vignette JSON (defaults to the generator's output for --frame)",
    ),
    output_dir: Path = typer.Option(
        Path("output"), "--output-dir", "-o", help="Directory for output files"
    ),
    skip_llm: bool = typer.Option(
        False, "--skip-llm", help="Skip the LLM rating pass even with an API key"
    ),
):
    """Validate generated vignettes and write the report."""
    config = _build_config(frame, model, output_dir)
    try:
        result = validate_vignettes(
            config, input_path=input_path, use_llm=False if skip_llm else None
        )
    except (FileNotFoundError, ValueError, VignettePipelineError) as exc:
        _fail(exc)
    _log_usage()
    if not result.report.all_pass:
        raise typer.Exit(code=2)


@app.command()
def run(
    frame: Frame = typer.Option(Frame.ECONOMIC, "--frame", "-f", help="Vignette frame"),
    model: str = typer.Option(
        OpenAIModels.GPT_4O_MINI.value, "--model", "-m", help="Model name to use"
    ),
    prompt_file: Path | None = typer.Option(
        None, "--prompt-file", "-p", help="Prompt template file"
    ),
    output_dir: Path = typer.Option(
        Path("output"), "--output-dir", "-o", help="Directory for output files"
    ),
    skip_llm: bool = typer.Option(False, "--skip-llm", help="Skip LLM rating"),
):
    """Generate vignettes, then validate them."""
    config = _build_config(frame, model, output_dir, prompt_file)
    try:
        result = run_pipeline(config, use_llm=False if skip_llm else None)
    except VignettePipelineError as exc:
        _fail(exc)
    _log_usage()
    if not result.report.all_pass:
        raise typer.Exit(code=2)


@app.command()
def check(
    model: str = typer.Option(
        OpenAIModels.GPT_4O_MINI.value, "--model", "-m", help="Model name to use"
    ),
):
    """Test the API credential and connection."""
    if get_api_key() is None:
        logger.error("OPENAI_API_KEY not set. Export it or add it to a .env file.")
        raise typer.Exit(code=1)
    typer.echo("Testing API connection...")
    try:
        reply = check_connection(model=model)
    except VignettePipelineError as exc:
        typer.echo("Setup failed. Check your API key.")
        _fail(exc)
    typer.echo("Setup complete!")
    typer.echo(f"Response: {reply}")


@app.command("list-prompts")
def list_prompts_cmd():
    """List all built-in prompt templates."""
    logger.info("Available prompts:")
    for prompt in registry.list_all():
        logger.info(f"  - {prompt}")


if __name__ == "__main__":
    app()
