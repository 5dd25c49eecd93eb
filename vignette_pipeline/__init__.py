from vignette_pipeline.clients import invoke_openai
from vignette_pipeline.config import PipelineConfig
from vignette_pipeline.generator import generate_vignettes
from vignette_pipeline.models import Frame, OpenAIModels
from vignette_pipeline.pipeline import run_pipeline, validate_vignettes
from vignette_pipeline.schemas import ValidationReport, VignetteRecord

__all__ = [
    "invoke_openai",
    "generate_vignettes",
    "validate_vignettes",
    "run_pipeline",
    "PipelineConfig",
    "Frame",
    "OpenAIModels",
    "ValidationReport",
    "VignetteRecord",
]
