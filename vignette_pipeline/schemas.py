"""Pydantic schemas for vignette records, ratings, and validation reports."""

from datetime import datetime

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
)


class Band(BaseModel):
    """Inclusive acceptance band."""

    model_config = ConfigDict(frozen=True)

    minimum: float
    maximum: float

    def contains(self, value: float | None) -> bool:
        """Return True when value lies within the band, bounds included."""
        if value is None:
            return False
        return self.minimum <= value <= self.maximum

    @property
    def label(self) -> str:
        return f"{self.minimum:g}-{self.maximum:g}"


class ServiceVignette(BaseModel):
    """One element of the JSON array returned by the generation service."""

    id: int = Field(..., description="Vignette ID assigned by the model.")
    text: str = Field(..., description="Generated passage.")
    words: int = Field(..., description="Word count as estimated by the model.")
    policy: str = Field(..., description="Policy variant covered by the passage.")


class VignetteRecord(BaseModel):
    """
    A generated vignette plus every field derived downstream.

    Fields populated by a later stage stay None until that stage runs.
    """

    id: int
    text: str
    policy: str
    declared_word_count: int | None = Field(
        None,
        validation_alias=AliasChoices("declared_word_count", "words"),
        description="Model-reported word count; advisory only.",
    )

    # generator
    actual_word_count: int | None = None
    word_diff: int | None = None
    in_range: bool | None = None

    # deterministic validation
    reading_grade: float | None = None
    reading_ease: float | None = None
    sentiment_score: int | None = None
    sentiment_words: int | None = None
    sentiment_mean: float | None = None
    words_ok: bool | None = None
    reading_ok: bool | None = None
    sentiment_ok: bool | None = None
    basic_ok: bool | None = None

    # LLM rating
    economic_emphasis: int | None = None
    moral_emphasis: int | None = None
    policy_match: int | None = None
    neutrality: int | None = None
    partisan_cues: int | None = None
    llm_flags: str | None = None
    llm_error: str | None = None
    llm_ok: bool | None = None


GENERATOR_COLUMNS = [
    "id",
    "text",
    "declared_word_count",
    "policy",
    "actual_word_count",
    "word_diff",
    "in_range",
]

RATING_FIELDS = [
    "economic_emphasis",
    "moral_emphasis",
    "policy_match",
    "neutrality",
    "partisan_cues",
]

INTEGER_FIELDS = [
    "id",
    "declared_word_count",
    "actual_word_count",
    "word_diff",
    "sentiment_score",
    "sentiment_words",
    *RATING_FIELDS,
]


class VignetteRating(BaseModel):
    """Subjective ratings returned by the rating model (1-7 scale)."""

    economic_emphasis: int = Field(..., ge=1, le=7)
    moral_emphasis: int = Field(..., ge=1, le=7)
    policy_match: int = Field(..., ge=1, le=7)
    neutrality: int = Field(..., ge=1, le=7)
    partisan_cues: int = Field(
        ..., ge=1, le=7, description="1 = many partisan cues, 7 = none."
    )
    flags: str | None = Field(None, description="Free-text concerns, or 'none'.")


class RatingOutcome(BaseModel):
    """Result of rating one vignette: either a rating or the reason it is missing."""

    id: int
    rating: VignetteRating | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.rating is not None


class UsageTotals(BaseModel):
    """Running token usage and estimated spend for one run."""

    calls: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0


class BatchStats(BaseModel):
    """Descriptive statistics over one numeric field of a batch."""

    n: int
    mean: float | None = None
    sd: float | None = None
    min: float | None = None
    max: float | None = None


class BandSummary(BaseModel):
    """Summary of a band-checked numeric dimension."""

    model_config = ConfigDict(frozen=True)

    target: str
    target_min: float
    target_max: float
    mean: float | None
    sd: float | None
    min: float | None
    max: float | None
    passed: int
    failing_ids: list[int] = Field(default_factory=list)


class SentimentSummary(BaseModel):
    """Summary of the batch-relative sentiment outlier check."""

    model_config = ConfigDict(frozen=True)

    sd_multiplier: float
    threshold: float | None
    mean: float | None
    sd: float | None
    range: float | None
    passed: int
    failing_ids: list[int] = Field(default_factory=list)


class LLMSummary(BaseModel):
    """Summary of the optional LLM substantive rating pass."""

    model_config = ConfigDict(frozen=True)

    enabled: bool
    thresholds: dict[str, str] = Field(default_factory=dict)
    passed: int | None = None
    rated: int = 0
    missing_ids: list[int] = Field(default_factory=list)
    failing_ids: list[int] = Field(default_factory=list)
    flagged: dict[int, str] = Field(default_factory=dict)
    stats: dict[str, BatchStats] = Field(
        default_factory=dict,
        description="Rating field -> statistics over the successfully rated records.",
    )


class ValidationReport(BaseModel):
    """Immutable summary of one validation run."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    n_vignettes: int
    frame: str
    word_count: BandSummary
    reading_level: BandSummary
    sentiment: SentimentSummary
    llm_validation: LLMSummary
    failures: dict[int, list[str]] = Field(
        default_factory=dict,
        description="Record id -> names of the gates it failed.",
    )
    all_pass: bool

    @field_serializer("timestamp")
    def serialize_datetime(self, value: datetime, _info) -> str:
        """Serialize datetime to ISO format string."""
        return value.isoformat()
