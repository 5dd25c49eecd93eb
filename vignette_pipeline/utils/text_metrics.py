"""Deterministic text metrics: readability and lexicon sentiment."""

import logging
import re
from collections.abc import Mapping
from functools import lru_cache

import textstat
from afinn import Afinn
from pydantic import BaseModel

logger = logging.getLogger(__name__)

AFINN_WORD_FILE = "AFINN-en-165.txt"

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+(?:'[a-z]+)*")


class Readability(BaseModel):
    """Flesch readability scores and the counts they were computed from."""

    grade: float
    ease: float
    sentences: int
    words: int
    syllables: int


class SentimentScore(BaseModel):
    """Lexicon sentiment for one text."""

    score: int
    matched: int
    mean: float


def tokenize_words(text: str) -> list[str]:
    """
    Split text into lowercase word tokens, keeping contractions whole.

    Args:
        text (str): Passage to tokenize.

    Returns:
        list[str]: Tokens in order of appearance.
    """
    normalized = text.lower().replace("’", "'")
    return _TOKEN_PATTERN.findall(normalized)


def readability(text: str) -> Readability:
    """
    Compute Flesch-Kincaid grade level and Flesch reading ease.

    grade = 0.39 * ASL + 11.8 * ASW - 15.59
    ease = 206.835 - 1.015 * ASL - 84.6 * ASW

    where ASL is words per sentence and ASW is syllables per word. Word,
    sentence, and dictionary syllable counts come from textstat; the scores
    are computed here so they are not rounded before the grade band check.

    Args:
        text (str): Passage to score.

    Returns:
        Readability: Scores and underlying counts.

    Raises:
        ValueError: If the text contains no words.
    """
    words = textstat.lexicon_count(text)
    if not words:
        raise ValueError("Cannot compute readability of text with no words")

    sentences = max(textstat.sentence_count(text), 1)
    syllables = textstat.syllable_count(text)
    asl = words / sentences
    asw = syllables / words
    return Readability(
        grade=0.39 * asl + 11.8 * asw - 15.59,
        ease=206.835 - 1.015 * asl - 84.6 * asw,
        sentences=sentences,
        words=words,
        syllables=syllables,
    )


@lru_cache(maxsize=1)
def load_afinn_lexicon() -> dict[str, int]:
    """
    Load the English AFINN word list as a word -> valence mapping.

    Returns:
        dict[str, int]: Valences in [-5, 5].
    """
    afinn = Afinn(language="en")
    lexicon = afinn.read_word_file(afinn.full_filename(AFINN_WORD_FILE))
    logger.debug(f"Loaded AFINN lexicon with {len(lexicon)} entries")
    return {word: int(value) for word, value in lexicon.items()}


def score_sentiment(text: str, lexicon: Mapping[str, int]) -> SentimentScore:
    """
    Sum the lexicon valence of every matched token in text.

    Unmatched tokens contribute nothing; a text with no matches scores 0.

    Args:
        text (str): Passage to score.
        lexicon (Mapping[str, int]): Word -> integer valence.

    Returns:
        SentimentScore: Sum, number of matched tokens, and mean valence.
    """
    values = [lexicon[token] for token in tokenize_words(text) if token in lexicon]
    if not values:
        return SentimentScore(score=0, matched=0, mean=0.0)
    return SentimentScore(
        score=int(sum(values)),
        matched=len(values),
        mean=sum(values) / len(values),
    )
