"""Phrase-based answer confidence heuristic.

An answer is treated as low confidence when it contains, case-insensitively,
any phrase from a fixed list ("I don't know", "I'm not sure", ...).  This is
a deliberate heuristic, not a probability: it misfires on answers that
quote those phrases and misses hedges it does not list.
"""

from __future__ import annotations

from collections.abc import Iterable

from docassist.interfaces.confidence_classifier import IConfidenceClassifier

DEFAULT_LOW_CONFIDENCE_PHRASES: tuple[str, ...] = (
    "I don't know",
    "I'm not sure",
    "I don't have enough information",
    "I cannot answer",
    "I'm unable to provide",
)

# Curly apostrophes are common in model output.
_APOSTROPHES = str.maketrans({"\u2019": "'", "\u2018": "'"})


def _normalize(text: str) -> str:
    return text.translate(_APOSTROPHES).casefold()


class PhraseConfidenceClassifier(IConfidenceClassifier):
    """Flags answers containing any of *phrases* (case-insensitive substring)."""

    def __init__(self, phrases: Iterable[str] | None = None) -> None:
        chosen = DEFAULT_LOW_CONFIDENCE_PHRASES if phrases is None else tuple(phrases)
        self._phrases = tuple(_normalize(p) for p in chosen if p and p.strip())

    @property
    def phrases(self) -> tuple[str, ...]:
        return self._phrases

    def is_low_confidence(self, answer_text: str) -> bool:
        haystack = _normalize(answer_text)
        return any(phrase in haystack for phrase in self._phrases)
