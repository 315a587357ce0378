"""Abstract base class for answer-confidence classifiers.

The orchestrator asks a classifier whether a generated answer looks low
confidence; a ``True`` verdict hands the conversation to a human.  The
default is a phrase heuristic, and a model-based classifier can replace it
without touching the orchestrator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: PhraseConfidenceClassifier (docassist/services/)
class IConfidenceClassifier(ABC):
    """Contract for deciding whether an answer warrants escalation."""

    @abstractmethod
    def is_low_confidence(self, answer_text: str) -> bool:
        """Return ``True`` if *answer_text* should be escalated to a human."""
