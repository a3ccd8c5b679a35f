# ============================================================================
# TEXT ANALYZERS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Pluggable - NLP seams used by the journal agents
# PURPOSE: Classification, sentiment and subject extraction contracts
# CREATED: 19 OCT 2026
# ============================================================================
"""
Text Analyzers

The journal agents call these seams instead of any particular NLP model.
The shipped implementations are minimal:

    NullContentClassifier       -> no classifications
    NeutralSentimentAnalyzer    -> polarity 0.0, subjectivity 0.5
    CapitalizedSubjectExtractor -> whitespace tokens matching ^[A-Z][a-z]+

Swap in real models by passing other implementations to the agents.
"""

import re
from abc import ABC, abstractmethod
from typing import List

from core.models import EntryClassification, Sentiment


class ContentClassifier(ABC):
    """Infers area/dimension classifications from entry text."""

    @abstractmethod
    async def classify(self, content: str) -> List[EntryClassification]:
        pass


class SentimentAnalyzer(ABC):
    """Estimates sentiment of entry text."""

    @abstractmethod
    async def analyze(self, content: str) -> Sentiment:
        pass


class SubjectExtractor(ABC):
    """Finds subject entities in one sentence."""

    @abstractmethod
    def extract(self, sentence: str) -> List[str]:
        pass


class NullContentClassifier(ContentClassifier):
    async def classify(self, content: str) -> List[EntryClassification]:
        return []


class NeutralSentimentAnalyzer(SentimentAnalyzer):
    async def analyze(self, content: str) -> Sentiment:
        return Sentiment(polarity=0.0, subjectivity=0.5)


class CapitalizedSubjectExtractor(SubjectExtractor):
    """Capitalized tokens are treated as subjects. The raw token is kept."""

    PATTERN = re.compile(r"^[A-Z][a-z]+")

    def extract(self, sentence: str) -> List[str]:
        return [word for word in sentence.split() if self.PATTERN.match(word)]


__all__ = [
    "ContentClassifier",
    "SentimentAnalyzer",
    "SubjectExtractor",
    "NullContentClassifier",
    "NeutralSentimentAnalyzer",
    "CapitalizedSubjectExtractor",
]
