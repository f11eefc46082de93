"""
Processor: tokenize fetched text and score it.

The tokenizer and scoring model are injected so implementations can be
swapped without touching the worker loop.
"""

from __future__ import annotations

import logging
import random
import re
import threading
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .errors import ProcessingFailure
from .types import FetchResult, ProcessedResult

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


class Tokenizer(ABC):
    @abstractmethod
    def tokenize(self, text: str) -> List[str]:
        raise NotImplementedError


class WhitespaceTokenizer(Tokenizer):
    """Splits text into word tokens, optionally lowercased."""

    def __init__(self, lowercase: bool = True) -> None:
        self.lowercase = lowercase

    def tokenize(self, text: str) -> List[str]:
        if self.lowercase:
            text = text.lower()
        return _TOKEN_RE.findall(text)


class ScoringModel(ABC):
    @abstractmethod
    def score(self, tokens: Sequence[str]) -> float:
        raise NotImplementedError


class RandomScoringModel(ScoringModel):
    """
    Stand-in model returning a uniform random score in [0, 1).

    Draws come from a private seeded generator guarded by a lock, so the
    sequence of scores is reproducible for a given seed (although which
    item receives which draw depends on worker timing).
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)
        self._lock = threading.Lock()

    def score(self, tokens: Sequence[str]) -> float:
        with self._lock:
            return self._rng.random()


class ConstantScoringModel(ScoringModel):
    def __init__(self, value: float) -> None:
        self.value = float(value)

    def score(self, tokens: Sequence[str]) -> float:
        return self.value


class TokenCountModel(ScoringModel):
    """Scores by token count, scaled by ``weight``."""

    def __init__(self, weight: float = 1.0) -> None:
        self.weight = weight

    def score(self, tokens: Sequence[str]) -> float:
        return self.weight * len(tokens)


class Processor:
    """
    Turns a ``FetchResult`` into a ``ProcessedResult``.

    Example:
        >>> processor = Processor(WhitespaceTokenizer(), TokenCountModel())
        >>> processor.process(FetchResult(item_id=1, text="two words"))
        ProcessedResult(item_id=1, score=2.0)
    """

    def __init__(self, tokenizer: Tokenizer, model: ScoringModel) -> None:
        self.tokenizer = tokenizer
        self.model = model

    def process(self, fetched: FetchResult) -> ProcessedResult:
        """
        Tokenize and score one fetched record.

        Raises:
            ProcessingFailure: If the tokenizer or the model raises, or the
                model returns something that is not a number
        """
        try:
            tokens = self.tokenizer.tokenize(fetched.text)
            score = float(self.model.score(tokens))
        except Exception as e:
            logger.debug("Processing item %s raised %r", fetched.item_id, e)
            raise ProcessingFailure(fetched.item_id, str(e) or e.__class__.__name__) from e
        return ProcessedResult(item_id=fetched.item_id, score=score)
