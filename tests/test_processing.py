import logging

import pytest

from parascore.errors import ProcessingFailure
from parascore.processing import (
    ConstantScoringModel,
    Processor,
    RandomScoringModel,
    ScoringModel,
    TokenCountModel,
    WhitespaceTokenizer,
)
from parascore.types import FetchResult, ProcessedResult


def test_whitespace_tokenizer_lowercases_and_strips_punctuation():
    tokens = WhitespaceTokenizer().tokenize("Hello, Parallel World!")
    assert tokens == ["hello", "parallel", "world"]


def test_whitespace_tokenizer_keeps_case():
    assert WhitespaceTokenizer(lowercase=False).tokenize("A b") == ["A", "b"]


def test_token_count_model():
    processor = Processor(WhitespaceTokenizer(), TokenCountModel(weight=0.5))
    result = processor.process(FetchResult(item_id=7, text="one two three four"))
    assert result == ProcessedResult(item_id=7, score=2.0)


def test_random_model_is_reproducible_for_a_seed():
    a = RandomScoringModel(seed=11)
    b = RandomScoringModel(seed=11)
    draws_a = [a.score([]) for _ in range(5)]
    draws_b = [b.score([]) for _ in range(5)]
    assert draws_a == draws_b
    assert all(0.0 <= x < 1.0 for x in draws_a)


def test_constant_model():
    processor = Processor(WhitespaceTokenizer(), ConstantScoringModel(3))
    assert processor.process(FetchResult(item_id=1, text="")).score == 3.0


def test_processor_wraps_model_errors():
    class Exploding(ScoringModel):
        def score(self, tokens):
            raise RuntimeError("model crashed")

    processor = Processor(WhitespaceTokenizer(), Exploding())
    with pytest.raises(ProcessingFailure) as excinfo:
        processor.process(FetchResult(item_id=42, text="anything"))
    assert excinfo.value.item_id == 42
    assert "model crashed" in str(excinfo.value)


def test_processor_rejects_non_numeric_scores():
    class Wordy(ScoringModel):
        def score(self, tokens):
            return "high"

    with pytest.raises(ProcessingFailure):
        Processor(WhitespaceTokenizer(), Wordy()).process(FetchResult(item_id=1, text="x"))


def test_processed_result_is_immutable():
    result = ProcessedResult(item_id=1, score=0.3)
    with pytest.raises(AttributeError):
        result.score = 0.9


def test_processor_logs_wrapped_error_at_debug(caplog):
    class Exploding(ScoringModel):
        def score(self, tokens):
            raise RuntimeError("model crashed")

    caplog.set_level(logging.DEBUG, logger="parascore.processing")
    with pytest.raises(ProcessingFailure):
        Processor(WhitespaceTokenizer(), Exploding()).process(FetchResult(item_id=9, text="x"))
    records = [r for r in caplog.records if r.name == "parascore.processing"]
    assert len(records) == 1
    assert records[0].levelno == logging.DEBUG
    assert "9" in records[0].getMessage()
