import time

import pytest

from attrition_pipeline import RetryingService, SentimentScorer, ServiceError


class FlakyService:
    def __init__(self, failures):
        self.failures = failures
        self.calls = 0

    def score(self, text):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError('network down')
        return 0.75


class SlowService:
    def score(self, text):
        time.sleep(0.5)
        return 0.5


def test_retries_with_backoff():
    delays = []
    service = FlakyService(failures=2)
    wrapped = RetryingService(service, retries=3, backoff=1.0, timeout=None, sleep=delays.append)

    assert wrapped.score('text') == 0.75
    assert service.calls == 3
    assert delays == [1.0, 2.0]


def test_gives_up_with_service_error():
    service = FlakyService(failures=10)
    wrapped = RetryingService(service, retries=2, timeout=None, sleep=lambda _: None)

    with pytest.raises(ServiceError, match='network down') as info:
        wrapped.score('text')
    assert info.value.context['attempts'] == 3
    assert isinstance(info.value.__cause__, ConnectionError)


def test_timeout_is_a_failure():
    wrapped = RetryingService(SlowService(), retries=0, timeout=0.05)
    with pytest.raises(ServiceError):
        wrapped.score('text')


def test_scorer_adds_numeric_feature(review_frame, loader, sentiment_service):
    dataset = loader.load_text(review_frame)
    scorer = SentimentScorer(sentiment_service, verbose=False)
    scored = scorer.add_scores(dataset)

    assert 'sentiment' in scored.schema
    assert scored.frame['sentiment'].between(0, 1).all()
    assert 'sentiment' not in dataset.frame.columns
    assert sentiment_service.calls == len(dataset)


class OutOfRange:
    def score(self, text):
        return 1.5


def test_score_out_of_range(review_frame, loader):
    dataset = loader.load_text(review_frame)
    with pytest.raises(ServiceError, match=r'outside \[0, 1\]') as info:
        SentimentScorer(OutOfRange(), verbose=False).add_scores(dataset)
    assert info.value.context['document'] == 0


def test_failing_service_reports_document(review_frame, loader):
    dataset = loader.load_text(review_frame)
    scorer = SentimentScorer(
        RetryingService(FlakyService(failures=100), retries=0, timeout=None), verbose=False
    )
    with pytest.raises(ServiceError) as info:
        scorer.add_scores(dataset)
    assert info.value.context['document'] == 0
