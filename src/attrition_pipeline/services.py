"""
External translation and sentiment services.

The hosted models are treated as black boxes: a call either returns a result
or fails. RetryingService adds the caller-level timeout and retry with
exponential backoff the services themselves lack.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Callable, Dict, Optional

from . import config
from .exceptions import ServiceError


class HuggingFaceSentimentService:
    """
    Sentiment scoring with a transformers sentiment-analysis pipeline.

    Returns the probability that a text is positive, in [0, 1].
    """

    def __init__(self, model: str = config.SENTIMENT_MODEL, token: Optional[str] = None):
        self.model = model
        self.token = token
        self._pipe = None

    def _pipeline(self):
        if self._pipe is None:
            from transformers import pipeline

            self._pipe = pipeline('sentiment-analysis', model=self.model, token=self.token)
        return self._pipe

    def score(self, text: str) -> float:
        result = self._pipeline()(text, truncation=True)[0]
        probability = float(result['score'])
        return probability if result['label'].upper().startswith('POS') else 1.0 - probability


class HuggingFaceTranslationService:
    """Translation with one transformers translation pipeline per language pair."""

    def __init__(
        self,
        model_template: str = config.TRANSLATION_MODEL_TEMPLATE,
        token: Optional[str] = None
    ):
        self.model_template = model_template
        self.token = token
        self._pipes: Dict[str, Any] = {}

    def translate(self, text: str, source: str, target: str) -> str:
        model = self.model_template.format(source=source, target=target)
        if model not in self._pipes:
            from transformers import pipeline

            self._pipes[model] = pipeline('translation', model=model, token=self.token)
        return self._pipes[model](text, truncation=True)[0]['translation_text']


class RetryingService:
    """
    Wraps a sentiment or translation service with a per-call timeout and
    retry with exponential backoff.

    After the last attempt the failure surfaces as ServiceError.
    """

    def __init__(
        self,
        service,
        retries: int = config.SERVICE_RETRIES,
        backoff: float = config.SERVICE_BACKOFF,
        timeout: Optional[float] = config.SERVICE_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Args:
            service: Object with score(text) and/or translate(text, source, target)
            retries: Attempts after the first one
            backoff: Delay before the first retry; doubled after each retry
            timeout: Seconds allowed per call; None disables the timeout
            sleep: Sleep function (replaceable in tests)
        """
        self.service = service
        self.retries = retries
        self.backoff = backoff
        self.timeout = timeout
        self.sleep = sleep

    def _run(self, func: Callable[..., Any], *args) -> Any:
        if self.timeout is None:
            return func(*args)
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            return executor.submit(func, *args).result(timeout=self.timeout)
        finally:
            executor.shutdown(wait=False)

    def _call(self, name: str, *args) -> Any:
        func = getattr(self.service, name)
        delay = self.backoff
        last_error: Optional[BaseException] = None

        for attempt in range(self.retries + 1):
            if attempt:
                self.sleep(delay)
                delay *= 2
            try:
                return self._run(func, *args)
            except (FutureTimeout, Exception) as exc:
                last_error = exc

        raise ServiceError(
            f'{type(self.service).__name__}.{name} failed: {last_error!r}',
            context={'attempts': self.retries + 1}
        ) from last_error

    def score(self, text: str) -> float:
        return self._call('score', text)

    def translate(self, text: str, source: str, target: str) -> str:
        return self._call('translate', text, source, target)
