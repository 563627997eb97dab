"""
Error taxonomy for the attrition and text sentiment pipelines.

Every stage raises a subclass of PipelineError carrying the stage name and the
offending feature/record so a failed run can be diagnosed from the message.
"""

from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base class for all pipeline stage failures."""

    default_stage = 'pipeline'

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.stage = stage or self.default_stage
        self.context = dict(context or {})
        super().__init__(str(self))

    def __str__(self) -> str:
        text = f"[{self.stage}] {self.message}"
        if self.context:
            details = ', '.join(f"{k}={v!r}" for k, v in self.context.items())
            text = f"{text} ({details})"
        return text


class LoadError(PipelineError):
    """Malformed or missing input, missing or non-binary label column."""

    default_stage = 'load'


class SchemaError(PipelineError):
    """Feature set mismatch, unknown feature or unseen categorical level."""

    default_stage = 'schema'


class SelectionError(PipelineError):
    """Too few features would survive feature selection."""

    default_stage = 'feature_selection'


class ResampleError(PipelineError):
    """Minority class too small to synthesize new records."""

    default_stage = 'resample'


class TrainError(PipelineError):
    """Model fitting failed."""

    default_stage = 'train'


class ServiceError(PipelineError):
    """External translation or sentiment service failure."""

    default_stage = 'service'
