"""
Evaluation of trained models on a held-out test Dataset.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix, roc_auc_score

from . import config
from .exceptions import SchemaError
from .schema import Dataset


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


@dataclass(frozen=True)
class ConfusionMatrix:
    """Binary confusion counts for an explicitly configured positive class."""

    tp: int
    fp: int
    fn: int
    tn: int

    @classmethod
    def from_labels(cls, actual: Sequence, predicted: Sequence, positive_label: Any) -> 'ConfusionMatrix':
        actual = np.asarray(actual, dtype=object) == positive_label
        predicted = np.asarray(predicted, dtype=object) == positive_label
        tn, fp, fn, tp = confusion_matrix(actual, predicted, labels=[False, True]).ravel()
        return cls(tp=int(tp), fp=int(fp), fn=int(fn), tn=int(tn))

    @property
    def total(self) -> int:
        return self.tp + self.fp + self.fn + self.tn

    @property
    def accuracy(self) -> float:
        return _ratio(self.tp + self.tn, self.total)

    @property
    def recall(self) -> float:
        return _ratio(self.tp, self.tp + self.fn)

    @property
    def precision(self) -> float:
        return _ratio(self.tp, self.tp + self.fp)

    @property
    def f1(self) -> float:
        return _ratio(2 * self.tp, 2 * self.tp + self.fp + self.fn)

    def as_frame(self, positive_label: Any = 'positive', negative_label: Any = 'negative') -> pd.DataFrame:
        """Predicted (rows) x actual (columns)."""
        return pd.DataFrame(
            [[self.tp, self.fp], [self.fn, self.tn]],
            index=pd.Index([positive_label, negative_label], name='predicted'),
            columns=pd.Index([positive_label, negative_label], name='actual')
        )


@dataclass
class EvaluationReport:
    model_name: str
    confusion: ConfusionMatrix
    positive_label: Any
    test_fingerprint: str
    training_time: float = 0.0
    roc_auc: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def accuracy(self) -> float:
        return self.confusion.accuracy

    @property
    def recall(self) -> float:
        return self.confusion.recall

    @property
    def precision(self) -> float:
        return self.confusion.precision

    @property
    def f1(self) -> float:
        return self.confusion.f1

    def metrics(self) -> Dict[str, Any]:
        return {
            'accuracy': self.accuracy,
            'recall': self.recall,
            'precision': self.precision,
            'f1': self.f1,
            'roc_auc': self.roc_auc,
            'training_time': self.training_time,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'model': self.model_name,
            'positive_label': self.positive_label,
            'test_fingerprint': self.test_fingerprint,
            'confusion_matrix': asdict(self.confusion),
            'metrics': self.metrics(),
            **self.extra,
        }


class Evaluator:
    """
    Produces comparable reports for several models: every report of one
    Evaluator uses the same test data and the same positive class.
    """

    def __init__(
        self,
        positive_label: Any = config.POSITIVE_LABEL,
        sort_by: str = 'accuracy',
        verbose: bool = True
    ):
        self.positive_label = positive_label
        self.sort_by = sort_by
        self.verbose = verbose

        self.reports: Dict[str, EvaluationReport] = {}
        self._fingerprint: Optional[str] = None

    def _check_test_data(self, dataset: Dataset) -> str:
        if dataset.positive_label != self.positive_label:
            raise SchemaError(
                'Test data positive label differs from the configured one',
                stage='evaluate',
                context={'configured': self.positive_label, 'dataset': dataset.positive_label}
            )
        fingerprint = dataset.fingerprint()
        if self._fingerprint is None:
            self._fingerprint = fingerprint
        elif fingerprint != self._fingerprint:
            raise SchemaError(
                'Reports must be computed on identical test data',
                stage='evaluate',
                context={'expected': self._fingerprint, 'got': fingerprint}
            )
        return fingerprint

    def evaluate(self, model_name: str, trainer, test_dataset: Dataset, model=None) -> EvaluationReport:
        """
        Evaluate a trained model.

        Args:
            model_name: Identifier of the report
            trainer: ModelTrainer that produced the model
            test_dataset: Held-out data, never resampled
            model: Trained pipeline (defaults to the trainer's last model)

        Returns:
            EvaluationReport
        """
        fingerprint = self._check_test_data(test_dataset)

        predicted = trainer.predict(model, test_dataset)
        actual = test_dataset.labels
        confusion = ConfusionMatrix.from_labels(actual, predicted, self.positive_label)

        roc_auc = None
        y_true = test_dataset.y
        if len(np.unique(y_true)) == 2:
            roc_auc = float(roc_auc_score(y_true, trainer.predict_proba(model, test_dataset)))

        report = EvaluationReport(
            model_name=model_name,
            confusion=confusion,
            positive_label=self.positive_label,
            test_fingerprint=fingerprint,
            training_time=float(getattr(trainer, 'training_time', 0.0)),
            roc_auc=roc_auc,
            extra={'best_params': getattr(trainer, 'best_params_', {})}
        )
        self.reports[model_name] = report

        if self.verbose:
            self._print_report(report, test_dataset)
        return report

    def _print_report(self, report: EvaluationReport, dataset: Dataset) -> None:
        print(f"\n{'=' * 60}")
        print(f" TEST SET EVALUATION: {report.model_name}")
        print(f"{'=' * 60}")
        print(f"\n{report.confusion.as_frame(self.positive_label, dataset.negative_label)}")
        print(f"\n   Accuracy:  {report.accuracy:.4f}")
        print(f"   Recall:    {report.recall:.4f}")
        print(f"   Precision: {report.precision:.4f}")
        if report.roc_auc is not None:
            print(f"   ROC-AUC:   {report.roc_auc:.4f}")
        print(f"   Training time: {report.training_time:.1f}s")

    def compare(self, reports: Optional[List[EvaluationReport]] = None) -> pd.DataFrame:
        """One row per model, best first by `sort_by`."""
        reports = reports if reports is not None else list(self.reports.values())
        if not reports:
            return pd.DataFrame(columns=['accuracy', 'recall', 'precision', 'f1', 'roc_auc', 'training_time'])
        table = pd.DataFrame({r.model_name: r.metrics() for r in reports}).T.apply(pd.to_numeric)
        table.index.name = 'model'
        return table.sort_values(self.sort_by, ascending=False, kind='mergesort')

    def save_report(self, output_dir: Union[str, Path]) -> Path:
        """Write every report and the comparison table as JSON."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        payload = {
            'created_at': datetime.now().isoformat(),
            'positive_label': self.positive_label,
            'reports': [r.to_dict() for r in self.reports.values()],
        }
        path = output_dir / 'evaluation_report.json'
        with open(path, 'w') as f:
            json.dump(payload, f, indent=2, default=str)

        if self.verbose:
            print(f"Evaluation report saved to: {path}")
        return path
