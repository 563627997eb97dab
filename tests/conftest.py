import numpy as np
import pandas as pd
import pytest

from attrition_pipeline import DataLoader


def make_attrition_frame(n: int = 200, seed: int = 0) -> pd.DataFrame:
    """Synthetic HR table where overtime and low income drive attrition."""
    rng = np.random.default_rng(seed)
    overtime = rng.choice(['Yes', 'No'], size=n, p=[0.3, 0.7])
    income = rng.normal(5000, 1500, size=n).round(0)
    logit = -2.0 + 2.5 * (overtime == 'Yes') - 0.0008 * (income - 5000)
    left = rng.random(n) < 1 / (1 + np.exp(-logit))

    return pd.DataFrame({
        'EmployeeNumber': np.arange(1, n + 1),
        'Age': rng.integers(20, 60, size=n),
        'MonthlyIncome': income,
        'DistanceFromHome': rng.integers(1, 30, size=n),
        'OverTime': overtime,
        'JobSatisfaction': rng.integers(1, 5, size=n),
        'Department': rng.choice(['Sales', 'R&D', 'HR'], size=n),
        'StandardHours': 80,
        'Over18': 'Y',
        'Attrition': np.where(left, 'Yes', 'No'),
    })


@pytest.fixture
def attrition_frame():
    return make_attrition_frame()


@pytest.fixture
def loader():
    return DataLoader(verbose=False)


@pytest.fixture
def attrition_dataset(attrition_frame, loader):
    return loader.load_tabular(attrition_frame)


@pytest.fixture
def review_frame():
    stayed = [
        'Great team and a good manager',
        'Good pay, great benefits and flexible hours',
        'I love my team, good culture',
        'Great colleagues and good training',
        'Flexible hours and a great office',
        'Good work life balance and great people',
    ]
    left = [
        'Terrible management and bad pay',
        'Bad hours, no training, terrible manager',
        'Low pay and bad culture',
        'Terrible workload and bad management',
        'No growth, bad pay, long hours',
        'Bad manager and terrible communication',
    ]
    texts = (stayed + left) * 3
    labels = (['No'] * len(stayed) + ['Yes'] * len(left)) * 3
    return pd.DataFrame({'Review': texts, 'Attrition': labels})


class FakeSentimentService:
    """Scores a review by counting a few positive and negative words."""

    POSITIVE = {'good', 'great', 'love', 'flexible'}
    NEGATIVE = {'bad', 'terrible', 'low', 'no'}

    def __init__(self):
        self.calls = 0

    def score(self, text: str) -> float:
        self.calls += 1
        words = [w.strip(',.').lower() for w in text.split()]
        pos = sum(w in self.POSITIVE for w in words)
        neg = sum(w in self.NEGATIVE for w in words)
        return (pos + 1) / (pos + neg + 2)


@pytest.fixture
def sentiment_service():
    return FakeSentimentService()
