"""
Default configuration for the attrition and text sentiment pipelines.

Every class takes these values as keyword arguments; the constants here are
only the defaults used when a caller does not override them.
"""

# Labels
LABEL_COLUMN = 'Attrition'
POSITIVE_LABEL = 'Yes'
TEXT_COLUMN = 'Review'

# Cleaning
# Integer-coded ratings/levels that must be treated as discrete, not ordered
ORDINAL_FEATURES = [
    'Education',
    'EnvironmentSatisfaction',
    'JobInvolvement',
    'JobLevel',
    'JobSatisfaction',
    'PerformanceRating',
    'RelationshipSatisfaction',
    'StockOptionLevel',
    'WorkLifeBalance',
]
ID_COLUMNS = ['EmployeeNumber']

# Feature selection
DROP_COUNT = 3
IMPORTANCE_N_ESTIMATORS = 300

# Resampling (perc.over / perc.under)
OVER_SAMPLE_PCT = 300
UNDER_SAMPLE_PCT = 150
K_NEIGHBORS = 5

# Splitting and cross-validation
TEST_SIZE = 0.3
RANDOM_STATE = 42
CV_SCHEME = 'repeated_kfold'
N_FOLDS = 5
N_REPEATS = 3
N_BOOTSTRAP = 25
SCORING = 'roc_auc'

# Text
STOPWORD_LANGUAGE = 'english'
TARGET_LANGUAGE = 'en'
MIN_DOC_FRAC = 0.01
WEIGHTING = 'tf'

# Models trained by the attrition pipeline when none are requested
DEFAULT_MODELS = ['svm', 'random_forest', 'gradient_boosting', 'stacking']

# External services
SENTIMENT_MODEL = 'distilbert-base-uncased-finetuned-sst-2-english'
TRANSLATION_MODEL_TEMPLATE = 'Helsinki-NLP/opus-mt-{source}-{target}'
SERVICE_TIMEOUT = 30.0
SERVICE_RETRIES = 3
SERVICE_BACKOFF = 1.0
