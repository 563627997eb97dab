#!/usr/bin/env python3
"""
Training script for the tabular attrition pipeline.

Steps:
- Cleaning (identifier/zero-variance features dropped, ordinal ratings as categories)
- Stratified split with duplicate handling
- Variable-importance feature selection
- SMOTE + undersampling on the training split only
- SVM / random forest / gradient boosting / stacking with ROC-AUC tuning
- Evaluation on the held-out test split

Usage:
    python scripts/train_attrition.py --data data/raw/hr_attrition.csv
    python scripts/train_attrition.py --models svm random_forest
    python scripts/train_attrition.py --cv-scheme bootstrap --no-resample
"""

import argparse
import sys
from pathlib import Path

from attrition_pipeline import (
    AttritionPipeline,
    Cleaner,
    DataLoader,
    DataSplitter,
    FeatureSelector,
    ModelPipelineBuilder,
    PipelineError,
    Resampler,
)
from attrition_pipeline import config

PROJECT_ROOT = Path(__file__).parent.parent


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Train and compare attrition classifiers'
    )

    parser.add_argument(
        '--data', type=str,
        default='data/raw/hr_attrition.csv',
        help='Path to the tabular employee CSV'
    )
    parser.add_argument(
        '--label', type=str, default=config.LABEL_COLUMN,
        help='Label column'
    )
    parser.add_argument(
        '--positive', type=str, default=config.POSITIVE_LABEL,
        help='Label value of employees who left'
    )
    parser.add_argument(
        '--models', nargs='+',
        default=config.DEFAULT_MODELS,
        choices=ModelPipelineBuilder.list_available_classifiers(),
        help='Classifiers to train'
    )
    parser.add_argument(
        '--drop-count', type=int, default=config.DROP_COUNT,
        help='Least important features to drop'
    )
    parser.add_argument(
        '--no-selection', action='store_true',
        help='Disable feature selection'
    )
    parser.add_argument(
        '--over', type=int, default=config.OVER_SAMPLE_PCT,
        help='SMOTE oversampling percentage'
    )
    parser.add_argument(
        '--under', type=int, default=config.UNDER_SAMPLE_PCT,
        help='Majority undersampling percentage'
    )
    parser.add_argument(
        '--k-neighbors', type=int, default=config.K_NEIGHBORS,
        help='SMOTE neighbours'
    )
    parser.add_argument(
        '--no-resample', action='store_true',
        help='Disable resampling of the training split'
    )
    parser.add_argument(
        '--cv-scheme', type=str, default=config.CV_SCHEME,
        choices=['repeated_kfold', 'bootstrap'],
        help='Resampling scheme for hyperparameter search'
    )
    parser.add_argument(
        '--folds', type=int, default=config.N_FOLDS,
        help='Number of cross-validation folds'
    )
    parser.add_argument(
        '--repeats', type=int, default=config.N_REPEATS,
        help='Number of k-fold repeats'
    )
    parser.add_argument(
        '--test-size', type=float, default=config.TEST_SIZE,
        help='Proportion of rows held out for testing'
    )
    parser.add_argument(
        '--output', type=str, default='models/attrition',
        help='Output directory for models and reports'
    )
    parser.add_argument(
        '--random-state', type=int, default=config.RANDOM_STATE,
        help='Random seed for reproducibility'
    )

    return parser.parse_args()


def main():
    """Main training function."""
    args = parse_args()

    data_path = PROJECT_ROOT / args.data
    output_dir = PROJECT_ROOT / args.output

    print("=" * 70)
    print(" ATTRITION - TRAINING PIPELINE")
    print("=" * 70)
    print(f"\n Configuration:")
    print(f"   Data: {data_path}")
    print(f"   Models: {args.models}")
    print(f"   Feature selection: {not args.no_selection} (drop {args.drop_count})")
    print(f"   Resampling: {not args.no_resample} (over {args.over}%, under {args.under}%)")
    print(f"   CV: {args.cv_scheme} ({args.folds} folds x {args.repeats})")
    print(f"   Output: {output_dir}")

    pipeline = AttritionPipeline(
        models=args.models,
        cleaner=Cleaner(),
        splitter=DataSplitter(test_size=args.test_size, random_state=args.random_state),
        selector=FeatureSelector(drop_count=args.drop_count, random_state=args.random_state),
        resampler=Resampler(
            over_sample_pct=args.over,
            under_sample_pct=args.under,
            k_neighbors=args.k_neighbors,
            random_state=args.random_state
        ),
        trainer_params={
            'cv_scheme': args.cv_scheme,
            'n_folds': args.folds,
            'n_repeats': args.repeats,
            'random_state': args.random_state,
        },
        select_features=not args.no_selection,
        resample=not args.no_resample,
        output_dir=output_dir
    )

    try:
        dataset = DataLoader(label_column=args.label, positive_label=args.positive).load_tabular(data_path)
        result = pipeline.run(dataset)
    except PipelineError as exc:
        print(f"ERROR: {exc}")
        return 1

    print("\n" + "=" * 70)
    print(" TRAINING COMPLETE")
    print("=" * 70)
    print(f"\n Summary:")
    print(f"   Train samples (after resampling): {len(result.train)}")
    print(f"   Test samples: {len(result.test)}")
    print(f"   Dropped by cleaning: {result.dropped_features}")
    print(f"   Selected features: {len(result.selected_features)}")
    print(f"\n{result.comparison.round(4)}")
    print("\n" + "=" * 70)

    return 0


if __name__ == '__main__':
    sys.exit(main())
