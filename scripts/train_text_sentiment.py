#!/usr/bin/env python3
"""
Training script for the review-text attrition pipeline.

Reviews are normalized (digits, case, stop words, punctuation, whitespace),
turned into a term matrix and optionally enriched with a sentiment score from
a hosted transformers model. Multilingual review files either get per-language
tokenization or are translated to English first.

Usage:
    python scripts/train_text_sentiment.py --data data/raw/reviews.csv
    python scripts/train_text_sentiment.py --weighting tfidf --sentiment
    python scripts/train_text_sentiment.py --language-column Language \
        --strategy tokenize --stopwords de=data/raw/german_stopwords.txt
"""

import argparse
import os
import sys
from pathlib import Path

from attrition_pipeline import (
    DataLoader,
    DataSplitter,
    HuggingFaceSentimentService,
    HuggingFaceTranslationService,
    ModelPipelineBuilder,
    PipelineError,
    SentimentScorer,
    TextNormalizer,
    TextSentimentPipeline,
    Vectorizer,
)
from attrition_pipeline import config

PROJECT_ROOT = Path(__file__).parent.parent


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Train attrition classifiers on employee reviews'
    )

    parser.add_argument('--data', type=str, default='data/raw/reviews.csv',
                        help='Path to the review CSV')
    parser.add_argument('--text-column', type=str, default=config.TEXT_COLUMN,
                        help='Free-text review column')
    parser.add_argument('--label', type=str, default=config.LABEL_COLUMN,
                        help='Label column')
    parser.add_argument('--positive', type=str, default=config.POSITIVE_LABEL,
                        help='Label value of employees who left')
    parser.add_argument('--models', nargs='+', default=['random_forest'],
                        choices=ModelPipelineBuilder.list_available_classifiers(),
                        help='Classifiers to train')
    parser.add_argument('--weighting', type=str, default=config.WEIGHTING,
                        choices=['tf', 'tfidf'], help='Term weighting')
    parser.add_argument('--min-doc-frac', type=float, default=config.MIN_DOC_FRAC,
                        help='Minimum share of documents a term must appear in')
    parser.add_argument('--language', type=str, default=config.STOPWORD_LANGUAGE,
                        help='nltk stop-word language for single-language corpora')
    parser.add_argument('--language-column', type=str, default=None,
                        help='Column with a language tag per review')
    parser.add_argument('--strategy', type=str, default='none',
                        choices=['none', 'tokenize', 'translate'],
                        help='How multilingual reviews are handled')
    parser.add_argument('--stopwords', nargs='*', default=[],
                        help='Extra stop-word files as LANG=PATH')
    parser.add_argument('--sentiment', action='store_true',
                        help='Add a sentiment score feature')
    parser.add_argument('--cv-scheme', type=str, default=config.CV_SCHEME,
                        choices=['repeated_kfold', 'bootstrap'])
    parser.add_argument('--output', type=str, default='models/text',
                        help='Output directory for models and reports')
    parser.add_argument('--random-state', type=int, default=config.RANDOM_STATE,
                        help='Random seed for reproducibility')

    return parser.parse_args()


def main():
    """Main training function."""
    args = parse_args()

    data_path = PROJECT_ROOT / args.data
    output_dir = PROJECT_ROOT / args.output
    token = os.getenv('HF_TOKEN')

    print("=" * 70)
    print(" ATTRITION - REVIEW TEXT PIPELINE")
    print("=" * 70)
    print(f"\n Configuration:")
    print(f"   Data: {data_path}")
    print(f"   Models: {args.models}")
    print(f"   Weighting: {args.weighting} (min doc frac {args.min_doc_frac})")
    print(f"   Multilingual strategy: {args.strategy}")
    print(f"   Sentiment feature: {args.sentiment}")

    language_stopwords = {}
    for entry in args.stopwords:
        language, _, path = entry.partition('=')
        language_stopwords[language] = DataLoader.load_stopwords(PROJECT_ROOT / path)

    normalizer = TextNormalizer(
        language=args.language,
        strategy=args.strategy,
        language_stopwords=language_stopwords or None,
        translator=HuggingFaceTranslationService(token=token) if args.strategy == 'translate' else None
    )
    scorer = SentimentScorer(HuggingFaceSentimentService(token=token)) if args.sentiment else None

    pipeline = TextSentimentPipeline(
        models=args.models,
        normalizer=normalizer,
        vectorizer=Vectorizer(weighting=args.weighting, min_doc_frac=args.min_doc_frac),
        scorer=scorer,
        splitter=DataSplitter(random_state=args.random_state),
        trainer_params={'cv_scheme': args.cv_scheme, 'random_state': args.random_state},
        language_column=args.language_column,
        output_dir=output_dir
    )

    try:
        loader = DataLoader(
            label_column=args.label,
            positive_label=args.positive,
            text_column=args.text_column
        )
        result = pipeline.run(loader.load_text(data_path))
    except PipelineError as exc:
        print(f"ERROR: {exc}")
        return 1

    print("\n" + "=" * 70)
    print(" TRAINING COMPLETE")
    print("=" * 70)
    print(f"\n   Vocabulary: {result.stats['vectorize'].get('n_terms_after')} terms")
    print(f"\n{result.comparison.round(4)}")
    print("\n" + "=" * 70)

    return 0


if __name__ == '__main__':
    sys.exit(main())
