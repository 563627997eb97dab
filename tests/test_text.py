import numpy as np
import pytest

from attrition_pipeline import SchemaError, TextNormalizer, Vectorizer


def normalizer(**kwargs):
    kwargs.setdefault('stopwords', [])
    return TextNormalizer(**kwargs).fit()


def test_union_vocabulary_and_one_hot_rows():
    corpus = normalizer().normalize_corpus(['good job great team', 'terrible management bad pay'])
    terms = Vectorizer(weighting='tf', min_doc_frac=0.0, verbose=False).build(corpus)

    assert set(terms.vocabulary) == {
        'good', 'job', 'great', 'team', 'terrible', 'management', 'bad', 'pay'
    }
    assert terms.shape == (2, 8)
    frame = terms.to_frame()
    assert set(frame.columns[(frame.loc[0] == 1).to_numpy()]) == {'good', 'job', 'great', 'team'}
    assert set(frame.columns[(frame.loc[1] == 1).to_numpy()]) == {'terrible', 'management', 'bad', 'pay'}
    assert set(np.unique(frame.to_numpy())) == {0, 1}


def test_normalization_steps():
    text = 'The 2 BEST team,   the best   manager!! 100%'
    assert normalizer(stopwords=['the']).normalize_corpus([text]) == ('best team best manager',)


def test_stopwords_with_attached_punctuation_are_removed():
    assert normalizer(stopwords=['the', "don't"]).normalize_corpus(["The, (don't) stop"]) == ('stop',)


def test_normalization_is_idempotent():
    norm = normalizer(stopwords=['the', 'and', 'a'])
    corpus = ['The team—and a 3rd manager—were GREAT!', "It's well-known: a_b c\td"]
    once = norm.normalize_corpus(corpus)
    assert norm.normalize_corpus(once) == once


def test_document_count_is_preserved():
    corpus = ['', '123', 'ok', '!!!']
    assert len(normalizer().normalize_corpus(corpus)) == len(corpus)


def test_pruning_removes_rare_terms():
    corpus = ['pay pay team', 'pay manager', 'pay team', 'rare']
    vectorizer = Vectorizer(min_doc_frac=0.5, verbose=False)
    terms = vectorizer.build(corpus)

    assert terms.shape[0] == len(corpus)
    assert set(terms.vocabulary) == {'pay', 'team'}
    assert vectorizer.stats['n_terms_after'] <= vectorizer.stats['n_terms_before']
    assert terms.to_frame().loc[0, 'pay'] == 2


def test_tfidf_downweights_common_terms():
    terms = Vectorizer(weighting='tfidf', min_doc_frac=0.0, verbose=False).build(
        ['pay team', 'pay manager', 'pay culture']
    )
    frame = terms.to_frame()
    assert frame.loc[0, 'pay'] < frame.loc[0, 'team']


def test_transform_uses_built_vocabulary():
    vectorizer = Vectorizer(min_doc_frac=0.0, verbose=False)
    built = vectorizer.build(['good team', 'bad pay'])
    other = vectorizer.transform(['good pay unknown', 'nothing'])
    assert other.vocabulary == built.vocabulary
    assert other.shape == (2, len(built.vocabulary))
    assert other.matrix[1].sum() == 0


def test_multilingual_strategy_requires_language_tags():
    norm = normalizer(strategy='tokenize')
    with pytest.raises(SchemaError, match='language tag'):
        norm.normalize_corpus(['gute arbeit'])


def test_tokenize_strategy_uses_language_resources():
    norm = normalizer(
        strategy='tokenize',
        language_stopwords={'en': ['the'], 'de': ['die', 'und']},
        tokenizers={'en': str.split, 'de': str.split},
    )
    corpus = norm.normalize_corpus(['The team rocks', 'Die Arbeit und das Team'], ['en', 'de'])
    assert corpus == ('team rocks', 'arbeit das team')


class FakeTranslator:
    def __init__(self):
        self.requests = []

    def translate(self, text, source, target):
        self.requests.append((text, source, target))
        return {'Schlechte Bezahlung': 'Bad pay'}.get(text, text)


def test_translate_strategy_translates_non_target_documents():
    translator = FakeTranslator()
    norm = normalizer(
        strategy='translate', translator=translator, language_stopwords={'en': []}
    )
    corpus = norm.normalize_corpus(['Great team', 'Schlechte Bezahlung'], ['en', 'de'])

    assert corpus == ('great team', 'bad pay')
    assert translator.requests == [('Schlechte Bezahlung', 'de', 'en')]


def test_unknown_strategy():
    with pytest.raises(ValueError):
        TextNormalizer(stopwords=[], strategy='guess').fit()
