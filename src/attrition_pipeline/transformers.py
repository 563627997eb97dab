"""
sklearn-compatible text normalization for review corpora.

Steps, in order:
1. strip digits
2. lowercase
3. remove stop words
4. strip punctuation
5. collapse whitespace

Multilingual corpora are handled with one strategy for the whole corpus:
'tokenize' routes each document through its language's tokenizer and stop
words, 'translate' sends non-target documents through a translation service
first. Both need a language tag per document.
"""

import re
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from sklearn.base import BaseEstimator, TransformerMixin

from . import config
from .exceptions import SchemaError
from .schema import Corpus

_DIGITS = re.compile(r'\d+')
_PUNCTUATION = re.compile(r'[^\w\s]|_')
_WHITESPACE = re.compile(r'\s+')

STRATEGIES = ('none', 'tokenize', 'translate')

# nltk corpus names for the language tags used in review files
NLTK_LANGUAGES = {
    'en': 'english',
    'de': 'german',
    'fr': 'french',
    'es': 'spanish',
    'it': 'italian',
    'nl': 'dutch',
    'pt': 'portuguese',
}


def _ensure_nltk(resource: str, package: str) -> None:
    import nltk

    try:
        nltk.data.find(resource)
    except LookupError:
        nltk.download(package, quiet=True)


def nltk_stopwords(language: str) -> frozenset:
    """Stop words of a language from the nltk stopwords corpus."""
    from nltk.corpus import stopwords

    _ensure_nltk('corpora/stopwords', 'stopwords')
    language = NLTK_LANGUAGES.get(language, language)
    return frozenset(w.lower() for w in stopwords.words(language))


def nltk_tokenizer(language: str) -> Callable[[str], List[str]]:
    """Language-specific nltk word tokenizer."""
    from nltk.tokenize import word_tokenize

    _ensure_nltk('tokenizers/punkt_tab', 'punkt_tab')
    language = NLTK_LANGUAGES.get(language, language)
    return lambda text: word_tokenize(text, language=language)


class TextNormalizer(BaseEstimator, TransformerMixin):
    """
    Normalizes every document of a corpus the same way.

    Normalizing an already normalized corpus leaves it unchanged.
    """

    def __init__(
        self,
        stopwords: Optional[Iterable[str]] = None,
        language: Optional[str] = config.STOPWORD_LANGUAGE,
        strategy: str = 'none',
        language_stopwords: Optional[Dict[str, Iterable[str]]] = None,
        tokenizers: Optional[Dict[str, Callable[[str], List[str]]]] = None,
        translator=None,
        target_language: str = config.TARGET_LANGUAGE
    ):
        """
        Args:
            stopwords: Explicit stop-word set; overrides `language`
            language: nltk stop-word language used when stopwords is None;
                None means no stop words
            strategy: 'none', 'tokenize' or 'translate'
            language_stopwords: Per-language stop words ('tokenize' strategy);
                languages without an entry use nltk's list
            tokenizers: Per-language tokenizers ('tokenize' strategy);
                languages without an entry use nltk's word_tokenize
            translator: Service with translate(text, source, target)
                ('translate' strategy)
            target_language: Language every document ends up in ('translate')
        """
        self.stopwords = stopwords
        self.language = language
        self.strategy = strategy
        self.language_stopwords = language_stopwords
        self.tokenizers = tokenizers
        self.translator = translator
        self.target_language = target_language

    def fit(self, X=None, y=None):
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy: {self.strategy}. Available: {STRATEGIES}")
        if self.strategy == 'translate' and self.translator is None:
            raise ValueError("The 'translate' strategy needs a translator")

        if self.stopwords is not None:
            self.stopwords_ = frozenset(w.lower() for w in self.stopwords)
        elif self.language:
            self.stopwords_ = nltk_stopwords(self.language)
        else:
            self.stopwords_ = frozenset()
        self._language_cache: Dict[str, frozenset] = {}
        return self

    def _stopwords_for(self, language: Optional[str]) -> frozenset:
        if language is None or self.strategy == 'none':
            return self.stopwords_
        if language not in self._language_cache:
            given = (self.language_stopwords or {}).get(language)
            self._language_cache[language] = frozenset(w.lower() for w in given) \
                if given is not None else nltk_stopwords(language)
        return self._language_cache[language]

    def _tokenizer_for(self, language: str) -> Callable[[str], List[str]]:
        given = (self.tokenizers or {}).get(language)
        return given if given is not None else nltk_tokenizer(language)

    @staticmethod
    def _is_stopword(token: str, stopwords: frozenset) -> bool:
        # Checking the de-punctuated form too keeps normalization idempotent
        return token.strip('\'".,;:!?()[]{}-') in stopwords \
            or _PUNCTUATION.sub('', token) in stopwords

    def normalize(self, text: str, stopwords: Optional[frozenset] = None) -> str:
        """Apply the shared transforms to a single document."""
        stopwords = self.stopwords_ if stopwords is None else stopwords
        text = _DIGITS.sub('', text)
        text = text.lower()
        if stopwords:
            text = ' '.join(t for t in text.split() if not self._is_stopword(t, stopwords))
        text = _PUNCTUATION.sub('', text)
        return _WHITESPACE.sub(' ', text).strip()

    def normalize_corpus(self, corpus: Sequence[str], languages: Optional[Sequence[str]] = None) -> Corpus:
        """
        Normalize every document; the output has one document per input.

        Args:
            corpus: Raw documents
            languages: Language tag per document ('tokenize'/'translate')

        Returns:
            Normalized corpus in the same order
        """
        if not hasattr(self, 'stopwords_'):
            self.fit()

        if self.strategy == 'none':
            return tuple(self.normalize(doc) for doc in corpus)

        if languages is None or len(languages) != len(corpus):
            raise SchemaError(
                'A language tag per document is required for multilingual normalization',
                stage='normalize',
                context={'strategy': self.strategy, 'documents': len(corpus)}
            )

        if self.strategy == 'tokenize':
            return tuple(
                self.normalize(' '.join(self._tokenizer_for(lang)(doc)), self._stopwords_for(lang))
                for doc, lang in zip(corpus, languages)
            )

        target_stopwords = self._stopwords_for(self.target_language)
        normalized = []
        for doc, lang in zip(corpus, languages):
            if lang != self.target_language and doc.strip():
                doc = self.translator.translate(doc, lang, self.target_language)
            normalized.append(self.normalize(doc, target_stopwords))
        return tuple(normalized)

    def transform(self, X, languages: Optional[Sequence[str]] = None):
        return list(self.normalize_corpus(list(X), languages))
