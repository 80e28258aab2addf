"""Text similarity for repetition detection.

Implements TF-IDF cosine similarity over character n-grams, so "can we
play now" and "can we play now??" still read as the same request.
"""

import math
from collections import Counter
from typing import List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)


class TFIDFCosineSimilarity:
    """
    Computes TF-IDF cosine similarity between utterances.

    Formula:
    - TF(t, d) = count of term t in doc d / total terms in d
    - IDF(t) = log(1 + N / (1 + DF(t))) where N = total docs
    - TF-IDF = TF * IDF
    - Cosine similarity = (A . B) / (||A|| * ||B||)
    """

    def __init__(
        self,
        similarity_threshold: float = 0.8,
        min_ngram: int = 2,
        max_ngram: int = 3,
    ):
        self.similarity_threshold = similarity_threshold
        self.min_ngram = min_ngram
        self.max_ngram = max_ngram

    def compute_similarity(self, text1: str, text2: str) -> float:
        """
        Cosine similarity in [0, 1]; 0.0 when either text is empty.
        """
        if not text1 or not text2:
            return 0.0

        docs = [self._tokenize(text1), self._tokenize(text2)]
        vector1 = self._tfidf_vector(docs[0], docs)
        vector2 = self._tfidf_vector(docs[1], docs)

        return self._cosine_similarity(vector1, vector2)

    def similar_count(self, text: str, previous: List[str]) -> Tuple[int, float]:
        """
        Count earlier utterances at or above the threshold.

        Returns:
            (count, max_similarity)
        """
        count = 0
        max_similarity = 0.0
        for earlier in previous:
            similarity = self.compute_similarity(text, earlier)
            max_similarity = max(max_similarity, similarity)
            if similarity >= self.similarity_threshold:
                count += 1
        if count:
            logger.debug(
                "utterance_repeated",
                count=count,
                similarity=round(max_similarity, 3),
            )
        return count, max_similarity

    def _tokenize(self, text: str) -> List[str]:
        """Character n-grams over the lower-cased, whitespace-collapsed text."""
        text = " ".join(text.lower().split())
        tokens = []
        for n in range(self.min_ngram, self.max_ngram + 1):
            for i in range(len(text) - n + 1):
                tokens.append(text[i:i + n])
        return tokens

    def _tfidf_vector(self, doc_tokens: List[str], all_doc_tokens: List[List[str]]) -> dict:
        tf = Counter(doc_tokens)
        total_terms = sum(tf.values())
        if not total_terms:
            return {}

        df: Counter = Counter()
        for tokens in all_doc_tokens:
            for token in set(tokens):
                df[token] += 1

        total_docs = len(all_doc_tokens)
        return {
            term: (count / total_terms) * math.log(1 + total_docs / (1 + df[term]))
            for term, count in tf.items()
        }

    def _cosine_similarity(self, vec1: dict, vec2: dict) -> float:
        if not vec1 or not vec2:
            return 0.0

        dot_product = sum(value * vec2.get(term, 0.0) for term, value in vec1.items())
        mag1 = math.sqrt(sum(v ** 2 for v in vec1.values()))
        mag2 = math.sqrt(sum(v ** 2 for v in vec2.values()))

        if mag1 == 0 or mag2 == 0:
            return 0.0

        # Clamp float noise so identical texts compare as exactly 1.0
        return min(dot_product / (mag1 * mag2), 1.0)


def create_similarity_calculator(threshold: Optional[float] = None) -> TFIDFCosineSimilarity:
    """Factory used by the repetition detector."""
    return TFIDFCosineSimilarity(
        similarity_threshold=0.8 if threshold is None else threshold
    )
