import math
import threading
import time

import pytest

from news_dedup.embeddings import OpenAIEmbedder
from news_dedup.errors import ConfigurationError, VectorizationError
from news_dedup.vectorizers import (
    EmbeddingVectorizer,
    TfidfVectorizer,
    get_vectorizer,
)
from news_dedup.vectors import DenseVector, SparseVector, cosine


# --- helpers -----------------------------------------------------------------


class StubEmbedder:
    """Deterministic embedder: bag of letters a-z as a 26-dim vector."""

    def __init__(self):
        self.batches = []
        self._lock = threading.Lock()

    @property
    def texts_seen(self):
        return [text for batch in self.batches for text in batch]

    def embed_batch(self, texts):
        with self._lock:
            self.batches.append(list(texts))
        vectors = []
        for text in texts:
            vec = [0.0] * 26
            for ch in text:
                if "a" <= ch <= "z":
                    vec[ord(ch) - ord("a")] += 1.0
            vectors.append(vec)
        return vectors


class FailingEmbedder:
    def embed_batch(self, texts):
        raise RuntimeError("Simulated encoder outage")


class SlowEmbedder:
    def embed_batch(self, texts):
        time.sleep(0.5)
        return [[1.0, 0.0] for _ in texts]


class RaggedEmbedder:
    """Returns a shorter vector for one specific text."""

    def embed_batch(self, texts):
        return [[1.0, 2.0] if text == "short" else [1.0, 2.0, 3.0] for text in texts]


class NanEmbedder:
    def embed_batch(self, texts):
        return [[math.nan, 0.0, 0.0] if text == "a" else [0.0, 1.0, 0.0] for text in texts]


class DroppingEmbedder:
    """Loses the last vector of every batch."""

    def embed_batch(self, texts):
        return [[1.0, 0.0] for _ in texts][:-1]


# --- sparse -------------------------------------------------------------------


def test_tfidf_collect_fits_vocabulary_over_whole_batch():
    model = TfidfVectorizer.collect(["chat chat souris", "chat soleil", ""])

    assert list(model.get_feature_names_out()) == ["chat", "soleil", "souris"]
    idf = dict(zip(model.get_feature_names_out(), model.idf_))
    assert idf["chat"] == pytest.approx(1 + math.log(4 / 3))
    assert idf["souris"] == pytest.approx(1 + math.log(4 / 2))


def test_tfidf_weights_follow_formula():
    texts = ["chat chat souris", "chat soleil", "pluie"]
    vectors = TfidfVectorizer().vectorize(texts)

    n = 3
    idf_chat = 1 + math.log((1 + n) / (1 + 2))
    idf_souris = 1 + math.log((1 + n) / (1 + 1))

    weights = vectors[0].weights
    assert weights["chat"] == pytest.approx(2 * idf_chat)
    assert weights["souris"] == pytest.approx(idf_souris)
    assert set(weights) == {"chat", "souris"}


def test_tfidf_weigh_uses_statistics_from_collect():
    model = TfidfVectorizer.collect(["chat souris", "chat soleil"])

    vectors = TfidfVectorizer.weigh(model, ["chat souris", "chat soleil"])

    assert vectors[0].weights["chat"] == pytest.approx(1.0)
    assert vectors[0].weights["souris"] == pytest.approx(1 + math.log(3 / 2))


def test_tfidf_rare_terms_weigh_more_than_common_terms():
    texts = ["commun rare", "commun autre", "commun encore"]
    weights = TfidfVectorizer().vectorize(texts)[0].weights

    assert weights["rare"] > weights["commun"] > 0


def test_tfidf_term_in_every_document_gets_the_minimum_idf():
    texts = ["commun rare", "commun autre", "commun encore", "commun unique"]
    weights = TfidfVectorizer().vectorize(texts)[0].weights

    assert weights["commun"] == pytest.approx(1.0)
    assert weights["rare"] == pytest.approx(1 + math.log(5 / 2))


def test_tfidf_keeps_single_letter_tokens():
    vectors = TfidfVectorizer().vectorize(["a b", "", "c"])

    assert set(vectors[0].weights) == {"a", "b"}


def test_tfidf_returns_one_sparse_vector_per_document():
    vectors = TfidfVectorizer().vectorize(["a b", "", "c"])

    assert len(vectors) == 3
    assert all(isinstance(v, SparseVector) for v in vectors)
    assert len(vectors[1]) == 0


def test_tfidf_batch_without_terms_gives_zero_vectors():
    vectors = TfidfVectorizer().vectorize(["", ""])

    assert [len(v) for v in vectors] == [0, 0]
    assert cosine(vectors[0], vectors[1]) == 0.0


def test_tfidf_identical_documents_score_one():
    vectors = TfidfVectorizer().vectorize(["chat mange souris", "chat mange souris"])
    assert cosine(vectors[0], vectors[1]) == pytest.approx(1.0)


def test_tfidf_is_deterministic():
    texts = ["chat mange souris", "soleil brille", "chat dort"]
    first = [v.weights for v in TfidfVectorizer().vectorize(texts)]
    second = [v.weights for v in TfidfVectorizer().vectorize(texts)]
    assert first == second


def test_tfidf_weights_depend_on_whole_batch():
    """Adding a document changes the weights of documents already present."""
    alone = TfidfVectorizer().vectorize(["chat souris", "chat soleil"])[0].weights
    grown = TfidfVectorizer().vectorize(
        ["chat souris", "chat soleil", "souris pluie"]
    )[0].weights

    assert alone != grown


def test_tfidf_empty_batch_raises():
    with pytest.raises(VectorizationError, match="empty batch"):
        TfidfVectorizer().vectorize([])


# --- dense --------------------------------------------------------------------


def test_embedding_vectorizer_sends_texts_in_batches():
    embedder = StubEmbedder()
    texts = ["chat", "souris", "soleil", "pluie", "vent"]

    vectors = EmbeddingVectorizer(embedder, max_workers=2, batch_size=2).vectorize(texts)

    assert len(vectors) == 5
    assert all(isinstance(v, DenseVector) and v.dimension == 26 for v in vectors)
    assert sorted(len(batch) for batch in embedder.batches) == [1, 2, 2]
    assert sorted(embedder.texts_seen) == sorted(texts)


def test_embedding_vectorizer_preserves_input_order():
    vectors = EmbeddingVectorizer(StubEmbedder(), batch_size=1).vectorize(["aaa", "bbb"])

    assert vectors[0].values[0] == 3.0
    assert vectors[1].values[1] == 3.0


def test_embedding_vectorizer_skips_empty_texts():
    embedder = StubEmbedder()

    vectors = EmbeddingVectorizer(embedder).vectorize(["chat", "", "chien"])

    assert "" not in embedder.texts_seen
    assert vectors[1].dimension == 26
    assert vectors[1].norm() == 0.0
    assert cosine(vectors[0], vectors[1]) == 0.0


def test_embedding_vectorizer_all_empty_texts_never_call_encoder():
    embedder = StubEmbedder()

    vectors = EmbeddingVectorizer(embedder).vectorize(["", ""])

    assert embedder.batches == []
    assert cosine(vectors[0], vectors[1]) == 0.0


def test_embedding_vectorizer_wraps_encoder_failure():
    with pytest.raises(VectorizationError, match="Simulated encoder outage"):
        EmbeddingVectorizer(FailingEmbedder()).vectorize(["a", "b"])


def test_embedding_vectorizer_timeout_raises():
    vectorizer = EmbeddingVectorizer(SlowEmbedder(), timeout=0.05)

    with pytest.raises(VectorizationError, match="timed out"):
        vectorizer.vectorize(["a", "b"])


def test_embedding_vectorizer_dimension_mismatch_raises():
    with pytest.raises(VectorizationError, match="Inconsistent embedding dimension"):
        EmbeddingVectorizer(RaggedEmbedder()).vectorize(["long", "short"])


def test_embedding_vectorizer_rejects_non_finite_vectors():
    with pytest.raises(VectorizationError, match="non-finite"):
        EmbeddingVectorizer(NanEmbedder()).vectorize(["a", "c"])


def test_embedding_vectorizer_rejects_missing_vectors():
    with pytest.raises(VectorizationError, match="1 vectors for 2 documents"):
        EmbeddingVectorizer(DroppingEmbedder()).vectorize(["a", "b"])


def test_embedding_vectorizer_empty_batch_raises():
    embedder = StubEmbedder()
    with pytest.raises(VectorizationError, match="empty batch"):
        EmbeddingVectorizer(embedder).vectorize([])
    assert embedder.batches == []


# --- factory ------------------------------------------------------------------


def test_get_vectorizer_sparse():
    assert isinstance(get_vectorizer("sparse"), TfidfVectorizer)


def test_get_vectorizer_dense_uses_given_embedder():
    embedder = StubEmbedder()
    vectorizer = get_vectorizer(
        "dense", embedder=embedder, timeout=5, max_workers=3, batch_size=8
    )

    assert isinstance(vectorizer, EmbeddingVectorizer)
    assert vectorizer.embedder is embedder
    assert vectorizer.timeout == 5
    assert vectorizer.max_workers == 3
    assert vectorizer.batch_size == 8


def test_get_vectorizer_dense_defaults_to_openai():
    vectorizer = get_vectorizer("dense", timeout=12)
    assert isinstance(vectorizer.embedder, OpenAIEmbedder)
    assert vectorizer.embedder.timeout == 12


def test_get_vectorizer_unknown_strategy_raises():
    with pytest.raises(ConfigurationError, match="Unknown vectorization strategy"):
        get_vectorizer("bm25")
