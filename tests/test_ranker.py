import math

import pytest

from coursechat.services.errors import EmbeddingFailed
from coursechat.services.ranker import RankedChunk, RelevanceRanker, build_context, cosine_similarity

from fakes import KeywordEmbedder


def test_cosine_similarity_is_symmetric():
    first = [0.3, -1.2, 4.0]
    second = [2.5, 0.1, -0.7]
    assert math.isclose(cosine_similarity(first, second), cosine_similarity(second, first))


def test_self_similarity_is_one():
    vector = [0.5, 2.0, -3.25, 7.0]
    assert cosine_similarity(vector, vector) == pytest.approx(1.0, abs=1e-6)


def test_zero_vector_scores_zero():
    assert cosine_similarity([0.0, 0.0, 0.0], [1.0, 2.0, 3.0]) == 0.0
    assert cosine_similarity([], [1.0, 2.0, 3.0]) == 0.0


def test_length_mismatch_rejected():
    with pytest.raises(ValueError):
        cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])


def test_rank_keeps_top_k_in_descending_order():
    ranker = RelevanceRanker(KeywordEmbedder(), top_k=2)
    chunks = ["stack and queue", "binary tree", "graph sort", "binary search tree"]

    ranked = ranker.rank("binary search tree", chunks)

    assert [chunk.text for chunk in ranked] == ["binary search tree", "binary tree"]
    assert ranked[0].score == pytest.approx(1.0)
    assert ranked[0].score >= ranked[1].score


def test_rank_breaks_ties_by_original_order():
    ranker = RelevanceRanker(KeywordEmbedder(), top_k=3)
    chunks = ["hash table", "stack one", "stack two", "stack three", "stack four"]

    first_run = ranker.rank("stack", chunks)
    second_run = ranker.rank("stack", chunks)

    assert [chunk.position for chunk in first_run] == [1, 2, 3]
    assert first_run == second_run


def test_failed_chunk_embedding_sorts_last():
    embedder = KeywordEmbedder(fail_on={"binary search tree"})
    ranker = RelevanceRanker(embedder, top_k=3)

    ranked = ranker.rank("Explain a binary search tree", ["binary search tree", "binary tree", "hash"])

    assert [chunk.text for chunk in ranked] == ["binary tree", "binary search tree", "hash"]
    assert ranked[1].score == 0.0


def test_question_embedding_failure_is_fatal():
    embedder = KeywordEmbedder(fail_on={"what is a graph"})
    ranker = RelevanceRanker(embedder)
    with pytest.raises(EmbeddingFailed):
        ranker.rank("what is a graph", ["graph basics"])
    assert embedder.calls == ["what is a graph"]


def test_rank_without_chunks_returns_nothing():
    assert RelevanceRanker(KeywordEmbedder()).rank("stack", []) == []


def test_build_context_joins_with_blank_line():
    ranked = [RankedChunk(text="first", score=0.9, position=2), RankedChunk(text="second", score=0.5, position=0)]
    assert build_context(ranked) == "first\n\nsecond"
