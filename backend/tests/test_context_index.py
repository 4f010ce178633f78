"""Tests for similarity ranking and the context index."""
import random
from datetime import datetime, timedelta, timezone

import pytest

from vaultbot.context import ContextIndex, cosine_similarity, rank_by_similarity
from vaultbot.db.models import ContextEntry, Scope

SCOPE = Scope(chat_id=10, user_id=20)
OTHER_SCOPE = Scope(chat_id=10, user_id=21)
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_entry(entry_id, embedding, minutes=0, title=None):
    return ContextEntry(
        id=entry_id,
        scope=SCOPE,
        title=title or f"entry{entry_id}",
        content=f"content {entry_id}",
        embedding=embedding,
        created_at=T0 + timedelta(minutes=minutes),
    )


class TestCosineSimilarity:

    def test_identical(self):
        assert cosine_similarity([1, 2, 3], [1, 2, 3]) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)

    def test_opposite(self):
        assert cosine_similarity([1, 1], [-1, -1]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1, 2], [10, 20]) == pytest.approx(1.0)

    def test_zero_vector_is_zero(self):
        assert cosine_similarity([0, 0, 0], [1, 2, 3]) == 0.0
        assert cosine_similarity([0, 0], [0, 0]) == 0.0

    def test_dimension_mismatch(self):
        with pytest.raises(ValueError):
            cosine_similarity([1, 2], [1, 2, 3])


class TestRankBySimilarity:

    def test_threshold_is_exclusive(self):
        entries = [make_entry(1, [1.0, 0.0]), make_entry(2, [1.0, 1.0])]
        boundary = cosine_similarity([1.0, 1.0], [1.0, 0.0])
        results = rank_by_similarity(entries, [1.0, 0.0], threshold=boundary)
        assert [r.entry.id for r in results] == [1]

    def test_top_k_and_order(self):
        entries = [
            make_entry(1, [1.0, 0.2]),
            make_entry(2, [1.0, 0.0]),
            make_entry(3, [1.0, 0.5]),
            make_entry(4, [1.0, 0.1]),
            make_entry(5, [1.0, 0.3]),
        ]
        results = rank_by_similarity(entries, [1.0, 0.0], threshold=0.5, top_k=4)
        assert [r.entry.id for r in results] == [2, 4, 1, 5]

    def test_ties_prefer_most_recent(self):
        entries = [
            make_entry(1, [1.0, 0.0], minutes=0),
            make_entry(2, [2.0, 0.0], minutes=5),
            make_entry(3, [3.0, 0.0], minutes=2),
        ]
        results = rank_by_similarity(entries, [1.0, 0.0])
        assert [r.entry.id for r in results] == [2, 3, 1]

    def test_empty(self):
        assert rank_by_similarity([], [1.0, 0.0]) == []

    def test_non_positive_top_k(self):
        assert rank_by_similarity([make_entry(1, [1.0, 0.0])], [1.0, 0.0], top_k=0) == []

    def test_random_properties(self):
        rng = random.Random(7)
        for _ in range(25):
            entries = [
                make_entry(i, [rng.uniform(-1, 1) for _ in range(6)], minutes=i)
                for i in range(1, 15)
            ]
            query = [rng.uniform(-1, 1) for _ in range(6)]
            threshold = rng.uniform(-0.5, 0.8)
            top_k = rng.randint(1, 6)

            results = rank_by_similarity(entries, query, threshold, top_k)
            scores = [r.score for r in results]
            assert len(results) <= top_k
            assert all(score > threshold for score in scores)
            assert scores == sorted(scores, reverse=True)


class TestContextIndex:

    async def test_insert_and_list_most_recent_first(self, context_repo):
        index = ContextIndex(context_repo)
        await index.insert(SCOPE, "recipe", "bake at 350", [1.0, 0.0])
        await index.insert(SCOPE, "Recipes old", "fry it", [0.0, 1.0])
        await index.insert(OTHER_SCOPE, "recipe", "not mine", [1.0, 0.0])

        entries = await index.list_by_title(SCOPE)
        assert [e.content for e in entries] == ["fry it", "bake at 350"]

    async def test_list_filter_is_case_insensitive_substring(self, context_repo):
        index = ContextIndex(context_repo)
        await index.insert(SCOPE, "Recipe", "bake at 350", [1.0, 0.0])
        await index.insert(SCOPE, "travel", "pack light", [0.0, 1.0])

        assert [e.title for e in await index.list_by_title(SCOPE, "CIP")] == ["Recipe"]
        assert await index.list_by_title(SCOPE, "nothing") == []

    async def test_blank_filter_lists_everything(self, context_repo):
        index = ContextIndex(context_repo)
        await index.insert(SCOPE, "a", "x", [1.0])
        assert len(await index.list_by_title(SCOPE, "   ")) == 1

    async def test_query_empty_scope(self, context_repo):
        index = ContextIndex(context_repo)
        assert await index.query_similar(SCOPE, [1.0, 0.0]) == []

    async def test_query_scoped_to_owner(self, context_repo):
        index = ContextIndex(context_repo)
        await index.insert(OTHER_SCOPE, "recipe", "not mine", [1.0, 0.0])
        assert await index.query_similar(SCOPE, [1.0, 0.0]) == []

    async def test_query_skips_mismatched_dimensions(self, context_repo):
        index = ContextIndex(context_repo)
        await index.insert(SCOPE, "old", "old model", [1.0, 0.0, 0.0])
        await index.insert(SCOPE, "new", "new model", [1.0, 0.0])

        results = await index.query_similar(SCOPE, [1.0, 0.0])
        assert [r.entry.title for r in results] == ["new"]

    async def test_query_returns_scores(self, context_repo):
        index = ContextIndex(context_repo)
        await index.insert(SCOPE, "recipe", "bake at 350", [0.9, 0.1])
        results = await index.query_similar(SCOPE, [0.88, 0.14], threshold=0.5, top_k=4)
        assert len(results) == 1
        assert results[0].score > 0.99
