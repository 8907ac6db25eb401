"""
Unit tests cho core/tokenization/frequency.py
"""

import pytest

from core.tokenization.frequency import FrequencyIndex, build_frequency_map, index_tokens


class TestBuildFrequencyMap:
    def test_counts_duplicates(self):
        assert build_frequency_map(["你", "好", "world", "123", "你"]) == {
            "你": 2,
            "好": 1,
            "world": 1,
            "123": 1,
        }

    def test_case_sensitive(self):
        counts = build_frequency_map(["Apple", "apple", "APPLE"])
        assert counts == {"Apple": 1, "apple": 1, "APPLE": 1}

    def test_unicode_exact(self):
        """é precomposed va e + combining accent la hai token khac nhau."""
        counts = build_frequency_map(["café", "café"])
        assert len(counts) == 2

    def test_first_occurrence_order(self):
        counts = build_frequency_map(["b", "a", "b", "c", "a"])
        assert list(counts) == ["b", "a", "c"]

    def test_empty(self):
        assert build_frequency_map([]) == {}


class TestFrequencyIndex:
    def test_count_invariant(self):
        samples = [
            [],
            ["a"],
            ["a", "a", "a"],
            ["x", "y", "x", "z", "y", "x"],
            ["你", "好", "你", "，", "，"],
        ]
        for tokens in samples:
            index = index_tokens(tokens)
            assert sum(index.counts.values()) == len(tokens) == index.total
            assert index.unique == len(set(tokens))

    def test_empty_index(self):
        index = index_tokens([])
        assert index.counts == {}
        assert index.unique == 0
        assert index.total == 0

    def test_empty_indexes_do_not_share_counts(self):
        first = index_tokens([])
        second = index_tokens(())
        first.counts["leak"] = 1
        assert second.counts == {}
        assert index_tokens([]).counts == {}

    def test_count_of_missing_token(self):
        assert index_tokens(["a"]).count_of("b") == 0

    def test_most_common_orders_by_count_then_first_occurrence(self):
        index = index_tokens(["b", "a", "c", "a", "c", "d"])
        assert index.most_common(3) == [("a", 2), ("c", 2), ("b", 1)]

    def test_most_common_non_positive(self):
        assert index_tokens(["a"]).most_common(0) == []

    def test_is_frozen(self):
        index = FrequencyIndex(counts={"a": 1}, total=1)
        with pytest.raises(AttributeError):
            index.total = 5
        assert index.total == 1
