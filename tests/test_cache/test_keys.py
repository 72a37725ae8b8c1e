"""Tests for cache key derivation."""

from __future__ import annotations

from anicache.cache.keys import make_key, normalize_params


class TestMakeKey:
    def test_joins_operation_and_parts(self) -> None:
        assert make_key("animeInfo", "21", "gogoanime") == "animeInfo-21-gogoanime"

    def test_operation_only(self) -> None:
        assert make_key("trending") == "trending"

    def test_deterministic(self) -> None:
        assert make_key("op", "a", "b") == make_key("op", "a", "b")

    def test_part_order_matters(self) -> None:
        """Parts are positional; only normalize_params removes ordering."""
        assert make_key("op", "a", "b") != make_key("op", "b", "a")

    def test_different_operations_differ(self) -> None:
        assert make_key("animeInfo", "21") != make_key("animeData", "21")


class TestNormalizeParams:
    def test_order_independent(self) -> None:
        """Equivalent parameter sets in different order map to the same key."""
        first = make_key("op", *normalize_params({"a": 1, "b": 2}))
        second = make_key("op", *normalize_params({"b": 2, "a": 1}))
        assert first == second

    def test_sorted_name_value_parts(self) -> None:
        assert normalize_params({"page": 2, "perPage": 20, "query": "naruto"}) == [
            "page=2",
            "perPage=20",
            "query=naruto",
        ]

    def test_none_values_dropped(self) -> None:
        assert normalize_params({"a": None, "b": "x"}) == ["b=x"]

    def test_booleans_lowercased(self) -> None:
        assert normalize_params({"dub": True}) == ["dub=true"]
        assert normalize_params({"dub": False}) == ["dub=false"]

    def test_nested_values_use_sorted_json(self) -> None:
        parts = normalize_params({"genres": ["Action", "Drama"], "meta": {"y": 1, "x": 2}})
        assert parts == ['genres=["Action","Drama"]', 'meta={"x":2,"y":1}']

    def test_different_values_differ(self) -> None:
        assert normalize_params({"page": 1}) != normalize_params({"page": 2})

    def test_empty_mapping(self) -> None:
        assert normalize_params({}) == []
