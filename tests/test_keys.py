"""Cache key stability and uniqueness."""

import fnmatch

from storefront_search.keys import (
    search_cache_key,
    search_pattern,
    suggestions_cache_key,
    suggestions_pattern,
)
from storefront_search.query import SearchQuery


def test_key_lists_every_parameter_with_sentinels():
    key = search_cache_key(SearchQuery.build("Widget"))

    assert key == "search:widget:all:all:all:all:relevance:desc:20:0"


def test_logically_identical_queries_share_a_key():
    first = SearchQuery.build("  WIDGET ", min_price=10, sort_by="price", order="ASC", limit=5, offset=5)
    second = SearchQuery.build("widget", min_price=10.0, sort_by="price", order="asc", limit=5, offset=5)

    assert search_cache_key(first) == search_cache_key(second)


def test_category_set_and_unset_differ():
    unset = search_cache_key(SearchQuery.build("widget"))
    scoped = search_cache_key(SearchQuery.build("widget", category_id="c-gadgets"))

    assert unset != scoped


def test_category_named_like_the_sentinel_is_still_scoped():
    unset = search_cache_key(SearchQuery.build("widget"))
    scoped = search_cache_key(SearchQuery.build("widget", category_id="all"))

    assert unset != scoped
    assert scoped == "search:widget:c=all:all:all:all:relevance:desc:20:0"


def test_zero_price_bound_differs_from_no_bound():
    unset = search_cache_key(SearchQuery.build("widget"))
    zero = search_cache_key(SearchQuery.build("widget", min_price=0))
    zero_max = search_cache_key(SearchQuery.build("widget", max_price=0))

    assert len({unset, zero, zero_max}) == 3


def test_every_parameter_changes_the_key():
    base = dict(category_id="c1", min_price=1, max_price=9, in_stock=True, sort_by="name", order="asc", limit=10, offset=0)
    variants = [
        dict(base, category_id="c2"),
        dict(base, min_price=2),
        dict(base, max_price=8),
        dict(base, in_stock=False),
        dict(base, sort_by="date"),
        dict(base, order="desc"),
        dict(base, limit=11),
        dict(base, offset=10),
    ]
    keys = {search_cache_key(SearchQuery.build("widget", **base))}
    keys.update(search_cache_key(SearchQuery.build("widget", **params)) for params in variants)

    assert len(keys) == len(variants) + 1


def test_separators_in_user_input_cannot_collide():
    colon_query = search_cache_key(SearchQuery.build("a:b"))
    category_split = search_cache_key(SearchQuery.build("a", category_id="b"))

    assert colon_query != category_split
    assert "a%3Ab" in colon_query


def test_glob_characters_are_escaped():
    key = search_cache_key(SearchQuery.build("w*dget"))

    assert "*" not in key
    assert fnmatch.fnmatchcase(key, search_pattern())


def test_suggestion_keys_use_their_own_namespace():
    key = suggestions_cache_key("wi", 5)

    assert key == "suggestions:wi:5"
    assert suggestions_cache_key("wi", 6) != key
    assert not fnmatch.fnmatchcase(key, search_pattern())
    assert fnmatch.fnmatchcase(key, suggestions_pattern("wi"))


def test_prefix_pattern_selects_matching_queries():
    pattern = search_pattern("wid")

    assert fnmatch.fnmatchcase(search_cache_key(SearchQuery.build("widget")), pattern)
    assert not fnmatch.fnmatchcase(search_cache_key(SearchQuery.build("lamp")), pattern)
