from catalog_search.filters import And, Field, Leaf, Or, render_condition, render_filter
from catalog_search.patterns import generate_token_patterns
from catalog_search.query import (
    MAX_TOKEN_GROUPS,
    SearchMode,
    SearchQuery,
    build_search_filter,
    build_sku_conditions,
)


def _sku_patterns(expr):
    return [child.pattern for child in expr.children if isinstance(child, Leaf) and child.field is Field.SKU]


def test_parse_effective_tokens_drop_stopwords():
    query = SearchQuery.parse("Filtro de Óleo")
    assert query.normalized == "filtro de oleo"
    assert query.tokens == ("filtro", "de", "oleo")
    assert query.effective_tokens == ("filtro", "oleo")


def test_parse_keeps_stopwords_when_nothing_else_left():
    query = SearchQuery.parse("de")
    assert query.effective_tokens == ("de",)


def test_sku_conditions():
    query = SearchQuery.parse("ABC-12")
    patterns = [leaf.pattern for leaf in build_sku_conditions(query)]
    assert patterns == ["*abc12*", "*abc-12*", "*abc*12*"]


def test_sku_conditions_separator_stripped_variant():
    query = SearchQuery.parse("ab.c/12")
    patterns = [leaf.pattern for leaf in build_sku_conditions(query)]
    # normalized "ab c 12" -> "abc12"; stripped original is also "abc12"
    assert patterns == ["*abc12*", "*ab.c/12*", "*abc*12*"]

    query = SearchQuery.parse("Peça 12")
    patterns = [leaf.pattern for leaf in build_sku_conditions(query)]
    assert "*peça12*" in patterns


def test_single_token_flattens_title_and_sku():
    expr = build_search_filter("filtro")
    assert isinstance(expr, Or)
    leaves = expr.children
    assert all(isinstance(leaf, Leaf) for leaf in leaves)
    assert leaves[0] == Leaf(Field.TITLE, "*filtro*")
    assert leaves[1] == Leaf(Field.SKU, "*filtro*")
    titles = [leaf.pattern for leaf in leaves if leaf.field is Field.TITLE]
    assert titles == generate_token_patterns("filtro")
    assert len(set(leaves)) == len(leaves)


def test_multi_token_catalog_is_title_only_and_group():
    expr = build_search_filter("filtro oleo", SearchMode.CATALOG)
    assert isinstance(expr, Or)
    and_group = expr.children[0]
    assert isinstance(and_group, And)
    assert len(and_group.children) == 2
    for group in and_group.children:
        assert isinstance(group, Or)
        assert {leaf.field for leaf in group.children} == {Field.TITLE}
    assert _sku_patterns(expr) == ["*filtrooleo*", "*filtro*oleo*"]


def test_multi_token_autocomplete_adds_three_sku_patterns():
    expr = build_search_filter("filtro oleo", SearchMode.AUTOCOMPLETE)
    group = expr.children[0].children[0]
    sku_leaves = [leaf for leaf in group.children if leaf.field is Field.SKU]
    assert [leaf.pattern for leaf in sku_leaves] == generate_token_patterns("filtro")[:3]


def test_multi_token_caps_groups():
    expr = build_search_filter("filtro oleo motor diesel bomba injetora")
    assert len(expr.children[0].children) == MAX_TOKEN_GROUPS


def test_fallback_for_single_letter_tokens():
    expr = build_search_filter("a-b c")
    assert expr == Or((Leaf(Field.TITLE, "*a*b*c*"), Leaf(Field.SKU, "*a*b*c*")))


def test_render_filter_grammar():
    expr = build_search_filter("filtro oleo")
    rendered = render_filter(expr)
    assert rendered.startswith("or(and(or(title.ilike.*filtro*,title.ilike.*fíltro*,")
    assert rendered.endswith(",sku.ilike.*filtrooleo*,sku.ilike.*filtro*oleo*)")


def test_render_maps_columns_and_quotes_reserved_characters():
    columns = {Field.TITLE: "titulo", Field.SKU: "sku"}
    assert render_condition(Leaf(Field.TITLE, "*oleo*"), columns) == "titulo.ilike.*oleo*"
    assert render_condition(Leaf(Field.SKU, "*a,b*")) == 'sku.ilike."*a,b*"'
    assert render_condition(Leaf(Field.SKU, '*a"b*')) == 'sku.ilike."*a\\"b*"'


def test_render_wraps_non_or_top_level():
    assert render_filter(Leaf(Field.SKU, "*x*")) == "or(sku.ilike.*x*)"
    expr = And((Leaf(Field.TITLE, "*a*"), Leaf(Field.TITLE, "*b*")))
    assert render_filter(expr) == "or(and(title.ilike.*a*,title.ilike.*b*))"
