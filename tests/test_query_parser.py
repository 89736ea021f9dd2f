"""Query interpretation: Hinglish rewrites, spelling fixes, intent and entities."""

import dataclasses

import pytest

from product_search.query_parser import ParsedQuery, QueryInterpreter, parse_query
from product_search.vocabulary import DEFAULT_VOCABULARY, SubstitutionTable, Vocabulary


def test_stopwords_are_dropped_in_order():
    parsed = parse_query("the cheap iphone for a good price")

    assert parsed.tokens == ("cheap", "iphone", "good", "price")


def test_longest_colloquial_phrase_wins():
    """"sasta wala" must be rewritten as a whole before "sasta" can match."""

    parsed = parse_query("sasta wala iphone")

    assert parsed.normalized == "cheap iphone"
    assert parsed.intent.cheap is True
    assert parsed.tokens == ("cheap", "iphone")


def test_substitution_table_is_sorted_longest_first():
    phrases = DEFAULT_VOCABULARY.colloquialisms.phrases

    assert [len(p) for p in phrases] == sorted((len(p) for p in phrases), reverse=True)
    assert phrases.index("sasta wala") < phrases.index("sasta")
    assert phrases.index("naya wala") < phrases.index("naya")


def test_substitution_table_keeps_declaration_order_for_equal_lengths():
    table = SubstitutionTable.from_mapping({"ab": "x", "cd": "y", "abc": "z"})

    assert table.phrases == ("abc", "ab", "cd")


def test_misspellings_are_anchored_to_word_boundaries():
    """"samsun" -> "samsung" must not corrupt an already correct "samsung"."""

    assert parse_query("samsun galaxy").normalized == "samsung galaxy"
    assert parse_query("samsung galaxy").normalized == "samsung galaxy"
    assert parse_query("one plus nord").normalized == "oneplus nord"


def test_colloquial_phrases_are_replaced_everywhere():
    """Colloquial rewriting is a plain substring replace, unlike spelling fixes."""

    assert parse_query("best laptop").normalized == "best lapbest"
    assert parse_query("renewed phone").normalized == "relatested phone"
    assert parse_query("NAYA phone").normalized == "latest phone"


def test_whole_word_table_leaves_longer_words_alone():
    table = SubstitutionTable.from_mapping({"top": "best"})
    loose = SubstitutionTable.from_mapping({"top": "best"}, whole_words=False)

    assert table.apply("laptop on top") == "laptop on best"
    assert loose.apply("laptop on top") == "lapbest on best"


def test_unknown_words_pass_through():
    parsed = parse_query("zorblax gizmo")

    assert parsed.normalized == "zorblax gizmo"
    assert parsed.brand is None
    assert parsed.tokens == ("zorblax", "gizmo")


def test_misspelled_brand_with_price_ceiling():
    parsed = parse_query("ifone 16 under 70000")

    assert parsed.normalized == "iphone 16 under 70000"
    assert parsed.brand == "iphone"
    assert parsed.max_price == 70000
    assert parsed.min_price is None
    assert parsed.price_explicit is True
    assert parsed.intent.cheap is False
    assert parsed.intent.premium is False


def test_best_samsung_smartwatch():
    parsed = parse_query("best samsung smartwatch")

    assert parsed.brand == "samsung"
    assert parsed.intent.best is True
    assert parsed.price_explicit is False


def test_shorthand_price_without_qualifier_becomes_band():
    parsed = parse_query("samsung phone 30k")

    assert parsed.min_price == 21000
    assert parsed.max_price == 39000
    assert parsed.price_explicit is True


def test_shorthand_price_with_qualifier_is_a_ceiling():
    parsed = parse_query("laptop under 50k")

    assert parsed.max_price == 50000
    assert parsed.min_price is None


def test_grouped_rupee_amount_is_parsed():
    parsed = parse_query("phone up to ₹1,20,000")

    assert parsed.max_price == 120000
    assert parsed.min_price is None


def test_small_numbers_are_not_prices():
    parsed = parse_query("iphone 16")

    assert parsed.max_price is None
    assert parsed.min_price is None
    assert parsed.price_explicit is False


def test_bare_number_is_an_approximate_price():
    parsed = parse_query("headphones 2000")

    assert parsed.min_price == 1400
    assert parsed.max_price == 2600


def test_storage_sizes_are_not_prices():
    parsed = parse_query("oneplus 256gb")

    assert parsed.storage_gb == 256
    assert parsed.price_explicit is False


def test_storage_and_ram_extraction():
    parsed = parse_query("phone with 8gb ram and 256gb storage")

    assert parsed.ram_gb == 8
    assert parsed.storage_gb == 256


def test_terabyte_storage_is_converted():
    assert parse_query("1tb laptop").storage_gb == 1024


def test_more_storage_defaults_floor():
    parsed = parse_query("jyada storage wala phone")

    assert parsed.intent.more_storage is True
    assert parsed.storage_gb == 256


def test_hindi_color_is_translated():
    parsed = parse_query("laal iphone")

    assert parsed.color == "red"
    assert parsed.normalized == "red iphone"


def test_intent_flags_are_independent():
    parsed = parse_query("naya sasta rugged phone")

    assert parsed.intent.latest is True
    assert parsed.intent.cheap is True
    assert parsed.intent.strong is True
    assert parsed.intent.best is False


def test_premium_keywords():
    assert parse_query("samsung ultra").intent.premium is True
    assert parse_query("mahenga phone").intent.premium is True


def test_brand_takes_first_declared_match():
    """"apple" precedes "iphone" in the brand list."""

    assert parse_query("apple iphone").brand == "apple"


def test_empty_query_yields_defaults():
    for raw in ("", "   ", None):
        parsed = parse_query(raw)
        assert parsed.tokens == ()
        assert parsed.normalized == ""
        assert parsed.is_empty
        assert parsed.intent.cheap is False
        assert parsed.max_price is None


def test_custom_vocabulary_is_used():
    vocabulary = Vocabulary(
        version="test",
        colloquialisms=SubstitutionTable.from_mapping({"dhasu": "best"}),
        misspellings=SubstitutionTable.from_mapping({"nokla": "nokia"}),
        brands=("nokia",),
        colors=("black",),
        stopwords=frozenset(),
    )
    parsed = QueryInterpreter(vocabulary).parse("dhasu nokla")

    assert parsed.normalized == "best nokia"
    assert parsed.brand == "nokia"
    assert parsed.intent.best is True


def test_to_dict_shape():
    payload = parse_query("ifone 16 under 70000").to_dict()

    assert payload["normalised"] == "iphone 16 under 70000"
    assert payload["intent"]["moreStorage"] is False
    assert payload["maxPrice"] == 70000
    assert payload["priceExplicit"] is True


def test_parsed_query_is_immutable():
    parsed = ParsedQuery()

    with pytest.raises(dataclasses.FrozenInstanceError):
        parsed.brand = "apple"  # type: ignore[misc]
