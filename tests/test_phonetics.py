"""Regression tests for text folding and phonetic helpers."""

from product_search.phonetics import fold_text, to_phonetic


def test_fold_text_strips_accents_and_punctuation():
    assert fold_text("Café-Noir (Édition)") == "cafe noir edition"
    assert fold_text(None) == ""


def test_fold_text_collapses_stretched_letters():
    assert fold_text("iphoooone") == "iphone"
    assert fold_text("apple") == "apple"


def test_to_phonetic_aligns_misspellings():
    """Phonetic codes make close spellings meet without edit distance."""

    assert to_phonetic("samsung") == to_phonetic("samsang")
    assert to_phonetic("16 128") == ""


def test_to_phonetic_emits_codes():
    assert to_phonetic("bosch headphones")
    assert to_phonetic("") == ""
