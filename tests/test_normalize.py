"""
Tests for Arabic normalization and gloss tokenizing.
"""
from arabic_ontology.normalize import (
    arabic_contains,
    arabic_matches,
    gloss_tokens,
    normalize_arabic,
    normalize_root,
)


class TestNormalizeArabic:
    """Tests for normalize_arabic."""

    def test_strips_diacritics(self):
        assert normalize_arabic("كَتَبَ") == "كتب"
        assert normalize_arabic("مُؤَلَّف") == "مؤلف"

    def test_strips_superscript_alef(self):
        assert normalize_arabic("هٰذا") == "هذا"

    def test_folds_alef_variants(self):
        assert normalize_arabic("أحمد") == "احمد"
        assert normalize_arabic("إسلام") == "اسلام"
        assert normalize_arabic("آمن") == "امن"

    def test_folds_alef_maqsura(self):
        assert normalize_arabic("على") == "علي"

    def test_trims_whitespace(self):
        assert normalize_arabic("  كتاب \n") == "كتاب"

    def test_idempotent(self):
        once = normalize_arabic("إِلَى")
        assert normalize_arabic(once) == once

    def test_latin_text_untouched(self):
        assert normalize_arabic("Book") == "Book"


class TestNormalizeRoot:
    """Tests for root identity normalization."""

    def test_collapses_internal_whitespace(self):
        assert normalize_root("ك  ت\tب") == "ك ت ب"

    def test_diacritic_variants_share_identity(self):
        assert normalize_root("كَ ت ب") == normalize_root("ك ت ب")

    def test_blank(self):
        assert normalize_root("   ") == ""


class TestMatching:
    """Tests for the comparison helpers."""

    def test_matches_ignores_vocalization(self):
        assert arabic_matches("كِتَاب", "كتاب")
        assert not arabic_matches("كتاب", "كتب")

    def test_contains(self):
        assert arabic_contains("المكتبة العامة", "مكتبة")
        assert arabic_contains("إلى البيت", "الى")
        assert not arabic_contains("كتاب", "قلم")


class TestGlossTokens:
    """Tests for English gloss tokenizing."""

    def test_lowercases_and_splits(self):
        assert gloss_tokens("To Write") == ["to", "write"]

    def test_punctuation_is_a_separator(self):
        assert gloss_tokens("to write (a letter)") == ["to", "write", "a", "letter"]
        assert gloss_tokens("well-known;famous") == ["well", "known", "famous"]

    def test_digits_kept(self):
        assert gloss_tokens("3rd person") == ["3rd", "person"]

    def test_empty(self):
        assert gloss_tokens("") == []
        assert gloss_tokens(" ,.; ") == []
