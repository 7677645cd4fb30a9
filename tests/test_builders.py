"""
Tests for the per-source entity builders.
"""
import csv
import io

from arabic_ontology.builders import (
    build_concepts,
    build_forms,
    build_hierarchy,
    build_lexicon,
    build_sentences,
    draft_forms,
    merge_forms,
    seed_dialects,
)
from arabic_ontology.config import CORPUS_IDS
from arabic_ontology.reader import parse_table
from arabic_ontology.registry import EntityRegistry

from conftest import (
    BALADI_FORMS,
    BALADI_SENTENCES,
    CONCEPT_HEADER,
    CONCEPT_ROWS,
    LEXICON_HEADER,
    LEXICON_ROWS,
    NABRA_FORMS,
    RELATION_HEADER,
    RELATION_ROWS,
    SENTENCE_HEADER,
    STANDARD,
    form_header,
)

BALADI = CORPUS_IDS["baladi"]
NABRA = CORPUS_IDS["nabra"]


def table(header, rows, source="test.csv"):
    buf = io.StringIO(newline="")
    writer = csv.writer(buf)
    writer.writerow(header)
    writer.writerows(rows)
    buf.seek(0)
    return parse_table(buf, source=source)


def seeded():
    reg = EntityRegistry()
    seed_dialects(reg)
    return reg


def with_lexicon():
    reg = seeded()
    build_concepts(table(CONCEPT_HEADER, CONCEPT_ROWS), reg)
    build_lexicon(table(LEXICON_HEADER, LEXICON_ROWS), reg)
    return reg


class TestSeedDialects:
    """Tests for the dialect catalog."""

    def test_seeds_catalog_once(self):
        reg = EntityRegistry()
        first = seed_dialects(reg)
        second = seed_dialects(reg)
        assert first.created == 8
        assert second.created == 0
        assert second.skipped == 8

    def test_all_registers_map_to_standard(self):
        reg = seeded()
        for register in ("فصحى حديثة", "عامية", "أجنبية"):
            assert reg.dialect_for_register(register).code == "msa"


class TestBuildConcepts:
    """Tests for concept rows."""

    def test_creates_concepts(self):
        reg = seeded()
        result = build_concepts(table(CONCEPT_HEADER, CONCEPT_ROWS), reg)
        assert result.created == 4
        c1 = reg.concepts["C1"]
        assert c1.terms == ["كِتَاب", "مُؤَلَّف"]
        assert c1.english_terms == ["book", "volume"]
        assert c1.example is None
        assert c1.is_well_designed

    def test_non_integer_source_id_is_zero(self):
        reg = seeded()
        build_concepts(table(CONCEPT_HEADER, CONCEPT_ROWS), reg)
        assert reg.concepts["C4"].data_source_id == 0

    def test_reimport_creates_nothing(self):
        reg = seeded()
        build_concepts(table(CONCEPT_HEADER, CONCEPT_ROWS), reg)
        result = build_concepts(table(CONCEPT_HEADER, CONCEPT_ROWS), reg)
        assert result.created == 0
        assert result.skipped == 4

    def test_empty_id_is_malformed(self):
        reg = seeded()
        result = build_concepts(
            table(CONCEPT_HEADER, [["", "x", "", "", "", "0"]]), reg
        )
        assert result.malformed == 1
        assert reg.concepts == {}


class TestBuildLexicon:
    """Tests for lexicon rows."""

    def test_creates_lemmas_and_roots(self):
        reg = seeded()
        result = build_lexicon(table(LEXICON_HEADER, LEXICON_ROWS), reg)
        assert result.created == 5
        assert set(reg.lemmas) == {"L1", "L2", "L3", "L4", "L5"}

    def test_root_identity_is_normalized(self):
        reg = seeded()
        build_lexicon(table(LEXICON_HEADER, LEXICON_ROWS), reg)
        # "ك ت ب", "ك  ت ب" and "كَ ت ب" are one root
        assert list(reg.roots) == ["ك ت ب"]
        assert reg.lemmas["L1"].root == reg.lemmas["L2"].root == "ك ت ب"
        assert reg.lemmas["L3"].root == "ك ت ب"
        assert reg.roots["ك ت ب"].consonant_count == 3

    def test_missing_root_left_unset(self):
        reg = seeded()
        build_lexicon(table(LEXICON_HEADER, LEXICON_ROWS), reg)
        assert reg.lemmas["L4"].root is None
        assert reg.lemmas["L5"].root is None

    def test_every_register_gets_standard_dialect(self):
        reg = seeded()
        build_lexicon(table(LEXICON_HEADER, LEXICON_ROWS), reg)
        assert {lm.dialect_code for lm in reg.lemmas.values()} == {"msa"}
        assert reg.lemmas["L1"].is_standard
        assert not reg.lemmas["L3"].is_standard
        assert reg.lemmas["L3"].is_colloquial
        assert reg.lemmas["L5"].is_foreign

    def test_unknown_register_counted(self):
        reg = seeded()
        rows = [["L9", "كلمة", "لهجة", "اسم", "اسم"] + [""] * 8]
        result = build_lexicon(table(LEXICON_HEADER, rows), reg)
        assert result.created == 1
        assert result.dangling == 1
        assert reg.lemmas["L9"].dialect_code is None

    def test_fields(self):
        reg = seeded()
        build_lexicon(table(LEXICON_HEADER, LEXICON_ROWS), reg)
        l2 = reg.lemmas["L2"]
        assert l2.normalized_headword == "كتب"
        assert l2.voice == "معلوم"
        assert l2.augmentation == "مجرد"
        assert l2.pos_category_english == "Verb"
        assert reg.lemmas["L5"].uninflected is True
        assert reg.lemmas["L1"].uninflected is False

    def test_no_headword_is_malformed(self):
        reg = seeded()
        rows = [["L9", "", STANDARD, "اسم", "اسم"] + [""] * 8]
        result = build_lexicon(table(LEXICON_HEADER, rows), reg)
        assert result.malformed == 1
        assert "L9" not in reg.lemmas

    def test_existing_lemma_keeps_attributes(self):
        reg = seeded()
        build_lexicon(table(LEXICON_HEADER, LEXICON_ROWS), reg)
        rows = [["L1", "قلم", STANDARD, "اسم", "اسم", "ق ل م"] + [""] * 7]
        result = build_lexicon(table(LEXICON_HEADER, rows), reg)
        assert result.skipped == 1
        assert reg.lemmas["L1"].headword == "كتاب"
        assert "ق ل م" not in reg.roots


class TestBuildHierarchy:
    """Tests for concept parent links."""

    def test_sets_parents(self):
        reg = with_lexicon()
        result = build_hierarchy(table(RELATION_HEADER, RELATION_ROWS), reg)
        assert reg.concepts["C1"].parent_id == "C3"
        assert reg.concepts["C4"].parent_id == "C1"
        assert reg.concepts["C2"].parent_id is None
        assert result.created == 2

    def test_second_parent_row_ignored(self):
        reg = with_lexicon()
        rows = [["C1", "C3"], ["C1", "C2"]]
        result = build_hierarchy(table(RELATION_HEADER, rows), reg)
        assert reg.concepts["C1"].parent_id == "C3"
        assert result.created == 1
        assert result.skipped == 1

    def test_dangling_parent_dropped(self):
        reg = with_lexicon()
        result = build_hierarchy(table(RELATION_HEADER, RELATION_ROWS), reg)
        assert reg.concepts["C3"].parent_id is None
        assert result.dangling == 1

    def test_unknown_child_dropped(self):
        reg = with_lexicon()
        result = build_hierarchy(table(RELATION_HEADER, [["C77", "C1"]]), reg)
        assert result.dangling == 1
        assert "C77" not in reg.concepts


class TestBuildSentences:
    """Tests for corpus sentences."""

    def test_composite_key(self):
        reg = seeded()
        result = build_sentences(
            table(SENTENCE_HEADER, BALADI_SENTENCES), reg, "lebanese"
        )
        assert result.created == 2
        sentence = reg.sentences["lebanese:1"]
        assert sentence.source_sentence_id == "1"
        assert sentence.dialect_code == "lebanese"

    def test_same_source_id_in_two_dialects(self):
        reg = seeded()
        build_sentences(table(SENTENCE_HEADER, [["1", "a"]]), reg, "lebanese")
        build_sentences(table(SENTENCE_HEADER, [["1", "b"]]), reg, "syrian")
        assert {"lebanese:1", "syrian:1"} <= set(reg.sentences)

    def test_empty_text_is_malformed(self):
        reg = seeded()
        result = build_sentences(
            table(SENTENCE_HEADER, [["1", ""]]), reg, "lebanese"
        )
        assert result.malformed == 1


class TestBuildForms:
    """Tests for corpus forms."""

    def corpus_registry(self):
        reg = with_lexicon()
        build_sentences(table(SENTENCE_HEADER, BALADI_SENTENCES), reg, "lebanese")
        return reg

    def test_creates_forms(self):
        reg = self.corpus_registry()
        result = build_forms(table(form_header(), BALADI_FORMS), reg, BALADI)
        assert result.created == 4
        assert "lebanese:1:2" in reg.form_keys

    def test_form_fields_and_links(self):
        reg = self.corpus_registry()
        build_forms(table(form_header(), BALADI_FORMS), reg, BALADI)
        form = next(f for f in reg.pending.forms if f.key == "lebanese:1:1")
        assert form.token == "بدي"
        assert form.lemma_id == "L4"
        assert form.msa_lemma_id == "L2"
        assert form.sentence_id == "lebanese:1"
        assert form.dialect_code == "lebanese"
        assert form.subdialect == "Beirut"
        assert form.features == "1.m.s"
        assert form.gender_english == "masculine"
        assert form.number_english == "singular"

    def test_zero_lemma_id_means_none(self):
        reg = self.corpus_registry()
        result = build_forms(table(form_header(), BALADI_FORMS), reg, BALADI)
        form = next(f for f in reg.pending.forms if f.key == "lebanese:1:3")
        assert form.lemma_id is None
        assert form.gender_english is None
        assert form.msa_lemma_id is None
        assert result.dangling == 0

    def test_unknown_lemma_id_is_dangling(self):
        reg = self.corpus_registry()
        rows = [["1", "4", "شي", "L404", "L1"] + [""] * 10]
        result = build_forms(table(form_header(), rows), reg, BALADI)
        assert result.created == 1
        assert result.dangling == 1
        assert reg.pending.forms[0].msa_lemma_id is None
        assert reg.pending.forms[0].lemma_id == "L1"

    def test_missing_sentence_left_unset(self):
        reg = with_lexicon()
        build_forms(table(form_header(), BALADI_FORMS), reg, BALADI)
        assert all(f.sentence_id is None for f in reg.pending.forms)

    def test_token_column_per_corpus(self):
        reg = with_lexicon()
        result = build_forms(table(form_header("CODA"), NABRA_FORMS), reg, NABRA)
        assert result.created == 1
        form = reg.pending.forms[0]
        assert form.key == "syrian:7:1"
        assert form.token == "بدي"
        assert form.raw_token == "بدّي"

    def test_bad_position_is_malformed(self):
        reg = with_lexicon()
        rows = [
            ["1", "first", "بدي", "L2", "L4"] + [""] * 10,
            ["", "1", "بدي", "L2", "L4"] + [""] * 10,
            ["1", "2", "", "L2", "L4"] + [""] * 10,
        ]
        result = build_forms(table(form_header(), rows), reg, BALADI)
        assert result.malformed == 3
        assert result.created == 0

    def test_reimport_skips_known_keys(self):
        reg = self.corpus_registry()
        build_forms(table(form_header(), BALADI_FORMS), reg, BALADI)
        result = build_forms(table(form_header(), BALADI_FORMS), reg, BALADI)
        assert result.created == 0
        assert result.skipped == 4

    def test_draft_does_not_touch_registry(self):
        reg = self.corpus_registry()
        draft = draft_forms(table(form_header(), BALADI_FORMS), reg, BALADI)
        assert len(draft.forms) == 4
        assert reg.form_keys == set()
        [result] = merge_forms([draft], reg)
        assert result.created == 4
        assert len(reg.form_keys) == 4

    def test_merge_drops_duplicates_within_a_file(self):
        reg = with_lexicon()
        rows = [BALADI_FORMS[0], BALADI_FORMS[0]]
        result = build_forms(table(form_header(), rows), reg, BALADI)
        assert result.created == 1
        assert result.skipped == 1
