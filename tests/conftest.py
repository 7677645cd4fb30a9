"""Shared test fixtures for arabic-ontology."""

import csv

import pytest

from arabic_ontology import db
from arabic_ontology.config import CORPUS_IDS, ImportConfig

STANDARD = "فصحى حديثة"
COLLOQUIAL = "عامية"
FOREIGN = "أجنبية"

LEXICON_HEADER = [
    "lemma_id", "lemma", "language", "pos_cat", "pos", "root",
    "augmentation", "number", "person", "gender", "voice", "transitivity",
    "uninflected",
]
CONCEPT_HEADER = [
    "conceptId", "arabicSynset", "englishSynset", "gloss", "example",
    "dataSourceId",
]
RELATION_HEADER = ["concept_id", "subTypeOfID"]
SENTENCE_HEADER = ["Sentence_id", "sentence"]


def form_header(token_column="Token"):
    return [
        "sentenceId", "wordPosition", token_column, "MSALemmaID", "DALemmaID",
        "rawToken", "Gloss", "POS", "Prefixes", "Stem", "Suffixes",
        "Person", "Gender", "Number", "subdialect",
    ]


def write_csv(path, header, rows):
    """Write a UTF-8 CSV file with a header row."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    return path


LEXICON_ROWS = [
    ["L1", "كتاب", STANDARD, "اسم", "اسم جنس", "ك ت ب",
     "", "مفرد", "", "مذكر", "", "", ""],
    ["L2", "كَتَبَ", STANDARD, "فعل", "فعل ماض", "ك  ت ب",
     "مجرد", "", "", "", "معلوم", "متعد", ""],
    ["L3", "مكتبة", COLLOQUIAL, "اسم", "اسم", "كَ ت ب",
     "", "", "", "", "", "", ""],
    ["L4", "بدي", COLLOQUIAL, "فعل", "فعل", "NULL",
     "", "", "", "", "", "", ""],
    ["L5", "كمبيوتر", FOREIGN, "اسم", "اسم", "",
     "", "", "", "", "", "", "1"],
]

CONCEPT_ROWS = [
    ["C1", "كِتَاب|مُؤَلَّف", "book|volume", "a written work", "NULL", "200"],
    ["C2", "كتب", "write", "", "", "0"],
    ["C3", "مكتبة", "library", "", "", "0"],
    ["C4", "كتاب|سفر", "book", "", "", "x"],
]

RELATION_ROWS = [
    ["C1", "C3"],
    ["C4", "C1"],
    ["C2", "0"],
    ["C3", "C99"],
]

BALADI_FORMS = [
    ["1", "1", "بدي", "L2", "L4", "بدي", "want", "verb",
     "", "", "", "1", "m", "s", "Beirut"],
    ["1", "2", "كتاب", "L1", "L1", "", "book", "noun",
     "", "", "", "", "m", "s", ""],
    ["1", "3", "هيك", "0", "0", "", "like this", "adv",
     "", "", "", "", "", "", ""],
    ["2", "1", "مكتبة", "L1", "L3", "", "the library", "noun",
     "", "", "", "", "f", "s", ""],
]

BALADI_SENTENCES = [
    ["1", "بدي كتاب هيك"],
    ["2", "مكتبة"],
]

NABRA_FORMS = [
    ["7", "1", "بدي", "L2", "L4", "بدّي", "want", "verb",
     "", "", "", "1", "m", "s", "Damascus"],
]

NABRA_SENTENCES = [
    ["7", "بدي"],
]


@pytest.fixture
def conn():
    """In-memory store with the schema created."""
    conn = db.connect(":memory:")
    db.init_db(conn)
    yield conn
    conn.close()


@pytest.fixture
def data_dir(tmp_path):
    """Directory with a small lexicon, ontology and two corpora."""
    d = tmp_path / "data"
    d.mkdir()
    write_csv(d / "Qabas-dataset.csv", LEXICON_HEADER, LEXICON_ROWS)
    write_csv(d / "Concepts.csv", CONCEPT_HEADER, CONCEPT_ROWS)
    write_csv(d / "Relations.csv", RELATION_HEADER, RELATION_ROWS)
    write_csv(d / "Baladi-dataset.csv", form_header(), BALADI_FORMS)
    write_csv(
        d / "Baladi_RowText_sentences.csv", SENTENCE_HEADER, BALADI_SENTENCES
    )
    write_csv(d / "Nabra-dataset.csv", form_header("CODA"), NABRA_FORMS)
    write_csv(
        d / "Nabra_RowText_sentences.csv", SENTENCE_HEADER, NABRA_SENTENCES
    )
    return d


@pytest.fixture
def config(data_dir):
    """Import config for the fixture data with Baladi and Nabra selected."""
    return ImportConfig(
        data_dir=data_dir,
        corpora=[CORPUS_IDS["baladi"], CORPUS_IDS["nabra"]],
    )
