"""Database connection, DDL, and bulk load/store helpers for arabic-ontology."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Iterator
from pathlib import Path

from arabic_ontology.exceptions import DatabaseError
from arabic_ontology.models import (
    ConceptModel,
    DialectModel,
    FormModel,
    GlossIndexEntry,
    LemmaModel,
    RootModel,
    SentenceModel,
)
from arabic_ontology.normalize import normalize_arabic

SCHEMA_VERSION = "1.0"

# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Dialect catalog
CREATE TABLE IF NOT EXISTS dialects (
    rowid INTEGER PRIMARY KEY,
    code TEXT NOT NULL,
    name TEXT NOT NULL,
    region TEXT NOT NULL,
    corpus_source TEXT NOT NULL,
    UNIQUE (code)
);

-- Concept tables
CREATE TABLE IF NOT EXISTS concepts (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    synset TEXT NOT NULL,
    english_synset TEXT,
    gloss TEXT,
    example TEXT,
    data_source_id INTEGER NOT NULL DEFAULT 0,
    parent_id TEXT REFERENCES concepts (id) ON DELETE SET NULL,
    UNIQUE (id)
);
CREATE INDEX IF NOT EXISTS concept_parent_index ON concepts (parent_id);

-- Lexicon tables
CREATE TABLE IF NOT EXISTS roots (
    rowid INTEGER PRIMARY KEY,
    root TEXT NOT NULL,
    UNIQUE (root)
);

CREATE TABLE IF NOT EXISTS lemmas (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    headword TEXT NOT NULL,
    normalized_headword TEXT NOT NULL,
    register TEXT NOT NULL,
    pos_category TEXT NOT NULL,
    pos TEXT NOT NULL,
    augmentation TEXT,
    number TEXT,
    person TEXT,
    gender TEXT,
    voice TEXT,
    transitivity TEXT,
    uninflected BOOLEAN CHECK( uninflected IN (0, 1) ) DEFAULT 0 NOT NULL,
    root TEXT REFERENCES roots (root),
    dialect_code TEXT REFERENCES dialects (code),
    UNIQUE (id)
);
CREATE INDEX IF NOT EXISTS lemma_norm_index ON lemmas (normalized_headword);
CREATE INDEX IF NOT EXISTS lemma_root_index ON lemmas (root);
CREATE INDEX IF NOT EXISTS lemma_dialect_index ON lemmas (dialect_code);

CREATE TABLE IF NOT EXISTS lemma_concepts (
    lemma_id TEXT NOT NULL REFERENCES lemmas (id) ON DELETE CASCADE,
    concept_id TEXT NOT NULL REFERENCES concepts (id) ON DELETE CASCADE,
    UNIQUE (lemma_id, concept_id)
);
CREATE INDEX IF NOT EXISTS lemma_concept_concept_index ON lemma_concepts (concept_id);

CREATE TABLE IF NOT EXISTS lemma_correspondences (
    source_id TEXT NOT NULL REFERENCES lemmas (id) ON DELETE CASCADE,
    target_id TEXT NOT NULL REFERENCES lemmas (id) ON DELETE CASCADE,
    CHECK( source_id != target_id ),
    UNIQUE (source_id, target_id)
);
CREATE INDEX IF NOT EXISTS correspondence_target_index ON lemma_correspondences (target_id);

-- Corpus tables
CREATE TABLE IF NOT EXISTS sentences (
    rowid INTEGER PRIMARY KEY,
    id TEXT NOT NULL,
    source_sentence_id TEXT NOT NULL,
    text TEXT NOT NULL,
    dialect_code TEXT NOT NULL REFERENCES dialects (code),
    UNIQUE (id)
);
CREATE INDEX IF NOT EXISTS sentence_dialect_index ON sentences (dialect_code);

CREATE TABLE IF NOT EXISTS forms (
    rowid INTEGER PRIMARY KEY,
    form_key TEXT NOT NULL,
    token TEXT NOT NULL,
    raw_token TEXT,
    gloss TEXT,
    pos TEXT,
    prefixes TEXT,
    stem TEXT,
    suffixes TEXT,
    word_position INTEGER NOT NULL,
    person TEXT,
    gender TEXT,
    number TEXT,
    subdialect TEXT,
    lemma_id TEXT REFERENCES lemmas (id),
    msa_lemma_id TEXT REFERENCES lemmas (id),
    dialect_code TEXT NOT NULL REFERENCES dialects (code),
    sentence_id TEXT REFERENCES sentences (id),
    UNIQUE (form_key)
);
CREATE INDEX IF NOT EXISTS form_lemma_index ON forms (lemma_id);
CREATE INDEX IF NOT EXISTS form_msa_lemma_index ON forms (msa_lemma_id);
CREATE INDEX IF NOT EXISTS form_sentence_index ON forms (sentence_id);
CREATE INDEX IF NOT EXISTS form_dialect_index ON forms (dialect_code);

CREATE TABLE IF NOT EXISTS gloss_index (
    rowid INTEGER PRIMARY KEY,
    entry_key TEXT NOT NULL,
    token TEXT NOT NULL,
    lemma_id TEXT NOT NULL REFERENCES lemmas (id) ON DELETE CASCADE,
    UNIQUE (entry_key)
);
CREATE INDEX IF NOT EXISTS gloss_token_index ON gloss_index (token);
"""


def _sql_normalize(text: str | None) -> str | None:
    return normalize_arabic(text) if text is not None else None


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with graph PRAGMA settings.

    The connection exposes ``normalize_arabic(text)`` as a SQL function.
    """
    db_path_str = str(db_path)
    conn = sqlite3.connect(db_path_str)
    conn.execute("PRAGMA foreign_keys = ON")
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.row_factory = sqlite3.Row
    conn.create_function(
        "normalize_arabic", 1, _sql_normalize, deterministic=True
    )
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


def open_store(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Connect, check the schema version and create missing tables."""
    try:
        conn = connect(db_path)
    except sqlite3.Error as e:
        raise DatabaseError(f"Cannot open database {db_path}: {e}") from e
    try:
        check_schema_version(conn)
        init_db(conn)
    except BaseException:
        conn.close()
        raise
    return conn


# ---------------------------------------------------------------------------
# Row converters
# ---------------------------------------------------------------------------

def row_to_dialect(row: sqlite3.Row) -> DialectModel:
    return DialectModel(
        code=row["code"],
        name=row["name"],
        region=row["region"],
        corpus_source=row["corpus_source"],
    )


def row_to_concept(row: sqlite3.Row) -> ConceptModel:
    return ConceptModel(
        id=row["id"],
        synset=row["synset"],
        english_synset=row["english_synset"],
        gloss=row["gloss"],
        example=row["example"],
        data_source_id=row["data_source_id"],
        parent_id=row["parent_id"],
    )


def row_to_lemma(row: sqlite3.Row) -> LemmaModel:
    return LemmaModel(
        id=row["id"],
        headword=row["headword"],
        register=row["register"],
        pos_category=row["pos_category"],
        pos=row["pos"],
        normalized_headword=row["normalized_headword"],
        augmentation=row["augmentation"],
        number=row["number"],
        person=row["person"],
        gender=row["gender"],
        voice=row["voice"],
        transitivity=row["transitivity"],
        uninflected=bool(row["uninflected"]),
        root=row["root"],
        dialect_code=row["dialect_code"],
    )


def row_to_sentence(row: sqlite3.Row) -> SentenceModel:
    return SentenceModel(
        id=row["id"],
        source_sentence_id=row["source_sentence_id"],
        text=row["text"],
        dialect_code=row["dialect_code"],
    )


def row_to_form(row: sqlite3.Row) -> FormModel:
    return FormModel(
        key=row["form_key"],
        token=row["token"],
        word_position=row["word_position"],
        dialect_code=row["dialect_code"],
        raw_token=row["raw_token"],
        gloss=row["gloss"],
        pos=row["pos"],
        prefixes=row["prefixes"],
        stem=row["stem"],
        suffixes=row["suffixes"],
        person=row["person"],
        gender=row["gender"],
        number=row["number"],
        subdialect=row["subdialect"],
        lemma_id=row["lemma_id"],
        msa_lemma_id=row["msa_lemma_id"],
        sentence_id=row["sentence_id"],
    )


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------

def load_dialects(conn: sqlite3.Connection) -> Iterator[DialectModel]:
    for row in conn.execute("SELECT * FROM dialects ORDER BY rowid"):
        yield row_to_dialect(row)


def load_concepts(conn: sqlite3.Connection) -> Iterator[ConceptModel]:
    for row in conn.execute("SELECT * FROM concepts ORDER BY rowid"):
        yield row_to_concept(row)


def load_roots(conn: sqlite3.Connection) -> Iterator[RootModel]:
    for row in conn.execute("SELECT root FROM roots ORDER BY rowid"):
        yield RootModel(row["root"])


def load_lemmas(conn: sqlite3.Connection) -> dict[str, LemmaModel]:
    """All lemmas with their concept and correspondence links filled in."""
    lemmas = {
        row["id"]: row_to_lemma(row)
        for row in conn.execute("SELECT * FROM lemmas ORDER BY rowid")
    }
    for lemma_id, concept_id in conn.execute(
        "SELECT lemma_id, concept_id FROM lemma_concepts ORDER BY rowid"
    ):
        lemmas[lemma_id].concept_ids.append(concept_id)
    for source_id, target_id in conn.execute(
        "SELECT source_id, target_id FROM lemma_correspondences ORDER BY rowid"
    ):
        lemmas[source_id].correspondence_ids.append(target_id)
    return lemmas


def load_sentences(conn: sqlite3.Connection) -> Iterator[SentenceModel]:
    for row in conn.execute("SELECT * FROM sentences ORDER BY rowid"):
        yield row_to_sentence(row)


def load_form_keys(conn: sqlite3.Connection) -> set[str]:
    cur = conn.cursor()
    cur.row_factory = None
    return {key for (key,) in cur.execute("SELECT form_key FROM forms")}


def load_gloss_keys(conn: sqlite3.Connection) -> set[str]:
    cur = conn.cursor()
    cur.row_factory = None
    return {key for (key,) in cur.execute("SELECT entry_key FROM gloss_index")}


def iter_form_lemma_pairs(
    conn: sqlite3.Connection,
) -> Iterator[tuple[str, str]]:
    """``(lemma_id, msa_lemma_id)`` of stored forms with both sides set."""
    cur = conn.cursor()
    cur.row_factory = None
    yield from cur.execute(
        "SELECT lemma_id, msa_lemma_id FROM forms "
        "WHERE lemma_id IS NOT NULL AND msa_lemma_id IS NOT NULL"
    )


# ---------------------------------------------------------------------------
# Bulk writers
# ---------------------------------------------------------------------------

def insert_dialects(
    conn: sqlite3.Connection, dialects: Iterable[DialectModel]
) -> None:
    conn.executemany(
        "INSERT INTO dialects (code, name, region, corpus_source) "
        "VALUES (?, ?, ?, ?)",
        [(d.code, d.name, d.region, d.corpus_source) for d in dialects],
    )


def insert_concepts(
    conn: sqlite3.Connection, concepts: Iterable[ConceptModel]
) -> None:
    """Insert concepts without parents; see :func:`update_concept_parents`."""
    conn.executemany(
        "INSERT INTO concepts "
        "(id, synset, english_synset, gloss, example, data_source_id) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        [
            (c.id, c.synset, c.english_synset, c.gloss, c.example,
             c.data_source_id)
            for c in concepts
        ],
    )


def update_concept_parents(
    conn: sqlite3.Connection, parents: Iterable[tuple[str, str]]
) -> None:
    """Set ``parent_id`` from ``(concept_id, parent_id)`` pairs."""
    conn.executemany(
        "UPDATE concepts SET parent_id = ? WHERE id = ?",
        [(parent_id, concept_id) for concept_id, parent_id in parents],
    )


def insert_roots(conn: sqlite3.Connection, roots: Iterable[RootModel]) -> None:
    conn.executemany(
        "INSERT INTO roots (root) VALUES (?)",
        [(r.root,) for r in roots],
    )


def insert_lemmas(
    conn: sqlite3.Connection, lemmas: Iterable[LemmaModel]
) -> None:
    conn.executemany(
        "INSERT INTO lemmas "
        "(id, headword, normalized_headword, register, pos_category, pos, "
        "augmentation, number, person, gender, voice, transitivity, "
        "uninflected, root, dialect_code) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        [
            (lm.id, lm.headword, lm.normalized_headword, lm.register,
             lm.pos_category, lm.pos, lm.augmentation, lm.number, lm.person,
             lm.gender, lm.voice, lm.transitivity, 1 if lm.uninflected else 0,
             lm.root, lm.dialect_code)
            for lm in lemmas
        ],
    )


def insert_lemma_concepts(
    conn: sqlite3.Connection, links: Iterable[tuple[str, str]]
) -> None:
    """Insert ``(lemma_id, concept_id)`` links."""
    conn.executemany(
        "INSERT INTO lemma_concepts (lemma_id, concept_id) VALUES (?, ?) "
        "ON CONFLICT (lemma_id, concept_id) DO NOTHING",
        list(links),
    )


def insert_correspondences(
    conn: sqlite3.Connection, links: Iterable[tuple[str, str]]
) -> None:
    """Insert directed ``(source_id, target_id)`` correspondence rows."""
    conn.executemany(
        "INSERT INTO lemma_correspondences (source_id, target_id) "
        "VALUES (?, ?) ON CONFLICT (source_id, target_id) DO NOTHING",
        list(links),
    )


def insert_sentences(
    conn: sqlite3.Connection, sentences: Iterable[SentenceModel]
) -> None:
    conn.executemany(
        "INSERT INTO sentences (id, source_sentence_id, text, dialect_code) "
        "VALUES (?, ?, ?, ?)",
        [
            (s.id, s.source_sentence_id, s.text, s.dialect_code)
            for s in sentences
        ],
    )


def insert_forms(conn: sqlite3.Connection, forms: Iterable[FormModel]) -> None:
    conn.executemany(
        "INSERT INTO forms "
        "(form_key, token, raw_token, gloss, pos, prefixes, stem, suffixes, "
        "word_position, person, gender, number, subdialect, lemma_id, "
        "msa_lemma_id, dialect_code, sentence_id) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        [
            (f.key, f.token, f.raw_token, f.gloss, f.pos, f.prefixes, f.stem,
             f.suffixes, f.word_position, f.person, f.gender, f.number,
             f.subdialect, f.lemma_id, f.msa_lemma_id, f.dialect_code,
             f.sentence_id)
            for f in forms
        ],
    )


def insert_gloss_entries(
    conn: sqlite3.Connection, entries: Iterable[GlossIndexEntry]
) -> None:
    conn.executemany(
        "INSERT INTO gloss_index (entry_key, token, lemma_id) VALUES (?, ?, ?)",
        [(e.key, e.token, e.lemma_id) for e in entries],
    )
