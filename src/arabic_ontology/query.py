"""OntologyQuery: read-only search and traversal over an imported graph."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from arabic_ontology import db as _db
from arabic_ontology import gloss_index as _gloss
from arabic_ontology.exceptions import EntityNotFoundError
from arabic_ontology.models import (
    ConceptModel,
    DialectModel,
    FormModel,
    LemmaModel,
    OntologyStatistics,
    RootModel,
    SentenceModel,
)
from arabic_ontology.normalize import normalize_arabic, normalize_root


class OntologyQuery:
    """Look up, search and traverse concepts, lemmas, roots and forms."""

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._conn = _db.open_store(db_path)
        self._owns_conn = True

    @classmethod
    def from_connection(cls, conn: sqlite3.Connection) -> OntologyQuery:
        """Wrap an already open store; :meth:`close` leaves it open."""
        query = cls.__new__(cls)
        query._conn = conn
        query._owns_conn = False
        return query

    def close(self) -> None:
        """Close the database connection."""
        if self._owns_conn:
            self._conn.close()

    def __enter__(self) -> OntologyQuery:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Lookups by identity
    # ------------------------------------------------------------------

    def get_concept(self, concept_id: str) -> ConceptModel:
        row = self._conn.execute(
            "SELECT * FROM concepts WHERE id = ?", (concept_id,)
        ).fetchone()
        if row is None:
            raise EntityNotFoundError(f"Concept not found: {concept_id!r}")
        return _db.row_to_concept(row)

    def get_lemma(self, lemma_id: str) -> LemmaModel:
        row = self._conn.execute(
            "SELECT * FROM lemmas WHERE id = ?", (lemma_id,)
        ).fetchone()
        if row is None:
            raise EntityNotFoundError(f"Lemma not found: {lemma_id!r}")
        return self._build_lemma(row)

    def get_root(self, root: str) -> RootModel:
        key = normalize_root(root)
        row = self._conn.execute(
            "SELECT root FROM roots WHERE root = ?", (key,)
        ).fetchone()
        if row is None:
            raise EntityNotFoundError(f"Root not found: {root!r}")
        return RootModel(row["root"])

    def get_dialect(self, code: str) -> DialectModel:
        row = self._conn.execute(
            "SELECT * FROM dialects WHERE code = ?", (code,)
        ).fetchone()
        if row is None:
            raise EntityNotFoundError(f"Dialect not found: {code!r}")
        return _db.row_to_dialect(row)

    def get_form(self, key: str) -> FormModel:
        row = self._conn.execute(
            "SELECT * FROM forms WHERE form_key = ?", (key,)
        ).fetchone()
        if row is None:
            raise EntityNotFoundError(f"Form not found: {key!r}")
        return _db.row_to_form(row)

    def get_sentence(self, sentence_id: str) -> SentenceModel:
        row = self._conn.execute(
            "SELECT * FROM sentences WHERE id = ?", (sentence_id,)
        ).fetchone()
        if row is None:
            raise EntityNotFoundError(f"Sentence not found: {sentence_id!r}")
        return _db.row_to_sentence(row)

    def list_dialects(self) -> list[DialectModel]:
        rows = self._conn.execute("SELECT * FROM dialects ORDER BY code")
        return [_db.row_to_dialect(r) for r in rows]

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def find_concepts(self, query: str) -> list[ConceptModel]:
        """Concepts with an Arabic term containing *query* (normalized)."""
        needle = normalize_arabic(query)
        if not needle:
            return []
        rows = self._conn.execute(
            "SELECT * FROM concepts "
            "WHERE instr(normalize_arabic(synset), ?) > 0 ORDER BY rowid",
            (needle,),
        )
        concepts = [_db.row_to_concept(r) for r in rows]
        return [
            c for c in concepts
            if any(needle in normalize_arabic(t) for t in c.terms)
        ]

    def find_concepts_english(self, query: str) -> list[ConceptModel]:
        """Concepts with an English term containing *query*, ignoring case."""
        needle = query.strip().lower()
        if not needle:
            return []
        rows = self._conn.execute(
            "SELECT * FROM concepts WHERE english_synset IS NOT NULL "
            "ORDER BY rowid"
        )
        concepts = [_db.row_to_concept(r) for r in rows]
        return [
            c for c in concepts
            if any(needle in t.lower() for t in c.english_terms)
        ]

    def find_lemmas(self, query: str) -> list[LemmaModel]:
        """Lemmas whose headword contains *query*; exact matches first."""
        needle = normalize_arabic(query)
        if not needle:
            return []
        rows = self._conn.execute(
            "SELECT * FROM lemmas WHERE instr(normalized_headword, ?) > 0 "
            "ORDER BY normalized_headword != ?, rowid",
            (needle, needle),
        )
        return [self._build_lemma(r) for r in rows]

    def lemmas_by_gloss(self, phrase: str) -> list[LemmaModel]:
        """Lemmas whose forms carry an English gloss matching *phrase*.

        Uses the gloss token index first. When no token hits, falls back to
        a case-insensitive substring scan of form glosses.
        """
        lemma_ids = _gloss.lookup(self._conn, phrase)
        if not lemma_ids:
            needle = phrase.strip().lower()
            if not needle:
                return []
            rows = self._conn.execute(
                "SELECT gloss, lemma_id, msa_lemma_id FROM forms "
                "WHERE gloss IS NOT NULL ORDER BY rowid"
            )
            lemma_ids = _ordered_ids(
                (r["lemma_id"], r["msa_lemma_id"])
                for r in rows if needle in r["gloss"].lower()
            )
        return self._lemmas_by_ids(lemma_ids)

    def lemmas_by_form_token(self, token: str) -> list[LemmaModel]:
        """Lemmas attested by a form whose token or raw token contains *token*."""
        needle = normalize_arabic(token)
        if not needle:
            return []
        rows = self._conn.execute(
            "SELECT lemma_id, msa_lemma_id FROM forms "
            "WHERE instr(normalize_arabic(token), ?) > 0 "
            "OR instr(normalize_arabic(raw_token), ?) > 0 "
            "ORDER BY rowid",
            (needle, needle),
        )
        return self._lemmas_by_ids(
            _ordered_ids((r["lemma_id"], r["msa_lemma_id"]) for r in rows)
        )

    def find_roots(self, query: str) -> list[RootModel]:
        needle = normalize_root(query)
        if not needle:
            return []
        rows = self._conn.execute(
            "SELECT root FROM roots WHERE instr(root, ?) > 0 ORDER BY rowid",
            (needle,),
        )
        return [RootModel(r["root"]) for r in rows]

    def find_forms(self, query: str) -> list[FormModel]:
        needle = normalize_arabic(query)
        if not needle:
            return []
        rows = self._conn.execute(
            "SELECT * FROM forms WHERE instr(normalize_arabic(token), ?) > 0 "
            "ORDER BY rowid",
            (needle,),
        )
        return [_db.row_to_form(r) for r in rows]

    def find_sentences(self, query: str) -> list[SentenceModel]:
        needle = normalize_arabic(query)
        if not needle:
            return []
        rows = self._conn.execute(
            "SELECT * FROM sentences WHERE instr(normalize_arabic(text), ?) > 0 "
            "ORDER BY rowid",
            (needle,),
        )
        return [_db.row_to_sentence(r) for r in rows]

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def lemmas_for_concept(
        self, concept_id: str, *, dialect: str | None = None
    ) -> list[LemmaModel]:
        self.get_concept(concept_id)
        sql = (
            "SELECT l.* FROM lemmas l "
            "JOIN lemma_concepts lc ON lc.lemma_id = l.id "
            "WHERE lc.concept_id = ?"
        )
        params: list[Any] = [concept_id]
        if dialect is not None:
            sql += " AND l.dialect_code = ?"
            params.append(dialect)
        rows = self._conn.execute(sql + " ORDER BY l.rowid", params)
        return [self._build_lemma(r) for r in rows]

    def lemmas_for_root(self, root: str) -> list[LemmaModel]:
        key = self.get_root(root).root
        rows = self._conn.execute(
            "SELECT * FROM lemmas WHERE root = ? ORDER BY rowid", (key,)
        )
        return [self._build_lemma(r) for r in rows]

    def concepts_for_root(self, root: str) -> list[ConceptModel]:
        """Concepts reachable through the root's lemmas, without repeats."""
        concept_ids = _ordered_ids(
            lemma.concept_ids for lemma in self.lemmas_for_root(root)
        )
        return [self.get_concept(cid) for cid in concept_ids]

    def forms_for_lemma(
        self, lemma_id: str, *, include_equivalent: bool = False
    ) -> list[FormModel]:
        """Forms realizing a lemma.

        With *include_equivalent*, forms whose standard equivalent is the
        lemma are included too.
        """
        self.get_lemma(lemma_id)
        if include_equivalent:
            rows = self._conn.execute(
                "SELECT * FROM forms WHERE lemma_id = ? OR msa_lemma_id = ? "
                "ORDER BY rowid",
                (lemma_id, lemma_id),
            )
        else:
            rows = self._conn.execute(
                "SELECT * FROM forms WHERE lemma_id = ? ORDER BY rowid",
                (lemma_id,),
            )
        return [_db.row_to_form(r) for r in rows]

    def sentences_for_lemma(self, lemma_id: str) -> list[SentenceModel]:
        sentence_ids = _ordered_ids(
            [f.sentence_id] for f in self.forms_for_lemma(lemma_id)
        )
        return [self.get_sentence(sid) for sid in sentence_ids]

    def correspondences(
        self, lemma_id: str, *, dialect: str | None = None
    ) -> list[LemmaModel]:
        """Lemmas linked to *lemma_id* by a cross-dialect correspondence."""
        lemma = self.get_lemma(lemma_id)
        result = self._lemmas_by_ids(lemma.correspondence_ids)
        if dialect is not None:
            result = [lm for lm in result if lm.dialect_code == dialect]
        return result

    def correspondence_in_dialect(
        self, lemma_id: str, dialect: str
    ) -> LemmaModel | None:
        matches = self.correspondences(lemma_id, dialect=dialect)
        return matches[0] if matches else None

    def lemmas_in_dialect(self, dialect: str) -> list[LemmaModel]:
        rows = self._conn.execute(
            "SELECT * FROM lemmas WHERE dialect_code = ? ORDER BY rowid",
            (dialect,),
        )
        return [self._build_lemma(r) for r in rows]

    def forms_in_dialect(self, dialect: str) -> list[FormModel]:
        rows = self._conn.execute(
            "SELECT * FROM forms WHERE dialect_code = ? ORDER BY rowid",
            (dialect,),
        )
        return [_db.row_to_form(r) for r in rows]

    def forms_for_sentence(self, sentence_id: str) -> list[FormModel]:
        """Forms of a sentence in word order."""
        self.get_sentence(sentence_id)
        rows = self._conn.execute(
            "SELECT * FROM forms WHERE sentence_id = ? "
            "ORDER BY word_position, rowid",
            (sentence_id,),
        )
        return [_db.row_to_form(r) for r in rows]

    def concept_children(self, concept_id: str) -> list[ConceptModel]:
        self.get_concept(concept_id)
        rows = self._conn.execute(
            "SELECT * FROM concepts WHERE parent_id = ? ORDER BY rowid",
            (concept_id,),
        )
        return [_db.row_to_concept(r) for r in rows]

    def concept_ancestors(self, concept_id: str) -> list[ConceptModel]:
        """Parent chain of a concept, nearest first.

        Stops at the first concept already visited, so a cycle in the
        hierarchy ends the walk instead of looping.
        """
        concept = self.get_concept(concept_id)
        seen = {concept.id}
        ancestors: list[ConceptModel] = []
        while concept.parent_id is not None and concept.parent_id not in seen:
            try:
                concept = self.get_concept(concept.parent_id)
            except EntityNotFoundError:
                break
            seen.add(concept.id)
            ancestors.append(concept)
        return ancestors

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def statistics(self) -> OntologyStatistics:
        def count(table: str) -> int:
            return self._conn.execute(
                f"SELECT COUNT(*) FROM {table}"
            ).fetchone()[0]

        return OntologyStatistics(
            concept_count=count("concepts"),
            root_count=count("roots"),
            lemma_count=count("lemmas"),
            form_count=count("forms"),
            sentence_count=count("sentences"),
            dialect_count=count("dialects"),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_lemma(self, row: sqlite3.Row) -> LemmaModel:
        lemma = _db.row_to_lemma(row)
        lemma.concept_ids = [
            r["concept_id"] for r in self._conn.execute(
                "SELECT concept_id FROM lemma_concepts WHERE lemma_id = ? "
                "ORDER BY rowid",
                (lemma.id,),
            )
        ]
        lemma.correspondence_ids = [
            r["target_id"] for r in self._conn.execute(
                "SELECT target_id FROM lemma_correspondences "
                "WHERE source_id = ? ORDER BY rowid",
                (lemma.id,),
            )
        ]
        return lemma

    def _lemmas_by_ids(self, lemma_ids: Iterable[str]) -> list[LemmaModel]:
        lemmas = []
        for lemma_id in lemma_ids:
            row = self._conn.execute(
                "SELECT * FROM lemmas WHERE id = ?", (lemma_id,)
            ).fetchone()
            if row is not None:
                lemmas.append(self._build_lemma(row))
        return lemmas


def _ordered_ids(groups: Iterable[Iterable[str | None]]) -> list[str]:
    """Flatten id groups, dropping ``None`` and repeats, keeping order."""
    return list(dict.fromkeys(i for group in groups for i in group if i))
