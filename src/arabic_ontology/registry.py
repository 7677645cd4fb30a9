"""Per-run entity registry: identity maps plus the queue of pending writes."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field

from arabic_ontology import db as _db
from arabic_ontology.models import (
    ConceptModel,
    DialectModel,
    EntityKind,
    FormModel,
    GlossIndexEntry,
    LemmaModel,
    RootModel,
    SentenceModel,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PendingChanges:
    """Everything created or linked during the current run."""

    dialects: list[DialectModel] = field(default_factory=list)
    concepts: list[ConceptModel] = field(default_factory=list)
    roots: list[RootModel] = field(default_factory=list)
    lemmas: list[LemmaModel] = field(default_factory=list)
    sentences: list[SentenceModel] = field(default_factory=list)
    forms: list[FormModel] = field(default_factory=list)
    gloss_entries: list[GlossIndexEntry] = field(default_factory=list)
    # concept_id -> parent_id
    parents: dict[str, str] = field(default_factory=dict)
    # (lemma_id, concept_id)
    lemma_concepts: list[tuple[str, str]] = field(default_factory=list)
    # directed (source_id, target_id); both directions are queued
    correspondences: list[tuple[str, str]] = field(default_factory=list)


class EntityRegistry:
    """Identity-keyed caches for one import run.

    Every ``add_*`` method is a no-op returning ``False`` when the identity
    is already known, either from the store (see :meth:`load`) or from
    earlier in the run. Forms and gloss index entries are tracked by key
    only; their objects live in :attr:`pending` until persisted.
    """

    def __init__(self) -> None:
        self.dialects: dict[str, DialectModel] = {}
        self.concepts: dict[str, ConceptModel] = {}
        self.roots: dict[str, RootModel] = {}
        self.lemmas: dict[str, LemmaModel] = {}
        self.sentences: dict[str, SentenceModel] = {}
        self.form_keys: set[str] = set()
        self.gloss_keys: set[str] = set()
        self.pending = PendingChanges()
        self._register_aliases: dict[str, str] = {}

    @classmethod
    def load(
        cls,
        conn: sqlite3.Connection,
        *,
        include_corpus: bool = True,
    ) -> EntityRegistry:
        """Pre-seed a registry from the existing graph state."""
        registry = cls()
        registry.dialects = {d.code: d for d in _db.load_dialects(conn)}
        registry.concepts = {c.id: c for c in _db.load_concepts(conn)}
        registry.roots = {r.root: r for r in _db.load_roots(conn)}
        registry.lemmas = _db.load_lemmas(conn)
        if include_corpus:
            registry.sentences = {s.id: s for s in _db.load_sentences(conn)}
            registry.form_keys = _db.load_form_keys(conn)
            registry.gloss_keys = _db.load_gloss_keys(conn)
        logger.debug(
            f"Loaded {len(registry.concepts)} concepts, "
            f"{len(registry.roots)} roots, {len(registry.lemmas)} lemmas, "
            f"{len(registry.sentences)} sentences, "
            f"{len(registry.form_keys)} form keys"
        )
        return registry

    # ------------------------------------------------------------------
    # Entity creation
    # ------------------------------------------------------------------

    def add_dialect(self, dialect: DialectModel) -> bool:
        if dialect.code in self.dialects:
            return False
        self.dialects[dialect.code] = dialect
        self.pending.dialects.append(dialect)
        return True

    def add_concept(self, concept: ConceptModel) -> bool:
        if concept.id in self.concepts:
            return False
        self.concepts[concept.id] = concept
        self.pending.concepts.append(concept)
        return True

    def add_root(self, root: RootModel) -> bool:
        if root.root in self.roots:
            return False
        self.roots[root.root] = root
        self.pending.roots.append(root)
        return True

    def add_lemma(self, lemma: LemmaModel) -> bool:
        if lemma.id in self.lemmas:
            return False
        self.lemmas[lemma.id] = lemma
        self.pending.lemmas.append(lemma)
        return True

    def add_sentence(self, sentence: SentenceModel) -> bool:
        if sentence.id in self.sentences:
            return False
        self.sentences[sentence.id] = sentence
        self.pending.sentences.append(sentence)
        return True

    def add_form(self, form: FormModel) -> bool:
        if form.key in self.form_keys:
            return False
        self.form_keys.add(form.key)
        self.pending.forms.append(form)
        return True

    def add_gloss_entry(self, entry: GlossIndexEntry) -> bool:
        key = entry.key
        if key in self.gloss_keys:
            return False
        self.gloss_keys.add(key)
        self.pending.gloss_entries.append(entry)
        return True

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def set_parent(self, concept_id: str, parent_id: str) -> bool:
        """Point a concept at its parent; both must already be registered.

        The first parent wins, including one loaded from the store. Later
        rows naming a different parent are ignored.
        """
        concept = self.concepts.get(concept_id)
        if concept is None or parent_id not in self.concepts:
            return False
        if concept.parent_id is not None:
            return False
        concept.parent_id = parent_id
        self.pending.parents[concept_id] = parent_id
        return True

    def link_lemma_concept(self, lemma: LemmaModel, concept_id: str) -> bool:
        if concept_id in lemma.concept_ids:
            return False
        lemma.concept_ids.append(concept_id)
        self.pending.lemma_concepts.append((lemma.id, concept_id))
        return True

    def link_correspondence(self, first_id: str, second_id: str) -> int:
        """Link two lemmas symmetrically; return directed links added."""
        first = self.lemmas.get(first_id)
        second = self.lemmas.get(second_id)
        if first is None or second is None or first_id == second_id:
            return 0
        added = 0
        if second_id not in first.correspondence_ids:
            first.correspondence_ids.append(second_id)
            self.pending.correspondences.append((first_id, second_id))
            added += 1
        if first_id not in second.correspondence_ids:
            second.correspondence_ids.append(first_id)
            self.pending.correspondences.append((second_id, first_id))
            added += 1
        return added

    # ------------------------------------------------------------------
    # Register aliases
    # ------------------------------------------------------------------

    def register_dialect_alias(self, register: str, code: str) -> None:
        self._register_aliases[register] = code

    def dialect_for_register(self, register: str) -> DialectModel | None:
        code = self._register_aliases.get(register)
        return self.dialects.get(code) if code is not None else None

    # ------------------------------------------------------------------
    # Run bookkeeping
    # ------------------------------------------------------------------

    def counts(self) -> dict[str, int]:
        """Number of entities created this run, per kind."""
        p = self.pending
        return {
            EntityKind.DIALECT.value: len(p.dialects),
            EntityKind.CONCEPT.value: len(p.concepts),
            EntityKind.ROOT.value: len(p.roots),
            EntityKind.LEMMA.value: len(p.lemmas),
            EntityKind.SENTENCE.value: len(p.sentences),
            EntityKind.FORM.value: len(p.forms),
            EntityKind.GLOSS_ENTRY.value: len(p.gloss_entries),
        }

    def discard(self) -> None:
        """Forget everything registered in this run (used when a run aborts)."""
        for cache in (self.dialects, self.concepts, self.roots, self.lemmas,
                      self.sentences, self.form_keys, self.gloss_keys,
                      self._register_aliases):
            cache.clear()
        self.pending = PendingChanges()
