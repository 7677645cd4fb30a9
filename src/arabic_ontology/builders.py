"""Entity builders: one per source kind, writing through the registry."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from arabic_ontology.config import CorpusDescriptor
from arabic_ontology.exceptions import MalformedRow
from arabic_ontology.models import (
    DIALECTS,
    REGISTER_DIALECTS,
    ConceptModel,
    FormModel,
    LemmaModel,
    RootModel,
    SentenceModel,
    form_key,
    sentence_key,
)
from arabic_ontology.normalize import normalize_arabic, normalize_root
from arabic_ontology.reader import Row, Table, flag, integer, optional, required
from arabic_ontology.registry import EntityRegistry

logger = logging.getLogger(__name__)

LEXICON_COLUMNS = ("lemma_id", "lemma", "language", "pos_cat", "pos")
CONCEPT_COLUMNS = ("conceptId", "arabicSynset", "dataSourceId")
RELATION_COLUMNS = ("concept_id", "subTypeOfID")
SENTENCE_COLUMNS = ("Sentence_id", "sentence")

# Lemma id meaning "no lemma", and parent id meaning "top level".
NO_LEMMA = "0"
TOP_LEVEL = "0"


def form_columns(corpus: CorpusDescriptor) -> tuple[str, ...]:
    """Required columns of a corpus forms file."""
    return (
        "sentenceId", "wordPosition", corpus.token_column,
        "MSALemmaID", "DALemmaID",
    )


@dataclass(slots=True)
class BuildResult:
    """Row accounting for one source file."""

    source: str
    created: int = 0
    skipped: int = 0
    malformed: int = 0
    dangling: int = 0

    def summary(self) -> str:
        parts = [f"{self.created} created"]
        if self.skipped:
            parts.append(f"{self.skipped} already present")
        if self.malformed:
            parts.append(f"{self.malformed} malformed rows skipped")
        if self.dangling:
            parts.append(f"{self.dangling} unresolved references")
        return f"{self.source}: {', '.join(parts)}"


@dataclass(slots=True)
class FormDraft:
    """Forms parsed from one corpus, not yet merged into the registry."""

    corpus: CorpusDescriptor
    forms: list[FormModel] = field(default_factory=list)
    result: BuildResult = field(default_factory=lambda: BuildResult(""))


def _result_for(table: Table) -> BuildResult:
    return BuildResult(source=table.source, malformed=table.malformed)


# ---------------------------------------------------------------------------
# Dialects
# ---------------------------------------------------------------------------

def seed_dialects(registry: EntityRegistry) -> BuildResult:
    """Insert the fixed dialect catalog and the register aliases."""
    result = BuildResult(source="dialect catalog")
    for dialect in DIALECTS:
        if registry.add_dialect(dialect):
            result.created += 1
        else:
            result.skipped += 1
    for register, code in REGISTER_DIALECTS.items():
        registry.register_dialect_alias(register, code)
    return result


# ---------------------------------------------------------------------------
# Concepts
# ---------------------------------------------------------------------------

def build_concepts(table: Table, registry: EntityRegistry) -> BuildResult:
    result = _result_for(table)
    for line, row in table.records():
        concept_id = required(row, "conceptId")
        if not concept_id:
            _malformed(result, table.source, line, "empty conceptId")
            continue
        if concept_id in registry.concepts:
            result.skipped += 1
            continue
        registry.add_concept(ConceptModel(
            id=concept_id,
            synset=required(row, "arabicSynset"),
            english_synset=optional(row, "englishSynset"),
            gloss=optional(row, "gloss"),
            example=optional(row, "example"),
            data_source_id=integer(row, "dataSourceId") or 0,
        ))
        result.created += 1
    return result


def build_hierarchy(table: Table, registry: EntityRegistry) -> BuildResult:
    """Set concept parents; links to unknown concepts are dropped."""
    result = _result_for(table)
    for line, row in table.records():
        concept_id = required(row, "concept_id")
        if not concept_id:
            _malformed(result, table.source, line, "empty concept_id")
            continue
        parent_id = optional(row, "subTypeOfID")
        if parent_id is None or parent_id == TOP_LEVEL:
            continue
        if concept_id not in registry.concepts or parent_id not in registry.concepts:
            result.dangling += 1
            continue
        if registry.set_parent(concept_id, parent_id):
            result.created += 1
        else:
            result.skipped += 1
    return result


# ---------------------------------------------------------------------------
# Lexicon
# ---------------------------------------------------------------------------

def build_lexicon(table: Table, registry: EntityRegistry) -> BuildResult:
    """Create lemmas and the roots they reference."""
    result = _result_for(table)
    for line, row in table.records():
        try:
            lemma = _lemma_from_row(row, table.source, line)
        except MalformedRow as e:
            _malformed(result, table.source, line, str(e))
            continue
        if lemma.id in registry.lemmas:
            result.skipped += 1
            continue

        lemma.root = _resolve_root(row, registry)
        dialect = registry.dialect_for_register(lemma.register)
        if dialect is None:
            result.dangling += 1
        else:
            lemma.dialect_code = dialect.code

        registry.add_lemma(lemma)
        result.created += 1
    return result


def _lemma_from_row(row: Row, source: str, line: int) -> LemmaModel:
    lemma_id = required(row, "lemma_id")
    headword = required(row, "lemma")
    if not lemma_id:
        raise MalformedRow(source, line, "empty lemma_id")
    if not headword:
        raise MalformedRow(source, line, f"lemma {lemma_id} has no headword")
    return LemmaModel(
        id=lemma_id,
        headword=headword,
        normalized_headword=normalize_arabic(headword),
        register=required(row, "language"),
        pos_category=required(row, "pos_cat"),
        pos=required(row, "pos"),
        augmentation=optional(row, "augmentation"),
        number=optional(row, "number"),
        person=optional(row, "person"),
        gender=optional(row, "gender"),
        voice=optional(row, "voice"),
        transitivity=optional(row, "transitivity"),
        uninflected=flag(row, "uninflected"),
    )


def _resolve_root(row: Row, registry: EntityRegistry) -> str | None:
    raw = optional(row, "root")
    if raw is None:
        return None
    key = normalize_root(raw)
    if not key:
        return None
    registry.add_root(RootModel(key))
    return key


# ---------------------------------------------------------------------------
# Corpus sentences and forms
# ---------------------------------------------------------------------------

def build_sentences(
    table: Table,
    registry: EntityRegistry,
    dialect_code: str,
) -> BuildResult:
    """Create sentences keyed by ``dialect:Sentence_id``."""
    result = _result_for(table)
    for line, row in table.records():
        source_id = required(row, "Sentence_id")
        text = required(row, "sentence")
        if not source_id or not text:
            _malformed(result, table.source, line, "empty sentence id or text")
            continue
        key = sentence_key(dialect_code, source_id)
        if registry.add_sentence(SentenceModel(
            id=key,
            source_sentence_id=source_id,
            text=text,
            dialect_code=dialect_code,
        )):
            result.created += 1
        else:
            result.skipped += 1
    return result


def draft_forms(
    table: Table,
    registry: EntityRegistry,
    corpus: CorpusDescriptor,
) -> FormDraft:
    """Parse a forms file into form objects, reading the registry only.

    Safe to run for several corpora at once as long as no thread is
    writing to the registry; :func:`merge_forms` does the writes.
    """
    draft = FormDraft(corpus=corpus, result=_result_for(table))
    result = draft.result
    dialect = corpus.dialect_code

    for line, row in table.records():
        token = required(row, corpus.token_column)
        sentence_id = required(row, "sentenceId")
        position = integer(row, "wordPosition")
        if not token or not sentence_id:
            _malformed(result, table.source, line, "empty token or sentenceId")
            continue
        if position is None:
            _malformed(
                result, table.source, line,
                f"wordPosition {row.get('wordPosition')!r} is not an integer",
            )
            continue

        key = form_key(dialect, sentence_id, position)
        if key in registry.form_keys:
            result.skipped += 1
            continue

        sentence = sentence_key(dialect, sentence_id)
        draft.forms.append(FormModel(
            key=key,
            token=token,
            word_position=position,
            dialect_code=dialect,
            raw_token=optional(row, "rawToken"),
            gloss=optional(row, "Gloss"),
            pos=optional(row, "POS"),
            prefixes=optional(row, "Prefixes"),
            stem=optional(row, "Stem"),
            suffixes=optional(row, "Suffixes"),
            person=optional(row, "Person"),
            gender=optional(row, "Gender"),
            number=optional(row, "Number"),
            subdialect=optional(row, "subdialect"),
            lemma_id=_resolve_lemma(row, "DALemmaID", registry, result),
            msa_lemma_id=_resolve_lemma(row, "MSALemmaID", registry, result),
            sentence_id=sentence if sentence in registry.sentences else None,
        ))
    return draft


def merge_forms(
    drafts: Iterable[FormDraft],
    registry: EntityRegistry,
) -> list[BuildResult]:
    """Register drafted forms in draft order, dropping keys already seen."""
    results = []
    for draft in drafts:
        result = draft.result
        for form in draft.forms:
            if registry.add_form(form):
                result.created += 1
            else:
                result.skipped += 1
        results.append(result)
    return results


def build_forms(
    table: Table,
    registry: EntityRegistry,
    corpus: CorpusDescriptor,
) -> BuildResult:
    [result] = merge_forms([draft_forms(table, registry, corpus)], registry)
    return result


def _resolve_lemma(
    row: Row,
    column: str,
    registry: EntityRegistry,
    result: BuildResult,
) -> str | None:
    lemma_id = optional(row, column)
    if lemma_id is None or lemma_id == NO_LEMMA:
        return None
    if lemma_id not in registry.lemmas:
        result.dangling += 1
        return None
    return lemma_id


def _malformed(result: BuildResult, source: str, line: int, reason: str) -> None:
    result.malformed += 1
    logger.debug(f"{source}:{line}: skipping row: {reason}")
