"""Staged import pipeline: sources to registry to store."""

from __future__ import annotations

import logging
import queue
import sqlite3
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from arabic_ontology import db as _db
from arabic_ontology.builders import (
    CONCEPT_COLUMNS,
    LEXICON_COLUMNS,
    RELATION_COLUMNS,
    SENTENCE_COLUMNS,
    BuildResult,
    FormDraft,
    build_concepts,
    build_hierarchy,
    build_lexicon,
    build_sentences,
    draft_forms,
    form_columns,
    merge_forms,
    seed_dialects,
)
from arabic_ontology.config import CorpusDescriptor, ImportConfig
from arabic_ontology.exceptions import (
    DatabaseError,
    EmptyFile,
    ImportCancelled,
    MalformedRow,
    SourceFileMissing,
)
from arabic_ontology.gloss_index import index_glosses
from arabic_ontology.linker import (
    build_correspondences,
    collect_correspondence_pairs,
    link_lemma_concepts,
)
from arabic_ontology.reader import Table, read_table
from arabic_ontology.registry import EntityRegistry

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class PipelineStage(str, Enum):
    INIT = "init"
    LOAD_CACHES = "load_caches"
    IMPORT_INDEPENDENT = "import_independent"
    IMPORT_LEXICON = "import_lexicon"
    BUILD_HIERARCHY = "build_hierarchy"
    LINK_LEMMA_CONCEPTS = "link_lemma_concepts"
    IMPORT_CORPUS_FORMS = "import_corpus_forms"
    INDEX_GLOSSES = "index_glosses"
    BUILD_CORRESPONDENCES = "build_correspondences"
    PERSIST = "persist"
    DONE = "done"


# Stages that only run when at least one corpus is selected.
CORPUS_STAGES = frozenset({
    PipelineStage.IMPORT_CORPUS_FORMS,
    PipelineStage.INDEX_GLOSSES,
    PipelineStage.BUILD_CORRESPONDENCES,
})


@dataclass
class ImportReport:
    """What one import run did."""

    stages: list[PipelineStage] = field(default_factory=list)
    created: dict[str, int] = field(default_factory=dict)
    links: dict[str, int] = field(default_factory=dict)
    sources: list[BuildResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def total_created(self) -> int:
        return sum(self.created.values())

    def source(self, name: str) -> BuildResult | None:
        for result in self.sources:
            if result.source == name:
                return result
        return None

    def summary(self) -> str:
        created = ", ".join(
            f"{n} {kind}" for kind, n in self.created.items() if n
        )
        links = ", ".join(f"{n} {kind}" for kind, n in self.links.items() if n)
        return (
            f"Created: {created or 'nothing'}. "
            f"Links: {links or 'none'}. "
            f"Warnings: {len(self.warnings)}."
        )


class ProgressRelay:
    """Deliver progress messages to a callback on a background thread.

    :meth:`send` only enqueues, so a slow callback never holds up the
    caller. Exceptions raised by the callback are logged and dropped.
    """

    _STOP = object()

    def __init__(self, callback: ProgressCallback) -> None:
        self.callback = callback
        self._queue: queue.SimpleQueue = queue.SimpleQueue()
        self._closed = False
        self._thread = threading.Thread(
            target=self._deliver, name="import-progress", daemon=True
        )
        self._thread.start()

    def send(self, message: str) -> None:
        if not self._closed:
            self._queue.put(message)

    def close(self) -> None:
        """Stop accepting messages; queued ones are still delivered."""
        if not self._closed:
            self._closed = True
            self._queue.put(self._STOP)

    def join(self, timeout: float | None = None) -> bool:
        """Wait for queued messages; True once all have been delivered."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _deliver(self) -> None:
        while True:
            message = self._queue.get()
            if message is self._STOP:
                return
            try:
                self.callback(message)
            except Exception:
                logger.warning("Progress callback failed", exc_info=True)


class ImportPipeline:
    """Run the import stages in order against one open store.

    Nothing is written until the ``PERSIST`` stage, which writes every
    pending entity and link in a single transaction. If any earlier stage
    raises, including :class:`ImportCancelled`, the run's pending state is
    discarded and the store is untouched.

    Progress messages go through a :class:`ProgressRelay`, so :meth:`run`
    may return before the callback has seen all of them. Call
    :meth:`wait_for_progress` to block until it has.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        config: ImportConfig,
        *,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.conn = conn
        self.config = config
        self.progress = progress
        self.cancel_event = cancel_event
        self.registry = EntityRegistry()
        self.report = ImportReport()
        self.stage = PipelineStage.INIT
        self._relay: ProgressRelay | None = None

    def run(self) -> ImportReport:
        if self.progress is not None:
            self._relay = ProgressRelay(self.progress)
        try:
            return self._run_stages()
        finally:
            if self._relay is not None:
                self._relay.close()

    def wait_for_progress(self, timeout: float | None = None) -> bool:
        """Block until every progress message from :meth:`run` is delivered."""
        if self._relay is None:
            return True
        return self._relay.join(timeout)

    def _run_stages(self) -> ImportReport:
        steps: list[tuple[PipelineStage, Callable[[], None]]] = [
            (PipelineStage.INIT, self._init),
            (PipelineStage.LOAD_CACHES, self._load_caches),
            (PipelineStage.IMPORT_INDEPENDENT, self._import_independent),
            (PipelineStage.IMPORT_LEXICON, self._import_lexicon),
            (PipelineStage.BUILD_HIERARCHY, self._build_hierarchy),
            (PipelineStage.LINK_LEMMA_CONCEPTS, self._link_lemma_concepts),
            (PipelineStage.IMPORT_CORPUS_FORMS, self._import_corpus_forms),
            (PipelineStage.INDEX_GLOSSES, self._index_glosses),
            (PipelineStage.BUILD_CORRESPONDENCES, self._build_correspondences),
            (PipelineStage.PERSIST, self._persist),
        ]
        try:
            for stage, step in steps:
                if stage in CORPUS_STAGES and not self.config.corpora:
                    continue
                self._enter(stage)
                step()
                self.report.stages.append(stage)
        except BaseException:
            self.registry.discard()
            raise

        self.stage = PipelineStage.DONE
        self.report.stages.append(PipelineStage.DONE)
        self._emit(f"Import complete. {self.report.summary()}")
        return self.report

    # ------------------------------------------------------------------
    # Stage plumbing
    # ------------------------------------------------------------------

    def _enter(self, stage: PipelineStage) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ImportCancelled(f"Import cancelled before stage {stage.value}")
        self.stage = stage
        logger.debug(f"Entering stage {stage.value}")

    def _emit(self, message: str) -> None:
        logger.info(message)
        if self._relay is not None:
            self._relay.send(message)

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.report.warnings.append(message)

    def _record(self, result: BuildResult) -> None:
        self.report.sources.append(result)
        self._emit(result.summary())
        if result.malformed:
            self._warn(
                f"{result.source}: skipped {result.malformed} malformed rows"
            )

    def _read_required(self, path: Path, columns: tuple[str, ...]) -> Table:
        return read_table(path, columns)

    def _read_optional(
        self, path: Path, columns: tuple[str, ...]
    ) -> Table | None:
        """Read a corpus source, or warn and skip it when absent or unparsable."""
        try:
            return read_table(path, columns)
        except (SourceFileMissing, EmptyFile, MalformedRow) as e:
            self._warn(f"Skipping optional source: {e}")
            return None

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _init(self) -> None:
        names = ", ".join(c.id for c in self.config.corpora) or "none"
        self._emit(
            f"Importing from {self.config.data_dir} (corpora: {names})"
        )

    def _load_caches(self) -> None:
        try:
            self.registry = EntityRegistry.load(
                self.conn, include_corpus=bool(self.config.corpora)
            )
        except sqlite3.Error as e:
            raise DatabaseError(f"Cannot load existing graph: {e}") from e
        self._emit(
            f"Loaded {len(self.registry.concepts)} concepts and "
            f"{len(self.registry.lemmas)} lemmas from the store"
        )

    def _import_independent(self) -> None:
        self._record(seed_dialects(self.registry))

        table = self._read_required(self.config.concepts_path, CONCEPT_COLUMNS)
        self._record(build_concepts(table, self.registry))

        for corpus in self.config.corpora:
            if corpus.sentence_file is None:
                continue
            table = self._read_optional(
                self.config.path(corpus.sentence_file), SENTENCE_COLUMNS
            )
            if table is not None:
                self._record(
                    build_sentences(table, self.registry, corpus.dialect_code)
                )

    def _import_lexicon(self) -> None:
        table = self._read_required(self.config.lexicon_path, LEXICON_COLUMNS)
        result = build_lexicon(table, self.registry)
        self._record(result)
        if result.dangling:
            self._warn(
                f"{result.source}: {result.dangling} lemmas have an "
                f"unrecognized register and no dialect"
            )

    def _build_hierarchy(self) -> None:
        table = self._read_required(self.config.relations_path, RELATION_COLUMNS)
        result = build_hierarchy(table, self.registry)
        self._record(result)
        self.report.links["parent"] = result.created

    def _link_lemma_concepts(self) -> None:
        linked = link_lemma_concepts(self.registry)
        self.report.links["lemma_concept"] = linked
        self._emit(f"Linked {linked} lemmas to concepts")

    def _import_corpus_forms(self) -> None:
        corpora = self.config.corpora
        workers = min(self.config.workers, len(corpora))
        self._emit(
            f"Reading {len(corpora)} corpora with {workers} worker(s)"
        )
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._draft_corpus, corpus)
                for corpus in corpora
            ]
            # Catalog order, so merging is deterministic.
            drafts = [f.result() for f in futures]

        for result in merge_forms(
            (d for d in drafts if d is not None), self.registry
        ):
            self._record(result)

    def _draft_corpus(self, corpus: CorpusDescriptor) -> FormDraft | None:
        table = self._read_optional(
            self.config.path(corpus.dataset_file), form_columns(corpus)
        )
        if table is None:
            return None
        return draft_forms(table, self.registry, corpus)

    def _index_glosses(self) -> None:
        added = index_glosses(self.registry.pending.forms, self.registry)
        self._emit(f"Indexed {added} gloss tokens")

    def _build_correspondences(self) -> None:
        try:
            pairs = collect_correspondence_pairs(
                self.registry.pending.forms,
                _db.iter_form_lemma_pairs(self.conn),
            )
        except sqlite3.Error as e:
            raise DatabaseError(f"Cannot read stored forms: {e}") from e
        added = build_correspondences(self.registry, pairs)
        self.report.links["correspondence"] = added
        self._emit(f"Added {added} correspondence links")

    def _persist(self) -> None:
        pending = self.registry.pending
        self.report.created = self.registry.counts()
        try:
            with self.conn:
                _db.insert_dialects(self.conn, pending.dialects)
                _db.insert_concepts(self.conn, pending.concepts)
                _db.update_concept_parents(self.conn, pending.parents.items())
                _db.insert_roots(self.conn, pending.roots)
                _db.insert_lemmas(self.conn, pending.lemmas)
                _db.insert_lemma_concepts(self.conn, pending.lemma_concepts)
                _db.insert_correspondences(self.conn, pending.correspondences)
                _db.insert_sentences(self.conn, pending.sentences)
                _db.insert_forms(self.conn, pending.forms)
                _db.insert_gloss_entries(self.conn, pending.gloss_entries)
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to persist import: {e}") from e
        self._emit(f"Saved {self.report.total_created} new entities")


def run_import(
    db_path: str | Path,
    config: ImportConfig,
    *,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> ImportReport:
    """Open (or create) the store at *db_path* and run one import.

    Returns once every progress message has reached *progress*.
    """
    conn = _db.open_store(db_path)
    pipeline = ImportPipeline(
        conn, config, progress=progress, cancel_event=cancel_event
    )
    try:
        return pipeline.run()
    finally:
        conn.close()
        pipeline.wait_for_progress()
