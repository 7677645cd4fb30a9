"""Inverted index from English gloss tokens to lemmas."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable

from arabic_ontology.models import FormModel, GlossIndexEntry
from arabic_ontology.normalize import gloss_tokens
from arabic_ontology.registry import EntityRegistry

logger = logging.getLogger(__name__)


def index_glosses(forms: Iterable[FormModel], registry: EntityRegistry) -> int:
    """Add a ``token|lemma_id`` entry per gloss token and associated lemma.

    Both the dialect lemma and the standard equivalent of a form are
    indexed. Returns the number of new entries.
    """
    added = 0
    for form in forms:
        if not form.gloss:
            continue
        lemma_ids = [i for i in (form.lemma_id, form.msa_lemma_id) if i]
        if not lemma_ids:
            continue
        for token in gloss_tokens(form.gloss):
            for lemma_id in lemma_ids:
                if registry.add_gloss_entry(GlossIndexEntry(token, lemma_id)):
                    added += 1
    logger.debug(f"Indexed {added} gloss entries")
    return added


def lookup(conn: sqlite3.Connection, phrase: str) -> list[str]:
    """Lemma ids indexed under any token of *phrase*.

    Ids are deduplicated and returned in first-seen order, token by token.
    """
    lemma_ids: list[str] = []
    seen: set[str] = set()
    for token in dict.fromkeys(gloss_tokens(phrase)):
        rows = conn.execute(
            "SELECT lemma_id FROM gloss_index WHERE token = ? ORDER BY rowid",
            (token,),
        )
        for (lemma_id,) in rows:
            if lemma_id not in seen:
                seen.add(lemma_id)
                lemma_ids.append(lemma_id)
    return lemma_ids
