"""Cross-reference linking: lemma-concept membership and lemma correspondences."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from arabic_ontology.models import FormModel, LemmaModel
from arabic_ontology.normalize import normalize_arabic
from arabic_ontology.registry import EntityRegistry

logger = logging.getLogger(__name__)


def link_lemma_concepts(registry: EntityRegistry) -> int:
    """Attach each concept to every lemma whose headword is one of its terms.

    Terms and headwords are compared after :func:`normalize_arabic`, so a
    vocalized synset term still finds the bare headword. A lemma may end up
    in several concepts. Links that already exist are left alone.

    Returns the number of new links.
    """
    by_headword: dict[str, list[LemmaModel]] = defaultdict(list)
    for lemma in registry.lemmas.values():
        key = lemma.normalized_headword or normalize_arabic(lemma.headword)
        if key:
            by_headword[key].append(lemma)

    linked = 0
    for concept in registry.concepts.values():
        for term in concept.terms:
            for lemma in by_headword.get(normalize_arabic(term), ()):
                if registry.link_lemma_concept(lemma, concept.id):
                    linked += 1
    logger.debug(f"Linked {linked} lemma-concept pairs")
    return linked


def collect_correspondence_pairs(
    forms: Iterable[FormModel],
    stored_pairs: Iterable[tuple[str, str]] = (),
) -> list[tuple[str, str]]:
    """Distinct unordered ``(lemma_id, msa_lemma_id)`` pairs attested by forms.

    *stored_pairs* carries the same pairs for forms persisted by earlier
    runs. Each pair is returned once, sorted, in first-seen order.
    """
    seen: set[tuple[str, str]] = set()
    pairs: list[tuple[str, str]] = []

    def add(first: str | None, second: str | None) -> None:
        if not first or not second or first == second:
            return
        pair = (first, second) if first < second else (second, first)
        if pair not in seen:
            seen.add(pair)
            pairs.append(pair)

    for first, second in stored_pairs:
        add(first, second)
    for form in forms:
        add(form.lemma_id, form.msa_lemma_id)
    return pairs


def build_correspondences(
    registry: EntityRegistry,
    pairs: Iterable[tuple[str, str]],
) -> int:
    """Link each observed pair in both directions.

    Only pairs seen together on a form are linked. Two dialect lemmas that
    share a standard equivalent are not linked to each other.

    Returns the number of directed links added.
    """
    added = 0
    for first, second in pairs:
        added += registry.link_correspondence(first, second)
    logger.debug(f"Added {added} directed correspondence links")
    return added
