"""Domain model dataclasses and enums for arabic-ontology."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Register(str, Enum):
    """Lexicon register of a lemma (not a geographic dialect)."""

    STANDARD = "فصحى حديثة"
    COLLOQUIAL = "عامية"
    FOREIGN = "أجنبية"


class EntityKind(str, Enum):
    """Kinds of graph entities, used for counts and reports."""

    DIALECT = "dialect"
    CONCEPT = "concept"
    ROOT = "root"
    LEMMA = "lemma"
    SENTENCE = "sentence"
    FORM = "form"
    GLOSS_ENTRY = "gloss_entry"


STANDARD_DIALECT = "msa"

# Concepts curated by hand carry this provenance tag.
WELL_DESIGNED_SOURCE = 200

_POS_CATEGORY_ENGLISH = {
    "اسم": "Noun",
    "فعل": "Verb",
    "كلمة وظيفية": "Function Word",
}

_GENDER_ENGLISH = {"m": "masculine", "f": "feminine"}
_NUMBER_ENGLISH = {"s": "singular", "d": "dual", "p": "plural"}


def split_terms(synset: str | None) -> list[str]:
    """Split a pipe-delimited synonym set into trimmed, non-empty terms."""
    if not synset:
        return []
    return [t.strip() for t in synset.split("|") if t.strip()]


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DialectModel:
    """A language variety: the standard one or a regional dialect."""

    code: str
    name: str
    region: str
    corpus_source: str


@dataclass(slots=True)
class ConceptModel:
    """A meaning unit defined by a set of synonymous headwords."""

    id: str
    synset: str
    english_synset: str | None = None
    gloss: str | None = None
    example: str | None = None
    data_source_id: int = 0
    parent_id: str | None = None

    @property
    def terms(self) -> list[str]:
        return split_terms(self.synset)

    @property
    def english_terms(self) -> list[str]:
        return split_terms(self.english_synset)

    @property
    def is_well_designed(self) -> bool:
        return self.data_source_id == WELL_DESIGNED_SOURCE


@dataclass(frozen=True, slots=True)
class RootModel:
    """A consonantal root, e.g. ``"ك ت ب"``."""

    root: str

    @property
    def consonants(self) -> list[str]:
        return self.root.split()

    @property
    def consonant_count(self) -> int:
        return len(self.consonants)


@dataclass(slots=True)
class LemmaModel:
    """A dictionary headword in one register."""

    id: str
    headword: str
    register: str
    pos_category: str
    pos: str
    normalized_headword: str = ""
    augmentation: str | None = None
    number: str | None = None
    person: str | None = None
    gender: str | None = None
    voice: str | None = None
    transitivity: str | None = None
    uninflected: bool = False
    root: str | None = None
    dialect_code: str | None = None
    concept_ids: list[str] = field(default_factory=list)
    correspondence_ids: list[str] = field(default_factory=list)

    @property
    def is_standard(self) -> bool:
        return self.register == Register.STANDARD.value

    @property
    def is_colloquial(self) -> bool:
        return self.register == Register.COLLOQUIAL.value

    @property
    def is_foreign(self) -> bool:
        return self.register == Register.FOREIGN.value

    @property
    def pos_category_english(self) -> str:
        return _POS_CATEGORY_ENGLISH.get(self.pos_category, self.pos_category)


@dataclass(frozen=True, slots=True)
class SentenceModel:
    """A corpus sentence, keyed by ``dialect:source_sentence_id``."""

    id: str
    source_sentence_id: str
    text: str
    dialect_code: str


@dataclass(frozen=True, slots=True)
class FormModel:
    """One attested token occurrence in a corpus sentence."""

    key: str
    token: str
    word_position: int
    dialect_code: str
    raw_token: str | None = None
    gloss: str | None = None
    pos: str | None = None
    prefixes: str | None = None
    stem: str | None = None
    suffixes: str | None = None
    person: str | None = None
    gender: str | None = None
    number: str | None = None
    subdialect: str | None = None
    lemma_id: str | None = None
    msa_lemma_id: str | None = None
    sentence_id: str | None = None

    @property
    def features(self) -> str:
        return ".".join(
            f for f in (self.person, self.gender, self.number) if f
        )

    @property
    def gender_english(self) -> str | None:
        return _GENDER_ENGLISH.get(self.gender or "")

    @property
    def number_english(self) -> str | None:
        return _NUMBER_ENGLISH.get(self.number or "")


@dataclass(frozen=True, slots=True)
class GlossIndexEntry:
    """Maps one normalized English gloss token to a lemma."""

    token: str
    lemma_id: str

    @property
    def key(self) -> str:
        return gloss_key(self.token, self.lemma_id)


@dataclass(frozen=True, slots=True)
class OntologyStatistics:
    """Entity counts for the whole graph."""

    concept_count: int
    root_count: int
    lemma_count: int
    form_count: int
    sentence_count: int
    dialect_count: int


# ---------------------------------------------------------------------------
# Identity keys
# ---------------------------------------------------------------------------

def sentence_key(dialect_code: str, sentence_id: str) -> str:
    return f"{dialect_code}:{sentence_id}"


def form_key(dialect_code: str, sentence_id: str, position: int) -> str:
    return f"{dialect_code}:{sentence_id}:{position}"


def gloss_key(token: str, lemma_id: str) -> str:
    return f"{token}|{lemma_id}"


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

DIALECTS: tuple[DialectModel, ...] = (
    DialectModel("msa", "Modern Standard Arabic", "Standard", "Qabas"),
    DialectModel("lebanese", "Lebanese", "Levant", "Baladi"),
    DialectModel("syrian", "Syrian", "Levant", "Nabra"),
    DialectModel("palestinian", "Palestinian", "Levant", "Curras"),
    DialectModel("iraqi", "Iraqi", "Mesopotamia", "Lisan-Iraqi"),
    DialectModel("libyan", "Libyan", "Maghreb", "Lisan-Libyan"),
    DialectModel("sudanese", "Sudanese", "Nile Valley", "Lisan-Sudanese"),
    DialectModel("yemeni", "Yemeni", "Arabian Peninsula", "Lisan-Yemeni"),
)

# Register is not dialect: every register resolves to the standard variety.
# Dialect attribution of forms comes from the corpus file they were read from.
REGISTER_DIALECTS: dict[str, str] = {
    Register.STANDARD.value: STANDARD_DIALECT,
    Register.COLLOQUIAL.value: STANDARD_DIALECT,
    Register.FOREIGN.value: STANDARD_DIALECT,
}
