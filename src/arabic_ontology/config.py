"""
Import configuration: the corpus catalog and YAML import manifests.

A manifest describes one import run::

    data_dir: ./data
    corpora:
      - baladi
      - nabra
      - id: curras
        dataset_file: Curras-2024.csv
    workers: 4

``data_dir`` is resolved relative to the manifest file. ``corpora`` may
also be the string ``all``.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .exceptions import ConfigError
from .models import DIALECTS

LEXICON_FILE = "Qabas-dataset.csv"
CONCEPTS_FILE = "Concepts.csv"
RELATIONS_FILE = "Relations.csv"

DEFAULT_TOKEN_COLUMN = "Token"


@dataclass(frozen=True)
class CorpusDescriptor:
    """One dialect corpus: a forms file plus its sentences file."""
    id: str
    display_name: str
    dataset_file: str
    sentence_file: Optional[str]
    dialect_code: str
    token_column: str = DEFAULT_TOKEN_COLUMN


CORPORA: Tuple[CorpusDescriptor, ...] = (
    CorpusDescriptor(
        id="baladi",
        display_name="Baladi - Lebanese Dialect Corpus",
        dataset_file="Baladi-dataset.csv",
        sentence_file="Baladi_RowText_sentences.csv",
        dialect_code="lebanese",
    ),
    CorpusDescriptor(
        id="nabra",
        display_name="Nabra - Syrian Dialect Corpus",
        dataset_file="Nabra-dataset.csv",
        sentence_file="Nabra_RowText_sentences.csv",
        dialect_code="syrian",
        # Nabra carries its standardized orthography in CODA
        token_column="CODA",
    ),
    CorpusDescriptor(
        id="curras",
        display_name="Curras - Palestinian Dialect Corpus",
        dataset_file="Curras-dataset.csv",
        sentence_file="Curras_RowText_sentences.csv",
        dialect_code="palestinian",
    ),
    CorpusDescriptor(
        id="lisan_iraqi",
        display_name="Lisan - Iraqi Dialect Corpus",
        dataset_file="Lisan-Iraqi-dataset.csv",
        sentence_file="Lisan-Iraqi_RowText_sentences.csv",
        dialect_code="iraqi",
    ),
    CorpusDescriptor(
        id="lisan_libyan",
        display_name="Lisan - Libyan Dialect Corpus",
        dataset_file="Lisan-Libyan-dataset.csv",
        sentence_file="Lisan-Libyan_RowText_sentences.csv",
        dialect_code="libyan",
    ),
    CorpusDescriptor(
        id="lisan_sudanese",
        display_name="Lisan - Sudanese Dialect Corpus",
        dataset_file="Lisan-Sudanese-dataset.csv",
        sentence_file="Lisan-Sudanese_RowText_sentences.csv",
        dialect_code="sudanese",
    ),
    CorpusDescriptor(
        id="lisan_yemeni",
        display_name="Lisan - Yemeni Dialect Corpus",
        dataset_file="Lisan-Yemeni-dataset.csv",
        sentence_file="Lisan-Yemeni_RowText_sentences.csv",
        dialect_code="yemeni",
    ),
)

CORPUS_IDS: Dict[str, CorpusDescriptor] = {c.id: c for c in CORPORA}

_DIALECT_CODES = frozenset(d.code for d in DIALECTS)

_CORPUS_OVERRIDES = ("display_name", "dataset_file", "sentence_file", "token_column")


def get_corpus(corpus_id: str) -> CorpusDescriptor:
    """Look up a catalog corpus by id.

    Raises:
        ConfigError: If the id is not in the catalog
    """
    try:
        return CORPUS_IDS[corpus_id]
    except KeyError:
        raise ConfigError(
            f"Unknown corpus {corpus_id!r}; expected one of "
            f"{', '.join(CORPUS_IDS)}"
        ) from None


@dataclass
class ImportConfig:
    """Where the sources live and which corpora one run imports."""
    data_dir: Path
    lexicon_file: str = LEXICON_FILE
    concepts_file: str = CONCEPTS_FILE
    relations_file: str = RELATIONS_FILE
    corpora: List[CorpusDescriptor] = field(default_factory=list)
    workers: int = 1

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir)
        if self.workers < 1:
            raise ConfigError("Field 'workers' must be at least 1")

    def path(self, filename: str) -> Path:
        return self.data_dir / filename

    @property
    def lexicon_path(self) -> Path:
        return self.path(self.lexicon_file)

    @property
    def concepts_path(self) -> Path:
        return self.path(self.concepts_file)

    @property
    def relations_path(self) -> Path:
        return self.path(self.relations_file)


def load_import_config(
    source: Union[str, Path, Dict[str, Any]],
) -> ImportConfig:
    """Load an import manifest from a YAML file, YAML string or dictionary.

    Raises:
        ConfigError: If the manifest cannot be parsed or is invalid
        FileNotFoundError: If the file does not exist
    """
    base_dir = Path.cwd()

    if isinstance(source, dict):
        data = source
    elif isinstance(source, Path) or (isinstance(source, str) and _is_file_path(source)):
        source_path = Path(source)
        if not source_path.exists():
            raise FileNotFoundError(f"File not found: {source_path}")
        base_dir = source_path.resolve().parent
        with open(source_path, "r", encoding="utf-8") as f:
            data = _load_yaml(f)
    else:
        data = _load_yaml(source)

    return _parse_import_config(data, base_dir)


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path."""
    if "\n" in s:
        return False
    if s.endswith((".yaml", ".yml")):
        return True
    return Path(s).is_file()


def _load_yaml(stream: Any) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line_num = mark.line + 1 if mark else None
        raise ConfigError(f"Invalid YAML: {e}", line=line_num) from e

    if data is None:
        raise ConfigError("Empty import manifest")
    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping (dictionary)")
    return data


def _parse_import_config(data: Dict[str, Any], base_dir: Path) -> ImportConfig:
    data_dir = data.get("data_dir")
    if not data_dir:
        raise ConfigError("Missing required field: 'data_dir'")
    if not isinstance(data_dir, str):
        raise ConfigError("Field 'data_dir' must be a string")
    data_path = Path(data_dir).expanduser()
    if not data_path.is_absolute():
        data_path = base_dir / data_path

    kwargs: Dict[str, Any] = {}
    for key in ("lexicon_file", "concepts_file", "relations_file"):
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str) or not value:
            raise ConfigError(f"Field '{key}' must be a non-empty string")
        kwargs[key] = value

    workers = data.get("workers", 1)
    if not isinstance(workers, int) or isinstance(workers, bool):
        raise ConfigError("Field 'workers' must be an integer")

    return ImportConfig(
        data_dir=data_path,
        corpora=_parse_corpora(data.get("corpora")),
        workers=workers,
        **kwargs,
    )


def _parse_corpora(value: Any) -> List[CorpusDescriptor]:
    if value is None:
        return []
    if value == "all":
        return list(CORPORA)
    if not isinstance(value, list):
        raise ConfigError("Field 'corpora' must be a list or 'all'")

    corpora: List[CorpusDescriptor] = []
    seen = set()
    for i, item in enumerate(value):
        if isinstance(item, str):
            corpus = get_corpus(item)
        elif isinstance(item, dict):
            corpus = _parse_corpus_entry(item, i)
        else:
            raise ConfigError(
                f"Corpus #{i + 1} must be an id or a mapping"
            )
        if corpus.id in seen:
            raise ConfigError(f"Corpus {corpus.id!r} listed twice")
        seen.add(corpus.id)
        corpora.append(corpus)
    return corpora


def _parse_corpus_entry(item: Dict[str, Any], index: int) -> CorpusDescriptor:
    corpus_id = item.get("id")
    if not corpus_id or not isinstance(corpus_id, str):
        raise ConfigError(f"Corpus #{index + 1}: Missing required field 'id'")

    overrides = {k: item[k] for k in _CORPUS_OVERRIDES if k in item}
    if "dialect" in item:
        overrides["dialect_code"] = item["dialect"]

    if corpus_id in CORPUS_IDS:
        corpus = replace(CORPUS_IDS[corpus_id], **overrides)
    else:
        for key in ("dataset_file", "dialect_code"):
            if key not in overrides:
                raise ConfigError(
                    f"Corpus #{index + 1} ({corpus_id}): custom corpora "
                    f"need '{'dialect' if key == 'dialect_code' else key}'"
                )
        overrides.setdefault("display_name", corpus_id)
        overrides.setdefault("sentence_file", None)
        corpus = CorpusDescriptor(id=corpus_id, **overrides)

    if corpus.dialect_code not in _DIALECT_CODES:
        raise ConfigError(
            f"Corpus #{index + 1} ({corpus_id}): unknown dialect "
            f"{corpus.dialect_code!r}"
        )
    return corpus
