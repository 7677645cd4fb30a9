__version__ = "0.1.0"

from .config import (
    CORPORA as CORPORA,
    CorpusDescriptor as CorpusDescriptor,
    ImportConfig as ImportConfig,
    get_corpus as get_corpus,
    load_import_config as load_import_config,
)

from .exceptions import (
    OntologyError as OntologyError,
    SourceError as SourceError,
    SourceFileMissing as SourceFileMissing,
    EmptyFile as EmptyFile,
    MissingColumns as MissingColumns,
    MalformedRow as MalformedRow,
    ImportCancelled as ImportCancelled,
    ConfigError as ConfigError,
    EntityNotFoundError as EntityNotFoundError,
    DatabaseError as DatabaseError,
)

from .models import (
    ConceptModel as ConceptModel,
    DialectModel as DialectModel,
    FormModel as FormModel,
    LemmaModel as LemmaModel,
    RootModel as RootModel,
    SentenceModel as SentenceModel,
    OntologyStatistics as OntologyStatistics,
    Register as Register,
)

from .normalize import (
    normalize_arabic as normalize_arabic,
    normalize_root as normalize_root,
    gloss_tokens as gloss_tokens,
)

from .pipeline import (
    ImportPipeline as ImportPipeline,
    ImportReport as ImportReport,
    PipelineStage as PipelineStage,
    run_import as run_import,
)

from .query import OntologyQuery as OntologyQuery

__all__ = [
    # Configuration
    "CORPORA",
    "CorpusDescriptor",
    "ImportConfig",
    "get_corpus",
    "load_import_config",
    # Exceptions
    "OntologyError",
    "SourceError",
    "SourceFileMissing",
    "EmptyFile",
    "MissingColumns",
    "MalformedRow",
    "ImportCancelled",
    "ConfigError",
    "EntityNotFoundError",
    "DatabaseError",
    # Models
    "ConceptModel",
    "DialectModel",
    "FormModel",
    "LemmaModel",
    "RootModel",
    "SentenceModel",
    "OntologyStatistics",
    "Register",
    # Normalization
    "normalize_arabic",
    "normalize_root",
    "gloss_tokens",
    # Import
    "ImportPipeline",
    "ImportReport",
    "PipelineStage",
    "run_import",
    # Query
    "OntologyQuery",
]
