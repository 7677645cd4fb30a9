"""
Command-line interface for importing and searching the ontology.
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import CORPORA, ImportConfig, get_corpus, load_import_config
from .exceptions import ConfigError, OntologyError
from .pipeline import ImportReport, run_import
from .query import OntologyQuery

SEARCH_MODES = ("headword", "gloss", "form", "root")


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the arabic-ontology CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="arabic-ontology",
        description="Import and query an Arabic lexical knowledge graph",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s (arabic-ontology)",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # import command
    import_parser = subparsers.add_parser(
        "import",
        help="Import lexicon, ontology and corpora into a database",
    )
    import_parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory holding the source CSV files",
    )
    import_parser.add_argument(
        "--db",
        type=Path,
        required=True,
        help="SQLite database to create or update",
    )
    corpus_group = import_parser.add_mutually_exclusive_group()
    corpus_group.add_argument(
        "--corpus",
        action="append",
        metavar="ID",
        help="Corpus to import (repeatable); see 'corpora'",
    )
    corpus_group.add_argument(
        "--all-corpora",
        action="store_true",
        help="Import every corpus in the catalog",
    )
    import_parser.add_argument(
        "--config",
        type=Path,
        help="YAML import manifest; command-line options override it",
    )
    import_parser.add_argument(
        "--workers",
        type=int,
        help="Corpus files read in parallel (default: 1)",
    )
    import_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log per-file detail",
    )
    import_parser.set_defaults(func=cmd_import)

    # stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show entity counts",
    )
    stats_parser.add_argument("--db", type=Path, required=True)
    stats_parser.set_defaults(func=cmd_stats)

    # search command
    search_parser = subparsers.add_parser(
        "search",
        help="Search lemmas by headword, gloss, form or root",
    )
    search_parser.add_argument("--db", type=Path, required=True)
    search_parser.add_argument(
        "--by",
        choices=SEARCH_MODES,
        default="headword",
        help="What to match the query against (default: headword)",
    )
    search_parser.add_argument("query", help="Search text")
    search_parser.set_defaults(func=cmd_search)

    # corpora command
    corpora_parser = subparsers.add_parser(
        "corpora",
        help="List the known dialect corpora",
    )
    corpora_parser.set_defaults(func=cmd_corpora)

    return parser


def cmd_import(args: argparse.Namespace) -> int:
    """Handle import command."""
    try:
        config = _build_config(args)
    except ConfigError as e:
        print(f"\n  [CONFIG ERROR] {e}")
        if e.line:
            print(f"                Line: {e.line}")
        return 1
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return 1

    print(f"\nImporting from {config.data_dir} into {args.db}...")
    try:
        report = run_import(args.db, config, progress=_print_progress)
    except OntologyError as e:
        print(f"\n  [ERROR] {e}")
        print("Import aborted; nothing was written.")
        return 1
    except KeyboardInterrupt:
        print("\nAborted.")
        return 130

    _print_report(report)
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Handle stats command."""
    if not args.db.exists():
        print(f"Database not found: {args.db}")
        return 1
    with OntologyQuery(args.db) as query:
        stats = query.statistics()

    print(f"\nStatistics for {args.db}:\n")
    print(f"  Concepts:  {stats.concept_count}")
    print(f"  Roots:     {stats.root_count}")
    print(f"  Lemmas:    {stats.lemma_count}")
    print(f"  Forms:     {stats.form_count}")
    print(f"  Sentences: {stats.sentence_count}")
    print(f"  Dialects:  {stats.dialect_count}")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Handle search command."""
    if not args.db.exists():
        print(f"Database not found: {args.db}")
        return 1

    with OntologyQuery(args.db) as query:
        try:
            if args.by == "headword":
                lemmas = query.find_lemmas(args.query)
            elif args.by == "gloss":
                lemmas = query.lemmas_by_gloss(args.query)
            elif args.by == "form":
                lemmas = query.lemmas_by_form_token(args.query)
            else:
                lemmas = query.lemmas_for_root(args.query)
        except OntologyError as e:
            print(f"  [ERROR] {e}")
            return 1

    if not lemmas:
        print("No lemmas found.")
        return 0

    print(f"\n{'ID':<12} {'Headword':<20} {'POS':<14} {'Root':<10} Concepts")
    print("-" * 72)
    for lemma in lemmas:
        print(
            f"{lemma.id:<12} {lemma.headword:<20} "
            f"{lemma.pos_category_english:<14} {lemma.root or '-':<10} "
            f"{len(lemma.concept_ids)}"
        )
    print(f"\n{len(lemmas)} lemma(s)")
    return 0


def cmd_corpora(args: argparse.Namespace) -> int:
    """Handle corpora command."""
    print(f"\n{'ID':<16} {'Dialect':<12} {'Token':<6} Name")
    print("-" * 72)
    for corpus in CORPORA:
        print(
            f"{corpus.id:<16} {corpus.dialect_code:<12} "
            f"{corpus.token_column:<6} {corpus.display_name}"
        )
    return 0


def _build_config(args: argparse.Namespace) -> ImportConfig:
    """Merge the manifest (if any) with command-line overrides."""
    if args.config is not None:
        config = load_import_config(args.config)
        if args.data_dir is not None:
            config = replace(config, data_dir=args.data_dir)
    elif args.data_dir is not None:
        config = ImportConfig(data_dir=args.data_dir)
    else:
        raise ConfigError("Either --data-dir or --config is required")

    if args.all_corpora:
        config = replace(config, corpora=list(CORPORA))
    elif args.corpus:
        corpora: List = []
        for corpus_id in dict.fromkeys(args.corpus):
            corpora.append(get_corpus(corpus_id))
        config = replace(config, corpora=corpora)

    if args.workers is not None:
        config = replace(config, workers=args.workers)
    return config


def _print_progress(message: str) -> None:
    print(f"  {message}")


def _print_report(report: ImportReport) -> None:
    """Print what the import created."""
    print("\nResults:")
    for kind, count in report.created.items():
        print(f"  {kind + ':':<13} {count}")
    for kind, count in report.links.items():
        print(f"  {kind + ' links:':<13} {count}")

    if report.warnings:
        print(f"\nWarnings ({len(report.warnings)}):")
        for warning in report.warnings:
            print(f"  [WARN] {warning}")


if __name__ == "__main__":
    sys.exit(main())
