"""
Command-line interface for converting and importing MARBLE lexicons.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import ConversionConfig, load_config
from .converter import ConversionResult, convert
from .exceptions import ConfigError, DatabaseError, ExportError
from .importer import import_lexicons
from .models import DictionaryType, LoadStats


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the marble-lexicon CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="marble-lexicon",
        description="Convert MARBLE lexicon data and load it into SQLite",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging and per-table counts on load failures",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # convert command
    convert_parser = subparsers.add_parser(
        "convert",
        parents=[common],
        help="Convert MARBLE lexicon files to normalized XML",
    )
    convert_parser.add_argument(
        "-i", "--input",
        type=Path,
        help="Directory containing lexicon XML files",
    )
    convert_parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Output directory for the normalized files",
    )
    convert_parser.add_argument(
        "-m", "--marble-links",
        type=Path,
        help="Directory containing MARBLELinks XML files",
    )
    convert_parser.add_argument(
        "-d", "--dictionary-type",
        type=str.upper,
        choices=[d.value for d in DictionaryType],
        help="Dictionary type",
    )
    convert_parser.add_argument(
        "-v", "--data-version",
        help="Version number for the output dictionary",
    )
    convert_parser.add_argument(
        "-t", "--domains",
        type=Path,
        help="Directory containing domain XML files",
    )
    convert_parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with conversion settings (command-line options take precedence)",
    )
    convert_parser.set_defaults(func=cmd_convert)

    # import command
    import_parser = subparsers.add_parser(
        "import",
        parents=[common],
        help="Load normalized lexicon XML into a new SQLite database",
    )
    import_parser.add_argument(
        "-i", "--input",
        type=Path,
        nargs="+",
        required=True,
        help="Directories to search (recursively) for lexicon XML files",
    )
    import_parser.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("lexicon.db"),
        help="Database file to create (default: lexicon.db)",
    )
    import_parser.add_argument(
        "-s", "--schema",
        type=Path,
        help="SQL file to use instead of the built-in schema",
    )
    import_parser.set_defaults(func=cmd_import)

    return parser


def _build_config(args: argparse.Namespace) -> ConversionConfig:
    """Merge --config with the explicit command-line options."""
    if args.config:
        config = load_config(args.config)
    else:
        if not args.dictionary_type or not args.data_version:
            raise ConfigError("--dictionary-type and --data-version are required without --config")
        config = ConversionConfig(
            dictionary=DictionaryType(args.dictionary_type),
            data_version=args.data_version,
        )

    if args.dictionary_type:
        config.dictionary = DictionaryType(args.dictionary_type)
    if args.data_version:
        config.data_version = args.data_version
    if args.input:
        config.input_dir = args.input
    if args.output:
        config.output_dir = args.output
    if args.marble_links:
        config.links_dir = args.marble_links
    if args.domains:
        config.domains_dir = args.domains
    return config


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle convert command."""
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

    print("\nStarting lexicon conversion...")
    print(f"  Dictionary type: {config.dictionary.value}")
    print(f"  Input:           {config.input_dir}")
    print(f"  MARBLELinks:     {config.links_dir}")
    print(f"  Output:          {config.output_dir}")
    print(f"  Version:         {config.data_version}")
    if config.domains_dir:
        print(f"  Domains:         {config.domains_dir}")

    try:
        result = convert(config)
    except ConfigError as e:
        print(f"\n  [ERROR] {e}")
        return 1
    except ExportError as e:
        print(f"\n  [FATAL] {e}")
        return 1

    _print_conversion_result(result)
    return 0 if result.success else 1


def cmd_import(args: argparse.Namespace) -> int:
    """Handle import command."""
    for directory in args.input:
        if not directory.is_dir():
            print(f"\n  [ERROR] Input directory '{directory}' does not exist.")
            return 1
    if args.schema and not args.schema.is_file():
        print(f"\n  [ERROR] Schema file '{args.schema}' does not exist.")
        return 1

    print(f"\nImporting into {args.output}...")
    try:
        stats = import_lexicons(
            args.input, args.output, schema_path=args.schema, verbose=args.verbose
        )
    except (DatabaseError, OSError) as e:
        print(f"\n  [ERROR] {e}")
        return 1

    _print_load_stats(stats)
    return 0 if stats.success else 1


def _print_conversion_result(result: ConversionResult) -> None:
    """Print conversion statistics."""
    ext = result.extraction
    links = result.links
    removal = result.removal

    print("\nLexicon files:")
    print(f"  Found:     {ext.files_found}")
    print(f"  Processed: {ext.files_processed}")
    print(f"  Failed:    {ext.files_failed}")
    print(f"  Entries skipped: {ext.entries_skipped} of {ext.entries_read}")

    print("\nMARBLELinks:")
    print(f"  Files processed:          {links.files_processed}")
    print(f"  Files skipped (books):    {links.files_skipped}")
    print(f"  Total links:              {links.total_links}")
    print(f"  Processed:                {links.processed_links}")
    print(f"  Odd (apparatus) links:    {links.odd_links}")
    print(f"  Invalid links:            {links.bad_links}")
    print(f"  Dictionary mismatches:    {links.mismatched_links}")
    print(f"  Unresolved:               {links.unresolved_links}")

    if result.taxonomy_languages:
        print(f"\nTaxonomies built for: {', '.join(result.taxonomy_languages)}")

    print("\nValidation:")
    print(f"  Entries removed:   {removal.total_entries_removed}")
    print(f"  Senses removed:    {removal.total_senses_removed}")
    print(f"  Entries remaining: {removal.total_entries}")
    print(f"  Senses remaining:  {removal.total_senses}")
    for language in removal.failed_languages:
        print(f"    [FAILED] {language}: duplicate ids, no output written")
    if len(removal.entries_removed) > 1:
        print("\n  By language:")
        for language in sorted(removal.entries_removed):
            print(
                f"    {language}: {removal.entries_removed[language]} entries, "
                f"{removal.senses_removed[language]} senses removed, "
                f"{removal.senses_remaining[language]} senses remaining"
            )

    print("\nOutput:")
    for path in result.output_files:
        print(f"  {path}")
    print(f"\nConversion completed in {result.duration_seconds:.2f}s")


def _print_load_stats(stats: LoadStats) -> None:
    """Print import statistics."""
    print("\nResults:")
    print(f"  Loaded:  {stats.documents_loaded}")
    print(f"  Skipped: {stats.documents_skipped}")
    print(f"  Failed:  {stats.documents_failed}")
    for failure in stats.failures:
        print(f"    [FAILED] {failure}")


if __name__ == "__main__":
    sys.exit(main())
