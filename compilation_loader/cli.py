"""Command-line interface for the compilation loader.

WHY: The compile step writes its artifacts as JSON. Operators need a way
to push a file of compilations into the persistence service, to rehearse
that without a service, and to inspect the normalized records that
would be sent.

HOW: Uses argparse to accept an input JSON file and loader options.
Parses the entries into the IR, then either prints the normalized
records (--extract-only) or runs the compilations pass through the
GraphQL loader (or the in-memory loader with --dry-run) via
asyncio.run(). Enriched entries are written as JSON to --output or
stdout. Status messages go to stderr.

RULES:
- Positional argument: JSON file with a list of entries, or an object
  with a "compilations" list
- --extract-only never contacts a loader
- --dry-run uses MemoryResourceLoader; otherwise the URL comes from
  --loader-url or DB_LOADER_URL
- Status output goes to stderr (not stdout)
- Exit code 1 on any parse, config, or loader error
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import httpx
import jsonschema

from compilation_loader.batch import BATCHES, run_batch
from compilation_loader.config import COMPILATIONS_RESOURCE, LOG_LEVEL
from compilation_loader.core.ir import CompilationEntry
from compilation_loader.core.wire import compilation_input_to_dict, entry_to_dict
from compilation_loader.loader.base import LoaderError
from compilation_loader.loader.client import GraphQLResourceLoader
from compilation_loader.loader.memory import MemoryResourceLoader


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _stage_status(stage: str) -> None:
    _status("  {}...".format(stage.capitalize()))


def load_entries(path: Path) -> List[CompilationEntry]:
    """Read and parse compilation entries from a JSON file.

    RULES:
    - Accepts a top-level list, or an object with a "compilations" list
    - Raises ValueError on any other shape
    - Missing required keys surface as KeyError from the IR parsers
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("compilations")
    if not isinstance(data, list):
        raise ValueError(
            "Expected a list of compilations or an object with a 'compilations' list"
        )

    return [CompilationEntry.from_dict(item) for item in data]


def _write_output(payload: Any, output: Optional[str]) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        _status("Wrote {}".format(output))
    else:
        print(text)


async def _run_pipeline(args: argparse.Namespace) -> None:
    """Parse, normalize, and (unless --extract-only) load the entries."""
    input_path = Path(args.input_file).resolve()

    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    try:
        entries = load_entries(input_path)
    except (ValueError, KeyError, TypeError) as e:
        _fail("Could not parse {}: {}".format(input_path.name, e))

    _status("Read {} compilation(s) from {}".format(len(entries), input_path.name))
    batch = BATCHES[COMPILATIONS_RESOURCE]()

    if args.extract_only:
        records = [compilation_input_to_dict(batch.extract(entry)) for entry in entries]
        _write_output(records, args.output)
        return

    try:
        if args.dry_run:
            _status("Dry run: loading into memory")
            enriched = await run_batch(
                batch, entries, MemoryResourceLoader(), on_status=_stage_status,
            )
        else:
            async with GraphQLResourceLoader(url=args.loader_url) as loader:
                _status("Loading into persistence service...")
                enriched = await run_batch(batch, entries, loader, on_status=_stage_status)
    except (
        ValueError, IndexError, LoaderError, httpx.HTTPError, jsonschema.ValidationError,
    ) as e:
        _fail(str(e))

    _status("Loaded {} compilation(s)".format(len(enriched)))
    _write_output([entry_to_dict(entry) for entry in enriched], args.output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compilation_loader",
        description="Normalize compiler output and load compilations into "
                    "the persistence service.",
    )

    parser.add_argument(
        "input_file",
        help="Path to a JSON file of compilation entries.",
    )

    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Write JSON output to this file (default: stdout).",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--dry-run",
        action="store_true",
        help="Load into an in-memory content-addressed store instead of the service.",
    )
    mode.add_argument(
        "--extract-only",
        action="store_true",
        help="Print the normalized compilation records without loading them.",
    )

    parser.add_argument(
        "--loader-url",
        default=None,
        help="Persistence service GraphQL URL (default: DB_LOADER_URL).",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m compilation_loader`` and ``compilation-loader``.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    asyncio.run(_run_pipeline(args))


if __name__ == "__main__":
    main()
