"""CLI for bundle-lens."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from bundle_lens.analysis.classify import analyse_manifest
from bundle_lens.analysis.entry import pick_initial_output
from bundle_lens.analysis.paths import find_inclusion_path, get_inclusion_path
from bundle_lens.analysis.reverse import get_import_sources
from bundle_lens.compare.matcher import describe_match_type, match_chunks_between_builds
from bundle_lens.compare.scoring import collect_comparison_metrics, describe_score, score_change
from bundle_lens.errors import BundleLensError, InitialOutputNotFoundError
from bundle_lens.format import format_bytes
from bundle_lens.manifest.model import Manifest, load_manifest
from bundle_lens.manifest.outputs import infer_entry_for_output

logger = logging.getLogger(__name__)


def _load(path: str) -> Manifest:
    if not os.path.isfile(path):
        raise BundleLensError(f"{path} not found")
    return load_manifest(path)


def _entry_input(manifest: Manifest) -> str:
    initial_output = pick_initial_output(manifest)
    if initial_output is None:
        raise InitialOutputNotFoundError()
    entry = manifest.outputs[initial_output].entry_point or infer_entry_for_output(
        manifest, initial_output
    )
    if not entry:
        raise InitialOutputNotFoundError()
    return entry


def cmd_summary(args: argparse.Namespace) -> None:
    manifest = _load(args.manifest)
    report = analyse_manifest(manifest, args.entry)
    summary = report.summary
    print(f"Initial output: {report.initial_output}")
    print(
        f"Initial: {len(summary.initial.outputs)} outputs, "
        f"{format_bytes(summary.initial.total_bytes)}"
    )
    print(f"Lazy:    {len(summary.lazy.outputs)} outputs, {format_bytes(summary.lazy.total_bytes)}")
    for chunk in report.chunks[: args.top]:
        kind = "initial" if chunk.output_file in summary.initial.outputs else "lazy"
        print(f"  [{kind:7}] {format_bytes(chunk.bytes):>12}  {chunk.output_file}")


def cmd_why(args: argparse.Namespace) -> None:
    manifest = _load(args.manifest)
    if args.entry or args.eager_only:
        entry = args.entry or _entry_input(manifest)
        result = find_inclusion_path(
            manifest, entry, args.module, include_dynamic=not args.eager_only
        )
        if not result.found:
            print(f"No inclusion path from {entry} to {args.module}")
            return
        if not result.path:
            print(f"{args.module} is the entry point")
            return
        print(entry)
        for step in result.path:
            print(f"  -> {step.to_module}  ({step.kind or 'unknown kind'})")
        return

    report = analyse_manifest(manifest)
    steps = get_inclusion_path(manifest, args.module, report.chunks, report.summary)
    if not steps:
        print(f"No inclusion path found for {args.module}")
        return
    for step in steps:
        marker = "dynamic " if step.is_dynamic_import else ""
        chunk_type = step.importer_chunk_type or "unattributed"
        print(f"{step.file} [{chunk_type}]")
        print(f"  {marker}import {step.import_statement!r}")
    print(args.module)


def cmd_importers(args: argparse.Namespace) -> None:
    manifest = _load(args.manifest)
    report = analyse_manifest(manifest)
    sources = get_import_sources(
        manifest, args.module, report.chunks, report.summary.initial.outputs
    )
    if not sources:
        print(f"Nothing imports {args.module}")
        return
    for source in sources:
        marker = " (dynamic)" if source.is_dynamic_import else ""
        chunk = source.chunk_output_file or "-"
        print(f"  [{source.chunk_type:7}] {source.importer}{marker}  in {chunk}")


def cmd_compare(args: argparse.Namespace) -> None:
    left_report = analyse_manifest(_load(args.left))
    right_report = analyse_manifest(_load(args.right))
    comparison = match_chunks_between_builds(left_report.chunks, right_report.chunks)
    change = score_change(collect_comparison_metrics(left_report, right_report))

    print(f"Change score: {describe_score(change)} [{change.verdict}]")
    print(f"Average match similarity: {comparison.total_similarity_score:.1f}")
    for match in comparison.matched_chunks:
        delta = match.right_chunk.bytes - match.left_chunk.bytes
        sign = "+" if delta >= 0 else "-"
        print(
            f"  {describe_match_type(match.match_type)} ({match.similarity_score}): "
            f"{match.left_chunk.output_file} -> {match.right_chunk.output_file} "
            f"{sign}{format_bytes(abs(delta))}"
        )
    for chunk in comparison.unmatched_left:
        print(f"  removed: {chunk.output_file} ({format_bytes(chunk.bytes)})")
    for chunk in comparison.unmatched_right:
        print(f"  added:   {chunk.output_file} ({format_bytes(chunk.bytes)})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bundle-lens", description="esbuild metafile analyser")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command")

    summary_parser = subparsers.add_parser("summary", help="Initial vs lazy totals")
    summary_parser.add_argument("manifest", help="Path to metafile JSON")
    summary_parser.add_argument("--entry", help="Preferred entry input")
    summary_parser.add_argument("--top", type=int, default=20, help="Chunks to list (default: 20)")
    summary_parser.set_defaults(handler=cmd_summary)

    why_parser = subparsers.add_parser("why", help="Explain why a module is bundled")
    why_parser.add_argument("manifest", help="Path to metafile JSON")
    why_parser.add_argument("module", help="Input module path")
    why_parser.add_argument("--entry", help="Start from this entry input")
    why_parser.add_argument("--eager-only", action="store_true", help="Ignore dynamic imports")
    why_parser.set_defaults(handler=cmd_why)

    importers_parser = subparsers.add_parser("importers", help="List direct importers")
    importers_parser.add_argument("manifest", help="Path to metafile JSON")
    importers_parser.add_argument("module", help="Input module path")
    importers_parser.set_defaults(handler=cmd_importers)

    compare_parser = subparsers.add_parser("compare", help="Compare two builds")
    compare_parser.add_argument("left", help="Baseline metafile JSON")
    compare_parser.add_argument("right", help="New metafile JSON")
    compare_parser.set_defaults(handler=cmd_compare)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0

    try:
        handler(args)
    except BundleLensError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
