#!/usr/bin/env python3
"""
Raw File Carver — Entry Point.

Usage:
    python main.py -i disk.img -o recovered/
    python main.py -s images_dir/ -o recovered/ --types jpg,png --workers 4
    python main.py -i memdump.raw -o out/ --preview
"""

APP_VERSION = "1.0.0"

import sys
import time
import logging
import argparse

from rawcarve.manager import RecoveryManager
from rawcarve.parallel import ParallelScanConfig
from rawcarve.signatures import FILE_SIGNATURES, get_extensions, select_signatures


def run(args) -> int:
    catalog = FILE_SIGNATURES
    if args.types:
        wanted = {t.strip().lower().lstrip(".") for t in args.types.split(",") if t.strip()}
        unknown = wanted - set(get_extensions())
        if unknown:
            print(f"Unknown file type(s): {', '.join(sorted(unknown))}")
            print(f"Known: {', '.join(get_extensions())}")
            return 2
        catalog = select_signatures(FILE_SIGNATURES, extensions=wanted)

    parallel = None
    if args.workers and args.workers > 1:
        parallel = ParallelScanConfig(num_workers=args.workers)

    source = args.input_file or args.scan_location
    print("=" * 60)
    print(f"  Raw File Carver  v{APP_VERSION}")
    print("  Signature-based recovery from raw media")
    print("=" * 60)
    print()
    print(f"Source:     {source}")
    print(f"Output:     {args.output_directory}")
    print(f"Signatures: {len(catalog)}")
    print(f"Mode:       {'Preview' if args.preview else 'Full recovery'}")
    print()

    manager = RecoveryManager(catalog, parallel=parallel, preview_only=args.preview)
    manager.set_callbacks(
        on_file_found=lambda rec: print(
            f"Found {rec.extension} signature at offset {rec.offset}"),
    )

    start = time.time()
    try:
        if args.input_file:
            session = manager.scan_file(args.input_file, args.output_directory)
        else:
            session = manager.scan_location(args.scan_location, args.output_directory)
        if args.report_csv:
            manager.export_report_csv(args.report_csv)
        if args.report_json:
            manager.export_report_json(args.report_json)
    except (OSError, RuntimeError) as e:
        print(f"\nError: {e}")
        return 1
    elapsed = time.time() - start

    results = session.recovered_files
    print(f"\n{'=' * 60}")
    print(f"  Done in {elapsed:.1f}s, found {len(results)} candidate(s)")
    print(f"{'=' * 60}")

    if results:
        print()
        print(f"  {'Ext':7s} {'Count':>6s}  {'Size':>10s}")
        print(f"  {'-'*7} {'-'*6}  {'-'*10}")
        for ext, files in sorted(session.files_by_extension.items()):
            print(f"    .{ext:5s}  {len(files):4d}    {_fmt(sum(f.size for f in files)):>10s}")
        print(f"\n  Total: {_fmt(session.total_recovered_size)}")
        if not args.preview:
            print(f"  Saved to: {args.output_directory}")
        else:
            print("  (Preview mode, files not saved)")
    print()
    return 0


def _fmt(n):
    s = float(n)
    for u in ("B", "KB", "MB", "GB"):
        if s < 1024:
            return f"{s:.1f} {u}"
        s /= 1024
    return f"{s:.1f} TB"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Recover files from raw media by header/footer signatures.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-i", "--input-file", default="",
                        help="Input .img/.dd/.raw file")
    source.add_argument("-s", "--scan-location", default="",
                        help="Directory whose files are each carved")
    parser.add_argument("-o", "--output-directory", required=True,
                        help="Directory to save recovered files to")
    parser.add_argument("--types", default="",
                        help="Comma-separated extensions to carve (default: all)")
    parser.add_argument("--workers", type=int, default=1,
                        help="Worker processes (default: 1)")
    parser.add_argument("--preview", action="store_true", help="Detect without saving")
    parser.add_argument("--report-csv", default="", help="Write a CSV report")
    parser.add_argument("--report-json", default="", help="Write a JSON report")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
