from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .config import StreamerSettings, load_settings
from .convert import element_to_dict, element_to_string
from .cursor import LxmlCursor
from .errors import ConfigurationError, StreamError
from .sampler import write_sample
from .streamer import XMLStreamer
from .survey import survey_paths


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="xmlstreamer", description="Stream elements out of large XML files.")
    p.add_argument("--env-file", default=None, help="Optional .env file with XMLSTREAMER_* settings")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    ex = sub.add_parser("extract", help="Write the elements found at --path, one per line.")
    ex.add_argument("--xml", required=True, help="Path to the XML file")
    ex.add_argument("--path", nargs="+", required=True, help="Element names from the root, e.g. products product")
    ex.add_argument("--max", type=int, default=None, help="Max elements to stream")
    ex.add_argument("--encoding", default=None, help="Document encoding override")
    ex.add_argument("--format", choices=("xml", "json"), default="xml", help="Output format (default: xml)")
    ex.add_argument("--out", default=None, help="Output file (default: stdout)")

    sv = sub.add_parser("survey", help="Count element paths to find what to stream.")
    sv.add_argument("--xml", required=True, help="Path to the XML file")
    sv.add_argument("--max-depth", type=int, default=None, help="Do not look below this depth")
    sv.add_argument("--max-nodes", type=int, default=None, help="Stop after this many elements")
    sv.add_argument("--encoding", default=None, help="Document encoding override")
    sv.add_argument("--top", type=int, default=40, help="Paths to print (default: 40)")
    sv.add_argument("--out", default=None, help="Optional output JSON report path")

    sm = sub.add_parser("sample", help="Copy the first N elements found at --path into a small XML file.")
    sm.add_argument("--xml", required=True, help="Path to the XML file")
    sm.add_argument("--path", nargs="+", required=True, help="Element names from the root")
    sm.add_argument("--out", required=True, help="Output XML path")
    sm.add_argument("--n", type=int, default=100, help="Elements to copy (default: 100)")
    sm.add_argument("--encoding", default=None, help="Document encoding override")

    return p.parse_args(argv)


def _streamer(args: argparse.Namespace, settings: StreamerSettings, max_elements: Optional[int]) -> XMLStreamer:
    streamer = XMLStreamer.from_settings(*args.path, settings=settings, max_elements=max_elements)
    if args.encoding:
        streamer.set_encoding(args.encoding)
    return streamer


def run_extract(args: argparse.Namespace, settings: StreamerSettings) -> int:
    streamer = _streamer(args, settings, args.max)

    out = open(args.out, "w", encoding="utf-8") if args.out else sys.stdout
    t0 = time.perf_counter()
    try:
        with streamer.stream(args.xml) as elements:
            for elem in elements:
                if args.format == "json":
                    line = json.dumps(element_to_dict(elem), ensure_ascii=False)
                else:
                    line = element_to_string(elem)
                out.write(line + "\n")
    finally:
        if out is not sys.stdout:
            out.close()

    t1 = time.perf_counter()
    target = args.out or "stdout"
    print(f"Extracted {elements.count} element(s) in {t1 - t0:.2f}s -> {target}", file=sys.stderr)
    return 0


def run_survey(args: argparse.Namespace, settings: StreamerSettings) -> int:
    xml_path = Path(args.xml)
    survey = survey_paths(
        xml_path,
        max_depth=args.max_depth,
        max_nodes=args.max_nodes,
        encoding=args.encoding or settings.encoding,
        cursor=LxmlCursor(**settings.cursor_options()),
    )
    report = survey.as_dict(top_n=args.top)

    print("\n=== XML PATH SURVEY ===")
    print(f"File: {xml_path}")
    print(f"Unique paths: {report['unique_paths']}")
    print(f"Elements counted: {report['elements_counted']}" + (" (truncated)" if survey.truncated else ""))
    print("\nTop paths:")
    for path, cnt in report["top_paths"]:
        print(f"  {path:60s} {cnt}")

    print("\nSuggested --path values:")
    for names in report["suggested_paths"]:
        print("  " + " ".join(names))

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(report, ensure_ascii=False, indent=2), encoding="utf-8")
        print(f"\nSaved report: {out_path}")
    return 0


def run_sample(args: argparse.Namespace, settings: StreamerSettings) -> int:
    if len(args.path) < 2:
        raise ConfigurationError("A sample needs a path of at least two names (container and element).")
    if args.n < 1:
        raise ConfigurationError("--n cannot be less than 1.")

    streamer = _streamer(args, settings, args.n)
    with streamer.stream(args.xml) as elements:
        written = write_sample(elements, args.out, args.path[:-1], max_n=args.n)
    print(f"Saved {written} element(s) to: {args.out}")
    return 0


COMMANDS = {
    "extract": run_extract,
    "survey": run_survey,
    "sample": run_sample,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings(args.env_file)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        return COMMANDS[args.command](args, settings)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except StreamError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
