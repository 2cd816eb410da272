#!/usr/bin/env python3
"""
Flatten one vocabulary file into a depth-annotated, pre-order term list.

Usage:
  termtree data/vocabularies/topics.json
  termtree topics.json --root 3 --max-depth 2 --published --format json --out tree.json

Notes:
- The file is either {"vocabulary": {...}, "terms": [...]} or a bare list of term rows
  with id, parent_ids ([] for top-level) and any other attributes.
- Terms are ordered by their 'pos' attribute before flattening.
- A term with several parents is listed once under each of them.
- Text output indents each term's name by its depth.
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from .config import DEFAULT_MAX_DEPTH, LOG_LEVEL
from .core.models import VIRTUAL_ROOT
from .core.term_store import TermStore
from .core.walker import CycleDetected

logger = logging.getLogger(__name__)


def render_text(nodes, indent="  "):
    lines = []
    for n in nodes:
        label = n.attributes.get("name") or str(n.id)
        lines.append(f"{indent * n.depth}{label}")
    return "\n".join(lines)


def build_parser():
    ap = argparse.ArgumentParser(prog="termtree", description=__doc__.split("\n\n")[0].strip())
    ap.add_argument("file", help="Vocabulary JSON file to flatten.")
    ap.add_argument("--vocabulary", type=int, default=None, help="Vocabulary id for a bare-list file that names none (ignored when the file has one).")
    ap.add_argument("--root", type=int, default=VIRTUAL_ROOT, help="Term id to start below (default: 0, the top level).")
    ap.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH, help="Deepest level to include (default: unlimited).")
    ap.add_argument("--published", action="store_true", help="Only include terms with status 1.")
    ap.add_argument("--format", choices=("text", "json"), default="text", help="Output format (default: text).")
    ap.add_argument("--out", help="Write output to this path instead of stdout.")
    ap.add_argument("--allow-cycles", action="store_true", help="Disable the cycle guard (a cyclic file then only finishes with --max-depth).")
    return ap


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    store = TermStore(cache_enabled=False, guard_cycles=not args.allow_cycles)
    try:
        vocab = store.load_vocabulary_file(args.file, default_id=args.vocabulary)
    except (OSError, ValueError) as e:
        print(f"termtree: {e}", file=sys.stderr)
        return 1

    try:
        nodes = store.get_tree(vocab.id, parent=args.root, max_depth=args.max_depth, published_only=args.published)
    except CycleDetected as e:
        print(f"termtree: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        output = json.dumps([n.as_row() for n in nodes], indent=2, ensure_ascii=False)
    else:
        output = render_text(nodes)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Wrote {len(nodes)} terms to {out_path}")
    else:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
