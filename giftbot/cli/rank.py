# =============================================
# File: giftbot/cli/rank.py
# Purpose: CLI entrypoint to rank the catalog against a piece of text.
# Usage:
#   python -m giftbot.cli.rank "I want Speed Racer RC" --liked 3 --top 5
# =============================================
from __future__ import annotations
import argparse
import json
import sys

from giftbot.services.catalog import load_catalog
from giftbot.services.recommender import select


def _feedback_from_args(args) -> dict:
    fb = {pid: "like" for pid in args.liked}
    fb.update({pid: "dislike" for pid in args.disliked})
    return fb


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Score catalog products against free text.")
    ap.add_argument("text", help="Text to score (an assistant reply or a user request)")
    ap.add_argument("--catalog", default=None, help="Catalog JSON (default: bundled catalog or GIFTBOT_CATALOG_PATH)")
    ap.add_argument("--liked", action="append", default=[], metavar="ID", help="Product id marked as liked (repeatable)")
    ap.add_argument("--disliked", action="append", default=[], metavar="ID", help="Product id marked as disliked (repeatable)")
    ap.add_argument("--top", type=int, default=10, help="How many ranked rows to print (default: 10)")
    ap.add_argument("--json", action="store_true", help="Print the selection as JSON")
    args = ap.parse_args(argv)

    try:
        catalog = load_catalog(args.catalog)
    except (OSError, ValueError) as e:
        print(f"[ERROR] Could not load catalog: {e}", file=sys.stderr)
        return 1

    sel = select(catalog, args.text, _feedback_from_args(args))

    if args.json:
        out = {
            "top_matches": [p.id for p in sel.top_matches],
            "related": [p.id for p in sel.related],
            "related_source": sel.related_source,
            "scores": [{"id": s.product.id, "name": s.product.name, "score": round(s.score, 2)} for s in sel.scored],
        }
        print(json.dumps(out, ensure_ascii=False, indent=2))
        return 0

    if not sel.scored:
        print("[INFO] No relevant products; carousel falls back to the catalog head.")
    for i, s in enumerate(sel.scored[: max(0, args.top)], start=1):
        b = s.breakdown
        print(
            f"{i:>2}. {s.product.name:<24} {s.score:7.2f}  "
            f"(mention {b.mention:g}, category {b.category:g}, keywords {b.keywords:g}, "
            f"popularity {b.popularity:.2f}, x{b.multiplier:g})"
        )
    print(f"top matches: {', '.join(p.name for p in sel.top_matches) or '-'}")
    print(f"related ({sel.related_source}): {', '.join(p.name for p in sel.related) or '-'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
