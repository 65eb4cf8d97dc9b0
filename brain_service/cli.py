from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="brain-extract",
        description="Extract title, author and main content from a web page",
    )
    p.add_argument("url", help="Page URL")
    p.add_argument(
        "--html",
        default=None,
        help="Saved HTML snapshot of the page; runs the DOM heuristics locally instead of fetching",
    )
    p.add_argument("--ocr", action="store_true", help="Also read text from images (needs --html)")
    p.add_argument("--cookie", default=None, help="Platform login cookie for API-backed extractors")
    p.add_argument(
        "--no-readability",
        action="store_true",
        help="Fetch and parse generic pages directly instead of using the reader service",
    )
    p.add_argument("--log-level", default="WARNING", help="Python logging level (INFO, DEBUG, ...)")
    return p
