"""
docln2epub - Packages light novels from docln.net / ln.hako.vn as EPUB files
"""

import argparse
import logging
from pathlib import Path
from typing import Optional

import questionary

from docln2epub_lib.config import JobConfig
from docln2epub_lib.constants import (
    CATEGORIES,
    CHAPTER_DELAY,
    DEFAULT_CATEGORY,
    REQUEST_TIMEOUT,
    THREAD_NUM,
)
from docln2epub_lib.errors import Docln2EpubError
from docln2epub_lib.job import convert_novel, describe_novel
from docln2epub_lib.network import NetworkManager

logger = logging.getLogger(__name__)


class Application:
    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.network = NetworkManager(timeout=args.timeout)

    def ask_category(self) -> Optional[str]:
        if self.args.category:
            return self.args.category
        choices = [
            questionary.Choice(f"{label} ({key})", value=key)
            for key, label in CATEGORIES.items()
        ]
        return questionary.select("Select category:", choices=choices).ask()

    @staticmethod
    def ask_novel_id() -> Optional[int]:
        answer = questionary.text(
            "Novel ID:", validate=lambda v: v.strip().isdigit() or "Enter a numeric ID"
        ).ask()
        return int(answer.strip()) if answer else None

    def convert(self, novel_id: int, category: str):
        config = JobConfig(
            output_dir=Path(self.args.output),
            category=category,
            delay=self.args.delay,
            threads=self.args.threads,
            timeout=self.args.timeout,
        )
        print(f"\nConverting {CATEGORIES[category]} novel {novel_id}...")
        try:
            _, novel = convert_novel(novel_id, config, self.network)
        except Docln2EpubError as e:
            logger.error(f"Conversion failed (ID: {novel_id}): {e}")
            return
        print()
        print(describe_novel(novel))

    def run(self):
        if self.args.novel_id is not None:
            self.convert(self.args.novel_id, self.args.category or DEFAULT_CATEGORY)
            return

        while True:
            print("\n=== docln2epub ===")
            category = self.ask_category()
            if not category:
                return
            novel_id = self.ask_novel_id()
            if novel_id is None:
                return
            self.convert(novel_id, category)

            if not questionary.confirm("Convert another novel?", default=False).ask():
                break
        print("Done.")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="docln.net to EPUB converter")
    parser.add_argument("novel_id", nargs="?", type=int, help="Numeric ID of the novel")
    parser.add_argument(
        "-c", "--category", choices=sorted(CATEGORIES), help="Listing category"
    )
    parser.add_argument(
        "-o", "--output", default=".", help="Directory where the EPUB is written"
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=CHAPTER_DELAY,
        help="Seconds to wait after each chapter request",
    )
    parser.add_argument(
        "--threads", type=int, default=THREAD_NUM, help="Concurrent chapter downloads"
    )
    parser.add_argument(
        "--timeout", type=float, default=REQUEST_TIMEOUT, help="Request timeout in seconds"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main():
    args = build_arg_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        app = Application(args)
        app.run()
    except KeyboardInterrupt:
        print("\nExit.")


if __name__ == "__main__":
    main()
