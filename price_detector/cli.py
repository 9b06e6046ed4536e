"""
Command-line price detection.

Usage:
    price-detector page.html
    price-detector page.html --selector ".product-price" --site amazon.com
    price-detector page.html --all --json
    price-detector --text "Under $20"
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

from bs4 import BeautifulSoup
from rich.console import Console
from rich.table import Table

from .config import load_config
from .exceptions import PriceDetectorError
from .logging_config import configure_structlog
from .models import ExtractionResult, ExtractionSettings
from .pipeline import ExtractionPipeline, create_pipeline
from .utils.html_utils import find_price_elements, node_text


class PriceDetectorCLI:
    """Run the pipeline over a document or a text and display the results."""

    def __init__(self, settings: ExtractionSettings, pipeline: Optional[ExtractionPipeline] = None, console=None):
        self.settings = settings
        self.pipeline = pipeline or create_pipeline(site=settings.site)
        self.console = console or Console()

    def scan_text(self, text: str) -> List[Dict]:
        result = self.pipeline.extract_sync(text, self.settings)
        return [self._entry("text", text, result)]

    def scan_document(self, html: str, selector: Optional[str] = None) -> List[Dict]:
        """
        Extract prices from every matching element of a document.

        Args:
            html: Document markup
            selector: CSS selector; without one, price-like elements are found
                automatically

        Returns:
            One entry per element that produced prices
        """
        soup = BeautifulSoup(html, "html.parser")
        elements = soup.select(selector) if selector else find_price_elements(soup)

        entries = []
        for element in elements:
            result = self.pipeline.extract_sync(element, self.settings)
            if result.candidates or result.errors:
                entries.append(self._entry(element.name, node_text(element), result))
        return entries

    def _entry(self, label: str, text: str, result: ExtractionResult) -> Dict:
        candidates = result.candidates if self.settings.return_multiple else result.candidates[:1]
        entry = {
            "element": label,
            "text": text[:80],
            "candidates": [c.to_dict() for c in candidates],
            "errors": result.errors,
        }
        if self.settings.debug_mode:
            entry["trace"] = [t.to_dict() for t in result.trace]
        return entry

    def display_table(self, entries: List[Dict]):
        """
        Display results as rich table.

        Args:
            entries: Results from scan_text()/scan_document()
        """
        if not entries:
            self.console.print("[yellow]No prices found[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Element", style="cyan", width=10)
        table.add_column("Text", max_width=40)
        table.add_column("Value", style="green")
        table.add_column("Currency")
        table.add_column("Strategy", style="yellow")
        table.add_column("Confidence", justify="right")

        for entry in entries:
            for candidate in entry["candidates"]:
                table.add_row(
                    entry["element"],
                    entry["text"],
                    candidate["value"],
                    candidate["currency"] or "-",
                    candidate["strategy"],
                    f"{candidate['confidence']:.2f}",
                )
            for error in entry["errors"]:
                table.add_row(entry["element"], entry["text"], "-", "-", f"[red]{error}[/red]", "-")

        self.console.print(table)
        total = sum(len(entry["candidates"]) for entry in entries)
        self.console.print(f"\n[bold]Summary:[/bold] {total} price(s) in {len(entries)} element(s)")

    def display_json(self, entries: List[Dict]):
        print(json.dumps(entries, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="price-detector",
        description="Detect prices in HTML documents or text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s page.html
  %(prog)s page.html --selector ".a-price" --site amazon.com
  %(prog)s page.html --all --json
  %(prog)s --text "Under $20"
        ''',
    )
    parser.add_argument("file", nargs="?", help="HTML file to scan")
    parser.add_argument("--text", help="Scan this text instead of a file")
    parser.add_argument("--selector", help="CSS selector of elements to scan")
    parser.add_argument("--site", help="Site the document came from (enables site handlers)")
    parser.add_argument("--config", help="Configuration file (default: bundled settings.yaml)")
    parser.add_argument("--min-confidence", type=float, help="Drop candidates below this confidence")
    parser.add_argument("--all", action="store_true", help="Show every candidate, not just the best")
    parser.add_argument("--debug", action="store_true", help="Include the debug trace")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    return parser


def build_settings(args: argparse.Namespace, config: Dict) -> ExtractionSettings:
    """Merge configuration file values with command-line overrides."""
    values = dict(config.get("extraction") or {})
    if args.site:
        values["site"] = args.site
    if args.min_confidence is not None:
        values["minConfidence"] = args.min_confidence
    if args.all:
        values["returnMultiple"] = True
        values["exhaustive"] = True
    if args.debug:
        values["debugMode"] = True
    return ExtractionSettings.coerce(values)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.file and args.text is None:
        parser.error("either FILE or --text is required")

    try:
        config = load_config(args.config)
        logging_config = config.get("logging") or {}
        configure_structlog(
            logging_config.get("environment"),
            "DEBUG" if args.debug else logging_config.get("level"),
        )
        settings = build_settings(args, config)

        cli = PriceDetectorCLI(settings)
        if args.text is not None:
            entries = cli.scan_text(args.text)
        else:
            html = Path(args.file).read_text(encoding="utf-8", errors="replace")
            entries = cli.scan_document(html, args.selector)

        if args.json:
            cli.display_json(entries)
        else:
            cli.display_table(entries)
        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except PriceDetectorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
