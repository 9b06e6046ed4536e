"""Tests for the command-line interface."""
import json
import logging

import pytest
import structlog
from rich.console import Console

from price_detector import cli
from price_detector.models import ExtractionSettings

PAGE = """
<html><body>
  <div class="product">
    <span class="a-price"><span class="a-offscreen">$8.48</span></span>
    <p class="shipping">Free shipping on orders under $25</p>
  </div>
</body></html>
"""


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def run_json(capsys, argv):
    assert cli.main(argv + ["--json"]) == 0
    return json.loads(capsys.readouterr().out)


class TestMain:
    """Test the price-detector entry point."""

    def test_text(self, capsys):
        [entry] = run_json(capsys, ["--text", "Under $20"])
        assert entry["element"] == "text"
        assert [c["value"] for c in entry["candidates"]] == ["20"]
        assert entry["candidates"][0]["context"] == "under"

    def test_text_all(self, capsys):
        [entry] = run_json(capsys, ["--text", "Deals under $20 and gifts from $2.99", "--all"])
        assert {"20", "2.99"} <= {c["value"] for c in entry["candidates"]}

    def test_file_with_selector(self, capsys, tmp_path):
        page = tmp_path / "page.html"
        page.write_text(PAGE, encoding="utf-8")
        [entry] = run_json(capsys, [str(page), "--selector", ".a-price"])
        assert entry["candidates"][0]["value"] == "8.48"

    def test_file_auto_detects_price_elements(self, capsys, tmp_path):
        page = tmp_path / "page.html"
        page.write_text(PAGE, encoding="utf-8")
        entries = run_json(capsys, [str(page)])
        assert [e["candidates"][0]["value"] for e in entries] == ["8.48"]

    def test_debug_includes_trace(self, capsys):
        [entry] = run_json(capsys, ["--text", "$5", "--debug"])
        assert entry["trace"]

    def test_logs_stay_off_stdout(self, capsys):
        assert cli.main(["--text", "$5", "--debug", "--json"]) == 0
        captured = capsys.readouterr()
        assert json.loads(captured.out)[0]["candidates"][0]["value"] == "5"
        assert "structlog_configured" in captured.err

    def test_min_confidence(self, capsys):
        [entry] = run_json(capsys, ["--text", "Only $5 today", "--min-confidence", "0.95"])
        assert entry["candidates"] == []

    def test_table_output(self, capsys):
        assert cli.main(["--text", "Under $20"]) == 0
        assert "20" in capsys.readouterr().out

    def test_missing_input(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 2
        assert "either FILE or --text is required" in capsys.readouterr().err

    def test_missing_file(self, capsys, tmp_path):
        assert cli.main([str(tmp_path / "missing.html")]) == 1
        assert "Error" in capsys.readouterr().err

    def test_bad_separator_config(self, capsys, tmp_path):
        config = tmp_path / "settings.yaml"
        config.write_text("extraction:\n  thousands: bogus\n")
        assert cli.main(["--text", "$5", "--config", str(config)]) == 2
        assert "Not a recognized delimiter" in capsys.readouterr().err


class TestPriceDetectorCLI:
    def test_no_prices_message(self):
        console = Console(record=True, width=100)
        detector = cli.PriceDetectorCLI(ExtractionSettings(), console=console)
        detector.display_table([])
        assert "No prices found" in console.export_text()

    def test_scan_document_skips_elements_without_prices(self):
        detector = cli.PriceDetectorCLI(ExtractionSettings())
        entries = detector.scan_document('<div><span class="price">Sold out</span></div>')
        assert entries == []

    def test_build_settings(self):
        args = cli.build_parser().parse_args(["--text", "x", "--all", "--site", "amazon.com"])
        settings = cli.build_settings(args, {"extraction": {"minConfidence": 0.2}})
        assert settings.return_multiple and settings.exhaustive
        assert settings.site == "amazon.com"
        assert settings.min_confidence == 0.2
