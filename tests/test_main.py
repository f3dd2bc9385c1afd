"""
Tests for the command-line entry point.
"""

import json
import logging

import pytest

from link_crawler.crawlers import default_registry
from link_crawler.main import build_parser, main
from link_crawler.utils.errors import CrawlerError


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; put the original handlers back."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def run_main(argv, capsys, tmp_path):
    argv = list(argv) + ["--config", str(tmp_path / "absent.json")]
    status = main(argv)
    captured = capsys.readouterr()
    return status, captured.out.splitlines(), captured.err


class TestMain:

    @pytest.mark.parametrize("mode", ["counted", "structural"])
    def test_reference_crawl(self, mode, capsys, tmp_path):
        status, lines, _ = run_main(["--mode", mode], capsys, tmp_path)

        assert status == 0
        assert lines[0] == 'found: https://golang.org/ "The Go Programming Language"'
        assert len(lines) == 11
        assert lines.count("not found: https://golang.org/cmd/") == 1
        assert sum(1 for line in lines if line.startswith("found: ")) == 4
        assert sum(1 for line in lines if line.startswith("already fetched ")) == 6

    def test_depth_and_seed_arguments(self, capsys, tmp_path):
        status, lines, _ = run_main(["https://golang.org/pkg/", "--depth", "1"], capsys, tmp_path)

        assert status == 0
        assert lines == ['found: https://golang.org/pkg/ "Packages"']

    def test_summary(self, capsys, tmp_path):
        status, lines, err = run_main(["--summary", "--workers", "2"], capsys, tmp_path)

        assert status == 0
        assert len(lines) == 11
        assert "found: 4" in err
        assert "errors: 1" in err
        assert "total: 11" in err

    def test_invalid_arguments(self, capsys, tmp_path):
        status, lines, err = run_main(["--depth", "-1"], capsys, tmp_path)

        assert status == 2
        assert lines == []
        assert "max_depth must not be negative" in err

    def test_config_file(self, capsys, tmp_path):
        config_path = tmp_path / "crawler.json"
        config_path.write_text(json.dumps({"crawl": {"max_depth": 2, "completion_mode": "structural"}}))

        status = main(["--config", str(config_path)])
        lines = capsys.readouterr().out.splitlines()

        assert status == 0
        assert lines == [
            'found: https://golang.org/ "The Go Programming Language"',
            'found: https://golang.org/pkg/ "Packages"',
            "not found: https://golang.org/cmd/",
        ]

    def test_invalid_config_file(self, capsys, tmp_path):
        config_path = tmp_path / "crawler.json"
        config_path.write_text(json.dumps({"crawl": {"completion_mode": "polling"}}))

        assert main(["--config", str(config_path)]) == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_save_config(self, capsys, tmp_path):
        target = tmp_path / "effective.json"

        status, lines, _ = run_main(
            ["https://golang.org/pkg/", "--depth", "2", "--mode", "structural", "--save-config", str(target)],
            capsys, tmp_path
        )

        assert status == 0
        assert lines == []
        saved = json.loads(target.read_text())
        assert saved["crawl"]["seed_address"] == "https://golang.org/pkg/"
        assert saved["crawl"]["max_depth"] == 2
        assert saved["crawl"]["completion_mode"] == "structural"

        assert main(["--config", str(target)]) == 0
        assert capsys.readouterr().out.splitlines()[0] == 'found: https://golang.org/pkg/ "Packages"'

    def test_save_config_unwritable(self, capsys, tmp_path):
        status, _, err = run_main(["--save-config", str(tmp_path / "missing" / "c.json")], capsys, tmp_path)

        assert status == 2
        assert "Failed to write config file" in err

    def test_crawl_error_exit_status(self, capsys, tmp_path, monkeypatch):
        def unavailable(name, config=None):
            raise CrawlerError("fetcher unavailable", {"fetcher": name})

        monkeypatch.setattr(default_registry, "get_fetcher", unavailable)
        status, lines, err = run_main([], capsys, tmp_path)

        assert status == 1
        assert lines == []
        assert "Error occurred: CrawlerError: fetcher unavailable" in err

    def test_parser_choices(self):
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["--mode", "polling"])
