"""
Tests for the command line interface, using --input files instead of the API.
"""

import json

import pytest

from jobboard.app import file_fetcher, main
from jobboard.errors import NetworkError

LISTING = {
    "jobs": [
        {"id": "1", "title": "Backend Engineer", "company": "Globex", "salary": 120000},
        {"id": "7", "title": "Lead", "company": "Acme", "salary": 55000, "workModel": "Remote"},
    ]
}


@pytest.fixture
def listing_file(tmp_path):
    path = tmp_path / "listing.json"
    path.write_text(json.dumps(LISTING))
    return path


@pytest.fixture
def run(listing_file, tmp_path):
    store = tmp_path / "store"

    def _run(*args, input_path=None):
        command, rest = args[0], list(args[1:])
        main([command, "--input", str(input_path or listing_file), "--store", str(store), *rest])

    return _run


class TestCli:
    """Test each subcommand end to end."""

    def test_version(self, capsys):
        main(["--version"])
        assert capsys.readouterr().out.strip() == "0.1.0"

    def test_jobs_query(self, run, capsys):
        run("jobs", "--query", "acme")
        out = capsys.readouterr().out
        assert "Lead at Acme" in out
        assert "$55000" in out
        assert "Globex" not in out

    def test_jobs_no_match(self, run, capsys):
        run("jobs", "--query", "zzz")
        assert "No jobs found." in capsys.readouterr().out

    def test_save_and_list_saved(self, run, capsys):
        run("save", "7")
        assert "Saved 7" in capsys.readouterr().out

        run("jobs")
        assert "[*] 7" in capsys.readouterr().out

        run("saved")
        assert "Lead at Acme" in capsys.readouterr().out

    def test_saved_remove(self, run, capsys):
        run("save", "7")
        run("saved", "--remove", "7")
        capsys.readouterr()
        run("saved")
        assert "No saved jobs yet" in capsys.readouterr().out

    def test_saved_survives_fetch_failure(self, run, tmp_path, capsys):
        run("save", "1")
        broken = tmp_path / "broken.json"
        broken.write_text("{not json")
        capsys.readouterr()
        run("saved", input_path=broken)
        assert "Backend Engineer at Globex" in capsys.readouterr().out

    def test_save_unknown_job(self, run):
        with pytest.raises(SystemExit) as exc:
            run("save", "404")
        assert "Job not found: 404" in str(exc.value.code)

    def test_apply_accepted(self, run, capsys):
        run(
            "apply", "7",
            "--name", "Ada",
            "--email", "ada@example.com",
            "--phone", "123-456-789-01",
            "--cover-letter", "Hello",
        )
        out = capsys.readouterr().out
        assert "Application submitted for Lead at Acme" in out

    def test_apply_invalid_phone(self, run, capsys):
        with pytest.raises(SystemExit) as exc:
            run(
                "apply", "7",
                "--name", "Ada",
                "--email", "ada@example.com",
                "--phone", "12-34",
                "--cover-letter", "Hello",
            )
        assert exc.value.code == 2
        assert "11 digits" in capsys.readouterr().out

    def test_malformed_listing(self, run, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"results": []}))
        with pytest.raises(SystemExit) as exc:
            run("jobs", input_path=bad)
        assert exc.value.code == 1
        assert "Could not load jobs" in capsys.readouterr().out

    def test_missing_input_file(self, run, tmp_path):
        with pytest.raises(SystemExit):
            run("jobs", input_path=tmp_path / "missing.json")

    def test_unreadable_input_is_a_load_failure(self, run, tmp_path, capsys):
        """An --input that exists but cannot be read is reported, not a traceback."""
        folder = tmp_path / "listing_dir"
        folder.mkdir()
        with pytest.raises(SystemExit) as exc:
            run("jobs", input_path=folder)
        assert exc.value.code == 1
        out = capsys.readouterr().out
        assert "Could not load jobs" in out
        assert "Could not read" in out


def test_file_fetcher_maps_os_errors(tmp_path):
    with pytest.raises(NetworkError):
        file_fetcher(tmp_path)()
