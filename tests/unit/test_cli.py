"""Tests for the skyfolio command line."""

import pytest
import yaml

from skyfolio.cli import EXIT_CONFIG, EXIT_FAILED, EXIT_OK, build_parser, cli_args_from, main
from skyfolio.core.logging import get_logger
from fake_backend import BASE_URL, TOKEN


@pytest.fixture
def run(backend, tmp_path):
    """Invoke main() against the fake backend with an isolated config file."""

    def _run(*argv, token=TOKEN):
        base = ["--config", str(tmp_path / "config.yaml"), "--base-url", BASE_URL]
        if token:
            base += ["--token", token]
        return main([*base, *argv], client=backend.client())

    return _run


class TestParser:
    """Tests for argument parsing."""

    def test_flags_become_nested_config(self):
        args = build_parser().parse_args(
            ["--debug", "--base-url", "http://x/api", "--token", "t", "list", "gear"]
        )

        assert cli_args_from(args) == {
            "logging": {"level": "debug"},
            "api": {"base_url": "http://x/api", "token": "t"},
        }

    def test_log_file_flag(self, tmp_path):
        args = build_parser().parse_args(["--log-file", str(tmp_path / "run.log"), "list", "gear"])

        assert cli_args_from(args) == {"logging": {"file": str(tmp_path / "run.log")}}

    def test_verbosity_flags_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--quiet", "--debug", "list", "gear"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestList:
    """Tests for `skyfolio list`."""

    def test_list_locations(self, run, backend, capsys):
        backend.seed("locations", 7, name="Backyard", bortle_class=5)

        code = run("list", "locations")

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "7\tname=Backyard" in out
        assert "bortle_class=5" in out

    def test_list_sessions_by_location(self, run, backend, capsys):
        backend.seed("sessions", 20, session_date="2024-03-01", location_id=7)
        backend.seed("sessions", 21, session_date="2024-03-02", location_id=8)

        code = run("list", "sessions", "--location-id", "7")

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "20\t" in out
        assert "21\t" not in out
        assert ("GET", "/sessions") in backend.requests

    def test_rejected_token(self, run, capsys):
        code = run("list", "gear", token="wrong")

        assert code == EXIT_FAILED
        assert "Please sign in again." in capsys.readouterr().err

    def test_token_file(self, backend, tmp_path, capsys):
        token_file = tmp_path / "token"
        token_file.write_text(TOKEN)
        config = tmp_path / "config.yaml"
        config.write_text(yaml.safe_dump({"api": {"token_file": str(token_file)}}))
        backend.seed("gear", 3, gear_type="Camera", brand="ZWO", model="ASI294MC")

        code = main(
            ["--config", str(config), "--base-url", BASE_URL, "list", "gear"],
            client=backend.client(),
        )

        assert code == EXIT_OK
        assert "model=ASI294MC" in capsys.readouterr().out


def test_objects(run, capsys):
    assert run("objects", "Planet") == EXIT_OK
    assert capsys.readouterr().out.splitlines() == ["Jupiter", "Saturn"]


class TestSubmit:
    """Tests for `skyfolio submit`."""

    @pytest.fixture
    def answers_file(self, backend, tmp_path, image_details):
        backend.seed("locations", 7, name="Backyard")
        backend.seed("gear", 3, gear_type="Camera", brand="ZWO", model="ASI294MC")
        (tmp_path / "m31.jpg").write_bytes(b"main")
        path = tmp_path / "answers.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "images": {"mainImage": "m31.jpg"},
                    "imageDetails": image_details,
                    "locationDetails": {"select": 7},
                    "gearDetails": {"select": [3]},
                    "sessionDetails": {"create": {"session_date": "2024-03-01"}},
                }
            )
        )
        return path

    def test_submit(self, run, backend, answers_file, capsys):
        code = run("submit", str(answers_file))

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "Your work has been uploaded successfully!" in out
        assert backend.uploads[0]["fields"]["sessionDetails.location_id"] == "7"

    def test_blocked_submit(self, run, backend, answers_file, capsys):
        answers = yaml.safe_load(answers_file.read_text())
        answers["gearDetails"] = {}
        answers_file.write_text(yaml.safe_dump(answers))

        code = run("submit", str(answers_file))

        assert code == EXIT_FAILED
        assert "Please add at least one equipment item to continue." in capsys.readouterr().out
        assert backend.uploads == []

    def test_missing_answers_file(self, run, tmp_path, capsys):
        code = run("submit", str(tmp_path / "nope.yaml"))

        assert code == EXIT_CONFIG
        assert "Answers file not found" in capsys.readouterr().err

    def test_wizard_definition_limits_steps(self, run, backend, answers_file, tmp_path):
        wizard_file = tmp_path / "wizard.yaml"
        wizard_file.write_text(
            yaml.safe_dump({"wizard": {"name": "Images only", "steps": ["images", "imageDetails"]}})
        )

        code = run("--wizard", str(wizard_file), "submit", str(answers_file))

        assert code == EXIT_OK
        fields = backend.uploads[0]["fields"]
        assert "imageDetails.title" in fields
        assert not [k for k in fields if k.startswith("locationDetails.")]


def test_invalid_logging_level(run, monkeypatch, capsys):
    monkeypatch.setenv("SKYFOLIO_LOGGING_LEVEL", "chatty")

    assert run("list", "gear") == EXIT_CONFIG
    assert "Invalid 'logging.level'" in capsys.readouterr().err


class TestLogFile:
    """Tests for --log-file."""

    def test_log_lines_reach_file(self, run, tmp_path):
        log_file = tmp_path / "run.log"

        assert run("--log-file", str(log_file), "list", "locations") == EXIT_OK
        get_logger("after_run").info("not captured")

        text = log_file.read_text(encoding="utf-8")
        assert "[info] No locations found" in text
        assert "not captured" not in text

    def test_log_file_from_environment(self, run, tmp_path, monkeypatch):
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("SKYFOLIO_LOGGING_FILE", str(log_file))

        assert run("list", "gear") == EXIT_OK

        assert "[info] No gear found" in log_file.read_text(encoding="utf-8")

    def test_unwritable_log_file(self, run, tmp_path, capsys):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")

        assert run("--log-file", str(blocker / "run.log"), "list", "gear") == EXIT_CONFIG
        assert "Cannot open log file" in capsys.readouterr().err
