"""Unit tests for the main entry point.

Covers argument parsing, log level priority, resume loading, exit codes
for each command and configuration error handling.
"""

import json
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest

from resume_matcher.config.environment import EnvironmentConfig
from resume_matcher.config.exceptions import ConfigurationError
from resume_matcher.config.models import LoggingConfig, MatcherConfig
from resume_matcher.domain.models import (
    MatchOutcome,
    MatchResponse,
    MatchSummary,
    ScoreOneResult,
)
from resume_matcher.embeddings.backfill import BackfillRunResult
from resume_matcher.main import build_parser, load_runtime_config, main, read_resume


@pytest.fixture(autouse=True)
def isolated_runtime(monkeypatch, tmp_path):
    """Run every CLI invocation against an in-memory database from a clean cwd."""
    monkeypatch.chdir(tmp_path)
    for name in ("ML_SERVICE_URL", "EMBEDDING_SERVICE_URL", "RERANK_SERVICE_URL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    # Log lines would otherwise be interleaved with the JSON on stdout
    monkeypatch.setattr("resume_matcher.main.configure_logging", Mock())


@pytest.fixture
def resume_file(tmp_path):
    path = tmp_path / "resume.txt"
    path.write_text("Python developer with five years of API work", encoding="utf-8")
    return path


@pytest.fixture
def orchestrator():
    mock = Mock()
    with patch("resume_matcher.main.MatchOrchestrator.from_config", return_value=mock):
        yield mock


class TestLoadRuntimeConfig:
    """Test suite for load_runtime_config helper."""

    def _patch_load(self, env_log_level=None):
        matcher_config = MatcherConfig(logging=LoggingConfig(level="WARNING"))
        env_config = EnvironmentConfig(log_level=env_log_level)
        return patch("resume_matcher.main.load_config", return_value=(matcher_config, env_config))

    def test_cli_flag_wins(self):
        with self._patch_load(env_log_level="ERROR"):
            _, env_config = load_runtime_config(None, "DEBUG")

        assert env_config.log_level == "DEBUG"

    def test_environment_beats_config_file(self):
        with self._patch_load(env_log_level="ERROR"):
            _, env_config = load_runtime_config(None, None)

        assert env_config.log_level == "ERROR"

    def test_config_file_level_used_last(self):
        with self._patch_load():
            _, env_config = load_runtime_config(None, None)

        assert env_config.log_level == "WARNING"


class TestReadResume:
    """Test suite for read_resume."""

    def test_plain_text(self, resume_file):
        resume = read_resume(resume_file, "42")

        assert resume.owner_id == "42"
        assert resume.raw_text.startswith("Python developer")
        assert resume.content_fingerprint is not None

    def test_json_profile(self, tmp_path):
        path = tmp_path / "resume.json"
        path.write_text(
            json.dumps({"owner_id": 7, "raw_text": "Data analyst", "embedding_vector": [0.1, 0.2]}),
            encoding="utf-8",
        )

        resume = read_resume(path, "ignored")

        assert resume.owner_id == 7
        assert resume.embedding_vector == [0.1, 0.2]

    def test_invalid_json_profile(self, tmp_path):
        path = tmp_path / "resume.json"
        path.write_text(json.dumps({"raw_text": "no owner"}), encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid resume profile"):
            read_resume(path, "1")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            read_resume(tmp_path / "missing.txt", "1")


class TestArgumentParsing:
    """Test suite for build_parser."""

    def test_match_arguments(self):
        args = build_parser().parse_args(
            ["match", "--resume", "cv.txt", "--location", "Ha Noi", "--min-salary", "15000000",
             "--category-id", "3"]
        )

        assert args.command == "match"
        assert args.location == "Ha Noi"
        assert args.min_salary == 15_000_000
        assert args.category_id == 3
        assert args.max_salary is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_score_requires_job_id(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["score", "--resume", "cv.txt"])


class TestMain:
    """Test suite for main()."""

    def test_match_success(self, orchestrator, resume_file, capsys):
        orchestrator.find_matches.return_value = MatchResponse(
            code=MatchOutcome.OK,
            message="Found 1 matching job posting",
            candidates=[
                MatchSummary(
                    job_posting_id=1,
                    title="Backend Engineer",
                    match_score_percent=90,
                    score_ratio=0.9,
                    cosine_similarity=0.9,
                    raw_cosine_similarity=0.9,
                )
            ],
        )

        exit_code = main(["match", "--resume", str(resume_file), "--location", "Ho Chi Minh"])

        assert exit_code == 0
        resume, filters = orchestrator.find_matches.call_args[0]
        assert filters.location == "Ho Chi Minh"
        output = json.loads(capsys.readouterr().out)
        assert output["code"] == "OK"
        assert output["candidates"][0]["job_posting_id"] == 1

    def test_match_empty_result_is_success(self, orchestrator, resume_file):
        orchestrator.find_matches.return_value = MatchResponse(
            code=MatchOutcome.EMPTY_FILTER_RESULT, message="none"
        )

        assert main(["match", "--resume", str(resume_file)]) == 0

    @pytest.mark.parametrize(
        "code",
        [MatchOutcome.MISSING_RESUME_EMBEDDING, MatchOutcome.STORAGE_ERROR, MatchOutcome.INTERNAL_ERROR],
    )
    def test_match_failure_outcomes(self, orchestrator, resume_file, code):
        orchestrator.find_matches.return_value = MatchResponse(code=code, message="failed")

        assert main(["match", "--resume", str(resume_file)]) == 1

    def test_match_invalid_filter(self, orchestrator, resume_file, capsys):
        exit_code = main(["match", "--resume", str(resume_file), "--min-salary", "-1"])

        assert exit_code == 1
        assert "Invalid filters" in capsys.readouterr().err
        orchestrator.find_matches.assert_not_called()

    def test_score(self, orchestrator, resume_file, capsys):
        orchestrator.score_one.return_value = ScoreOneResult(
            job_posting_id=5, match_score_percent=64, cosine_similarity=0.64
        )

        exit_code = main(["score", "--resume", str(resume_file), "--job-id", "5"])

        assert exit_code == 0
        assert orchestrator.score_one.call_args[0][0] == 5
        assert json.loads(capsys.readouterr().out)["match_score_percent"] == 64

    def test_score_unavailable_prints_null(self, orchestrator, resume_file, capsys):
        orchestrator.score_one.return_value = None

        assert main(["score", "--resume", str(resume_file), "--job-id", "5"]) == 0
        assert json.loads(capsys.readouterr().out) is None

    @pytest.mark.parametrize("error_message,expected", [(None, 0), ("database is locked", 1)])
    def test_backfill_exit_code(self, orchestrator, capsys, error_message, expected):
        now = datetime.now(timezone.utc)
        result = BackfillRunResult(run_started_at=now, run_finished_at=now, error_message=error_message)

        with patch("resume_matcher.main.EmbeddingBackfill") as backfill_cls:
            backfill_cls.return_value.run_once.return_value = result
            exit_code = main(["backfill"])

        assert exit_code == expected
        assert json.loads(capsys.readouterr().out)["error_message"] == error_message

    def test_serve_refuses_when_backfill_disabled(self, orchestrator, capsys):
        with patch("resume_matcher.main.SchedulerService") as scheduler_cls:
            exit_code = main(["serve"])

        assert exit_code == 1
        scheduler_cls.assert_not_called()
        assert "backfill.enabled" in capsys.readouterr().err

    def test_serve_schedules_backfill_when_enabled(self, orchestrator, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("backfill:\n  enabled: true\n  interval: 10m\n")

        scheduler = Mock()

        def build_scheduler(**kwargs):
            # Let the serve loop return as soon as it starts waiting
            kwargs["shutdown_event"].set()
            return scheduler

        with patch("resume_matcher.main.SchedulerService", side_effect=build_scheduler) as scheduler_cls:
            with patch("resume_matcher.main.signal.signal"):
                exit_code = main(["--config", str(config_file), "serve"])

        assert exit_code == 0
        assert scheduler_cls.call_args.kwargs["interval_seconds"] == 600
        scheduler.start.assert_called_once()

    def test_missing_config_file(self, resume_file, capsys):
        exit_code = main(["--config", "nope.yaml", "match", "--resume", str(resume_file)])

        assert exit_code == 1
        assert "Configuration Error" in capsys.readouterr().err

    def test_invalid_config_file(self, tmp_path, resume_file):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("ranking:\n  top_k: 0\n")

        assert main(["--config", str(config_file), "match", "--resume", str(resume_file)]) == 1

    def test_missing_resume_file(self, orchestrator, tmp_path):
        assert main(["match", "--resume", str(tmp_path / "nope.txt")]) == 1
