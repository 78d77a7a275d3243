"""Tests for the GitHub Actions helpers."""

from changelist_sync.actions import (
    annotate_warning,
    ci_context,
    in_actions,
    set_failed,
    set_output,
)


class TestSetOutput:
    def test_noop_without_github_output(self, clean_env, tmp_path):
        set_output("entries-count", 3)
        assert list(tmp_path.iterdir()) == []

    def test_appends_line(self, clean_env, tmp_path):
        out = tmp_path / "output"
        clean_env.setenv("GITHUB_OUTPUT", str(out))

        set_output("entries-count", 3)
        set_output("next-sync-token", None)

        assert out.read_text() == "entries-count=3\nnext-sync-token=\n"

    def test_multiline_uses_delimiter(self, clean_env, tmp_path):
        out = tmp_path / "output"
        clean_env.setenv("GITHUB_OUTPUT", str(out))

        set_output("summary", "a\nb")

        lines = out.read_text().splitlines()
        assert lines[0].startswith("summary<<ghadelimiter_")
        assert lines[1:3] == ["a", "b"]
        assert lines[3] == lines[0].split("<<", 1)[1]


class TestAnnotations:
    def test_in_actions(self, clean_env):
        assert not in_actions()
        clean_env.setenv("GITHUB_ACTIONS", "true")
        assert in_actions()

    def test_set_failed_outside_actions(self, clean_env, capsys):
        set_failed("boom")
        assert capsys.readouterr().out == ""

    def test_set_failed_escapes_message(self, clean_env, capsys):
        clean_env.setenv("GITHUB_ACTIONS", "true")

        set_failed("HTTP 404\n100% missing")

        assert capsys.readouterr().out == "::error::HTTP 404%0A100%25 missing\n"

    def test_annotate_warning(self, clean_env, capsys):
        clean_env.setenv("GITHUB_ACTIONS", "true")

        annotate_warning("Changelist [x] not found")

        assert capsys.readouterr().out == "::warning::Changelist [x] not found\n"


class TestCiContext:
    def test_empty_outside_actions(self, monkeypatch):
        for name in ("GITHUB_REPOSITORY", "GITHUB_REF", "GITHUB_SHA",
                     "GITHUB_RUN_ID", "GITHUB_RUN_NUMBER", "GITHUB_WORKFLOW",
                     "GITHUB_ACTOR", "GITHUB_EVENT_NAME"):
            monkeypatch.delenv(name, raising=False)

        assert ci_context() == {}

    def test_collects_variables(self, monkeypatch):
        monkeypatch.setenv("GITHUB_REPOSITORY", "acme/site")
        monkeypatch.setenv("GITHUB_SHA", "abc123")

        ci = ci_context()["ci"]

        assert ci["repository"] == "acme/site"
        assert ci["sha"] == "abc123"
