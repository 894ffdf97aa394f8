"""Tests for the tracking and integration features."""

import json
from pathlib import Path

import pytest

from hooktoolkit.hooks.feature_registry import FeatureRegistry
from hooktoolkit.hooks.router import HookRouter
from hooktoolkit.hooks.schemas import HookEvent
from hooktoolkit.lib.features import (
    change_summary,
    context_injector,
    cost_tracker,
    error_pattern_detector,
    file_backup,
    git_context,
    logger,
    notification_webhook,
    prompt_history,
    session_tracker,
    todo_tracker,
    transcript_backup,
)
from hooktoolkit.lib.jsonl import read_records

LOG_DIR = Path("logs") / "claude-hooks"


class TestEventLogger:
    def test_writes_daily_file_per_event(self, project_dir, make_ctx, make_config):
        ctx = make_ctx(HookEvent.STOP)

        entry = logger.log_hook_event(ctx, make_config())

        files = list((project_dir / LOG_DIR / "Stop").glob("*.jsonl"))
        assert len(files) == 1
        assert read_records(files[0]) == [json.loads(json.dumps(entry))]
        assert entry["hookType"] == "Stop"
        assert entry["sessionId"] == "test-session"

    def test_content_is_redacted_and_truncated(self, project_dir, make_ctx, make_config):
        ctx = make_ctx(
            tool_name="Write",
            tool_input={"file_path": "a.py", "content": "token = 'abcdefghijklmnopqrstuvwx'\n" + "y" * 500},
        )

        entry = logger.log_hook_event(ctx, make_config())

        content = entry["data"]["tool_input"]["content"]
        assert "[REDACTED]" in content
        assert content.endswith(" [TRUNCATED]")
        # The context itself is untouched.
        assert "abcdefghijklmnopqrstuvwx" in ctx.tool_input["content"]

    def test_string_encoded_tool_input_is_redacted(self, project_dir, make_ctx, make_config):
        key = "AKIA" + "A" * 16
        ctx = make_ctx(
            tool_name="Write",
            tool_input=json.dumps({"file_path": "a.py", "content": key + "x" * 500}),
        )

        entry = logger.log_hook_event(ctx, make_config())

        assert key not in json.dumps(entry)
        content = entry["data"]["tool_input"]["content"]
        assert content.startswith("[REDACTED]")
        assert content.endswith(" [TRUNCATED]")
        assert entry["data"]["tool_input"]["file_path"] == "a.py"

    def test_camel_case_tool_input_is_redacted(self, project_dir, make_config):
        ctx = HookRouter(registry=FeatureRegistry(())).normalize_input(
            {
                "sessionId": "vs-1",
                "toolName": "Edit",
                "toolInput": {"file_path": "a.py", "new_string": "password = 'abcdefghijklmnopqrstuv'"},
            },
            HookEvent.PRE_TOOL_USE,
        )

        entry = logger.log_hook_event(ctx, make_config())

        assert "abcdefghijklmnopqrstuv" not in json.dumps(entry)
        assert "toolInput" not in entry["data"]
        assert entry["data"]["tool_input"]["new_string"] == "[REDACTED]"

    def test_handle_returns_nothing(self, project_dir, make_ctx, make_config):
        assert logger.handle(make_ctx(HookEvent.NOTIFICATION, message="hi"), make_config()) is None


class TestSessionTracker:
    def test_start_and_end(self, project_dir, make_ctx, make_config):
        config = make_config()

        session_tracker.track_session(make_ctx(HookEvent.SESSION_START, source="resume"), config)
        session_tracker.track_session(make_ctx(HookEvent.STOP), config)

        records = read_records(project_dir / LOG_DIR / "sessions.jsonl")
        assert [r["event"] for r in records] == ["start", "end"]
        assert records[0]["source"] == "resume"
        assert "source" not in records[1]


class TestPromptHistory:
    def test_records_prompt_per_session(self, project_dir, make_ctx, make_config):
        ctx = make_ctx(HookEvent.USER_PROMPT_SUBMIT, prompt="fix the bug")

        prompt_history.handle(ctx, make_config())

        records = read_records(project_dir / LOG_DIR / "prompts" / "test-session.jsonl")
        assert [r["prompt"] for r in records] == ["fix the bug"]

    def test_disabled(self, project_dir, make_ctx, make_config):
        ctx = make_ctx(HookEvent.USER_PROMPT_SUBMIT, prompt="x")

        prompt_history.handle(ctx, make_config({"promptHistory": {"enabled": False}}))

        assert not (project_dir / LOG_DIR / "prompts").exists()


class TestErrorPatternDetector:
    def test_third_repeat_triggers_advisory(self, project_dir, make_ctx, make_config):
        config = make_config({"errorPatternDetector": {"enabled": True, "maxRepeats": 3}})
        ctx = make_ctx(HookEvent.POST_TOOL_USE_FAILURE, tool_name="Bash", error="command not found: foo")

        first = error_pattern_detector.handle(ctx, config)
        second = error_pattern_detector.handle(ctx, config)
        third = error_pattern_detector.handle(ctx, config)

        assert first is None
        assert second is None
        context = json.loads(third.stdout)["additionalContext"]
        assert context.startswith("REPEATED FAILURE DETECTED")
        assert "'Bash' has failed 3 times" in context

    def test_different_errors_are_counted_apart(self, project_dir, make_ctx, make_config):
        config = make_config({"errorPatternDetector": {"enabled": True, "maxRepeats": 2}})

        error_pattern_detector.detect_error_pattern(make_ctx(error="alpha"), config)
        count, message = error_pattern_detector.detect_error_pattern(make_ctx(error="beta"), config)

        assert count == 1
        assert message is None


class TestTranscriptBackup:
    def test_copies_transcript_and_reports_path(self, project_dir, make_ctx, make_config):
        transcript = project_dir / "transcript.jsonl"
        transcript.write_text('{"role": "user"}\n')
        ctx = make_ctx(
            HookEvent.PRE_COMPACT,
            session_id="abcdef123456",
            transcript_path=str(transcript),
            custom_instructions="keep the plan",
        )

        result = transcript_backup.handle(ctx, make_config())

        backups = list((project_dir / LOG_DIR / "transcript-backups").glob("*-abcdef12.jsonl"))
        assert len(backups) == 1
        assert backups[0].read_text() == transcript.read_text()
        assert list(backups[0].parent.iterdir()) == backups
        context = json.loads(result.stdout)["additionalContext"]
        assert f"Transcript backed up to: {backups[0]}" in context
        assert "Custom instructions: keep the plan" in context

    def test_missing_transcript(self, project_dir, make_ctx, make_config):
        ctx = make_ctx(HookEvent.PRE_COMPACT, transcript_path=str(project_dir / "nope.jsonl"))

        assert transcript_backup.handle(ctx, make_config()) is None


class TestFileBackup:
    def test_backs_up_existing_file(self, project_dir, make_ctx, make_config):
        (project_dir / "app.py").write_text("old")
        config = make_config({"fileBackup": {"enabled": True}})
        ctx = make_ctx(tool_name="Write", tool_input={"file_path": "app.py", "content": "new"})

        backup = file_backup.backup_file(ctx, config)

        assert backup.parent == project_dir / LOG_DIR / "file-backups" / "test-session"
        assert backup.name.endswith("_app.py")
        assert backup.read_text() == "old"
        assert list(backup.parent.iterdir()) == [backup]

    def test_new_file_needs_no_backup(self, project_dir, make_ctx, make_config):
        config = make_config({"fileBackup": {"enabled": True}})
        ctx = make_ctx(tool_name="Write", tool_input={"file_path": "new.py", "content": "x"})

        assert file_backup.backup_file(ctx, config) is None


class TestCostTracker:
    def test_stop_writes_usage_summary(self, project_dir, make_ctx, make_config):
        config = make_config({"costTracker": {"enabled": True}})
        for tool in ("Bash", "Read", "Bash"):
            cost_tracker.handle(make_ctx(HookEvent.POST_TOOL_USE, tool_name=tool), config)

        summary = cost_tracker.track_tool_usage(make_ctx(HookEvent.STOP), config)

        report_dir = project_dir / LOG_DIR / "cost-reports"
        assert [r["tool_name"] for r in read_records(report_dir / "test-session.jsonl")] == [
            "Bash",
            "Read",
            "Bash",
        ]
        assert json.loads((report_dir / "test-session-summary.json").read_text()) == summary
        assert summary["totalToolCalls"] == 3
        assert summary["toolFrequency"] == {"Bash": 2, "Read": 1}
        assert summary["estimatedDurationMs"] >= 0

    def test_empty_session_summary(self):
        summary = cost_tracker.summarize_usage("s", [])

        assert summary["totalToolCalls"] == 0
        assert summary["firstTimestamp"] is None
        assert summary["estimatedDurationMs"] is None

    def test_disabled_by_default(self, project_dir, make_ctx, make_config):
        cost_tracker.handle(make_ctx(HookEvent.POST_TOOL_USE, tool_name="Bash"), make_config())

        assert not (project_dir / LOG_DIR).exists()


class TestChangeSummary:
    def test_summarizes_changes_per_file(self, project_dir, make_ctx, make_config):
        config = make_config({"changeSummary": {"enabled": True}})
        calls = [
            ("Write", {"file_path": "a.py", "content": "x\ny"}),
            ("Edit", {"file_path": "b.py", "old_string": "1", "new_string": "2"}),
            ("Bash", {"command": "ls"}),
            ("Edit", {"file_path": "b.py", "old_string": "2", "new_string": "3"}),
            ("MultiEdit", {"file_path": "c.py", "edits": [{"old_string": "a", "new_string": "b"}]}),
        ]
        for tool, tool_input in calls:
            change_summary.handle(make_ctx(HookEvent.POST_TOOL_USE, tool_name=tool, tool_input=tool_input), config)

        summary = change_summary.record_change(make_ctx(HookEvent.STOP), config)

        out_dir = project_dir / LOG_DIR / "change-summaries"
        records = read_records(out_dir / "test-session-changes.jsonl")
        assert [r["change_type"] for r in records] == ["create", "modify", "modify", "modify"]
        assert records[0]["lines_added"] == 2
        assert summary["totalChanges"] == 4
        assert summary["filesModified"] == ["a.py", "b.py", "c.py"]
        assert summary["changesByFile"] == {"a.py": 1, "b.py": 2, "c.py": 1}
        assert summary["summary"] == ["Created a.py", "Modified b.py (2 edits)", "Modified c.py (1 edit)"]
        assert json.loads((out_dir / "test-session-change-summary.json").read_text()) == summary

    def test_disabled_by_default(self, project_dir, make_ctx, make_config):
        ctx = make_ctx(HookEvent.POST_TOOL_USE, tool_name="Write", tool_input={"file_path": "a.py", "content": "x"})

        change_summary.handle(ctx, make_config())
        change_summary.handle(make_ctx(HookEvent.STOP), make_config())

        assert not (project_dir / LOG_DIR).exists()


class TestTodoTracker:
    def test_find_markers(self):
        text = "# TODO: x\n# fixme later\nTODO again"

        assert todo_tracker.find_markers(text, ["TODO", "FIXME", "HACK", "XXX"]) == ["TODO", "TODO", "FIXME"]

    def test_markers_are_literal(self):
        assert todo_tracker.find_markers("a.b axb", ["a.b"]) == ["A.B"]

    def test_records_and_summarizes(self, project_dir, make_ctx, make_config):
        config = make_config({"todoTracker": {"enabled": True}})
        writes = [
            ("Write", {"file_path": "a.py", "content": "# TODO: x\n# FIXME\n"}),
            ("Edit", {"file_path": "b.py", "old_string": "1", "new_string": "# todo"}),
            ("Edit", {"file_path": "c.py", "old_string": "1", "new_string": "clean"}),
        ]
        for tool, tool_input in writes:
            todo_tracker.handle(make_ctx(HookEvent.POST_TOOL_USE, tool_name=tool, tool_input=tool_input), config)

        summary = todo_tracker.track_todos(make_ctx(HookEvent.STOP), config)

        out_dir = project_dir / LOG_DIR / "todo-reports"
        records = read_records(out_dir / "test-session-todos.jsonl")
        assert [r["file_path"] for r in records] == ["a.py", "b.py"]
        assert records[0]["markers"] == ["TODO", "FIXME"]
        assert summary == {"totalTodosFound": 3, "byFile": {"a.py": 2, "b.py": 1}, "markers": ["TODO", "FIXME"]}
        assert json.loads((out_dir / "test-session-todo-summary.json").read_text()) == summary

    def test_custom_markers(self, project_dir, make_ctx, make_config):
        config = make_config({"todoTracker": {"enabled": True, "patterns": ["NOTE"]}})
        ctx = make_ctx(
            HookEvent.POST_TOOL_USE, tool_name="Write", tool_input={"file_path": "a.py", "content": "TODO NOTE"}
        )

        todo_tracker.handle(ctx, config)

        records = read_records(project_dir / LOG_DIR / "todo-reports" / "test-session-todos.jsonl")
        assert records[0]["markers"] == ["NOTE"]


class TestContextInjector:
    def test_injects_existing_files(self, project_dir, make_ctx, make_config):
        (project_dir / "a.md").write_text("Use tabs.\n")
        (project_dir / "b.md").write_text("Run make test.")
        config = make_config(
            {"contextInjector": {"enabled": True, "contextFiles": ["a.md", "missing.md", "b.md"]}}
        )

        result = context_injector.handle(make_ctx(HookEvent.SESSION_START), config)

        assert json.loads(result.stdout) == {"additionalContext": "Use tabs.\n\nRun make test."}

    def test_nothing_to_inject(self, project_dir, make_ctx, make_config):
        config = make_config({"contextInjector": {"enabled": True}})

        assert context_injector.handle(make_ctx(HookEvent.SESSION_START), config) is None


class TestGitContext:
    def test_build_context(self):
        text = git_context.build_context("main", " M a.py\n?? b.py\n", "abc123 first\ndef456 second")

        assert text.splitlines() == [
            "Branch: main",
            "Working tree changes: 2 file(s)",
            "Recent commits:",
            "  abc123 first",
            "  def456 second",
        ]

    def test_nothing_known(self):
        assert git_context.build_context(None, None, None) == git_context.UNAVAILABLE

    def test_detached_head_is_shortened(self, tmp_path):
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "HEAD").write_text("a" * 40 + "\n")

        assert git_context.read_branch(tmp_path) == "aaaaaaa"

    def test_handle_always_adds_context(self, project_dir, make_ctx, make_config, monkeypatch):
        monkeypatch.setattr(git_context, "run_git", lambda args, cwd: None)

        result = git_context.handle(make_ctx(HookEvent.SESSION_START), make_config())

        assert json.loads(result.stdout) == {"additionalContext": git_context.UNAVAILABLE}


class TestNotificationWebhook:
    @pytest.mark.parametrize(
        ("url", "safe"),
        [
            ("https://hooks.example.com/x", True),
            ("http://localhost:8080/x", False),
            ("http://127.0.0.1/x", False),
            ("http://192.168.1.10/x", False),
            ("http://172.20.0.1/x", False),
            ("ftp://example.com/x", False),
            ("not a url", False),
        ],
    )
    def test_url_safety(self, url, safe):
        assert notification_webhook.is_webhook_url_safe(url) is safe

    def test_sends_configured_event(self, make_ctx, make_config, monkeypatch):
        sent = []
        monkeypatch.setattr(notification_webhook, "_post_sync", lambda url, body: sent.append((url, body)))
        config = make_config({"webhooks": {"enabled": True, "url": "https://hooks.example.com/x"}})

        thread = notification_webhook.send_webhook(make_ctx(HookEvent.STOP), config)
        thread.join()

        assert len(sent) == 1
        url, body = sent[0]
        assert url == "https://hooks.example.com/x"
        assert body["hookType"] == "Stop"
        assert body["session_id"] == "test-session"
        assert "data" not in body

    def test_skips_unconfigured_event(self, make_ctx, make_config):
        config = make_config({"webhooks": {"enabled": True, "url": "https://hooks.example.com/x", "events": ["Stop"]}})

        assert notification_webhook.send_webhook(make_ctx(HookEvent.NOTIFICATION), config) is None

    def test_refuses_private_url(self, make_ctx, make_config):
        config = make_config({"webhooks": {"enabled": True, "url": "http://10.0.0.5/hook"}})

        assert notification_webhook.send_webhook(make_ctx(HookEvent.STOP), config) is None

    def test_full_input_included_on_request(self, make_ctx):
        ctx = make_ctx(HookEvent.STOP, stop_hook_active=True)

        body = notification_webhook.build_payload(ctx, include_full_input=True)

        assert body["data"]["stop_hook_active"] is True
