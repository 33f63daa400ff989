"""Tests for the thinkstream CLI.

Covers --version, the tags and split commands, and run against a mocked
LiteLLM stream, via CliRunner.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import litellm
from typer.testing import CliRunner

from thinkstream import __version__
from thinkstream.cli import app

# NO_COLOR=1 prevents Rich from injecting ANSI codes inside option names,
# which breaks substring matching in CI (headless, no TTY).
# COLUMNS=200 prevents wrapping that could split a flag across lines.
runner = CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})

_ACOMP = "thinkstream.providers.litellm_provider.litellm.acompletion"


def _chunk(content: str | None = None, finish_reason: str | None = None) -> SimpleNamespace:
    delta = SimpleNamespace(content=content, reasoning_content=None, tool_calls=None)
    choice = SimpleNamespace(delta=delta, finish_reason=finish_reason, index=0)
    return SimpleNamespace(choices=[choice], usage=None)


async def _stream(*chunks):
    for chunk in chunks:
        yield chunk


# ── Global options ────────────────────────────────────────────────


class TestHelp:
    def test_main_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("tags", "split", "run"):
            assert command in result.output

    def test_split_help(self):
        result = runner.invoke(app, ["split", "--help"])
        assert result.exit_code == 0
        assert "--chunk-size" in result.output
        assert "--json" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"thinkstream {__version__}" in result.output


# ── tags ──────────────────────────────────────────────────────────


class TestTags:
    def test_lists_dialects(self):
        result = runner.invoke(app, ["tags"])
        assert result.exit_code == 0
        assert "Reasoning Tag Dialects" in result.output
        assert "markdown-heading" in result.output
        assert "###Thinking" in result.output

    def test_single_model(self):
        result = runner.invoke(app, ["tags", "qwen3-32b"])
        assert result.exit_code == 0
        assert "<think>" in result.output
        assert "</think>" in result.output

    def test_custom_tags_file(self, tmp_path):
        path = tmp_path / "tags.toml"
        path.write_text(
            '[default]\nopening_tag = "<r>"\nclosing_tag = "</r>"\n',
            encoding="utf-8",
        )
        result = runner.invoke(app, ["tags", "any-model", "--tags-file", str(path)])
        assert result.exit_code == 0
        assert "<r>" in result.output

    def test_invalid_rule_pattern_reported(self, tmp_path):
        path = tmp_path / "tags.toml"
        path.write_text(
            '[default]\nopening_tag = "<t>"\nclosing_tag = "</t>"\n'
            '[[rules]]\npattern = "qwen("\ndialect = "think"\n',
            encoding="utf-8",
        )
        result = runner.invoke(app, ["tags", "--tags-file", str(path)])
        assert result.exit_code == 1
        assert "Error loading tag dictionary" in result.output
        assert "Invalid rule pattern" in result.output

    def test_missing_tags_file(self, tmp_path):
        result = runner.invoke(app, ["tags", "--tags-file", str(tmp_path / "nope.toml")])
        assert result.exit_code == 1
        assert "Error loading tag dictionary" in result.output


# ── split ─────────────────────────────────────────────────────────


class TestSplit:
    def test_renders_reasoning_and_answer(self, tmp_path):
        path = tmp_path / "response.txt"
        path.write_text("<think>weigh it</think>Final answer", encoding="utf-8")
        result = runner.invoke(app, ["split", str(path), "--chunk-size", "3"])
        assert result.exit_code == 0
        assert "weigh it" in result.output
        assert "Final answer" in result.output
        assert "Complete" in result.output

    def test_json_events(self, tmp_path):
        path = tmp_path / "response.txt"
        path.write_text("<think>plan</think>done", encoding="utf-8")
        result = runner.invoke(app, ["split", str(path), "--json", "-c", "2"])
        assert result.exit_code == 0
        assert '"type": "response-created"' in result.output
        assert '"type": "thinking-complete"' in result.output
        assert '"type": "block-complete"' in result.output
        assert '"thinking": "plan"' in result.output

    def test_model_selects_dialect(self, tmp_path):
        path = tmp_path / "response.txt"
        path.write_text("<think>not reasoning here</think>", encoding="utf-8")
        tags_path = tmp_path / "tags.toml"
        tags_path.write_text(
            '[default]\nopening_tag = "<think>"\nclosing_tag = "</think>"\n\n'
            '[[rules]]\npattern = "legacy"\ndialect = "markdown-heading"\n',
            encoding="utf-8",
        )
        result = runner.invoke(
            app,
            ["split", str(path), "--json", "-m", "legacy-1", "--tags-file", str(tags_path)],
        )
        assert result.exit_code == 0
        assert '"type": "thinking-delta"' not in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["split", str(tmp_path / "missing.txt")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_invalid_chunk_size(self, tmp_path):
        path = tmp_path / "response.txt"
        path.write_text("x", encoding="utf-8")
        result = runner.invoke(app, ["split", str(path), "--chunk-size", "0"])
        assert result.exit_code != 0


# ── run ───────────────────────────────────────────────────────────


class TestRun:
    def test_model_is_required(self):
        result = runner.invoke(app, ["run", "hello"])
        assert result.exit_code != 0

    def test_streams_completion(self):
        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _stream(
                _chunk("<think>hm"), _chunk("</think>Hi there"), _chunk(finish_reason="stop"),
            )
            result = runner.invoke(app, ["run", "hello", "-m", "deepseek-r1"])

        assert result.exit_code == 0
        assert "Hi there" in result.output
        assert "Thought for" in result.output
        assert mock.call_args[1]["model"] == "deepseek-r1"

    def test_hide_thinking(self):
        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _stream(
                _chunk("<think>secret</think>shown"), _chunk(finish_reason="stop"),
            )
            result = runner.invoke(app, ["run", "hello", "-m", "qwq", "--hide-thinking"])

        assert result.exit_code == 0
        assert "shown" in result.output
        assert "secret" not in result.output

    def test_provider_error_exits_1(self):
        error = litellm.AuthenticationError(message="bad key", model="m", llm_provider="test")
        with patch(_ACOMP, AsyncMock(side_effect=error)):
            result = runner.invoke(app, ["run", "hello", "-m", "gpt-4o"])

        assert result.exit_code == 1
        assert "Authentication failed" in result.output
