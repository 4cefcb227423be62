"""Tests for the Typer CLI."""

import pytest
from typer.testing import CliRunner

from cli.commands import main as cli_main
from videospeak.translation.providers import ProviderRegistry

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli_main, "setup_logger", lambda *args, **kwargs: None)
    for name in ("SARVAM_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "HUGGINGFACE_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_providers(monkeypatch, registry):
    monkeypatch.setattr(ProviderRegistry, "from_config", classmethod(lambda cls, config: registry))
    return registry


def test_languages():
    result = runner.invoke(cli_main.app, ["languages"])
    assert result.exit_code == 0
    assert "hi-IN" in result.output
    assert "Tamil" in result.output


def test_translate_requires_text():
    result = runner.invoke(cli_main.app, ["translate"])
    assert result.exit_code == 1
    assert "Provide text or --file" in result.output


def test_translate_missing_file(tmp_path):
    result = runner.invoke(cli_main.app, ["translate", "--file", str(tmp_path / "absent.txt")])
    assert result.exit_code == 1
    assert "Input file not found" in result.output


def test_translate_text(fake_providers, tmp_path):
    output = tmp_path / "out.txt"
    result = runner.invoke(
        cli_main.app,
        ["translate", "Hello world", "-t", "hi-IN", "-m", "regional", "-o", str(output)],
    )

    assert result.exit_code == 0, result.output
    assert "नमस्ते दुनिया" in result.output
    assert "83.75" in result.output
    assert output.read_text(encoding="utf-8") == "नमस्ते दुनिया"


def test_translate_unsupported_language(fake_providers):
    result = runner.invoke(cli_main.app, ["translate", "Hello", "-t", "xx-XX"])
    assert result.exit_code == 1
    assert "Unsupported target language" in result.output


def test_providers_lists_free_provider():
    result = runner.invoke(cli_main.app, ["providers"])
    assert result.exit_code == 0
    assert "huggingface" in result.output
    assert "No provider configured for the regional method" in result.output
