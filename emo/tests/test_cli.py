"""End-to-end tests for the emo command line."""

import json

import pytest
from click.testing import CliRunner

import emo.cli.emo as emo_cli
from emo.dataset import glyph_key
from emo.models import ModelInfo


@pytest.fixture
def home(tmp_path):
    return tmp_path


@pytest.fixture
def invoke(home):
    runner = CliRunner()

    def run(*args):
        return runner.invoke(emo_cli.cli, list(args), env={"XDG_CONFIG_HOME": str(home)})
    return run


@pytest.fixture
def saved(home):
    def read():
        return json.loads((home / "emo" / "config.json").read_text(encoding="utf-8"))
    return read


@pytest.fixture
def ai(monkeypatch, fake_selector):
    monkeypatch.setattr(emo_cli, "make_selector", lambda: fake_selector)
    return fake_selector


def lines(result):
    return [line for line in result.output.splitlines() if line.strip()]


class TestSearch:

    def test_best_match(self, invoke):
        result = invoke("fire")
        assert result.exit_code == 0
        assert lines(result)[0] == "🔥"

    def test_count(self, invoke):
        result = invoke("-c", "3", "happy")
        assert result.exit_code == 0
        assert len(lines(result)) == 3

    def test_multi_word_query(self, invoke):
        result = invoke("red", "heart")
        assert result.exit_code == 0
        assert "❤" in lines(result)[0]

    def test_numbered(self, invoke):
        result = invoke("-n", "-c", "2", "fire")
        assert lines(result)[0] == "1. 🔥"
        assert lines(result)[1].startswith("2. ")

    def test_no_arguments(self, invoke):
        result = invoke()
        assert result.exit_code == 1
        assert "Please provide a search term" in result.output

    def test_no_match(self, invoke):
        result = invoke("zzqqxxjj")
        assert result.exit_code == 1
        assert "No emoji found for 'zzqqxxjj'" in result.output

    def test_zero_count_is_usage_error(self, invoke):
        result = invoke("-c", "0", "fire")
        assert result.exit_code == 2

    def test_search_does_not_write_config(self, invoke, home):
        invoke("fire")
        assert not (home / "emo" / "config.json").exists()


class TestMemo:

    def test_create_and_use(self, invoke, saved):
        result = invoke("-m", "🧪", "test")
        assert result.exit_code == 0
        assert "test ➡ 🧪 ✅" in result.output
        assert saved()["mappings"] == {"test": "🧪"}

        assert lines(invoke("test")) == ["🧪"]

    def test_memo_with_count_adds_search_results(self, invoke):
        invoke("-m", "🧯", "fire")
        result = invoke("-c", "3", "fire")
        out = lines(result)
        assert out[0] == "🧯"
        assert len(out) == 3
        assert len(set(out)) == 3
        assert "🔥" in out

    def test_memo_by_index(self, invoke, saved):
        second = lines(invoke("-c", "3", "fire"))[1]
        result = invoke("-m", "2", "fire")
        assert result.exit_code == 0
        assert saved()["mappings"]["fire"] == second

    def test_memo_bad_index(self, invoke):
        result = invoke("-m", "0", "fire")
        assert result.exit_code == 1
        assert "Index must be greater than 0" in result.output

    def test_memo_non_ascii_index(self, invoke, home):
        result = invoke("-m", "\u00b2", "fire")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "digits 0-9" in result.output
        assert not (home / "emo" / "config.json").exists()

    def test_memo_bare_heart_not_repeated_by_search(self, invoke, saved):
        assert invoke("-m", "\u2764", "red heart").exit_code == 0
        assert saved()["mappings"]["red heart"] == "\u2764\ufe0f"

        out = lines(invoke("-c", "3", "red", "heart"))
        assert out[0] == "\u2764\ufe0f"
        assert sum(glyph_key(line) == "\u2764" for line in out) == 1

    def test_list(self, invoke):
        assert "No saved mappings." in invoke("-l").output
        invoke("-m", "🚀", "deploy")
        invoke("-m", "🧪", "test")
        out = lines(invoke("-l"))
        assert out == ["Saved mappings:", "  deploy → 🚀", "  test → 🧪"]

    def test_erase(self, invoke, saved):
        invoke("-m", "🧪", "test")
        result = invoke("-e", "test")
        assert result.exit_code == 0
        assert "Mapping for 'test' erased ✅" in result.output
        assert saved()["mappings"] == {}

    def test_erase_missing(self, invoke):
        result = invoke("-e", "nothing")
        assert result.exit_code == 1
        assert "No mapping found for 'nothing'" in result.output


class TestDefineAndRandom:

    def test_define(self, invoke):
        result = invoke("-d", "🔥")
        assert result.exit_code == 0
        assert lines(result) == ["🔥 - fire"]

    def test_define_with_unicode_name(self, invoke):
        result = invoke("-d", "\u2764\ufe0f")
        assert lines(result)[0].startswith("\u2764\ufe0f - red heart")

    def test_random(self, invoke):
        result = invoke("-r")
        assert result.exit_code == 0
        assert " - " in lines(result)[0]

    def test_random_count(self, invoke):
        assert len(lines(invoke("-r", "-c", "3"))) == 3


class TestAi:

    def test_ai_ignores_memo(self, invoke, ai):
        invoke("-m", "🧪", "test")
        result = invoke("--ai", "test")
        assert result.exit_code == 0
        assert lines(result) == ["🤖"]

    def test_unconfigured_model_is_saved(self, invoke, ai, saved):
        result = invoke("--ai", "coffee")
        assert result.exit_code == 0
        assert ai.prepared_with == [None]
        assert saved()["model"] == "llama-3.2-1b"

    def test_model_flag_selects_and_persists(self, invoke, ai, saved):
        result = invoke("--model", "phi-2", "fire")
        assert result.exit_code == 0
        assert ai.prepared_with == ["phi-2"]
        assert saved()["model"] == "phi-2"

    def test_model_flag_alone(self, invoke, ai, saved):
        result = invoke("--model", "phi-2")
        assert result.exit_code == 0
        assert "AI model set to phi-2" in result.output
        assert saved()["model"] == "phi-2"
        assert ai.prepared_with == []

    def test_ai_count(self, invoke, ai):
        out = lines(invoke("--ai", "-c", "3", "work"))
        assert out == ["🤖", "🧠", "💡"]

    def test_sentence(self, invoke, ai):
        result = invoke("--ai", "-s", "5", "monday morning")
        assert result.exit_code == 0
        assert lines(result) == ["🤖🧠💡✨🎉"]

    def test_multiple_sentences_numbered(self, invoke, ai):
        out = lines(invoke("--ai", "-s", "2", "-c", "2", "-n", "monday"))
        assert out == ["1. 🤖🧠", "2. 🤖🧠"]


class TestListModels:

    def test_list_models(self, invoke, monkeypatch):
        models = [ModelInfo(
            id="llama-3.2-1b", name="Llama-3.2-1B-Instruct",
            repo="bartowski/Llama-3.2-1B-Instruct-GGUF",
            filename="Llama-3.2-1B-Instruct-Q4_K_M.gguf", size_mb=807,
            description="Q4_K_M • 807MB • by bartowski",
        )]

        class Registry:
            def fetch_models(self):
                return models

        monkeypatch.setattr(emo_cli, "make_registry", Registry)
        result = invoke("--list-models")
        assert result.exit_code == 0
        assert "Available models:" in result.output
        assert "llama-3.2-1b" in result.output
        assert "Q4_K_M" in result.output
        assert "--model <id>" in result.output


def test_version(invoke):
    result = invoke("--version")
    assert result.exit_code == 0
    assert "0.3.0" in result.output
