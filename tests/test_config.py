"""Tests for YAML configuration loading."""

import pytest
import yaml

from careflow.cli import show_config
from careflow.config import (
    Config,
    LLMConfig,
    StepSamplingConfig,
    create_sample_config,
    get_config_path,
    load_config,
    parse_config,
    save_config,
)
from careflow.exceptions import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("CAREFLOW_CONFIG", "CAREFLOW_API_KEY", "CAREFLOW_BASE_URL", "CAREFLOW_MODEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestParseConfig:
    def test_defaults(self):
        config = parse_config({})
        assert config.max_concurrency == 4
        assert config.stop_on_first_failure is False
        assert config.llm.provider == "openai"
        assert not config.llm.is_configured

    def test_full_document(self):
        config = parse_config({
            "llm": {"provider": "azure", "api_key": "k", "model_name": "m", "api_version": "2024-06-01"},
            "step_timeout": 30,
            "max_concurrency": 2,
            "stop_on_first_failure": True,
            "step_sampling": {"GenerateSOAPNote": {"temperature": 0.1, "max_tokens": 2500}},
        })
        assert config.llm.provider == "azure"
        assert config.llm.is_configured
        assert config.step_timeout == 30
        sampling = config.sampling_for_step("GenerateSOAPNote")
        assert (sampling.temperature, sampling.max_output_tokens) == (0.1, 2500)
        assert config.sampling_for_step("Triage") is None

    def test_partial_override_inherits_defaults(self):
        config = parse_config({"temperature": 0.5, "max_tokens": 800, "step_sampling": {"Triage": {"max_tokens": 200}}})
        sampling = config.sampling_for_step("Triage")
        assert (sampling.temperature, sampling.max_output_tokens) == (0.5, 200)

    @pytest.mark.parametrize(
        "data",
        [
            {"max_concurrency": 0},
            {"step_timeout": -1},
            {"temperature": 3},
            {"step_sampling": {"Triage": {"temperature": -0.5}}},
            {"max_concurrency": "lots"},
            {"max_concurrency": None},
            {"temperature": "hot"},
            {"step_timeout": "fast"},
            {"max_tokens": [1000]},
            {"max_concurrency": True},
            {"llm": {"request_timeout": "soon"}},
            {"llm": "not a mapping"},
            {"step_sampling": {"Triage": {"max_tokens": "many"}}},
            {"step_sampling": {"Triage": 0.2}},
        ],
    )
    def test_invalid_values(self, data):
        with pytest.raises(ConfigurationError):
            parse_config(data)

    def test_numeric_strings_are_coerced(self):
        config = parse_config({"max_concurrency": "4", "step_timeout": "30", "temperature": "0.5"})
        assert config.max_concurrency == 4
        assert config.step_timeout == 30.0
        assert config.temperature == 0.5

    def test_step_timeout_may_be_disabled(self):
        assert parse_config({"step_timeout": None}).step_timeout is None

    def test_non_mapping(self):
        with pytest.raises(ConfigurationError):
            parse_config(["not", "a", "mapping"])


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path, clean_env):
        config = load_config(tmp_path / "missing.yaml")
        assert isinstance(config, Config)

    def test_env_overrides_file(self, tmp_path, clean_env):
        path = tmp_path / "careflow.yaml"
        path.write_text(yaml.dump({"llm": {"api_key": "file-key", "model_name": "file-model"}}), encoding="utf-8")
        clean_env.setenv("CAREFLOW_API_KEY", "env-key")

        config = load_config(path)

        assert config.llm.api_key == "env-key"
        assert config.llm.model_name == "file-model"

    def test_config_path_from_env(self, tmp_path, clean_env):
        clean_env.setenv("CAREFLOW_CONFIG", str(tmp_path / "custom.yaml"))
        assert get_config_path() == tmp_path / "custom.yaml"

    def test_invalid_yaml(self, tmp_path, clean_env):
        path = tmp_path / "broken.yaml"
        path.write_text("llm: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(path)


class TestSaveConfig:
    def test_save_and_reload(self, tmp_path, clean_env):
        path = tmp_path / "saved.yaml"
        config = Config(
            llm=LLMConfig(api_key="k", model_name="m", base_url="https://example.test/v1"),
            max_concurrency=6,
            step_sampling={"Triage": StepSamplingConfig(temperature=0.05)},
        )

        save_config(config, path)
        reloaded = load_config(path)

        assert reloaded.llm.api_key == "k"
        assert reloaded.llm.base_url == "https://example.test/v1"
        assert reloaded.max_concurrency == 6
        assert reloaded.sampling_for_step("Triage").temperature == 0.05

    def test_sample_config_is_valid(self, tmp_path, clean_env):
        path = create_sample_config(tmp_path / "sample.yaml")
        config = load_config(path)
        assert config.llm.model_name == "model-name"
        assert config.sampling_for_step("GenerateSOAPNote").max_output_tokens == 2500

    def test_sample_config_does_not_overwrite(self, tmp_path, clean_env):
        path = tmp_path / "existing.yaml"
        path.write_text("verbose: true\n", encoding="utf-8")
        create_sample_config(path)
        assert path.read_text(encoding="utf-8") == "verbose: true\n"


class TestShowConfig:
    def test_overrides_are_shown_resolved(self, capsys):
        show_config(parse_config({"temperature": 0.5, "step_sampling": {"Triage": {"max_tokens": 200}}}))
        out = capsys.readouterr().out
        assert "Triage: temperature=0.5 max_tokens=200" in out

    def test_without_overrides_agents_keep_their_defaults(self, capsys):
        show_config(parse_config({"temperature": 0.9}))
        out = capsys.readouterr().out
        assert "agent defaults" in out
        assert "0.9" not in out
