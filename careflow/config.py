"""
Configuration management for CareFlow.
Reads ~/.careflow (or the file named by CAREFLOW_CONFIG) for the language-model
endpoint, orchestration limits and per-step sampling overrides.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .clients import SamplingParams
from .exceptions import ConfigurationError


@dataclass
class LLMConfig:
    provider: str = "openai"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model_name: Optional[str] = None
    api_version: Optional[str] = None
    request_timeout: float = 120.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.model_name)


@dataclass
class StepSamplingConfig:
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    def apply(self, base: SamplingParams) -> SamplingParams:
        return SamplingParams(
            temperature=base.temperature if self.temperature is None else self.temperature,
            max_output_tokens=self.max_tokens or base.max_output_tokens,
        )


@dataclass
class Config:
    llm: LLMConfig = field(default_factory=LLMConfig)
    # Base values that step_sampling overrides inherit; agents keep their own defaults.
    max_tokens: int = 1000
    temperature: float = 0.3
    step_timeout: Optional[float] = 120.0
    max_concurrency: int = 4
    stop_on_first_failure: bool = False
    verbose: bool = False
    step_sampling: dict[str, StepSamplingConfig] = field(default_factory=dict)

    @property
    def default_sampling(self) -> SamplingParams:
        return SamplingParams(temperature=self.temperature, max_output_tokens=self.max_tokens)

    def sampling_for_step(self, step_name: str) -> Optional[SamplingParams]:
        override = self.step_sampling.get(step_name)
        if override is None:
            return None
        return override.apply(self.default_sampling)


CONFIG_FILE_NAME = ".careflow"
CONFIG_ENV_VAR = "CAREFLOW_CONFIG"


def get_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_FILE_NAME


def load_config(path: Optional[Path] = None) -> Config:
    config_path = Path(path) if path else get_config_path()
    data: dict = {}

    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid YAML in {config_path}: {e}") from e

    config = parse_config(data)
    apply_env_overrides(config)
    return config


def apply_env_overrides(config: Config) -> None:
    if os.environ.get("CAREFLOW_API_KEY"):
        config.llm.api_key = os.environ["CAREFLOW_API_KEY"]
    if os.environ.get("CAREFLOW_BASE_URL"):
        config.llm.base_url = os.environ["CAREFLOW_BASE_URL"]
    if os.environ.get("CAREFLOW_MODEL"):
        config.llm.model_name = os.environ["CAREFLOW_MODEL"]


def _number(data: dict, key: str, default, kind, optional: bool = False):
    value = data.get(key, default)
    if value is None and optional:
        return None
    if value is None or isinstance(value, bool):
        raise ConfigurationError(f"{key} must be a number", value=value)
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be a number", value=value) from e


def parse_config(data: dict) -> Config:
    if not isinstance(data, dict):
        raise ConfigurationError("configuration must be a mapping")

    llm_data = data.get("llm") or {}
    if not isinstance(llm_data, dict):
        raise ConfigurationError("llm must be a mapping")
    llm = LLMConfig(
        provider=llm_data.get("provider", "openai"),
        api_key=llm_data.get("api_key"),
        base_url=llm_data.get("base_url"),
        model_name=llm_data.get("model_name"),
        api_version=llm_data.get("api_version"),
        request_timeout=_number(llm_data, "request_timeout", 120.0, float),
    )

    sampling_data = data.get("step_sampling") or {}
    if not isinstance(sampling_data, dict):
        raise ConfigurationError("step_sampling must be a mapping of step names")
    step_sampling = {}
    for step_name, step_data in sampling_data.items():
        step_data = step_data or {}
        if not isinstance(step_data, dict):
            raise ConfigurationError("step sampling override must be a mapping", step=step_name)
        step_sampling[step_name] = StepSamplingConfig(
            temperature=_number(step_data, "temperature", None, float, optional=True),
            max_tokens=_number(step_data, "max_tokens", None, int, optional=True),
        )

    config = Config(
        llm=llm,
        max_tokens=_number(data, "max_tokens", 1000, int),
        temperature=_number(data, "temperature", 0.3, float),
        step_timeout=_number(data, "step_timeout", 120.0, float, optional=True),
        max_concurrency=_number(data, "max_concurrency", 4, int),
        stop_on_first_failure=data.get("stop_on_first_failure", False),
        verbose=data.get("verbose", False),
        step_sampling=step_sampling,
    )
    validate_config(config)
    return config


def validate_config(config: Config) -> None:
    if config.max_concurrency < 1:
        raise ConfigurationError("max_concurrency must be at least 1", value=config.max_concurrency)
    if config.step_timeout is not None and config.step_timeout <= 0:
        raise ConfigurationError("step_timeout must be positive", value=config.step_timeout)
    try:
        base = config.default_sampling
        for override in config.step_sampling.values():
            override.apply(base)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(str(e)) from e


def save_config(config: Config, path: Optional[Path] = None) -> None:
    config_path = Path(path) if path else get_config_path()

    data = {
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
        "step_timeout": config.step_timeout,
        "max_concurrency": config.max_concurrency,
        "stop_on_first_failure": config.stop_on_first_failure,
        "verbose": config.verbose,
        "llm": {},
    }

    llm_data = data["llm"]
    if config.llm.provider != "openai":
        llm_data["provider"] = config.llm.provider
    if config.llm.api_key:
        llm_data["api_key"] = config.llm.api_key
    if config.llm.base_url:
        llm_data["base_url"] = config.llm.base_url
    if config.llm.model_name:
        llm_data["model_name"] = config.llm.model_name
    if config.llm.api_version:
        llm_data["api_version"] = config.llm.api_version
    if config.llm.request_timeout != 120.0:
        llm_data["request_timeout"] = config.llm.request_timeout

    if config.step_sampling:
        data["step_sampling"] = {}
        for step_name, override in config.step_sampling.items():
            entry = {}
            if override.temperature is not None:
                entry["temperature"] = override.temperature
            if override.max_tokens:
                entry["max_tokens"] = override.max_tokens
            data["step_sampling"][step_name] = entry

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True)


def create_sample_config(path: Optional[Path] = None) -> Path:
    config_path = Path(path) if path else get_config_path()
    if config_path.exists():
        return config_path

    sample_config = """# CareFlow Configuration
# Copy this file to ~/.careflow and fill in your API key

# Values inherited by step_sampling overrides that leave a field unset.
# Steps without an override use each agent's own sampling defaults.
max_tokens: 1000
temperature: 0.3
step_timeout: 120
max_concurrency: 4
stop_on_first_failure: false
verbose: false

# Language-model endpoint used by every agent
# provider: openai (any OpenAI-compatible endpoint) or azure
llm:
  provider: "openai"
  api_key: "your-api-key"
  base_url: "https://api.example.com/v1"
  model_name: "model-name"
  # api_version: "2024-06-01"   # azure only
  request_timeout: 120

# Per-step sampling overrides, keyed by step name
step_sampling:
  GenerateSOAPNote:
    temperature: 0.1
    max_tokens: 2500
"""

    with open(config_path, "w", encoding="utf-8") as f:
        f.write(sample_config)
    return config_path
