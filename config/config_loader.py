"""Load settings.yaml into typed dataclasses. Applies environment overrides for exit criteria."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

_ENV_EXIT_ENABLED = "ROUNDTABLE_EXIT_ENABLED"
_ENV_EXIT_CONSENSUS = "ROUNDTABLE_EXIT_CONSENSUS_THRESHOLD"
_ENV_EXIT_CONVERGENCE = "ROUNDTABLE_EXIT_CONVERGENCE_ROUNDS"
_ENV_EXIT_CONFIDENCE = "ROUNDTABLE_EXIT_CONFIDENCE_THRESHOLD"


@dataclass
class ModelConfig:
    name: str
    sdk: str               # "anthropic", "openai", "gemini", "xai"
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None
    temperature: float = 0.7


@dataclass
class AgentConfig:
    id: str
    name: str
    model: str             # key into AppConfig.models
    system_prompt: str | None = None


@dataclass
class ExitCriteriaConfig:
    enabled: bool = True
    consensus_threshold: float = 0.9
    convergence_rounds: int = 2
    confidence_threshold: float = 0.85


@dataclass
class DefaultsConfig:
    rounds: int
    max_rounds: int
    mode: str
    output_dir: Path
    synthesizer: str | None = None
    consensus_agent: str | None = None
    use_ai_consensus: bool = False


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    models: dict[str, ModelConfig]
    agents: dict[str, AgentConfig]
    exit_criteria: ExitCriteriaConfig = field(default_factory=ExitCriteriaConfig)
    available_agents: list[str] = field(default_factory=list)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def _env_number(name: str, default: float, cast: type) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def load_exit_criteria_config(raw: dict | None = None) -> ExitCriteriaConfig:
    """Build exit-criteria settings from the YAML section, then apply env overrides.

    Environment variables win over the settings file.
    """
    raw = raw or {}
    base = ExitCriteriaConfig(
        enabled=bool(raw.get("enabled", True)),
        consensus_threshold=float(raw.get("consensus_threshold", 0.9)),
        convergence_rounds=int(raw.get("convergence_rounds", 2)),
        confidence_threshold=float(raw.get("confidence_threshold", 0.85)),
    )
    return ExitCriteriaConfig(
        enabled=_env_bool(_ENV_EXIT_ENABLED, base.enabled),
        consensus_threshold=_env_number(_ENV_EXIT_CONSENSUS, base.consensus_threshold, float),
        convergence_rounds=_env_number(_ENV_EXIT_CONVERGENCE, base.convergence_rounds, int),
        confidence_threshold=_env_number(_ENV_EXIT_CONFIDENCE, base.confidence_threshold, float),
    )


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs agents whose backend has no API key but does not raise; callers check
    available_agents count.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        rounds=int(defaults_raw["rounds"]),
        max_rounds=int(defaults_raw["max_rounds"]),
        mode=str(defaults_raw.get("mode", "collaborative")),
        output_dir=Path(defaults_raw["output_dir"]),
        synthesizer=defaults_raw.get("synthesizer"),
        consensus_agent=defaults_raw.get("consensus_agent"),
        use_ai_consensus=bool(defaults_raw.get("use_ai_consensus", False)),
    )

    models: dict[str, ModelConfig] = {}
    for model_name, model_raw in raw["models"].items():
        models[model_name] = ModelConfig(
            name=model_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
            temperature=float(model_raw.get("temperature", 0.7)),
        )

    agents: dict[str, AgentConfig] = {}
    available_agents: list[str] = []

    for agent_id, agent_raw in raw.get("agents", {}).items():
        model_key = agent_raw["model"]
        if model_key not in models:
            logger.warning("Agent %s references unknown model '%s', skipping", agent_id, model_key)
            continue
        agents[agent_id] = AgentConfig(
            id=agent_id,
            name=str(agent_raw.get("name", agent_id)),
            model=model_key,
            system_prompt=agent_raw.get("system_prompt"),
        )

        api_key_env = models[model_key].api_key_env
        if os.environ.get(api_key_env, "").strip():
            available_agents.append(agent_id)
            logger.info("Agent available: %s", agent_id)
        else:
            logger.info("Agent skipped (no API key): %s (set %s in .env)", agent_id, api_key_env)

    return AppConfig(
        defaults=defaults,
        models=models,
        agents=agents,
        exit_criteria=load_exit_criteria_config(raw.get("exit_criteria")),
        available_agents=available_agents,
    )
