"""Configuration loading from CLI args, env vars, and optional YAML file."""

import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("text", "json")


@dataclass(frozen=True)
class Config:
    log_file: str = ""
    rules_file: str = "rules.json"
    top_paths: int = 3
    top_errors: int = 5
    output: str = "text"


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError:
        logger.warning("Invalid YAML in %s, using defaults", path)
        return {}

    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, using defaults", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def _positive_int(name: str, value) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
    if number < 1:
        raise ValueError(f"{name} must be at least 1, got {number}")
    return number


def _pick(cli_value, env_key: str, yaml_data: dict, yaml_key: str, default):
    """CLI beats env beats YAML beats default."""
    if cli_value is not None:
        return cli_value
    if env_key in os.environ:
        return os.environ[env_key]
    return yaml_data.get(yaml_key, default)


def load_config(cli_args, yaml_data: dict) -> Config:
    """Build Config from CLI args, env vars, and parsed YAML data.

    Raises ValueError for out-of-range values.
    """
    output = getattr(cli_args, "output", None) or yaml_data.get("output", Config.output)
    if output not in OUTPUT_FORMATS:
        raise ValueError(f"output must be one of {', '.join(OUTPUT_FORMATS)}, got {output!r}")

    return Config(
        log_file=cli_args.log_file,
        rules_file=str(_pick(
            getattr(cli_args, "rules", None), "VAULT_RULES_FILE",
            yaml_data, "rules_file", Config.rules_file,
        )),
        top_paths=_positive_int("top_paths", _pick(
            getattr(cli_args, "top_paths", None), "VAULT_TOP_PATHS",
            yaml_data, "top_paths", Config.top_paths,
        )),
        top_errors=_positive_int("top_errors", _pick(
            getattr(cli_args, "top_errors", None), "VAULT_TOP_ERRORS",
            yaml_data, "top_errors", Config.top_errors,
        )),
        output=output,
    )
