"""Remediation rules: ordered substring patterns mapped to advice."""

import json
import logging
from dataclasses import dataclass
from importlib import resources

import yaml

logger = logging.getLogger(__name__)

DEFAULT_ADVICE = "Investigate this error pattern."
EMBEDDED_RULES = "rules.json"


class RuleLoadError(ValueError):
    """Raised when a rule document cannot be decoded."""


@dataclass(frozen=True)
class Rule:
    pattern: str
    advice: str


def match_advice(path: str, error: str, rules: list[Rule]) -> str:
    """Return the advice of the first rule whose pattern occurs in the text.

    The searched text is the path and the error with newlines flattened to
    spaces. Plain substring containment; first match wins.
    """
    flat_error = error.replace("\n", " ")
    text = f"{path} {flat_error}"
    for rule in rules:
        if rule.pattern in text:
            return rule.advice or DEFAULT_ADVICE
    return DEFAULT_ADVICE


def parse_rules(text: str) -> list[Rule]:
    """Decode a rule document: a list of {pattern, advice} mappings.

    JSON is tried first; anything else goes through the YAML loader so rule
    files may also be written as YAML.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise RuleLoadError(f"invalid rule document: {e}") from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise RuleLoadError(f"rule document must be a list, got {type(data).__name__}")

    rules = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            logger.warning("Ignoring rule #%d: not a mapping", i)
            continue
        pattern = item.get("pattern") or ""
        advice = item.get("advice") or ""
        if not isinstance(pattern, str) or not isinstance(advice, str):
            logger.warning("Ignoring rule #%d: pattern and advice must be strings", i)
            continue
        if not pattern:
            logger.warning("Rule #%d has an empty pattern and matches everything", i)
        rules.append(Rule(pattern=pattern, advice=advice))
    return rules


def read_embedded_rules() -> str:
    """Return the rule document shipped inside the package."""
    return (
        resources.files("vault_analyzer")
        .joinpath(EMBEDDED_RULES)
        .read_text(encoding="utf-8")
    )


def load_rules(override_path: str | None, embedded: str | None = None) -> tuple[list[Rule], str]:
    """Load rules from the override file, else from the embedded default set.

    Returns (rules, source) where source is "override", "embedded" or
    "none". Never raises: unreadable or undecodable sources are skipped.
    """
    if override_path:
        try:
            with open(override_path, "r", encoding="utf-8") as f:
                rules = parse_rules(f.read())
            logger.info("Using local '%s' override (%d rules)", override_path, len(rules))
            return rules, "override"
        except FileNotFoundError:
            logger.debug("No rule override at %s", override_path)
        except (OSError, RuleLoadError) as e:
            logger.warning("Ignoring rule override %s: %s", override_path, e)

    try:
        if embedded is None:
            embedded = read_embedded_rules()
        rules = parse_rules(embedded)
    except (OSError, RuleLoadError) as e:
        logger.warning("Embedded rules unavailable: %s", e)
        return [], "none"

    if not rules:
        return [], "none"
    return rules, "embedded"
