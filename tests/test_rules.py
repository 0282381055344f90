"""Tests for vault_analyzer/rules.py"""

import json

import pytest

from vault_analyzer.rules import (
    DEFAULT_ADVICE,
    Rule,
    RuleLoadError,
    load_rules,
    match_advice,
    parse_rules,
    read_embedded_rules,
)


class TestMatchAdvice:
    def test_first_match_wins(self):
        rules = [Rule("x", "A"), Rule("xy", "B")]
        assert match_advice("secret/data", "error xy happened", rules) == "A"

    def test_order_decides(self):
        rules = [Rule("xy", "B"), Rule("x", "A")]
        assert match_advice("secret/data", "error xy happened", rules) == "B"

    def test_default_when_nothing_matches(self):
        rules = [Rule("permission denied", "A")]
        assert match_advice("secret/data", "rate limited", rules) == DEFAULT_ADVICE

    def test_default_with_no_rules(self):
        assert match_advice("sys/mounts", "anything", []) == DEFAULT_ADVICE
        assert DEFAULT_ADVICE == "Investigate this error pattern."

    def test_pattern_matches_path(self):
        rules = [Rule("auth/approle", "AppRole trouble")]
        assert match_advice("auth/approle/login", "boom", rules) == "AppRole trouble"

    def test_pattern_spans_path_and_error(self):
        rules = [Rule("login invalid", "joined")]
        assert match_advice("auth/userpass/login", "invalid credentials", rules) == "joined"

    def test_newlines_flattened(self):
        rules = [Rule("occurred: \t* permission", "flat")]
        error = "1 error occurred:\n\t* permission denied\n\n"
        assert match_advice("secret/data/app", error, rules) == "flat"

    def test_case_sensitive(self):
        rules = [Rule("Permission Denied", "A")]
        assert match_advice("p", "permission denied", rules) == DEFAULT_ADVICE

    def test_no_regex_semantics(self):
        rules = [Rule("permission.*", "regex")]
        assert match_advice("p", "permission denied", rules) == DEFAULT_ADVICE

    def test_empty_advice_falls_back_to_default(self):
        rules = parse_rules('[{"pattern": "denied"}, {"pattern": "den", "advice": "B"}]')
        assert match_advice("p", "denied", rules) == DEFAULT_ADVICE

    def test_empty_pattern_matches_everything(self):
        rules = [Rule("", "catch-all"), Rule("denied", "A")]
        assert match_advice("p", "permission denied", rules) == "catch-all"


class TestParseRules:
    def test_json_document(self):
        text = json.dumps([
            {"pattern": "rate limited", "advice": "Back off."},
            {"pattern": "denied", "advice": "Check policies."},
        ])
        assert parse_rules(text) == [
            Rule("rate limited", "Back off."),
            Rule("denied", "Check policies."),
        ]

    def test_yaml_document(self):
        text = "- pattern: rate limited\n  advice: Back off.\n"
        assert parse_rules(text) == [Rule("rate limited", "Back off.")]

    def test_empty_document(self):
        assert parse_rules("") == []

    def test_empty_list(self):
        assert parse_rules("[]") == []

    def test_missing_advice_reads_empty(self):
        assert parse_rules('[{"pattern": "x"}]') == [Rule("x", "")]

    def test_bad_entries_dropped(self):
        text = json.dumps([
            "not a mapping",
            {"pattern": 5, "advice": "numeric"},
            {"pattern": "ok", "advice": 7},
            {"pattern": "ok", "advice": "kept"},
        ])
        assert parse_rules(text) == [Rule("ok", "kept")]

    def test_empty_pattern_kept_in_place(self):
        text = json.dumps([
            {"pattern": "denied", "advice": "A"},
            {"advice": "no pattern"},
            {"pattern": "", "advice": "empty pattern"},
            {"pattern": "ok", "advice": "kept"},
        ])
        rules = parse_rules(text)
        assert rules == [
            Rule("denied", "A"),
            Rule("", "no pattern"),
            Rule("", "empty pattern"),
            Rule("ok", "kept"),
        ]
        assert match_advice("p", "permission denied", rules) == "A"
        assert match_advice("p", "ok", rules) == "no pattern"

    def test_not_a_list(self):
        with pytest.raises(RuleLoadError):
            parse_rules('{"pattern": "x", "advice": "y"}')

    def test_undecodable(self):
        with pytest.raises(RuleLoadError):
            parse_rules('[{"pattern": "x", "advice": ')


class TestEmbeddedRules:
    def test_embedded_rules_decode(self):
        rules = parse_rules(read_embedded_rules())
        assert rules
        assert all(r.pattern and r.advice for r in rules)

    def test_embedded_permission_denied(self):
        rules = parse_rules(read_embedded_rules())
        advice = match_advice("secret/data/app", "1 error occurred:\n\t* permission denied\n\n", rules)
        assert advice != DEFAULT_ADVICE


class TestLoadRules:
    def _write(self, tmp_path, content, name="rules.json"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return str(path)

    def test_override_wins(self, tmp_path):
        path = self._write(tmp_path, json.dumps([{"pattern": "a", "advice": "disk"}]))
        embedded = json.dumps([{"pattern": "a", "advice": "built-in"}])
        rules, source = load_rules(path, embedded=embedded)
        assert source == "override"
        assert rules == [Rule("a", "disk")]

    def test_missing_override_uses_embedded(self, tmp_path):
        embedded = json.dumps([{"pattern": "a", "advice": "built-in"}])
        rules, source = load_rules(str(tmp_path / "absent.json"), embedded=embedded)
        assert source == "embedded"
        assert rules == [Rule("a", "built-in")]

    def test_no_override_path_uses_embedded(self):
        embedded = json.dumps([{"pattern": "a", "advice": "built-in"}])
        rules, source = load_rules(None, embedded=embedded)
        assert source == "embedded"

    def test_undecodable_override_falls_back(self, tmp_path):
        path = self._write(tmp_path, "[{ broken")
        embedded = json.dumps([{"pattern": "a", "advice": "built-in"}])
        rules, source = load_rules(path, embedded=embedded)
        assert source == "embedded"
        assert rules == [Rule("a", "built-in")]

    def test_override_directory_falls_back(self, tmp_path):
        embedded = json.dumps([{"pattern": "a", "advice": "built-in"}])
        rules, source = load_rules(str(tmp_path), embedded=embedded)
        assert source == "embedded"

    def test_nothing_available(self, tmp_path):
        rules, source = load_rules(str(tmp_path / "absent.json"), embedded="")
        assert rules == []
        assert source == "none"

    def test_undecodable_embedded(self, tmp_path):
        rules, source = load_rules(str(tmp_path / "absent.json"), embedded="{{{")
        assert rules == []
        assert source == "none"

    def test_default_advice_everywhere_without_rules(self, tmp_path):
        rules, _ = load_rules(str(tmp_path / "absent.json"), embedded="[]")
        for path, error in (("sys/audit", "permission denied"), ("auth/login", "rate limited")):
            assert match_advice(path, error, rules) == DEFAULT_ADVICE

    def test_real_embedded_set(self, tmp_path):
        rules, source = load_rules(str(tmp_path / "absent.json"))
        assert source == "embedded"
        assert rules
