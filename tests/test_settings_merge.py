"""
Tests for bundlecomposer.merge.settings and the Settings model.

Tests permission unions, env and extension merging, hook entry
normalization, and that absent keys stay absent.
"""

from __future__ import annotations

import pytest

from bundlecomposer.merge.settings import merge_settings, normalize_hook_entry
from bundlecomposer.models import Settings

pytestmark = pytest.mark.unit


class TestMergeSettings:
    """Tests for merge_settings."""

    def test_no_settings(self):
        """Test that no inputs with settings give None."""
        assert merge_settings([]) is None
        assert merge_settings([None, None]) is None

    def test_allow_union(self):
        """Test that allow lists form an ordered union without duplicates."""
        a = Settings.from_dict({"permissions": {"allow": ["Read", "Write"]}})
        b = Settings.from_dict({"permissions": {"allow": ["Write", "Bash"]}})

        merged = merge_settings([a, b])

        assert merged.to_dict()["permissions"]["allow"] == ["Read", "Write", "Bash"]

    def test_legacy_allow_joins_union(self):
        """Test that legacy top-level allow/deny join the permission lists."""
        a = Settings.from_dict({"allow": ["Read"], "deny": ["rm"]})
        b = Settings.from_dict({"permissions": {"allow": ["Read", "Edit"], "deny": ["sudo"]}})

        data = merge_settings([a, b]).to_dict()

        assert data["permissions"] == {"allow": ["Read", "Edit"], "deny": ["rm", "sudo"]}
        assert "allow" not in data
        assert "deny" not in data

    def test_permission_extras_last_wins(self):
        """Test that other permission keys are last-wins per key."""
        a = Settings.from_dict({"permissions": {"defaultMode": "ask", "ask": ["Bash"]}})
        b = Settings.from_dict({"permissions": {"defaultMode": "acceptEdits"}})

        permissions = merge_settings([a, b]).to_dict()["permissions"]

        assert permissions == {"defaultMode": "acceptEdits", "ask": ["Bash"]}

    def test_env_merged_per_variable(self):
        """Test that env merges per variable with the last bundle winning."""
        a = Settings.from_dict({"env": {"A": "1", "B": "1"}})
        b = Settings.from_dict({"env": {"B": "2", "C": "2"}})

        assert merge_settings([a, b]).env == {"A": "1", "B": "2", "C": "2"}

    def test_extensions_last_wins(self):
        """Test that unknown top-level keys are replaced whole by later bundles."""
        a = Settings.from_dict({"statusLine": {"command": "a"}, "model": "x"})
        b = Settings.from_dict({"statusLine": {"type": "cmd"}})

        data = merge_settings([a, None, b]).to_dict()

        assert data["statusLine"] == {"type": "cmd"}
        assert data["model"] == "x"

    def test_absent_keys_not_added(self):
        """Test that keys no input had never appear in the output."""
        a = Settings.from_dict({"env": {"A": "1"}})

        data = merge_settings([a]).to_dict()

        assert data == {"env": {"A": "1"}}

    def test_hooks_concatenated_per_event(self):
        """Test that hook entries are concatenated in bundle order without dedup."""
        entry = {"matcher": "Write", "hooks": [{"type": "command", "command": "fmt"}]}
        a = Settings.from_dict({"hooks": {"PostToolUse": [entry]}})
        b = Settings.from_dict(
            {"hooks": {"PostToolUse": [entry], "CustomEvent": [{"hooks": [{"command": "x"}]}]}}
        )

        hooks = merge_settings([a, b]).hooks

        assert hooks["PostToolUse"] == [entry, entry]
        assert hooks["CustomEvent"] == [{"hooks": [{"type": "command", "command": "x"}]}]

    def test_invalid_hook_entries_skipped(self):
        """Test that malformed hook entries are dropped."""
        a = Settings.from_dict(
            {"hooks": {"Stop": ["not-a-dict", {"matcher": "x"}, {"hooks": [{"command": "ok"}]}]}}
        )

        hooks = merge_settings([a]).hooks

        assert hooks == {"Stop": [{"hooks": [{"type": "command", "command": "ok"}]}]}


class TestNormalizeHookEntry:
    """Tests for normalize_hook_entry."""

    def test_empty_matcher_dropped(self):
        """Test that an empty matcher is omitted."""
        entry = normalize_hook_entry({"matcher": "", "hooks": [{"command": "lint"}]})

        assert entry == {"hooks": [{"type": "command", "command": "lint"}]}

    def test_timeout_kept(self):
        """Test that timeout and explicit type are preserved."""
        entry = normalize_hook_entry(
            {"matcher": "Bash", "hooks": [{"type": "shell", "command": "x", "timeout": 30}]}
        )

        assert entry == {
            "matcher": "Bash",
            "hooks": [{"type": "shell", "command": "x", "timeout": 30}],
        }

    def test_handler_without_command_skipped(self):
        """Test that handlers missing a command are dropped."""
        entry = normalize_hook_entry({"hooks": [{"type": "command"}, {"command": "ok"}]})

        assert entry == {"hooks": [{"type": "command", "command": "ok"}]}

    def test_invalid_entry(self):
        """Test that entries without a hooks list are rejected."""
        assert normalize_hook_entry({"matcher": "x"}) is None
        assert normalize_hook_entry("x") is None


class TestSettingsModel:
    """Tests for Settings.from_dict and to_dict."""

    def test_round_trip_preserves_unknown_keys(self):
        """Test that extension keys survive in input order."""
        data = {"permissions": {"allow": ["Read"]}, "zeta": 1, "alpha": {"x": 2}}

        assert Settings.from_dict(data).to_dict() == data

    def test_legacy_keys_written_under_permissions(self):
        """Test that top-level allow/deny are rewritten as permission lists."""
        settings = Settings.from_dict({"allow": ["Read"], "deny": ["rm"], "model": "x"})

        assert settings.to_dict() == {
            "permissions": {"allow": ["Read"], "deny": ["rm"]},
            "model": "x",
        }

    def test_malformed_hooks_kept_as_extension(self):
        """Test that a non-mapping hooks value is kept as an extension key."""
        settings = Settings.from_dict({"hooks": ["bad"]})

        assert settings.hooks is None
        assert settings.extensions == {"hooks": ["bad"]}
