"""
Tests for bundlecomposer.config (registry and environment).

Tests registry loading, descriptor validation, selection, compatibility
checks and BUNDLECOMPOSER_* environment handling.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from bundlecomposer.config import load_environment, load_registry
from bundlecomposer.config.environment import DEFAULT_OUTPUT, DEFAULT_REGISTRY
from bundlecomposer.exceptions import ConfigError
from bundlecomposer.models import SectionOverride

pytestmark = pytest.mark.unit


def _registry_data(**overrides):
    data = {
        "apiVersion": "bundlecomposer/v1",
        "bundles": [
            {
                "id": "nextjs-15",
                "name": "Next.js 15",
                "version": "15.0.0",
                "description": "Next.js with App Router",
                "category": "framework",
                "priority": 10,
                "path": "frameworks/nextjs-15",
                "dependencies": [],
                "conflicts": ["remix"],
                "sections": [{"title": "Project Context", "priority": 10}],
            },
            {
                "id": "shadcn",
                "name": "shadcn/ui",
                "category": "ui",
                "path": "ui/shadcn",
                "dependencies": ["nextjs-15"],
            },
            {
                "id": "remix",
                "name": "Remix",
                "category": "framework",
                "path": "frameworks/remix",
            },
        ],
    }
    data.update(overrides)
    return data


class TestLoadRegistry:
    """Tests for load_registry."""

    def test_loads_descriptors(self, create_yaml_file):
        """Test that every bundle becomes a descriptor with defaults filled."""
        registry = load_registry(create_yaml_file("registry.yaml", _registry_data()))

        assert len(registry) == 3
        nextjs = registry.get("nextjs-15")
        assert nextjs.name == "Next.js 15"
        assert nextjs.priority == 10
        assert nextjs.conflicts == ("remix",)
        assert nextjs.sections == (SectionOverride("Project Context", True, 10),)
        shadcn = registry.get("shadcn")
        assert shadcn.version == "0.0.0"
        assert shadcn.priority == 0

    def test_paths_relative_to_registry(self, create_yaml_file, tmp_path):
        """Test that bundle paths resolve against the registry directory."""
        registry = load_registry(create_yaml_file("registry.yaml", _registry_data()))

        source = registry.select(["shadcn"])[0]

        assert source.path == tmp_path.resolve() / "ui" / "shadcn"

    def test_paths_relative_to_root(self, create_yaml_file, tmp_path):
        """Test that 'root' changes the base directory for bundle paths."""
        registry = load_registry(
            create_yaml_file("conf/registry.yaml", _registry_data(root="../bundles"))
        )

        source = registry.select(["remix"])[0]

        assert source.path == tmp_path.resolve() / "conf" / "../bundles" / "frameworks" / "remix"

    def test_missing_file(self, tmp_path):
        """Test that a missing registry raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            load_registry(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test that malformed YAML raises ConfigError."""
        path = tmp_path / "registry.yaml"
        path.write_text("bundles: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_registry(path)

    def test_bundles_must_be_list(self, create_yaml_file):
        """Test that a registry without a bundles list is rejected."""
        with pytest.raises(ConfigError, match="'bundles' list"):
            load_registry(create_yaml_file("registry.yaml", {"apiVersion": "bundlecomposer/v1"}))

    def test_duplicate_ids(self, create_yaml_file):
        """Test that repeated ids are rejected."""
        data = _registry_data()
        data["bundles"].append(dict(data["bundles"][0]))

        with pytest.raises(ConfigError, match="Duplicate bundle id"):
            load_registry(create_yaml_file("registry.yaml", data))

    def test_unknown_category(self, create_yaml_file):
        """Test that categories outside the known set are rejected."""
        data = _registry_data()
        data["bundles"][0]["category"] = "mystery"

        with pytest.raises(ConfigError, match="unknown category"):
            load_registry(create_yaml_file("registry.yaml", data))

    def test_missing_required_field(self, create_yaml_file):
        """Test that entries need id, name and path."""
        data = _registry_data()
        del data["bundles"][1]["path"]

        with pytest.raises(ConfigError, match="path"):
            load_registry(create_yaml_file("registry.yaml", data))


class TestRegistryQueries:
    """Tests for registry lookups, selection and compatibility."""

    @pytest.fixture
    def registry(self, create_yaml_file):
        return load_registry(create_yaml_file("registry.yaml", _registry_data()))

    def test_by_category(self, registry):
        """Test that bundles can be listed by category."""
        assert [d.id for d in registry.by_category("framework")] == ["nextjs-15", "remix"]
        assert registry.by_category("database") == []

    def test_select_keeps_given_order(self, registry):
        """Test that select returns sources in the requested order."""
        sources = registry.select(["shadcn", "nextjs-15"])

        assert [s.descriptor.id for s in sources] == ["shadcn", "nextjs-15"]

    def test_select_unknown(self, registry):
        """Test that unknown ids raise ConfigError."""
        with pytest.raises(ConfigError, match="Unknown bundle id"):
            registry.select(["nextjs-15", "vue"])

    def test_compatible_selection(self, registry):
        """Test that a selection with its dependencies is valid."""
        result = registry.check_compatibility(["nextjs-15", "shadcn"])

        assert result.valid is True
        assert result.conflicts == []
        assert result.missing_dependencies == []

    def test_conflicts_and_missing_dependencies(self, registry):
        """Test that conflicts and missing dependencies are reported."""
        result = registry.check_compatibility(["nextjs-15", "remix"])
        assert result.valid is False
        assert result.conflicts == [("nextjs-15", "remix")]

        result = registry.check_compatibility(["shadcn"])
        assert result.missing_dependencies == [("shadcn", "nextjs-15")]


class TestLoadEnvironment:
    """Tests for load_environment."""

    @pytest.fixture(autouse=True)
    def isolated_env(self, monkeypatch, tmp_path):
        """Run in an empty directory with no BUNDLECOMPOSER_* variables."""
        monkeypatch.chdir(tmp_path)
        for key in ("REGISTRY", "OUTPUT", "WORKERS"):
            # setenv first so teardown also removes values loaded from .env
            monkeypatch.setenv(f"BUNDLECOMPOSER_{key}", "")
            monkeypatch.delenv(f"BUNDLECOMPOSER_{key}")

    def test_defaults(self, tmp_path):
        """Test that defaults apply when nothing is set."""
        env = load_environment(tmp_path / "absent.env")

        assert env.registry_path == DEFAULT_REGISTRY
        assert env.output_dir == DEFAULT_OUTPUT
        assert env.max_workers is None

    def test_process_environment(self, monkeypatch, tmp_path):
        """Test that process variables are read."""
        monkeypatch.setenv("BUNDLECOMPOSER_REGISTRY", "conf/reg.yaml")
        monkeypatch.setenv("BUNDLECOMPOSER_WORKERS", "3")

        env = load_environment(tmp_path / "absent.env")

        assert env.registry_path == Path("conf/reg.yaml")
        assert env.max_workers == 3

    def test_dotenv_file(self, tmp_path):
        """Test that a .env file supplies values."""
        dotenv = tmp_path / ".env"
        dotenv.write_text("BUNDLECOMPOSER_OUTPUT=build/out\n", encoding="utf-8")

        env = load_environment(dotenv)

        assert env.output_dir == Path("build/out")

    def test_invalid_workers(self, monkeypatch, tmp_path):
        """Test that a non-integer worker count raises ConfigError."""
        monkeypatch.setenv("BUNDLECOMPOSER_WORKERS", "many")

        with pytest.raises(ConfigError, match="WORKERS"):
            load_environment(tmp_path / "absent.env")
