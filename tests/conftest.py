"""
Pytest configuration and shared fixtures for bundlecomposer tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from bundlecomposer.logging import SilentLogger, set_global_logger
from bundlecomposer.models import BundleDescriptor, BundleSource, SectionOverride


@pytest.fixture(autouse=True)
def silent_global_logger():
    """Reset the global logger so CLI tests do not leak output settings."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def fixed_time() -> datetime:
    """Provide a fixed generation timestamp for reproducible output."""
    return datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("registry.yaml", {"bundles": []})
    """

    def _create(filename: str, data: Any) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f, sort_keys=False)
        return path

    return _create


@pytest.fixture
def make_bundle(tmp_test_dir: Path):
    """
    Factory fixture that writes a bundle directory tree.

    Usage:
        path = make_bundle(
            "nextjs",
            root_doc="# Title\\n\\n## Security\\n\\nUse HTTPS",
            agents={"builder.md": "---\\nname: Builder\\n---\\nBody"},
            settings={"permissions": {"allow": ["Read"]}},
        )

    Settings may be a dict (written as JSON) or a raw string (written
    as-is, for invalid JSON cases). Pass ``items_dir=False`` to skip the
    ``.claude`` directory entirely.
    """

    def _create(
        name: str,
        *,
        root_doc: str | None = None,
        agents: dict[str, str] | None = None,
        commands: dict[str, str] | None = None,
        hooks: dict[str, str] | None = None,
        settings: dict[str, Any] | str | None = None,
        readme: bool = False,
        items_dir: bool = True,
    ) -> Path:
        root = tmp_test_dir / "bundles" / name
        root.mkdir(parents=True, exist_ok=True)
        if root_doc is not None:
            (root / "CLAUDE.md").write_text(root_doc, encoding="utf-8")
        if readme:
            (root / "README.md").write_text(f"# {name}\n", encoding="utf-8")
        if not items_dir:
            return root

        claude = root / ".claude"
        claude.mkdir(exist_ok=True)
        for subdir, files in (("agents", agents), ("commands", commands), ("hooks", hooks)):
            if files is None:
                continue
            directory = claude / subdir
            directory.mkdir(exist_ok=True)
            for filename, content in files.items():
                (directory / filename).write_text(content, encoding="utf-8")
        if settings is not None:
            text = settings if isinstance(settings, str) else json.dumps(settings)
            (claude / "settings.json").write_text(text, encoding="utf-8")
        return root

    return _create


@pytest.fixture
def make_source():
    """
    Factory fixture pairing a bundle path with a descriptor.

    Usage:
        source = make_source(path, "x", priority=10,
                             sections=[("Security", 20)])
    """

    def _create(
        path: Path,
        bundle_id: str,
        *,
        priority: int = 0,
        sections: list[tuple[str, int]] | None = None,
        name: str | None = None,
        version: str = "1.0.0",
        description: str = "",
    ) -> BundleSource:
        overrides = tuple(
            SectionOverride(title=title, priority=section_priority)
            for title, section_priority in (sections or [])
        )
        descriptor = BundleDescriptor(
            id=bundle_id,
            name=name or bundle_id,
            version=version,
            description=description,
            priority=priority,
            sections=overrides,
        )
        return BundleSource(path=path, descriptor=descriptor)

    return _create
