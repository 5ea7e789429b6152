# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Bundle registry loading for bundlecomposer.

The registry is a YAML file that declares every available bundle and where
its directory lives:

    apiVersion: bundlecomposer/v1
    root: bundles                 # optional, relative to this file
    bundles:
      - id: nextjs-15
        name: Next.js 15
        version: 15.0.0
        description: Next.js 15 with App Router
        category: framework
        priority: 10
        path: frameworks/nextjs-15
        dependencies: []
        conflicts: []
        sections:
          - {title: Project Context, mergeable: true, priority: 10}

Relative bundle paths resolve against ``root`` when set, otherwise against
the directory holding the registry file. Paths are not checked here; the
orchestrator validates them before parsing.

The loaded BundleRegistry is immutable. There is no module-level registry;
callers load one explicitly and pass it around.

Example:
    Select bundles for a composition:
        ```python
        from pathlib import Path
        from bundlecomposer.config import load_registry

        registry = load_registry(Path("bundles/registry.yaml"))
        check = registry.check_compatibility(["nextjs-15", "shadcn"])
        if check.valid:
            sources = registry.select(["nextjs-15", "shadcn"])
        ```
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import yaml

from bundlecomposer.exceptions import ConfigError
from bundlecomposer.logging import get_global_logger
from bundlecomposer.models import (
    CATEGORIES,
    BundleDescriptor,
    BundleSource,
    SectionOverride,
)
from bundlecomposer.results import CompatibilityResult

__all__ = ["API_VERSION", "BundleRegistry", "load_registry"]

API_VERSION = "bundlecomposer/v1"

_REQUIRED_FIELDS = ("id", "name", "path")


class BundleRegistry:
    """Immutable collection of bundle descriptors and their directories."""

    def __init__(self, entries: Iterable[BundleSource], source: Path | None = None) -> None:
        self._entries: dict[str, BundleSource] = {}
        for entry in entries:
            bundle_id = entry.descriptor.id
            if bundle_id in self._entries:
                raise ConfigError(f"Duplicate bundle id in registry: {bundle_id}")
            self._entries[bundle_id] = entry
        self.source = source

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, bundle_id: object) -> bool:
        return bundle_id in self._entries

    def all(self) -> list[BundleDescriptor]:
        """Return every descriptor, in registry order."""
        return [entry.descriptor for entry in self._entries.values()]

    def get(self, bundle_id: str) -> BundleDescriptor | None:
        entry = self._entries.get(bundle_id)
        return entry.descriptor if entry else None

    def by_category(self, category: str) -> list[BundleDescriptor]:
        return [d for d in self.all() if d.category == category]

    def select(self, bundle_ids: Sequence[str]) -> list[BundleSource]:
        """Return the bundle sources for ``bundle_ids``, in the order given.

        Raises:
            ConfigError: If any id is not in the registry.
        """
        unknown = [bid for bid in bundle_ids if bid not in self._entries]
        if unknown:
            available = ", ".join(self._entries) or "(none)"
            raise ConfigError(
                f"Unknown bundle id(s): {', '.join(unknown)}. Available: {available}"
            )
        return [self._entries[bid] for bid in bundle_ids]

    def check_compatibility(self, bundle_ids: Sequence[str]) -> CompatibilityResult:
        """Check a selection for conflicts and missing dependencies.

        Unknown ids are ignored here; select() reports them.

        Example:
            ```python
            result = registry.check_compatibility(["a", "b"])
            for bundle_id, other in result.conflicts:
                print(f"{bundle_id} conflicts with {other}")
            ```
        """
        selected = set(bundle_ids)
        conflicts: list[tuple[str, str]] = []
        missing: list[tuple[str, str]] = []

        for bundle_id in bundle_ids:
            descriptor = self.get(bundle_id)
            if descriptor is None:
                continue
            conflicts.extend((bundle_id, c) for c in descriptor.conflicts if c in selected)
            missing.extend(
                (bundle_id, d) for d in descriptor.dependencies if d not in selected
            )

        return CompatibilityResult(
            valid=not conflicts and not missing,
            conflicts=conflicts,
            missing_dependencies=missing,
        )


# -------------------------------
# Loading
# -------------------------------


def _string_list(value: Any, field: str, bundle_id: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"Bundle '{bundle_id}': '{field}' must be a list")
    return tuple(str(v) for v in value)


def _parse_sections(value: Any, bundle_id: str) -> tuple[SectionOverride, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"Bundle '{bundle_id}': 'sections' must be a list")

    overrides = []
    for idx, item in enumerate(value):
        if not isinstance(item, dict) or not item.get("title"):
            raise ConfigError(
                f"Bundle '{bundle_id}': sections[{idx}] must be a mapping with a 'title'"
            )
        try:
            priority = int(item.get("priority", 0))
        except (TypeError, ValueError) as err:
            raise ConfigError(
                f"Bundle '{bundle_id}': sections[{idx}].priority must be an integer"
            ) from err
        overrides.append(
            SectionOverride(
                title=str(item["title"]),
                mergeable=bool(item.get("mergeable", True)),
                priority=priority,
            )
        )
    return tuple(overrides)


def _parse_entry(raw: Any, idx: int, base_dir: Path) -> BundleSource:
    if not isinstance(raw, dict):
        raise ConfigError(f"bundles[{idx}] must be a mapping")

    missing = [f for f in _REQUIRED_FIELDS if not raw.get(f)]
    if missing:
        raise ConfigError(f"bundles[{idx}] is missing required field(s): {', '.join(missing)}")

    bundle_id = str(raw["id"])
    category = str(raw.get("category", "tooling"))
    if category not in CATEGORIES:
        raise ConfigError(
            f"Bundle '{bundle_id}': unknown category '{category}'. "
            f"Expected one of: {', '.join(CATEGORIES)}"
        )

    priority = raw.get("priority", 0)
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise ConfigError(f"Bundle '{bundle_id}': 'priority' must be an integer")

    descriptor = BundleDescriptor(
        id=bundle_id,
        name=str(raw["name"]),
        version=str(raw.get("version", "0.0.0")),
        description=str(raw.get("description") or ""),
        category=category,
        priority=priority,
        dependencies=_string_list(raw.get("dependencies"), "dependencies", bundle_id),
        conflicts=_string_list(raw.get("conflicts"), "conflicts", bundle_id),
        sections=_parse_sections(raw.get("sections"), bundle_id),
    )
    return BundleSource(path=base_dir / str(raw["path"]), descriptor=descriptor)


def load_registry(path: Path) -> BundleRegistry:
    """Load and validate a bundle registry file.

    Args:
        path: Path to the registry YAML file.

    Returns:
        BundleRegistry with every declared bundle.

    Raises:
        ConfigError: If the file is missing or is not valid YAML, the top
            level is not a mapping, ``bundles`` is not a list, an entry is
            missing id/name/path, a category is unknown, or an id repeats.
    """
    logger = get_global_logger()

    if not path.exists():
        raise ConfigError(f"Registry file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Invalid YAML in registry {path}: {err}") from err
    except OSError as err:
        raise ConfigError(f"Cannot read registry {path}: {err}") from err

    if not isinstance(data, dict):
        raise ConfigError(f"Registry must be a YAML mapping: {path}")

    api_version = data.get("apiVersion")
    if api_version is not None and api_version != API_VERSION:
        logger.warning(
            "REGISTRY", f"Unexpected apiVersion '{api_version}', expected '{API_VERSION}'"
        )

    bundles = data.get("bundles")
    if not isinstance(bundles, list):
        raise ConfigError(f"Registry must define a 'bundles' list: {path}")

    base_dir = path.resolve().parent
    if data.get("root"):
        base_dir = base_dir / str(data["root"])

    registry = BundleRegistry(
        (_parse_entry(raw, idx, base_dir) for idx, raw in enumerate(bundles)),
        source=path,
    )
    logger.verbose("REGISTRY", f"Loaded {len(registry)} bundle(s) from {path}")
    return registry
