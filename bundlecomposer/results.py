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

"""Public API return types for bundlecomposer.

This module defines dataclasses for return values from public API functions:
planning and running a composition, verifying an output tree, validating a
bundle and checking a bundle selection for compatibility.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from pathlib import Path
        from bundlecomposer.core import compose
        from bundlecomposer.results import ComposeResult

        result: ComposeResult = compose(bundles, Path("./out"))
        print(result.status, len(result.files_written))
        ```

Note:
    Only public API return types belong in this module. Domain types (like
    ParsedBundle or Settings) live in bundlecomposer.models.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from bundlecomposer.models import Agent, BundleDescriptor, Command, Hook, Settings


@dataclass(frozen=True)
class CompositionPlan:
    """Everything a composition would write, computed without touching disk.

    Attributes:
        descriptors: Descriptors of the composed bundles, in input order.
        root_document: Merged root document text.
        agents: Deduplicated agents.
        commands: Deduplicated commands.
        hooks: Deduplicated hook files.
        settings: Merged settings, or None when no bundle has settings.
        warnings: Parser warnings, prefixed with the bundle id.
    """

    descriptors: tuple[BundleDescriptor, ...]
    root_document: str
    agents: tuple[Agent, ...]
    commands: tuple[Command, ...]
    hooks: tuple[Hook, ...]
    settings: Settings | None
    warnings: tuple[str, ...]

    @property
    def bundle_ids(self) -> list[str]:
        return [d.id for d in self.descriptors]


@dataclass(frozen=True)
class ComposeResult:
    """Result from composing bundles into an output directory.

    Attributes:
        output_root: Directory the composed bundle was written to.
        bundle_ids: Ids of the composed bundles, in input order.
        files_written: Every file written, in write order.
        agent_count: Number of agent files written.
        command_count: Number of command files written.
        hook_count: Number of hook files written.
        warnings: Parser warnings plus any verification problems.
        status: "success", or "success_with_warnings" when verification
            found problems.
    """

    output_root: Path
    bundle_ids: list[str]
    files_written: list[Path]
    agent_count: int
    command_count: int
    hook_count: int
    warnings: list[str]
    status: str


@dataclass(frozen=True)
class VerifyResult:
    """Result from checking a composed output tree.

    Attributes:
        output_root: Directory that was checked.
        valid: True when no problems were found.
        problems: Human-readable description of each missing or broken piece.
    """

    output_root: Path
    valid: bool
    problems: list[str]


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a bundle directory.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        bundle_path: String path to the validated bundle.
        has_root_document: Whether the bundle has a root document.
        has_settings: Whether the bundle has a usable settings file.
        agent_count: Number of agents parsed.
        command_count: Number of commands parsed.
        hook_count: Number of hook files parsed.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    bundle_path: str
    has_root_document: bool = False
    has_settings: bool = False
    agent_count: int = 0
    command_count: int = 0
    hook_count: int = 0


@dataclass(frozen=True)
class CompatibilityResult:
    """Result from checking a bundle selection against the registry.

    Attributes:
        valid: True when there are no conflicts and no missing dependencies.
        conflicts: ``(bundle id, conflicting bundle id)`` pairs, both selected.
        missing_dependencies: ``(bundle id, dependency id)`` pairs where the
            dependency is not part of the selection.
    """

    valid: bool
    conflicts: list[tuple[str, str]]
    missing_dependencies: list[tuple[str, str]]
