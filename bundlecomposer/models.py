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

"""Domain types for bundle composition.

These types describe bundles as they flow through the engine: descriptors
from the registry, parsed bundles from the parser, and the settings object
that the component merger combines.

Every named item records the id of the bundle it came from (``source``), so
merge decisions can be traced back to an input.

Example:
    Build a descriptor by hand (normally the registry does this):
        ```python
        from bundlecomposer.models import BundleDescriptor, SectionOverride

        descriptor = BundleDescriptor(
            id="nextjs-15",
            name="Next.js 15",
            version="15.0.0",
            priority=10,
            sections=(SectionOverride("Project Context", priority=10),),
        )
        ```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import re
from typing import Any

__all__ = [
    "CATEGORIES",
    "SectionOverride",
    "BundleDescriptor",
    "BundleSource",
    "Agent",
    "Command",
    "Hook",
    "Settings",
    "ParsedBundle",
    "normalize_name",
]

CATEGORIES: tuple[str, ...] = (
    "framework",
    "ui",
    "tooling",
    "testing",
    "database",
    "api",
    "mcp-server",
)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_name(name: str) -> str:
    """Return the identity key for a named item.

    Lowercases and strips every non-alphanumeric character, so
    "Component Builder", "component-builder" and "ComponentBuilder!" all
    collapse to "componentbuilder".
    """
    return _NON_ALNUM.sub("", name.lower())


# -------------------------------
# Registry types
# -------------------------------


@dataclass(frozen=True)
class SectionOverride:
    """Per-section priority declared by a bundle descriptor.

    Attributes:
        title: Section heading the override applies to (matched after
            title normalization).
        mergeable: When False, the section is never concatenated with the
            same section from other bundles.
        priority: Section priority; higher sorts earlier and wins overrides.
    """

    title: str
    mergeable: bool = True
    priority: int = 0


@dataclass(frozen=True)
class BundleDescriptor:
    """Static description of a bundle, as declared in the registry."""

    id: str
    name: str
    version: str = "0.0.0"
    description: str = ""
    category: str = "tooling"
    priority: int = 0
    dependencies: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = ()
    sections: tuple[SectionOverride, ...] = ()


@dataclass(frozen=True)
class BundleSource:
    """A descriptor paired with the resolved directory of its bundle."""

    path: Path
    descriptor: BundleDescriptor


# -------------------------------
# Named items
# -------------------------------


@dataclass(frozen=True)
class Agent:
    """Agent definition parsed from ``agents/*.md``.

    Attributes:
        name: Display name (frontmatter ``name`` or the filename stem).
        description: Frontmatter ``description``; empty when absent.
        body: Markdown after the frontmatter, trimmed.
        source: Id of the bundle the agent came from.
        tools: Tool names from frontmatter ``tools``.
        extra: Frontmatter keys not modelled above, in file order.
    """

    name: str
    description: str
    body: str
    source: str
    tools: tuple[str, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class Command:
    """Command definition parsed from ``commands/*.md``."""

    name: str
    description: str
    body: str
    source: str
    allowed_tools: tuple[str, ...] = ()
    argument_hint: str = ""
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class Hook:
    """Hook file from ``hooks/``.

    Attributes:
        name: Filename, including its extension.
        kind: "config" for JSON hook files, "script" for executables.
        body: File content, unchanged.
        source: Id of the bundle the hook came from.
    """

    name: str
    kind: str
    body: str
    source: str


# -------------------------------
# Settings
# -------------------------------


@dataclass(frozen=True)
class Settings:
    """Settings object split into known fields and an extension map.

    Known fields have their own merge rule (see
    bundlecomposer.merge.settings). Everything else lands in ``extensions``
    and is merged last-bundle-wins. A field that is None was absent from the
    input and is never written back out.

    Attributes:
        allow: ``permissions.allow`` (plus legacy top-level ``allow``).
        deny: ``permissions.deny`` (plus legacy top-level ``deny``).
        permissions_extra: Other keys under ``permissions`` (e.g. ``ask``,
            ``defaultMode``).
        env: Environment variables.
        hooks: Hook entries keyed by event name (e.g. "PreToolUse").
        extensions: All remaining top-level keys, in input order.
    """

    allow: tuple[str, ...] | None = None
    deny: tuple[str, ...] | None = None
    permissions_extra: dict[str, Any] | None = None
    env: dict[str, Any] | None = None
    hooks: dict[str, list[Any]] | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Split a raw settings mapping into known fields and extensions.

        Legacy top-level ``allow``/``deny`` lists are folded into the
        permission lists. This is the one key rewrite the merge performs:
        to_dict() writes them as ``permissions.allow``/``permissions.deny``,
        so a file that only had top-level ``allow`` comes out with a
        ``permissions`` key and without the top-level one. No other key is
        ever added, renamed or dropped.

        Malformed known fields (for example a ``hooks`` value that is not a
        mapping) are kept as extensions so nothing is silently lost.
        """
        allow: list[str] | None = None
        deny: list[str] | None = None
        permissions_extra: dict[str, Any] | None = None
        env: dict[str, Any] | None = None
        hooks: dict[str, list[Any]] | None = None
        extensions: dict[str, Any] = {}

        def _extend(current: list[str] | None, values: Any) -> list[str] | None:
            if not isinstance(values, list):
                return current
            merged = list(current or [])
            merged.extend(str(v) for v in values if isinstance(v, (str, int, float)))
            return merged

        for key, value in data.items():
            if key == "permissions" and isinstance(value, dict):
                if permissions_extra is None:
                    permissions_extra = {}
                for perm_key, perm_value in value.items():
                    if perm_key == "allow" and isinstance(perm_value, list):
                        allow = _extend(allow if allow is not None else [], perm_value)
                    elif perm_key == "deny" and isinstance(perm_value, list):
                        deny = _extend(deny if deny is not None else [], perm_value)
                    else:
                        permissions_extra[perm_key] = perm_value
            elif key == "allow" and isinstance(value, list):
                allow = _extend(allow if allow is not None else [], value)
            elif key == "deny" and isinstance(value, list):
                deny = _extend(deny if deny is not None else [], value)
            elif key == "env" and isinstance(value, dict):
                env = dict(value)
            elif key == "hooks" and isinstance(value, dict):
                hooks = {
                    str(event): list(entries) if isinstance(entries, list) else []
                    for event, entries in value.items()
                }
            else:
                extensions[key] = value

        return cls(
            allow=tuple(allow) if allow is not None else None,
            deny=tuple(deny) if deny is not None else None,
            permissions_extra=permissions_extra,
            env=env,
            hooks=hooks,
            extensions=extensions,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to a plain mapping, omitting absent fields."""
        result: dict[str, Any] = {}

        permissions: dict[str, Any] = {}
        if self.allow is not None:
            permissions["allow"] = list(self.allow)
        if self.deny is not None:
            permissions["deny"] = list(self.deny)
        if self.permissions_extra:
            permissions.update(self.permissions_extra)
        if permissions or self.permissions_extra is not None:
            result["permissions"] = permissions

        if self.env is not None:
            result["env"] = dict(self.env)
        if self.hooks is not None:
            result["hooks"] = {event: list(entries) for event, entries in self.hooks.items()}

        for key, value in self.extensions.items():
            result[key] = value
        return result


# -------------------------------
# Parser output
# -------------------------------


@dataclass(frozen=True)
class ParsedBundle:
    """Everything the parser extracted from one bundle directory.

    Attributes:
        bundle_id: Id of the bundle that was parsed.
        root_document: Root markdown text, or None when the bundle has none.
        agents: Parsed agents, in filename order.
        commands: Parsed commands, in filename order.
        hooks: Parsed hook files, in filename order.
        settings: Parsed settings object, or None when absent or invalid.
        warnings: Content problems that caused a unit to be skipped.
    """

    bundle_id: str
    root_document: str | None = None
    agents: tuple[Agent, ...] = ()
    commands: tuple[Command, ...] = ()
    hooks: tuple[Hook, ...] = ()
    settings: Settings | None = None
    warnings: tuple[str, ...] = ()
