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

"""Bundle directory parser.

Turns one bundle directory into a ParsedBundle. Every piece of a bundle is
optional and independent of the others:

- Root document missing -> ``root_document`` is None
- Item directory missing -> no agents, commands, hooks or settings
- Any single item directory missing -> that collection is empty
- Settings file missing or invalid -> ``settings`` is None

Error Handling:

- ParseError: the bundle root itself (or its item directory) cannot be read.
  This is structural and aborts the composition run.
- Warnings: a broken unit (bad frontmatter, nameless item, invalid settings
  or hook JSON, unreadable file) is skipped and described in
  ``ParsedBundle.warnings``. Parsing carries on.

Each call allocates its own state, so bundles can be parsed concurrently.

Example:
    Parse a bundle:
        ```python
        from pathlib import Path
        from bundlecomposer.parser import parse_bundle

        bundle = parse_bundle(Path("bundles/frameworks/nextjs-15"), "nextjs-15")
        print(len(bundle.agents), bundle.warnings)
        ```
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from bundlecomposer.exceptions import ParseError
from bundlecomposer.layout import DEFAULT_LAYOUT, BundleLayout
from bundlecomposer.logging import get_global_logger
from bundlecomposer.models import Agent, Command, Hook, ParsedBundle, Settings
from bundlecomposer.parser.frontmatter import (
    FrontmatterError,
    normalize_tool_list,
    parse_frontmatter,
)

__all__ = ["parse_bundle", "parse_agent", "parse_command"]

_AGENT_KEYS = ("name", "description", "tools")
_COMMAND_KEYS = ("name", "description", "allowed-tools", "argument-hint")


def _read_text(path: Path, warnings: list[str], label: str) -> str | None:
    """Read a UTF-8 file, turning read failures into warnings."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as err:
        warnings.append(f"Could not read {label} {path.name}: {err}")
        return None


def _list_files(directory: Path, warnings: list[str], label: str) -> list[Path]:
    """List regular files in a directory in sorted order.

    A missing directory is normal and yields no files. An unreadable one is
    reported as a warning.
    """
    if not directory.exists():
        return []
    if not directory.is_dir():
        warnings.append(f"Expected {label} directory, found a file: {directory}")
        return []
    try:
        return sorted(p for p in directory.iterdir() if p.is_file())
    except OSError as err:
        warnings.append(f"Could not read {label} directory {directory}: {err}")
        return []


def _item_name(metadata: dict[str, Any], filename: str, suffix: str) -> str:
    raw = metadata.get("name")
    if raw is None or raw == "":
        raw = filename[: -len(suffix)] if filename.endswith(suffix) else filename
    return str(raw).strip()


def parse_agent(
    content: str, filename: str, source: str, warnings: list[str], suffix: str = ".md"
) -> Agent | None:
    """Parse one agent file.

    Args:
        content: File content.
        filename: File name, used as the fallback agent name.
        source: Id of the bundle the file belongs to.
        warnings: Collector for content problems.
        suffix: Item file extension stripped from the fallback name.

    Returns:
        The parsed Agent, or None when the file was dropped.
    """
    try:
        doc = parse_frontmatter(content)
    except FrontmatterError as err:
        warnings.append(f"Skipping agent {filename}: {err}")
        return None

    metadata = doc.metadata
    name = _item_name(metadata, filename, suffix)
    if not name:
        warnings.append(f"Skipping agent {filename}: agent must have a name")
        return None

    tools = normalize_tool_list(metadata.get("tools"))
    if tools is None:
        warnings.append(f"Invalid tools format in agent {filename}, ignoring tools")
        tools = []

    return Agent(
        name=name,
        description=str(metadata.get("description") or ""),
        body=doc.body.strip(),
        source=source,
        tools=tuple(tools),
        extra={k: v for k, v in metadata.items() if k not in _AGENT_KEYS},
    )


def parse_command(
    content: str, filename: str, source: str, warnings: list[str], suffix: str = ".md"
) -> Command | None:
    """Parse one command file. Returns None when the file was dropped."""
    try:
        doc = parse_frontmatter(content)
    except FrontmatterError as err:
        warnings.append(f"Skipping command {filename}: {err}")
        return None

    metadata = doc.metadata
    name = _item_name(metadata, filename, suffix)
    if not name:
        warnings.append(f"Skipping command {filename}: command must have a name")
        return None

    allowed_tools = normalize_tool_list(metadata.get("allowed-tools"))
    if allowed_tools is None:
        warnings.append(
            f"Invalid allowed-tools format in command {filename}, ignoring allowed-tools"
        )
        allowed_tools = []

    return Command(
        name=name,
        description=str(metadata.get("description") or ""),
        body=doc.body.strip(),
        source=source,
        allowed_tools=tuple(allowed_tools),
        argument_hint=str(metadata.get("argument-hint") or ""),
        extra={k: v for k, v in metadata.items() if k not in _COMMAND_KEYS},
    )


def _parse_settings(
    path: Path, warnings: list[str]
) -> Settings | None:
    content = _read_text(path, warnings, "settings file")
    if content is None:
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError as err:
        warnings.append(f"Invalid JSON in {path.name}: {err}")
        return None
    if not isinstance(data, dict):
        warnings.append(f"Settings file {path.name} must contain a JSON object")
        return None
    return Settings.from_dict(data)


def _parse_hooks(
    directory: Path, source: str, layout: BundleLayout, warnings: list[str]
) -> list[Hook]:
    hooks: list[Hook] = []
    for path in _list_files(directory, warnings, "hooks"):
        kind = "config" if path.suffix.lower() in layout.config_hook_suffixes else "script"

        content = _read_text(path, warnings, "hook file")
        if content is None:
            continue
        if kind == "config":
            try:
                json.loads(content)
            except json.JSONDecodeError as err:
                warnings.append(f"Skipping hook {path.name}: invalid JSON: {err}")
                continue
        hooks.append(Hook(name=path.name, kind=kind, body=content, source=source))
    return hooks


def parse_bundle(
    bundle_path: Path,
    bundle_id: str,
    layout: BundleLayout = DEFAULT_LAYOUT,
) -> ParsedBundle:
    """Parse a bundle directory into a ParsedBundle.

    Args:
        bundle_path: Root directory of the bundle.
        bundle_id: Id recorded as the source of every parsed item.
        layout: File and directory names to look for.

    Returns:
        ParsedBundle with the root document, items, settings and warnings.

    Raises:
        ParseError: If the bundle root or its item directory exists but
            cannot be read, or the bundle root is missing.
    """
    logger = get_global_logger()
    warnings: list[str] = []

    if not bundle_path.exists():
        raise ParseError(f"Bundle directory not found: {bundle_path}")
    if not bundle_path.is_dir():
        raise ParseError(f"Bundle path is not a directory: {bundle_path}")
    try:
        next(bundle_path.iterdir(), None)
    except OSError as err:
        raise ParseError(f"Cannot read bundle directory {bundle_path}: {err}") from err

    logger.verbose("PARSE", f"Parsing bundle '{bundle_id}' at {bundle_path}")

    root_path = layout.root_document_path(bundle_path)
    root_document = _read_text(root_path, warnings, "root document")
    if root_document is None:
        logger.verbose("PARSE", f"  No {layout.root_document} in '{bundle_id}'")

    items_path = layout.items_path(bundle_path)
    if not items_path.exists():
        logger.verbose("PARSE", f"  No {layout.items_dir}/ directory in '{bundle_id}'")
        return ParsedBundle(
            bundle_id=bundle_id,
            root_document=root_document,
            warnings=tuple(warnings),
        )
    if not items_path.is_dir():
        raise ParseError(f"Cannot access {layout.items_dir} directory: {items_path}")
    try:
        next(items_path.iterdir(), None)
    except OSError as err:
        raise ParseError(
            f"Cannot access {layout.items_dir} directory {items_path}: {err}"
        ) from err

    settings = _parse_settings(layout.settings_path(bundle_path), warnings)

    suffix = layout.document_suffix
    agents: list[Agent] = []
    for path in _list_files(layout.agents_path(bundle_path), warnings, "agents"):
        if not path.name.endswith(suffix):
            continue
        content = _read_text(path, warnings, "agent file")
        if content is None:
            continue
        agent = parse_agent(content, path.name, bundle_id, warnings, suffix)
        if agent:
            agents.append(agent)

    commands: list[Command] = []
    for path in _list_files(layout.commands_path(bundle_path), warnings, "commands"):
        if not path.name.endswith(suffix):
            continue
        content = _read_text(path, warnings, "command file")
        if content is None:
            continue
        command = parse_command(content, path.name, bundle_id, warnings, suffix)
        if command:
            commands.append(command)

    hooks = _parse_hooks(layout.hooks_path(bundle_path), bundle_id, layout, warnings)

    logger.verbose(
        "PARSE",
        f"  '{bundle_id}': {len(agents)} agent(s), {len(commands)} command(s), "
        f"{len(hooks)} hook(s), settings={'yes' if settings else 'no'}",
    )
    for warning in warnings:
        logger.debug("PARSE", f"{bundle_id}: {warning}")

    return ParsedBundle(
        bundle_id=bundle_id,
        root_document=root_document,
        agents=tuple(agents),
        commands=tuple(commands),
        hooks=tuple(hooks),
        settings=settings,
        warnings=tuple(warnings),
    )
