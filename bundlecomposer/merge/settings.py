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

"""Settings object merging.

Settings from all bundles are folded left to right (bundle order). Each
known field has its own rule:

- permissions.allow / permissions.deny: ordered union, no duplicates
  (legacy top-level allow/deny were already folded in by the parser)
- other permissions keys: last bundle wins per key
- hooks: per event, entries concatenated in bundle order; entries are
  normalized and invalid ones skipped
- env: last bundle wins per variable
- anything else: last bundle wins, whole value

A key is only present in the result if at least one input had it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from bundlecomposer.logging import get_global_logger
from bundlecomposer.models import Settings

__all__ = ["merge_settings", "normalize_hook_entry"]


def _union(current: list[str] | None, values: tuple[str, ...] | None) -> list[str] | None:
    if values is None:
        return current
    merged = current if current is not None else []
    for value in values:
        if value not in merged:
            merged.append(value)
    return merged


def normalize_hook_entry(entry: Any) -> dict[str, Any] | None:
    """Normalize one hook entry from a settings ``hooks`` event list.

    An entry must be a mapping with a ``hooks`` list. ``matcher`` is kept
    only when non-empty. Each handler must be a mapping with a ``command``;
    ``type`` defaults to "command" and ``timeout`` is kept when set.

    Returns:
        The normalized entry, or None when the entry is invalid.

    Example:
        >>> normalize_hook_entry({"matcher": "", "hooks": [{"command": "lint"}]})
        {'hooks': [{'type': 'command', 'command': 'lint'}]}
    """
    if not isinstance(entry, dict) or not isinstance(entry.get("hooks"), list):
        return None

    normalized: dict[str, Any] = {}
    if entry.get("matcher"):
        normalized["matcher"] = entry["matcher"]

    handlers = []
    for handler in entry["hooks"]:
        if not isinstance(handler, dict) or "command" not in handler:
            continue
        item: dict[str, Any] = {
            "type": handler.get("type") or "command",
            "command": handler["command"],
        }
        if handler.get("timeout") is not None:
            item["timeout"] = handler["timeout"]
        handlers.append(item)
    normalized["hooks"] = handlers
    return normalized


def merge_settings(settings_list: Sequence[Settings | None]) -> Settings | None:
    """Merge settings objects in bundle order.

    Args:
        settings_list: One entry per bundle; None where a bundle has no
            settings.

    Returns:
        The merged Settings, or None when no bundle has settings.
    """
    present = [s for s in settings_list if s is not None]
    if not present:
        return None
    logger = get_global_logger()

    allow: list[str] | None = None
    deny: list[str] | None = None
    permissions_extra: dict[str, Any] | None = None
    env: dict[str, Any] | None = None
    hooks: dict[str, list[Any]] | None = None
    extensions: dict[str, Any] = {}

    for settings in present:
        allow = _union(allow, settings.allow)
        deny = _union(deny, settings.deny)

        if settings.permissions_extra is not None:
            permissions_extra = {**(permissions_extra or {}), **settings.permissions_extra}

        if settings.env is not None:
            env = {**(env or {}), **settings.env}

        if settings.hooks is not None:
            hooks = hooks if hooks is not None else {}
            for event, entries in settings.hooks.items():
                valid = []
                for entry in entries:
                    normalized = normalize_hook_entry(entry)
                    if normalized is None:
                        logger.verbose("MERGE", f"Skipping invalid '{event}' hook entry")
                        continue
                    valid.append(normalized)
                if valid:
                    hooks.setdefault(event, []).extend(valid)

        for key, value in settings.extensions.items():
            if key in extensions:
                logger.debug("MERGE", f"Settings key '{key}' overridden by later bundle")
            extensions[key] = value

    return Settings(
        allow=tuple(allow) if allow is not None else None,
        deny=tuple(deny) if deny is not None else None,
        permissions_extra=permissions_extra,
        env=env,
        hooks=hooks,
        extensions=extensions,
    )
