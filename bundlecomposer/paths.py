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

"""Path and filename safety checks.

Bundle paths come from the registry and item names come from bundle
content, so both are checked before they touch the filesystem:

- validate_bundle_path: reject null bytes, ``..`` segments and overlong
  paths, then require an existing directory
- safe_filename: strip characters that are invalid in filenames
- item_filename: derive ``<normalized-name>.md`` for agents and commands
"""

from __future__ import annotations

from pathlib import Path
import re

from bundlecomposer.exceptions import ConfigError

__all__ = ["MAX_PATH_LENGTH", "validate_bundle_path", "safe_filename", "item_filename"]

MAX_PATH_LENGTH = 260
MAX_FILENAME_LENGTH = 255

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_INVALID_FILENAME_CHARS = re.compile(r'[<>"|?*/\\]')
_NON_SLUG = re.compile(r"[^a-z0-9-]")


def validate_bundle_path(path: Path) -> Path:
    """Check that a bundle path is safe and points at a directory.

    Args:
        path: Bundle directory as given by the registry.

    Returns:
        The resolved absolute path.

    Raises:
        ConfigError: If the path contains null bytes or ``..`` segments, is
            longer than MAX_PATH_LENGTH, does not exist, or is not a
            directory.
    """
    raw = str(path)
    if not raw:
        raise ConfigError("Bundle path must be a non-empty string")
    if "\x00" in raw:
        raise ConfigError(f"Bundle path contains a null byte: {raw!r}")
    if len(raw) > MAX_PATH_LENGTH:
        raise ConfigError(
            f"Bundle path exceeds maximum length of {MAX_PATH_LENGTH} characters: {raw}"
        )
    if ".." in Path(raw).parts:
        raise ConfigError(f"Bundle path contains parent directory traversal: {raw}")

    resolved = Path(raw).resolve()
    if not resolved.exists():
        raise ConfigError(f"Bundle directory not found: {resolved}")
    if not resolved.is_dir():
        raise ConfigError(f"Bundle path is not a directory: {resolved}")
    return resolved


def safe_filename(name: str) -> str:
    """Strip control and invalid characters from a filename.

    Raises:
        ValueError: If nothing usable remains.
    """
    cleaned = _CONTROL_CHARS.sub("", name)
    cleaned = _INVALID_FILENAME_CHARS.sub("", cleaned).strip()
    cleaned = cleaned[:MAX_FILENAME_LENGTH]
    if not cleaned or cleaned in (".", ".."):
        raise ValueError(f"Cannot derive a safe filename from {name!r}")
    return cleaned


def item_filename(name: str, suffix: str = ".md") -> str:
    """Derive the output filename for an agent or command.

    Example:
        >>> item_filename("Component Builder")
        'component-builder.md'
    """
    slug = _NON_SLUG.sub("-", name.lower())
    return safe_filename(slug[: MAX_FILENAME_LENGTH - len(suffix)] + suffix)
