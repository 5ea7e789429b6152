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

"""YAML frontmatter parsing and rendering for item files.

Agent and command files may start with a YAML block delimited by ``---``
lines:

    ---
    name: Component Builder
    tools: Read, Write, Edit
    ---

    You build components...

The opening delimiter must be the very first line. A file whose first line
is ``---`` but which never closes the block has no frontmatter; the whole
file is the body.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import yaml

__all__ = [
    "FrontmatterError",
    "FrontmatterDocument",
    "parse_frontmatter",
    "render_frontmatter",
    "normalize_tool_list",
]

DELIMITER = "---"


class FrontmatterError(ValueError):
    """Raised when a frontmatter block is not valid YAML."""


@dataclass(frozen=True)
class FrontmatterDocument:
    """A document split into frontmatter metadata and body.

    Attributes:
        metadata: Parsed frontmatter mapping (empty when there is none).
        body: Text after the closing delimiter, unchanged.
        has_frontmatter: True when a delimited block was found.
    """

    metadata: dict[str, Any]
    body: str
    has_frontmatter: bool


def parse_frontmatter(content: str) -> FrontmatterDocument:
    """Split a document into frontmatter metadata and body.

    A block that parses to something other than a mapping (a bare string,
    a list, nothing at all) is treated as empty metadata.

    Args:
        content: Full file content.

    Returns:
        FrontmatterDocument with metadata and body.

    Raises:
        FrontmatterError: If the delimited block is not valid YAML.

    Example:
        >>> doc = parse_frontmatter("---\\nname: Builder\\n---\\nBody")
        >>> doc.metadata["name"], doc.body
        ('Builder', 'Body')
    """
    lines = content.splitlines()
    if not lines or lines[0].rstrip() != DELIMITER:
        return FrontmatterDocument(metadata={}, body=content, has_frontmatter=False)

    end = None
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == DELIMITER:
            end = idx
            break
    if end is None:
        return FrontmatterDocument(metadata={}, body=content, has_frontmatter=False)

    raw_yaml = "\n".join(lines[1:end])
    try:
        parsed = yaml.safe_load(raw_yaml)
    except yaml.YAMLError as err:
        raise FrontmatterError(f"Invalid YAML frontmatter: {err}") from err

    metadata = parsed if isinstance(parsed, dict) else {}
    return FrontmatterDocument(
        metadata={str(k): v for k, v in metadata.items()},
        body="\n".join(lines[end + 1 :]),
        has_frontmatter=True,
    )


def render_frontmatter(metadata: dict[str, Any], body: str) -> str:
    """Render metadata and body back into a frontmatter document.

    Key order is preserved, and unicode is written as-is.
    """
    yaml_content = yaml.safe_dump(
        metadata,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    ).strip()
    return "\n".join([DELIMITER, yaml_content, DELIMITER, "", body])


def normalize_tool_list(value: Any) -> list[str] | None:
    """Normalize a comma-separated string or a list into tool names.

    Returns:
        List of trimmed, non-empty names. An empty list when value is
        empty or None. None when value has an unsupported type, so the
        caller can warn about it.

    Example:
        >>> normalize_tool_list("Read, Write,, Bash")
        ['Read', 'Write', 'Bash']
    """
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return None
