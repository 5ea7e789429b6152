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

"""Section-level merging of root documents.

Each bundle's root document is split into sections at markdown headings.
Sections from all bundles are grouped by normalized title, the groups are
ordered, and each group is emitted once: either the single best section
(override) or, for a few well-known topics, the concatenation of every
source (merge).

Merge Process:

1. Split each document at ``#`` to ``######`` headings. Headings inside
   fenced code blocks do not count. Text before the first heading and
   sections with no content are dropped.
2. Give each section its bundle's override priority for that title (0
   when the bundle declares none).
3. Group sections by normalized title in first-seen order.
4. Order groups by top priority, then SECTION_ORDER, then first-seen.
5. Pick the best section per group, or concatenate when the topic is
   mergeable and several bundles share the top priority.
6. Emit each group at heading level 1 or 2.
7. Append the metadata trailer.

Example:
    Merge two documents:
        ```python
        from bundlecomposer.merge import merge_root_documents

        text = merge_root_documents(
            [(nextjs_doc, nextjs_descriptor), (shadcn_doc, shadcn_descriptor)],
            generated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        ```

Note:
    merge_root_documents is pure: all grouping state lives inside the call,
    and with a fixed ``generated_at`` the output depends only on its input.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
import re

from bundlecomposer import __version__
from bundlecomposer.logging import get_global_logger
from bundlecomposer.models import BundleDescriptor

__all__ = [
    "SECTION_ORDER",
    "MERGEABLE_KEYWORDS",
    "DEFAULT_TITLE",
    "METADATA_HEADING",
    "Section",
    "normalize_title",
    "split_sections",
    "list_headings",
    "merge_root_documents",
]

# Ordering for groups of equal priority; the first keyword found as a
# substring of the normalized title decides the rank.
SECTION_ORDER: tuple[str, ...] = (
    "project context",
    "critical",
    "core principles",
    "technology stack",
    "breaking changes",
    "file conventions",
    "patterns",
    "common commands",
    "security",
    "performance",
    "testing",
    "deployment",
    "debugging",
    "resources",
)

MERGEABLE_KEYWORDS: tuple[str, ...] = (
    "commands",
    "common commands",
    "development",
    "testing",
    "security",
    "performance",
    "project context",
    "technology stack",
    "dependencies",
    "scripts",
)

DEFAULT_TITLE = "# Composed Configuration"
METADATA_HEADING = "Configuration Metadata"
GENERATOR_NAME = "bundlecomposer"
COMPATIBILITY_NOTES = (
    "This is a composed configuration. Some features may require additional "
    "setup or conflict resolution.",
    "Review the combined configuration carefully and adjust as needed for your "
    "specific project.",
)

_HEADING = re.compile(r"^(#{1,6})\s+(.+)$")
_FENCE = re.compile(r"^\s{0,3}(`{3,}|~{3,})")
_NON_TITLE_CHARS = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_COMBINED_PREFIX = "*Combined from:"


@dataclass(frozen=True)
class Section:
    """A heading and its content, taken from one bundle's root document.

    Attributes:
        title: Heading text, trimmed.
        content: Lines up to the next heading, trimmed.
        level: Heading level (1-6).
        source: Id of the bundle the section came from.
        priority: Override priority declared for this title, else 0.
        bundle_priority: Priority of the source bundle.
        mergeable: False when an override forbids concatenation.
    """

    title: str
    content: str
    level: int
    source: str
    priority: int = 0
    bundle_priority: int = 0
    mergeable: bool = True


def normalize_title(title: str) -> str:
    """Return the grouping key for a section title.

    Example:
        >>> normalize_title("  Security & Auth!! ")
        'security auth'
    """
    cleaned = _NON_TITLE_CHARS.sub("", title.lower())
    return _WHITESPACE.sub(" ", cleaned).strip()


def _track_fence(line: str, fence: str | None) -> tuple[bool, str | None]:
    """Return whether ``line`` is a fence marker and the fence open after it.

    A fence closes on the same character with at least the opening length.
    """
    fence_match = _FENCE.match(line)
    if not fence_match:
        return False, fence
    marker = fence_match.group(1)
    if fence is None:
        return True, marker
    if marker[0] == fence[0] and len(marker) >= len(fence):
        return True, None
    return True, fence


def _scan(content: str) -> Iterator[tuple[str, tuple[int, str] | None]]:
    """Yield each line with its ``(level, title)`` if it is a heading."""
    fence: str | None = None
    for line in content.splitlines():
        is_marker, fence = _track_fence(line, fence)
        if is_marker:
            yield line, None
            continue

        heading = None if fence else _HEADING.match(line)
        if heading:
            yield line, (len(heading.group(1)), heading.group(2).strip())
        else:
            yield line, None


def split_sections(content: str, descriptor: BundleDescriptor) -> list[Section]:
    """Split a markdown document into sections at its headings.

    Args:
        content: Root document text.
        descriptor: Descriptor of the owning bundle; supplies the source id,
            the bundle priority and the per-section overrides.

    Returns:
        Sections in document order. Empty sections are not included.
    """
    overrides = {normalize_title(o.title): o for o in descriptor.sections}
    sections: list[Section] = []

    current: tuple[int, str] | None = None
    buffer: list[str] = []

    def _flush() -> None:
        if current is None:
            return
        body = "\n".join(buffer).strip()
        if not body:
            return
        level, title = current
        override = overrides.get(normalize_title(title))
        sections.append(
            Section(
                title=title,
                content=body,
                level=level,
                source=descriptor.id,
                priority=override.priority if override else 0,
                bundle_priority=descriptor.priority,
                mergeable=override.mergeable if override else True,
            )
        )

    for line, heading in _scan(content):
        if heading:
            _flush()
            current = heading
            buffer = []
        else:
            buffer.append(line)

    _flush()
    return sections


def list_headings(content: str) -> list[tuple[int, str]]:
    """Return ``(level, title)`` for every heading outside code fences."""
    return [heading for _, heading in _scan(content) if heading]


def _order_rank(normalized: str) -> int:
    for idx, keyword in enumerate(SECTION_ORDER):
        if keyword in normalized:
            return idx
    return len(SECTION_ORDER)


def _is_mergeable_topic(normalized: str) -> bool:
    return any(keyword in normalized for keyword in MERGEABLE_KEYWORDS)


def _best_section(sections: list[Section]) -> Section:
    # max() keeps the first of equal elements, so first-seen wins a full tie.
    return max(
        sections,
        key=lambda s: (s.priority, s.bundle_priority, len(s.content)),
    )


def _chunks(content: str) -> Iterator[tuple[str, bool]]:
    """Yield plain lines, and each fenced code block joined into one chunk.

    The flag is True for fenced blocks. An unclosed fence runs to the end.
    """
    fence: str | None = None
    block: list[str] = []
    for line in content.splitlines():
        _, fence_after = _track_fence(line, fence)
        if fence is None and fence_after is None:
            yield line, False
        else:
            block.append(line)
            if fence_after is None:
                yield "\n".join(block), True
                block = []
        fence = fence_after
    if block:
        yield "\n".join(block), True


def _concatenate(sections: list[Section]) -> str:
    """Combine sections line by line, grouped by ``###`` subsection.

    Fenced code blocks are kept whole and only collapse when an identical
    block was already emitted.
    """
    sources = list(dict.fromkeys(s.source for s in sections))
    subsections: dict[str, dict[str, None]] = {}

    for section in sections:
        current = "main"
        for chunk, fenced in _chunks(section.content):
            if not fenced and chunk.startswith("###"):
                current = chunk
                subsections.setdefault(current, {})
                continue
            stripped = chunk.strip()
            if not stripped or (not fenced and stripped.startswith(_COMBINED_PREFIX)):
                continue
            subsections.setdefault(current, {})[chunk] = None

    merged = [f"{_COMBINED_PREFIX} {', '.join(sources)}*", ""]
    for subsection, lines in subsections.items():
        if subsection != "main":
            merged.append(subsection)
        merged.extend(lines)
    return "\n".join(merged)


def _render_group(sections: list[Section]) -> tuple[str, str, bool]:
    best = _best_section(sections)
    top = [s for s in sections if s.priority == best.priority]
    normalized = normalize_title(best.title)

    concatenate = (
        len(top) > 1
        and _is_mergeable_topic(normalized)
        and all(s.mergeable for s in sections)
    )
    heading = f"{'#' * min(best.level, 2)} {best.title}"
    body = _concatenate(top) if concatenate else best.content
    return heading, body, concatenate


def _format_timestamp(generated_at: datetime | None) -> str:
    moment = generated_at or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _trailer(
    descriptors: Sequence[BundleDescriptor], generated_at: datetime | None
) -> list[str]:
    lines = ["", "---", "", f"## {METADATA_HEADING}", "", "### Included Configurations", ""]
    for descriptor in descriptors:
        lines.append(
            f"- **{descriptor.name}** v{descriptor.version}: {descriptor.description}"
        )
    lines.extend(
        [
            "",
            "### Generation Details",
            "",
            f"- Generated: {_format_timestamp(generated_at)}",
            f"- Generator: {GENERATOR_NAME} v{__version__}",
            "",
            "### Compatibility Notes",
            "",
            *COMPATIBILITY_NOTES,
        ]
    )
    return lines


def merge_root_documents(
    documents: Sequence[tuple[str | None, BundleDescriptor]],
    *,
    generated_at: datetime | None = None,
    title: str = DEFAULT_TITLE,
) -> str:
    """Merge root documents into one section-deduplicated document.

    Args:
        documents: ``(root document or None, descriptor)`` pairs in bundle
            order. A None document contributes no sections, but its bundle
            still appears in the trailer.
        generated_at: Timestamp written to the trailer. Defaults to now (UTC).
        title: First line of the output.

    Returns:
        The merged markdown document, ending with a newline.

    Example:
        Two bundles override "Core Principles"; the higher priority wins:
            ```python
            text = merge_root_documents([(doc_a, desc_a), (doc_b, desc_b)])
            ```
    """
    logger = get_global_logger()

    groups: dict[str, list[Section]] = {}
    for content, descriptor in documents:
        if content is None:
            continue
        for section in split_sections(content, descriptor):
            groups.setdefault(normalize_title(section.title), []).append(section)

    # sorted() is stable, so first-seen order breaks the remaining ties.
    ordered = sorted(
        groups.items(),
        key=lambda item: (
            -max(s.priority for s in item[1]),
            _order_rank(item[0]),
        ),
    )

    names = ", ".join(descriptor.name for _, descriptor in documents)
    output = [title, "", f"This configuration combines: {names}", "", "---", ""]

    for key, sections in ordered:
        heading, body, concatenated = _render_group(sections)
        if concatenated:
            logger.debug("MERGE", f"Section '{key}': combined {len(sections)} sources")
        elif len(sections) > 1:
            logger.debug(
                "MERGE",
                f"Section '{key}': kept {_best_section(sections).source}, "
                f"dropped {len(sections) - 1}",
            )
        output.extend([heading, "", body, ""])

    logger.verbose("MERGE", f"Merged root documents into {len(ordered)} section(s)")
    output.extend(_trailer([d for _, d in documents], generated_at))
    return "\n".join(output) + "\n"
