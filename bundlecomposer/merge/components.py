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

"""Deduplication of named items (agents, commands, hooks).

Items are identified by their normalized name, so "Component Builder" and
"component-builder" are the same agent. When several bundles define the
same item, exactly one definition survives:

- The item from the bundle with the highest priority wins
- On equal priority, the first one encountered (bundle order) wins
- The losing definitions are dropped whole; nothing is combined

The output keeps the order in which each identity was first seen.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Callable, TypeVar

from bundlecomposer.logging import get_global_logger
from bundlecomposer.models import Agent, Command, Hook, normalize_name

__all__ = ["merge_named_items", "merge_agents", "merge_commands", "merge_hooks"]

T = TypeVar("T", Agent, Command, Hook)


def merge_named_items(
    groups: Sequence[Sequence[T]],
    priorities: Sequence[int],
    key: Callable[[T], str] | None = None,
) -> list[T]:
    """Deduplicate named items across bundles.

    Args:
        groups: One list of items per bundle, in bundle order.
        priorities: Priority of each bundle, aligned with ``groups``.
        key: Identity function. Defaults to the normalized item name.

    Returns:
        One item per identity, in first-seen order.

    Raises:
        ValueError: If ``groups`` and ``priorities`` differ in length.

    Example:
        ```python
        merged = merge_named_items([[a1], [a2]], [5, 10])
        # a2 wins if both normalize to the same name
        ```
    """
    if len(groups) != len(priorities):
        raise ValueError(
            f"Got {len(groups)} item groups but {len(priorities)} priorities"
        )
    identity = key or (lambda item: normalize_name(item.name))
    logger = get_global_logger()

    winners: dict[str, tuple[int, T]] = {}
    for items, priority in zip(groups, priorities):
        for item in items:
            item_key = identity(item)
            current = winners.get(item_key)
            if current is None:
                winners[item_key] = (priority, item)
            elif priority > current[0]:
                logger.debug(
                    "MERGE",
                    f"'{item.name}' from {item.source} overrides {current[1].source}",
                )
                # dict keeps the original insertion slot on reassignment
                winners[item_key] = (priority, item)
            else:
                logger.debug(
                    "MERGE",
                    f"'{item.name}' from {item.source} dropped, "
                    f"keeping {current[1].source}",
                )

    return [item for _, item in winners.values()]


def merge_agents(groups: Sequence[Sequence[Agent]], priorities: Sequence[int]) -> list[Agent]:
    return merge_named_items(groups, priorities)


def merge_commands(
    groups: Sequence[Sequence[Command]], priorities: Sequence[int]
) -> list[Command]:
    return merge_named_items(groups, priorities)


def merge_hooks(groups: Sequence[Sequence[Hook]], priorities: Sequence[int]) -> list[Hook]:
    """Deduplicate hook files. The filename (with extension) is the name."""
    return merge_named_items(groups, priorities)
