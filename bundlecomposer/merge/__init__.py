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

"""Merging of parsed bundles.

Public API:

- merge_root_documents: Section-level merge of root documents
- merge_agents / merge_commands / merge_hooks: Named-item deduplication
- merge_settings: Settings object merge
"""

from .components import merge_agents, merge_commands, merge_hooks, merge_named_items
from .document import (
    MERGEABLE_KEYWORDS,
    SECTION_ORDER,
    list_headings,
    merge_root_documents,
    normalize_title,
    split_sections,
)
from .settings import merge_settings, normalize_hook_entry

__all__ = [
    "merge_root_documents",
    "split_sections",
    "list_headings",
    "normalize_title",
    "SECTION_ORDER",
    "MERGEABLE_KEYWORDS",
    "merge_named_items",
    "merge_agents",
    "merge_commands",
    "merge_hooks",
    "merge_settings",
    "normalize_hook_entry",
]
