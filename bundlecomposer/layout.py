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

"""On-disk layout shared by input bundles and the composed output.

The output mirrors the input layout exactly, so the parser and the writer
read their file and directory names from the same BundleLayout.

Default layout:

    <root>/CLAUDE.md
    <root>/.claude/settings.json
    <root>/.claude/agents/*.md
    <root>/.claude/commands/*.md
    <root>/.claude/hooks/*.json|*.sh|*.js
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class BundleLayout:
    """File and directory names of a bundle.

    Attributes:
        root_document: Root markdown filename, relative to the bundle root.
        items_dir: Directory holding items and settings.
        agents_dir: Agents subdirectory of items_dir.
        commands_dir: Commands subdirectory of items_dir.
        hooks_dir: Hooks subdirectory of items_dir.
        settings_file: Settings filename inside items_dir.
        document_suffix: Extension of agent and command files.
        config_hook_suffixes: Hook extensions parsed as structured JSON.
            Every other hook file is copied as an opaque script.
    """

    root_document: str = "CLAUDE.md"
    items_dir: str = ".claude"
    agents_dir: str = "agents"
    commands_dir: str = "commands"
    hooks_dir: str = "hooks"
    settings_file: str = "settings.json"
    document_suffix: str = ".md"
    config_hook_suffixes: tuple[str, ...] = (".json",)

    def root_document_path(self, root: Path) -> Path:
        return root / self.root_document

    def items_path(self, root: Path) -> Path:
        return root / self.items_dir

    def agents_path(self, root: Path) -> Path:
        return root / self.items_dir / self.agents_dir

    def commands_path(self, root: Path) -> Path:
        return root / self.items_dir / self.commands_dir

    def hooks_path(self, root: Path) -> Path:
        return root / self.items_dir / self.hooks_dir

    def settings_path(self, root: Path) -> Path:
        return root / self.items_dir / self.settings_file


DEFAULT_LAYOUT = BundleLayout()
