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

"""Writing a composition plan to disk.

Writes are sequential and happen in a fixed order:

1. Output root and the item directories (agents, commands, hooks)
2. Root document
3. Agent files, then command files, then hook files
4. Settings file

Output filenames are worked out before anything is written. Two items of
the same kind that map to one filename fail the write up front. Existing
files at the same paths are overwritten. Nothing else in the output
directory is touched.

Write Failures:

What happens to files already written when a later write fails is chosen
with WritePolicy:

- KEEP_PARTIAL (default): leave everything as it is
- REMOVE_CREATED: delete the files and directories this run created.
  Files that existed before the run and were overwritten stay in place.

Either way the failure is raised as OutputError.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from pathlib import Path

from bundlecomposer.exceptions import OutputError
from bundlecomposer.layout import DEFAULT_LAYOUT, BundleLayout
from bundlecomposer.logging import get_global_logger
from bundlecomposer.output.render import render_agent, render_command, render_settings
from bundlecomposer.paths import item_filename, safe_filename
from bundlecomposer.results import CompositionPlan

__all__ = ["WritePolicy", "OutputWriter", "write_plan"]


class WritePolicy(str, Enum):
    """What to do with already-written output when a write fails."""

    KEEP_PARTIAL = "keep-partial"
    REMOVE_CREATED = "remove-created"


class OutputWriter:
    """Write files under an output root and remember what was created.

    Attributes:
        root: Output root directory.
        written: Every file written, in order.
        created_files: Files that did not exist before this writer wrote them.
        created_dirs: Directories this writer created, parents first.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.written: list[Path] = []
        self.created_files: list[Path] = []
        self.created_dirs: list[Path] = []

    def ensure_dir(self, path: Path) -> None:
        """Create a directory and any missing parents.

        Raises:
            OutputError: If the directory cannot be created.
        """
        missing: list[Path] = []
        current = path
        while not current.exists():
            missing.append(current)
            if current.parent == current:
                break
            current = current.parent

        for directory in reversed(missing):
            try:
                directory.mkdir()
            except FileExistsError:
                continue
            except OSError as err:
                raise OutputError(f"Failed to create directory {directory}: {err}") from err
            self.created_dirs.append(directory)

        if not path.is_dir():
            raise OutputError(f"Output path exists and is not a directory: {path}")

    def write_file(self, path: Path, content: str) -> None:
        """Write a UTF-8 text file, overwriting any existing file.

        Raises:
            OutputError: If the file cannot be written.
        """
        existed = path.exists()
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as err:
            raise OutputError(f"Failed to write {path}: {err}") from err
        if not existed:
            self.created_files.append(path)
        self.written.append(path)
        get_global_logger().debug("WRITE", f"Wrote {path}")

    def remove_created(self) -> None:
        """Delete every file and directory this writer created.

        Directories that are no longer empty (something else wrote into
        them) are left alone.
        """
        logger = get_global_logger()
        for path in reversed(self.created_files):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as err:
                logger.warning("WRITE", f"Could not remove {path}: {err}")
        for directory in reversed(self.created_dirs):
            try:
                directory.rmdir()
            except FileNotFoundError:
                continue
            except OSError as err:
                logger.warning("WRITE", f"Could not remove {directory}: {err}")
        logger.verbose(
            "WRITE",
            f"Removed {len(self.created_files)} file(s) and "
            f"{len(self.created_dirs)} directory(ies) created by this run",
        )
        self.created_files = []
        self.created_dirs = []


def _target_names(
    names: list[str], to_filename: Callable[[str], str], label: str
) -> list[str]:
    """Map item names to output filenames, one per name, in order.

    Raises:
        OutputError: If a name yields no usable filename, or two names in
            the same collection yield the same one.
    """
    targets: dict[str, str] = {}
    for name in names:
        try:
            filename = to_filename(name)
        except ValueError as err:
            raise OutputError(str(err)) from err
        if filename in targets:
            raise OutputError(
                f"{label} '{name}' and '{targets[filename]}' would both be written "
                f"as {filename}"
            )
        targets[filename] = name
    return list(targets)


def _write_all(
    writer: OutputWriter, plan: CompositionPlan, layout: BundleLayout
) -> None:
    root = writer.root
    agents_dir = layout.agents_path(root)
    commands_dir = layout.commands_path(root)
    hooks_dir = layout.hooks_path(root)

    def _item_name(name: str) -> str:
        return item_filename(name, layout.document_suffix)

    agent_files = _target_names([a.name for a in plan.agents], _item_name, "Agent")
    command_files = _target_names([c.name for c in plan.commands], _item_name, "Command")
    hook_files = _target_names([h.name for h in plan.hooks], safe_filename, "Hook")

    writer.ensure_dir(root)
    writer.ensure_dir(layout.items_path(root))
    for directory in (agents_dir, commands_dir, hooks_dir):
        writer.ensure_dir(directory)

    writer.write_file(layout.root_document_path(root), plan.root_document)

    for agent, filename in zip(plan.agents, agent_files):
        writer.write_file(agents_dir / filename, render_agent(agent))
    for command, filename in zip(plan.commands, command_files):
        writer.write_file(commands_dir / filename, render_command(command))
    for hook, filename in zip(plan.hooks, hook_files):
        writer.write_file(hooks_dir / filename, hook.body)

    writer.write_file(layout.settings_path(root), render_settings(plan.settings))


def write_plan(
    plan: CompositionPlan,
    output_root: Path,
    *,
    layout: BundleLayout = DEFAULT_LAYOUT,
    write_policy: WritePolicy = WritePolicy.KEEP_PARTIAL,
) -> list[Path]:
    """Write a composition plan to an output directory.

    Args:
        plan: Merged content to write.
        output_root: Directory to write to; created if missing.
        layout: File and directory names of the output.
        write_policy: What to do with already-written files on failure.

    Returns:
        Every file written, in write order.

    Raises:
        OutputError: If a directory or file cannot be written.
    """
    logger = get_global_logger()
    writer = OutputWriter(output_root)
    try:
        _write_all(writer, plan, layout)
    except OutputError:
        if write_policy is WritePolicy.REMOVE_CREATED:
            writer.remove_created()
        raise

    logger.verbose("WRITE", f"Wrote {len(writer.written)} file(s) to {output_root}")
    return list(writer.written)
