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

"""Structural check of a composed output tree."""

from __future__ import annotations

import json
from pathlib import Path

from bundlecomposer.layout import DEFAULT_LAYOUT, BundleLayout
from bundlecomposer.logging import get_global_logger
from bundlecomposer.results import VerifyResult

__all__ = ["verify_output"]


def verify_output(output_root: Path, layout: BundleLayout = DEFAULT_LAYOUT) -> VerifyResult:
    """Check that an output tree has every expected piece.

    Checks the root document, the item directory, the agents, commands and
    hooks directories, and that the settings file exists and holds valid
    JSON. Missing pieces are reported, never raised.

    Args:
        output_root: Root of the composed output.
        layout: File and directory names to expect.

    Returns:
        VerifyResult listing every problem found.
    """
    logger = get_global_logger()
    problems: list[str] = []

    if not layout.root_document_path(output_root).is_file():
        problems.append(f"Missing {layout.root_document}")

    items_path = layout.items_path(output_root)
    if not items_path.is_dir():
        problems.append(f"Missing {layout.items_dir} directory")
    else:
        for label, path in (
            (layout.agents_dir, layout.agents_path(output_root)),
            (layout.commands_dir, layout.commands_path(output_root)),
            (layout.hooks_dir, layout.hooks_path(output_root)),
        ):
            if not path.is_dir():
                problems.append(f"Missing {layout.items_dir}/{label} directory")

        settings_path = layout.settings_path(output_root)
        if not settings_path.is_file():
            problems.append(f"Missing {layout.items_dir}/{layout.settings_file}")
        else:
            try:
                json.loads(settings_path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as err:
                problems.append(f"Invalid {layout.settings_file}: {err}")

    for problem in problems:
        logger.verbose("VERIFY", problem)

    return VerifyResult(output_root=output_root, valid=not problems, problems=problems)
