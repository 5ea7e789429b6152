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

"""Bundle validation module.

This module checks a single bundle directory without composing or writing
anything. This is useful for quick feedback while authoring a bundle and
in CI pipelines.

Validation Checks:

- The path exists and is a directory
- The bundle can be parsed (no structural errors)
- A root document and a README are present (warnings only)
- Every agent, command, hook and settings file is usable (parser warnings)

Example:
    Validate a bundle and handle results:
        ```python
        from pathlib import Path
        from bundlecomposer.validation import validate_bundle

        result = validate_bundle(Path("bundles/frameworks/nextjs-15"))
        if result.status == "valid":
            print(f"{result.agent_count} agent(s), {result.command_count} command(s)")
        else:
            for error in result.errors:
                print(f"Error: {error}")
        ```
"""

from __future__ import annotations

from pathlib import Path

from bundlecomposer.exceptions import ParseError
from bundlecomposer.layout import DEFAULT_LAYOUT, BundleLayout
from bundlecomposer.parser import parse_bundle
from bundlecomposer.results import ValidationResult

__all__ = ["validate_bundle"]

README_NAME = "README.md"


def validate_bundle(
    bundle_path: Path,
    layout: BundleLayout = DEFAULT_LAYOUT,
    verbose: bool = False,
) -> ValidationResult:
    """Validate a bundle directory.

    Does NOT:

    - Check the bundle against a registry
    - Merge or write anything

    Args:
        bundle_path: Root directory of the bundle.
        layout: File and directory names to look for.
        verbose: If True, print validation progress.

    Returns:
        ValidationResult with status "valid" or "invalid", errors, warnings
        and item counts.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if verbose:
        print(f"Validating bundle: {bundle_path}")

    if not bundle_path.exists():
        errors.append(f"Bundle directory not found: {bundle_path}")
        return ValidationResult("invalid", errors, warnings, str(bundle_path))
    if not bundle_path.is_dir():
        errors.append(f"Bundle path is not a directory: {bundle_path}")
        return ValidationResult("invalid", errors, warnings, str(bundle_path))

    try:
        parsed = parse_bundle(bundle_path, bundle_path.name, layout)
    except ParseError as err:
        errors.append(str(err))
        return ValidationResult("invalid", errors, warnings, str(bundle_path))

    if parsed.root_document is None:
        warnings.append(f"Missing {layout.root_document}")
    if not (bundle_path / README_NAME).is_file():
        warnings.append(f"Missing {README_NAME}")
    warnings.extend(parsed.warnings)

    if verbose:
        print(
            f"  {len(parsed.agents)} agent(s), {len(parsed.commands)} command(s), "
            f"{len(parsed.hooks)} hook(s)"
        )

    return ValidationResult(
        status="valid",
        errors=errors,
        warnings=warnings,
        bundle_path=str(bundle_path),
        has_root_document=parsed.root_document is not None,
        has_settings=parsed.settings is not None,
        agent_count=len(parsed.agents),
        command_count=len(parsed.commands),
        hook_count=len(parsed.hooks),
    )
