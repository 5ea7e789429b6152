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

"""Exception hierarchy for bundlecomposer.

This module defines a custom exception hierarchy that allows library users
to distinguish between the ways a composition run can fail:

- ConfigError: Registry and descriptor problems (YAML parse, unknown ids,
  invalid fields)
- ParseError: Structural bundle read errors (missing or unreadable directories)
- OutputError: Filesystem errors while writing the composed output
- CompositionError: Raised by the orchestrator, carries the step that failed

Content problems inside a bundle (bad frontmatter, bad settings JSON) are not
exceptions. They are collected as warnings and returned with the result.

All exceptions inherit from BundleComposerError, allowing users to catch all
bundlecomposer errors with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from bundlecomposer.core import compose
        from bundlecomposer.exceptions import CompositionError

        try:
            result = compose(bundles, Path("./out"))
        except CompositionError as e:
            print(f"Failed during {e.step}: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "BundleComposerError",
    "ConfigError",
    "ParseError",
    "OutputError",
    "CompositionError",
]


class BundleComposerError(Exception):
    """Base exception for all bundlecomposer errors."""

    pass


class ConfigError(BundleComposerError):
    """Raised for registry and descriptor errors.

    This exception is raised when there are problems with:

    - Registry YAML parsing (syntax errors, invalid structure)
    - Missing or invalid descriptor fields (id, name, category)
    - Duplicate or unknown bundle ids
    - Unsafe or unresolvable bundle paths
    """

    pass


class ParseError(BundleComposerError):
    """Raised when a bundle directory cannot be read at all.

    A bundle whose root is missing, is not a directory, or whose item
    directory cannot be listed is structurally broken. Broken individual
    files only produce warnings.
    """

    pass


class OutputError(BundleComposerError):
    """Raised when the composed output cannot be written.

    Example:
        Permission denied on the output directory, or a full disk.
    """

    pass


class CompositionError(BundleComposerError):
    """Raised by the orchestrator when a composition step fails.

    The original error is always chained (``raise ... from err``), so the
    underlying ConfigError, ParseError or OutputError stays reachable through
    ``__cause__``.

    Attributes:
        step: Name of the step that failed (e.g., "validating", "parsing",
            "writing").
    """

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"[{step}] {message}")
        self.step = step
        self.message = message
