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
"""Logging interface for bundlecomposer.

Library modules report progress through a small logger protocol instead of
printing directly. The composition engine stays quiet when it is used as a
library and reports each step when it is driven from the CLI.

Output levels:
- Step: Always printed (one line per composition step)
- Verbose: Only printed when verbose mode is enabled
- Warning: Printed with verbose, for problems no result carries (registry
  apiVersion, cleanup failures). Result warnings are printed by the CLI.
- Debug: Only printed when debug mode is enabled (implies verbose)

Example:
    Configure global logger:
        ```python
        from bundlecomposer.logging import get_logger, set_global_logger

        set_global_logger(get_logger(verbose=True))
        ```

    Use in library code:
        ```python
        from bundlecomposer.logging import get_global_logger

        logger = get_global_logger()
        logger.step(2, 6, "Parsing bundles...")
        logger.verbose("PARSE", "Found 3 agents in nextjs-15")
        logger.debug("MERGE", "Group 'security' ranks 8")
        ```

Note:
    The default global logger is silent. The CLI installs a DefaultLogger
    when a command runs.
"""

from __future__ import annotations

from typing import Protocol


class Logger(Protocol):
    """What the engine needs from a logger.

    Every method takes a short upper-case ``prefix`` naming the subsystem
    ("REGISTRY", "PARSE", "MERGE", "WRITE", "VERIFY") except ``step``, which
    takes a 1-based position out of ``total``.
    """

    def step(self, step: int, total: int, message: str) -> None: ...

    def verbose(self, prefix: str, message: str) -> None: ...

    def debug(self, prefix: str, message: str) -> None: ...

    def warning(self, prefix: str, message: str) -> None: ...


class DefaultLogger:
    """Stdout logger gated by verbose and debug flags.

    Args:
        verbose: Show verbose messages and warnings.
        debug: Also show debug messages. Turns on verbose.
    """

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        self._verbose = verbose or debug
        self._debug = debug

    def step(self, step: int, total: int, message: str) -> None:
        print(f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            print(f"[{prefix}] [DEBUG] {message}")

    def warning(self, prefix: str, message: str) -> None:
        if self._verbose:
            print(f"[{prefix}] [WARNING] {message}")


class SilentLogger:
    """Drops everything. Used for library calls and in tests."""

    def step(self, step: int, total: int, message: str) -> None:
        return None

    def verbose(self, prefix: str, message: str) -> None:
        return None

    def debug(self, prefix: str, message: str) -> None:
        return None

    def warning(self, prefix: str, message: str) -> None:
        return None


_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Build the stdout logger the CLI commands install."""
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Return the logger library functions use when none is passed."""
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Replace the process-wide logger.

    Every library function that calls get_global_logger() picks this up,
    including parser worker threads. Tests that install a logger should
    restore SilentLogger afterwards.
    """
    global _global_logger
    _global_logger = logger
