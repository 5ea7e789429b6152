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

"""Environment configuration for bundlecomposer.

Reads BUNDLECOMPOSER_* variables, optionally from a ``.env`` file in the
working directory. Variables already set in the process environment take
precedence over the file, and CLI flags take precedence over both.

Variables:

- BUNDLECOMPOSER_REGISTRY: registry file (default ``bundles/registry.yaml``)
- BUNDLECOMPOSER_OUTPUT: output directory (default ``.``)
- BUNDLECOMPOSER_WORKERS: parser thread pool size (default: executor default)
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from bundlecomposer.exceptions import ConfigError

__all__ = ["EnvironmentConfig", "load_environment"]

ENV_PREFIX = "BUNDLECOMPOSER_"
DEFAULT_REGISTRY = Path("bundles/registry.yaml")
DEFAULT_OUTPUT = Path(".")


@dataclass(frozen=True)
class EnvironmentConfig:
    """Settings resolved from the environment.

    Attributes:
        registry_path: Registry file to load.
        output_dir: Default output directory for compose.
        max_workers: Parser thread pool size, or None for the default.
    """

    registry_path: Path = DEFAULT_REGISTRY
    output_dir: Path = DEFAULT_OUTPUT
    max_workers: int | None = None


def _env(key: str) -> str | None:
    value = os.getenv(f"{ENV_PREFIX}{key}")
    return value.strip() if value and value.strip() else None


def load_environment(dotenv_path: Path | None = None) -> EnvironmentConfig:
    """Load BUNDLECOMPOSER_* settings from ``.env`` and the environment.

    Args:
        dotenv_path: Explicit ``.env`` file. Defaults to python-dotenv's
            search from the working directory.

    Returns:
        EnvironmentConfig with defaults filled in.

    Raises:
        ConfigError: If BUNDLECOMPOSER_WORKERS is not a positive integer.
    """
    load_dotenv(dotenv_path=dotenv_path)

    registry = _env("REGISTRY")
    output = _env("OUTPUT")
    workers_raw = _env("WORKERS")

    max_workers = None
    if workers_raw is not None:
        try:
            max_workers = int(workers_raw)
        except ValueError as err:
            raise ConfigError(
                f"{ENV_PREFIX}WORKERS must be an integer, got '{workers_raw}'"
            ) from err
        if max_workers < 1:
            raise ConfigError(f"{ENV_PREFIX}WORKERS must be at least 1")

    return EnvironmentConfig(
        registry_path=Path(registry) if registry else DEFAULT_REGISTRY,
        output_dir=Path(output) if output else DEFAULT_OUTPUT,
        max_workers=max_workers,
    )
