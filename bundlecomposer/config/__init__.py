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

"""Configuration loading for bundlecomposer.

Two sources of configuration:

  - The bundle registry (YAML): which bundles exist, their descriptors and
    where their directories live
  - The environment (optionally a ``.env`` file): default registry path,
    output directory and parser pool size

Public API:

- load_registry: Load and validate a registry file
- load_environment: Read BUNDLECOMPOSER_* settings

Example:
    Basic usage:

        from bundlecomposer.config import load_environment, load_registry

        env = load_environment()
        registry = load_registry(env.registry_path)
        for descriptor in registry.by_category("framework"):
            print(descriptor.id)

"""

from .environment import EnvironmentConfig, load_environment
from .registry import BundleRegistry, load_registry

__all__ = ["BundleRegistry", "EnvironmentConfig", "load_environment", "load_registry"]
