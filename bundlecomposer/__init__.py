"""
bundlecomposer - Configuration Bundle Composer

Composes several independently written configuration bundles (a root
markdown document, agents, commands, hooks and a settings file) into one
deduplicated, priority-ordered bundle.

bundlecomposer provides:
  - Section-level merging of root documents with priority ordering
  - Deduplication of agents, commands and hooks by normalized name
  - Settings merging (permission unions, env, hooks, extension keys)
  - A YAML bundle registry with dependency and conflict checks
  - Dry-run planning, output verification and bundle validation

Quick Start
-----------
List available bundles:

    $ bcomp list

Compose bundles into the current directory:

    $ bcomp compose nextjs-15 shadcn

For full CLI documentation:

    $ bcomp --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    Composition orchestration (plan, compose, verify).
config : package
    Bundle registry and environment configuration.
parser : package
    Bundle directory and frontmatter parsing.
merge : package
    Root-document, named-item and settings merging.
output : package
    Rendering, writing and verifying the output tree.

Public API
----------
    from bundlecomposer.core import compose, plan_composition, verify
    from bundlecomposer.config import load_registry
    from bundlecomposer.parser import parse_bundle
    from bundlecomposer.validation import validate_bundle

Project Information
-------------------
License: Apache-2.0
"""

__version__ = "0.1.0"
__description__ = "Compose configuration bundles into one deduplicated bundle"

# Re-export commonly used functions for convenience
from bundlecomposer.config import load_registry
from bundlecomposer.core import compose, plan_composition, verify
from bundlecomposer.models import BundleDescriptor, BundleSource, SectionOverride
from bundlecomposer.output import WritePolicy
from bundlecomposer.parser import parse_bundle
from bundlecomposer.validation import validate_bundle

__all__ = [
    "__version__",
    "__description__",
    "compose",
    "plan_composition",
    "verify",
    "load_registry",
    "parse_bundle",
    "validate_bundle",
    "BundleDescriptor",
    "BundleSource",
    "SectionOverride",
    "WritePolicy",
]
