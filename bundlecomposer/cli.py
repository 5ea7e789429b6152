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

"""Command-line interface for bundlecomposer.

This module provides the main CLI entry point for the bcomp tool, offering
commands for listing, previewing, composing and checking bundles.

Commands:

    list: List bundles in the registry
    compose: Compose bundles into an output directory
    plan: Preview a composition without writing anything
    verify: Check a composed output directory
    validate: Check a single bundle directory

Example:
    List available bundles:
        ```bash
        $ bcomp list --category framework
        ```

    Compose two bundles into the current project:
        ```bash
        $ bcomp compose nextjs-15 shadcn --output-dir .
        ```

    Preview without writing:
        ```bash
        $ bcomp plan nextjs-15 shadcn
        ```

    Enable debug output:
        ```bash
        $ bcomp compose nextjs-15 shadcn --debug
        ```

Exit Codes:

- 0: Success
- 1: Error (registry, parse, write or validation failure)

Note:
    The registry path and output directory default to BUNDLECOMPOSER_REGISTRY
    and BUNDLECOMPOSER_OUTPUT (a ``.env`` file is honored). Flags win over
    the environment. Verbose mode shows full tracebacks on errors.
"""

from __future__ import annotations

import argparse
from importlib.metadata import version
from pathlib import Path
import sys
import traceback

from bundlecomposer.config import load_environment, load_registry
from bundlecomposer.core import compose, plan_composition, verify
from bundlecomposer.exceptions import BundleComposerError
from bundlecomposer.logging import get_logger, set_global_logger
from bundlecomposer.merge.document import METADATA_HEADING, list_headings
from bundlecomposer.models import CATEGORIES
from bundlecomposer.output import WritePolicy
from bundlecomposer.validation import validate_bundle


def _print_error(err: Exception, args: argparse.Namespace) -> None:
    print(f"Error: {err}")
    if getattr(args, "verbose", False) or getattr(args, "debug", False):
        traceback.print_exc()


def _registry_path(args: argparse.Namespace) -> Path:
    if getattr(args, "registry", None):
        return Path(args.registry)
    return load_environment().registry_path


def cmd_list(args: argparse.Namespace) -> int:
    """Handler for 'bcomp list' command.

    Prints every bundle in the registry, grouped by category.

    Args:
        args: Parsed command-line arguments containing the registry path
            and an optional category filter.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    logger = get_logger(verbose=False, debug=False)
    set_global_logger(logger)

    try:
        registry = load_registry(_registry_path(args))
    except BundleComposerError as err:
        _print_error(err, args)
        return 1

    categories = [args.category] if args.category else list(CATEGORIES)
    shown = 0
    for category in categories:
        descriptors = registry.by_category(category)
        if not descriptors:
            continue
        print(f"{category}:")
        for descriptor in descriptors:
            print(f"  {descriptor.id:<24} {descriptor.name} v{descriptor.version}")
            if descriptor.description:
                print(f"  {'':<24} {descriptor.description}")
            shown += 1
        print()

    print(f"{shown} bundle(s)")
    return 0


def cmd_compose(args: argparse.Namespace) -> int:
    """Handler for 'bcomp compose' command.

    Loads the registry, checks the selection for conflicts and missing
    dependencies, then composes the bundles into the output directory.

    Args:
        args: Parsed command-line arguments containing bundle ids, registry
            path, output directory and flags.

    Returns:
        Exit code (0 for success, 1 for failure).

    Note:
        Refuses incompatible selections unless --force-incompatible is set.
        With --cleanup-on-error, files created by a failed run are removed.
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    try:
        env = load_environment()
        registry_path = Path(args.registry) if args.registry else env.registry_path
        output_dir = Path(args.output_dir) if args.output_dir else env.output_dir
        registry = load_registry(registry_path)

        check = registry.check_compatibility(args.bundles)
        if not check.valid:
            for bundle_id, other in check.conflicts:
                print(f"  [X] {bundle_id} conflicts with {other}")
            for bundle_id, dependency in check.missing_dependencies:
                print(f"  [X] {bundle_id} requires {dependency}")
            if not args.force_incompatible:
                print()
                print("Error: Incompatible bundle selection (use --force-incompatible to override)")
                return 1
            print("[WARNING] Continuing with incompatible selection")
            print()

        sources = registry.select(args.bundles)
        output_dir = output_dir.resolve()
        print(f"Composing {len(sources)} bundle(s) into: {output_dir}")
        print()

        policy = (
            WritePolicy.REMOVE_CREATED if args.cleanup_on_error else WritePolicy.KEEP_PARTIAL
        )
        result = compose(
            sources,
            output_dir,
            write_policy=policy,
            require_bundles=True,
            max_workers=env.max_workers,
        )
    except BundleComposerError as err:
        _print_error(err, args)
        return 1

    print("=" * 70)
    print("COMPOSE RESULTS")
    print("=" * 70)
    print(f"Bundles:      {', '.join(result.bundle_ids)}")
    print(f"Output:       {result.output_root}")
    print(f"Agents:       {result.agent_count}")
    print(f"Commands:     {result.command_count}")
    print(f"Hooks:        {result.hook_count}")
    print(f"Files:        {len(result.files_written)}")
    print(f"Status:       {result.status}")
    print("=" * 70)

    if result.warnings:
        print()
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")

    print()
    print("[SUCCESS] Configuration composed successfully!")
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    """Handler for 'bcomp plan' command.

    Runs the composition up to (not including) writing and prints what
    would be written: section titles, item names and settings keys.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    try:
        registry = load_registry(_registry_path(args))
        plan = plan_composition(registry.select(args.bundles), require_bundles=True)
    except BundleComposerError as err:
        _print_error(err, args)
        return 1

    sections = []
    # First heading is the document title; the trailer starts at METADATA_HEADING
    for _, title in list_headings(plan.root_document)[1:]:
        if title == METADATA_HEADING:
            break
        sections.append(title)

    print("=" * 70)
    print("COMPOSITION PLAN")
    print("=" * 70)
    print(f"Bundles:   {', '.join(plan.bundle_ids)}")
    print()
    print(f"Sections ({len(sections)}):")
    for title in sections:
        print(f"  - {title}")
    print(f"Agents ({len(plan.agents)}):")
    for agent in plan.agents:
        print(f"  - {agent.name}  [{agent.source}]")
    print(f"Commands ({len(plan.commands)}):")
    for command in plan.commands:
        print(f"  - {command.name}  [{command.source}]")
    print(f"Hooks ({len(plan.hooks)}):")
    for hook in plan.hooks:
        print(f"  - {hook.name}  [{hook.source}]")
    settings_keys = list(plan.settings.to_dict()) if plan.settings else []
    print(f"Settings keys: {', '.join(settings_keys) or '(none)'}")
    print("=" * 70)

    if plan.warnings:
        print()
        print(f"Warnings ({len(plan.warnings)}):")
        for warning in plan.warnings:
            print(f"  [WARNING] {warning}")

    print()
    print("[SUCCESS] Plan complete, nothing was written.")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Handler for 'bcomp verify' command.

    Returns:
        Exit code (0 when the output tree is complete, 1 otherwise).
    """
    logger = get_logger(verbose=args.verbose, debug=False)
    set_global_logger(logger)

    output_dir = Path(args.output_dir).resolve()
    result = verify(output_dir)

    print(f"Verifying: {output_dir}")
    print()
    if result.valid:
        print("[SUCCESS] Output structure is complete.")
        return 0

    print(f"Problems ({len(result.problems)}):")
    for problem in result.problems:
        print(f"  [X] {problem}")
    print()
    print(f"[FAILED] Output verification failed with {len(result.problems)} problem(s).")
    return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'bcomp validate' command.

    Validates a single bundle directory without composing anything. This
    is useful while authoring a bundle and for CI pre-checks.

    Args:
        args: Parsed command-line arguments containing the bundle path and
            verbose flag.

    Returns:
        Exit code (0 for valid bundle, 1 for invalid).
    """
    logger = get_logger(verbose=args.verbose, debug=False)
    set_global_logger(logger)

    bundle_path = Path(args.bundle_dir).resolve()

    print(f"Validating bundle: {bundle_path}")
    print()

    result = validate_bundle(bundle_path, verbose=args.verbose)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Bundle:      {result.bundle_path}")
    print(f"Status:      {result.status.upper()}")
    print(f"Agents:      {result.agent_count}")
    print(f"Commands:    {result.command_count}")
    print(f"Hooks:       {result.hook_count}")
    print(f"Settings:    {'yes' if result.has_settings else 'no'}")
    print()

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    print("=" * 70)

    if result.status == "valid":
        print()
        print("[SUCCESS] Bundle is valid!")
        return 0
    print()
    print(f"[FAILED] Bundle validation failed with {len(result.errors)} error(s).")
    return 1


def _add_output_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def main() -> None:
    """Main entry point for the bcomp CLI.

    This function is registered as the 'bcomp' console script in pyproject.toml.
    """
    parser = argparse.ArgumentParser(
        prog="bcomp",
        description="bcomp - compose configuration bundles into one",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"bcomp {version('bundlecomposer')}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'list' command
    parser_list = subparsers.add_parser(
        "list",
        help="List bundles in the registry",
        description="List every bundle declared in the registry, grouped by category.",
    )
    parser_list.add_argument(
        "--registry",
        default=None,
        help="Registry YAML file (default: $BUNDLECOMPOSER_REGISTRY or bundles/registry.yaml)",
    )
    parser_list.add_argument(
        "--category",
        choices=CATEGORIES,
        default=None,
        help="Only list bundles in this category",
    )
    parser_list.set_defaults(func=cmd_list)

    # 'compose' command
    parser_compose = subparsers.add_parser(
        "compose",
        help="Compose bundles into an output directory",
        description="Merge the selected bundles and write the composed configuration.",
    )
    parser_compose.add_argument("bundles", nargs="+", help="Bundle ids, in composition order")
    parser_compose.add_argument(
        "--registry",
        default=None,
        help="Registry YAML file (default: $BUNDLECOMPOSER_REGISTRY or bundles/registry.yaml)",
    )
    parser_compose.add_argument(
        "--output-dir",
        default=None,
        help="Directory to write to (default: $BUNDLECOMPOSER_OUTPUT or .)",
    )
    parser_compose.add_argument(
        "--force-incompatible",
        action="store_true",
        help="Compose even when bundles conflict or miss dependencies",
    )
    parser_compose.add_argument(
        "--cleanup-on-error",
        action="store_true",
        help="Remove files created by this run if a write fails",
    )
    _add_output_flags(parser_compose)
    parser_compose.set_defaults(func=cmd_compose)

    # 'plan' command
    parser_plan = subparsers.add_parser(
        "plan",
        help="Preview a composition without writing anything",
        description="Show the sections, items and settings keys a composition would produce.",
    )
    parser_plan.add_argument("bundles", nargs="+", help="Bundle ids, in composition order")
    parser_plan.add_argument(
        "--registry",
        default=None,
        help="Registry YAML file (default: $BUNDLECOMPOSER_REGISTRY or bundles/registry.yaml)",
    )
    _add_output_flags(parser_plan)
    parser_plan.set_defaults(func=cmd_plan)

    # 'verify' command
    parser_verify = subparsers.add_parser(
        "verify",
        help="Check a composed output directory",
        description="Check that a composed output has every expected file and directory.",
    )
    parser_verify.add_argument(
        "output_dir",
        nargs="?",
        default=".",
        help="Composed output directory (default: .)",
    )
    parser_verify.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show each check",
    )
    parser_verify.set_defaults(func=cmd_verify)

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate a bundle directory",
        description="Check a bundle directory for structural and content problems.",
    )
    parser_validate.add_argument("bundle_dir", help="Path to the bundle directory")
    parser_validate.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show validation progress and details",
    )
    parser_validate.set_defaults(func=cmd_validate)

    # Parse and dispatch
    args = parser.parse_args()

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
