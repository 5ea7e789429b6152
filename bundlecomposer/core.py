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

"""Core orchestration for bundlecomposer.

This module drives a composition run from a list of bundles to a written,
verified output tree. A run moves through fixed steps:

    validating -> parsing -> merging-root-doc -> merging-components
        -> writing -> verifying -> done

Any step can fail. The failure is raised as CompositionError carrying the
step name, chained to the underlying error. Failures before ``writing``
leave the filesystem untouched.

Design Principles:

- plan_composition does everything except touching disk, so previews and
  dry runs share the exact merge path with compose
- Parsing is the only concurrent step (a thread pool, one bundle per task);
  results are always consumed in input order
- Merging is pure and synchronous; writing is sequential
- Content problems are warnings, structural problems are errors

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from bundlecomposer.config import load_registry
        from bundlecomposer.core import compose

        registry = load_registry(Path("bundles/registry.yaml"))
        result = compose(
            registry.select(["nextjs-15", "shadcn"]),
            Path("./my-project"),
        )

        print(f"Status: {result.status}")
        print(f"Agents: {result.agent_count}")
        ```
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from enum import Enum
from pathlib import Path

from bundlecomposer.exceptions import (
    BundleComposerError,
    CompositionError,
    ConfigError,
    OutputError,
    ParseError,
)
from bundlecomposer.layout import DEFAULT_LAYOUT, BundleLayout
from bundlecomposer.logging import get_global_logger
from bundlecomposer.merge import (
    merge_agents,
    merge_commands,
    merge_hooks,
    merge_root_documents,
    merge_settings,
)
from bundlecomposer.models import BundleSource, ParsedBundle
from bundlecomposer.output import WritePolicy, verify_output, write_plan
from bundlecomposer.parser import parse_bundle
from bundlecomposer.paths import validate_bundle_path
from bundlecomposer.results import ComposeResult, CompositionPlan, VerifyResult

__all__ = ["Step", "plan_composition", "compose", "verify"]


class Step(str, Enum):
    """Steps of a composition run."""

    VALIDATING = "validating"
    PARSING = "parsing"
    MERGING_ROOT_DOC = "merging-root-doc"
    MERGING_COMPONENTS = "merging-components"
    WRITING = "writing"
    VERIFYING = "verifying"
    DONE = "done"
    FAILED = "failed"


def _fail(step: Step, err: BundleComposerError) -> CompositionError:
    get_global_logger().debug(
        "CORE", f"{step.value} -> {Step.FAILED.value}: {type(err).__name__}: {err}"
    )
    return CompositionError(step.value, str(err))


def _validate(
    bundles: Sequence[BundleSource], require_bundles: bool
) -> list[BundleSource]:
    if require_bundles and not bundles:
        raise ConfigError("No bundles selected; at least one bundle is required")

    seen: set[str] = set()
    resolved: list[BundleSource] = []
    for bundle in bundles:
        bundle_id = bundle.descriptor.id
        if bundle_id in seen:
            raise ConfigError(f"Bundle '{bundle_id}' selected more than once")
        seen.add(bundle_id)
        path = validate_bundle_path(bundle.path)
        resolved.append(BundleSource(path=path, descriptor=bundle.descriptor))
    return resolved


def _parse_all(
    bundles: Sequence[BundleSource],
    layout: BundleLayout,
    max_workers: int | None,
) -> list[ParsedBundle]:
    if not bundles:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(parse_bundle, b.path, b.descriptor.id, layout)
            for b in bundles
        ]
        return [future.result() for future in futures]


def _build_plan(
    bundles: Sequence[BundleSource],
    *,
    require_bundles: bool,
    max_workers: int | None,
    generated_at: datetime | None,
    layout: BundleLayout,
    total: int,
) -> CompositionPlan:
    logger = get_global_logger()

    logger.step(1, total, "Validating bundles...")
    try:
        sources = _validate(bundles, require_bundles)
    except ConfigError as err:
        raise _fail(Step.VALIDATING, err) from err
    descriptors = [b.descriptor for b in sources]
    logger.verbose("CORE", f"Bundles: {', '.join(d.id for d in descriptors) or '(none)'}")

    logger.step(2, total, "Parsing bundles...")
    try:
        parsed = _parse_all(sources, layout, max_workers)
    except ParseError as err:
        raise _fail(Step.PARSING, err) from err

    warnings = [f"{p.bundle_id}: {w}" for p in parsed for w in p.warnings]

    logger.step(3, total, "Merging root documents...")
    root_document = merge_root_documents(
        [(p.root_document, d) for p, d in zip(parsed, descriptors)],
        generated_at=generated_at,
    )

    logger.step(4, total, "Merging components...")
    priorities = [d.priority for d in descriptors]
    agents = merge_agents([p.agents for p in parsed], priorities)
    commands = merge_commands([p.commands for p in parsed], priorities)
    hooks = merge_hooks([p.hooks for p in parsed], priorities)
    settings = merge_settings([p.settings for p in parsed])
    logger.verbose(
        "MERGE",
        f"{len(agents)} agent(s), {len(commands)} command(s), {len(hooks)} hook(s)",
    )

    return CompositionPlan(
        descriptors=tuple(descriptors),
        root_document=root_document,
        agents=tuple(agents),
        commands=tuple(commands),
        hooks=tuple(hooks),
        settings=settings,
        warnings=tuple(warnings),
    )


def plan_composition(
    bundles: Sequence[BundleSource],
    *,
    require_bundles: bool = False,
    max_workers: int | None = None,
    generated_at: datetime | None = None,
    layout: BundleLayout = DEFAULT_LAYOUT,
) -> CompositionPlan:
    """Validate, parse and merge bundles without writing anything.

    Args:
        bundles: Bundles to compose, in canonical order. Order decides
            first-seen ties and last-wins settings keys.
        require_bundles: Reject an empty bundle list when True.
        max_workers: Thread pool size for parsing. Defaults to the
            ThreadPoolExecutor default.
        generated_at: Timestamp written into the root document trailer.
            Pass a fixed value for byte-identical output across runs.
        layout: File and directory names of the bundles.

    Returns:
        CompositionPlan with the merged root document, items and settings.

    Raises:
        CompositionError: With step "validating" for an empty selection
            (when required), duplicate ids or unsafe/missing paths, or
            with step "parsing" for a structural bundle read error.
    """
    return _build_plan(
        bundles,
        require_bundles=require_bundles,
        max_workers=max_workers,
        generated_at=generated_at,
        layout=layout,
        total=4,
    )


def compose(
    bundles: Sequence[BundleSource],
    output_root: Path,
    *,
    write_policy: WritePolicy = WritePolicy.KEEP_PARTIAL,
    require_bundles: bool = False,
    max_workers: int | None = None,
    generated_at: datetime | None = None,
    layout: BundleLayout = DEFAULT_LAYOUT,
) -> ComposeResult:
    """Compose bundles and write the result to an output directory.

    This is the main entry point for the 'bcomp compose' command. It runs
    every step of a composition:

    1. Validate the bundle list and paths
    2. Parse all bundles concurrently
    3. Merge root documents by section
    4. Deduplicate agents, commands and hooks; merge settings
    5. Write the output tree
    6. Verify the output tree

    Args:
        bundles: Bundles to compose, in canonical order.
        output_root: Directory to write to. Created if missing.
        write_policy: What to do with already-written files when a write
            fails (see WritePolicy).
        require_bundles: Reject an empty bundle list when True.
        max_workers: Thread pool size for parsing.
        generated_at: Timestamp for the root document trailer.
        layout: File and directory names of bundles and output.

    Returns:
        ComposeResult. Status is "success_with_warnings" when verification
        found problems; those problems are appended to ``warnings``.

    Raises:
        CompositionError: If any step fails. ``step`` names the failing
            step and the original error is chained.

    Example:
        Compose with a fixed timestamp:
            ```python
            result = compose(
                bundles,
                Path("./out"),
                generated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            )
            ```
    """
    logger = get_global_logger()
    total = 6

    plan = _build_plan(
        bundles,
        require_bundles=require_bundles,
        max_workers=max_workers,
        generated_at=generated_at,
        layout=layout,
        total=total,
    )

    logger.step(5, total, "Writing output...")
    try:
        files_written = write_plan(
            plan, output_root, layout=layout, write_policy=write_policy
        )
    except OutputError as err:
        raise _fail(Step.WRITING, err) from err

    logger.step(6, total, "Verifying output...")
    verification = verify_output(output_root, layout)
    warnings = list(plan.warnings)
    for problem in verification.problems:
        logger.debug("VERIFY", problem)
        warnings.append(f"verify: {problem}")

    status = "success" if verification.valid else "success_with_warnings"
    logger.verbose("CORE", f"{Step.DONE.value}: {status}")

    return ComposeResult(
        output_root=output_root,
        bundle_ids=plan.bundle_ids,
        files_written=files_written,
        agent_count=len(plan.agents),
        command_count=len(plan.commands),
        hook_count=len(plan.hooks),
        warnings=warnings,
        status=status,
    )


def verify(output_root: Path, layout: BundleLayout = DEFAULT_LAYOUT) -> VerifyResult:
    """Check a previously composed output tree.

    Returns:
        VerifyResult with ``valid`` and the list of problems found.
    """
    return verify_output(output_root, layout)
