"""
Tests for bundlecomposer.core.

Tests the composition orchestrator end to end: planning, writing,
verification, failure steps, the write-failure policy and idempotence.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bundlecomposer import core
from bundlecomposer.core import compose, plan_composition
from bundlecomposer.exceptions import CompositionError, OutputError, ParseError
from bundlecomposer.output.writer import OutputWriter, WritePolicy
from bundlecomposer.results import VerifyResult

pytestmark = pytest.mark.integration


def _read_tree(root: Path) -> dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes() for p in sorted(root.rglob("*")) if p.is_file()
    }


def _section_body(document: str, heading: str) -> str:
    lines = document.splitlines()
    start = lines.index(heading) + 1
    body = []
    for line in lines[start:]:
        if line.startswith("#") or line == "---":
            break
        body.append(line)
    return "\n".join(body).strip()


@pytest.fixture
def two_bundles(make_bundle, make_source):
    """Two bundles with overlapping agents, commands, settings and sections."""
    a = make_bundle(
        "alpha",
        root_doc="# Alpha\n\n## Common Commands\n\n- npm install\n- npm test\n",
        agents={"builder.md": "---\nname: Component Builder\n---\nAlpha builder"},
        commands={"deploy.md": "---\nname: deploy\n---\nAlpha deploy"},
        hooks={"format.sh": "#!/bin/sh\necho alpha\n"},
        settings={"permissions": {"allow": ["Read", "Write"]}, "env": {"A": "1"}},
    )
    b = make_bundle(
        "beta",
        root_doc="## Common Commands\n\n- npm test\n- npm run lint\n",
        agents={"builder.md": "---\nname: component-builder\n---\nBeta builder"},
        hooks={"format.sh": "#!/bin/sh\necho beta\n"},
        settings={"permissions": {"allow": ["Write", "Bash"]}},
    )
    return [
        make_source(a, "alpha", priority=1, name="Alpha"),
        make_source(b, "beta", priority=5, name="Beta"),
    ]


class TestCompose:
    """Tests for a successful compose run."""

    def test_writes_full_tree(self, two_bundles, tmp_path, fixed_time):
        """Test that compose writes the root document, items and settings."""
        out = tmp_path / "out"

        result = compose(two_bundles, out, generated_at=fixed_time)

        assert result.status == "success"
        assert result.bundle_ids == ["alpha", "beta"]
        assert (out / "CLAUDE.md").is_file()
        assert (out / ".claude" / "agents" / "component-builder.md").is_file()
        assert (out / ".claude" / "commands" / "deploy.md").is_file()
        assert (out / ".claude" / "hooks" / "format.sh").is_file()
        assert (out / ".claude" / "settings.json").is_file()
        assert result.files_written[0] == out / "CLAUDE.md"
        assert result.files_written[-1] == out / ".claude" / "settings.json"

    def test_named_item_dedup(self, two_bundles, tmp_path, fixed_time):
        """Test that one agent file is written for name variants, from the higher priority."""
        out = tmp_path / "out"

        result = compose(two_bundles, out, generated_at=fixed_time)

        agents = list((out / ".claude" / "agents").iterdir())
        assert result.agent_count == 1
        assert len(agents) == 1
        assert "Beta builder" in agents[0].read_text(encoding="utf-8")
        hook = (out / ".claude" / "hooks" / "format.sh").read_text(encoding="utf-8")
        assert "echo beta" in hook

    def test_settings_union(self, two_bundles, tmp_path, fixed_time):
        """Test that permission lists are unioned in bundle order."""
        out = tmp_path / "out"

        compose(two_bundles, out, generated_at=fixed_time)

        settings = json.loads((out / ".claude" / "settings.json").read_text(encoding="utf-8"))
        assert settings["permissions"]["allow"] == ["Read", "Write", "Bash"]
        assert settings["env"] == {"A": "1"}

    def test_mergeable_section_combined(self, two_bundles, tmp_path, fixed_time):
        """Test that Common Commands from both bundles is combined once."""
        out = tmp_path / "out"

        compose(two_bundles, out, generated_at=fixed_time)

        text = (out / "CLAUDE.md").read_text(encoding="utf-8")
        assert text.count("## Common Commands") == 1
        assert text.count("- npm test") == 1
        assert "- npm install" in text
        assert "- npm run lint" in text

    def test_end_to_end_section_priority(self, make_bundle, make_source, tmp_path, fixed_time):
        """Test that x's high-priority Security section is emitted verbatim."""
        x = make_bundle("x", root_doc="## Security\n\nAlways validate input.\nNever log secrets.")
        y = make_bundle("y", root_doc="## Security\n\nUse HTTPS everywhere.")
        out = tmp_path / "out"

        compose(
            [
                make_source(x, "x", priority=10, sections=[("Security", 20)]),
                make_source(y, "y", priority=1),
            ],
            out,
            generated_at=fixed_time,
        )

        text = (out / "CLAUDE.md").read_text(encoding="utf-8")
        assert _section_body(text, "## Security") == (
            "Always validate input.\nNever log secrets."
        )
        assert "Use HTTPS everywhere." not in text
        assert "- **x** v1.0.0:" in text
        assert "- **y** v1.0.0:" in text

    def test_empty_input(self, tmp_path, fixed_time):
        """Test that zero bundles yield a skeleton output, not an error."""
        out = tmp_path / "out"

        result = compose([], out, generated_at=fixed_time)

        assert result.status == "success"
        text = (out / "CLAUDE.md").read_text(encoding="utf-8")
        assert text.startswith("# Composed Configuration")
        assert "## Configuration Metadata" in text
        for subdir in ("agents", "commands", "hooks"):
            assert list((out / ".claude" / subdir).iterdir()) == []
        assert (out / ".claude" / "settings.json").read_text(encoding="utf-8") == "{}\n"

    def test_parser_warnings_surfaced(self, make_bundle, make_source, tmp_path, fixed_time):
        """Test that content problems become warnings, not failures."""
        path = make_bundle("a", agents={"bad.md": "---\nname: [oops\n---\nx"})

        result = compose([make_source(path, "a")], tmp_path / "out", generated_at=fixed_time)

        assert result.status == "success"
        assert result.agent_count == 0
        assert any(w.startswith("a: Skipping agent bad.md") for w in result.warnings)

    def test_verify_problems_downgrade_status(
        self, two_bundles, tmp_path, fixed_time, monkeypatch
    ):
        """Test that verification problems give success_with_warnings."""
        monkeypatch.setattr(
            core,
            "verify_output",
            lambda root, layout: VerifyResult(root, False, ["Missing CLAUDE.md"]),
        )

        result = compose(two_bundles, tmp_path / "out", generated_at=fixed_time)

        assert result.status == "success_with_warnings"
        assert "verify: Missing CLAUDE.md" in result.warnings


class TestIdempotence:
    """Tests that composition is reproducible."""

    def test_byte_identical_output(self, two_bundles, tmp_path, fixed_time):
        """Test that two runs with the same inputs write identical trees."""
        first = tmp_path / "first"
        second = tmp_path / "second"

        compose(two_bundles, first, generated_at=fixed_time)
        compose(two_bundles, second, generated_at=fixed_time, max_workers=1)

        assert _read_tree(first) == _read_tree(second)

    def test_rerun_into_same_directory(self, two_bundles, tmp_path, fixed_time):
        """Test that composing twice into one directory is stable."""
        out = tmp_path / "out"

        compose(two_bundles, out, generated_at=fixed_time)
        before = _read_tree(out)
        compose(two_bundles, out, generated_at=fixed_time)

        assert _read_tree(out) == before


class TestFailures:
    """Tests for failing steps."""

    def test_require_bundles(self, tmp_path):
        """Test that an empty list is rejected when bundles are required."""
        out = tmp_path / "out"

        with pytest.raises(CompositionError) as exc_info:
            compose([], out, require_bundles=True)

        assert exc_info.value.step == "validating"
        assert not out.exists()

    def test_duplicate_ids(self, make_bundle, make_source, tmp_path):
        """Test that the same bundle id twice is rejected."""
        path = make_bundle("a")

        with pytest.raises(CompositionError, match="more than once") as exc_info:
            plan_composition([make_source(path, "a"), make_source(path, "a")])

        assert exc_info.value.step == "validating"

    def test_missing_bundle_path(self, make_source, tmp_path):
        """Test that a missing bundle directory fails validation."""
        out = tmp_path / "out"

        with pytest.raises(CompositionError) as exc_info:
            compose([make_source(tmp_path / "missing", "m")], out)

        assert exc_info.value.step == "validating"
        assert not out.exists()

    def test_parent_traversal_rejected(self, make_bundle, make_source, tmp_path):
        """Test that '..' in a bundle path fails validation."""
        make_bundle("a")
        sneaky = tmp_path / "bundles" / "a" / ".." / "a"

        with pytest.raises(CompositionError, match="traversal") as exc_info:
            plan_composition([make_source(sneaky, "a")])

        assert exc_info.value.step == "validating"

    def test_structural_parse_error(self, make_bundle, make_source, tmp_path):
        """Test that a broken bundle layout fails at the parsing step."""
        path = make_bundle("a", items_dir=False)
        (path / ".claude").write_text("not a directory")
        out = tmp_path / "out"

        with pytest.raises(CompositionError) as exc_info:
            compose([make_source(path, "a")], out)

        assert exc_info.value.step == "parsing"
        assert isinstance(exc_info.value.__cause__, ParseError)
        assert not out.exists()


    def test_colliding_item_filenames(self, make_bundle, make_source, tmp_path):
        """Test that two agents truncated to the same filename fail before writing."""
        prefix = "x" * 300
        path = make_bundle(
            "a",
            agents={
                "one.md": f"---\nname: {prefix}a\n---\nfirst",
                "two.md": f"---\nname: {prefix}b\n---\nsecond",
            },
        )
        out = tmp_path / "out"

        with pytest.raises(CompositionError, match="both be written") as exc_info:
            compose([make_source(path, "a")], out)

        assert exc_info.value.step == "writing"
        assert isinstance(exc_info.value.__cause__, OutputError)
        assert not out.exists()


class TestWritePolicy:
    """Tests for the write-failure policy."""

    @pytest.fixture
    def failing_settings_write(self, monkeypatch):
        """Make writing settings.json fail after everything else is written."""
        original = OutputWriter.write_file

        def _write_file(self, path, content):
            if path.name == "settings.json":
                raise OutputError(f"Failed to write {path}: disk full")
            original(self, path, content)

        monkeypatch.setattr(OutputWriter, "write_file", _write_file)

    def test_keep_partial(self, two_bundles, tmp_path, failing_settings_write):
        """Test that the default policy leaves written files in place."""
        out = tmp_path / "out"

        with pytest.raises(CompositionError) as exc_info:
            compose(two_bundles, out)

        assert exc_info.value.step == "writing"
        assert isinstance(exc_info.value.__cause__, OutputError)
        assert (out / "CLAUDE.md").is_file()
        assert (out / ".claude" / "agents" / "component-builder.md").is_file()

    def test_remove_created(self, two_bundles, tmp_path, failing_settings_write):
        """Test that REMOVE_CREATED deletes everything the run created."""
        out = tmp_path / "out"

        with pytest.raises(CompositionError):
            compose(two_bundles, out, write_policy=WritePolicy.REMOVE_CREATED)

        assert not out.exists()

    def test_remove_created_keeps_preexisting(
        self, two_bundles, tmp_path, failing_settings_write
    ):
        """Test that overwritten files that existed before the run are kept."""
        out = tmp_path / "out"
        out.mkdir()
        (out / "CLAUDE.md").write_text("old", encoding="utf-8")
        (out / "notes.txt").write_text("mine", encoding="utf-8")

        with pytest.raises(CompositionError):
            compose(two_bundles, out, write_policy=WritePolicy.REMOVE_CREATED)

        assert (out / "CLAUDE.md").is_file()
        assert (out / "notes.txt").read_text(encoding="utf-8") == "mine"
        assert not (out / ".claude").exists()


class TestPlan:
    """Tests for plan_composition."""

    def test_plan_touches_nothing(self, two_bundles, tmp_path, fixed_time):
        """Test that planning returns merged content without writing files."""
        before = sorted(tmp_path.rglob("*"))

        plan = plan_composition(two_bundles, generated_at=fixed_time)

        assert sorted(tmp_path.rglob("*")) == before
        assert plan.bundle_ids == ["alpha", "beta"]
        assert [a.source for a in plan.agents] == ["beta"]
        assert [c.name for c in plan.commands] == ["deploy"]
        assert plan.settings.allow == ("Read", "Write", "Bash")
        assert "## Common Commands" in plan.root_document
