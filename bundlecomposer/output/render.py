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

"""Rendering of merged items back into file content."""

from __future__ import annotations

import json
from typing import Any

from bundlecomposer.models import Agent, Command, Settings
from bundlecomposer.parser.frontmatter import render_frontmatter

__all__ = ["render_agent", "render_command", "render_settings"]


def render_agent(agent: Agent) -> str:
    """Render an agent as frontmatter plus body.

    Frontmatter holds name, description and tools, followed by any extra
    keys the source file carried (for example ``model``).
    """
    metadata: dict[str, Any] = {
        "name": agent.name,
        "description": agent.description,
        "tools": list(agent.tools),
    }
    for key, value in agent.extra.items():
        metadata.setdefault(key, value)
    return render_frontmatter(metadata, agent.body)


def render_command(command: Command) -> str:
    """Render a command. ``allowed-tools`` and ``argument-hint`` only when set."""
    metadata: dict[str, Any] = {
        "name": command.name,
        "description": command.description,
    }
    if command.allowed_tools:
        metadata["allowed-tools"] = list(command.allowed_tools)
    if command.argument_hint:
        metadata["argument-hint"] = command.argument_hint
    for key, value in command.extra.items():
        metadata.setdefault(key, value)
    return render_frontmatter(metadata, command.body)


def render_settings(settings: Settings | None) -> str:
    """Serialize settings as 2-space indented JSON; ``{}`` when there are none."""
    data = settings.to_dict() if settings is not None else {}
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
