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

"""Output rendering, writing and verification."""

from .render import render_agent, render_command, render_settings
from .verify import verify_output
from .writer import OutputWriter, WritePolicy, write_plan

__all__ = [
    "render_agent",
    "render_command",
    "render_settings",
    "verify_output",
    "OutputWriter",
    "WritePolicy",
    "write_plan",
]
