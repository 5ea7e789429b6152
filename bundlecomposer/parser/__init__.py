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

"""Bundle parsing for bundlecomposer.

Public API:

- parse_bundle: Parse a bundle directory into a ParsedBundle
- parse_frontmatter: Split an item file into YAML metadata and body
- render_frontmatter: Render metadata and body back into an item file
"""

from .bundle import parse_agent, parse_bundle, parse_command
from .frontmatter import (
    FrontmatterDocument,
    FrontmatterError,
    normalize_tool_list,
    parse_frontmatter,
    render_frontmatter,
)

__all__ = [
    "parse_bundle",
    "parse_agent",
    "parse_command",
    "parse_frontmatter",
    "render_frontmatter",
    "normalize_tool_list",
    "FrontmatterDocument",
    "FrontmatterError",
]
