"""The textual contract the model is asked to follow.

Nothing here parses; it only names the pieces of a structured reply so the
extractor, the prompt and the deterministic fallback agree on them.
"""

from __future__ import annotations

import re
from typing import Dict, Tuple

PLAN_HEADING = "## Plan"
BUILDING_HEADING = "## Building"
CODE_HEADING = "## Code"
SUMMARY_HEADING = "## Summary"

# Reserved headings in the order the model emits them.
RESERVED_HEADINGS: Tuple[str, ...] = (PLAN_HEADING, BUILDING_HEADING, CODE_HEADING, SUMMARY_HEADING)

HEADING_FIELDS: Dict[str, str] = {
    PLAN_HEADING: "plan",
    BUILDING_HEADING: "tools",
    CODE_HEADING: "code",
    SUMMARY_HEADING: "summary",
}

# Anchored and applied to a single stripped line, so it cannot backtrack across the text.
TOOL_LINE = re.compile(r"^\[TOOL:(\w+)\]\s*(.+)$")

FENCE = "```"
CODE_FENCE_LANGUAGES = frozenset({"jsx", "js", "tsx", "ts", "javascript", "typescript"})

FALLBACK_PLACEHOLDER = "[Code generated]"


def is_heading_line(line: str) -> bool:
    return line.rstrip() in HEADING_FIELDS


def format_tool_line(kind: str, description: str) -> str:
    return f"[TOOL:{kind}] {description}"


SYSTEM_PROMPT = f"""You are an expert web developer and UI designer. You help users build beautiful, modern web applications.

IMPORTANT: Structure your responses in this exact format:

{PLAN_HEADING}
[1-2 sentence summary of what you'll build, mentioning key features]

{BUILDING_HEADING}
{format_tool_line("create_component", "ComponentName")}
{format_tool_line("add_styling", "Tailwind classes for layout, colors, effects")}
{format_tool_line("add_interactivity", "Any state, handlers, or animations")}

{CODE_HEADING}
{FENCE}jsx
[Your complete React component code here]
{FENCE}

{SUMMARY_HEADING}
[1 sentence confirmation of what was created]

Your code should:
- Use modern React patterns (functional components, hooks)
- Use Tailwind CSS for styling
- Be responsive and accessible
- Have a polished, professional look
- Export a default App component
- ONLY use React and Tailwind - NO external libraries (no lucide-react, no framer-motion, no other npm packages)
- Use emoji or Unicode symbols for icons (e.g., ➕ ➖ 🔄 ✓ ✕ ⬆️ ⬇️)

Keep explanations concise. The code block is required but won't be shown directly to users - it powers the live preview."""
