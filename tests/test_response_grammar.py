from src.forge.core.extractor import extract
from src.forge.core.response_grammar import (
    BUILDING_HEADING,
    CODE_FENCE_LANGUAGES,
    CODE_HEADING,
    PLAN_HEADING,
    RESERVED_HEADINGS,
    SUMMARY_HEADING,
    SYSTEM_PROMPT,
    TOOL_LINE,
    format_tool_line,
    is_heading_line,
)


def test_reserved_headings_in_reply_order():
    assert list(RESERVED_HEADINGS) == [PLAN_HEADING, BUILDING_HEADING, CODE_HEADING, SUMMARY_HEADING]


def test_system_prompt_mentions_every_heading():
    for heading in RESERVED_HEADINGS:
        assert heading in SYSTEM_PROMPT


def test_tool_line_round_trips_through_pattern():
    line = format_tool_line("create_component", "Header with nav")
    match = TOOL_LINE.match(line)
    assert match is not None
    assert match.group(1) == "create_component"
    assert match.group(2) == "Header with nav"


def test_heading_detection_ignores_trailing_whitespace():
    assert is_heading_line("## Code  ")
    assert not is_heading_line("### Code")
    assert not is_heading_line("## Code sample")


def test_accepted_fence_tags():
    assert {"jsx", "tsx", "javascript"} <= CODE_FENCE_LANGUAGES
    assert "python" not in CODE_FENCE_LANGUAGES


def test_prompt_example_reply_is_extractable():
    reply = "\n".join(
        [
            PLAN_HEADING,
            "Plan text",
            BUILDING_HEADING,
            format_tool_line("add_styling", "Colors"),
            CODE_HEADING,
            "```jsx",
            "function App() { return null; }",
            "```",
            SUMMARY_HEADING,
            "Summary text",
        ]
    )
    doc = extract(reply)
    assert doc.plan == "Plan text"
    assert doc.tools[0].kind == "add_styling"
    assert doc.code == "function App() { return null; }\n"
    assert doc.summary == "Summary text"
