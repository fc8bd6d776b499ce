from content_editor.services.alignment.inline import format_inline
from content_editor.services.alignment.models import HighlightSection
from content_editor.services.alignment.renderer import (
    IDLE,
    BlankBlock,
    BlockquoteBlock,
    CalloutBlock,
    CodeBlock,
    FAQBlock,
    HeadingBlock,
    Highlighted,
    ListItemBlock,
    ParagraphBlock,
    RenderMode,
    RuleBlock,
    TableBlock,
    advance,
    block_to_dict,
    find_highlight,
    render_blocks,
)

PRICING = HighlightSection(id="1", match_text="Pricing", normalized_key="pricing")


def test_region_covers_deeper_headings_and_ends_at_same_level() -> None:
    markdown = "# Pricing\nLine A\n## Tiers\nLine B\n# Support\nLine C"
    blocks = render_blocks(markdown, [PRICING])
    assert [b.active_highlight_key for b in blocks] == [
        "pricing",
        "pricing",
        "pricing",
        "pricing",
        None,
        None,
    ]
    heading = blocks[0]
    assert isinstance(heading, HeadingBlock)
    assert heading.highlight_key == "pricing"
    assert heading.footnote == 1
    tiers = blocks[2]
    assert isinstance(tiers, HeadingBlock)
    assert tiers.highlight_key is None
    assert tiers.footnote is None


def test_new_match_replaces_open_region() -> None:
    support = HighlightSection(id="2", match_text="Support", normalized_key="support")
    blocks = render_blocks("# Pricing\nA\n### Support\nB", [PRICING, support])
    assert [b.active_highlight_key for b in blocks] == ["pricing", "pricing", "support", "support"]


def test_selected_flag_follows_selected_key() -> None:
    blocks = render_blocks("Intro\n# Pricing\nA\n# Other\nB", [PRICING], selected_key="pricing")
    assert [b.selected for b in blocks] == [False, True, True, False, False]


def test_plain_mode_tracks_nothing() -> None:
    blocks = render_blocks("# Pricing\nA", [PRICING], selected_key="pricing", mode=RenderMode.PLAIN)
    assert all(b.active_highlight_key is None for b in blocks)
    assert not any(b.selected for b in blocks)
    assert isinstance(blocks[0], HeadingBlock)
    assert blocks[0].highlight_key is None


def test_every_block_kind_is_recognized() -> None:
    markdown = "\n".join(
        [
            "```python",
            "print('hi')",
            "```",
            "> [!tip] Try it",
            "> Quoted",
            "---",
            "- [x] done",
            "- [ ] todo",
            "- item",
            "3. third",
            "| Plan | Price |",
            "| --- | ---: |",
            "| Pro | $20 |",
            "**Q:** Why?",
            "**A:** Because.",
            "",
            "Just text",
        ]
    )
    blocks = render_blocks(markdown)
    assert [type(b) for b in blocks] == [
        CodeBlock,
        CalloutBlock,
        BlockquoteBlock,
        RuleBlock,
        ListItemBlock,
        ListItemBlock,
        ListItemBlock,
        ListItemBlock,
        TableBlock,
        FAQBlock,
        FAQBlock,
        BlankBlock,
        ParagraphBlock,
    ]
    code, callout, quote, _, done, todo, item, third, table, question, answer, _, para = blocks
    assert code.language == "python"
    assert code.lines == ["print('hi')"]
    assert (callout.variant, callout.text) == ("TIP", "Try it")
    assert quote.text == "Quoted"
    assert (done.text, done.checked) == ("done", True)
    assert (todo.text, todo.checked) == ("todo", False)
    assert (item.text, item.checked, item.ordered) == ("item", None, False)
    assert (third.text, third.ordered, third.number) == ("third", True, 3)
    assert table.headers == ["Plan", "Price"]
    assert table.rows == [["Pro", "$20"]]
    assert (question.is_question, question.text) == (True, "Why?")
    assert (answer.is_question, answer.text) == (False, "Because.")
    assert para.text == "Just text"


def test_unterminated_fence_runs_to_end() -> None:
    blocks = render_blocks("```\n# not a heading\nstill code")
    assert len(blocks) == 1
    assert isinstance(blocks[0], CodeBlock)
    assert blocks[0].lines == ["# not a heading", "still code"]


def test_single_table_row_is_a_paragraph() -> None:
    blocks = render_blocks("| lonely |\nafter")
    assert isinstance(blocks[0], ParagraphBlock)
    assert blocks[0].text == "| lonely |"


def test_find_highlight_fallbacks() -> None:
    assert find_highlight("Pricing Plans 2024", [PRICING]) is PRICING
    hyphenated = HighlightSection(
        id="3", match_text="Pricing-FAQ", normalized_key="pricing faq"
    )
    assert find_highlight("Pricing-FAQ Tips", [hyphenated]) is hyphenated
    resolved = HighlightSection(
        id="4",
        match_text="Plans",
        normalized_key="plans",
        resolved_heading="Tiers and Costs",
        resolved_normalized_key="tiers and costs",
    )
    assert find_highlight("Tiers and Costs", [resolved]) is resolved
    assert find_highlight("Support", [PRICING]) is None


def test_advance_transitions() -> None:
    opened = advance(IDLE, 2, "pricing")
    assert opened == Highlighted(key="pricing", level=2)
    assert advance(opened, 3, None) == opened
    assert advance(opened, 2, None) == IDLE
    assert advance(opened, 1, None) == IDLE
    assert advance(IDLE, 1, None) == IDLE


def test_block_to_dict_includes_kind_and_html() -> None:
    [block] = render_blocks("**Bold** see [docs](https://x.io)")
    data = block_to_dict(block)
    assert data["kind"] == "paragraph"
    assert data["text"] == "**Bold** see [docs](https://x.io)"
    assert data["active_highlight_key"] is None
    assert data["selected"] is False
    assert data["html"] == (
        '<strong>Bold</strong> see '
        '<a href="https://x.io" target="_blank" rel="noopener noreferrer">docs</a>'
    )
    assert "html" not in block_to_dict(RuleBlock())


def test_format_inline() -> None:
    assert format_inline("<script>") == "&lt;script&gt;"
    assert format_inline("Use `code` and ~~old~~ *new*") == (
        "Use <code>code</code> and <del>old</del> <em>new</em>"
    )
    assert format_inline("![Logo](https://x.io/l.png)") == (
        '<img src="https://x.io/l.png" alt="Logo" />'
    )
    assert format_inline("a\nb") == "a<br />b"


def test_non_numeric_highlight_id_has_no_footnote() -> None:
    named = HighlightSection(id="pricing-1", match_text="Pricing", normalized_key="pricing")
    blocks = render_blocks("# Pricing\nLine A", [named])
    heading = blocks[0]
    assert isinstance(heading, HeadingBlock)
    assert heading.highlight_key == "pricing"
    assert heading.footnote is None
    assert blocks[1].active_highlight_key == "pricing"
    assert PRICING.footnote == 1


def test_format_inline_leaves_unsafe_targets_as_text() -> None:
    assert format_inline("[click](javascript:alert(document.cookie))") == (
        "[click](javascript:alert(document.cookie))"
    )
    assert "<img" not in format_inline("![x](data:image/svg+xml;base64,AAAA)")
    assert format_inline("[mail](mailto:team@acme.test)") == (
        '<a href="mailto:team@acme.test" target="_blank" rel="noopener noreferrer">mail</a>'
    )
    assert format_inline("[top](#pricing)").startswith('<a href="#pricing"')


def test_format_inline_keeps_parentheses_in_link_targets() -> None:
    assert format_inline("[wiki](https://en.wikipedia.org/wiki/Foo_(bar)) end") == (
        '<a href="https://en.wikipedia.org/wiki/Foo_(bar)" target="_blank" '
        'rel="noopener noreferrer">wiki</a> end'
    )


def test_format_inline_code_spans_are_not_reformatted() -> None:
    assert format_inline("`a*b*c` and *x*") == "<code>a*b*c</code> and <em>x</em>"
    assert format_inline("**see [__docs__](/help)**") == (
        '<strong>see <a href="/help" target="_blank" rel="noopener noreferrer">'
        "<strong>docs</strong></a></strong>"
    )
