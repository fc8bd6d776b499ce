from content_editor.services.alignment.normalize import key_tokens, normalize_heading
from content_editor.services.alignment.sections import (
    extract_headings,
    join_sections,
    parse_sections,
    split_preamble,
)


def test_normalize_heading_strips_case_punctuation_and_whitespace() -> None:
    assert normalize_heading("Pricing Plans  ") == normalize_heading("pricing plans")
    assert normalize_heading("  **Pricing** & Plans!  ") == "pricing plans"
    assert normalize_heading("FAQ's\tand   Tips") == "faqs and tips"
    assert normalize_heading("!!!") == ""


def test_key_tokens_uses_normalized_text() -> None:
    assert key_tokens("Customer  Support:") == ["customer", "support"]
    assert key_tokens("   ") == []


def test_parse_sections_levels_and_bodies() -> None:
    markdown = "# Intro\nHello\n\n## Details\nMore text\n### Deep\n#NotAHeading\n####### seven"
    sections = parse_sections(markdown)
    assert [s.heading for s in sections] == ["Intro", "Details", "Deep"]
    assert [s.level for s in sections] == [1, 2, 3]
    assert sections[0].body_lines == ["Hello", ""]
    assert sections[1].normalized_heading == "details"
    assert sections[2].body_lines == ["#NotAHeading", "####### seven"]


def test_parse_sections_keeps_raw_heading_text() -> None:
    sections = parse_sections("##   **Pricing** Plans  \nbody")
    assert sections[0].heading == "**Pricing** Plans  "
    assert sections[0].line == "##   **Pricing** Plans  "
    assert sections[0].normalized_heading == "pricing plans"


def test_sections_rejoin_to_original_document() -> None:
    markdown = "# Title\n\nIntro line\n\n## A\n- item\n\n## B\ntext\n"
    assert join_sections(parse_sections(markdown)) == markdown


def test_preamble_is_not_a_section_but_is_returned_separately() -> None:
    markdown = "Intro before heading\n\n# First\nBody"
    preamble, sections = split_preamble(markdown)
    assert preamble == ["Intro before heading", ""]
    assert [s.heading for s in sections] == ["First"]
    assert [s.heading for s in parse_sections(markdown)] == ["First"]
    assert join_sections(sections, preamble) == markdown


def test_heading_less_input_yields_no_sections() -> None:
    assert parse_sections("") == []
    assert parse_sections("just a paragraph\nand another") == []


def test_hash_lines_inside_fences_start_sections() -> None:
    markdown = "# Setup\n```bash\n# install deps\n```"
    headings = [s.heading for s in parse_sections(markdown)]
    assert headings == ["Setup", "install deps"]


def test_extract_headings_records_level_and_line() -> None:
    headings = extract_headings("# One\ntext\n### Three!")
    assert [(h.text, h.level, h.normalized, h.line_index) for h in headings] == [
        ("One", 1, "one", 0),
        ("Three!", 3, "three", 2),
    ]
