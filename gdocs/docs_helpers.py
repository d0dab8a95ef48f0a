"""
Google Docs Helper Functions

Constants and small conversions shared by the request builder and the
Markdown and template compilers: colour parsing, named paragraph styles,
list glyph presets and input validators.
"""

import logging
import re

logger = logging.getLogger(__name__)

HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")

MIN_FONT_SIZE = 8
MAX_FONT_SIZE = 72
MAX_INDENT_LEVEL = 9
INDENT_PT_PER_LEVEL = 36

# Template named styles -> Docs namedStyleType
NAMED_STYLE_MAP: dict[str, str] = {
    "heading1": "HEADING_1",
    "heading2": "HEADING_2",
    "heading3": "HEADING_3",
    "heading4": "HEADING_4",
    "title": "TITLE",
    "subtitle": "SUBTITLE",
    "normal": "NORMAL_TEXT",
}

# Template list types -> Docs bulletPreset
LIST_GLYPH_PRESETS: dict[str, str] = {
    "bullet": "BULLET_DISC_CIRCLE_SQUARE",
    "numbered": "NUMBERED_DECIMAL_ALPHA_ROMAN",
    "lettered": "NUMBERED_UPPERALPHA_ALPHA_ROMAN",
    "roman": "NUMBERED_UPPERROMAN_UPPERALPHA_DECIMAL",
    "checklist": "BULLET_CHECKBOX",
}

# Docs namedStyleType -> heading level, for locating sections
HEADING_LEVELS: dict[str, int] = {f"HEADING_{level}": level for level in range(1, 7)}

PARAGRAPH_ALIGNMENTS: dict[str, str] = {
    "left": "START",
    "center": "CENTER",
    "right": "END",
    "justify": "JUSTIFIED",
}


def _normalize_color(color: str | None, param_name: str) -> dict[str, float] | None:
    """
    Convert a #rrggbb hex string to a Docs API rgbColor dict (0..1 floats).

    Returns None when color is None.

    Raises:
        ValueError: If the color is not a 6-digit hex string with a leading '#'.
    """
    if color is None:
        return None
    if not isinstance(color, str) or not HEX_COLOR_PATTERN.match(color):
        raise ValueError(f"{param_name} must be a hex string like '#RRGGBB', got {color!r}")

    hex_color = color[1:]
    return {
        "red": int(hex_color[0:2], 16) / 255.0,
        "green": int(hex_color[2:4], 16) / 255.0,
        "blue": int(hex_color[4:6], 16) / 255.0,
    }


def validate_color(color: str) -> str:
    """Validate an optional #rrggbb colour. Empty means unset."""
    if color:
        _normalize_color(color, "color")
    return color


def validate_font_size(font_size: int) -> int:
    """Validate a font size in points. 0 means unset."""
    if font_size and not MIN_FONT_SIZE <= font_size <= MAX_FONT_SIZE:
        raise ValueError(f"font size must be between {MIN_FONT_SIZE} and {MAX_FONT_SIZE} points")
    return font_size


def validate_named_style(name: str) -> str:
    if name and name not in NAMED_STYLE_MAP:
        raise ValueError(f"invalid named style: {name} (valid: {', '.join(NAMED_STYLE_MAP)})")
    return name


def validate_alignment(alignment: str) -> str:
    if alignment and alignment not in PARAGRAPH_ALIGNMENTS:
        raise ValueError(f"invalid alignment: {alignment} (valid: {', '.join(PARAGRAPH_ALIGNMENTS)})")
    return alignment


def validate_list_type(list_type: str) -> str:
    if not list_type:
        raise ValueError("list type cannot be empty")
    if list_type not in LIST_GLYPH_PRESETS:
        raise ValueError(f"invalid list type: {list_type} (valid: {', '.join(LIST_GLYPH_PRESETS)})")
    return list_type


def validate_list_items(items: list[str] | None) -> list[str]:
    if not items:
        raise ValueError("list items cannot be empty")
    for i, item in enumerate(items):
        if not item.strip():
            raise ValueError(f"list item {i} is empty or whitespace only")
    return items


def validate_indent_level(indent: int) -> int:
    if indent < 0:
        raise ValueError("indent level cannot be negative")
    if indent > MAX_INDENT_LEVEL:
        raise ValueError(f"indent level cannot exceed {MAX_INDENT_LEVEL}")
    return indent


def map_named_style(name: str) -> str | None:
    """Map a template style name (heading1, title, ...) to a Docs namedStyleType."""
    return NAMED_STYLE_MAP.get(name)


def map_list_glyph_preset(list_type: str) -> str | None:
    """Map a template list type (bullet, numbered, ...) to a Docs bulletPreset."""
    return LIST_GLYPH_PRESETS.get(list_type)


def _dimension(points: float) -> dict:
    return {"magnitude": points, "unit": "PT"}


def build_paragraph_style(
    alignment: str = "",
    indent_start: float = 0,
    indent_end: float = 0,
    indent_first_line: float = 0,
    line_spacing: float = 0,
    space_above: float = 0,
    space_below: float = 0,
) -> tuple[dict, list[str]]:
    """
    Build a paragraph style object for an updateParagraphStyle request.

    Zero values are left unset, except indent_first_line which may be negative
    for a hanging indent.

    Args:
        alignment: left, center, right or justify
        indent_start: Left indent in points
        indent_end: Right indent in points
        indent_first_line: First line indent in points
        line_spacing: Line spacing multiple (1.5 = 150%)
        space_above: Space before the paragraph in points
        space_below: Space after the paragraph in points

    Returns:
        Tuple of (paragraph_style_dict, list_of_field_names)
    """
    validate_alignment(alignment)

    paragraph_style = {}
    fields = []

    if alignment:
        paragraph_style["alignment"] = PARAGRAPH_ALIGNMENTS[alignment]
        fields.append("alignment")

    if indent_start > 0:
        paragraph_style["indentStart"] = _dimension(indent_start)
        fields.append("indentStart")

    if indent_end > 0:
        paragraph_style["indentEnd"] = _dimension(indent_end)
        fields.append("indentEnd")

    if indent_first_line != 0:
        paragraph_style["indentFirstLine"] = _dimension(indent_first_line)
        fields.append("indentFirstLine")

    if line_spacing > 0:
        # The API expects a percentage
        paragraph_style["lineSpacing"] = line_spacing * 100
        fields.append("lineSpacing")

    if space_above > 0:
        paragraph_style["spaceAbove"] = _dimension(space_above)
        fields.append("spaceAbove")

    if space_below > 0:
        paragraph_style["spaceBelow"] = _dimension(space_below)
        fields.append("spaceBelow")

    return paragraph_style, fields


def list_indent_style(indent: int) -> tuple[dict, list[str]]:
    """Paragraph style that indents a list by `indent` levels of 36pt."""
    return build_paragraph_style(indent_start=indent * INDENT_PT_PER_LEVEL)


def get_end_index(document: dict) -> int:
    """
    Return the index where appended content lands.

    The body ends with a final newline that cannot be written past, so this is the
    last structural element's endIndex - 1, or 1 for an empty body.
    """
    content = document.get("body", {}).get("content", [])
    if not content:
        return 1
    end_index = content[-1].get("endIndex", 1) - 1
    return max(end_index, 1)


def find_sections(document: dict) -> list[dict]:
    """
    Find heading paragraphs (HEADING_1..HEADING_6) in document order.

    Each section is a dict with heading (stripped text), level, start_index and
    end_index of the heading paragraph. A section's body runs from the heading's
    end_index to the next section's start_index, or to the end of the body.
    """
    sections = []
    for element in document.get("body", {}).get("content", []):
        paragraph = element.get("paragraph")
        if not paragraph:
            continue
        level = HEADING_LEVELS.get(paragraph.get("paragraphStyle", {}).get("namedStyleType", ""))
        if not level:
            continue

        text = "".join(e.get("textRun", {}).get("content", "") for e in paragraph.get("elements", []))
        sections.append(
            {
                "heading": text.strip(),
                "level": level,
                "start_index": element.get("startIndex", 0),
                "end_index": element.get("endIndex", 0),
            }
        )
    return sections
