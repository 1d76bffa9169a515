from __future__ import annotations

import re

# ============================================================================
# Font metrics -- character width estimates for the diagram label font.
# ============================================================================

# CJK unified ideographs render about one em wide
_WIDE_CHAR = re.compile(r"[\u4e00-\u9fa5]")

NARROW_CHAR_RATIO = 0.6


def estimate_text_width(text: str, font_size: float) -> float:
    """Label width in px: wide glyphs count one font size, others 0.6 of it."""
    width = 0.0
    for char in text:
        if _WIDE_CHAR.match(char):
            width += font_size
        else:
            width += font_size * NARROW_CHAR_RATIO
    return width


# Fixed font sizes (px)
FONT_SIZES = {
    "entity": 18,
    "attribute": 15,
    "relationship": 16,
}

# ============================================================================
# Shape sizing -- bounding boxes of the three Chen shapes
# ============================================================================

ENTITY_PADDING = {"horizontal": 10, "vertical": 20}
ENTITY_MIN_SIZE = (80, 50)

ATTRIBUTE_PADDING = {"horizontal": 16, "vertical": 16}
ATTRIBUTE_MIN_SIZE = (60, 40)

RELATIONSHIP_PADDING = {"horizontal": 24, "vertical": 16}
RELATIONSHIP_MIN_SIZE = (80, 40)
# Diamonds are flattened: half-height never exceeds this share of half-width
RELATIONSHIP_FLATTEN = 0.6


def entity_box(label: str) -> tuple[float, float]:
    """Rectangle size for an entity label."""
    font_size = FONT_SIZES["entity"]
    text_w = estimate_text_width(label, font_size)
    min_w, min_h = ENTITY_MIN_SIZE
    return (
        max(min_w, text_w + ENTITY_PADDING["horizontal"] * 2),
        max(min_h, font_size + ENTITY_PADDING["vertical"]),
    )


def attribute_box(label: str) -> tuple[float, float]:
    """Ellipse bounding box for an attribute label."""
    font_size = FONT_SIZES["attribute"]
    text_w = estimate_text_width(label, font_size)
    min_w, min_h = ATTRIBUTE_MIN_SIZE
    return (
        max(min_w, text_w + ATTRIBUTE_PADDING["horizontal"] * 2),
        max(min_h, font_size + ATTRIBUTE_PADDING["vertical"]),
    )


def relationship_box(label: str) -> tuple[float, float]:
    """Diamond bounding box for a relationship label."""
    font_size = FONT_SIZES["relationship"]
    text_w = estimate_text_width(label, font_size)
    min_w, min_h = RELATIONSHIP_MIN_SIZE
    required_w = text_w + RELATIONSHIP_PADDING["horizontal"] * 2
    required_h = font_size + RELATIONSHIP_PADDING["vertical"] * 2

    half_w = max(min_w / 2, required_w / 2)
    half_h = max(min_h / 2, min(half_w * RELATIONSHIP_FLATTEN, required_h / 2))
    return half_w * 2, half_h * 2


SHAPE_BOXES = {
    "entity": entity_box,
    "attribute": attribute_box,
    "relationship": relationship_box,
}


def shape_box(kind: str, label: str) -> tuple[float, float]:
    if kind not in SHAPE_BOXES:
        raise ValueError(f"Unknown node kind: {kind!r}")
    return SHAPE_BOXES[kind](label)
