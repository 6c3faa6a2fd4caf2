"""Turn raw OCR annotations into positioned blocks grouped per shelf row."""

from functools import cmp_to_key
from typing import Any

from shelfscan.vision.models import (
    ORIENTATION_HORIZONTAL,
    ORIENTATION_VERTICAL,
    OcrBlock,
    OcrResult,
)

SAME_LINE_TOLERANCE_PX = 20
VERTICAL_ASPECT_RATIO = 1.5
FULL_TEXT_PREVIEW_CHARS = 300


def block_from_annotation(annotation: dict[str, Any]) -> OcrBlock:
    """Build an OcrBlock from one Vision API ``textAnnotations`` entry."""
    vertices = (annotation.get("boundingPoly") or {}).get("vertices") or []
    xs = [vertex.get("x", 0) for vertex in vertices]
    ys = [vertex.get("y", 0) for vertex in vertices]

    center_x = sum(xs) / len(xs) if xs else 0
    center_y = sum(ys) / len(ys) if ys else 0
    width = abs(xs[1] - xs[0]) if len(xs) >= 2 else 0
    height = abs(ys[2] - ys[0]) if len(ys) >= 3 else 0
    orientation = (
        ORIENTATION_VERTICAL if height > width * VERTICAL_ASPECT_RATIO else ORIENTATION_HORIZONTAL
    )

    return OcrBlock(
        text=annotation.get("description", ""),
        confidence=float(annotation.get("confidence") or 0),
        center_x=round(center_x),
        center_y=round(center_y),
        top=ys[0] if ys else 0,
        left=xs[0] if xs else 0,
        orientation=orientation,
    )


def _reading_order(a: OcrBlock, b: OcrBlock) -> int:
    y_diff = a.top - b.top
    if abs(y_diff) < SAME_LINE_TOLERANCE_PX:
        return a.left - b.left
    return y_diff


def sort_blocks(blocks: list[OcrBlock]) -> list[OcrBlock]:
    """Top-to-bottom; blocks on roughly the same line go left-to-right."""
    return sorted(blocks, key=cmp_to_key(_reading_order))


def parse_annotations(annotations: list[dict[str, Any]]) -> OcrResult:
    """The first annotation is the full text; the rest are individual blocks."""
    if not annotations:
        return OcrResult()
    full_text = annotations[0].get("description", "")
    blocks = [block_from_annotation(annotation) for annotation in annotations[1:]]
    return OcrResult(full_text=full_text, blocks=sort_blocks(blocks))


def group_blocks(blocks: list[OcrBlock], threshold_px: int) -> list[list[OcrBlock]]:
    """Split consecutive blocks wherever the vertical gap reaches ``threshold_px``."""
    if not blocks:
        return []
    groups: list[list[OcrBlock]] = []
    current = [blocks[0]]
    for previous, block in zip(blocks, blocks[1:]):
        if abs(block.center_y - previous.center_y) < threshold_px:
            current.append(block)
        else:
            groups.append(current)
            current = [block]
    groups.append(current)
    return groups


def format_structured_text(ocr: OcrResult, threshold_px: int) -> str:
    """Render OCR output as the structured listing embedded in the prompt."""
    lines = [
        "Full text preview:",
        ocr.full_text[:FULL_TEXT_PREVIEW_CHARS] + "...",
        "",
        "Structured text blocks:",
    ]
    for index, group in enumerate(group_blocks(ocr.blocks, threshold_px), start=1):
        lines.append(f"\nGroup {index} (vertical position ~{group[0].center_y}):")
        for block in group:
            marker = "↕" if block.orientation == ORIENTATION_VERTICAL else "↔"
            confidence = round(block.confidence * 100)
            lines.append(
                f'  {marker} "{block.text}" '
                f"(x:{block.center_x}, y:{block.center_y}, conf:{confidence}%)"
            )
    return "\n".join(lines)
