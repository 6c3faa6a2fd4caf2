"""Tests for the bundled detection prompts."""

from pathlib import Path

import pytest

from shelfscan.pipeline.exceptions import VisionError
from shelfscan.vision.prompt_loader import (
    AGE_RANGES,
    GENRES,
    build_ocr_prompt,
    build_simple_prompt,
    load_prompt,
    load_system_prompt,
)


class TestBuildPrompts:
    def test_simple_prompt_lists_label_sets(self) -> None:
        prompt = build_simple_prompt()
        for label in GENRES + AGE_RANGES:
            assert f"'{label}'" in prompt
        assert '"series_number": 1' in prompt

    def test_ocr_prompt_embeds_structured_text(self) -> None:
        prompt = build_ocr_prompt('Group 1:\n  ↕ "Dune {x}"')
        assert 'Group 1:\n  ↕ "Dune {x}"' in prompt
        assert "STRUCTURED OCR DATA START" in prompt
        assert "'מבוגרים'" in prompt

    def test_system_prompt_mentions_gershayim(self) -> None:
        assert "Gershayim" in load_system_prompt()

    def test_custom_prompt_dir(self, tmp_path: Path) -> None:
        (tmp_path / "book_detection_prompt.txt").write_text("Genres: {genres} / {age_ranges}")
        prompt = build_simple_prompt(tmp_path)
        assert prompt.startswith("Genres: 'רומן'")

    def test_missing_file_raises_error(self) -> None:
        with pytest.raises(VisionError, match="Failed to load prompt"):
            load_prompt("missing.txt", Path("/nonexistent"))
