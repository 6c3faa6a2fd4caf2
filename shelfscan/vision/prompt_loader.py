from pathlib import Path

from shelfscan.pipeline.exceptions import VisionError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"

GENRES = (
    "רומן",
    "מתח",
    "מדע בדיוני",
    "פנטזיה",
    "ביוגרפיה",
    "היסטוריה",
    "מדע",
    "ילדים",
    "נוער",
    "עיון",
    "שירה",
    "אחר",
)

AGE_RANGES = ("0-3", "4-6", "7-9", "10-12", "13-15", "16-18", "מבוגרים", "כל הגילאים")


def _quoted(labels: tuple[str, ...]) -> str:
    return ", ".join(f"'{label}'" for label in labels)


def load_prompt(name: str, prompt_dir: Path | None = None) -> str:
    """Read a bundled prompt file.

    Raises:
        VisionError: if the file cannot be read.
    """
    path = (prompt_dir or _DEFAULT_PROMPT_DIR) / name
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise VisionError(f"Failed to load prompt template: {exc}") from exc


def build_simple_prompt(prompt_dir: Path | None = None) -> str:
    """Instruction for detection from the image alone."""
    return load_prompt("book_detection_prompt.txt", prompt_dir).format(
        genres=_quoted(GENRES),
        age_ranges=_quoted(AGE_RANGES),
    )


def build_ocr_prompt(structured_text: str, prompt_dir: Path | None = None) -> str:
    """Instruction for detection from the image plus structured OCR output."""
    return load_prompt("ocr_book_detection_prompt.txt", prompt_dir).format(
        structured_text=structured_text,
        genres=_quoted(GENRES),
        age_ranges=_quoted(AGE_RANGES),
    )


def load_system_prompt(prompt_dir: Path | None = None) -> str:
    return load_prompt("system_prompt.txt", prompt_dir).strip()
