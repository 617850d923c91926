import logging
import re

import pdfplumber

from domain.errors import ExtractionError

logger = logging.getLogger(__name__)

_NON_TEXT = re.compile(r"[^\w\s.,!?:;\-()\[\]{}\"'@#$%&*+=/\\|~`^<>]")
_PAGE_BANNER = re.compile(r"--\s*\d+\s+of\s+\d+\s*--", re.I)
_PAGE_COUNTER = re.compile(r"\b\d+\s+of\s+\d+\b", re.I)


def clean_text(text: str) -> str:
    """Replace non-text symbols with spaces and collapse whitespace."""
    return re.sub(r"\s+", " ", _NON_TEXT.sub(" ", text or "")).strip()


def format_for_markdown(text: str) -> str:
    """Display form of raw page text: page markers dropped, line breaks kept."""
    text = _PAGE_BANNER.sub("", text or "")
    text = _PAGE_COUNTER.sub("", text)
    lines = [re.sub(r"[ \t]+", " ", line).strip() for line in text.splitlines()]
    text = "\n".join(lines)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def extract_raw_text(path: str) -> str:
    try:
        with pdfplumber.open(path) as pdf:
            return "\n".join((page.extract_text() or "") for page in pdf.pages)
    except FileNotFoundError as exc:
        raise ExtractionError(f"File not found: {path}") from exc
    except Exception as exc:
        logger.exception("pdfplumber failed on %s", path)
        raise ExtractionError(f"Failed to extract text from {path}: {exc}") from exc


def extract_text(path: str) -> str:
    return clean_text(extract_raw_text(path))
