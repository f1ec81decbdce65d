"""Shared utility functions for AuraNotes."""

import re


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapping LLM responses."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```\w*\n?", "", text)
        text = re.sub(r"\n?```$", "", text)
    return text.strip()


def slugify_filename(title: str, suffix: str = ".md") -> str:
    """Turn a note title into a lower-case, filesystem-safe file name."""
    stem = re.sub(r"[^a-z0-9]", "_", title.lower()) or "note"
    return f"{stem}{suffix}"
