"""Decoding options for a single transcription call."""

from __future__ import annotations

from pydantic import BaseModel

AUTO_LANGUAGE = 'auto'


class DecodingOptions(BaseModel):
    """Language hint plus the fixed token filters every transcription uses."""

    language: str | None = None  # None → automatic language detection
    skip_special_tokens: bool = True
    without_timestamps: bool = True

    @classmethod
    def for_language(cls, language: str | None) -> DecodingOptions:
        """Build options from a command's language field. Absent or 'auto' means detect."""
        if language is None or language == AUTO_LANGUAGE:
            return cls()
        return cls(language=language)
