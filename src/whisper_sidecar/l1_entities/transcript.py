"""Transcript segment entity."""

from __future__ import annotations

from pydantic import BaseModel, Field


def join_segment_text(segments: list[TranscriptSegment]) -> str:
    """Join segment texts with single spaces and trim the result."""
    return ' '.join(seg.text for seg in segments).strip()


class TranscriptSegment(BaseModel):
    """A single transcribed speech segment."""

    text: str
    start: float = Field(description='Offset in seconds from the start of the audio buffer')
    end: float = Field(description='Offset in seconds from the start of the audio buffer')
