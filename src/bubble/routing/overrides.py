"""Deterministic routing overrides applied before the classifier."""

import re
from dataclasses import dataclass

SHORTS_PATTERN = re.compile(r"youtube\.com/shorts/([^\"&?/\s]{11})")
VIDEO_PATTERN = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)"
    r"([^\"&?/\s]{11})"
)


@dataclass(frozen=True)
class VideoOverride:
    """A YouTube link found in the prompt."""

    kind: str  # "Short" or "Video"
    video_id: str
    url: str

    @property
    def prompt(self) -> str:
        """Targeted search query for the video's metadata."""
        return (
            f"Find details for YouTube {self.kind} ID: {self.video_id}. "
            f"Title, Channel, and Summary. URL: {self.url}"
        )


def detect_video_override(prompt: str) -> VideoOverride | None:
    """Find a YouTube Short or video link in a prompt.

    Shorts take priority over other link shapes.
    """
    if match := SHORTS_PATTERN.search(prompt):
        return VideoOverride(kind="Short", video_id=match.group(1), url=match.group(0))
    if match := VIDEO_PATTERN.search(prompt):
        return VideoOverride(kind="Video", video_id=match.group(1), url=match.group(0))
    return None
