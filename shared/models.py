"""
Data models for audio files stored in the soundboard bucket.

These records are transient: they are built from storage responses on every
call and never persisted locally.
"""

from dataclasses import dataclass, asdict, field
from typing import Dict, Optional, Any
from datetime import datetime


@dataclass
class AudioFile:
    """
    Represents a single audio clip in the bucket.

    Attributes:
        key: Storage object key (always ends in .mp3)
        name: Display name (same as the key)
        size: Size in bytes
        last_modified: Last modification time reported by storage
        url: Public download URL derived from the configured base URL
    """
    key: str
    name: str
    size: int
    last_modified: datetime
    url: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data['last_modified'] = self.last_modified.isoformat()
        return data


@dataclass
class FileInfo:
    """Metadata returned by a head probe on a single object."""
    size: int
    last_modified: datetime
    content_type: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class BucketStats:
    """Aggregate numbers for the audio files in the bucket."""
    file_count: int = 0
    total_size: int = 0


@dataclass
class UploadProgress:
    """Progress information for file uploads."""
    bytes_uploaded: int
    total_bytes: int
    percentage: float
    file_name: str

    def __str__(self) -> str:
        return f"{self.file_name}: {self.percentage:.1f}% ({self.bytes_uploaded}/{self.total_bytes} bytes)"
