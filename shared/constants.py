"""
Shared constants used across the soundboard storage tools.
"""

# Audio formats
AUDIO_EXTENSION = ".mp3"
DEFAULT_CONTENT_TYPE = "audio/mpeg"

# Upload settings
CACHE_CONTROL = "max-age=31536000"  # 1 year
UPLOADED_BY = "rdp-soundboard"
MULTIPART_THRESHOLD = 8 * 1024 * 1024  # 8MB
MULTIPART_CHUNK_SIZE = 8 * 1024 * 1024  # 8MB

# Listing settings
LIST_MAX_KEYS = 1000  # single page, no pagination

# Cleanup settings
CLEANUP_MIN_SIZE = 1024  # bytes, smaller files are treated as corrupted

# Network settings
DEFAULT_REGION = "ap-south-1"
DEFAULT_STREAM_CHUNK_SIZE = 8192  # bytes

# Error codes botocore reports for a missing object
NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")

# Environment variables
ENV_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
ENV_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
ENV_REGION = "AWS_REGION"
ENV_BUCKET_NAME = "S3_BUCKET_NAME"
ENV_BASE_URL = "S3_BASE_URL"
ENV_ENDPOINT_URL = "S3_ENDPOINT_URL"
