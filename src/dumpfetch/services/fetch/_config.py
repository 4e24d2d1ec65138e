"""
Configuration constants for the fetch pipeline.
"""

# Hash used to verify downloads
DIGEST_ALGORITHM = "sha1"

# Read size for streaming response bodies
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MB

# Per-request timeout
DEFAULT_REQUEST_TIMEOUT = 60.0  # seconds

# First wait between attempts; doubles after each failure
INITIAL_BACKOFF = 1.0  # seconds

# Attempts stop once the next wait would reach this ceiling
MAX_BACKOFF = 3600.0  # 1 hour
