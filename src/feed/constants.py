"""HTTP and endpoint constants for the upstream feed.

Centralizes all feed-related constants to avoid duplication across modules.
"""

# Upstream endpoints
DEFAULT_FEED_BASE_URL = "https://hacker-news.firebaseio.com/v0"
TOP_STORIES_PATH = "/topstories.json"
ITEM_PATH_TEMPLATE = "/item/{identifier}.json"

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Timeouts
DEFAULT_TIMEOUT_SECONDS = 10.0

# Response Size Limits
DEFAULT_MAX_RESPONSE_SIZE_BYTES = 1024 * 1024  # 1 MiB

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192

DEFAULT_USER_AGENT = "hn-delta-relay/0.1"

# Upstream item type eligible for delivery
STORY_TYPE = "story"
