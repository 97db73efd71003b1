"""API-related constants."""

# HTTP Status Codes
HTTP_500_INTERNAL_SERVER_ERROR = 500

# HTTP Headers
CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

# Request logging
MAX_USER_AGENT_LENGTH = 200

# Security
DEFAULT_HSTS_MAX_AGE = 31536000  # 1 year in seconds

# Collection query parameters consumed by paging, never used as filters
PAGE_PARAM = "page"
PER_PAGE_PARAM = "per_page"
