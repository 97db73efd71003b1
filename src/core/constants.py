"""Core application constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Security and redaction
REDACTED = "[REDACTED]"

# Authorization
ADMIN_SCOPE = "admin"
TOKEN_SCOPES_CLAIM = "scopes"

# Timestamp rendering for API payloads
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
