"""Type aliases for dynamic data structures throughout the application.

This module centralizes type definitions for data that cannot be statically
typed, providing clear semantic meaning for these types.

All types defined here should be JSON-serializable to support logging,
API responses, and persistence layers.
"""

from collections.abc import Mapping

# JSON-compatible type that represents any valid JSON value
# Used for API responses, request bodies, and serialization
type JsonValue = (
    dict[str, "JsonValue"] | list["JsonValue"] | str | int | float | bool | None
)

# Single serialized resource as returned inside a response envelope
type JsonObject = dict[str, JsonValue]

# Field name -> value mapping passed to repositories for writes and filters
type FieldMap = Mapping[str, object]
