"""orjson-backed JSON responses.

``ORJSONResponse`` is the application's default response class, so every
JSON payload (message envelopes and error responses alike) goes through
orjson.
"""

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ORJSONResponse(JSONResponse):
    """JSON response rendered with orjson.

    Pydantic models are dumped in JSON mode using their aliases, so the
    camelCase field names of the message schemas survive direct returns.
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - accepts any JSON-serializable content
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json", by_alias=True)

        return orjson.dumps(content, option=orjson.OPT_NON_STR_KEYS)
