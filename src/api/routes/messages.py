"""Routes for the ``/messages`` resource.

Every route requires a bearer token. Show, update and destroy additionally
require ownership of the message or the admin scope.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Query, Request, Response, status
from pydantic import ValidationError as PydanticValidationError

from src.api.constants import PAGE_PARAM, PER_PAGE_PARAM
from src.api.dependencies import CurrentActor, Handler
from src.api.middleware.error_handler import group_field_errors
from src.api.schemas.errors import ErrorResponse
from src.api.schemas.messages import (
    MessageCollectionResponse,
    MessageCreate,
    MessageOwner,
    MessageResponse,
    MessageUpdate,
)
from src.core.config import get_settings
from src.core.exceptions import ValidationError
from src.core.types import FieldMap, JsonObject
from src.infrastructure.constants import MAX_INTEGER_VALUE

router = APIRouter(
    prefix="/messages",
    tags=["messages"],
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ErrorResponse},
    },
)

_ITEM_ERRORS = {
    status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
}


def _resolve_paging(
    page: int | None, per_page: int | None
) -> tuple[int | None, int | None]:
    """Fill in the missing half of a paging request from config."""
    if page is None and per_page is None:
        return None, None

    pagination_config = get_settings().pagination_config
    if per_page is not None and per_page > pagination_config.max_per_page:
        raise ValidationError.for_field(
            PER_PAGE_PARAM,
            f"Must not be greater than {pagination_config.max_per_page}.",
        )
    page = page or 1
    per_page = per_page or pagination_config.default_per_page

    # The row offset has to fit a BIGINT as well.
    last_page = MAX_INTEGER_VALUE // per_page + 1
    if page > last_page:
        raise ValidationError.for_field(
            PAGE_PARAM, f"Must not be greater than {last_page}."
        )
    return page, per_page


@router.get(
    "",
    response_model=MessageCollectionResponse,
    response_model_exclude_none=True,
)
async def index(
    request: Request,
    actor: CurrentActor,
    handler: Handler,
    page: Annotated[int | None, Query(ge=1, le=MAX_INTEGER_VALUE)] = None,
    per_page: Annotated[int | None, Query(ge=1, le=MAX_INTEGER_VALUE)] = None,
) -> JsonObject:
    """List messages. Any other query parameter filters on that field.

    A comma-separated value matches any of the listed values.
    """
    filters = {
        name: value
        for name, value in request.query_params.items()
        if name not in {PAGE_PARAM, PER_PAGE_PARAM}
    }
    page, per_page = _resolve_paging(page, per_page)
    return await handler.index(actor, filters, page=page, per_page=per_page)


@router.get("/{message_id}", response_model=MessageResponse, responses=_ITEM_ERRORS)
async def show(message_id: str, actor: CurrentActor, handler: Handler) -> JsonObject:
    return await handler.show(actor, message_id)


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
    openapi_extra={
        "requestBody": {
            "content": {
                "application/json": {
                    "schema": MessageCreate.model_json_schema(by_alias=True)
                }
            }
        }
    },
)
async def store(
    payload: Annotated[dict[str, Any], Body()],
    actor: CurrentActor,
    handler: Handler,
) -> JsonObject:
    """Create a message.

    The body is validated here rather than by FastAPI so that body errors and
    an unknown ``userId`` come back in one response.
    """
    try:
        fields: FieldMap = MessageCreate.model_validate(payload).model_dump()
    except PydanticValidationError as e:
        field_errors = group_field_errors(e.errors())
        owner: FieldMap = {}
        if "userId" not in field_errors:
            owner = MessageOwner.model_validate(payload).model_dump()
        return await handler.store(actor, owner, field_errors)
    return await handler.store(actor, fields)


@router.put("/{message_id}", response_model=MessageResponse, responses=_ITEM_ERRORS)
@router.patch("/{message_id}", response_model=MessageResponse, responses=_ITEM_ERRORS)
async def update(
    message_id: str,
    actor: CurrentActor,
    handler: Handler,
    body: Annotated[MessageUpdate | None, Body()] = None,
) -> JsonObject:
    """Change subject and/or message; omitted fields keep their value."""
    fields = body.model_dump(exclude_unset=True, exclude_none=True) if body else {}
    return await handler.update(actor, message_id, fields)


@router.delete(
    "/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_ITEM_ERRORS,
)
async def destroy(message_id: str, actor: CurrentActor, handler: Handler) -> Response:
    await handler.destroy(actor, message_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
