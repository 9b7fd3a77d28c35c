"""File serving endpoint.

``GET /getfilesrc/{token}`` streams the file a token points at. The token is
the only credential; there is no other authentication on this route.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from filetoken.api.deps import get_file_gateway
from filetoken.services.file_gateway import ErrorResult, FileGateway

router = APIRouter()


@router.get(
    "/{token}",
    summary="Get File by Token",
    response_class=StreamingResponse,
    responses={
        200: {"description": "File contents with inline disposition"},
        404: {"description": "Token not found, token expired or file not found"},
        500: {"description": "Unexpected failure"},
    },
)
async def get_file_source(
    token: str,
    gateway: Annotated[FileGateway, Depends(get_file_gateway)],
) -> Response:
    """
    Serve the file behind a token.

    - 200: streamed body with Content-Type sniffed from the file contents,
      inline Content-Disposition, Content-Length and public caching
    - 404: plain text ``Token not found``, ``Token expired`` or ``File not found``
    - 500: plain text generic message, no internal detail
    """
    result = await gateway.resolve_and_stream(token)

    if isinstance(result, ErrorResult):
        return PlainTextResponse(result.message, status_code=result.status_code)

    headers = result.headers
    return StreamingResponse(
        result.iter_bytes(),
        media_type=headers.pop("Content-Type"),
        headers=headers,
    )
