"""Error response schema shared by the key-value endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Body returned for every failed key-value request.

    Matches the shape FastAPI uses for ``HTTPException`` so clients can
    handle framework and store errors the same way.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"detail": "Key not found"},
                {"detail": "Not possible to grayscale this type of value"},
            ]
        }
    )

    detail: str = Field(
        ...,
        description="Short human-readable description of the failure",
        examples=["Key not found"]
    )


def error_responses(*status_codes: int) -> dict[int | str, dict]:
    """Build an OpenAPI ``responses`` mapping for the given error statuses."""
    descriptions = {
        400: "Declared image could not be decoded",
        403: "Operation is not supported for this type of value",
        404: "Key not found",
        500: "Store unavailable or image could not be encoded",
    }
    return {
        code: {"model": ErrorResponse, "description": descriptions[code]}
        for code in status_codes
    }
