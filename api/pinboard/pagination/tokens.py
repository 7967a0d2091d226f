"""Opaque wire tokens for pagination cursors."""

import base64
import binascii
import json
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, ValidationError

from ..errors.problem_details import BadRequestError
from .cursor import Cursor, CursorKind


class CursorToken(BaseModel):
    """Serialized form of a cursor inside a token."""

    kind: CursorKind = Field(alias="k", description="Scalar kind of the cursor value")
    value: Union[StrictInt, StrictFloat, StrictStr] = Field(
        alias="v", description="Cursor value; timestamps are ISO-8601 strings"
    )

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_cursor(cls, cursor: Cursor) -> "CursorToken":
        """Create the serialized form of a cursor."""
        value = cursor.value
        if cursor.kind is CursorKind.TIMESTAMP:
            value = value.isoformat()
        return cls(kind=cursor.kind, value=value)

    def to_cursor(self) -> Cursor:
        """Rebuild the cursor.

        Raises:
            ValueError: If the timestamp string is malformed
            TypeError: If the value does not match the kind
        """
        value = self.value
        if self.kind is CursorKind.TIMESTAMP:
            if not isinstance(value, str):
                raise TypeError("Timestamp cursor must be an ISO-8601 string")
            value = datetime.fromisoformat(value)
        return Cursor(self.kind, value)


def encode_cursor(cursor: Optional[Cursor]) -> Optional[str]:
    """Encode a cursor as an opaque URL-safe token.

    Args:
        cursor: Cursor to encode, or None

    Returns:
        Base64url token without padding, or None when no cursor is given
    """
    if cursor is None:
        return None

    token_json = CursorToken.from_cursor(cursor).model_dump_json(by_alias=True)
    encoded = base64.urlsafe_b64encode(token_json.encode("utf-8"))
    return encoded.rstrip(b"=").decode("ascii")


def decode_cursor(token: str) -> Cursor:
    """Decode a cursor token produced by :func:`encode_cursor`.

    Args:
        token: Base64url encoded cursor token

    Returns:
        Decoded cursor

    Raises:
        BadRequestError: If the token is empty or malformed
    """
    if not token:
        raise BadRequestError("Empty cursor provided")

    try:
        padded = token + "=" * (-len(token) % 4)
        token_bytes = base64.urlsafe_b64decode(padded.encode("ascii"))
        token_data = json.loads(token_bytes.decode("utf-8"))
        return CursorToken.model_validate(token_data).to_cursor()
    except ValidationError as e:
        raise BadRequestError(f"Invalid cursor format: {e.error_count()} validation errors")
    except (ValueError, TypeError, binascii.Error, UnicodeError) as e:
        raise BadRequestError(f"Invalid cursor format: {e}")
