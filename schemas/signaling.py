import math
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator


def _all_finite(value: Any) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, dict):
        return all(_all_finite(item) for item in value.values())
    if isinstance(value, list):
        return all(_all_finite(item) for item in value)
    return True


class JoinMessage(BaseModel):
    type: Literal["join"]
    room: str = Field(min_length=1)


class NegotiationMessage(BaseModel):
    type: Literal["offer", "answer", "ice-candidate"]
    room: str = Field(min_length=1)
    # Opaque to the relay, forwarded as-is
    payload: Any = None

    @field_validator("payload")
    @classmethod
    def payload_must_be_valid_json(cls, value: Any) -> Any:
        # 1e400 or NaN would be re-serialized as Infinity/NaN, which peers cannot parse
        if not _all_finite(value):
            raise ValueError("payload contains a non-finite number")
        return value


InboundMessage = Annotated[Union[JoinMessage, NegotiationMessage], Field(discriminator="type")]

inbound_message_adapter = TypeAdapter(InboundMessage)
