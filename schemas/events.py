from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class InboundFrame(BaseModel):
    event: str
    data: Optional[Any] = None


class JoinQueueRequest(BaseModel):
    role: str
    # "emotion" is what older clients send
    tag: str = Field(validation_alias=AliasChoices("tag", "emotion"))

    @field_validator("role", "tag")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class JoinRoomRequest(BaseModel):
    code: str

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            return value.strip()
        return value
