from pydantic import BaseModel, Field


class DeleteAccountRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
