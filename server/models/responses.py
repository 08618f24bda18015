from pydantic import BaseModel


class AuthenticateResponse(BaseModel):
    login: str
    displayName: str | None
    language: str | None
    expiresAt: str


class ErrorResponse(BaseModel):
    error: str
    detail: str
