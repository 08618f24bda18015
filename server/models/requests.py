from pydantic import BaseModel, Field


class AuthenticateRequest(BaseModel):
    login: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)
