from pydantic import BaseModel, ConfigDict, Field


class AuthenticationResponse(BaseModel):
    """
    Parsed answer of the platform's authentication endpoint.
    """
    model_config = ConfigDict(extra="ignore")

    token: str = Field(repr=False)
    displayName: str | None = None
    language: str | None = None
