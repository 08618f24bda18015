from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import AuthenticateRequest
from server.models.responses import AuthenticateResponse
from shared.clients.tokenstore.models.AuthToken import format_expiry

router = APIRouter(tags=["auth"])


@router.post("/authenticate", response_model=AuthenticateResponse)
async def authenticate(
    request: Request,
    body: AuthenticateRequest,
    _: None = Depends(verify_api_key),
) -> AuthenticateResponse:
    """Authenticate against the invoicing platform and store the issued token.

    The token itself is never returned to the caller.

    Args:
        request (Request): FastAPI request (provides app.state.invoicing_client).
        body (AuthenticateRequest): Login and password.
        _ (None): Auth dependency result (unused).

    Returns:
        AuthenticateResponse: Display data and the token expiry.
    """
    invoicing_client = request.app.state.invoicing_client
    token_store = request.app.state.token_store
    result = await invoicing_client.do_authenticate(body.login, body.password)
    return AuthenticateResponse(
        login=body.login,
        displayName=result.displayName,
        language=result.language,
        expiresAt=format_expiry(token_store.decode_token_expiry(result.token)),
    )
