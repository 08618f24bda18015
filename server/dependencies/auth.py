import hmac

from fastapi import Header, HTTPException, Request

from shared.errors.exceptions import ConfigurationError
from shared.helper.HelperConfig import HelperConfig


def load_api_key(helper_config: HelperConfig) -> str:
    """Read the inbound API key once at startup.

    Raises:
        ConfigurationError: If API_SERVER_API_KEY is not set.
    """
    try:
        return helper_config.get_string_val("API_SERVER_API_KEY")
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


async def verify_api_key(request: Request, x_api_key: str | None = Header(default=None)) -> None:
    """Compare the X-Api-Key header with the key loaded at startup (app.state.api_key).

    Raises:
        HTTPException: 401 if the header is missing or does not match.
    """
    expected_key = request.app.state.api_key
    if not x_api_key or not hmac.compare_digest(x_api_key, expected_key):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
