from abc import abstractmethod
from datetime import datetime

import httpx
import jwt
import pytz

from shared.clients.ClientInterface import ClientInterface
from shared.clients.tokenstore.models.AuthToken import AuthToken
from shared.errors.exceptions import TokenNotFoundError, TokenStoreError
from shared.helper.HelperConfig import HelperConfig


class TokenStoreClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "tokenstore"
        """
        return "tokenstore"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_tokens(self) -> str:
        """
        Returns the endpoint path of the token collection.

        Returns:
            str: The endpoint path (e.g. "/rest/v1/tokens")

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_upsert_params(self) -> dict:
        """
        Returns the query parameters for an upsert request (e.g. the conflict target).
        """
        pass

    @abstractmethod
    def get_upsert_headers(self) -> dict:
        """
        Returns the extra headers that turn an insert into an upsert on the backend.
        """
        pass

    @abstractmethod
    def get_fetch_params(self, subscription_id: str) -> dict:
        """
        Returns the query parameters filtering the token collection by subscription id.

        Args:
            subscription_id (str): The subscription to look up.
        """
        pass

    ########### RESPONSE PARSER ##############
    @abstractmethod
    def _parse_token_records(self, response: list | dict) -> list[AuthToken]:
        """
        Parses the raw fetch response into token records.

        Args:
            response (list | dict): The decoded JSON body of the fetch request.

        Returns:
            list[AuthToken]: All matching records.

        Raises:
            Exception: If required fields are missing or the data format is invalid.
        """
        pass

    @abstractmethod
    def _extract_error_message(self, response: httpx.Response) -> str:
        """
        Extracts a human readable error message from a failed backend response.
        """
        pass

    ##########################################
    ############ TOKEN HELPERS ###############
    ##########################################

    @staticmethod
    def decode_token_expiry(token: str) -> datetime:
        """
        Reads the expiration claim of a three-segment JWT.

        The signature is not verified, the platform owns the signing key. The "exp" claim,
        in seconds since the epoch, is returned as an aware UTC datetime.

        Args:
            token (str): The bearer token returned by the platform.

        Returns:
            datetime: Expiration time in UTC.

        Raises:
            TokenStoreError: If the token is not a JWT or carries no usable "exp" claim.
        """
        try:
            payload = jwt.decode(token, options={"verify_signature": False, "verify_exp": False, "require": ["exp"]})
        except jwt.PyJWTError as e:
            raise TokenStoreError(f"Malformed token: {e}") from e
        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TokenStoreError("Malformed token: missing or non-numeric 'exp' claim.")
        try:
            return datetime.fromtimestamp(exp, tz=pytz.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise TokenStoreError(f"Malformed token: 'exp' claim out of range ({e}).") from e

    def build_token(self, subscription_id: str, login: str, token: str) -> AuthToken:
        """
        Builds the record to store for a freshly issued token.

        Raises:
            TokenStoreError: If the expiration claim cannot be decoded.
        """
        return AuthToken(
            subscription_id=subscription_id,
            login=login,
            token=token,
            expires_at=self.decode_token_expiry(token),
        )

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_upsert_token(self, token: AuthToken) -> None:
        """
        Writes the token record, replacing any record stored for the same subscription id.

        Args:
            token (AuthToken): The record to store.

        Raises:
            TokenStoreError: If the backend rejects the write.
        """
        self.logging.info(
            "Storing token for subscription '%s' in %s (token %s..., expires at %s).",
            token.subscription_id,
            self._get_engine_name(),
            token.token[:8],
            token.to_record()["expires_at"],
        )
        try:
            resp = await self.do_request(
                method="POST",
                endpoint=self._get_endpoint_tokens(),
                json=[token.to_record()],
                params=self.get_upsert_params(),
                additional_headers=self.get_upsert_headers(),
            )
        except httpx.HTTPError as e:
            raise TokenStoreError(f"Failed to store token: {e}") from e
        if not resp.is_success:
            message = self._extract_error_message(resp)
            self.logging.error("Failed to store token: %s", message)
            raise TokenStoreError(f"Failed to store token: {message}")

    async def do_fetch_token(self, subscription_id: str) -> AuthToken:
        """
        Reads the token stored for a subscription. Expiry is not checked here.

        Args:
            subscription_id (str): The subscription to look up.

        Returns:
            AuthToken: The single matching record.

        Raises:
            TokenNotFoundError: If no record exists for the subscription.
            TokenStoreError: If the backend fails or returns more than one record.
        """
        try:
            resp = await self.do_request(
                method="GET",
                endpoint=self._get_endpoint_tokens(),
                params=self.get_fetch_params(subscription_id),
            )
        except httpx.HTTPError as e:
            raise TokenStoreError(f"Failed to read token: {e}") from e
        if not resp.is_success:
            message = self._extract_error_message(resp)
            self.logging.error("Failed to read token for subscription '%s': %s", subscription_id, message)
            raise TokenStoreError(f"Failed to read token: {message}")

        try:
            records = self._parse_token_records(resp.json())
        except Exception as e:
            raise TokenStoreError(f"Invalid token record returned by {self._get_engine_name()}: {e}") from e

        if not records:
            raise TokenNotFoundError(subscription_id)
        if len(records) > 1:
            raise TokenStoreError(f"Expected one token for subscription '{subscription_id}', found {len(records)}.")
        return records[0]
