import httpx

from shared.clients.tokenstore.TokenStoreClientInterface import TokenStoreClientInterface
from shared.clients.tokenstore.models.AuthToken import AuthToken
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class TokenStoreClientSupabase(TokenStoreClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")
        self._table = self.get_config_val("TABLE", default="tokens", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Supabase"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None, reject_placeholder=True),
            EnvConfig(env_key="API_KEY", val_type="string", default=None, reject_placeholder=True),
            EnvConfig(env_key="TABLE", val_type="string", default="tokens"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        # postgrest behind the supabase gateway wants the key twice
        return {"apikey": self._api_key, "Authorization": f"Bearer {self._api_key}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/rest/v1/"

    def _get_endpoint_tokens(self) -> str:
        return f"/rest/v1/{self._table}"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_upsert_params(self) -> dict:
        return {"on_conflict": "subscription_id"}

    def get_upsert_headers(self) -> dict:
        return {"Prefer": "resolution=merge-duplicates,return=minimal"}

    def get_fetch_params(self, subscription_id: str) -> dict:
        return {"subscription_id": f"eq.{subscription_id}", "select": "*"}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_token_records(self, response: list | dict) -> list[AuthToken]:
        if not isinstance(response, list):
            raise ValueError("expected a list of rows")
        return [AuthToken.model_validate({**row, "login": row.get("login") or ""}) for row in response]

    def _extract_error_message(self, response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict):
            return body.get("message") or body.get("error") or response.text
        return response.text
