import secrets

from shared.clients.invoicing.InvoicingClientInterface import InvoicingClientInterface
from shared.clients.invoicing.models.Authentication import AuthenticationResponse
from shared.clients.invoicing.models.FileDescriptor import FileDescriptor
from shared.clients.invoicing.models.Upload import CompletionJob, UploadFile, UploadSession
from shared.clients.tokenstore.TokenStoreClientInterface import TokenStoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

CONTENT_FIELD_NAME = "formFiles"


class InvoicingClientCecurity(InvoicingClientInterface):
    def __init__(self, helper_config: HelperConfig, token_store: TokenStoreClientInterface):
        super().__init__(helper_config=helper_config, token_store=token_store)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")
        self._subscription_id = self.get_config_val("SUBSCRIPTION_ID", default=None, val_type="string")
        api_prefix = self.get_config_val("API_PREFIX", default="/public/v3", val_type="string").strip("/")
        self._api_prefix = f"/{api_prefix}" if api_prefix else ""
        self._channel = self.get_config_val("CHANNEL", default="web", val_type="string")
        self._mail_address = self.get_config_val("MAIL_ADDRESS", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Cecurity"

    def get_subscription_id(self) -> str:
        return self._subscription_id

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None, reject_placeholder=True),
            EnvConfig(env_key="API_KEY", val_type="string", default=None, reject_placeholder=True),
            EnvConfig(env_key="SUBSCRIPTION_ID", val_type="string", default=None, reject_placeholder=True),
            EnvConfig(env_key="API_PREFIX", val_type="string", default="/public/v3"),
            EnvConfig(env_key="CHANNEL", val_type="string", default="web"),
            EnvConfig(env_key="MAIL_ADDRESS", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"X-ApiKey": self._api_key}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    def _get_endpoint_authenticate(self) -> str:
        return f"{self._api_prefix}/accounts/authenticate"

    def _get_endpoint_upload_session(self) -> str:
        return f"{self._api_prefix}/uploads/new"

    def _get_endpoint_upload_content(self, upload_id: str) -> str:
        return f"{self._api_prefix}/uploads/{upload_id}/upload"

    def _get_endpoint_complete_upload(self, upload_id: str) -> str:
        return f"{self._api_prefix}/uploads/{upload_id}/complete"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_authenticate_payload(self, login: str, password: str) -> dict:
        return {"login": login, "password": password}

    def get_upload_session_params(self, subscription_id: str) -> dict:
        return {"subscriptionId": subscription_id}

    def get_upload_session_payload(self, files: list[FileDescriptor]) -> dict:
        return {
            "files": [descriptor.to_session_entry() for descriptor in files],
            "channel": self._channel,
            "mailAddress": self._mail_address,
        }

    def get_upload_content_request(self, files: list[UploadFile]) -> dict:
        if files:
            return {
                "files": [
                    (CONTENT_FIELD_NAME, (upload.file_name, upload.content, upload.content_type))
                    for upload in files
                ]
            }
        # httpx drops the multipart encoding for an empty file list, send a closing boundary only
        boundary = secrets.token_hex(16)
        return {
            "content": f"--{boundary}--\r\n".encode("ascii"),
            "additional_headers": {"Content-Type": f"multipart/form-data; boundary={boundary}"},
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_authenticate(self, response: dict) -> AuthenticationResponse:
        return AuthenticationResponse.model_validate(response)

    def _parse_upload_session(self, response: dict) -> UploadSession:
        return UploadSession(upload_id=str(response["uploadId"]))

    def _parse_completion(self, response: dict) -> CompletionJob:
        return CompletionJob(job_id=str(response["jobId"]))
