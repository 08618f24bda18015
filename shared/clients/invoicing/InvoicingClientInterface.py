from abc import abstractmethod
import math
from numbers import Real

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.invoicing.models.Authentication import AuthenticationResponse
from shared.clients.invoicing.models.FileDescriptor import FileDescriptor
from shared.clients.invoicing.models.Upload import CompletionJob, UploadFile, UploadSession
from shared.clients.tokenstore.TokenStoreClientInterface import TokenStoreClientInterface
from shared.errors.exceptions import (
    AuthenticationError,
    CompletionError,
    ContentUploadError,
    UploadSessionError,
    ValidationError,
)
from shared.helper.HelperConfig import HelperConfig

MIN_FILE_NAME_LENGTH = 5
SOURCE_ID_LENGTH = 36


class InvoicingClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig, token_store: TokenStoreClientInterface):
        super().__init__(helper_config=helper_config)
        self._token_store = token_store

    ##########################################
    ############### CHECKER ##################
    ##########################################

    @staticmethod
    def validate_file(descriptor: FileDescriptor) -> None:
        """
        Checks a single file descriptor before it is announced to the platform.

        Args:
            descriptor (FileDescriptor): The descriptor to check.

        Raises:
            ValidationError: Naming the first offending field.
        """
        if not descriptor.file_name:
            raise ValidationError("fileName", "file name must not be empty.")
        if len(descriptor.file_name) < MIN_FILE_NAME_LENGTH:
            raise ValidationError("fileName", f"'{descriptor.file_name}' is shorter than {MIN_FILE_NAME_LENGTH} characters.")
        size = descriptor.file_size
        if isinstance(size, bool) or not isinstance(size, Real) or math.isnan(size) or size < 0:
            raise ValidationError("fileSize", f"{size!r} is not a non-negative number.")
        if descriptor.source_id is not None and len(descriptor.source_id) != SOURCE_ID_LENGTH:
            raise ValidationError("sourceId", f"must be exactly {SOURCE_ID_LENGTH} characters, got {len(descriptor.source_id)}.")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "invoicing"
        """
        return "invoicing"

    @abstractmethod
    def get_subscription_id(self) -> str:
        """
        Returns the subscription identifier this client acts for.
        """
        pass

    ################ AUTH ##################
    def _get_bearer_header(self, token: str) -> dict:
        """
        Returns the header proving a previous authentication.

        Args:
            token (str): The stored bearer token.
        """
        return {"Authorization": f"Bearer {token}"}

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_authenticate(self) -> str:
        """
        Returns the endpoint path for authentication requests.

        Returns:
            str: The endpoint path (e.g. "/public/v3/accounts/authenticate")

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_upload_session(self) -> str:
        """
        Returns the endpoint path for upload session creation.

        Returns:
            str: The endpoint path (e.g. "/public/v3/uploads/new")

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_upload_content(self, upload_id: str) -> str:
        """
        Returns the endpoint path receiving the file bytes of an upload session.

        Args:
            upload_id (str): The upload session identifier.

        Returns:
            str: The endpoint path (e.g. "/public/v3/uploads/{upload_id}/upload")

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_complete_upload(self, upload_id: str) -> str:
        """
        Returns the endpoint path finalising an upload session.

        Args:
            upload_id (str): The upload session identifier.

        Returns:
            str: The endpoint path (e.g. "/public/v3/uploads/{upload_id}/complete")

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_authenticate_payload(self, login: str, password: str) -> dict:
        """
        Returns the JSON body of an authentication request.
        """
        pass

    @abstractmethod
    def get_upload_session_params(self, subscription_id: str) -> dict:
        """
        Returns the query parameters of a session creation request.
        """
        pass

    @abstractmethod
    def get_upload_session_payload(self, files: list[FileDescriptor]) -> dict:
        """
        Returns the JSON body of a session creation request.

        Args:
            files (list[FileDescriptor]): The already validated descriptors.
        """
        pass

    @abstractmethod
    def get_upload_content_request(self, files: list[UploadFile]) -> dict:
        """
        Returns the do_request() keyword arguments carrying the file bytes
        (either "files" or "content" plus the matching "additional_headers").

        Args:
            files (list[UploadFile]): The raw payloads, possibly empty.
        """
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def _parse_authenticate(self, response: dict) -> AuthenticationResponse:
        """
        Parses the body of a successful authentication request.
        """
        pass

    @abstractmethod
    def _parse_upload_session(self, response: dict) -> UploadSession:
        """
        Parses the body of a successful session creation request.
        """
        pass

    @abstractmethod
    def _parse_completion(self, response: dict) -> CompletionJob:
        """
        Parses the body of a successful completion request.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_authenticate(self, login: str, password: str) -> AuthenticationResponse:
        """
        Authenticates against the platform and stores the issued token for the configured subscription.

        Args:
            login (str): Account login.
            password (str): Account password, never logged.

        Returns:
            AuthenticationResponse: The parsed platform response.

        Raises:
            AuthenticationError: If the platform rejects the credentials.
            TokenStoreError: If the token is malformed or cannot be stored.
        """
        endpoint = self._get_endpoint_authenticate()
        self.logging.info("Authenticating '%s' against %s (%s).", login, self._get_engine_name(), endpoint)
        resp = await self.do_request(
            method="POST",
            endpoint=endpoint,
            json=self.get_authenticate_payload(login, password),
            additional_headers={"Accept": "application/json"},
        )
        if not resp.is_success:
            self.logging.error("Authentication failed with status %d: %s", resp.status_code, resp.text)
            raise AuthenticationError(resp.status_code, resp.reason_phrase)

        try:
            data = self._parse_authenticate(resp.json())
        except ValueError as e:
            raise AuthenticationError(resp.status_code, f"Unexpected response body: {e}") from e
        self.logging.info("Authenticated '%s' (display name: %s).", login, data.displayName, color="green")

        token = self._token_store.build_token(subscription_id=self.get_subscription_id(), login=login, token=data.token)
        await self._token_store.do_upsert_token(token)
        return data

    async def do_create_upload_session(self, subscription_id: str, files: list[FileDescriptor]) -> UploadSession:
        """
        Announces a batch of files and reserves an upload session for them.
        The whole batch is validated before anything is sent.

        Args:
            subscription_id (str): Subscription the session belongs to.
            files (list[FileDescriptor]): Descriptors of the files to upload.

        Returns:
            UploadSession: The session created by the platform.

        Raises:
            ValidationError: If any descriptor is invalid.
            TokenNotFoundError: If no token is stored for the subscription.
            UploadSessionError: If the platform rejects the request.
        """
        for descriptor in files:
            self.validate_file(descriptor)

        stored = await self._token_store.do_fetch_token(subscription_id)
        self.logging.info("Creating upload session for %d file(s) on %s.", len(files), self._get_engine_name())
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_upload_session(),
            params=self.get_upload_session_params(subscription_id),
            json=self.get_upload_session_payload(files),
            additional_headers={"Accept": "application/json", **self._get_bearer_header(stored.token)},
        )
        if not resp.is_success:
            self.logging.error("Upload session creation failed with status %d: %s", resp.status_code, resp.text)
            raise UploadSessionError(resp.status_code, resp.text)

        try:
            session = self._parse_upload_session(resp.json())
        except (ValueError, KeyError, TypeError) as e:
            raise UploadSessionError(resp.status_code, f"Unexpected response body: {resp.text}") from e
        self.logging.info("Upload session %s created.", session.upload_id)
        return session

    async def do_upload_file_content(self, upload_id: str, files: list[UploadFile]) -> None:
        """
        Sends the file bytes of an upload session. The platform expects the bearer
        token only on this call, the API key header is left out.

        Args:
            upload_id (str): The session returned by do_create_upload_session().
            files (list[UploadFile]): The raw payloads, one multipart part each.

        Raises:
            TokenNotFoundError: If no token is stored for the subscription.
            ContentUploadError: If the platform rejects the upload.
        """
        stored = await self._token_store.do_fetch_token(self.get_subscription_id())
        request = self.get_upload_content_request(files)
        headers = {**request.pop("additional_headers", {}), **self._get_bearer_header(stored.token)}

        self.logging.info("Uploading %d file(s) to session %s.", len(files), upload_id)
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_upload_content(upload_id),
            additional_headers=headers,
            include_auth_header=False,
            **request,
        )
        if not resp.is_success:
            self.logging.error("Content upload to session %s failed with status %d: %s", upload_id, resp.status_code, resp.text)
            raise ContentUploadError(resp.status_code, resp.text)
        self.logging.info("Content of session %s uploaded.", upload_id, color="green")

    async def do_complete_upload(self, upload_id: str) -> CompletionJob:
        """
        Finalises an upload session into a processing job.

        Args:
            upload_id (str): The session to complete.

        Returns:
            CompletionJob: The job created by the platform.

        Raises:
            TokenNotFoundError: If no token is stored for the subscription.
            CompletionError: If the platform rejects the request.
        """
        stored = await self._token_store.do_fetch_token(self.get_subscription_id())
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_complete_upload(upload_id),
            additional_headers={"Accept": "application/json", **self._get_bearer_header(stored.token)},
        )
        if not resp.is_success:
            self.logging.error("Completion of session %s failed with status %d: %s", upload_id, resp.status_code, resp.text)
            raise CompletionError(resp.status_code, resp.text)

        try:
            job = self._parse_completion(resp.json())
        except (ValueError, KeyError, TypeError) as e:
            raise CompletionError(resp.status_code, f"Unexpected response body: {resp.text}") from e
        self.logging.info("Session %s completed, job %s.", upload_id, job.job_id)
        return job

    async def do_healthcheck(self) -> httpx.Response:
        """Check that the platform answers at all. Any HTTP answer counts, no credentials are sent."""
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck(), include_auth_header=False)
