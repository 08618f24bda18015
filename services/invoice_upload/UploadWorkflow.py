"""Upload workflow.

Sequences the platform calls of one upload:
select files → create session → upload content → (optional) complete.
The upload id only lives in this object; an abandoned workflow loses its session.
"""

import uuid

import httpx

from shared.clients.invoicing.InvoicingClientInterface import InvoicingClientInterface
from shared.clients.invoicing.models.FileDescriptor import FileDescriptor, FileType
from shared.clients.invoicing.models.Upload import UploadFile
from shared.errors.exceptions import EfactureError, ValidationError, WorkflowStateError
from shared.helper.HelperConfig import HelperConfig
from shared.models.workflow import WorkflowPhase, WorkflowStatus

DEFAULT_FILE_TYPE = FileType.INVOICE
DEFAULT_SOURCE = "not-specified"


class UploadWorkflow:
    """State machine for a single upload. Steps only advance on explicit calls."""

    def __init__(
        self,
        helper_config: HelperConfig,
        invoicing_client: InvoicingClientInterface,
        subscription_id: str,
        workflow_id: str | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._client = invoicing_client
        self._subscription_id = subscription_id
        self.workflow_id = workflow_id or str(uuid.uuid4())

        self.phase = WorkflowPhase.IDLE
        self.upload_id: str | None = None
        self.job_id: str | None = None
        self.error: str | None = None

        self._file_names: list[str] = []
        self._descriptors: list[FileDescriptor] = []
        self._files: list[UploadFile] = []
        self._completing = False

    ##########################################
    ################ STEPS ###################
    ##########################################

    def select_files(self, files: list[UploadFile]) -> None:
        """Take the user's file selection and build the descriptors announced to the platform.

        A selection may be replaced as long as no session exists yet.

        Args:
            files (list[UploadFile]): The selected files with their raw content.

        Raises:
            ValidationError: If the selection is empty.
            WorkflowStateError: If a session was already requested for this workflow.
        """
        self._require("select files", WorkflowPhase.IDLE, WorkflowPhase.FILES_SELECTED)
        if not files:
            raise ValidationError("files", "select at least one file.")

        self._files = list(files)
        self._file_names = [upload.file_name for upload in files]
        self._descriptors = [
            FileDescriptor(
                file_name=upload.file_name,
                file_size=upload.size,
                file_type=DEFAULT_FILE_TYPE,
                source=DEFAULT_SOURCE,
            )
            for upload in files
        ]
        self.phase = WorkflowPhase.FILES_SELECTED
        self.logging.info("Workflow %s: %d file(s) selected.", self.workflow_id, len(files))

    async def create_session(self) -> str:
        """Request an upload session for the selected files.

        Returns:
            str: The upload id held for the content step.

        Raises:
            WorkflowStateError: If no files are selected or a session already exists.
            EfactureError: Any client error; the workflow is then failed.
        """
        self._require("create a session", WorkflowPhase.FILES_SELECTED)
        self.phase = WorkflowPhase.SESSION_PENDING
        try:
            session = await self._client.do_create_upload_session(self._subscription_id, self._descriptors)
        except (EfactureError, httpx.HTTPError) as e:
            self._fail(e)
            raise

        self.upload_id = session.upload_id
        self._descriptors = []
        self.phase = WorkflowPhase.SESSION_ACTIVE
        self.logging.info("Workflow %s: session %s active.", self.workflow_id, self.upload_id)
        return self.upload_id

    async def upload_content(self) -> None:
        """Send the selected files' bytes into the active session.

        Raises:
            WorkflowStateError: If there is no active session.
            EfactureError: Any client error; the workflow is then failed.
        """
        self._require("upload content", WorkflowPhase.SESSION_ACTIVE)
        self.phase = WorkflowPhase.CONTENT_PENDING
        try:
            await self._client.do_upload_file_content(self.upload_id, self._files)
        except (EfactureError, httpx.HTTPError) as e:
            self._fail(e)
            raise

        self._files = []
        self.phase = WorkflowPhase.COMPLETED
        self.logging.info("Workflow %s: content uploaded to session %s.", self.workflow_id, self.upload_id, color="green")

    async def complete(self) -> str:
        """Finalise the session into a processing job. Optional last step.

        Returns:
            str: The job id.

        Raises:
            WorkflowStateError: If the content was not uploaded yet or the session was already completed.
            EfactureError: Any client error; the workflow is then failed.
        """
        self._require("complete the upload", WorkflowPhase.COMPLETED)
        if self.job_id is not None or self._completing:
            raise WorkflowStateError(f"Workflow {self.workflow_id} was already completed.")

        self._completing = True
        try:
            job = await self._client.do_complete_upload(self.upload_id)
        except (EfactureError, httpx.HTTPError) as e:
            self._fail(e)
            raise
        finally:
            self._completing = False

        self.job_id = job.job_id
        self.logging.info("Workflow %s: session %s completed as job %s.", self.workflow_id, self.upload_id, self.job_id, color="green")
        return self.job_id

    ##########################################
    ################ STATE ###################
    ##########################################

    def get_status(self) -> WorkflowStatus:
        return WorkflowStatus(
            workflow_id=self.workflow_id,
            phase=self.phase,
            files=list(self._file_names),
            upload_id=self.upload_id,
            job_id=self.job_id,
            error=self.error,
        )

    def _require(self, action: str, *phases: WorkflowPhase) -> None:
        if self.phase not in phases:
            raise WorkflowStateError(
                f"Cannot {action} while workflow {self.workflow_id} is '{self.phase.value}'."
                + (" Start a new upload." if self.phase == WorkflowPhase.FAILED else "")
            )

    def _fail(self, error: Exception) -> None:
        self.error = str(error)
        self.phase = WorkflowPhase.FAILED
        self._files = []
        self._descriptors = []
        self.logging.error("Workflow %s failed: %s", self.workflow_id, self.error)
