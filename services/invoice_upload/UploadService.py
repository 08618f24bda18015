"""Upload service.

Keeps the live upload workflows of this process in memory, keyed by workflow id.
Workflows of different callers are independent; each holds its own upload id.
"""

from services.invoice_upload.UploadWorkflow import UploadWorkflow
from shared.clients.invoicing.InvoicingClientInterface import InvoicingClientInterface
from shared.errors.exceptions import WorkflowNotFoundError
from shared.helper.HelperConfig import HelperConfig


class UploadService:
    """Creates, looks up and discards upload workflows."""

    def __init__(self, helper_config: HelperConfig, invoicing_client: InvoicingClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self._invoicing_client = invoicing_client
        self._workflows: dict[str, UploadWorkflow] = {}

    def start_workflow(self) -> UploadWorkflow:
        """Create a new idle workflow for the configured subscription.

        Returns:
            UploadWorkflow: The registered workflow.
        """
        workflow = UploadWorkflow(
            helper_config=self._helper_config,
            invoicing_client=self._invoicing_client,
            subscription_id=self._invoicing_client.get_subscription_id(),
        )
        self._workflows[workflow.workflow_id] = workflow
        self.logging.debug("Started workflow %s.", workflow.workflow_id)
        return workflow

    def get_workflow(self, workflow_id: str) -> UploadWorkflow:
        """Return a registered workflow.

        Raises:
            WorkflowNotFoundError: If the id is unknown or was discarded.
        """
        workflow = self._workflows.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Unknown upload workflow '{workflow_id}'.")
        return workflow

    def discard_workflow(self, workflow_id: str) -> None:
        """Forget a workflow. An open platform session is abandoned, not rolled back.

        Raises:
            WorkflowNotFoundError: If the id is unknown or was already discarded.
        """
        workflow = self.get_workflow(workflow_id)
        del self._workflows[workflow_id]
        if workflow.upload_id and workflow.job_id is None:
            self.logging.warning("Discarded workflow %s with unfinished session %s.", workflow_id, workflow.upload_id)
        else:
            self.logging.debug("Discarded workflow %s.", workflow_id)

    def count(self) -> int:
        return len(self._workflows)
