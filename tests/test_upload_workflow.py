"""Upload workflow and upload service tests."""

import json

import httpx
import pytest

from services.invoice_upload.UploadService import UploadService
from services.invoice_upload.UploadWorkflow import UploadWorkflow
from shared.clients.invoicing.models.Upload import UploadFile
from shared.errors.exceptions import (
    ContentUploadError,
    TokenNotFoundError,
    UploadSessionError,
    ValidationError,
    WorkflowNotFoundError,
    WorkflowStateError,
)
from shared.models.workflow import WorkflowPhase
from tests.conftest import SUBSCRIPTION_ID

INVOICE = UploadFile(file_name="inv1.pdf", content=b"x" * 1024, content_type="application/pdf")
CREDIT_NOTE = UploadFile(file_name="credit-02.xml", content=b"<CreditNote/>", content_type="application/xml")


@pytest.fixture
def workflow(helper_config, invoicing_client) -> UploadWorkflow:
    return UploadWorkflow(helper_config=helper_config, invoicing_client=invoicing_client, subscription_id=SUBSCRIPTION_ID)


@pytest.fixture
def scripted_platform(fake_platform):
    fake_platform.responses["new"] = httpx.Response(200, json={"uploadId": "up-42"})
    fake_platform.responses["upload"] = httpx.Response(200)
    fake_platform.responses["complete"] = httpx.Response(200, json={"jobId": "job-7"})
    return fake_platform


async def test_full_workflow_walks_all_phases(workflow, scripted_platform, stored_token) -> None:
    assert workflow.phase == WorkflowPhase.IDLE

    workflow.select_files([INVOICE])
    assert workflow.phase == WorkflowPhase.FILES_SELECTED

    upload_id = await workflow.create_session()
    assert upload_id == "up-42"
    assert workflow.phase == WorkflowPhase.SESSION_ACTIVE

    await workflow.upload_content()
    assert workflow.phase == WorkflowPhase.COMPLETED

    job_id = await workflow.complete()
    assert job_id == "job-7"

    status = workflow.get_status()
    assert status.phase == WorkflowPhase.COMPLETED
    assert status.files == ["inv1.pdf"]
    assert status.upload_id == "up-42"
    assert status.job_id == "job-7"
    assert status.error is None

    paths = [request.url.path for request in scripted_platform.requests]
    assert paths == [
        "/public/v3/uploads/new",
        "/public/v3/uploads/up-42/upload",
        "/public/v3/uploads/up-42/complete",
    ]


async def test_selected_files_are_announced_as_invoices(workflow, scripted_platform, stored_token) -> None:
    workflow.select_files([INVOICE])
    await workflow.create_session()

    body = json.loads(scripted_platform.requests[-1].content)
    assert body["files"] == [
        {"fileName": "inv1.pdf", "fileSize": 1024, "fileType": "invoice", "source": "not-specified", "sourceId": None}
    ]


async def test_reselecting_files_replaces_the_selection(workflow, scripted_platform, stored_token) -> None:
    workflow.select_files([INVOICE])
    workflow.select_files([CREDIT_NOTE])
    await workflow.create_session()

    body = json.loads(scripted_platform.requests[-1].content)
    assert [entry["fileName"] for entry in body["files"]] == ["credit-02.xml"]
    assert workflow.get_status().files == ["credit-02.xml"]


def test_empty_selection_is_rejected(workflow) -> None:
    with pytest.raises(ValidationError):
        workflow.select_files([])

    assert workflow.phase == WorkflowPhase.IDLE


async def test_steps_out_of_order_are_rejected(workflow, scripted_platform, stored_token) -> None:
    with pytest.raises(WorkflowStateError):
        await workflow.create_session()
    with pytest.raises(WorkflowStateError):
        await workflow.upload_content()
    with pytest.raises(WorkflowStateError):
        await workflow.complete()

    workflow.select_files([INVOICE])
    await workflow.create_session()

    with pytest.raises(WorkflowStateError):
        workflow.select_files([CREDIT_NOTE])
    with pytest.raises(WorkflowStateError):
        await workflow.create_session()
    assert scripted_platform.requests[-1].url.path == "/public/v3/uploads/new"
    assert len(scripted_platform.requests) == 1


async def test_completing_twice_is_rejected(workflow, scripted_platform, stored_token) -> None:
    workflow.select_files([INVOICE])
    await workflow.create_session()
    await workflow.upload_content()
    await workflow.complete()

    with pytest.raises(WorkflowStateError, match="already completed"):
        await workflow.complete()
    assert len(scripted_platform.requests) == 3


async def test_session_failure_is_terminal(workflow, fake_platform, stored_token) -> None:
    fake_platform.responses["new"] = httpx.Response(400, text="quota exceeded")
    workflow.select_files([INVOICE])

    with pytest.raises(UploadSessionError):
        await workflow.create_session()

    status = workflow.get_status()
    assert status.phase == WorkflowPhase.FAILED
    assert "quota exceeded" in status.error
    assert status.upload_id is None

    with pytest.raises(WorkflowStateError, match="Start a new upload"):
        workflow.select_files([INVOICE])
    with pytest.raises(WorkflowStateError):
        await workflow.create_session()


async def test_validation_failure_fails_workflow_without_request(workflow, fake_platform, stored_token) -> None:
    workflow.select_files([UploadFile(file_name="a.pd", content=b"x")])

    with pytest.raises(ValidationError):
        await workflow.create_session()

    assert workflow.phase == WorkflowPhase.FAILED
    assert fake_platform.requests == []


async def test_missing_token_fails_workflow(workflow, fake_platform) -> None:
    workflow.select_files([INVOICE])

    with pytest.raises(TokenNotFoundError):
        await workflow.create_session()

    assert workflow.phase == WorkflowPhase.FAILED


async def test_content_failure_keeps_upload_id(workflow, fake_platform, stored_token) -> None:
    fake_platform.responses["new"] = httpx.Response(200, json={"uploadId": "up-42"})
    fake_platform.responses["upload"] = httpx.Response(500, text="storage down")
    workflow.select_files([INVOICE])
    await workflow.create_session()

    with pytest.raises(ContentUploadError):
        await workflow.upload_content()

    status = workflow.get_status()
    assert status.phase == WorkflowPhase.FAILED
    assert status.upload_id == "up-42"
    with pytest.raises(WorkflowStateError):
        await workflow.upload_content()


################ SERVICE ##################
def test_service_keeps_workflows_apart(helper_config, invoicing_client) -> None:
    service = UploadService(helper_config=helper_config, invoicing_client=invoicing_client)

    first = service.start_workflow()
    second = service.start_workflow()
    first.select_files([INVOICE])

    assert first.workflow_id != second.workflow_id
    assert service.get_workflow(first.workflow_id) is first
    assert service.get_workflow(second.workflow_id).phase == WorkflowPhase.IDLE
    assert service.count() == 2


def test_service_discard_forgets_workflow(helper_config, invoicing_client) -> None:
    service = UploadService(helper_config=helper_config, invoicing_client=invoicing_client)
    workflow = service.start_workflow()

    service.discard_workflow(workflow.workflow_id)

    with pytest.raises(WorkflowNotFoundError):
        service.get_workflow(workflow.workflow_id)
    with pytest.raises(WorkflowNotFoundError):
        service.discard_workflow(workflow.workflow_id)
    assert service.count() == 0
