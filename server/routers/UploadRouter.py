from fastapi import APIRouter, Depends, File, Request, UploadFile

from server.dependencies.auth import verify_api_key
from services.invoice_upload.UploadService import UploadService
from shared.clients.invoicing.models.Upload import UploadFile as PayloadFile
from shared.models.workflow import WorkflowStatus

router = APIRouter(prefix="/uploads", tags=["uploads"], dependencies=[Depends(verify_api_key)])


def _get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


@router.post("", response_model=WorkflowStatus)
async def create_upload(request: Request, files: list[UploadFile] = File(...)) -> WorkflowStatus:
    """Start a workflow for the posted files and create the platform upload session.

    A workflow whose session could not be created is discarded; the caller starts over.

    Args:
        request (Request): FastAPI request (provides app.state.upload_service).
        files (list[UploadFile]): The selected files (multipart field "files").

    Returns:
        WorkflowStatus: The workflow in phase "session_active".
    """
    upload_service = _get_upload_service(request)
    payloads = [
        PayloadFile(
            file_name=upload.filename or "",
            content=await upload.read(),
            content_type=upload.content_type or "application/octet-stream",
        )
        for upload in files
    ]

    workflow = upload_service.start_workflow()
    try:
        workflow.select_files(payloads)
        await workflow.create_session()
    except Exception:
        upload_service.discard_workflow(workflow.workflow_id)
        raise
    return workflow.get_status()


@router.get("/{workflow_id}", response_model=WorkflowStatus)
async def get_upload(request: Request, workflow_id: str) -> WorkflowStatus:
    return _get_upload_service(request).get_workflow(workflow_id).get_status()


@router.post("/{workflow_id}/content", response_model=WorkflowStatus)
async def upload_content(request: Request, workflow_id: str) -> WorkflowStatus:
    """Send the file bytes of the workflow's session.

    Returns:
        WorkflowStatus: The workflow in phase "completed".
    """
    workflow = _get_upload_service(request).get_workflow(workflow_id)
    await workflow.upload_content()
    return workflow.get_status()


@router.post("/{workflow_id}/complete", response_model=WorkflowStatus)
async def complete_upload(request: Request, workflow_id: str) -> WorkflowStatus:
    """Finalise the workflow's session into a processing job.

    Returns:
        WorkflowStatus: The workflow carrying the job id.
    """
    workflow = _get_upload_service(request).get_workflow(workflow_id)
    await workflow.complete()
    return workflow.get_status()


@router.delete("/{workflow_id}", status_code=204)
async def discard_upload(request: Request, workflow_id: str) -> None:
    _get_upload_service(request).discard_workflow(workflow_id)
