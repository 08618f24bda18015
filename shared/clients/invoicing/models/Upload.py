"""Models exchanged during the upload workflow."""

from pydantic import BaseModel, ConfigDict


class UploadFile(BaseModel):
    """
    Raw file payload kept in memory between file selection and content upload.
    """
    model_config = ConfigDict(frozen=True)

    file_name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


class UploadSession(BaseModel):
    """
    Server-side reservation created before the file bytes are transferred.
    """
    upload_id: str


class CompletionJob(BaseModel):
    """
    Asynchronous processing job returned when an upload session is completed.
    """
    job_id: str
