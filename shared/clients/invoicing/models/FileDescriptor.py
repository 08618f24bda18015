"""File metadata announced to the invoicing platform when an upload session is created."""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class FileType(str, Enum):
    INVOICE = "invoice"
    CREDIT_NOTE = "credit-note"
    DEBIT_NOTE = "debit-note"
    OTHER = "other"


class FingerprintAlgorithm(str, Enum):
    NONE = "NONE"
    MD5 = "MD5"
    SHA1 = "SHA-1"
    SHA256 = "SHA-256"
    SHA512 = "SHA-512"


class FileDescriptor(BaseModel):
    """
    Describes one file of an upload batch. Built client-side from the selected files and never mutated.

    Length and range rules are not enforced here, they are checked by
    InvoicingClientInterface.validate_file() right before a session is requested.
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True, use_enum_values=False)

    file_name: str
    file_size: int | float
    file_type: FileType = FileType.INVOICE
    source: str = "not-specified"
    source_id: str | None = None
    fingerprint: str | None = None
    fingerprint_algorithm: FingerprintAlgorithm | None = None

    def to_session_entry(self) -> dict:
        """
        Returns the entry sent in the session creation body. Fields the platform
        does not accept (fingerprint data) are left out.
        """
        return {
            "fileName": self.file_name,
            "fileSize": self.file_size,
            "fileType": self.file_type.value,
            "source": self.source,
            "sourceId": self.source_id,
        }
