"""
Registration service using Repository pattern.

Orchestrates one submission: pairing files with metadata, server-side
validation, the duplicate-email guard, per-document storage and the insert.
"""
import json
from typing import Any, List, Sequence, Tuple

from fastapi import UploadFile
from pydantic import ValidationError

from adapters.storage_adapter import BaseStorageAdapter, StoredFile
from common.exceptions import (
    ConflictException,
    InvalidRequestException,
    ValidationException,
)
from common.logging import get_logger, log_business_event
from common.validation import validate_registration
from entities.user import Document, DocumentMetadata, RegistrationData, User, UserCreate
from repositories.user_repository import UserRepository
from security.upload_validation import FileUploadValidator

logger = get_logger("registration_service")


def parse_registration_data(raw: Any) -> RegistrationData:
    """Parse the multipart `data` field; anything unusable is an InvalidRequest."""
    if not raw or not isinstance(raw, str):
        raise InvalidRequestException()
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidRequestException(context={"reason": f"Malformed JSON: {e.msg}"})
    if not isinstance(payload, dict):
        raise InvalidRequestException(context={"reason": "Expected a JSON object"})
    try:
        return RegistrationData.model_validate(payload)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(x) for x in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise InvalidRequestException(context={"errors": errors})


def pair_documents(
    documents: Sequence[DocumentMetadata], files: Sequence[UploadFile]
) -> List[Tuple[DocumentMetadata, UploadFile]]:
    """Associate each file part with the metadata entry at the same index."""
    if len(documents) != len(files):
        raise InvalidRequestException(
            detail="Each document needs exactly one file",
            context={"documents": len(documents), "files": len(files)}
        )
    return list(zip(documents, files))


class RegistrationService:
    def __init__(
        self,
        user_repo: UserRepository,
        storage: BaseStorageAdapter,
        upload_validator: FileUploadValidator,
        upload_folder: str = "uploads",
    ):
        self.user_repo = user_repo
        self.storage = storage
        self.upload_validator = upload_validator
        self.upload_folder = upload_folder

    def validate(self, data: RegistrationData) -> RegistrationData:
        """Mirror the permanent address when flagged, then run the schema."""
        data = data.with_mirrored_address()
        errors = validate_registration(data.model_dump(by_alias=True, mode="json"))
        if errors:
            raise ValidationException(errors=[e.to_dict() for e in errors])
        return data

    async def ensure_unique_email(self, email: str) -> None:
        existing = await self.user_repo.get_by_email(email)
        if existing is not None:
            logger.info(f"Registration rejected, email already exists: {email}")
            raise ConflictException()

    async def register(self, data: RegistrationData, files: Sequence[UploadFile]) -> User:
        """
        Register a user with their uploaded documents.

        An existing email is a conflict whatever else is wrong with the
        submission. Files already stored when a later step fails are left
        in place.
        """
        await self.ensure_unique_email(data.email)

        pairs = pair_documents(data.documents, files)
        data = self.validate(data)

        payloads: List[Tuple[DocumentMetadata, StoredFile]] = []
        for meta, upload in pairs:
            payloads.append((meta, await self.upload_validator.validate_upload(upload, meta)))

        documents: List[Document] = []
        for meta, payload in payloads:
            url = await self.storage.store(payload, self.upload_folder)
            documents.append(Document(file_name=meta.file_name, file_type=meta.file_type, file_url=url))

        user = await self.user_repo.create(UserCreate.from_registration(data, documents))

        log_business_event(
            event_type="USER_REGISTERED",
            entity_type="user",
            entity_id=user.id,
            action="create",
            details={"documents": len(documents), "storage": self.storage.backend_name}
        )
        return user


def create_registration_service(
    user_repo: UserRepository,
    storage: BaseStorageAdapter,
    upload_validator: FileUploadValidator,
    upload_folder: str = "uploads",
) -> RegistrationService:
    return RegistrationService(user_repo, storage, upload_validator, upload_folder)
