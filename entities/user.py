"""
User entity model for the domain layer.
"""

from datetime import datetime
from typing import List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from enum import Enum


class DocumentType(str, Enum):
    """Accepted document payload kinds."""
    IMAGE = "image"
    PDF = "pdf"


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Address(CamelModel):
    street1: str = ""
    street2: str = ""


class DocumentMetadata(CamelModel):
    """One entry of the submitted `documents` list, file payload excluded."""
    file_name: str = ""
    file_type: DocumentType = DocumentType.IMAGE

    @field_validator("file_type", mode="before")
    @classmethod
    def normalize_file_type(cls, v):
        # Same case-insensitive rule as the shared schema
        return v.lower() if isinstance(v, str) else v


class Document(DocumentMetadata):
    """A document as stored on the user record."""
    file_url: str


class RegistrationData(CamelModel):
    """JSON metadata part of a registration submission."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    dob: str = ""
    residential: Address = Field(default_factory=Address)
    permanent: Address = Field(default_factory=Address)
    same_as_residential: bool = False
    documents: List[DocumentMetadata] = Field(default_factory=list)

    def with_mirrored_address(self) -> "RegistrationData":
        """Copy residential into permanent when the flag is set."""
        if not self.same_as_residential:
            return self
        return self.model_copy(update={"permanent": self.residential.model_copy()})


class UserCreate(CamelModel):
    """Model for creating a new user."""
    first_name: str
    last_name: str
    email: str
    dob: str
    residential: Address
    permanent: Address
    same_as_residential: bool = False
    documents: List[Document] = Field(default_factory=list)

    @classmethod
    def from_registration(cls, data: RegistrationData, documents: List[Document]) -> "UserCreate":
        return cls(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            dob=data.dob,
            residential=data.residential,
            permanent=data.permanent,
            same_as_residential=data.same_as_residential,
            documents=documents,
        )

    def to_row(self) -> Dict[str, Any]:
        """Convert to a database row: snake_case columns, JSON sub-documents."""
        return self.model_dump(mode="json")


class User(UserCreate):
    """
    User entity representing a registrant.
    """
    id: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """Create user from a database row."""
        data = dict(data)
        if isinstance(data.get("created_at"), str):
            data["created_at"] = datetime.fromisoformat(data["created_at"].replace('Z', '+00:00'))
        if isinstance(data.get("updated_at"), str):
            data["updated_at"] = datetime.fromisoformat(data["updated_at"].replace('Z', '+00:00'))
        if data.get("id") is not None:
            data["id"] = str(data["id"])
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert user to its camelCase API representation."""
        return self.model_dump(mode="json", by_alias=True)

