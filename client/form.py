"""
Headless registration form.

Holds the form state in its camelCase wire shape, keeps the permanent address
mirrored from the residential one while `sameAsResidential` is on, and turns
the state into the multipart payload the register endpoint expects.
"""

import copy
import json
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from common.logging import get_logger
from common.validation import MIN_DOCUMENTS, FieldError, validate_file_type, validate_registration

logger = get_logger("registration_form")


@dataclass
class FilePayload:
    """A file picked for one document."""
    filename: str
    content: bytes
    content_type: Optional[str] = None


def _empty_document(file_name: str = "", file_type: str = "image") -> Dict[str, Any]:
    return {"fileName": file_name, "fileType": file_type, "file": None}


def default_values() -> Dict[str, Any]:
    return {
        "firstName": "",
        "lastName": "",
        "email": "",
        "dob": "",
        "residential": {"street1": "", "street2": ""},
        "permanent": {"street1": "", "street2": ""},
        "sameAsResidential": False,
        "documents": [_empty_document() for _ in range(MIN_DOCUMENTS)],
    }


def _split_path(path: str) -> List[Any]:
    return [int(part) if part.isdigit() else part for part in path.split(".")]


class RegistrationForm:
    def __init__(self):
        self.values: Dict[str, Any] = default_values()

    @property
    def same_as_residential(self) -> bool:
        return bool(self.values.get("sameAsResidential"))

    def get_value(self, path: str) -> Any:
        node: Any = self.values
        for key in _split_path(path):
            node = node[key]
        return node

    def set_value(self, path: str, value: Any) -> None:
        """Set a field by dotted path, e.g. `residential.street1` or `documents.0.fileName`."""
        keys = _split_path(path)
        if keys[0] == "permanent" and self.same_as_residential:
            # Disabled while mirroring
            logger.debug(f"Ignoring edit of {path} while mirroring residential address")
            return

        node: Any = self.values
        for key in keys[:-1]:
            node = node[key]
        node[keys[-1]] = value

        if keys[0] in ("residential", "sameAsResidential"):
            self._sync_permanent()

    def set_values(self, values: Dict[str, Any]) -> None:
        """Set several top-level fields; the flag is applied last."""
        for key, value in values.items():
            if key == "sameAsResidential":
                continue
            if isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    self.set_value(f"{key}.{sub_key}", sub_value)
            elif key == "documents":
                self.values["documents"] = [
                    {**_empty_document(), **doc} for doc in value
                ]
            else:
                self.set_value(key, value)
        if "sameAsResidential" in values:
            self.set_value("sameAsResidential", values["sameAsResidential"])

    def _sync_permanent(self) -> None:
        if self.same_as_residential:
            self.values["permanent"] = dict(self.values["residential"])

    def append_document(self, file_name: str = "", file_type: str = "image") -> int:
        self.values["documents"].append(_empty_document(file_name, file_type))
        return len(self.values["documents"]) - 1

    def remove_document(self, index: int) -> bool:
        """Remove a document row; the first rows down to the minimum stay."""
        documents = self.values["documents"]
        if len(documents) <= MIN_DOCUMENTS:
            return False
        del documents[index]
        return True

    def attach_file(
        self,
        index: int,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> None:
        self.values["documents"][index]["file"] = FilePayload(filename, content, content_type)

    def validate(self, today: Optional[date] = None) -> List[FieldError]:
        return validate_registration(self.values, today=today, require_files=True)

    def check_file_types(self) -> Optional[str]:
        """Return the first payload/type mismatch message, or None."""
        for doc in self.values["documents"]:
            payload: Optional[FilePayload] = doc.get("file")
            if payload is None:
                continue
            selected = str(doc.get("fileType", "")).lower()
            if not validate_file_type(selected, payload.filename, payload.content_type):
                kind = "an IMAGE" if selected == "image" else "a PDF"
                return f"Invalid file type for {doc.get('fileName')}. Please upload {kind} file."
        return None

    def build_multipart(self) -> Tuple[Dict[str, str], List[Tuple[str, Tuple[str, bytes, str]]]]:
        """
        Serialize the form into multipart fields.

        Returns:
            (`{"data": <json>}`, `[("files", (name, bytes, content type)), ...]`)
            with files in document order.
        """
        self._sync_permanent()
        metadata = {k: copy.deepcopy(v) for k, v in self.values.items() if k != "documents"}
        metadata["documents"] = [
            {"fileName": doc["fileName"], "fileType": doc["fileType"]}
            for doc in self.values["documents"]
        ]

        files = []
        for doc in self.values["documents"]:
            payload: Optional[FilePayload] = doc.get("file")
            if payload is not None:
                files.append((
                    "files",
                    (payload.filename, payload.content, payload.content_type or "application/octet-stream"),
                ))
        return {"data": json.dumps(metadata)}, files

    def reset(self) -> None:
        self.values = default_values()
