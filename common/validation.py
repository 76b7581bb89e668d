"""
Registration validation schema shared by the form client and the API.

Rules run in two passes: per-field rules first, then the cross-field pass for
the permanent address, which is only required while `sameAsResidential` is off.
Validation never raises for bad input; it returns a list of field errors.
"""

import re
from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from email_validator import EmailNotValidError, validate_email

from common.logging import get_logger

logger = get_logger("validation")

MIN_DOCUMENTS = 2
MIN_AGE_YEARS = 18
MAX_AGE_YEARS = 120
DOCUMENT_TYPES = ("image", "pdf")

IMAGE_EXTENSION_RE = re.compile(r"\.(png|jpg|jpeg|gif|webp)$", re.IGNORECASE)
PDF_EXTENSION_RE = re.compile(r"\.pdf$", re.IGNORECASE)
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class FieldError:
    """A single validation failure addressed by a dotted field path."""
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def parse_dob(value: Any) -> Optional[date]:
    """Parse an ISO `YYYY-MM-DD` date, or return None."""
    if not isinstance(value, str) or not ISO_DATE_RE.match(value.strip()):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def calculate_age(birth_date: date, today: date) -> int:
    """Whole years between two dates, by calendar year/month/day."""
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def validate_dob(value: Any, today: Optional[date] = None) -> Optional[str]:
    """Return the first failing date-of-birth message, or None."""
    if _is_blank(value):
        return "Date of Birth is required"
    birth_date = parse_dob(value)
    if birth_date is None:
        return "Please enter a valid date"
    today = today or date.today()
    if birth_date > today:
        return "Date of birth cannot be in the future"
    age = calculate_age(birth_date, today)
    if age > MAX_AGE_YEARS:
        return "Please enter a valid date of birth"
    if age < MIN_AGE_YEARS:
        return f"You must be at least {MIN_AGE_YEARS} years old"
    return None


def validate_email_address(value: Any) -> Optional[str]:
    if _is_blank(value):
        return "Email is required"
    try:
        validate_email(str(value).strip(), check_deliverability=False)
    except EmailNotValidError:
        return "Invalid email"
    return None


def validate_file_type(file_type: str, filename: Optional[str], content_type: Optional[str]) -> bool:
    """Check that a payload matches the declared document type.

    Images need an `image/*` content type or a common image extension;
    PDFs need `application/pdf` or a `.pdf` extension.
    """
    filename = filename or ""
    content_type = (content_type or "").lower()
    selected = (file_type or "").lower()

    if selected == "image":
        return content_type.startswith("image/") or bool(IMAGE_EXTENSION_RE.search(filename))
    if selected == "pdf":
        return content_type == "application/pdf" or bool(PDF_EXTENSION_RE.search(filename))
    return False


def _address_errors(prefix: str, address: Any) -> List[FieldError]:
    address = address if isinstance(address, Mapping) else {}
    errors = []
    if _is_blank(address.get("street1")):
        errors.append(FieldError(f"{prefix}.street1", "Street 1 is required"))
    if _is_blank(address.get("street2")):
        errors.append(FieldError(f"{prefix}.street2", "Street 2 is required"))
    return errors


def _document_errors(documents: Any, require_files: bool) -> List[FieldError]:
    if not isinstance(documents, list):
        return [FieldError("documents", f"At least {MIN_DOCUMENTS} documents are required")]

    errors = []
    for index, doc in enumerate(documents):
        doc = doc if isinstance(doc, Mapping) else {}
        if _is_blank(doc.get("fileName")):
            errors.append(FieldError(f"documents.{index}.fileName", "File Name is required"))
        file_type = doc.get("fileType")
        if _is_blank(file_type):
            errors.append(FieldError(f"documents.{index}.fileType", "File Type is required"))
        elif str(file_type).lower() not in DOCUMENT_TYPES:
            errors.append(FieldError(f"documents.{index}.fileType", "File Type must be image or pdf"))
        if require_files and doc.get("file") is None:
            errors.append(FieldError(f"documents.{index}.file", "File is required"))

    if len(documents) < MIN_DOCUMENTS:
        errors.append(FieldError("documents", f"At least {MIN_DOCUMENTS} documents are required"))
    return errors


def validate_permanent_address(values: Mapping[str, Any]) -> List[FieldError]:
    """Cross-field pass: permanent is only checked when it is not mirrored."""
    if values.get("sameAsResidential"):
        return []
    return _address_errors("permanent", values.get("permanent"))


def validate_registration(
    values: Mapping[str, Any],
    today: Optional[date] = None,
    require_files: bool = False,
) -> List[FieldError]:
    """
    Validate a candidate registration in its camelCase wire shape.

    Args:
        values: Registration fields as submitted by the form.
        today: Reference date for the age rules, defaults to today.
        require_files: Also require a `file` attachment on every document
            (client side, where payloads are still attached).

    Returns:
        Field errors in form order; an empty list means valid.
    """
    errors: List[FieldError] = []

    if _is_blank(values.get("firstName")):
        errors.append(FieldError("firstName", "First Name is required"))
    if _is_blank(values.get("lastName")):
        errors.append(FieldError("lastName", "Last Name is required"))

    email_error = validate_email_address(values.get("email"))
    if email_error:
        errors.append(FieldError("email", email_error))

    dob_error = validate_dob(values.get("dob"), today=today)
    if dob_error:
        errors.append(FieldError("dob", dob_error))

    errors.extend(_address_errors("residential", values.get("residential")))
    errors.extend(validate_permanent_address(values))
    errors.extend(_document_errors(values.get("documents"), require_files))

    if errors:
        logger.debug(f"Registration validation failed with {len(errors)} error(s)")
    return errors
