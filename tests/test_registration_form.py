import json
from datetime import date

from client.form import RegistrationForm
from tests.conftest import PDF_BYTES, PNG_BYTES

TODAY = date(2026, 10, 17)


def _filled_form() -> RegistrationForm:
    form = RegistrationForm()
    form.set_values({
        "firstName": "Ann",
        "lastName": "Lee",
        "email": "ann@x.com",
        "dob": "2000-01-01",
        "residential": {"street1": "1 Main", "street2": "Apt 2"},
        "sameAsResidential": True,
        "documents": [
            {"fileName": "id", "fileType": "image"},
            {"fileName": "proof", "fileType": "pdf"},
        ],
    })
    form.attach_file(0, "id.png", PNG_BYTES, "image/png")
    form.attach_file(1, "proof.pdf", PDF_BYTES, "application/pdf")
    return form


def test_defaults_have_two_empty_documents():
    form = RegistrationForm()
    assert len(form.values["documents"]) == 2
    assert form.values["documents"][0] == {"fileName": "", "fileType": "image", "file": None}
    assert form.same_as_residential is False


def test_permanent_follows_residential_while_flag_is_on():
    form = RegistrationForm()
    form.set_value("residential.street1", "1 Main")
    form.set_value("sameAsResidential", True)
    assert form.get_value("permanent.street1") == "1 Main"

    form.set_value("residential.street2", "Apt 2")
    assert form.values["permanent"] == {"street1": "1 Main", "street2": "Apt 2"}


def test_permanent_edits_ignored_while_mirroring():
    form = RegistrationForm()
    form.set_value("residential.street1", "1 Main")
    form.set_value("sameAsResidential", True)
    form.set_value("permanent.street1", "Elsewhere")
    assert form.get_value("permanent.street1") == "1 Main"


def test_turning_flag_off_keeps_last_mirrored_values_editable():
    form = RegistrationForm()
    form.set_value("residential.street1", "1 Main")
    form.set_value("sameAsResidential", True)
    form.set_value("sameAsResidential", False)
    form.set_value("permanent.street1", "Elsewhere")
    assert form.get_value("permanent.street1") == "Elsewhere"
    assert form.get_value("residential.street1") == "1 Main"


def test_remove_document_keeps_minimum():
    form = RegistrationForm()
    assert form.remove_document(1) is False
    index = form.append_document("extra", "pdf")
    assert index == 2
    assert form.remove_document(index) is True
    assert len(form.values["documents"]) == 2


def test_validate_requires_attached_files():
    form = _filled_form()
    assert form.validate(today=TODAY) == []

    form.values["documents"][1]["file"] = None
    errors = form.validate(today=TODAY)
    assert [e.field for e in errors] == ["documents.1.file"]


def test_check_file_types_reports_mismatch():
    form = _filled_form()
    assert form.check_file_types() is None

    form.attach_file(1, "photo.png", PNG_BYTES, "image/png")
    assert form.check_file_types() == "Invalid file type for proof. Please upload a PDF file."


def test_build_multipart_keeps_document_order():
    form = _filled_form()
    data, files = form.build_multipart()

    metadata = json.loads(data["data"])
    assert metadata["permanent"] == {"street1": "1 Main", "street2": "Apt 2"}
    assert metadata["documents"] == [
        {"fileName": "id", "fileType": "image"},
        {"fileName": "proof", "fileType": "pdf"},
    ]
    assert [f[1][0] for f in files] == ["id.png", "proof.pdf"]
    assert all(name == "files" for name, _ in files)


def test_reset_restores_defaults():
    form = _filled_form()
    form.reset()
    assert form.values["firstName"] == ""
    assert form.values["documents"][0]["file"] is None
