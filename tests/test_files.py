import pytest
from botocore.stub import Stubber

from menvo.config import settings
from menvo.config.permissions_config import UserRole
from menvo.core.errors import ForbiddenError, NotFoundError, UpstreamError, ValidationError
from menvo.modules.files.service import FileService, build_object_key
from menvo.modules.files.storage import S3Storage
from menvo.modules.files.validation import (
    DOCX, PDF, resolve_content_type, sanitize_file_name, validate_upload
)
from tests.helpers import auth_header, make_identity, seed_profile, signed_in

PDF_BYTES = b"%PDF-1.4 fake"


@pytest.fixture
def service(db, storage):
    return FileService(db, storage)


@pytest.fixture
def owner(db):
    seed_profile(db, "user-1", UserRole.MENTEE)
    return make_identity("user-1", UserRole.MENTEE)


def test_content_type_comes_from_extension():
    assert resolve_content_type("CV.PDF", "application/octet-stream") == PDF
    assert resolve_content_type("notes.docx") == DOCX
    assert resolve_content_type("archive.zip", "application/zip") == "application/zip"


def test_file_names_are_sanitized():
    assert sanitize_file_name("../../etc/passwd") == "passwd"
    assert sanitize_file_name("meu currículo (1).pdf") == "meu_curr_culo__1_.pdf"
    assert build_object_key("u1", "cv", "a b.pdf").startswith("users/u1/cv/")
    assert build_object_key("u1", "cv", "a b.pdf").endswith("-a_b.pdf")


@pytest.mark.parametrize("category,name,content_type,size,field", [
    ("avatar", "a.png", "image/png", 10, "category"),
    ("cv", "cv.pdf", PDF, 0, "file"),
    ("cv", "cv.pdf", PDF, 11, "file"),
    ("cv", "cv.docx", DOCX, 10, "file"),
])
def test_upload_validation(category, name, content_type, size, field):
    with pytest.raises(ValidationError) as exc:
        validate_upload(category, name, content_type, size, max_size=10)
    assert exc.value.field == field


def test_cv_upload_stores_object_and_links_profile(service, owner, db, storage):
    result = service.upload_file(owner, PDF_BYTES, "cv.pdf", "application/pdf", "cv")
    assert result.s3_key in storage.objects
    assert result.content_type == PDF
    assert result.file_size == len(PDF_BYTES)
    profile = db.rows("profiles")[0]
    assert profile["cv_url"] == result.s3_url


def test_cv_must_be_pdf(service, owner, storage):
    with pytest.raises(ValidationError) as exc:
        service.upload_file(owner, b"data", "cv.docx", DOCX, "cv")
    assert exc.value.detail["allowed_types"] == [PDF]
    assert storage.objects == {}


def test_storage_failure_is_upstream(service, owner, storage, db):
    storage.fail_uploads = True
    with pytest.raises(UpstreamError):
        service.upload_file(owner, PDF_BYTES, "cv.pdf", PDF, "cv")
    assert db.rows("user_files") == []


def test_metadata_failure_removes_uploaded_object(service, owner, storage, db):
    db.failing_tables.add("user_files")
    with pytest.raises(UpstreamError):
        service.upload_file(owner, PDF_BYTES, "doc.pdf", PDF, "document")
    assert storage.objects == {}


def test_only_owner_or_admin_can_download(service, owner):
    uploaded = service.upload_file(owner, PDF_BYTES, "doc.pdf", PDF, "document")
    assert "X-Amz-Signature" in service.get_download_url(owner, uploaded.id).url
    assert service.get_download_url(make_identity("admin-1", UserRole.ADMIN), uploaded.id).file_name == "doc.pdf"
    with pytest.raises(ForbiddenError):
        service.get_download_url(make_identity("user-2", UserRole.MENTEE), uploaded.id)
    with pytest.raises(NotFoundError):
        service.get_download_url(owner, "missing")


def test_deleting_cv_clears_profile_link(service, owner, storage, db):
    uploaded = service.upload_file(owner, PDF_BYTES, "cv.pdf", PDF, "cv")
    service.delete_file(owner, uploaded.id)
    assert storage.objects == {}
    assert db.rows("user_files") == []
    assert db.rows("profiles")[0]["cv_url"] is None


def test_upload_list_and_delete_over_http(client, db, storage):
    _, token = signed_in(db, UserRole.MENTOR)
    headers = auth_header(token)
    created = client.post(
        "/api/v1/files/upload",
        files={"file": ("cv.pdf", PDF_BYTES, "application/pdf")},
        data={"category": "cv"},
        headers=headers,
    )
    assert created.status_code == 201
    file_id = created.json()["id"]

    listing = client.get("/api/v1/files", headers=headers).json()
    assert listing["total"] == 1

    download = client.get(f"/api/v1/files/{file_id}/download", headers=headers)
    assert download.json()["expires_in"] == settings.presigned_url_expiry_seconds

    assert client.delete(f"/api/v1/files/{file_id}", headers=headers).status_code == 204
    assert client.get("/api/v1/files", headers=headers).json()["total"] == 0


def test_oversized_upload_is_rejected(client, db, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_size_mb", 0)
    _, token = signed_in(db, UserRole.MENTEE)
    response = client.post(
        "/api/v1/files/upload",
        files={"file": ("doc.pdf", PDF_BYTES, "application/pdf")},
        headers=auth_header(token),
    )
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "file"


class TestS3Storage:
    @pytest.fixture
    def s3(self, monkeypatch):
        monkeypatch.setattr(settings, "aws_access_key_id", "AKIAEXAMPLE")
        monkeypatch.setattr(settings, "aws_secret_access_key", "secret")
        monkeypatch.setattr(settings, "s3_bucket_name", "menvo-files")
        monkeypatch.setattr(settings, "aws_region", "sa-east-1")
        return S3Storage()

    def test_requires_configuration(self, monkeypatch):
        monkeypatch.setattr(settings, "s3_bucket_name", None)
        with pytest.raises(ValueError):
            S3Storage()

    def test_upload_returns_object_url(self, s3):
        with Stubber(s3.s3_client) as stub:
            stub.add_response("put_object", {}, {
                "Bucket": "menvo-files", "Key": "users/u1/cv/x.pdf", "Body": PDF_BYTES, "ContentType": PDF,
            })
            url = s3.upload_file(PDF_BYTES, "users/u1/cv/x.pdf", PDF)
        assert url == "https://menvo-files.s3.sa-east-1.amazonaws.com/users/u1/cv/x.pdf"

    def test_download_url_is_signed_attachment(self, s3):
        url = s3.generate_download_url("users/u1/cv/x.pdf", "cv.pdf", expires_in=60)
        assert "X-Amz-Expires=60" in url or "Expires=" in url
        assert "response-content-disposition" in url

    def test_delete_failure_returns_false(self, s3):
        with Stubber(s3.s3_client) as stub:
            stub.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)
            assert s3.delete_file("users/u1/cv/x.pdf") is False
