from fastapi import APIRouter, Depends, UploadFile, File, Form
from supabase import Client

from menvo.config.permissions_config import Permission
from menvo.core.dependencies import require_permission
from menvo.core.identity import IdentitySnapshot
from menvo.database.supabase_client import get_supabase
from menvo.modules.files.schemas import DownloadUrlResponse, UserFileListResponse, UserFileResponse
from menvo.modules.files.service import FileService
from menvo.modules.files.storage import S3Storage

router = APIRouter(prefix="/files", tags=["files"])


def get_file_storage() -> S3Storage:
    return S3Storage()


def get_file_service(
    supabase: Client = Depends(get_supabase),
    storage: S3Storage = Depends(get_file_storage)
) -> FileService:
    return FileService(supabase, storage)


@router.post("/upload", response_model=UserFileResponse, status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    category: str = Form("document"),
    identity: IdentitySnapshot = Depends(require_permission(Permission.FILES_UPLOAD)),
    service: FileService = Depends(get_file_service)
):
    """Upload a CV (PDF) or a supporting document"""
    content = await file.read()
    return service.upload_file(identity, content, file.filename or "file", file.content_type, category)


@router.get("", response_model=UserFileListResponse)
async def list_my_files(
    identity: IdentitySnapshot = Depends(require_permission(Permission.FILES_READ)),
    service: FileService = Depends(get_file_service)
):
    return service.list_my_files(identity)


@router.get("/{file_id}/download", response_model=DownloadUrlResponse)
async def get_download_url(
    file_id: str,
    identity: IdentitySnapshot = Depends(require_permission(Permission.FILES_READ)),
    service: FileService = Depends(get_file_service)
):
    return service.get_download_url(identity, file_id)


@router.delete("/{file_id}", status_code=204)
async def delete_file(
    file_id: str,
    identity: IdentitySnapshot = Depends(require_permission(Permission.FILES_DELETE)),
    service: FileService = Depends(get_file_service)
):
    service.delete_file(identity, file_id)
    return None
