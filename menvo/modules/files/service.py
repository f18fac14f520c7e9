from supabase import Client
from fastapi import HTTPException
from typing import Any, Dict
from datetime import datetime, timezone
import uuid
import logging

from menvo.config import settings
from menvo.config.permissions_config import Permission, has_permission
from menvo.core.errors import ForbiddenError, NotFoundError, UpstreamError
from menvo.core.identity import IdentitySnapshot
from menvo.database.supabase_client import first_row
from menvo.modules.files.schemas import DownloadUrlResponse, UserFileListResponse, UserFileResponse
from menvo.modules.files.storage import S3Storage
from menvo.modules.files.validation import resolve_content_type, sanitize_file_name, validate_upload
from menvo.modules.profiles.service import ProfileService

logger = logging.getLogger(__name__)


def build_object_key(user_id: str, category: str, file_name: str) -> str:
    return f"users/{user_id}/{category}/{uuid.uuid4().hex}-{sanitize_file_name(file_name)}"


class FileService:
    def __init__(self, supabase: Client, storage: S3Storage):
        self.supabase = supabase
        self.storage = storage

    def upload_file(
        self,
        identity: IdentitySnapshot,
        file_content: bytes,
        file_name: str,
        declared_type: str,
        category: str,
    ) -> UserFileResponse:
        content_type = resolve_content_type(file_name, declared_type)
        validate_upload(category, file_name, content_type, len(file_content), settings.max_upload_size_bytes)

        key = build_object_key(identity.id, category, file_name)
        try:
            url = self.storage.upload_file(file_content, key, content_type)
        except Exception as e:
            logger.error(f"Error uploading {key} to storage: {e}")
            raise UpstreamError()

        row = {
            "user_id": identity.id,
            "file_name": file_name,
            "file_size": len(file_content),
            "content_type": content_type,
            "category": category,
            "s3_key": key,
            "s3_url": url,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            result = self.supabase.table("user_files").insert(row).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving file metadata for {key}: {e}")
            # Don't leave an orphaned object behind
            self.storage.delete_file(key)
            raise UpstreamError()
        if not result.data:
            raise UpstreamError()

        if category == "cv":
            ProfileService(self.supabase).set_cv_url(identity.id, url)
        logger.info(f"User {identity.id} uploaded {category} file {key} ({len(file_content)} bytes)")
        return UserFileResponse(**result.data[0])

    def list_my_files(self, identity: IdentitySnapshot) -> UserFileListResponse:
        try:
            result = self.supabase.table("user_files")\
                .select("*")\
                .eq("user_id", identity.id)\
                .order("created_at", desc=True)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing files for {identity.id}: {e}")
            raise UpstreamError()
        files = [UserFileResponse(**row) for row in (result.data or [])]
        return UserFileListResponse(files=files, total=len(files))

    def get_download_url(self, identity: IdentitySnapshot, file_id: str) -> DownloadUrlResponse:
        row = self._get_accessible_row(identity, file_id, Permission.FILES_READ)
        try:
            url = self.storage.generate_download_url(row["s3_key"], row["file_name"])
        except Exception as e:
            logger.error(f"Error signing download URL for file {file_id}: {e}")
            raise UpstreamError()
        return DownloadUrlResponse(
            file_id=file_id,
            file_name=row["file_name"],
            url=url,
            expires_in=settings.presigned_url_expiry_seconds,
        )

    def delete_file(self, identity: IdentitySnapshot, file_id: str) -> None:
        row = self._get_accessible_row(identity, file_id, Permission.FILES_DELETE)
        try:
            self.supabase.table("user_files").delete().eq("id", file_id).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting file metadata {file_id}: {e}")
            raise UpstreamError()
        if not self.storage.delete_file(row["s3_key"]):
            logger.warning(f"Metadata for file {file_id} removed but object {row['s3_key']} was not deleted")
        if row.get("category") == "cv":
            ProfileService(self.supabase).set_cv_url(row["user_id"], None)
        logger.info(f"File {file_id} deleted by {identity.id}")

    def _get_accessible_row(self, identity: IdentitySnapshot, file_id: str, permission: Permission) -> Dict[str, Any]:
        try:
            result = self.supabase.table("user_files")\
                .select("*")\
                .eq("id", file_id)\
                .maybe_single()\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching file {file_id}: {e}")
            raise UpstreamError()
        row = first_row(result)
        if not row:
            raise NotFoundError("File not found")
        if row["user_id"] != identity.id and not identity.is_admin:
            raise ForbiddenError("You do not have access to this file")
        if not has_permission(identity.role, permission):
            raise ForbiddenError(f"Insufficient permissions. Required: {permission.value}")
        return row
