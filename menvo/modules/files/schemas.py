from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class UserFileResponse(BaseModel):
    id: str
    user_id: str
    file_name: str
    file_size: int
    content_type: str
    category: str
    s3_key: str
    s3_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserFileListResponse(BaseModel):
    files: List[UserFileResponse]
    total: int


class DownloadUrlResponse(BaseModel):
    file_id: str
    file_name: str
    url: str
    expires_in: int
