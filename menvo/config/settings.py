from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for role claims and other admin auth calls

    # AWS S3 (user uploads: CVs, documents)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Scheduling
    session_duration_minutes: int = 60
    availability_window_days: int = 14
    booking_message_min_length: int = 20
    booking_message_required: bool = True
    default_timezone: str = "America/Sao_Paulo"

    # Uploads
    max_upload_size_mb: int = 5
    presigned_url_expiry_seconds: int = 3600

    # Edge Functions
    quiz_analysis_function: str = "analyze-quiz"
    appointment_notification_function: str = "notify-appointment"

    # App
    app_name: str = "menvo-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    public_form_rate_limit: str = "10/minute"  # waiting list, newsletter, quiz

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
