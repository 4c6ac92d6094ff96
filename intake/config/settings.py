from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "intake"
    db_username: str = "intake"
    db_password: str = "secret"
    db_connect_timeout_seconds: int = 5
    db_statement_timeout_ms: int = 10_000
    db_pool_timeout_seconds: float = 10.0
    db_pool_max_size: int = 10

    storage_disk: str = "s3"
    storage_bucket: str = "documents"
    storage_prefix: str = "public"
    storage_local_root: str = "/app/files"
    storage_endpoint_url: str = ""
    storage_region: str = "us-east-1"
    storage_access_key_id: str = ""
    storage_secret_access_key: str = ""
    storage_public_base_url: str = ""
    storage_presign_expiry_seconds: int = 0
    storage_timeout_seconds: int = 30

    max_upload_size_bytes: int = 10 * 1024 * 1024
    ingest_max_workers: int = 8
    cleanup_orphaned_blobs: bool = False

    notify_webhook_url: str = ""
    notify_timeout_seconds: float = 5.0
    notify_max_workers: int = 4
