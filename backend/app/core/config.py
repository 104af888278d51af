from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # DB
    DATABASE_URL: str

    # JWT
    JWT_SECRET: str
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRES_SECONDS: int = 7200

    # Storage
    STORAGE_BACKEND: str = "local"
    STORAGE_BUCKET: str = "resources"
    UPLOAD_DIR: str = "/data/uploads"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    OSS_ENDPOINT: str | None = None
    OSS_BUCKET: str | None = None
    OSS_ACCESS_KEY: str | None = None
    OSS_SECRET: str | None = None
    OSS_BASE_URL: str | None = None

    # Upload
    MAX_UPLOAD_MB: int = 50
    ALLOWED_FILE_EXT: str = "pdf,doc,docx"
    ICON_MAX_BYTES: int = 2 * 1024 * 1024

    # QR codes
    QR_API_URL: str = "https://api.qrserver.com/v1/create-qr-code/"
    QR_SIZE: str = "200x200"
    QR_FORMAT: str = "png"
    QR_COLOR: str = "1e3a8a"
    QR_BGCOLOR: str = "ffffff"
    QR_TARGET: str = "landing"
    SITE_URL: str = "http://localhost:3000"

    # Logging
    LOG_DIR: str = "/data/logs"
    LOG_LEVEL: str = "INFO"
    LOG_RETENTION_DAYS: int = 14

    # Setup script
    MIGRATIONS_DIR: str = ""
    SEED_SAMPLE_DATA: bool = True
    ADMIN_EMAIL: str = "admin@sinapi.com"
    ADMIN_PASSWORD: str | None = None

    # App
    APP_NAME: str = "Sinapi Resource Library"
    ALLOW_ORIGINS: str = "http://localhost:3000"


settings = Settings()
