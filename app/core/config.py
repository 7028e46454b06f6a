from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str

    # If DEV and you hit SSL cert issues against a managed Postgres, set DB_SSL_VERIFY=false in .env
    DB_SSL_VERIFY: bool = True

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    BCRYPT_ROUNDS: int = 12

    SUPER_ADMIN_EMAIL: str | None = None
    SUPER_ADMIN_PASSWORD: str | None = None
    SUPER_ADMIN_NAME: str = "Super Administrator"
    SEED_DEFAULT_DEPARTMENTS: bool = True
    ENV: str = "dev"  # "dev" or "prod"
    LOG_LEVEL: str = "INFO"

    # Department admins only list users and locations of their own department when enabled
    ENFORCE_DEPARTMENT_SCOPING: bool = False

    # --- MEDIA STORAGE ---
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None
    STORAGE_BUCKET: str = "campus-media"
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB

    # --- RATE LIMITING ---
    REDIS_URL: str | None = None
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "20/minute"

    FRONTEND_URL: str = "http://localhost:5173"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

settings = Settings()
