import os
from functools import lru_cache
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _build_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    return f"postgresql://{os.getenv('DB_USER')}:{os.getenv('DB_PASS')}@{os.getenv('DB_HOST')}:{os.getenv('DB_PORT', '5432')}/{os.getenv('DB_NAME')}"


class Settings:
    def __init__(self):
        self.database_url = _build_database_url()
        self.db_name = os.getenv("DB_NAME")

        self.secret_key = os.getenv("SECRET_KEY", "supersecretkey")
        self.algorithm = "HS256"
        self.access_token_expire_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))

        # uploaded photos and avatars live under the static root,
        # rows store paths relative to it
        self.static_root = os.getenv("STATIC_ROOT", "static")
        self.static_url = os.getenv("STATIC_URL", "/static").rstrip("/")
        self.photo_max_dimension = int(os.getenv("PHOTO_MAX_DIMENSION", 1080))
        self.avatar_max_dimension = int(os.getenv("AVATAR_MAX_DIMENSION", 400))

        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
