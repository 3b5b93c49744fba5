from functools import lru_cache
from typing import ClassVar, List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Signature database (same variable libmagic itself honours)
    MAGIC: Optional[str] = None

    # Validator defaults
    MIME_ALLOWED_TYPES: str = ""
    MIME_ENABLE_HEADER_CHECK: bool = False
    MIME_DISABLE_MAGIC_FILE: bool = False

    # HTTP upload limits
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024  # 50MB

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config: ClassVar = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore"
    }

    @property
    def allowed_types(self) -> List[str]:
        return [item.strip() for item in self.MIME_ALLOWED_TYPES.split(",") if item.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
