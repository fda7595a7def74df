# billing_api/config.py
import os
from decimal import Decimal
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    database_url: str = "sqlite:///./billing.db"
    db_echo: bool = False
    slow_query_seconds: float = Field(default=1.0, ge=0)
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    deposit_limit_ratio: Decimal = Field(default=Decimal("0.25"), gt=0)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./billing.db"),
            db_echo=os.getenv("DB_ECHO", "false").lower() == "true",
            slow_query_seconds=os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"),
            jwt_secret=os.getenv("JWT_SECRET") or None,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            deposit_limit_ratio=os.getenv("DEPOSIT_LIMIT_RATIO", "0.25"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
