import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()

_TRUE = {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> List[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration resolved from the environment (and `.env`).
    Relative paths resolve against the process working directory.
    """

    database_url: str = "sqlite:///./books.db"
    upload_dir: str = "uploads"
    max_upload_size_mb: int = 50
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    launcher_ready_timeout: float = 15.0
    launcher_open_browser: bool = False

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def base_url(self) -> str:
        host = "localhost" if self.host in ("0.0.0.0", "") else self.host
        return f"http://{host}:{self.port}"

    @classmethod
    def from_env(cls) -> "Settings":
        database_url = os.getenv("DATABASE_URL", cls.database_url)
        # SQLAlchemy no longer accepts the legacy postgres:// scheme.
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)

        return cls(
            database_url=database_url,
            upload_dir=os.getenv("UPLOAD_DIR", cls.upload_dir),
            max_upload_size_mb=int(os.getenv("MAX_UPLOAD_SIZE_MB", str(cls.max_upload_size_mb))),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", str(cls.port))),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            launcher_ready_timeout=float(
                os.getenv("LAUNCHER_READY_TIMEOUT", str(cls.launcher_ready_timeout))
            ),
            launcher_open_browser=os.getenv("LAUNCHER_OPEN_BROWSER", "false").lower() in _TRUE,
        )
