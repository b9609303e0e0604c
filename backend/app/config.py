# backend/app/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/sqlite/clinic.db"
    redis_url: str = "redis://localhost:6379/0"

    # Subscription provider (Mercado Pago preapprovals)
    mercado_pago_api_url: str = "https://api.mercadopago.com"
    mercado_pago_access_token: str = ""
    provider_timeout_seconds: float = 10.0
    premium_cache_ttl_seconds: int = 60  # 0 = disabled

    # Identity provider tokens (HS256 shared secret)
    auth_secret: str = "change-me"
    auth_algorithm: str = "HS256"

    # Uploads
    upload_dir: str = "./public/uploads"
    upload_url_prefix: str = "/uploads"
    max_upload_bytes: int = 50 * 1024 * 1024

    booking_horizon_days: int = 60

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative path → absolute, anchored at the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite:///{absolute_path}"
        return url

    @property
    def resolved_upload_dir(self) -> Path:
        path = Path(self.upload_dir)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path


settings = Settings()
