"""
Application configuration.

All environment lookups happen here, once. Services receive the pieces they
need (StorageConfig, RendererConfig, base URL) instead of reading the
environment at call time.
"""

import os
from enum import Enum
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class StorageKind(str, Enum):
    LOCAL = "local"
    S3 = "s3"
    SUPABASE = "supabase"
    CLOUDFLARE_R2 = "cloudflare-r2"


class StorageConfig(BaseModel):
    """Which backend persists generated files, plus that backend's settings."""

    kind: StorageKind = StorageKind.LOCAL
    # local
    local_root: str = "public"
    # s3
    s3_bucket: Optional[str] = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: Optional[str] = None
    # supabase
    supabase_bucket: str = "letters"
    # Timeout (seconds) for downloading customer images before storing them
    fetch_timeout: float = 30.0


class RendererConfig(BaseModel):
    """Headless Chromium settings for HTML → PDF rendering."""

    max_concurrent_renders: int = Field(default=2, ge=1)
    image_timeout_ms: int = Field(default=5000, ge=0)
    executable_path: Optional[str] = None
    navigation_timeout_ms: int = 30000


class Settings(BaseModel):
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    public_base_url: str = ""
    storage: StorageConfig = Field(default_factory=StorageConfig)
    renderer: RendererConfig = Field(default_factory=RendererConfig)
    shopify_api_secret: Optional[str] = None
    shopify_admin_access_token: Optional[str] = None
    shopify_api_version: str = "2024-10"
    letters_api_key: Optional[str] = None
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        STORAGE_TYPE picks the backend (local, s3, supabase, cloudflare-r2);
        unknown values raise ValueError so a typo fails at startup rather than
        silently writing to local disk.
        """
        storage = StorageConfig(
            kind=StorageKind(os.getenv("STORAGE_TYPE", "local").strip().lower() or "local"),
            local_root=os.getenv("LOCAL_STORAGE_ROOT", "public"),
            s3_bucket=os.getenv("AWS_S3_BUCKET") or None,
            s3_region=os.getenv("AWS_REGION", "us-east-1"),
            s3_endpoint_url=os.getenv("S3_ENDPOINT_URL") or None,
            supabase_bucket=os.getenv("SUPABASE_STORAGE_BUCKET", "letters"),
        )

        renderer = RendererConfig(
            max_concurrent_renders=int(os.getenv("RENDER_CONCURRENCY", "2")),
            image_timeout_ms=int(os.getenv("IMAGE_LOAD_TIMEOUT_MS", "5000")),
            executable_path=os.getenv("CHROMIUM_EXECUTABLE_PATH") or None,
        )

        # Same precedence as the storefront app: SHOPIFY_APP_URL first
        public_base_url = (
            os.getenv("SHOPIFY_APP_URL") or os.getenv("APP_URL") or ""
        ).strip()

        cors_env = os.getenv("CORS_ORIGINS", "").strip()
        cors_origins = [o.strip() for o in cors_env.split(",") if o.strip()] or ["*"]

        return cls(
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY") or None,
            public_base_url=public_base_url,
            storage=storage,
            renderer=renderer,
            shopify_api_secret=os.getenv("SHOPIFY_API_SECRET") or None,
            shopify_admin_access_token=os.getenv("SHOPIFY_ADMIN_ACCESS_TOKEN") or None,
            shopify_api_version=os.getenv("SHOPIFY_API_VERSION", "2024-10"),
            letters_api_key=os.getenv("LETTERS_API_KEY") or None,
            cors_origins=cors_origins,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
