"""Runtime configuration loaded from environment variables."""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_URL = "https://plus62store.github.io/products.json"
DEFAULT_MODEL = "@cf/meta/llama-3-8b-instruct"
CLOUDFLARE_AI_URL = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/{model}"
USER_AGENT = "Mozilla/5.0 (compatible; storefront-chat-server)"


class Settings(BaseModel):
    """Storefront server settings."""

    catalog_url: str = Field(default=DEFAULT_CATALOG_URL, description="Remote product feed")
    catalog_ttl: int = Field(default=3600, gt=0, description="Catalog cache TTL in seconds")
    catalog_timeout: float = Field(default=10.0, gt=0, description="Catalog fetch timeout")
    cache_file: str = Field(
        default_factory=lambda: str(Path.home() / ".storefront_cache.json"),
        description="Path of the durable key/value cache",
    )
    model: str = Field(default=DEFAULT_MODEL, description="Inference model name")
    inference_url: Optional[str] = Field(None, description="Full inference endpoint URL")
    inference_timeout: float = Field(default=60.0, gt=0, description="Inference call timeout")
    account_id: Optional[str] = Field(None, description="Cloudflare account ID")
    api_token: Optional[str] = Field(None, description="Cloudflare API token")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``STOREFRONT_*`` and ``CLOUDFLARE_*`` variables."""
        values: dict[str, object] = {}
        env_map = {
            "STOREFRONT_CATALOG_URL": "catalog_url",
            "STOREFRONT_CATALOG_TTL": "catalog_ttl",
            "STOREFRONT_CATALOG_TIMEOUT": "catalog_timeout",
            "STOREFRONT_CACHE_FILE": "cache_file",
            "STOREFRONT_MODEL": "model",
            "STOREFRONT_INFERENCE_URL": "inference_url",
            "STOREFRONT_INFERENCE_TIMEOUT": "inference_timeout",
            "CLOUDFLARE_ACCOUNT_ID": "account_id",
            "CLOUDFLARE_API_TOKEN": "api_token",
        }
        for env_name, field_name in env_map.items():
            value = os.environ.get(env_name)
            if value:
                values[field_name] = value

        settings = cls(**values)
        if not settings.api_token:
            logger.warning("CLOUDFLARE_API_TOKEN is not set; chat requests will likely be rejected")
        return settings

    def resolved_inference_url(self) -> str:
        """Return the inference endpoint, deriving it from the account ID if needed."""
        if self.inference_url:
            return self.inference_url
        if not self.account_id:
            raise ValueError(
                "No inference endpoint configured. Set STOREFRONT_INFERENCE_URL or CLOUDFLARE_ACCOUNT_ID."
            )
        return CLOUDFLARE_AI_URL.format(account_id=self.account_id, model=self.model)
