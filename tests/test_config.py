import pytest

from storefront_server.config import DEFAULT_CATALOG_URL, Settings


def test_defaults(monkeypatch):
    for name in ["STOREFRONT_CATALOG_URL", "STOREFRONT_CATALOG_TTL", "STOREFRONT_CACHE_FILE", "STOREFRONT_INFERENCE_URL"]:
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.catalog_url == DEFAULT_CATALOG_URL
    assert settings.catalog_ttl == 3600
    assert settings.cache_file.endswith(".storefront_cache.json")


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("STOREFRONT_CATALOG_URL", "https://feed.test/p.json")
    monkeypatch.setenv("STOREFRONT_CATALOG_TTL", "120")
    monkeypatch.setenv("STOREFRONT_CACHE_FILE", str(tmp_path / "c.json"))
    monkeypatch.setenv("STOREFRONT_INFERENCE_TIMEOUT", "5.5")
    monkeypatch.setenv("CLOUDFLARE_ACCOUNT_ID", "acc123")
    monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "secret")

    settings = Settings.from_env()

    assert settings.catalog_url == "https://feed.test/p.json"
    assert settings.catalog_ttl == 120
    assert settings.inference_timeout == 5.5
    assert settings.api_token == "secret"
    assert settings.resolved_inference_url() == (
        "https://api.cloudflare.com/client/v4/accounts/acc123/ai/run/@cf/meta/llama-3-8b-instruct"
    )


def test_explicit_inference_url_wins():
    settings = Settings(inference_url="https://ai.test/run", account_id="acc123")
    assert settings.resolved_inference_url() == "https://ai.test/run"


def test_missing_inference_endpoint():
    with pytest.raises(ValueError):
        Settings().resolved_inference_url()
