"""Storefront chat server: product catalog, LLM chat proxy and cart directives."""

__version__ = "0.1.0"
