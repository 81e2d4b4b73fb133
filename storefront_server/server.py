"""MCP Server for the storefront catalog and shopping assistant."""

import asyncio
import json
import logging
from typing import Any, Optional

import httpx
from mcp.server import Server
from mcp.types import Resource, TextContent, Tool
from pydantic import AnyUrl, ValidationError as PydanticValidationError

from .cache import CacheStore
from .catalog import CatalogProvider
from .chat import ChatProxy
from .config import Settings
from .directives import format_directive
from .inference import InferenceClient
from .models import ConversationTurn
from .prompt import build_system_prompt

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-mcp-server")

# Initialize server
app = Server("storefront-mcp-server")

# Global state
http_client: Optional[httpx.AsyncClient] = None
catalog_provider: CatalogProvider
chat_proxy: ChatProxy


def init_services(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
    """Create the shared HTTP client, catalog provider and chat proxy."""
    global http_client, catalog_provider, chat_proxy

    http_client = httpx.AsyncClient(transport=transport, follow_redirects=True)
    catalog_provider = CatalogProvider(CacheStore(settings.cache_file), http_client, settings)
    chat_proxy = ChatProxy(catalog_provider, InferenceClient(http_client, settings))


@app.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [
        Resource(
            uri=AnyUrl("storefront://catalog"),
            name="Product Catalog",
            mimeType="application/json",
            description="Current product catalog",
        ),
        Resource(
            uri=AnyUrl("storefront://system-prompt"),
            name="Assistant System Prompt",
            mimeType="text/plain",
            description="System prompt sent to the model, rendered from the catalog",
        ),
    ]


@app.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource by URI."""
    uri_str = str(uri)

    if uri_str == "storefront://catalog":
        catalog = await catalog_provider.get_catalog()
        return json.dumps(catalog.to_payload(), indent=2, ensure_ascii=False)

    elif uri_str == "storefront://system-prompt":
        catalog = await catalog_provider.get_catalog()
        return build_system_prompt(catalog)

    raise ValueError(f"Unknown resource: {uri}")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="storefront_list_products",
            description="List all products in the store catalog with prices and stock",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_get_product",
            description="Get full details of a single product, including its styles",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {
                        "type": "string",
                        "description": "Product ID as shown by storefront_list_products",
                    },
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_chat",
            description="Ask the store's shopping assistant. Returns its reply and any add-to-cart request it made.",
            inputSchema={
                "type": "object",
                "properties": {
                    "message": {
                        "type": "string",
                        "description": "The customer's message",
                    },
                    "conversation_history": {
                        "type": "array",
                        "description": "Previous turns as {role, content} objects (optional)",
                        "items": {
                            "type": "object",
                            "properties": {
                                "role": {"type": "string", "enum": ["system", "user", "assistant"]},
                                "content": {"type": "string"},
                            },
                            "required": ["role", "content"],
                        },
                    },
                },
                "required": ["message"],
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        if name == "storefront_list_products":
            catalog = await catalog_provider.get_catalog()

            result_lines = [f"Found {len(catalog.product)} product(s):\n"]
            for i, product in enumerate(catalog.product, 1):
                result_lines.append(f"\n{i}. {product.title}")
                result_lines.append(f"   ID: {product.id}")
                result_lines.append(f"   Price: Rp {product.price}")
                if product.discount:
                    result_lines.append(f"   Discount Price: Rp {product.discount}")
                result_lines.append(f"   Stock: {product.stock}")

            return [TextContent(type="text", text="\n".join(result_lines))]

        elif name == "storefront_get_product":
            product_id = arguments["product_id"]
            catalog = await catalog_provider.get_catalog()
            product = catalog.find(product_id)

            if product is None:
                return [TextContent(type="text", text=f"No product found with ID: {product_id}")]

            return [
                TextContent(
                    type="text",
                    text=product.model_dump_json(indent=2, by_alias=True),
                )
            ]

        elif name == "storefront_chat":
            history = [
                ConversationTurn.model_validate(turn)
                for turn in arguments.get("conversation_history") or []
            ]
            reply = await chat_proxy.collect_reply(arguments.get("message", ""), history)

            result_lines = [reply.text.strip()]
            if reply.directive:
                result_lines.append(
                    f"\nCart request: {format_directive(reply.directive.product_id, reply.directive.quantity)}"
                )
            if not reply.completed:
                result_lines.append("\n(Reply was truncated by the inference backend)")

            return [TextContent(type="text", text="\n".join(result_lines))]

        else:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

    except PydanticValidationError as e:
        return [TextContent(type="text", text=f"Error: Invalid arguments: {e}")]
    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return [
            TextContent(
                type="text",
                text=f"Error: {str(e)}",
            )
        ]


async def main() -> None:
    """Main entry point for the MCP server."""
    settings = Settings.from_env()
    init_services(settings)

    logger.info("Starting Storefront MCP Server...")

    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
            )
    finally:
        if http_client is not None:
            await http_client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
