"""System prompt rendering from the product catalog."""

import logging
import re

from .models import Catalog, Product

logger = logging.getLogger(__name__)

# Catalog text must never contain something the extractor would treat as a directive.
_DIRECTIVE_OPENER_RE = re.compile(r"\[(\s*ADD_TO_CART)", re.IGNORECASE)

PRODUCT_LINE_TEMPLATE = (
    "- {title} (ID: {id}): {description} "
    "(Harga Normal: Rp {price}, Harga Diskon: Rp {discount}, Stok: {stock})"
)

SYSTEM_PROMPT_TEMPLATE = """You are a friendly and helpful e-commerce assistant for an online store in Indonesia. Your role is to help customers find products, answer questions, and assist with shopping.

AVAILABLE PRODUCTS:
{product_list}

IMPORTANT GUIDELINES:
1. Be friendly, helpful, and speak in a conversational tone
2. Understand user queries about products and provide accurate information
3. If user asks about a product that matches available items, provide details about price, description, and stock
4. If user request is unclear or missing information, politely ask for clarification
5. You can suggest adding items to cart when user expresses interest
6. Always respond in the same language as the user
7. Keep responses concise but helpful

CART MANAGEMENT:
- When user clearly wants to add an item to cart, include: [ADD_TO_CART:<product_id>:<quantity>]
- Use the exact product ID shown in the product list and a whole-number quantity, e.g. [ADD_TO_CART:{example_id}:1]
- Include at most one such command per response
- When user asks about cart, provide summary of items

RESPONSE FORMAT:
- Use natural, conversational language
- Focus on assisting with product selection and purchases
- Be enthusiastic about helping customers"""


def sanitize_field(value: str) -> str:
    """Neutralise directive openers found in catalog text."""
    return _DIRECTIVE_OPENER_RE.sub(r"(\1", value)


def render_product_line(product: Product) -> str:
    if ":" in product.id or "]" in product.id:
        logger.warning(
            f"Product ID {product.id!r} contains ':' or ']'; cart commands for it cannot be parsed reliably"
        )
    return PRODUCT_LINE_TEMPLATE.format(
        title=sanitize_field(product.title),
        id=product.id,
        description=sanitize_field(product.description),
        price=sanitize_field(product.price),
        discount=sanitize_field(product.discount),
        stock=sanitize_field(product.stock),
    )


def build_system_prompt(catalog: Catalog) -> str:
    """Render the catalog into the assistant's system prompt."""
    product_list = "\n".join(render_product_line(p) for p in catalog.product)
    return SYSTEM_PROMPT_TEMPLATE.format(
        product_list=product_list,
        example_id=catalog.product[0].id,
    )
