"""Data models for storefront entities."""

from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Style(BaseModel):
    """A colour/style variant of a product."""

    name: str = Field(description="Variant name")
    color: str = Field(default="", description="Display colour, e.g. hex code")
    image_path: str = Field(default="", description="Variant image URL")


class Product(BaseModel):
    """Represents a product from the catalog feed."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Product ID, unique within the catalog")
    title: str = Field(description="Product name")
    slug: str = Field(default="", description="URL slug")
    category: str = Field(default="", description="Product category")
    url: str = Field(default="", description="Canonical product URL")
    sku: str = Field(default="", description="Stock keeping unit")
    price: str = Field(default="", description="Normal price (display string)")
    discount: str = Field(default="", description="Discounted price (display string)")
    stock: str = Field(default="", alias="stok", description="Stock status (display string)")
    description: str = Field(default="", description="Product description")
    narrative: str = Field(default="", description="Optional long-form text")
    image: str = Field(default="", description="Primary image URL")
    styles: list[Style] = Field(default_factory=list, description="Style variants")

    @field_validator("price", "discount", "sku", "id", mode="before")
    @classmethod
    def _coerce_to_string(cls, value: Any) -> Any:
        # The feed is hand-edited; numbers show up where strings are expected.
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
        return value


class Catalog(BaseModel):
    """Ordered product list, shaped like the remote feed: ``{"product": [...]}``."""

    product: list[Product] = Field(min_length=1, description="Products in display order")

    def find(self, product_id: str) -> Optional[Product]:
        """Return the product with the given ID, if any."""
        for product in self.product:
            if product.id == product_id:
                return product
        return None

    def to_payload(self) -> dict[str, Any]:
        """Serialize using the feed's field names."""
        return self.model_dump(by_alias=True)


class ConversationTurn(BaseModel):
    """A single message of a conversation."""

    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    conversation_history: list[ConversationTurn] = Field(
        default_factory=list, alias="conversationHistory"
    )


class CartDirective(BaseModel):
    """Add-to-cart intent parsed out of assistant text."""

    product_id: str
    quantity: int = Field(gt=0)


class AssistantReply(BaseModel):
    """Completed assistant text with any cart directive pulled out."""

    text: str
    directive: Optional[CartDirective] = None
    completed: bool = Field(default=True, description="Whether the [DONE] sentinel was seen")


class CacheEntry(BaseModel):
    """A cached value with its absolute expiry time (epoch seconds)."""

    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
