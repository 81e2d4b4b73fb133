"""Inline cart commands embedded by the model in its replies.

The model is instructed to write ``[ADD_TO_CART:<product_id>:<quantity>]``
somewhere in its answer. The command is a control signal: consumers act on it
and remove it from the text shown to the user. Only the first command in a
reply is honoured, and extraction must run on the completed reply because a
command can straddle stream chunks.
"""

import logging
import re
from typing import Optional

from .models import AssistantReply, CartDirective

logger = logging.getLogger(__name__)

DIRECTIVE_RE = re.compile(r"\[ADD_TO_CART:(?P<product_id>[^:\]]+):(?P<quantity>[0-9]+)\]")


def format_directive(product_id: str, quantity: int) -> str:
    return f"[ADD_TO_CART:{product_id}:{quantity}]"


def extract_directive(text: str) -> Optional[CartDirective]:
    """Return the first cart command in ``text``, or None."""
    match = DIRECTIVE_RE.search(text)
    if match is None:
        return None

    quantity = int(match.group("quantity"))
    if quantity <= 0:
        logger.info(f"Ignoring cart command with quantity {quantity}: {match.group(0)}")
        return None
    return CartDirective(product_id=match.group("product_id"), quantity=quantity)


def strip_directive(text: str) -> str:
    """Remove the first cart command from ``text``."""
    return DIRECTIVE_RE.sub("", text, count=1)


def parse_assistant_text(text: str, completed: bool = True) -> AssistantReply:
    """Split a completed reply into display text and cart command."""
    directive = extract_directive(text)
    if directive is None:
        return AssistantReply(text=text, completed=completed)
    return AssistantReply(text=strip_directive(text), directive=directive, completed=completed)
