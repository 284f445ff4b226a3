"""AI assistance package."""

from smartshop.agents.ai_agents import (
    GeminiShoppingAssistant,
    ShoppingAssistant,
    build_advice_payload,
    extract_json_object,
    parsed_record_from_text,
)

__all__ = [
    "GeminiShoppingAssistant",
    "ShoppingAssistant",
    "build_advice_payload",
    "extract_json_object",
    "parsed_record_from_text",
]
