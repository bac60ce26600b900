"""
Configuration settings for the Foodoscope verification service.
Supports live model endpoints and an offline mock mode.
"""

from typing import Optional
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FOODCHECK_",
        extra="ignore",
    )

    # Application settings
    app_name: str = "Foodoscope"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Offline interfaces instead of Ollama / Groq
    use_mock: bool = False

    # Vision model (local Ollama)
    ollama_endpoint: str = "http://127.0.0.1:11434/api/generate"
    vision_model: str = "deepseek-v3"
    vision_timeout: float = 120.0

    # Chat completion (Groq, OpenAI-compatible API)
    chat_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FOODCHECK_CHAT_API_KEY", "GROQ_API_KEY"),
    )
    chat_base_url: str = "https://api.groq.com/openai/v1"
    chat_model: str = "mixtral-8x7b-32768"
    temperature: float = 0.7
    max_tokens: int = 2048
    chat_timeout: float = 60.0

    # Upstream databases, reached through the proxy
    proxy_endpoint: str = "http://127.0.0.1:8000/api-proxy"
    proxy_auth_token: str = Field(
        default="",
        validation_alias=AliasChoices("FOODCHECK_PROXY_AUTH_TOKEN", "SUPABASE_ANON_KEY"),
    )
    upstream_timeout: float = 30.0

    # Proxy targets
    flavordb_base: str = "http://192.168.1.92:9208/flavordb"
    recipedb_base: str = "http://cosylab.iiitd.edu.in:6969"
    proxy_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("FOODCHECK_PROXY_API_KEY", "API_KEY"),
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Prompt templates for the generative calls
PROMPT_TEMPLATES = {
    "vision_analysis": """Analyze this food image.
1. Identify the dish name (e.g., "Pizza", "Salad") or "Unknown" if unclear.
2. detailed list of ingredients.
3. Is it food? (true/false).

Return strictly valid JSON:
{
    "isFood": boolean,
    "dishName": "string",
    "ingredients": ["string", "string"],
    "reason": "string (if not food)"
}""",

    "kitchen_assistant": """You are an intelligent sustainable kitchen assistant.
The user has the following ingredients in their pantry: {pantry}
The following ingredients are about to spoil within 48 hours: {expiring}

Your task:
1. Generate 3 creative and tasty recipes using the expiring ingredients as priority.
2. Ensure minimal food waste.
3. Suggest scientifically compatible flavor pairings.
4. Suggest healthy alternatives if needed.
5. Keep recipes simple and home-friendly.
6. Mention sustainability tips for each recipe.

Return output strictly as a JSON array of objects. Each object must have these keys:
- name (Recipe Name)
- ingredients (Main Ingredients Used, as a string or array)
- twist (Flavor Twist)
- time (Cooking Time)
- benefits (Health Benefit)
- sustainability (Sustainability Tip)

Do not include any markdown formatting or explanations outside the JSON.""",
}

# Upstream paths, relative to the proxy endpoint
UPSTREAM_PATHS = {
    "recipe_search": "/recipedb/recipe2-api/recipe/search",
    "flavor_lookup": "/flavordb/entities/by-entity-alias-readable",
}

# Fixed audit scoring table
SCORING_CONFIG = {
    "base": 85,
    "flavor_bonus": 3,
    "recipe_bonus": 7,
}
