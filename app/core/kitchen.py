"""Recipe assistant with the canned-recipe fallback protocol."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import TypeAdapter

from app.models.schemas import Recipe
from config.settings import PROMPT_TEMPLATES
from .model_interface import BaseChatInterface, MissingCredentialsError
from .parsing import parse_model_json

logger = logging.getLogger(__name__)

_RECIPE_LIST = TypeAdapter(List[Recipe])

FALLBACK_RECIPES = [
    {
        "name": "Emergency Recovery Frittata",
        "ingredients": "Eggs, Leftover Vegetables, Cheese, Herbs",
        "twist": "Add a pinch of baking powder for extra fluffiness.",
        "time": "15 mins",
        "benefits": "High protein, utilizing available micronutrients.",
        "sustainability": "Frittatas effectively sequester wilting produced into a cohesive appetizing matrix."
    },
    {
        "name": "Resource-Efficient Stir Fry",
        "ingredients": "Rice or Noodles, Mixed Veggies, Soy Sauce, Garlic",
        "twist": "Top with crushed peanuts or sesame seeds for textural contrast.",
        "time": "10 mins",
        "benefits": "Balanced macro-nutrient profile with minimal caloric density.",
        "sustainability": "High-heat rapid cooking preserves texture of near-expiry vegetables."
    },
    {
        "name": "Optimization Soup",
        "ingredients": "Vegetable Broth, Root Vegetables, Beans, Spices",
        "twist": "Add a squeeze of lemon at the end to brighten the flavor profile.",
        "time": "25 mins",
        "benefits": "Hydrating and easily digestible nutrient absorption.",
        "sustainability": "Boiling extracts maximum flavor from stems and peels that might otherwise be discarded."
    }
]


def fallback_recipes() -> List[Recipe]:
    """Fresh copies of the canned recipes."""
    return [Recipe(**recipe) for recipe in FALLBACK_RECIPES]


@dataclass
class KitchenOutcome:
    """Recipes for one request and whether they came from the fallback set."""
    recipes: List[Recipe] = field(default_factory=list)
    used_fallback: bool = False
    error: Optional[str] = None


class KitchenAssistant:
    """Generates recipes from pantry contents with one chat-completion call."""

    def __init__(self, chat: Optional[BaseChatInterface], prompt_template: Optional[str] = None):
        self.chat = chat
        self.prompt_template = prompt_template or PROMPT_TEMPLATES["kitchen_assistant"]

    def build_prompt(self, pantry: str, expiring: str) -> str:
        return self.prompt_template.format(pantry=pantry, expiring=expiring)

    def generate(self, pantry: str, expiring: str) -> List[Recipe]:
        """Single attempt at live generation. Raises on any failure."""
        if self.chat is None:
            raise MissingCredentialsError("Missing API Key")

        content = self.chat.complete(self.build_prompt(pantry, expiring))
        return _RECIPE_LIST.validate_python(parse_model_json(content).unwrap())

    def suggest(self, pantry: str, expiring: str) -> KitchenOutcome:
        """Return live recipes, or the canned set when anything fails.

        An empty array from the model is a valid answer and is returned as-is.
        """
        try:
            return KitchenOutcome(recipes=self.generate(pantry, expiring))
        except Exception as e:
            if isinstance(e, MissingCredentialsError):
                logger.warning(f"Chat API key is missing. Switching to fallback mode: {e}")
            else:
                logger.error(f"Recipe generation failed (running fallback protocol): {e}")
            return KitchenOutcome(recipes=fallback_recipes(), used_fallback=True, error=str(e))
