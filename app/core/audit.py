"""Dish audit: merge vision output with upstream database records."""

import logging
import math
import re
from typing import Any, Dict, List, Optional

from app.models.schemas import AuditData, AuditRequest, AuditResponse
from config.settings import SCORING_CONFIG
from .upstream import FoodDatabaseClient
from .vision import VisionAnalyzer

logger = logging.getLogger(__name__)

DEFAULT_DISH_NAME = "Detected Dish"
DEFAULT_CATEGORY = "General Food"
UNKNOWN_INGREDIENTS = ["Unknown"]
PLACEHOLDER_INGREDIENTS = ["Spices", "Main Ingredient"]
MAX_TEXT_INGREDIENTS = 5
NOT_FOOD_REASON = "Image does not appear to be food or analysis failed."

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def compute_score(recipe_present: bool, flavor_present: bool) -> int:
    """Fixed score table; a recipe match outranks a flavor match."""
    if recipe_present:
        return SCORING_CONFIG["base"] + SCORING_CONFIG["recipe_bonus"]
    if flavor_present:
        return SCORING_CONFIG["base"] + SCORING_CONFIG["flavor_bonus"]
    return SCORING_CONFIG["base"]


def parse_float(value: Any) -> float:
    """Parse the leading number of a value, 0.0 when there is none."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if not isinstance(value, str):
        return 0.0
    match = _LEADING_NUMBER.match(value)
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_ingredients(value: Any) -> List[str]:
    """Normalize a RecipeDB ingredient field into a list of names."""
    if isinstance(value, list):
        return [str(item) for item in value]
    if isinstance(value, str):
        return [item.strip() for item in value.split(",")[:MAX_TEXT_INGREDIENTS]]
    return list(PLACEHOLDER_INGREDIENTS)


def merge_audit(
    dish_name: str,
    recipe: Optional[Dict[str, Any]],
    flavor: Optional[Dict[str, Any]]
) -> AuditData:
    """Merge the two upstream records into one verdict.

    RecipeDB supplies ingredients and nutrition; FlavorDB supplies the
    canonical alias and category.
    """
    flavor_alias = flavor.get("entity_alias_readable") if flavor is not None else None

    if recipe is not None:
        ingredients = parse_ingredients(recipe.get("Ingredients") or recipe.get("ingredients"))
    elif flavor is not None:
        ingredients = [flavor_alias or dish_name]
    else:
        ingredients = list(UNKNOWN_INGREDIENTS)

    if recipe is not None:
        calories = round_half_up(parse_float(recipe.get("Energy") or recipe.get("Calories") or "0"))
        protein = parse_float(recipe.get("Protein") or "0")
        fat = parse_float(recipe.get("Total lipid (fat)") or "0")
        recipe_name = recipe.get("Recipe_title") or dish_name
    else:
        calories, protein, fat = 0, 0.0, 0.0
        recipe_name = flavor_alias or dish_name

    category = (flavor.get("category_readable") if flavor is not None else None) or DEFAULT_CATEGORY

    return AuditData(
        is_food=True,
        freshness="fresh",
        score=compute_score(recipe is not None, flavor is not None),
        ingredients=ingredients,
        calories=calories,
        recipe_name=str(recipe_name),
        protein=protein,
        fat=fat,
        category=str(category)
    )


class DishAuditor:
    """Runs the full audit for one request."""

    def __init__(self, analyzer: VisionAnalyzer, database: FoodDatabaseClient):
        self.analyzer = analyzer
        self.database = database

    def _lookup(self, dish_name: str):
        # Independent lookups: a failure in one must not skip the other
        recipe = None
        flavor = None
        try:
            recipe = self.database.search_recipe(dish_name)
        except Exception as e:
            logger.error(f"Recipe lookup failed: {e}")
        try:
            flavor = self.database.lookup_flavor(dish_name)
        except Exception as e:
            logger.error(f"Flavor lookup failed: {e}")
        return recipe, flavor

    def audit(self, request: AuditRequest) -> AuditResponse:
        if not request.order_id and not request.photo_urls:
            # Permissive: proceed with the default dish name
            logger.warning("Audit request has neither an order id nor photos")

        logger.info(f"Audit received for: {request.order_id}")
        dish_name = DEFAULT_DISH_NAME

        if request.photo_urls and request.photo_urls[0]:
            logger.info("Running vision analysis...")
            analysis = self.analyzer.analyze(request.photo_urls[0])
            if analysis is None:
                logger.warning("Vision model returned no verdict")
            else:
                logger.info(f"Vision result: {analysis.model_dump(exclude_none=True)}")
                if not analysis.is_food:
                    return AuditResponse(
                        status="error",
                        reason=analysis.reason or analysis.error or NOT_FOOD_REASON,
                        refund_amount=0
                    )
                dish_name = analysis.dish_name or dish_name
        else:
            logger.warning("Skipping vision analysis: no photo")

        recipe, flavor = self._lookup(dish_name)
        data = merge_audit(dish_name, recipe, flavor)

        return AuditResponse(
            status="success",
            message=f"Dish verified: {dish_name}",
            data=data
        )
