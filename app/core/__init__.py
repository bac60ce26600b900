"""Core application modules."""

from .audit import DishAuditor
from .kitchen import KitchenAssistant
from .proxy import ApiProxy
from .upstream import FoodDatabaseClient
from .vision import VisionAnalyzer

__all__ = ["DishAuditor", "KitchenAssistant", "ApiProxy", "FoodDatabaseClient", "VisionAnalyzer"]
