"""Pydantic models for API request/response schemas."""

from typing import Any, List, Optional, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalysisResult(BaseModel):
    """Verdict returned by the vision model for a single photo."""
    model_config = ConfigDict(populate_by_name=True)

    is_food: bool = Field(default=False, alias="isFood", description="Whether the photo shows food")
    dish_name: Optional[str] = Field(default=None, alias="dishName", description="Detected dish name")
    ingredients: List[str] = Field(default_factory=list, description="Visible ingredients")
    reason: Optional[str] = Field(default=None, description="Explanation when not food")
    error: Optional[str] = Field(default=None, description="Failure text when the call failed")

    @field_validator("ingredients", mode="before")
    @classmethod
    def split_ingredient_text(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, list):
            return [str(item) for item in value]
        return value


class AuditRequest(BaseModel):
    """Request body for the /api/audit-dish endpoint."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    order_id: Any = Field(default=None, alias="orderId", description="Order being audited")
    photo_urls: List[Optional[str]] = Field(
        default_factory=list,
        alias="photoUrls",
        description="Photos as base64 strings or data URLs"
    )
    timestamp: Optional[str] = Field(default=None, description="Client timestamp")

    @field_validator("photo_urls", mode="before")
    @classmethod
    def keep_string_photos(cls, value):
        # Non-string entries count as missing photos
        if not isinstance(value, list):
            return []
        return [item if isinstance(item, str) else None for item in value]


class AuditData(BaseModel):
    """Normalized verdict merged from the vision model and upstream databases."""
    model_config = ConfigDict(populate_by_name=True)

    is_food: bool = Field(default=True, alias="isFood")
    freshness: str = Field(default="fresh", description="Freshness verdict")
    score: int = Field(description="Verification score")
    ingredients: List[str] = Field(description="Ingredients of the dish")
    calories: int = Field(default=0, description="Energy per serving, rounded")
    recipe_name: str = Field(alias="recipeName", description="Matched recipe title")
    protein: float = Field(default=0.0, description="Protein grams")
    fat: float = Field(default=0.0, description="Total lipid grams")
    category: str = Field(default="General Food", description="Food category")


class AuditResponse(BaseModel):
    """Response body for the /api/audit-dish endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success", "error"] = Field(description="Outcome of the audit")
    message: Optional[str] = Field(default=None, description="Human readable summary")
    reason: Optional[str] = Field(default=None, description="Why the audit was rejected")
    refund_amount: Optional[int] = Field(default=None, alias="refundAmount", description="Refund granted")
    data: Optional[AuditData] = Field(default=None, description="Audit verdict")
    debug: Optional[str] = Field(default=None, description="Error detail on internal failure")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Recipe(BaseModel):
    """A recipe suggested by the kitchen assistant."""
    name: str = Field(description="Recipe name")
    ingredients: Union[str, List[str]] = Field(description="Main ingredients used")
    twist: str = Field(description="Flavor twist")
    time: str = Field(description="Cooking time")
    benefits: str = Field(description="Health benefit")
    sustainability: str = Field(description="Sustainability tip")


class KitchenRequest(BaseModel):
    """Request body for the /api/kitchen-assistant endpoint."""
    pantry: Union[str, List[str]] = Field(default="", description="Ingredients in the pantry")
    expiring: Union[str, List[str]] = Field(default="", description="Ingredients close to spoiling")

    @staticmethod
    def _join(value: Union[str, List[str]]) -> str:
        if isinstance(value, list):
            return ", ".join(str(item) for item in value)
        return value

    @property
    def pantry_text(self) -> str:
        return self._join(self.pantry)

    @property
    def expiring_text(self) -> str:
        return self._join(self.expiring)


class KitchenResponse(BaseModel):
    """Response body for the /api/kitchen-assistant endpoint."""
    recipes: List[Recipe] = Field(description="Suggested recipes")


class HealthResponse(BaseModel):
    """Response body for the /health endpoint."""
    status: str = Field(description="Service status")
    mock_mode: bool = Field(description="Whether offline model interfaces are in use")
    vision_model: str = Field(description="Name of the vision model")
    chat_model: str = Field(description="Name of the chat model")
    chat_configured: bool = Field(description="Whether chat credentials are present")
    ready: bool = Field(description="Whether both model interfaces are initialized")
    version: str = Field(description="API version")
