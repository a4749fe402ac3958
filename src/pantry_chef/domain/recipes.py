"""Models for recipes recommended by the language model."""

from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecipeType(StrEnum):
    """Dish category requested from the model."""

    QUICK = "quick"
    HEARTY = "hearty"
    ONEPOT = "onepot"

    @property
    def label(self) -> str:
        """Return the display label used in prompts."""
        return RECIPE_TYPE_LABELS[self]


RECIPE_TYPE_LABELS: dict[RecipeType, str] = {
    RecipeType.QUICK: "快手菜",
    RecipeType.HEARTY: "营养大餐",
    RecipeType.ONEPOT: "省时锅",
}

_TYPES_BY_LABEL = {label: recipe_type for recipe_type, label in RECIPE_TYPE_LABELS.items()}


class Nutrition(BaseModel):
    """Macronutrient split as percentages of calories."""

    model_config = ConfigDict(frozen=True)

    protein: int = Field(ge=0)
    carb: int = Field(ge=0)
    fat: int = Field(ge=0)

    @property
    def total(self) -> int:
        return self.protein + self.carb + self.fat


class RecipeIngredient(BaseModel):
    """Ingredient line of a recipe."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    amount: float = Field(ge=0)
    unit: str = Field(min_length=1)


class Recipe(BaseModel):
    """Recipe recommendation decoded from model output."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, str_strip_whitespace=True
    )

    name: str = Field(min_length=1)
    type: RecipeType
    cooking_time_text: str = Field(alias="cooking_time", min_length=1)
    servings_text: str = Field(alias="servings", min_length=1)
    calories: int = Field(ge=0)
    nutrition: Nutrition
    ingredients: list[RecipeIngredient] = Field(min_length=1)
    steps: list[str] = Field(min_length=1)
    uses_expiring_ingredients: bool = Field(alias="expiration_priority")
    tips: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: object) -> object:
        if isinstance(value, str):
            cleaned = value.strip()
            if cleaned in _TYPES_BY_LABEL:
                return _TYPES_BY_LABEL[cleaned]
            return cleaned.lower()
        return value

    @field_validator("steps")
    @classmethod
    def _reject_blank_steps(cls, steps: list[str]) -> list[str]:
        if any(not step for step in steps):
            raise ValueError("steps must not contain empty entries")
        return steps

    @field_validator("tips", mode="before")
    @classmethod
    def _default_tips(cls, value: object) -> object:
        return "" if value is None else value


@dataclass(frozen=True)
class RejectedRecipe:
    """Recipe dropped during validation, with the reason."""

    index: int
    name: str | None
    reason: str


@dataclass(frozen=True)
class ParsedRecipes:
    """Recipes recovered from one model response."""

    recipes: list[Recipe]
    rejected: list[RejectedRecipe] = field(default_factory=list)


@dataclass(frozen=True)
class ParseFailure:
    """Diagnostic detail for a model response that could not be decoded."""

    message: str
    position: int | None = None
    context: str | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "position": self.position,
            "context": self.context,
        }
