"""Decode model output into validated recipes."""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import ValidationError

from pantry_chef.domain.errors import InvalidResponseError
from pantry_chef.domain.recipes import (
    ParsedRecipes,
    ParseFailure,
    Recipe,
    RejectedRecipe,
)
from pantry_chef.services.repair import (
    DEFAULT_REPAIR_RULES,
    RepairRule,
    extract_json_object,
    repair_json_text,
)

ERROR_CONTEXT_RADIUS = 50

_logger = logging.getLogger(__name__)


@dataclass
class RecipeResponseParser:
    """Extract, repair and validate the ``recipes`` list in model output."""

    rules: Sequence[RepairRule] = DEFAULT_REPAIR_RULES

    def parse(self, raw: str) -> ParsedRecipes:
        """Return the valid recipes, dropping invalid ones with a reason.

        Raises InvalidResponseError when the payload cannot be decoded or no
        recipe survives validation.
        """
        candidate = extract_json_object(raw)
        if candidate is None:
            raise InvalidResponseError(
                "Model output contains no JSON object",
                failure=ParseFailure(
                    message="no '{' found", context=raw[: ERROR_CONTEXT_RADIUS * 2]
                ),
            )

        repaired = repair_json_text(candidate, self.rules)
        try:
            data = json.loads(repaired)
        except json.JSONDecodeError as exc:
            failure = ParseFailure(
                message=exc.msg,
                position=exc.pos,
                context=_context_window(repaired, exc.pos),
            )
            _logger.warning(
                "Model output is not valid JSON: %s at %s near %r",
                exc.msg,
                exc.pos,
                failure.context,
            )
            raise InvalidResponseError(
                f"Model output is not valid JSON: {exc.msg}", failure=failure
            ) from exc

        items = data.get("recipes") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise InvalidResponseError(
                "Model output has no 'recipes' array",
                failure=ParseFailure(
                    message="missing 'recipes' array",
                    context=repaired[: ERROR_CONTEXT_RADIUS * 2],
                ),
            )

        recipes: list[Recipe] = []
        rejected: list[RejectedRecipe] = []
        for index, item in enumerate(items):
            try:
                recipe = Recipe.model_validate(item)
            except ValidationError as exc:
                rejection = RejectedRecipe(
                    index=index, name=_recipe_name(item), reason=_summarize(exc)
                )
                _logger.warning(
                    "Dropping recipe %s (%s): %s",
                    rejection.index,
                    rejection.name,
                    rejection.reason,
                )
                rejected.append(rejection)
                continue
            if recipe.nutrition.total != 100:  # noqa: PLR2004
                _logger.info(
                    "Recipe %r nutrition split sums to %s",
                    recipe.name,
                    recipe.nutrition.total,
                )
            recipes.append(recipe)

        if not recipes:
            raise InvalidResponseError(
                "No valid recipe could be recovered from model output",
                rejected=rejected,
            )
        return ParsedRecipes(recipes=recipes, rejected=rejected)


def _context_window(text: str, position: int) -> str:
    start = max(0, position - ERROR_CONTEXT_RADIUS)
    return text[start : position + ERROR_CONTEXT_RADIUS]


def _recipe_name(item: object) -> str | None:
    if isinstance(item, dict):
        name = item.get("name")
        if isinstance(name, str):
            return name
    return None


def _summarize(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'recipe'}: {error['msg']}"
        for error in exc.errors()
    )
