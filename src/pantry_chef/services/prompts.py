"""Prompt composition for recipe recommendations."""

import json
from collections.abc import Sequence
from datetime import date

from pantry_chef.domain.pantry import HistoryEntry, IngredientSnapshot
from pantry_chef.domain.recipes import RecipeType
from pantry_chef.services.units import format_quantity

URGENCY_MARK = "❗️"
URGENT_WITHIN_DAYS = 3
NO_EXPIRY_LABEL = "无保质期"
UNCATEGORIZED_LABEL = "未分类"
RECIPES_PER_TYPE = 2
REPETITION_WINDOW_DAYS = 6

_REQUIREMENTS_ZH = f"""\
3. 特殊要求：
   - 优先消耗临近过期食材（剩余保质期≤{URGENT_WITHIN_DAYS}天的标记为{URGENCY_MARK}）
   - 营养均衡（蛋白质占比20-35%）
   - 避免重复最近{REPETITION_WINDOW_DAYS}天的食谱
   - 每种类型提供{RECIPES_PER_TYPE}道食谱选择
   - 需要包含以下三种类型：
     a. {RecipeType.QUICK.label}（烹饪时间≤20分钟）
     b. {RecipeType.HEARTY.label}（营养均衡，适合2-4人）
     c. {RecipeType.ONEPOT.label}（一锅出，适合3-6人）"""

_REQUIREMENTS_EN = f"""\
3. Requirements:
   - Prioritize ingredients expiring within {URGENT_WITHIN_DAYS} days (marked with {URGENCY_MARK})
   - Balanced nutrition (protein 20-35% of calories)
   - Do not repeat any dish from the last {REPETITION_WINDOW_DAYS} days
   - Provide {RECIPES_PER_TYPE} recipes for each type
   - Include exactly three types:
     a. Quick meals (cooking time ≤20 mins)
     b. Nutritious meals (balanced, serves 2-4)
     c. One-pot meals (serves 3-6)"""

FIELD_RULES = f"""\
1. 食材用量规则：
   - 所有食材必须标注具体数量，禁止使用"适量"、"少许"等模糊词
   - 主料用量需符合份量要求（如4人份）
   - 调味料需标注具体克数或毫升数

2. 字段格式要求：
   - name: 字符串，菜品名称
   - type: 字符串，必须是"{RecipeType.QUICK.label}"、"{RecipeType.HEARTY.label}"或"{RecipeType.ONEPOT.label}"之一
   - cooking_time: 字符串，格式为"数字+分钟"（如"45分钟"）
   - servings: 字符串，格式为"数字+人份"（如"4人份"）
   - calories: 整数，每份卡路里含量
   - nutrition: 对象，包含 protein、carb、fat 三个整数占比，三项之和必须等于100
   - ingredients: 数组，每个元素包含 name（字符串）、amount（数字）、unit（字符串）
   - steps: 字符串数组，每个步骤必须详细具体
   - expiration_priority: 布尔值，是否优先使用临期食材
   - tips: 字符串，烹饪建议和技巧

3. 数据验证要求：
   - 所有必填字段不能为空，数组至少包含一个元素
   - 数值字段不能为负数
   - 只输出 JSON，不要附加其他文字"""

EXAMPLE_RESPONSE: dict[str, object] = {
    "recipes": [
        {
            "name": "红烧排骨",
            "type": RecipeType.HEARTY.label,
            "cooking_time": "45分钟",
            "servings": "4人份",
            "calories": 650,
            "nutrition": {"protein": 35, "carb": 40, "fat": 25},
            "ingredients": [
                {"name": "排骨", "amount": 500, "unit": "克"},
                {"name": "生抽", "amount": 15, "unit": "毫升"},
                {"name": "老抽", "amount": 5, "unit": "毫升"},
                {"name": "料酒", "amount": 10, "unit": "毫升"},
                {"name": "盐", "amount": 2, "unit": "克"},
            ],
            "steps": [
                "排骨切段，冷水下锅焯烫去血水",
                "锅中放油，爆香姜片和葱段",
                "加入排骨翻炒上色",
                "加入生抽、老抽、料酒调味",
                "加入热水，大火烧开后转小火炖煮30分钟",
                "调入盐和糖，收汁即可",
            ],
            "expiration_priority": True,
            "tips": "1. 焯水时加入几片姜片去腥 2. 炖煮时间要足够长，确保排骨软烂",
        }
    ]
}


def compose_prompt(
    ingredients: Sequence[IngredientSnapshot],
    history: Sequence[HistoryEntry],
    *,
    today: date,
) -> str:
    """Render inventory and meal history into a single instruction block.

    Output depends only on the arguments; ``today`` is the reference day for
    days-left and urgency marks.
    """
    lines = [
        "# 中英双语指令模板",
        "[ZH] 你是一个专业营养师，请根据以下信息生成定制化食谱：",
        "",
        "1. 当前库存食材：",
    ]
    for category, items in _group_by_category(ingredients):
        described = ", ".join(_describe_ingredient(item, today) for item in items)
        lines.append(f"{category}：{described}")

    lines.extend(["", "2. 用户近期饮食："])
    if history:
        lines.extend(
            f"  • {entry.date}: {entry.meal_description}" for entry in history
        )
    else:
        lines.append("  • 无")

    lines.extend(["", _REQUIREMENTS_ZH, ""])
    ingredient_names = ", ".join(item.name for item in ingredients)
    last_meals = ", ".join(entry.meal_description for entry in history) or "none"
    lines.extend(
        [
            "[EN] As a professional nutritionist, generate recipes with:",
            f"1. Current ingredients: {ingredient_names}",
            f"2. Last meals: {last_meals}",
            _REQUIREMENTS_EN,
            "",
            "# 输出格式要求",
            "请严格按照以下字段说明和 JSON 示例输出：",
            FIELD_RULES,
            "",
            "JSON 示例：",
            json.dumps(EXAMPLE_RESPONSE, ensure_ascii=False, indent=2),
        ]
    )
    return "\n".join(lines)


def days_left(expiry_date: date, today: date) -> int:
    """Return whole days from today until expiry (negative once expired)."""
    return (expiry_date - today).days


def is_near_expiry(expiry_date: date | None, today: date) -> bool:
    """Return whether an item expires within the urgency window."""
    if expiry_date is None:
        return False
    remaining = days_left(expiry_date, today)
    return 0 <= remaining <= URGENT_WITHIN_DAYS


def _describe_ingredient(item: IngredientSnapshot, today: date) -> str:
    mark = URGENCY_MARK if is_near_expiry(item.expiry_date, today) else ""
    if item.expiry_date is None:
        expiry = NO_EXPIRY_LABEL
    else:
        expiry = f"{days_left(item.expiry_date, today)}天"
    quantity = format_quantity(item.quantity, item.unit)
    return f"{item.name}{mark}({expiry})-{quantity}{item.unit}"


def _group_by_category(
    ingredients: Sequence[IngredientSnapshot],
) -> list[tuple[str, list[IngredientSnapshot]]]:
    groups: dict[str, list[IngredientSnapshot]] = {}
    for item in ingredients:
        category = item.category.strip() or UNCATEGORIZED_LABEL
        groups.setdefault(category, []).append(item)
    return list(groups.items())
