"""
Keyword-based recipe category classifier.

Assigns every recipe to one of the fixed categories by matching category
keywords against the recipe name and ingredient text. Each category is
scored by the total length of its matched keywords, so specific terms
("marhahús") outweigh short generic ones ("hal").
"""

import logging
from typing import Dict, List, Optional

from ecoscore.models.recipe import Category
from ecoscore.utils.constants import CATEGORY_ALIASES, CATEGORY_KEYWORDS

# Configure logging
logger = logging.getLogger(__name__)


class CategoryClassifier:
    """
    Deterministic keyword classifier for recipe categories.

    Attributes:
        keywords: Category to keyword list table; table order breaks ties
        aliases: Accepted raw category labels
    """

    def __init__(
        self,
        keywords: Optional[Dict[Category, List[str]]] = None,
        aliases: Optional[Dict[str, Category]] = None
    ):
        self.keywords = keywords or CATEGORY_KEYWORDS
        self.aliases = aliases or CATEGORY_ALIASES

    def score_categories(self, ingredients_text: str, name: str) -> Dict[Category, int]:
        """
        Score every category against a recipe.

        Args:
            ingredients_text: Raw or normalized ingredient text
            name: Recipe name

        Returns:
            Dict[Category, int]: Sum of matched keyword lengths per category
        """
        text = f"{name or ''} {ingredients_text or ''}".lower()
        return {
            category: sum(len(keyword) for keyword in keywords if keyword in text)
            for category, keywords in self.keywords.items()
        }

    def classify(self, ingredients_text: str, name: str) -> Category:
        """
        Pick the best-matching category.

        Args:
            ingredients_text: Raw or normalized ingredient text
            name: Recipe name

        Returns:
            Category: Highest-scoring category, or Category.OTHER without any match

        Example:
            >>> CategoryClassifier().classify("marhahús, hagyma", "Pörkölt")
            <Category.MAIN: 'main'>
        """
        scores = self.score_categories(ingredients_text, name)

        best_category = Category.OTHER
        best_score = 0
        for category, score in scores.items():
            if score > best_score:
                best_category, best_score = category, score

        logger.debug(f"Classified '{name}' as '{best_category.value}' (score {best_score})")
        return best_category

    def resolve(
        self,
        raw_category: Optional[str],
        ingredients_text: str,
        name: str
    ) -> Category:
        """
        Map a supplied category label, classifying when it is absent or unknown.

        Args:
            raw_category: Category label from the source record
            ingredients_text: Raw ingredient text
            name: Recipe name

        Returns:
            Category: Resolved category
        """
        if raw_category:
            category = self.aliases.get(raw_category.strip().lower())
            if category is not None:
                return category
            logger.debug(f"Unknown category label '{raw_category}' for '{name}', classifying")

        return self.classify(ingredients_text, name)
