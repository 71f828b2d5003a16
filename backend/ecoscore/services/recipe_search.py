"""
Ingredient search and experiment-specific ranking.

Matches a free-text ingredient query against the catalog, builds a
candidate set and orders it with the strategy of the participant's test
group:

- Group A (control): uniform random permutation
- Group B: 70% relevance + 30% sustainability composite
- Group C: sustainability first, then relevance, then environmental score

The candidate set is fixed before ranking, so all three groups see the
same recipes for the same query; only their order differs.

Match scoring per search term:
- exact ingredient match: +10 (per matching ingredient)
- substring match either way: +5 (once per term)
- fuzzy match (edit-distance similarity > 0.7): +round(similarity * 3)
- recipe name contains the term (no ingredient match): +2
Plus a coverage bonus of round(matched terms / terms * 5).
"""

import logging
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from rapidfuzz.distance import Levenshtein

from ecoscore.config import SearchConfig
from ecoscore.models.participant import TestGroup
from ecoscore.models.recipe import Category, Recipe, SearchStatistics, SimilarRecipe
from ecoscore.utils.helpers import (
    count_common_elements,
    preprocess_query,
    round_half_up,
    shuffled,
)

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """
    Match of one recipe against a query.

    Attributes:
        recipe: Matched recipe
        score: Total relevance score including the coverage bonus
        exact_matches: Number of exact ingredient matches
        partial_matches: Number of substring, fuzzy or name matches
    """
    recipe: Recipe
    score: int
    exact_matches: int = 0
    partial_matches: int = 0


class RecipeSearchEngine:
    """
    Search matcher and group-specific ranker.

    Attributes:
        config: Search configuration
        rng: Random source for the control group shuffle
    """

    def __init__(self, config: Optional[SearchConfig] = None, rng: Optional[random.Random] = None):
        """
        Initialize the search engine.

        Args:
            config: Search configuration (defaults apply when omitted)
            rng: Random source; pass a seeded random.Random for reproducible shuffles
        """
        self.config = config or SearchConfig()
        self.rng = rng or random.Random()

        logger.info(
            f"RecipeSearchEngine initialized with max_results={self.config.max_results}, "
            f"min_candidates={self.config.min_candidates}, "
            f"fuzzy_threshold={self.config.fuzzy_threshold}"
        )

    def search(
        self,
        catalog: Iterable[Recipe],
        query: str,
        group: Union[TestGroup, str]
    ) -> List[Recipe]:
        """
        Find and rank recipes for an ingredient query.

        This is the main entry point for recipe search. It never raises:
        invalid input (empty catalog, empty or non-text query, unknown
        group) yields an empty list.

        Algorithm:
        1. Split the query into search terms
        2. Score every recipe; drop zero-score recipes
        3. Broaden the set when fewer than min_candidates matched
        4. Keep the max_results most relevant candidates
        5. Order them with the group strategy

        Args:
            catalog: Prepared recipes
            query: Free-text ingredient query
            group: Test group (A/B/C)

        Returns:
            List[Recipe]: Ranked recipes, at most max_results

        Example:
            engine = RecipeSearchEngine()
            results = engine.search(catalog, "marha, hagyma", "C")
        """
        test_group = self._parse_group(group)
        recipes = list(catalog or [])

        if test_group is None or not recipes or not isinstance(query, str) or not query.strip():
            logger.warning(f"Invalid search input (group={group!r}, query={query!r}, recipes={len(recipes)})")
            return []

        terms = preprocess_query(query, self.config.min_term_length)
        if not terms:
            logger.warning(f"No usable search terms in query {query!r}")
            return []

        logger.info(f"Searching for {terms} (group {test_group.value})")

        matches = self.find_matches(recipes, terms)
        # a query always yields at least one candidate
        if len(matches) < max(self.config.min_candidates, 1):
            matches = self.broaden(recipes, terms, matches)

        candidates = self.select_candidates(matches)
        ranked = self.rank(candidates, test_group)

        logger.info(f"Search returned {len(ranked)} recipes")
        for position, match in enumerate(ranked, start=1):
            logger.debug(
                f"  {position}. {match.recipe.name} - relevance {match.score}, "
                f"eco-score {match.recipe.sustainability_index}"
            )

        return [match.recipe for match in ranked]

    def _parse_group(self, group) -> Optional[TestGroup]:
        if isinstance(group, TestGroup):
            return group
        if isinstance(group, str):
            try:
                return TestGroup(group.strip().upper())
            except ValueError:
                return None
        return None

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def match_recipe(self, recipe: Recipe, terms: Sequence[str]) -> MatchResult:
        """
        Score one recipe against the search terms.

        Args:
            recipe: Recipe to score
            terms: Preprocessed search terms

        Returns:
            MatchResult: Relevance score and match counts
        """
        exact_matches = 0
        partial_matches = 0
        relevance = 0
        name = recipe.name.lower()

        for term in terms:
            term_matched = False

            for ingredient in recipe.ingredients:
                if ingredient == term:
                    exact_matches += 1
                    relevance += 10
                    term_matched = True
                elif term in ingredient or ingredient in term:
                    if not term_matched:
                        partial_matches += 1
                        relevance += 5
                        term_matched = True
                elif not term_matched:
                    similarity = Levenshtein.normalized_similarity(ingredient, term)
                    if similarity > self.config.fuzzy_threshold:
                        partial_matches += 1
                        relevance += int(round_half_up(similarity * 3))
                        term_matched = True

            if not term_matched and term in name:
                partial_matches += 1
                relevance += 2

        coverage_bonus = 0
        if terms:
            coverage_bonus = int(round_half_up((exact_matches + partial_matches) / len(terms) * 5))

        return MatchResult(
            recipe=recipe,
            score=relevance + coverage_bonus,
            exact_matches=exact_matches,
            partial_matches=partial_matches
        )

    def find_matches(self, recipes: Iterable[Recipe], terms: Sequence[str]) -> List[MatchResult]:
        """Score all recipes and keep those with a positive score."""
        matches = []
        for recipe in recipes:
            match = self.match_recipe(recipe, terms)
            if match.score > 0:
                matches.append(match)
        logger.debug(f"{len(matches)} recipes matched {list(terms)}")
        return matches

    def broaden(
        self,
        recipes: Sequence[Recipe],
        terms: Sequence[str],
        matches: List[MatchResult]
    ) -> List[MatchResult]:
        """
        Extend a too-small candidate set.

        First adds recipes with an ingredient word starting with the first
        prefix_length characters of a term (relevance 1). If still short,
        pads with the most sustainable remaining recipes (relevance 0).

        Args:
            recipes: Whole catalog
            terms: Search terms
            matches: Current candidates

        Returns:
            List[MatchResult]: Broadened candidates
        """
        broadened = list(matches)
        included = {match.recipe.id for match in broadened}
        prefixes = {term[:self.config.prefix_length] for term in terms}

        for recipe in recipes:
            if recipe.id in included:
                continue
            words = [word for ingredient in recipe.ingredients for word in ingredient.split()]
            if any(word.startswith(prefix) for word in words for prefix in prefixes):
                broadened.append(MatchResult(recipe=recipe, score=1))
                included.add(recipe.id)

        target = max(self.config.min_candidates, 1)
        if len(broadened) < target and self.config.include_top_sustainable:
            remaining = sorted(
                (recipe for recipe in recipes if recipe.id not in included),
                key=lambda r: (-r.sustainability_index, r.env_score, r.id)
            )
            for recipe in remaining[:target - len(broadened)]:
                broadened.append(MatchResult(recipe=recipe, score=0))

        logger.info(f"Broadened candidate set from {len(matches)} to {len(broadened)} recipes")
        return broadened

    def select_candidates(self, matches: List[MatchResult]) -> List[MatchResult]:
        """Keep the max_results most relevant matches (deterministic order)."""
        ordered = sorted(
            matches,
            key=lambda m: (-m.score, -m.exact_matches, -m.partial_matches, m.recipe.id)
        )
        return ordered[:self.config.max_results]

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    def rank(self, candidates: List[MatchResult], group: TestGroup) -> List[MatchResult]:
        """
        Order candidates with the strategy of the test group.

        Args:
            candidates: Selected candidates
            group: Test group

        Returns:
            List[MatchResult]: Ordered candidates
        """
        if group == TestGroup.A:
            logger.debug("Group A: random order")
            return shuffled(candidates, self.rng)

        if group == TestGroup.B:
            logger.debug("Group B: relevance + sustainability order")
            weight = self.config.relevance_weight
            return sorted(
                candidates,
                key=lambda m: (
                    -(m.score * weight + m.recipe.sustainability_index * (1 - weight)),
                    -m.score,
                    m.recipe.id
                )
            )

        logger.debug("Group C: sustainability-first order")
        return sorted(
            candidates,
            key=lambda m: (
                -m.recipe.sustainability_index,
                -m.score,
                m.recipe.env_score,
                m.recipe.id
            )
        )

    # ------------------------------------------------------------------
    # Supporting lookups
    # ------------------------------------------------------------------

    def suggest(self, recipes: Iterable[Recipe], partial_query: str, limit: int = 5) -> List[str]:
        """
        Autocomplete ingredient and name words for a partial query.

        Args:
            recipes: Catalog
            partial_query: What the participant typed so far (2+ characters)
            limit: Maximum number of suggestions

        Returns:
            List[str]: Suggestions, prefix matches first, then shorter first
        """
        if not isinstance(partial_query, str) or len(partial_query.strip()) < 2:
            return []

        query = partial_query.strip().lower()
        recipes = list(recipes or [])
        suggestions = set()

        all_ingredients = {ingredient for recipe in recipes for ingredient in recipe.ingredients}
        for ingredient in all_ingredients:
            if query in ingredient or ingredient in query:
                suggestions.add(ingredient)
            elif Levenshtein.normalized_similarity(query, ingredient) > self.config.fuzzy_threshold:
                suggestions.add(ingredient)

        for recipe in recipes:
            name = recipe.name.lower()
            if query in name:
                for word in name.split():
                    if query in word and len(word) > 2:
                        suggestions.add(word)

        ordered = sorted(suggestions, key=lambda s: (not s.startswith(query), len(s), s))
        return ordered[:max(0, limit)]

    def find_similar(self, target: Recipe, recipes: Iterable[Recipe], limit: int = 5) -> List[SimilarRecipe]:
        """
        Recipes sharing ingredients with the target.

        Similarity is shared ingredient count over the size of the combined
        ingredient set, plus 0.1 for the same category.

        Args:
            target: Reference recipe
            recipes: Catalog
            limit: Maximum number of results

        Returns:
            List[SimilarRecipe]: Most similar first
        """
        if target is None:
            return []

        target_ingredients = list(target.ingredients)
        similar = []
        for recipe in recipes or []:
            if recipe.id == target.id:
                continue

            common = count_common_elements(target_ingredients, recipe.ingredients)
            if common == 0:
                continue

            union = len(set(target_ingredients) | set(recipe.ingredients))
            similarity = common / union
            if recipe.category == target.category:
                similarity += 0.1

            similar.append(SimilarRecipe(
                recipe=recipe,
                similarity=round(similarity, 3),
                common_ingredients=common
            ))

        similar.sort(key=lambda s: (-s.similarity, s.recipe.id))
        return similar[:max(0, limit)]

    @staticmethod
    def filter_by_category(recipes: Iterable[Recipe], category: Optional[Category]) -> List[Recipe]:
        """Recipes of one category (all recipes when category is None)."""
        if category is None:
            return list(recipes or [])
        return [recipe for recipe in recipes or [] if recipe.category == category]

    @staticmethod
    def filter_by_sustainability(recipes: Iterable[Recipe], min_sustainability: float = 0.0) -> List[Recipe]:
        """Recipes whose index reaches the given minimum."""
        return [
            recipe for recipe in recipes or []
            if recipe.sustainability_index >= min_sustainability
        ]

    @staticmethod
    def statistics(results: Sequence[Recipe], group: Optional[Union[TestGroup, str]] = None) -> SearchStatistics:
        """
        Aggregate statistics of a result list.

        Args:
            results: Ranked recipes
            group: Test group the results were produced for

        Returns:
            SearchStatistics: Counts and averages (no averages for an empty list)
        """
        group_value = group.value if isinstance(group, TestGroup) else group
        if not results:
            return SearchStatistics(test_group=group_value)

        total = len(results)
        distribution = {}
        for recipe in results:
            distribution[recipe.category.value] = distribution.get(recipe.category.value, 0) + 1

        return SearchStatistics(
            total_results=total,
            avg_sustainability=round_half_up(sum(r.sustainability_index for r in results) / total, 1),
            avg_env_score=round_half_up(sum(r.env_score for r in results) / total, 1),
            category_distribution=distribution,
            test_group=group_value
        )
