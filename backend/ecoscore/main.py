"""
FastAPI application entry point and endpoint definitions.

This module initializes the FastAPI application and defines all API routes
of the sustainable recipe recommender used in the A/B/C choice experiment.

Responsibilities:
- Initialize FastAPI application with CORS and error handling
- Load the recipe catalog once at startup
- Define search, recipe detail, explanation and participant endpoints
- Hide sustainability data from the control group
"""

from fastapi import FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import List, Optional
import logging
import random

from ecoscore.config import settings
from ecoscore.models.explanation import Explanation, ScoreComparison, Substitution, SustainableAlternative
from ecoscore.models.participant import (
    BehaviorAnalysis,
    Choice,
    ChoiceRequest,
    ChoiceStatistics,
    GroupPerformance,
    Participant,
    RegistrationRequest,
    SustainabilityImpact,
    TestGroup,
)
from ecoscore.models.recipe import (
    Category,
    Recipe,
    RecipeDetail,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    SimilarRecipe,
)
from ecoscore.services.catalog_service import CatalogService
from ecoscore.services.participant_service import ParticipantNotFoundError, ParticipantService
from ecoscore.services.recipe_search import RecipeSearchEngine
from ecoscore.services.sustainability_scorer import SustainabilityScorer
from ecoscore.services.xai_explainer import XAIExplainer
from ecoscore.utils.constants import CATEGORY_ICONS, TEST_GROUPS

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Initialize and configure the FastAPI application.

    Sets up:
    - CORS middleware for frontend communication
    - Exception handlers for consistent error responses
    - Application metadata

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Sustainable Recipe Recommender API",
        description="Recipe search with sustainability scoring and explanations for an A/B/C choice study",
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Configure CORS to allow frontend communication
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173", "http://localhost:8080", "http://127.0.0.1:8080"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handler for consistent error responses
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Handle all uncaught exceptions with consistent error format.

        Args:
            request: The incoming request object
            exc: The exception that was raised

        Returns:
            JSONResponse: Formatted error response
        """
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error occurred",
                "error": str(exc)
            }
        )

    return app


# Initialize FastAPI application
app = create_app()

# Initialize service layer instances
scorer = SustainabilityScorer()
catalog_service = CatalogService(scorer)
catalog = catalog_service.load()
search_engine = RecipeSearchEngine(
    settings.search_config(),
    rng=random.Random(settings.SHUFFLE_SEED)
)
explainer = XAIExplainer()
participant_service = ParticipantService()

if catalog.degraded:
    logger.warning("Serving the built-in fixture catalog - results are not representative")


def _get_recipe_or_404(recipe_id: int) -> Recipe:
    recipe = catalog.get(recipe_id)
    if recipe is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recipe with ID '{recipe_id}' not found"
        )
    return recipe


def _get_participant_or_404(participant_id: str) -> Participant:
    try:
        return participant_service.get(participant_id)
    except ParticipantNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )


def _to_result_item(rank: int, recipe: Recipe, show_scores: bool) -> SearchResultItem:
    item = SearchResultItem(
        rank=rank,
        id=recipe.id,
        name=recipe.name,
        category=recipe.category,
        category_icon=CATEGORY_ICONS.get(recipe.category, CATEGORY_ICONS[Category.OTHER]),
        ingredients=list(recipe.ingredients)
    )
    if show_scores:
        item.sustainability_index = recipe.sustainability_index
        item.env_score = recipe.env_score
        item.nutri_score = recipe.nutri_score
        item.evaluation = scorer.evaluate(recipe.sustainability_index)
    return item


@app.get("/")
async def root():
    """
    Root endpoint for health check.

    Returns:
        dict: API status, version and catalog information
    """
    return {
        "message": "Sustainable Recipe Recommender API",
        "version": settings.VERSION,
        "status": "running",
        "recipes": len(catalog),
        "degraded_catalog": catalog.degraded,
        "categories": catalog.category_counts(),
        "test_groups": TEST_GROUPS
    }


# ==================== Recipes ====================

@app.get("/recipes", response_model=List[Recipe])
async def list_recipes(
    category: Optional[Category] = None,
    min_sustainability: float = Query(default=0.0, ge=0.0, le=100.0)
) -> List[Recipe]:
    """
    List catalog recipes.

    Args:
        category: Only recipes of this category
        min_sustainability: Minimum sustainability index

    Returns:
        List[Recipe]: Matching recipes in catalog order
    """
    recipes = search_engine.filter_by_category(catalog, category)
    return search_engine.filter_by_sustainability(recipes, min_sustainability)


@app.get("/recipes/{recipe_id}", response_model=RecipeDetail)
async def get_recipe(recipe_id: int) -> RecipeDetail:
    """
    Recipe detail with its score evaluation and breakdown.

    Raises:
        HTTPException: 404 if recipe not found
    """
    recipe = _get_recipe_or_404(recipe_id)
    return RecipeDetail(
        recipe=recipe,
        evaluation=scorer.evaluate(recipe.sustainability_index),
        environmental_label=scorer.environmental_label(recipe.env_score),
        breakdown=scorer.breakdown(recipe.env_score, recipe.nutri_score, recipe.category),
        category_icon=CATEGORY_ICONS.get(recipe.category, CATEGORY_ICONS[Category.OTHER])
    )


@app.get("/recipes/{recipe_id}/similar", response_model=List[SimilarRecipe])
async def get_similar_recipes(
    recipe_id: int,
    limit: int = Query(default=5, ge=1, le=20)
) -> List[SimilarRecipe]:
    """Recipes sharing ingredients with the given recipe."""
    recipe = _get_recipe_or_404(recipe_id)
    return search_engine.find_similar(recipe, catalog, limit=limit)


@app.get("/recipes/{recipe_id}/explanation", response_model=Explanation)
async def get_explanation(recipe_id: int, participant_id: str) -> Explanation:
    """
    Explain the sustainability score of a recipe.

    Explanations are part of the group C condition only; the group is the
    one stored for the participant at registration.

    Args:
        recipe_id: Recipe identifier
        participant_id: Requesting participant

    Returns:
        Explanation: Factor attribution and suggestions

    Raises:
        HTTPException: 403 for participants outside group C,
            404 if participant or recipe not found
    """
    participant = _get_participant_or_404(participant_id)
    if participant.test_group != TestGroup.C:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Explanations are only available in test group C"
        )

    recipe = _get_recipe_or_404(recipe_id)
    logger.info(f"Explaining recipe {recipe_id} for participant {participant_id}: {recipe.name}")
    return explainer.explain(recipe)


@app.get("/recipes/{recipe_id}/alternatives", response_model=List[SustainableAlternative])
async def get_alternatives(recipe_id: int) -> List[SustainableAlternative]:
    """More sustainable recipes of the same category."""
    recipe = _get_recipe_or_404(recipe_id)
    return explainer.find_more_sustainable(recipe, catalog)


@app.get(
    "/recipes/{recipe_id}/alternatives/{alternative_id}/comparison",
    response_model=ScoreComparison
)
async def compare_alternative(recipe_id: int, alternative_id: int) -> ScoreComparison:
    """
    Estimated CO2, water and land difference of switching to an alternative.

    Raises:
        HTTPException: 404 if either recipe not found
    """
    recipe = _get_recipe_or_404(recipe_id)
    alternative = _get_recipe_or_404(alternative_id)
    return explainer.compare_scores(recipe.sustainability_index, alternative.sustainability_index)


@app.get("/recipes/{recipe_id}/substitutions", response_model=List[Substitution])
async def get_substitutions(recipe_id: int) -> List[Substitution]:
    """Known lower-impact ingredient substitutions."""
    recipe = _get_recipe_or_404(recipe_id)
    return explainer.suggest_substitutions(recipe)


# ==================== Search ====================

@app.post("/search", response_model=SearchResponse)
async def search_recipes(request: SearchRequest) -> SearchResponse:
    """
    Search recipes by ingredients and rank them for the participant's group.

    The same query returns the same recipes in every group; only the order
    differs. Group A results carry no sustainability data.

    Args:
        request: SearchRequest with the query and test group

    Returns:
        SearchResponse: Ranked results and result statistics

    Raises:
        HTTPException: 500 if processing fails
    """
    try:
        logger.info(f"Search request: '{request.query}' (group {request.test_group})")

        results = search_engine.search(catalog, request.query, request.test_group)
        show_scores = request.test_group != TestGroup.A.value

        items = [
            _to_result_item(rank, recipe, show_scores)
            for rank, recipe in enumerate(results, start=1)
        ]
        statistics = search_engine.statistics(results, request.test_group)
        if not show_scores:
            statistics = statistics.model_copy(update={"avg_sustainability": None, "avg_env_score": None})

        return SearchResponse(
            query=request.query,
            test_group=request.test_group,
            results=items,
            statistics=statistics,
            degraded_catalog=catalog.degraded
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error searching recipes: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to search recipes: {str(e)}"
        )


@app.get("/search/suggestions", response_model=List[str])
async def get_search_suggestions(
    q: str = Query(..., min_length=1, max_length=100),
    limit: int = Query(default=5, ge=1, le=20)
) -> List[str]:
    """Autocomplete suggestions for a partial ingredient query."""
    return search_engine.suggest(catalog, q, limit=limit)


# ==================== Participants ====================

@app.post("/participants", response_model=Participant, status_code=status.HTTP_201_CREATED)
async def register_participant(request: RegistrationRequest) -> Participant:
    """
    Register a participant and assign a test group.

    Raises:
        HTTPException: 400 if the e-mail address is invalid
    """
    try:
        return participant_service.register(request.email)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@app.get("/participants/{participant_id}", response_model=Participant)
async def load_participant(participant_id: str) -> Participant:
    """
    Start a new session for a returning participant.

    Raises:
        HTTPException: 404 if participant not found
    """
    try:
        return participant_service.load(participant_id)
    except ParticipantNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )


@app.post("/choices", response_model=Choice, status_code=status.HTTP_201_CREATED)
async def record_choice(request: ChoiceRequest) -> Choice:
    """
    Record which recipe a participant picked.

    Raises:
        HTTPException: 404 if participant or recipe not found
    """
    participant = _get_participant_or_404(request.participant_id)
    recipe = _get_recipe_or_404(request.recipe_id)
    return participant_service.record_choice(
        participant,
        recipe,
        rank=request.rank,
        query=request.query,
        decision_time=request.decision_time,
        source=request.source
    )


@app.get("/choices/stats", response_model=ChoiceStatistics)
async def get_choice_statistics(participant_id: Optional[str] = None) -> ChoiceStatistics:
    """Aggregated choice statistics, optionally for one participant."""
    return participant_service.choice_statistics(participant_id)


@app.get("/choices/impact", response_model=SustainabilityImpact)
async def get_sustainability_impact(participant_id: Optional[str] = None) -> SustainabilityImpact:
    """Sustainability impact of the choices, optionally for one participant."""
    return participant_service.sustainability_impact(participant_id)


@app.get("/choices/behavior", response_model=BehaviorAnalysis)
async def get_behavior_analysis(participant_id: Optional[str] = None) -> BehaviorAnalysis:
    """
    Behavioural profile of the choices.

    Args:
        participant_id: Restrict to one participant (all participants when omitted)

    Returns:
        BehaviorAnalysis: Preferred categories, decision patterns and levels
    """
    return participant_service.behavior_analysis(participant_id)


@app.get("/choices/groups", response_model=List[GroupPerformance])
async def get_group_performance() -> List[GroupPerformance]:
    """Average chosen sustainability and decision time per test group."""
    return participant_service.group_performance()


if __name__ == "__main__":
    import uvicorn

    # Run the application
    # For development only - use uvicorn command in production
    uvicorn.run(
        "ecoscore.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
