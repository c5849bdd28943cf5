"""
Recipe search tool for MCP server.

This module contains the semantic recipe search tool:
- search_recipes: embed the query, rank recipes by vector similarity, and
  format the matches as readable text
"""

import logging
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import Field

from recipe_mcp.core import MCPToolError, track_request
from recipe_mcp.core.constants import (
    MATCH_COUNT_DEFAULT,
    MATCH_COUNT_MAX,
    MATCH_THRESHOLD_DEFAULT,
)
from recipe_mcp.core.exceptions import RecipeMCPError
from recipe_mcp.utils.embeddings import create_embedding

if TYPE_CHECKING:
    from fastmcp import FastMCP

    from recipe_mcp.database.base import RecipeDatabase

logger = logging.getLogger(__name__)

SEPARATOR = "━" * 40
NO_RESULTS_MESSAGE = "No recipes found matching your search criteria."


def _format_ingredients(heading: str, ingredients: list[dict[str, Any]]) -> str:
    lines = [heading]
    for ingredient in ingredients:
        line = f"   • {ingredient.get('name')}"
        if ingredient.get("evidence"):
            line += f" ({ingredient['evidence']})"
        lines.append(line)
    return "\n".join(lines) + "\n\n"


def format_recipe_results(recipes: list[dict[str, Any]]) -> str:
    """
    Format recipe rows into a readable block for the assistant.

    Args:
        recipes: Rows returned by the recipe store, best match first

    Returns:
        Text listing every recipe with its match score and details
    """
    if not recipes:
        return NO_RESULTS_MESSAGE

    output = f"Found {len(recipes)} recipe(s):\n\n"

    for index, recipe in enumerate(recipes, start=1):
        similarity_percent = float(recipe.get("similarity") or 0) * 100

        output += f"{SEPARATOR}\n"
        output += f"📖 Recipe {index}: {recipe.get('dish_name')}\n"
        output += f"   Match: {similarity_percent:.1f}%\n"
        output += f"{SEPARATOR}\n\n"

        if recipe.get("cuisine_or_style"):
            output += f"🌍 Cuisine/Style: {recipe['cuisine_or_style']}\n\n"

        if recipe.get("summary"):
            output += f"📝 Summary:\n{recipe['summary']}\n\n"

        if recipe.get("main_ingredients"):
            output += _format_ingredients("🥘 Main Ingredients:", recipe["main_ingredients"])

        if recipe.get("secondary_ingredients"):
            output += _format_ingredients(
                "🧂 Secondary Ingredients:",
                recipe["secondary_ingredients"],
            )

        if recipe.get("techniques"):
            output += f"👨‍🍳 Techniques: {', '.join(recipe['techniques'])}\n\n"

        if recipe.get("video_url"):
            output += f"🎬 Video: {recipe['video_url']}\n\n"

    return output


async def run_recipe_search(
    database: "RecipeDatabase",
    query: str,
    match_threshold: float = MATCH_THRESHOLD_DEFAULT,
    match_count: int = MATCH_COUNT_DEFAULT,
) -> str:
    """
    Embed the query, search the recipe store and format the results.

    Raises:
        EmbeddingServiceError: If the embedding call fails
        VectorStoreError: If the similarity lookup fails
    """
    logger.info('Searching for: "%s"', query)
    embedding = await create_embedding(query)

    logger.info(
        "Searching recipes (threshold: %s, count: %s)...",
        match_threshold,
        match_count,
    )
    recipes = await database.search_recipes(embedding, match_threshold, match_count)
    logger.info("Found %d recipes", len(recipes))

    return format_recipe_results(recipes)


def register_recipe_tools(
    mcp: "FastMCP",
    database: "RecipeDatabase | None",
) -> None:
    """
    Register recipe search MCP tools.

    Args:
        mcp: FastMCP instance to register tools with
        database: Recipe store to query (None disables the search)
    """

    @mcp.tool()
    @track_request("search_recipes")
    async def search_recipes(
        query: Annotated[
            str,
            Field(
                description=(
                    "The search query to find recipes. Can be ingredients, dish names, "
                    "cuisines, cooking methods, or descriptive phrases like "
                    '"healthy breakfast" or "comfort food".'
                ),
            ),
        ],
        match_threshold: Annotated[
            float,
            Field(
                ge=-1,
                le=1,
                description=(
                    "Minimum similarity score between -1 and 1. Higher values return "
                    "more relevant but fewer results. Default is -0.1."
                ),
            ),
        ] = MATCH_THRESHOLD_DEFAULT,
        match_count: Annotated[
            int,
            Field(
                ge=1,
                le=MATCH_COUNT_MAX,
                description="Maximum number of recipes to return. Default is 10.",
            ),
        ] = MATCH_COUNT_DEFAULT,
    ) -> str:
        """
        Search for recipes using semantic similarity.

        The search understands meaning, so you can search for things like
        "quick weeknight dinner" or "spicy Asian noodles" and it will find
        relevant recipes even if they don't contain those exact words.
        """
        if database is None:
            msg = "Error searching recipes: recipe database not available"
            raise MCPToolError(msg)

        try:
            return await run_recipe_search(
                database,
                query=query,
                match_threshold=match_threshold,
                match_count=match_count,
            )
        except RecipeMCPError as e:
            logger.exception("Error in search_recipes tool")
            msg = f"Error searching recipes: {e!s}"
            raise MCPToolError(msg) from e
