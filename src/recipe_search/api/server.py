"""
HTTP API Server for recipe search.

Exposes the aggregation façade:

    GET  /search?q=&cuisines=&diets=&mealTypes=&compliance=&maxReadyMinutes=&pageSize=&offset=&source=
    GET  /api/recipes/search   (same handler, path used by the web client)
    POST /api/recipes/search   (same parameters as a JSON body)
    GET  /health

List parameters may be comma-joined, repeated (``?cuisines=a&cuisines=b``)
or, in a body, JSON arrays. ``limit`` is an alias for ``pageSize``.

Query parameters are read as raw strings and corrected rather than
validated: a malformed number falls back to its default, ``pageSize`` is
clamped, an unknown ``source`` means "all". Clients never see a 422.
"""

from __future__ import annotations

import argparse
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from recipe_search import __version__
from recipe_search.application.search.query_translator import parse_query_params
from recipe_search.container import DEFAULTS, ApplicationContainer, config_from_env

if TYPE_CHECKING:
    from recipe_search.application.search.service import RecipeSearchService

logger = logging.getLogger(__name__)

SEARCH_PATH = "/search"
WEB_SEARCH_PATH = "/api/recipes/search"


# Pydantic models for API responses
class RecipeModel(BaseModel):
    """Normalized recipe as sent over the wire."""
    id: str
    title: str
    source: str
    image: str | None = None
    readyInMinutes: int | None = None
    cookTime: int | None = None
    servings: int | None = None
    cuisines: list[str] = Field(default_factory=list)
    diets: list[str] = Field(default_factory=list)
    mealTypes: list[str] = Field(default_factory=list)
    rating: float | None = None
    url: str | None = None
    author: str | None = None
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)


class SearchResponseModel(BaseModel):
    """Paginated search envelope."""
    results: list[RecipeModel]
    total: int
    source: str


class SearchRequest(BaseModel):
    """
    JSON body for POST searches.

    Fields stay untyped so bad values get the same fallbacks as query strings.
    """
    q: Any = None
    cuisines: Any = None
    diets: Any = None
    mealTypes: Any = None
    compliance: Any = None
    maxReadyMinutes: Any = None
    pageSize: Any = None
    limit: Any = None
    offset: Any = None
    source: Any = None


class ErrorResponse(BaseModel):
    """Error response model."""
    detail: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    providers: list[str]


def _build_service_from_env() -> RecipeSearchService:
    container = ApplicationContainer()
    container.config.from_dict(config_from_env())
    return container.search_service()


def create_app(service: RecipeSearchService | None = None) -> FastAPI:
    """
    Create the FastAPI app.

    Args:
        service: Search service to serve. When omitted, one is built from
            environment configuration at startup and closed at shutdown.

    Returns:
        Configured FastAPI instance.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.service is None
        if owned:
            app.state.service = _build_service_from_env()
        logger.info(f"Recipe search API ready (providers: {', '.join(app.state.service.providers) or 'none'})")

        yield

        logger.info("Recipe search API shutting down")
        if owned:
            await app.state.service.close()
            app.state.service = None

    app = FastAPI(
        title="Recipe Search API",
        description="Multi-provider recipe search: local recipes plus external providers, "
                    "merged, deduplicated and paginated.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_service(request: Request) -> RecipeSearchService:
        svc = request.app.state.service
        if svc is None:
            raise HTTPException(status_code=503, detail="Server not initialized")
        return svc

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """Health check endpoint."""
        svc = request.app.state.service
        if svc is None:
            return HealthResponse(status="initializing", providers=[])
        return HealthResponse(status="healthy", providers=svc.providers)

    async def run_search(svc: RecipeSearchService, params: dict[str, Any]) -> dict[str, Any]:
        query = parse_query_params(params, max_page_size=svc.max_page_size)
        try:
            response = await svc.search_recipes(query)
        except Exception:
            logger.exception("Recipe search failed")
            raise HTTPException(status_code=500, detail="Failed to search recipes") from None
        return response.to_dict()

    @app.get(
        SEARCH_PATH,
        response_model=SearchResponseModel,
        responses={500: {"model": ErrorResponse, "description": "Merge or pagination failed"}},
    )
    @app.get(WEB_SEARCH_PATH, response_model=SearchResponseModel, include_in_schema=False)
    async def search_recipes(
        request: Request,
        q: str | None = Query(default=None, description="Free-text search"),
        cuisines: str | None = Query(default=None, description="Comma-separated or repeated cuisines"),
        diets: str | None = Query(default=None, description="Comma-separated or repeated diets"),
        meal_types: str | None = Query(default=None, alias="mealTypes", description="Comma-separated meal types"),
        compliance: str | None = Query(default=None, description="Halal, kosher and similar"),
        max_ready_minutes: str | None = Query(default=None, alias="maxReadyMinutes"),
        page_size: str | None = Query(default=None, alias="pageSize"),
        limit: str | None = Query(default=None, description="Alias for pageSize"),
        offset: str | None = Query(default=None),
        source: str | None = Query(default=None, description="all | local | external"),
    ):
        """
        Search every source in scope and return one page of merged results.

        All providers failing is not an error: the response is 200 with
        whatever the remaining sources produced (possibly nothing).
        """
        svc = get_service(request)
        # Declared list params only keep the last repeated value
        query_params = request.query_params
        params: dict[str, Any] = {
            "q": q,
            "cuisines": query_params.getlist("cuisines"),
            "diets": query_params.getlist("diets"),
            "mealTypes": query_params.getlist("mealTypes"),
            "compliance": query_params.getlist("compliance"),
            "maxReadyMinutes": max_ready_minutes,
            "pageSize": page_size,
            "limit": limit,
            "offset": offset,
            "source": source or "all",
        }
        return await run_search(svc, params)

    @app.post(
        WEB_SEARCH_PATH,
        response_model=SearchResponseModel,
        responses={500: {"model": ErrorResponse, "description": "Merge or pagination failed"}},
    )
    @app.post(SEARCH_PATH, response_model=SearchResponseModel, include_in_schema=False)
    async def search_recipes_body(request: Request, body: SearchRequest | None = None):
        """Same search with the parameters in a JSON body; arrays may be lists or comma-joined."""
        svc = get_service(request)
        return await run_search(svc, (body or SearchRequest()).model_dump())

    return app


def run_api_server(host: str = DEFAULTS["host"], port: int = DEFAULTS["port"], reload: bool = False):
    """
    Run the HTTP API server.

    Args:
        host: Host to bind to
        port: Port to bind to
        reload: Auto-reload on code changes (development)
    """
    import uvicorn

    logger.info(f"Starting recipe search API on {host}:{port}")
    if reload:
        uvicorn.run("recipe_search.api.server:create_app", factory=True, host=host, port=port, reload=True)
    else:
        uvicorn.run(create_app(), host=host, port=port, log_level="info")


def main(argv: list[str] | None = None) -> None:
    settings = config_from_env()

    parser = argparse.ArgumentParser(description="Recipe Search HTTP API Server")
    parser.add_argument("--host", default=settings["host"], help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings["port"], help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    run_api_server(host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
