"""FastAPI application."""

from collections.abc import AsyncIterator

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from pubminer import __version__
from pubminer.config import get_settings
from pubminer.data_sources.eutils import EUtilsClient
from pubminer.models.model_eutils import SearchErrorResponse

app = FastAPI(
    title="PubMiner API",
    description="PubMed therapy search with linked PMC abstracts",
    version=__version__,
)


async def get_client() -> AsyncIterator[EUtilsClient]:
    async with EUtilsClient.from_settings(get_settings()) as client:
        yield client


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/search")
async def search(
    q: str = "", client: EUtilsClient = Depends(get_client)
) -> JSONResponse:
    """Run the search chain; a classified failure is returned with HTTP 502."""
    result = await client.search_or_error(q)
    status = 502 if isinstance(result, SearchErrorResponse) else 200
    return JSONResponse(
        result.model_dump(mode="json", by_alias=True), status_code=status
    )


@app.get("/details/{pmcid}")
async def details(
    pmcid: str, client: EUtilsClient = Depends(get_client)
) -> JSONResponse:
    """Abstract sections for one PMC id, or ``{"error": ...}`` with HTTP 502."""
    result = (await client.fetch_details([pmcid]))[pmcid]
    if isinstance(result, dict):
        return JSONResponse(result)
    return JSONResponse(
        result.model_dump(mode="json", by_alias=True), status_code=502
    )
