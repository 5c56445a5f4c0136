"""Application FastAPI principale pour StockBoard."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from stockboard.api import categories, companies, items, stock, sync
from stockboard.core.logging_config import configure_logging
from stockboard.services import runtime
from stockboard.ws import sync_events

configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_: FastAPI):
    runtime.connectivity.start()
    try:
        yield
    finally:
        await runtime.connectivity.stop()
        pending = len(runtime.mutation_queue)
        if pending:
            logger.warning("[QUEUE] arrêt avec %s mutation(s) non synchronisée(s)", pending)


app = FastAPI(title="StockBoard API", version="1.0.0", lifespan=_lifespan)

app.include_router(categories.router, prefix="/categories", tags=["categories"])
app.include_router(companies.router, prefix="/companies", tags=["companies"])
app.include_router(items.router, prefix="/items", tags=["items"])
app.include_router(stock.router, prefix="/stock", tags=["stock"])
app.include_router(sync.router, prefix="/sync", tags=["sync"])
app.include_router(sync_events.router, prefix="/ws")
