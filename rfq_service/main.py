# rfq_service/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rfq_service.api.v1.api import api_router
from rfq_service.core.config import settings
from rfq_service.middleware.error_handler import register_exception_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Itinerary RFQ service starting up (env={settings.ENV})")
    yield
    logger.info("Itinerary RFQ service shutting down")


app = FastAPI(
    title="Itinerary RFQ Service",
    version="1.0.0",
    description="""
        **Itinerary Request-for-Quote Service**

        Agencies build day-by-day itineraries, request quotes, and compile
        supplier proposals into a priced quote.

        ## Features

        * **Itineraries**: Date-ranged plans with generated days and events
        * **RFQs**: One request per itinerary, fanned out as supplier segments
        * **Supplier inbox**: Suppliers propose prices on their segments
        * **Quotes**: Agencies compile accepted segments into a priced document

        ## Authentication

        All endpoints except `/health` require JWT authentication via the
        `Authorization: Bearer <token>` header.
        """,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"status": "Itinerary RFQ Service is running"}
