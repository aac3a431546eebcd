from fastapi import APIRouter

from courtsync.api.v1.endpoints import cases, scrape, scraping_logs, subscriptions

api_router = APIRouter()

api_router.include_router(cases.router, prefix="/cases", tags=["cases"])
api_router.include_router(scrape.router, prefix="/scrape", tags=["scrape"])
api_router.include_router(scraping_logs.router, prefix="/scraping-logs", tags=["scraping-logs"])
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
