from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from loguru import logger

from courtsync.core.database import get_db
from courtsync.schemas.run_summary import RunSummary
from courtsync.schemas.search_params import SearchParams
from courtsync.services.pipeline import build_site_pipeline
from courtsync.utils.sites import SITES, get_site

router = APIRouter()

def get_pipeline_factory():
    return build_site_pipeline

@router.get("/sites", response_model=List[str])
def list_sites():
    """Names of the configured court sites"""
    return sorted(SITES)

@router.post("/{site}", response_model=RunSummary)
def scrape_site(
    site: str,
    params: SearchParams,
    db: Session = Depends(get_db),
    pipeline_factory=Depends(get_pipeline_factory)
):
    """Run one scrape of a court site and return the run summary"""
    try:
        config = get_site(site)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info(f"Starting scrape of {site}")
    pipeline = pipeline_factory(config, db)
    try:
        return pipeline.run(params)
    finally:
        adapter = getattr(pipeline, "adapter", None)
        if hasattr(adapter, "close"):
            adapter.close()
