from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from sitemapper.api.auth import require_admin
from sitemapper.api.errors import to_http_exception
from sitemapper.exceptions import SitemapperError


class CreateValidationRequest(BaseModel):
    source_id: Optional[str] = None
    name: Optional[str] = None
    urls: Optional[List[str]] = None


class StartValidationRequest(BaseModel):
    concurrency: int = 10
    enrich: bool = False


def create_validations_router(engine):
    router = APIRouter(prefix="/validations", tags=["Validations"])

    @router.post("", status_code=201, dependencies=[Depends(require_admin)])
    def create_validation(req: CreateValidationRequest):
        try:
            collection = engine.create_validation(req.source_id, req.name, req.urls)
        except SitemapperError as e:
            raise to_http_exception(e)
        return collection.to_dict(include_results=False)

    @router.get("")
    def list_validations():
        return [c.to_dict(include_results=False) for c in engine.list_validations()]

    @router.get("/{collection_id}")
    def get_validation(collection_id: str, include_results: bool = True):
        try:
            collection = engine.get_validation(collection_id)
        except SitemapperError as e:
            raise to_http_exception(e)
        return collection.to_dict(include_results=include_results)

    @router.post("/{collection_id}/start", status_code=202, dependencies=[Depends(require_admin)])
    def start_validation(collection_id: str, req: Optional[StartValidationRequest] = None):
        req = req or StartValidationRequest()
        try:
            engine.start_validation(collection_id, req.concurrency, req.enrich)
        except SitemapperError as e:
            raise to_http_exception(e)
        return {"status": "started", "collection_id": collection_id}

    @router.post("/{collection_id}/stop", dependencies=[Depends(require_admin)])
    def stop_validation(collection_id: str):
        if not engine.stop_validation(collection_id):
            raise HTTPException(status_code=404, detail="validation not found or cannot cancel")
        return {"status": "stopping", "collection_id": collection_id}

    @router.get("/{collection_id}/status")
    def validation_status(collection_id: str):
        return engine.validation_status(collection_id).to_dict()

    return router
