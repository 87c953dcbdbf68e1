from typing import Optional
import json

from fastapi import APIRouter, Depends, HTTPException
from starlette.responses import StreamingResponse
from pydantic import BaseModel

from sitemapper.api.auth import require_admin
from sitemapper.api.errors import to_http_exception
from sitemapper.exceptions import SitemapperError


class CreateProjectRequest(BaseModel):
    seed_url: str
    name: Optional[str] = None
    crawl_depth: int = 1
    max_pages: int = 0


def create_projects_router(engine):
    router = APIRouter(prefix="/projects", tags=["Projects"])

    @router.post("", status_code=201, dependencies=[Depends(require_admin)])
    def create_project(req: CreateProjectRequest):
        try:
            project = engine.create_project(req.name, req.seed_url, req.crawl_depth, req.max_pages)
        except SitemapperError as e:
            raise to_http_exception(e)
        return project.to_dict()

    @router.get("")
    def list_projects():
        return [p.to_dict() for p in engine.list_projects()]

    @router.get("/{project_id}")
    def get_project(project_id: str):
        try:
            return engine.get_project(project_id).to_dict()
        except SitemapperError as e:
            raise to_http_exception(e)

    @router.get("/{project_id}/results")
    def get_results(project_id: str, offset: int = 0, limit: Optional[int] = None):
        """Return crawl results; `offset`/`limit` page through the assembled set."""
        try:
            results = engine.get_results(project_id)
        except SitemapperError as e:
            raise to_http_exception(e)
        end = None if limit is None else offset + max(0, limit)
        return {
            "total": len(results),
            "results": [r.to_dict() for r in results[offset:end]],
        }

    @router.get(
        "/{project_id}/results/export",
        responses={
            200: {
                "content": {
                    "application/x-ndjson": {
                        "schema": {"type": "string", "format": "binary"}
                    }
                },
                "description": "NDJSON stream (one JSON object per line)"
            }
        },
    )
    def export_results(project_id: str):
        try:
            results = engine.get_results(project_id)
        except SitemapperError as e:
            raise to_http_exception(e)

        def gen_ndjson():
            for r in results:
                yield (json.dumps(r.to_dict()) + "\n").encode("utf-8")

        return StreamingResponse(gen_ndjson(), media_type="application/x-ndjson")

    @router.get("/{project_id}/results/chunks/{index}")
    def get_results_chunk(project_id: str, index: int):
        try:
            results = engine.get_results_chunk(project_id, index)
        except SitemapperError as e:
            raise to_http_exception(e)
        return {"index": index, "results": [r.to_dict() for r in results]}

    @router.post("/{project_id}/crawl/start", status_code=202, dependencies=[Depends(require_admin)])
    def start_crawl(project_id: str):
        try:
            engine.start_crawl(project_id)
        except SitemapperError as e:
            raise to_http_exception(e)
        return {"status": "started", "project_id": project_id}

    @router.post("/{project_id}/crawl/stop", dependencies=[Depends(require_admin)])
    def stop_crawl(project_id: str):
        if not engine.stop_crawl(project_id):
            raise HTTPException(status_code=404, detail="crawl not found or cannot cancel")
        return {"status": "stopping", "project_id": project_id}

    @router.get("/{project_id}/crawl/status")
    def crawl_status(project_id: str):
        record = engine.crawl_status(project_id)
        if not record:
            raise HTTPException(status_code=404, detail="crawl not found")
        return record

    return router
