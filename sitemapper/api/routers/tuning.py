from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from sitemapper.api.auth import require_admin
from sitemapper.api.errors import to_http_exception
from sitemapper.exceptions import SitemapperError


class TuningUpdateRequest(BaseModel):
    batch_size: Optional[int] = None
    concurrency: Optional[int] = None
    inter_batch_delay_ms: Optional[int] = None
    use_time_based_throttling: Optional[bool] = None
    target_batch_duration_ms: Optional[int] = None
    use_chunked_storage: Optional[bool] = None
    storage_chunk_size: Optional[int] = None


def create_tuning_router(engine):
    router = APIRouter(prefix="/tuning", tags=["Tuning"])

    @router.get("")
    def get_tuning():
        return engine.get_tuning().to_dict()

    @router.put("", dependencies=[Depends(require_admin)])
    def update_tuning(req: TuningUpdateRequest):
        try:
            settings = engine.update_tuning(**req.model_dump(exclude_none=True))
        except SitemapperError as e:
            raise to_http_exception(e)
        return settings.to_dict()

    return router
