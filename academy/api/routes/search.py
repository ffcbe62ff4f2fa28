from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from academy.api.deps import get_catalog_service, get_rules
from academy.api.envelope import ok
from academy.api.schemas import priced_out
from academy.components.catalog import CatalogService
from academy.rules.models import Rules

router = APIRouter()


@router.get("")
def search(
    q: str = "",
    limit: int | None = None,
    service: CatalogService = Depends(get_catalog_service),
    rules: Rules = Depends(get_rules),
) -> JSONResponse:
    """Search every published catalog type plus published jobs."""
    per_type = min(limit or rules.catalog.search_limit_per_type, rules.catalog.max_page_size)
    results = service.search(q, max(per_type, 1))
    return ok(
        {
            "query": results.query,
            "results": {t: [priced_out(i) for i in items] for t, items in results.items.items()},
            "jobs": [j.model_dump(mode="json") for j in results.jobs],
            "total": results.total,
        }
    )
