from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Page:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def clamp_page(page: int | None, limit: int | None, default_limit: int, max_limit: int) -> Page:
    """Normalise paging query params; out-of-range values are pulled into range."""
    p = page if page and page > 0 else 1
    lim = limit if limit and limit > 0 else default_limit
    return Page(page=p, limit=min(lim, max_limit))


def pagination_meta(total: int, page: Page) -> dict[str, int]:
    return {
        "page": page.page,
        "limit": page.limit,
        "total": total,
        "total_pages": math.ceil(total / page.limit) if page.limit else 0,
    }
