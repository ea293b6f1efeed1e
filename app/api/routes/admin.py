from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_stats_service
from app.core.auth import verify_api_key
from app.schemas.stats import (
    DailyRevenuePayload,
    StatsData,
    StatsMeta,
    StatsResponse,
    TopProductPayload,
)
from app.services.stats_service import StatsService

router = APIRouter(tags=["Admin"])


@router.get(
    "/admin/stats",
    response_model=StatsResponse,
    dependencies=[Depends(verify_api_key)],
)
async def sales_stats(service: StatsService = Depends(get_stats_service)) -> StatsResponse:
    """Sales statistics over completed orders.

    Returns total revenue, units sold, the three best-selling products and
    revenue per day for the last seven days. Requires ``X-API-Key``.
    """
    stats = await service.sales_stats()
    return StatsResponse(
        data=StatsData(
            total_revenue=float(stats.total_revenue),
            total_units_sold=stats.total_units_sold,
            top_products=[
                TopProductPayload(id=p.id, name=p.name, total_sold=p.total_sold)
                for p in stats.top_products
            ],
            revenue_by_day=[
                DailyRevenuePayload(date=d.date, revenue=float(d.revenue))
                for d in stats.revenue_by_day
            ],
        ),
        meta=StatsMeta(query_time_ms=stats.query_time_ms),
    )
