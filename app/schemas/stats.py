"""Pydantic schemas for the admin statistics endpoint."""

import datetime as dt

from app.schemas.base import CamelModel


class TopProductPayload(CamelModel):
    id: int
    name: str
    total_sold: int


class DailyRevenuePayload(CamelModel):
    date: dt.date
    revenue: float


class StatsData(CamelModel):
    total_revenue: float
    total_units_sold: int
    top_products: list[TopProductPayload]
    revenue_by_day: list[DailyRevenuePayload]


class StatsMeta(CamelModel):
    query_time_ms: float


class StatsResponse(CamelModel):
    success: bool = True
    data: StatsData
    meta: StatsMeta
