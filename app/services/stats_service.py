"""Read-only sales statistics computed in the database."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from datetime import time as dt_time
from decimal import Decimal

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import InfrastructureAppError
from app.db.models import Order, OrderStatus, Product

logger = logging.getLogger(__name__)

TOP_PRODUCTS_LIMIT = 3
REVENUE_WINDOW_DAYS = 7


@dataclass(frozen=True)
class TopProduct:
    id: int
    name: str
    total_sold: int


@dataclass(frozen=True)
class DailyRevenue:
    date: date
    revenue: Decimal


@dataclass(frozen=True)
class SalesStats:
    total_revenue: Decimal
    total_units_sold: int
    top_products: list[TopProduct] = field(default_factory=list)
    revenue_by_day: list[DailyRevenue] = field(default_factory=list)
    query_time_ms: float = 0.0


def _as_date(value: date | str) -> date:
    # SQLite's DATE() yields ISO strings, PostgreSQL yields date objects
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


class StatsService:
    """Aggregates over completed orders: totals, best sellers, daily revenue."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def sales_stats(self, *, now: datetime | None = None) -> SalesStats:
        """Compute sales statistics.

        Args:
            now: Reference time for the daily revenue window (defaults to UTC now).

        Returns:
            SalesStats with totals, top products and revenue for the last 7 days.

        Raises:
            InfrastructureAppError: If the queries fail.
        """
        now = now or datetime.now(timezone.utc)
        # Whole UTC calendar days: midnight of the oldest day in the window.
        first_day = now.astimezone(timezone.utc).date() - timedelta(days=REVENUE_WINDOW_DAYS)
        cutoff = datetime.combine(first_day, dt_time.min, tzinfo=timezone.utc)
        completed = Order.status == OrderStatus.COMPLETED

        totals_stmt = select(
            func.coalesce(func.sum(Order.total_price), 0),
            func.coalesce(func.sum(Order.quantity), 0),
        ).where(completed)

        top_stmt = (
            select(Product.id, Product.name, func.sum(Order.quantity).label("total_sold"))
            .join(Order, Order.product_id == Product.id)
            .where(completed)
            .group_by(Product.id, Product.name)
            .order_by(desc("total_sold"), Product.id)
            .limit(TOP_PRODUCTS_LIMIT)
        )

        day = func.date(Order.created_at).label("day")
        daily_stmt = (
            select(day, func.sum(Order.total_price).label("revenue"))
            .where(completed, Order.created_at >= cutoff)
            .group_by(day)
            .order_by(desc(day))
        )

        start = time.perf_counter()
        try:
            async with self._session_factory() as session:
                total_revenue, total_units = (await session.execute(totals_stmt)).one()
                top_rows = (await session.execute(top_stmt)).all()
                daily_rows = (await session.execute(daily_stmt)).all()
        except (SQLAlchemyError, OSError) as exc:
            logger.error("stats.query_failed", exc_info=exc)
            raise InfrastructureAppError(
                code="stats_unavailable",
                message="Statistics are temporarily unavailable.",
            ) from exc
        query_time_ms = round((time.perf_counter() - start) * 1000, 2)

        stats = SalesStats(
            total_revenue=Decimal(str(total_revenue)),
            total_units_sold=int(total_units),
            top_products=[
                TopProduct(id=row.id, name=row.name, total_sold=int(row.total_sold))
                for row in top_rows
            ],
            revenue_by_day=[
                DailyRevenue(date=_as_date(row.day), revenue=Decimal(str(row.revenue)))
                for row in daily_rows
            ],
            query_time_ms=query_time_ms,
        )
        logger.info(
            "stats.computed",
            extra={"query_time_ms": query_time_ms, "top_products": len(stats.top_products)},
        )
        return stats
