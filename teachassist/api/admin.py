"""
Admin API routes for usage analytics and revenue reporting
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional
import logging

from teachassist.core.database import get_db
from teachassist.core.security import require_admin
from teachassist.services import metrics
from teachassist.utils.json_sanitize import deep_clean_json_safe

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


def _failure(error: str, exc: Exception, hint: Optional[str] = None) -> HTTPException:
    logger.error(f"{error}: {type(exc).__name__}: {exc}")
    detail = {"error": error, "details": str(exc)}
    if hint:
        detail["hint"] = hint
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get("/overview")
async def get_overview(db=Depends(get_db)):
    """Headline numbers: users, active users, MRR, signups, API cost, anonymous IPs"""
    try:
        overview = {
            "totalUsers": await metrics.total_users_count(db),
            "activeUsers30d": await metrics.active_users_count(db, 30),
            "mrr": await metrics.monthly_recurring_revenue(db),
            "newSignups7d": await metrics.new_signups_count(db, 7),
            "monthlyApiCosts": await metrics.total_api_costs(db, 30),
            "uniqueAnonymousIPs30d": await metrics.unique_anonymous_ip_count(db, 30),
        }
    except Exception as e:
        raise _failure(
            "Failed to fetch overview metrics", e,
            hint="Check if database tables exist. Run: prisma db push",
        )
    logger.info(f"Overview: {overview['totalUsers']} users, MRR ${overview['mrr']}")
    return overview


@router.get("/revenue-breakdown")
async def get_revenue_breakdown(db=Depends(get_db)):
    try:
        breakdown = await metrics.revenue_breakdown(db)
    except Exception as e:
        raise _failure("Failed to fetch revenue breakdown", e, hint="Ensure Subscription table exists in database")
    return breakdown


@router.get("/usage-stats")
async def get_usage_stats(db=Depends(get_db)):
    try:
        return {
            "totalRequests": await metrics.total_requests_count(db, 30),
            "avgPerUser": await metrics.average_requests_per_user(db),
            "popularTypes": await metrics.popular_assistant_types(db),
        }
    except Exception as e:
        raise _failure(
            "Failed to fetch usage statistics", e,
            hint="Ensure UsageLog and User tables exist in database",
        )


@router.get("/recent-signups")
async def get_recent_signups(db=Depends(get_db)):
    try:
        signups = await metrics.recent_signups(db, 10)
    except Exception as e:
        raise _failure("Failed to fetch recent signups", e)
    return deep_clean_json_safe(signups)


@router.get("/recent-usage")
async def get_recent_usage(db=Depends(get_db)):
    try:
        usage = await metrics.recent_usage(db, 10)
    except Exception as e:
        raise _failure("Failed to fetch recent usage", e)
    return deep_clean_json_safe(usage)


@router.get("/metrics")
async def get_metrics(db=Depends(get_db)):
    """Churn and conversion rates"""
    try:
        return {
            "churnRate": await metrics.churn_rate(db),
            "conversionRate": await metrics.conversion_rate(db),
        }
    except Exception as e:
        raise _failure(
            "Failed to fetch metrics", e,
            hint="Ensure Session, Event, and Subscription tables exist",
        )


@router.get("/users")
async def get_users(
    search: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db=Depends(get_db),
):
    """Paginated user list with optional email/name search"""
    try:
        result = await metrics.list_users(db, search=search, page=page, limit=limit)
    except Exception as e:
        raise _failure("Failed to fetch users", e, hint="Ensure User table exists in database")
    logger.info(f"Found {len(result['users'])} users on page {page} (total: {result['total']})")
    return deep_clean_json_safe(result)


@router.get("/usage-by-ip")
async def get_usage_by_ip(db=Depends(get_db)):
    try:
        rows = await metrics.usage_by_ip(db)
    except Exception as e:
        raise _failure("Failed to fetch usage by IP", e)
    return deep_clean_json_safe(rows)


@router.get("/location-map")
async def get_location_map(db=Depends(get_db)):
    try:
        rows = await metrics.location_map(db)
    except Exception as e:
        raise _failure("Failed to fetch location data", e)
    return deep_clean_json_safe(rows)


@router.get("/browser-stats")
async def get_browser_stats(db=Depends(get_db)):
    try:
        return await metrics.browser_stats(db)
    except Exception as e:
        raise _failure("Failed to fetch browser statistics", e)
