"""Admin analytics over users, subscriptions, sessions, events and usage logs.

Every function takes the Prisma client explicitly so it can run against the
application's connection or a test double. Money and percentages are rounded
half-up to two places; API cost keeps full precision.
"""
from __future__ import annotations

import math
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

YEARLY_TIER = "yearly"
FREE_TIER = "free"


def round2(value) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _cutoff(days: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)


def _price(value) -> float:
    return float(value) if value is not None else 0.0


# ---------------------------------------------------------------------------
# Users and revenue
# ---------------------------------------------------------------------------
async def total_users_count(db) -> int:
    return await db.user.count()


async def new_signups_count(db, days: int) -> int:
    return await db.user.count(where={"createdAt": {"gte": _cutoff(days)}})


async def active_users_count(db, days: int) -> int:
    return await db.user.count(where={"lastActiveAt": {"gte": _cutoff(days)}})


async def monthly_recurring_revenue(db) -> float:
    """Active subscriptions normalised to a monthly amount; yearly plans count 1/12."""
    subscriptions = await db.subscription.find_many(where={"status": "active"})
    mrr = 0.0
    for sub in subscriptions:
        price = _price(sub.priceUsd)
        mrr += price / 12 if sub.tier == YEARLY_TIER else price
    return round2(mrr)


async def revenue_breakdown(db) -> List[Dict[str, Any]]:
    subscriptions = await db.subscription.find_many(where={"status": "active"})
    tiers: Dict[str, Dict[str, float]] = {}
    for sub in subscriptions:
        data = tiers.setdefault(sub.tier, {"count": 0, "revenue": 0.0})
        data["count"] += 1
        data["revenue"] += _price(sub.priceUsd)

    # Free tier is counted from users, not subscriptions.
    tiers[FREE_TIER] = {"count": await db.user.count(where={"currentTier": FREE_TIER}), "revenue": 0.0}

    total_revenue = sum(data["revenue"] for data in tiers.values())
    breakdown = [
        {
            "tier": tier,
            "userCount": int(data["count"]),
            "revenue": round2(data["revenue"]),
            "percentage": round2(data["revenue"] / total_revenue * 100) if total_revenue > 0 else 0,
        }
        for tier, data in tiers.items()
    ]
    breakdown.sort(key=lambda row: row["revenue"], reverse=True)
    return breakdown


async def churn_rate(db) -> float:
    """Cancelled in the last 30 days over active subscriptions created in that window."""
    since = _cutoff(30)
    total = await db.subscription.count(where={"createdAt": {"gte": since}, "status": "active"})
    cancelled = await db.subscription.count(where={"cancelledAt": {"gte": since}, "status": "cancelled"})
    if total == 0:
        return 0
    return round2(cancelled / total * 100)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------
async def anonymous_sessions_count(db, days: int) -> int:
    return await db.session.count(where={"isAnonymous": True, "startedAt": {"gte": _cutoff(days)}})


async def unique_anonymous_ip_count(db, days: int) -> int:
    sessions = await db.session.find_many(
        where={"isAnonymous": True, "startedAt": {"gte": _cutoff(days)}, "ipAddress": {"not": None}},
        distinct=["ipAddress"],
    )
    return len(sessions)


async def conversion_rate(db) -> float:
    """Signups from anonymous sessions over all anonymous sessions."""
    total = await db.session.count(where={"isAnonymous": True})
    conversions = await db.event.count(
        where={"eventType": "signupCompleted", "session": {"is": {"isAnonymous": True}}}
    )
    if total == 0:
        return 0
    return round2(conversions / total * 100)


def detect_browser(user_agent: Optional[str]) -> Optional[str]:
    if not user_agent:
        return None
    ua = user_agent.lower()
    if "edg/" in ua:
        return "Edge"
    if "chrome/" in ua:
        return "Chrome"
    if "safari/" in ua:
        return "Safari"
    if "firefox/" in ua:
        return "Firefox"
    if "opera/" in ua or "opr/" in ua:
        return "Opera"
    return "Other"


async def browser_stats(db) -> List[Dict[str, Any]]:
    sessions = await db.session.find_many(where={"userAgent": {"not": None}})
    counts = Counter(browser for browser in (detect_browser(s.userAgent) for s in sessions) if browser)
    return [{"browser": browser, "count": count} for browser, count in counts.most_common()]


async def usage_by_ip(db, limit: int = 100) -> List[Dict[str, Any]]:
    rows = await db.query_raw(
        """
        SELECT
            s.ip_address AS "ipAddress",
            COUNT(u.id) AS "totalRequests",
            COALESCE(SUM(u.cost_usd), 0)::float AS "totalCost",
            MAX(s.last_activity_at) AS "lastSeen",
            s.country,
            s.city
        FROM sessions s
        LEFT JOIN usage_logs u ON s.id = u.session_id
        WHERE s.ip_address IS NOT NULL
        GROUP BY s.ip_address, s.country, s.city
        ORDER BY "totalRequests" DESC
        LIMIT $1
        """,
        limit,
    )
    return [
        {**row, "totalRequests": int(row["totalRequests"]), "totalCost": float(row["totalCost"] or 0)}
        for row in rows
    ]


async def location_map(db) -> List[Dict[str, Any]]:
    rows = await db.query_raw(
        """
        SELECT
            country,
            city,
            COUNT(DISTINCT id) AS "sessionCount",
            COUNT(DISTINCT ip_address) AS "uniqueIPs"
        FROM sessions
        WHERE country IS NOT NULL
        GROUP BY country, city
        ORDER BY "sessionCount" DESC
        """
    )
    return [
        {**row, "sessionCount": int(row["sessionCount"]), "uniqueIPs": int(row["uniqueIPs"])}
        for row in rows
    ]


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------
async def total_requests_count(db, days: int) -> int:
    return await db.usagelog.count(where={"createdAt": {"gte": _cutoff(days)}})


async def average_requests_per_user(db) -> float:
    users = await db.user.count()
    if users == 0:
        return 0
    return round2(await db.usagelog.count() / users)


async def popular_assistant_types(db) -> List[Dict[str, Any]]:
    rows = await db.query_raw(
        """
        SELECT assistant_type AS "type", COUNT(*) AS "count"
        FROM usage_logs
        GROUP BY assistant_type
        ORDER BY "count" DESC
        """
    )
    return [{"type": row["type"], "count": int(row["count"])} for row in rows]


async def total_api_costs(db, days: int) -> float:
    logs = await db.usagelog.find_many(where={"createdAt": {"gte": _cutoff(days)}})
    return float(sum((Decimal(str(log.costUsd)) for log in logs if log.costUsd is not None), Decimal(0)))


async def total_tokens_used(db, days: int) -> Dict[str, int]:
    logs = await db.usagelog.find_many(where={"createdAt": {"gte": _cutoff(days)}})
    tokens = defaultdict(int)
    for log in logs:
        tokens["input"] += log.tokensInput or 0
        tokens["output"] += log.tokensOutput or 0
    return {"input": tokens["input"], "output": tokens["output"], "total": tokens["input"] + tokens["output"]}


async def recent_signups(db, limit: int = 10) -> List[Dict[str, Any]]:
    users = await db.user.find_many(take=limit, order={"createdAt": "desc"})
    return [
        {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "currentTier": user.currentTier,
            "createdAt": user.createdAt,
            "country": user.country,
        }
        for user in users
    ]


async def recent_usage(db, limit: int = 10) -> List[Dict[str, Any]]:
    logs = await db.usagelog.find_many(take=limit, order={"createdAt": "desc"}, include={"user": True})
    return [
        {
            "id": log.id,
            "assistantType": log.assistantType,
            "requestType": log.requestType,
            "createdAt": log.createdAt,
            "wasSuccessful": log.wasSuccessful,
            "user": {"email": log.user.email, "name": log.user.name} if log.user else None,
        }
        for log in logs
    ]


async def list_users(db, search: str = "", page: int = 1, limit: int = 20) -> Dict[str, Any]:
    page = max(page, 1)
    limit = max(limit, 1)
    where: Dict[str, Any] = {}
    if search:
        where = {
            "OR": [
                {"email": {"contains": search, "mode": "insensitive"}},
                {"name": {"contains": search, "mode": "insensitive"}},
            ]
        }
    users = await db.user.find_many(
        where=where,
        skip=(page - 1) * limit,
        take=limit,
        order={"createdAt": "desc"},
    )
    total = await db.user.count(where=where)
    return {
        "users": [
            {
                "id": user.id,
                "email": user.email,
                "name": user.name,
                "currentTier": user.currentTier,
                "monthlyRequestsUsed": user.monthlyRequestsUsed,
                "monthlyRequestsLimit": user.monthlyRequestsLimit,
                "lastActiveAt": user.lastActiveAt,
                "createdAt": user.createdAt,
                "country": user.country,
            }
            for user in users
        ],
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
    }
