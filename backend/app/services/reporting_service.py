"""
Dashboard Reporting Service
Read-only aggregations over users, loans and applications
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import logging
import math

from app.core.config import settings
from app.models.application import ApplicationStatus
from app.models.dashboard import (
    AdminDashboard,
    CategoryCount,
    ManagerDashboard,
    MonthlyCount,
    RecentLoan,
    TopLoan,
)
from app.models.loan import UNCATEGORIZED, owned_by_filter
from app.models.user import Role

logger = logging.getLogger(__name__)

TREND_MONTHS = 6

RECENT_USER_FIELDS = {
    "_id": 0,
    "userId": 1,
    "email": 1,
    "displayName": 1,
    "photoURL": 1,
    "role": 1,
    "createdAt": 1,
}

RECENT_APPLICATION_FIELDS = {
    "_id": 0,
    "applicationId": 1,
    "loanId": 1,
    "loanTitle": 1,
    "email": 1,
    "loanAmount": 1,
    "status": 1,
    "applicationFeeStatus": 1,
    "createdAt": 1,
}

MANAGER_LOAN_FIELDS = {
    "_id": 0,
    "loanId": 1,
    "loanTitle": 1,
    "category": 1,
    "interestRate": 1,
    "maxLoanLimit": 1,
    "showOnHome": 1,
    "createdAt": 1,
}


def parse_amount(value: Any) -> float:
    """
    Safely parse an amount stored as a number or as text.

    Commas, currency symbols and whitespace are ignored. Anything that still
    doesn't parse (or isn't finite) counts as 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        cleaned = str(value).replace(',', '').replace('$', '').replace(' ', '').strip()
        try:
            amount = float(cleaned)
        except (ValueError, TypeError):
            logger.warning(f"Could not parse amount: {value!r}")
            return 0.0

    if not math.isfinite(amount):
        return 0.0
    return amount


def trailing_months(now: datetime, months: int = TREND_MONTHS) -> List[Tuple[int, int]]:
    """(year, month) pairs for the current month and the ``months - 1`` before it, oldest first"""
    year, month = now.year, now.month
    result = []
    for _ in range(months):
        result.append((year, month))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    result.reverse()
    return result


def _naive_utc(value: datetime) -> datetime:
    # Stored datetimes come back from the driver as naive UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _as_flag(value: Any) -> bool:
    # Legacy documents may hold the flag as text
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _month_label(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


class ReportingService:
    """Builds the admin and manager dashboards from a database handle"""

    def __init__(
        self,
        db,
        recent_limit: Optional[int] = None,
        recent_loans_limit: Optional[int] = None,
        top_loans_limit: Optional[int] = None,
    ):
        self.db = db
        self.recent_limit = recent_limit or settings.DASHBOARD_RECENT_LIMIT
        self.recent_loans_limit = recent_loans_limit or settings.DASHBOARD_RECENT_LOANS_LIMIT
        self.top_loans_limit = top_loans_limit or settings.DASHBOARD_TOP_LOANS_LIMIT

    async def admin_dashboard(self) -> AdminDashboard:
        """Platform-wide statistics"""
        try:
            users_by_role = {role.value: 0 for role in Role}
            users_by_role.update(await self._count_by(self.db.users, "role"))

            recent_users = await self.db.users.find({}, RECENT_USER_FIELDS) \
                .sort("createdAt", -1).limit(self.recent_limit).to_list(length=self.recent_limit)

            total_loans = await self.db.loans.count_documents({})

            by_status, amount_by_status = await self._status_breakdown({})
            recent_applications = await self._recent_applications({})
            top_loans = await self._top_loans({}, with_monthly=True)

            return AdminDashboard(
                total_users=sum(users_by_role.values()),
                users_by_role=users_by_role,
                recent_users=recent_users,
                total_loans=total_loans,
                total_applications=sum(by_status.values()),
                applications_by_status=by_status,
                total_application_amount=sum(amount_by_status.values()),
                approved_amount=amount_by_status.get(ApplicationStatus.APPROVED.value, 0.0),
                recent_applications=recent_applications,
                top_loans=top_loans,
            )
        except Exception as e:
            logger.error(f"Failed to build admin dashboard: {e}")
            raise

    async def manager_dashboard(self, manager_email: str, now: Optional[datetime] = None) -> ManagerDashboard:
        """Statistics restricted to the loans owned by ``manager_email``"""
        try:
            now = _naive_utc(now or datetime.now(timezone.utc))

            owned_loans = await self.db.loans.find(owned_by_filter(manager_email), MANAGER_LOAN_FIELDS) \
                .sort("createdAt", -1).to_list(length=None)
            loan_ids = [loan["loanId"] for loan in owned_loans if loan.get("loanId")]
            match = {"loanId": {"$in": loan_ids}}

            by_status, amount_by_status = await self._status_breakdown(match)

            return ManagerDashboard(
                total_loans=len(owned_loans),
                total_applications=sum(by_status.values()),
                pending_applications=by_status[ApplicationStatus.PENDING.value],
                approved_applications=by_status[ApplicationStatus.APPROVED.value],
                rejected_applications=by_status[ApplicationStatus.REJECTED.value],
                total_application_amount=sum(amount_by_status.values()),
                applications_by_category=await self._applications_by_category(match),
                recent_applications=await self._recent_applications(match),
                recent_loans=[self._shape_recent_loan(loan) for loan in owned_loans[:self.recent_loans_limit]],
                monthly_trend=await self._monthly_trend(match, now),
                top_loans=await self._top_loans(match, with_monthly=False),
            )
        except Exception as e:
            logger.error(f"Failed to build manager dashboard for {manager_email}: {e}")
            raise

    async def _count_by(self, collection, field: str, match: Optional[dict] = None) -> Dict[str, int]:
        pipeline = []
        if match:
            pipeline.append({"$match": match})
        pipeline.append({"$group": {"_id": f"${field}", "count": {"$sum": 1}}})
        result = await collection.aggregate(pipeline).to_list(length=None)
        counts: Dict[str, int] = {}
        for item in result:
            key = item.get("_id")
            key = "unknown" if key is None else str(key)
            counts[key] = counts.get(key, 0) + item.get("count", 0)
        return counts

    async def _amount_totals(self, match: dict, key: str) -> Dict[Any, float]:
        """
        Summed ``loanAmount`` per ``key``, with text amounts coerced.

        Grouping on (key, amount) keeps every group document small; each
        distinct stored value is parsed once and weighted by its count.
        """
        pipeline = []
        if match:
            pipeline.append({"$match": match})
        pipeline.append({"$group": {
            "_id": {"key": f"${key}", "amount": "$loanAmount"},
            "count": {"$sum": 1},
        }})

        result = await self.db.applications.aggregate(pipeline, allowDiskUse=True).to_list(length=None)

        totals: Dict[Any, float] = {}
        for item in result:
            group = item.get("_id") or {}
            group_key = group.get("key")
            totals[group_key] = totals.get(group_key, 0.0) + parse_amount(group.get("amount")) * item.get("count", 0)
        return totals

    async def _status_breakdown(self, match: dict) -> Tuple[Dict[str, int], Dict[str, float]]:
        """Application count and summed amount per status"""
        counts = {status.value: 0 for status in ApplicationStatus}
        amounts = {status.value: 0.0 for status in ApplicationStatus}

        by_status = await self._count_by(self.db.applications, "status", match)
        for key, count in by_status.items():
            counts[key] = counts.get(key, 0) + count

        for key, total in (await self._amount_totals(match, "status")).items():
            key = "unknown" if key is None else str(key)
            amounts[key] = amounts.get(key, 0.0) + total
        return counts, amounts

    async def _recent_applications(self, match: dict) -> List[dict]:
        cursor = self.db.applications.find(match, RECENT_APPLICATION_FIELDS) \
            .sort("createdAt", -1).limit(self.recent_limit)
        return await cursor.to_list(length=self.recent_limit)

    async def _top_loans(self, match: dict, with_monthly: bool) -> List[TopLoan]:
        """Loans ranked by application count; ties keep the store's order"""
        pipeline = []
        if match:
            pipeline.append({"$match": match})
        pipeline.extend([
            {"$group": {
                "_id": "$loanId",
                "loanTitle": {"$first": "$loanTitle"},
                "applications": {"$sum": 1},
            }},
            {"$sort": {"applications": -1}},
            {"$limit": self.top_loans_limit},
        ])
        result = await self.db.applications.aggregate(pipeline).to_list(length=None)

        ranked_ids = [item.get("_id") for item in result]
        totals = await self._amount_totals({**match, "loanId": {"$in": ranked_ids}}, "loanId") if ranked_ids else {}

        # Older applications don't carry a title snapshot
        missing = [item["_id"] for item in result if not item.get("loanTitle") and item.get("_id")]
        titles = {}
        if missing:
            loans = await self.db.loans.find(
                {"loanId": {"$in": missing}}, {"_id": 0, "loanId": 1, "loanTitle": 1}
            ).to_list(length=None)
            titles = {loan["loanId"]: loan.get("loanTitle") for loan in loans}

        top_loans = []
        for item in result:
            loan_id = item.get("_id")
            top = TopLoan(
                loan_id=loan_id,
                loan_title=item.get("loanTitle") or titles.get(loan_id),
                applications=item.get("applications", 0),
                total_amount=totals.get(loan_id, 0.0),
            )
            if with_monthly:
                top.monthly = await self._monthly_counts({"loanId": loan_id})
            top_loans.append(top)
        return top_loans

    async def _monthly_counts(self, match: dict) -> List[MonthlyCount]:
        """Application counts per calendar month, oldest first"""
        pipeline = [
            {"$match": match},
            {"$group": {
                "_id": {"year": {"$year": "$createdAt"}, "month": {"$month": "$createdAt"}},
                "count": {"$sum": 1},
            }},
            {"$sort": {"_id.year": 1, "_id.month": 1}},
        ]
        result = await self.db.applications.aggregate(pipeline).to_list(length=None)
        monthly = []
        for item in result:
            year, month = item["_id"].get("year"), item["_id"].get("month")
            if year is None or month is None:
                continue
            monthly.append(MonthlyCount(
                year=year, month=month, label=_month_label(year, month), count=item.get("count", 0)
            ))
        return monthly

    async def _monthly_trend(self, match: dict, now: datetime) -> List[MonthlyCount]:
        """Zero-filled monthly counts for the trailing window ending with the current month"""
        months = trailing_months(now)
        first_year, first_month = months[0]
        window_start = datetime(first_year, first_month, 1)

        counted = await self._monthly_counts({**match, "createdAt": {"$gte": window_start}})
        by_month = {(item.year, item.month): item.count for item in counted}

        return [
            MonthlyCount(year=year, month=month, label=_month_label(year, month), count=by_month.get((year, month), 0))
            for year, month in months
        ]

    async def _applications_by_category(self, match: dict) -> List[CategoryCount]:
        """Join applications to their loans and count per loan category"""
        pipeline = [
            {"$match": match},
            {"$lookup": {
                "from": "loans",
                "localField": "loanId",
                "foreignField": "loanId",
                "as": "loan",
            }},
            {"$unwind": {"path": "$loan", "preserveNullAndEmptyArrays": True}},
            {"$group": {"_id": "$loan.category", "count": {"$sum": 1}}},
        ]
        result = await self.db.applications.aggregate(pipeline).to_list(length=None)

        counts: Dict[str, int] = {}
        for item in result:
            category = item.get("_id") or UNCATEGORIZED
            counts[category] = counts.get(category, 0) + item.get("count", 0)

        return [
            CategoryCount(category=category, count=count)
            for category, count in sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
        ]

    def _shape_recent_loan(self, loan: dict) -> RecentLoan:
        return RecentLoan(
            loan_id=loan.get("loanId"),
            loan_title=loan.get("loanTitle"),
            category=loan.get("category") or UNCATEGORIZED,
            interest_rate=parse_amount(loan.get("interestRate")),
            max_loan_limit=parse_amount(loan.get("maxLoanLimit")),
            show_on_home=_as_flag(loan.get("showOnHome")),
            created_at=loan.get("createdAt"),
        )
