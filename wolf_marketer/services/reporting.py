from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from wolf_marketer.db.enums import PlatformHealthEnum, TaskStatusEnum, WorkflowStatusEnum
from wolf_marketer.db.models import PlatformEarning, Task
from wolf_marketer.services.errors import BusinessRuleError, ReportNotFoundError
from wolf_marketer.services.money import ZERO, format_money, percentage, to_decimal
from wolf_marketer.storage.interface import Storage

PERIODS = ("today", "yesterday", "last7days", "last30days", "thisMonth", "lastMonth")
DEFAULT_PERIOD = "last30days"
TIMEFRAMES = ("daily", "weekly", "monthly")

_END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def contains(self, value: Optional[datetime]) -> bool:
        if value is None:
            return False
        value = as_utc(value)
        return self.start <= value <= self.end


def as_utc(value: datetime) -> datetime:
    # SQLite hands DateTime(timezone=True) values back naive; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _midnight(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def date_range_for_period(period: Optional[str], now: datetime) -> DateRange:
    """Resolve a named reporting period to an inclusive UTC window.

    ``yesterday`` and ``lastMonth`` close at 23:59:59.999 of their last day,
    every other period closes at ``now``. Unknown periods fall back to
    ``last30days``.
    """
    now = as_utc(now)
    today = _midnight(now)
    if period == "today":
        return DateRange(today, now)
    if period == "yesterday":
        day = today - timedelta(days=1)
        return DateRange(day, datetime.combine(day.date(), _END_OF_DAY, tzinfo=timezone.utc))
    if period == "last7days":
        return DateRange(today - timedelta(days=7), now)
    if period == "thisMonth":
        return DateRange(_month_start(now.year, now.month), now)
    if period == "lastMonth":
        year, month = _shift_month(now.year, now.month, -1)
        last_day = calendar.monthrange(year, month)[1]
        end = datetime(year, month, last_day, tzinfo=timezone.utc)
        return DateRange(_month_start(year, month), datetime.combine(end.date(), _END_OF_DAY, tzinfo=timezone.utc))
    return DateRange(today - timedelta(days=30), now)


def _task_counts(tasks: Iterable[Task]) -> dict[str, int]:
    counts = Counter(TaskStatusEnum(task.status) for task in tasks)
    return {
        "completed": counts[TaskStatusEnum.completed],
        "failed": counts[TaskStatusEnum.failed],
        "pending": counts[TaskStatusEnum.pending],
    }


def _sum_earnings(earnings: Iterable[PlatformEarning]) -> tuple[Decimal, Decimal]:
    amount, commissions = ZERO, ZERO
    for earning in earnings:
        amount += to_decimal(earning.amount)
        commissions += to_decimal(earning.commissions)
    return amount, commissions


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class ReportingService:
    def __init__(self, storage: Storage, now: Optional[Callable[[], datetime]] = None) -> None:
        self.storage = storage
        self._now = now or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        return as_utc(self._now())

    def date_range(self, period: Optional[str]) -> DateRange:
        return date_range_for_period(period, self.now())

    def _require_user(self, user_id: int) -> None:
        if not self.storage.get_user(user_id):
            raise ReportNotFoundError("User not found")

    def _tasks_in(self, window: DateRange, **filters: Any) -> list[Task]:
        tasks = self.storage.list_tasks(**filters)
        return [task for task in tasks if window.contains(task.created_at)]

    def _earnings_in(self, window: DateRange, **filters: Any) -> list[PlatformEarning]:
        earnings = self.storage.list_platform_earnings(**filters)
        return [earning for earning in earnings if window.contains(earning.date)]

    def user_earnings_by_platform(self, user_id: int, period: Optional[str]) -> list[dict[str, Any]]:
        self._require_user(user_id)
        window = self.date_range(period)
        earnings = self._earnings_in(window, user_id=user_id)

        rows = []
        for platform in self.storage.list_platforms():
            tasks = self._tasks_in(window, platform_id=platform.id)
            completed = sum(1 for task in tasks if task.status == TaskStatusEnum.completed)
            amount, commissions = _sum_earnings(e for e in earnings if e.platform_id == platform.id)
            rows.append(
                {
                    "platformId": platform.id,
                    "platformName": platform.name,
                    "earnings": amount,
                    "commissions": commissions,
                    "tasks": len(tasks),
                    "successRate": percentage(completed, len(tasks)),
                }
            )
        rows.sort(key=lambda row: row["earnings"], reverse=True)
        for row in rows:
            row["earnings"] = format_money(row["earnings"])
            row["commissions"] = format_money(row["commissions"])
        return rows

    def _buckets(self, timeframe: str, period_count: int) -> list[tuple[str, datetime, datetime]]:
        today = _midnight(self.now())
        buckets = []
        for offset in range(period_count - 1, -1, -1):
            if timeframe == "daily":
                start = today - timedelta(days=offset)
                end = start + timedelta(days=1)
                label = start.date().isoformat()
            elif timeframe == "weekly":
                end = today + timedelta(days=1) - timedelta(days=7 * offset)
                start = end - timedelta(days=7)
                label = f"{start.date().isoformat()} to {(end - timedelta(days=1)).date().isoformat()}"
            else:
                year, month = _shift_month(today.year, today.month, -offset)
                start = _month_start(year, month)
                end = _month_start(*_shift_month(year, month, 1))
                label = f"{year:04d}-{month:02d}"
            buckets.append((label, start, end))
        return buckets

    def user_earnings_by_period(self, user_id: int, timeframe: str, period_count: int) -> list[dict[str, str]]:
        if timeframe not in TIMEFRAMES:
            raise BusinessRuleError(f"timeframe must be one of: {', '.join(TIMEFRAMES)}")
        if period_count < 1:
            raise BusinessRuleError("periodCount must be at least 1")
        self._require_user(user_id)

        earnings = [
            (as_utc(earning.date), earning)
            for earning in self.storage.list_platform_earnings(user_id=user_id)
            if earning.date is not None
        ]
        results = []
        for label, start, end in self._buckets(timeframe, period_count):
            amount, commissions = _sum_earnings(earning for date, earning in earnings if start <= date < end)
            results.append({"period": label, "amount": format_money(amount), "commissions": format_money(commissions)})
        return results

    def workflow_performance(self, user_id: int, period: Optional[str]) -> list[dict[str, Any]]:
        self._require_user(user_id)
        window = self.date_range(period)
        platform_names = {platform.id: platform.name for platform in self.storage.list_platforms()}

        rows = []
        for workflow in self.storage.list_workflows():
            tasks = self._tasks_in(window, workflow_id=workflow.id)
            counts = _task_counts(tasks)
            rows.append(
                {
                    "workflowId": workflow.id,
                    "workflowName": workflow.name,
                    "platformId": workflow.platform_id,
                    "platformName": platform_names.get(workflow.platform_id, "Unknown Platform"),
                    "taskCount": len(tasks),
                    "successfulTasks": counts["completed"],
                    "failedTasks": counts["failed"],
                    "pendingTasks": counts["pending"],
                    "successRate": percentage(counts["completed"], len(tasks)),
                    "revenue": format_money(workflow.revenue),
                    "lastRun": workflow.last_run,
                }
            )
        rows.sort(key=lambda row: row["successRate"], reverse=True)
        return rows

    def platform_analytics(self, platform_id: int, period: Optional[str]) -> dict[str, Any]:
        platform = self.storage.get_platform(platform_id)
        if not platform:
            raise ReportNotFoundError("Platform not found")
        window = self.date_range(period)
        workflows = self.storage.list_workflows(platform_id=platform_id)
        tasks = self._tasks_in(window, platform_id=platform_id)
        counts = _task_counts(tasks)
        revenue = sum((to_decimal(workflow.revenue) for workflow in workflows), ZERO)
        return {
            "platformId": platform.id,
            "platformName": platform.name,
            "platformType": platform.type,
            "workflowCount": len(workflows),
            "taskCount": len(tasks),
            "successfulTasks": counts["completed"],
            "failedTasks": counts["failed"],
            "pendingTasks": counts["pending"],
            "successRate": percentage(counts["completed"], len(tasks)),
            "revenue": format_money(revenue),
            "healthStatus": _enum_value(platform.health_status),
            "lastSynced": platform.last_synced,
        }

    def user_metrics(self, period: Optional[str], limit: int = 10) -> list[dict[str, Any]]:
        window = self.date_range(period)
        # Workflows are not owned per user yet, so every user sees the global active count.
        active_workflows = sum(
            1 for workflow in self.storage.list_workflows() if workflow.status == WorkflowStatusEnum.active
        )
        rows = []
        for user in self.storage.list_users():
            amount, commissions = _sum_earnings(self._earnings_in(window, user_id=user.id))
            rows.append(
                {
                    "userId": user.id,
                    "username": user.username,
                    "email": user.email,
                    "totalEarnings": amount,
                    "commissions": commissions,
                    "activeWorkflows": active_workflows,
                }
            )
        rows.sort(key=lambda row: row["totalEarnings"], reverse=True)
        rows = rows[: max(limit, 0)]
        for row in rows:
            row["totalEarnings"] = format_money(row["totalEarnings"])
            row["commissions"] = format_money(row["commissions"])
        return rows

    def platform_earnings_report(self, period: Optional[str]) -> dict[str, Any]:
        window = self.date_range(period)
        earnings = self._earnings_in(window)
        platforms = self.storage.list_platforms()

        rows = []
        total_earnings, total_commissions = ZERO, ZERO
        earning_users: set[int] = set()
        for platform in platforms:
            platform_earnings = [earning for earning in earnings if earning.platform_id == platform.id]
            workflows = self.storage.list_workflows(platform_id=platform.id)
            amount, commissions = _sum_earnings(platform_earnings)
            users = {earning.user_id for earning in platform_earnings}
            total_earnings += amount
            total_commissions += commissions
            earning_users |= users
            rows.append(
                {
                    "platformId": platform.id,
                    "platformName": platform.name,
                    "platformType": platform.type,
                    "workflowCount": len(workflows),
                    "userCount": len(users),
                    "earnings": amount,
                    "commissions": commissions,
                    "revenue": sum((to_decimal(workflow.revenue) for workflow in workflows), ZERO),
                }
            )
        rows.sort(key=lambda row: row["earnings"], reverse=True)
        for row in rows:
            for key in ("earnings", "commissions", "revenue"):
                row[key] = format_money(row[key])
        return {
            "platforms": rows,
            "summary": {
                "totalEarnings": format_money(total_earnings),
                "totalCommissions": format_money(total_commissions),
                "totalPlatforms": len(platforms),
                "totalUsers": len(earning_users),
                "period": period or DEFAULT_PERIOD,
            },
        }

    def system_performance(self, period: Optional[str]) -> dict[str, Any]:
        window = self.date_range(period)
        platforms = self.storage.list_platforms()
        workflows = self.storage.list_workflows()
        tasks = self._tasks_in(window)
        counts = _task_counts(tasks)
        activities = self.storage.list_activities(since=window.start, until=window.end)
        active = sum(1 for workflow in workflows if workflow.status == WorkflowStatusEnum.active)
        health = Counter(PlatformHealthEnum(platform.health_status) for platform in platforms)

        return {
            "platforms": {
                "total": len(platforms),
                "healthy": health[PlatformHealthEnum.healthy],
                "warning": health[PlatformHealthEnum.warning],
                "error": health[PlatformHealthEnum.error],
            },
            "workflows": {"total": len(workflows), "active": active, "inactive": len(workflows) - active},
            "tasks": {
                "total": len(tasks),
                "successful": counts["completed"],
                "failed": counts["failed"],
                "pending": counts["pending"],
                "successRate": percentage(counts["completed"], len(tasks)),
            },
            "activities": {
                "total": len(activities),
                "byType": dict(Counter(activity.type or "unknown" for activity in activities)),
            },
            "period": period or DEFAULT_PERIOD,
        }
