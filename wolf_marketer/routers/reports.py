from typing import Any

from fastapi import APIRouter, Depends, Query

from wolf_marketer.services.reporting import DEFAULT_PERIOD, ReportingService
from wolf_marketer.storage.deps import get_storage
from wolf_marketer.storage.interface import Storage

router = APIRouter(prefix="/reports", tags=["reports"])


def get_reporting_service(storage: Storage = Depends(get_storage)) -> ReportingService:
    return ReportingService(storage)


@router.get("/date-range")
def date_range(period: str | None = None, service: ReportingService = Depends(get_reporting_service)) -> dict:
    window = service.date_range(period)
    return {"period": period or DEFAULT_PERIOD, "startDate": window.start, "endDate": window.end}


@router.get("/users/{user_id}/earnings/platforms")
def earnings_by_platform(
    user_id: int,
    period: str | None = None,
    service: ReportingService = Depends(get_reporting_service),
) -> list[dict[str, Any]]:
    return service.user_earnings_by_platform(user_id, period)


@router.get("/users/{user_id}/earnings/periods")
def earnings_by_period(
    user_id: int,
    timeframe: str = "daily",
    periodCount: int = Query(default=7, ge=1, le=366),
    service: ReportingService = Depends(get_reporting_service),
) -> list[dict[str, str]]:
    return service.user_earnings_by_period(user_id, timeframe, periodCount)


@router.get("/users/{user_id}/workflows")
def workflow_performance(
    user_id: int,
    period: str | None = None,
    service: ReportingService = Depends(get_reporting_service),
) -> list[dict[str, Any]]:
    return service.workflow_performance(user_id, period)


@router.get("/platforms/{platform_id}")
def platform_analytics(
    platform_id: int,
    period: str | None = None,
    service: ReportingService = Depends(get_reporting_service),
) -> dict[str, Any]:
    return service.platform_analytics(platform_id, period)


@router.get("/admin/users")
def user_metrics(
    period: str | None = None,
    limit: int = Query(default=10, ge=1, le=100),
    service: ReportingService = Depends(get_reporting_service),
) -> list[dict[str, Any]]:
    return service.user_metrics(period, limit)


@router.get("/admin/platform-earnings")
def platform_earnings(
    period: str | None = None,
    service: ReportingService = Depends(get_reporting_service),
) -> dict[str, Any]:
    return service.platform_earnings_report(period)


@router.get("/system")
def system_performance(
    period: str | None = None,
    service: ReportingService = Depends(get_reporting_service),
) -> dict[str, Any]:
    return service.system_performance(period)
