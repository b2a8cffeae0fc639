from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stockapi.core.dependencies import get_current_user, get_db
from stockapi.models.user import User
from stockapi.schemas.dashboard import DashboardSummary, QuickStats
from stockapi.services.dashboard_service import DashboardService

router = APIRouter()


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


@router.get("/summary", response_model=DashboardSummary)
def get_summary(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    current_user: User = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
):
    """
    Totals, per-day activity for [start, end] (last 30 days by default,
    every day present) and top-10 lists.
    """
    return service.get_summary(start, end)


@router.get("/quick-stats", response_model=QuickStats)
def get_quick_stats(
    current_user: User = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.get_quick_stats()
