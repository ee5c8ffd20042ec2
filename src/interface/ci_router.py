"""Read-only access to the latest CI performance report."""

import logging

from fastapi import APIRouter, Depends

from src.domain.user import RequestIdentity
from src.interface.auth import require_identity
from src.models.ci_models import NoDataSummary, PerformanceSummary, RunRecord
from src.services import ci_monitor_service, ci_report_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ci-performance", tags=["ci-performance"])


@router.get("/summary")
async def get_summary(_identity: RequestIdentity = Depends(require_identity)) -> PerformanceSummary | NoDataSummary:
    """Latest summary, or placeholder data before the first analysis."""
    summary = ci_report_service.load_latest_summary()
    if summary is None:
        logger.info("No CI summary stored, serving placeholder data")
        return ci_report_service.placeholder_summary()
    return summary


@router.get("/detailed")
async def get_detailed(_identity: RequestIdentity = Depends(require_identity)) -> list[RunRecord]:
    """Latest per-run records, or placeholder data before the first analysis."""
    runs = ci_report_service.load_latest_detailed()
    if runs is None:
        logger.info("No CI run details stored, serving placeholder data")
        return ci_monitor_service.placeholder_runs()
    return runs
