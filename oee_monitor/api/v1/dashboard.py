"""
OEE Monitor - Dashboard API Routes

This module provides the stateless live dashboard endpoint: machine status
cards, state timelines and the aggregate OEE of the selected shift.
"""

from datetime import datetime

from fastapi import APIRouter, HTTPException, status
import structlog

from oee_monitor.models.oee import DashboardReport, DashboardRequest
from oee_monitor.services.oee_report_service import OEEReportService
from oee_monitor.utils.exceptions import OEEMonitorException

logger = structlog.get_logger()

router = APIRouter()


@router.post("", response_model=DashboardReport, status_code=status.HTTP_200_OK)
async def get_dashboard(request: DashboardRequest) -> DashboardReport:
    """Build the dashboard for the submitted machine snapshots."""
    try:
        now = request.now or datetime.now()

        dashboard = OEEReportService.build_dashboard(
            request.machines,
            now,
            shifts=request.shifts,
            shift_id=request.shift_id,
            shift_date=request.shift_date,
            line_id=request.line_id,
            machine_id=request.machine_id
        )

        logger.debug(
            "Dashboard built via API",
            shift_key=dashboard.window.key,
            machines=len(dashboard.machines)
        )

        return dashboard

    except OEEMonitorException:
        raise
    except Exception as e:
        logger.error("Failed to build dashboard via API", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
