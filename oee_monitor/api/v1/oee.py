"""
OEE Monitor - OEE API Routes

This module provides stateless API endpoints for shift-window resolution,
OEE calculation and per-machine OEE reports. Every request carries its own
interval snapshot; ``now`` defaults to the server clock read once per request.
"""

from datetime import datetime

from fastapi import APIRouter, HTTPException, status
import structlog

from oee_monitor.models.oee import (
    MachineOeeReport, MachineReportRequest, OeeCalculationRequest, OeeResult,
    ShiftWindow, ShiftWindowRequest
)
from oee_monitor.services.oee_calculator import OEECalculator
from oee_monitor.services.oee_report_service import OEEReportService
from oee_monitor.config import settings
from oee_monitor.utils.exceptions import NotFoundError, OEEMonitorException, ValidationError

logger = structlog.get_logger()

router = APIRouter()


@router.post("/shift-window", response_model=ShiftWindow, status_code=status.HTTP_200_OK)
async def resolve_shift_window(request: ShiftWindowRequest) -> ShiftWindow:
    """Resolve the shift window a report would be computed over."""
    try:
        now = request.now or datetime.now()

        window = OEEReportService.resolve_window(
            now, request.shifts, request.shift_id, request.shift_date
        )

        logger.debug(
            "Shift window resolved via API",
            key=window.key,
            auto_detected=window.auto_detected
        )

        return window

    except OEEMonitorException:
        raise
    except Exception as e:
        logger.error("Failed to resolve shift window via API", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/calculate", response_model=OeeResult, status_code=status.HTTP_200_OK)
async def calculate_oee(request: OeeCalculationRequest) -> OeeResult:
    """Calculate OEE percentages from raw quantities."""
    try:
        if request.good_count > request.total_count:
            raise ValidationError(
                "Good count cannot exceed total count",
                {"good_count": request.good_count, "total_count": request.total_count}
            )

        standard_cycle = request.standard_cycle_seconds
        if standard_cycle <= 0:
            standard_cycle = 1.0

        result = OEECalculator.calculate_oee(
            loading_time=request.loading_time_seconds,
            down_time=request.down_time_seconds,
            total_count=request.total_count,
            good_count=request.good_count,
            standard_cycle_seconds=standard_cycle,
            decimals=settings.RESULT_DECIMALS
        )

        logger.debug("OEE calculated via API", oee=result.oee)

        return result

    except OEEMonitorException:
        raise
    except Exception as e:
        logger.error("Failed to calculate OEE via API", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/machines/{machine_id}/report", response_model=MachineOeeReport, status_code=status.HTTP_200_OK)
async def get_machine_report(machine_id: str, request: MachineReportRequest) -> MachineOeeReport:
    """Build the OEE report of one machine from the submitted snapshots."""
    try:
        machine = next((m for m in request.machines if m.machine_id == machine_id), None)
        if machine is None:
            raise NotFoundError("Machine", machine_id)

        now = request.now or datetime.now()

        report = OEEReportService.build_machine_report(
            machine,
            now,
            shifts=request.shifts,
            shift_id=request.shift_id,
            shift_date=request.shift_date
        )

        logger.info(
            "Machine OEE report built via API",
            machine_id=machine_id,
            shift_key=report.window.key,
            oee=report.result.oee
        )

        return report

    except OEEMonitorException:
        raise
    except Exception as e:
        logger.error("Failed to build machine report via API", error=str(e), machine_id=machine_id)
        raise HTTPException(status_code=500, detail="Internal server error")
