"""
OEE Monitor - OEE Calculator Service

This module turns accumulated quantities into the four OEE percentages.
OEE is calculated as Availability × Performance × Quality.
"""

from datetime import timedelta
from typing import Union

from oee_monitor.models.oee import OeeAccumulation, OeeResult

Duration = Union[float, int, timedelta]

DEFAULT_DECIMALS = 2


def _seconds(value: Duration) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _clamp_percentage(value: float) -> float:
    return max(0.0, min(100.0, value))


class OEECalculator:
    """OEE calculation service."""

    @staticmethod
    def calculate_oee(
        loading_time: Duration,
        down_time: Duration,
        total_count: int,
        good_count: int,
        standard_cycle_seconds: float,
        decimals: int = DEFAULT_DECIMALS
    ) -> OeeResult:
        """
        Calculate OEE percentages.

        OEE = Availability × Performance × Quality

        Where:
        - Availability = (Loading Time - Down Time) / Loading Time × 100
        - Performance = (Standard Cycle Time × Total Count) / Operating Time × 100
        - Quality = Good Count / Total Count × 100

        Zero denominators give 0 instead of raising. Callers substitute 1 for a
        standard cycle time that is not positive. The components are rounded
        only after OEE has been computed from their full-precision values.
        """
        loading_seconds = _seconds(loading_time)
        down_seconds = _seconds(down_time)
        operating_seconds = max(0.0, loading_seconds - down_seconds)

        availability = OEECalculator._calculate_availability(loading_seconds, down_seconds)
        performance = OEECalculator._calculate_performance(
            operating_seconds, total_count, standard_cycle_seconds
        )
        quality = OEECalculator._calculate_quality(total_count, good_count)

        oee = (availability / 100.0) * (performance / 100.0) * (quality / 100.0) * 100.0

        return OeeResult(
            availability=round(availability, decimals),
            performance=round(performance, decimals),
            quality=round(quality, decimals),
            oee=round(max(0.0, oee), decimals)
        )

    @staticmethod
    def calculate_from_accumulation(
        accumulation: OeeAccumulation,
        decimals: int = DEFAULT_DECIMALS
    ) -> OeeResult:
        """
        Calculate OEE for accumulated window quantities.

        Down time is everything in the loading time that was not operating
        time, so idle gaps count against availability and planned downtime
        does not. A missing standard cycle time is replaced by 1 second.
        """
        standard_cycle = accumulation.avg_standard_cycle_seconds
        if standard_cycle <= 0:
            standard_cycle = 1.0

        down_time = max(0.0, accumulation.loading_time_seconds - accumulation.operating_time_seconds)

        return OEECalculator.calculate_oee(
            loading_time=accumulation.loading_time_seconds,
            down_time=down_time,
            total_count=accumulation.total_count,
            good_count=accumulation.good_count,
            standard_cycle_seconds=standard_cycle,
            decimals=decimals
        )

    @staticmethod
    def _calculate_availability(loading_seconds: float, down_seconds: float) -> float:
        """Calculate availability component of OEE."""
        if loading_seconds <= 0:
            return 0.0
        return _clamp_percentage((loading_seconds - down_seconds) / loading_seconds * 100.0)

    @staticmethod
    def _calculate_performance(operating_seconds: float, total_count: int, standard_cycle_seconds: float) -> float:
        """Calculate performance component of OEE."""
        if operating_seconds <= 0 or standard_cycle_seconds <= 0:
            return 0.0
        return _clamp_percentage(standard_cycle_seconds * total_count / operating_seconds * 100.0)

    @staticmethod
    def _calculate_quality(total_count: int, good_count: int) -> float:
        """Calculate quality component of OEE."""
        if total_count <= 0:
            return 0.0
        return _clamp_percentage(good_count / total_count * 100.0)
