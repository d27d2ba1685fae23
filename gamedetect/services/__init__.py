"""Business logic services for gamedetect."""

from .detection_service import DetectionService, ScanReport, merge_results, DETECTOR_TIMED_OUT
from .launch_service import LaunchService
from .icon_service import IconService

__all__ = ['DetectionService', 'ScanReport', 'merge_results', 'DETECTOR_TIMED_OUT', 'LaunchService', 'IconService']
