"""
Detector Registry - maps each Platform to its detector.

Provides ordered access for full scans and strict lookup for single-platform
rescans.
"""
from typing import Dict, Iterable, List, Union
import logging

from .base import Detector, Platform, PLATFORM_ORDER, UnknownPlatformError


logger = logging.getLogger(__name__)


class DetectorRegistry:
    """
    Static table from Platform to Detector.

    Iteration always follows PLATFORM_ORDER, whatever order detectors were
    registered in, since deduplication depends on it.
    """

    def __init__(self, detectors: Iterable[Detector] = ()):
        self._detectors: Dict[Platform, Detector] = {}
        for detector in detectors:
            self.register_detector(detector)

    def register_detector(self, detector: Detector):
        """Register a detector, replacing any previous one for its platform."""
        self._detectors[detector.platform] = detector
        logger.debug(f"Registered detector: {detector.platform_name}")

    def get_detector(self, platform: Union[str, Platform]) -> Detector:
        """
        Get the detector for a platform.

        Raises:
            UnknownPlatformError: the name is not a platform, or no detector
                is registered for it.
        """
        resolved = Platform.parse(platform)
        detector = self._detectors.get(resolved)
        if detector is None:
            raise UnknownPlatformError(platform)
        return detector

    def detectors(self) -> List[Detector]:
        """Registered detectors in invocation order."""
        return [self._detectors[p] for p in PLATFORM_ORDER if p in self._detectors]

    @property
    def platforms(self) -> List[Platform]:
        return [p for p in PLATFORM_ORDER if p in self._detectors]

    def missing_platforms(self) -> List[Platform]:
        """Platforms without a registered detector."""
        return [p for p in PLATFORM_ORDER if p not in self._detectors]

    def __len__(self):
        return len(self._detectors)
