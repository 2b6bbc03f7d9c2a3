"""
Geometry Layer
==============

Bounded Context: Pure geometric shapes and the intrusion decision.

Responsibilities:
- Zone and detection box representation (immutable)
- Zone normalization against frame bounds
- Containment tests and the safe/alert verdict
- NO state, NO visualization

Design Philosophy:
- Pure functions where possible
- Immutable data structures
- Fail-fast validation
- Zero side effects
"""

from zonesafe_zone.geometry.shapes import Zone, DetectionBox
from zonesafe_zone.geometry.monitor import SafetyStatus, ZoneMonitor

__all__ = [
    "Zone",
    "DetectionBox",
    "SafetyStatus",
    "ZoneMonitor",
]
