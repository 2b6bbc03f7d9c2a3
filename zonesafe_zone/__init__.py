"""
Zonesafe Zone
=============

Bounded Context: Restricted zone intrusion decision for a single camera.

Design Philosophy:
- Separation of Concerns: Geometry and Rendering separated
- Pure decision logic, easy to test in isolation
- One rectangular zone, binary verdict (safe / alert)

Architecture:

    zonesafe_zone/
    ├── geometry/          # Pure geometry (immutable, stateless)
    │   ├── shapes.py      # Zone, DetectionBox
    │   └── monitor.py     # SafetyStatus, ZoneMonitor
    │
    └── rendering/         # Visualization (stateless drawing)
        └── visualizer.py  # StatusOverlay

Usage:

    from zonesafe_zone import Zone, DetectionBox, ZoneMonitor

    zone = Zone(x=100, y=100, width=50, height=50)
    person = DetectionBox(left=100, top=100, width=50, height=50, confidence=0.9)

    status = ZoneMonitor.evaluate([person], zone, 640, 480)
    # SafetyStatus(safe=False, alert=True)

    from zonesafe_zone import StatusOverlay

    frame = StatusOverlay().draw(frame, zone, status, "Person inference time: 12.00 ms")
"""

# Geometry Layer (immutable, stateless)
from zonesafe_zone.geometry.shapes import Zone, DetectionBox
from zonesafe_zone.geometry.monitor import SafetyStatus, ZoneMonitor

# Rendering Layer (stateless)
from zonesafe_zone.rendering.visualizer import StatusOverlay

__all__ = [
    # Geometry
    "Zone",
    "DetectionBox",
    "SafetyStatus",
    "ZoneMonitor",
    # Rendering
    "StatusOverlay",
]

__version__ = "1.0.0"
