"""
Rendering Layer
===============

Bounded Context: Zone and status visualization.

Responsibilities:
- Draw the monitored zone on frames
- Render performance and safety status lines
- Pure rendering - no logic, no state

Non-responsibilities:
- Intrusion decision (handled by geometry)
- Detection (handled by the processor's detector)

Design:
- Stateless drawing functions
- Uses supervision draw utilities
- Configurable styles
"""

from zonesafe_zone.rendering.visualizer import StatusOverlay, ALERT_TEXT

__all__ = [
    "StatusOverlay",
    "ALERT_TEXT",
]
