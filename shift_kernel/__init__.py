"""
Shift Kernel - Shift Lifecycle & Attendance Engine

A multi-tenant workforce scheduling and time-tracking core with:
- Conflict-checked shift scheduling and template expansion
- Working-hour limit enforcement (daily / weekly / monthly caps)
- Atomic check-in / break / check-out state machine
- Tolerance-based anomaly and overtime detection
- Auto-validation, batch approval and self-correction windows
- Shift-swap negotiation
"""

__version__ = "0.1.0"
