"""
Outbound nudge delivery.

Implements the NudgeDelivery protocol from core.canvas.ports.
"""

from .client import NudgeWebhookClient

__all__ = ["NudgeWebhookClient"]
