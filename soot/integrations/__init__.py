"""Outbound service clients.

Every client implements ``BaseIntegration`` and runs in log-only mock mode
when its API key starts with ``mock_``.
"""

from soot.integrations.base import BaseIntegration
from soot.integrations.image_client import ImageClient
from soot.integrations.sendgrid import EmailClient

__all__ = [
    "BaseIntegration",
    "EmailClient",
    "ImageClient",
]
