"""Illustration generation through an OpenAI-compatible images endpoint.

With a ``mock_`` key no request is made and a deterministic placeholder
path is returned instead.
"""

from __future__ import annotations

import base64
import uuid
from pathlib import Path

import httpx

from soot.common.exceptions import ExternalServiceError
from soot.config import settings
from soot.integrations.base import BaseIntegration


def _is_mock() -> bool:
    return settings.AI_API_KEY.startswith("mock_")


class ImageClient(BaseIntegration):
    """Generates one square illustration per call."""

    def __init__(self) -> None:
        super().__init__("images")
        self._base_url = settings.AI_BASE_URL.rstrip("/")
        self._model = settings.AI_IMAGE_MODEL
        self._media_root = Path(settings.MEDIA_ROOT)

    async def health_check(self) -> bool:
        if _is_mock():
            self.logger.info("Image client health check: OK (mock)")
            return True
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                resp = await client.get(
                    f"{self._base_url}/models",
                    headers={"Authorization": f"Bearer {settings.AI_API_KEY}"},
                )
                return resp.status_code == 200
        except httpx.HTTPError as e:
            self.logger.error("Image client health check failed: %s", e)
            return False

    async def generate(self, prompt: str, folder: str) -> str:
        """Return a URL for a freshly generated image of ``prompt``."""
        if _is_mock():
            self.logger.info("Mock image generation (%d chars): %.60s", len(prompt), prompt)
            return f"/media/{folder}/placeholder.png"

        try:
            async with httpx.AsyncClient(timeout=120) as client:
                resp = await client.post(
                    f"{self._base_url}/images/generations",
                    headers={
                        "Authorization": f"Bearer {settings.AI_API_KEY}",
                        "Content-Type": "application/json",
                    },
                    json={"model": self._model, "prompt": prompt, "size": "1024x1024", "n": 1},
                )
                resp.raise_for_status()
        except httpx.HTTPError as e:
            self.logger.error("Image generation failed: %s", e)
            raise ExternalServiceError("images", str(e)) from e

        data = resp.json()["data"][0]
        if data.get("url"):
            return data["url"]
        return self._store(base64.b64decode(data["b64_json"]), folder)

    def _store(self, content: bytes, folder: str) -> str:
        filename = f"{uuid.uuid4().hex}.png"
        target_dir = self._media_root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / filename).write_bytes(content)
        self.logger.info("Stored generated image %s/%s (%d bytes)", folder, filename, len(content))
        return f"/media/{folder}/{filename}"
