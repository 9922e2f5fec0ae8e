"""
GroupMe bot client for posting messages back to the group chat.
"""

import logging
from typing import Optional

import requests

from .base import MessageClient, UpstreamError


BASE_URL = "https://api.groupme.com/v3"

logger = logging.getLogger(__name__)


class GroupMeClient(MessageClient):
    """Posts messages as a GroupMe bot."""

    def __init__(self, bot_token: str, base_url: str = BASE_URL, timeout: float = 10.0):
        self.bot_token = bot_token
        self.base_url = base_url
        self.timeout = timeout

    def send_message(self, text: str, image_url: Optional[str] = None) -> None:
        payload = {
            "bot_id": self.bot_token,
            "text": text,
        }
        if image_url:
            payload["attachments"] = [{"type": "image", "url": image_url}]

        try:
            response = requests.post(
                f"{self.base_url}/bots/post",
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamError(f"Send message failed: {e}", cause=e, platform="groupme") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamError(
                f"Send message failed: {response.status_code} {response.text}",
                status=response.status_code,
                platform="groupme",
            )
        logger.debug("Sent message (%d chars)", len(text))
