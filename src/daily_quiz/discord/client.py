"""Discord delivery: webhook posts and bot-token reaction reads.

Posting only needs the webhook URL. Reading reactions and adding the seed
reactions need a bot token; without one those calls raise
:class:`ReactionFetchUnavailable` and callers fall back to empty stats.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote

import requests

from ..quiz.models import REACTION_EMOJIS

__all__ = [
    "API_BASE",
    "DiscordPublisher",
    "PostResult",
    "PublisherError",
    "ReactionFetchUnavailable",
]

API_BASE = "https://discord.com/api/v10"


class PublisherError(RuntimeError):
    """Raised when Discord rejects a request or cannot be reached."""


class ReactionFetchUnavailable(RuntimeError):
    """Raised when a bot-token call is attempted without a bot token."""


@dataclass(frozen=True)
class PostResult:
    message_id: str
    channel_id: str


class DiscordPublisher:
    def __init__(
        self,
        webhook_url: Optional[str] = None,
        bot_token: Optional[str] = None,
        *,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        api_base: str = API_BASE,
    ) -> None:
        self.webhook_url = webhook_url
        self.bot_token = bot_token
        self.timeout = timeout
        self.api_base = api_base.rstrip("/")
        self._session = session or requests.Session()

    @property
    def can_post(self) -> bool:
        return bool(self.webhook_url)

    @property
    def can_read_reactions(self) -> bool:
        return bool(self.bot_token)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "DiscordPublisher":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def post_embed(self, embed: Mapping[str, Any]) -> PostResult:
        """Post one embed through the webhook and return the created message."""

        if not self.webhook_url:
            raise PublisherError(
                "A Discord webhook URL is required to post messages."
            )
        response = self._request(
            "POST",
            self.webhook_url,
            params={"wait": "true"},
            json={"embeds": [dict(embed)]},
        )
        body = self._json(response)
        message_id = str(body.get("id") or "")
        channel_id = str(body.get("channel_id") or "")
        if not message_id or not channel_id:
            raise PublisherError(
                "Discord webhook response did not include message/channel ids."
            )
        return PostResult(message_id=message_id, channel_id=channel_id)

    def seed_reactions(
        self,
        channel_id: str,
        message_id: str,
        emojis: Sequence[str] = REACTION_EMOJIS,
    ) -> None:
        """Add each option emoji as the bot's own reaction, in order."""

        self._require_token()
        for emoji in emojis:
            url = (
                f"{self.api_base}/channels/{channel_id}/messages/"
                f"{message_id}/reactions/{quote(emoji)}/@me"
            )
            self._request("PUT", url, headers=self._auth_headers())

    def fetch_reaction_counts(
        self, channel_id: str, message_id: str
    ) -> List[Tuple[str, int]]:
        """Return ``(emoji name, count)`` pairs for every reaction on a message."""

        self._require_token()
        url = f"{self.api_base}/channels/{channel_id}/messages/{message_id}"
        message = self._json(
            self._request("GET", url, headers=self._auth_headers())
        )
        pairs: List[Tuple[str, int]] = []
        for reaction in message.get("reactions") or []:
            emoji = reaction.get("emoji") or {}
            name = emoji.get("name")
            if not name:
                continue
            pairs.append((str(name), int(reaction.get("count") or 0)))
        return pairs

    def _require_token(self) -> None:
        if not self.bot_token:
            raise ReactionFetchUnavailable(
                "No Discord bot token configured; reactions are unavailable."
            )

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bot {self.bot_token}"}

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            response = self._session.request(
                method, url, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise PublisherError(f"Discord request failed: {exc}") from exc
        if not response.ok:
            raise PublisherError(
                f"Discord API error: {response.status_code} - {response.text}"
            )
        return response

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise PublisherError("Discord returned a non-JSON response.") from exc
        if not isinstance(body, dict):
            raise PublisherError("Discord returned an unexpected JSON payload.")
        return body
