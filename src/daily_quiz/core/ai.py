"""OpenAI client construction for the question generator."""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from openai import OpenAI

__all__ = ["API_KEY_ENV", "load_client"]

API_KEY_ENV = "OPENAI_API_KEY"


def load_client(
    *,
    env: Optional[Mapping[str, str]] = None,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Any:
    """Build an OpenAI client from ``OPENAI_API_KEY``.

    ``.env`` in the working directory is loaded first so local runs behave
    like the scheduled job. Passing ``env`` skips dotenv and reads the key
    from that mapping instead.
    """

    if env is None:
        load_dotenv()
        env = os.environ
    api_key = (env.get(API_KEY_ENV) or "").strip()
    if not api_key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    kwargs: dict[str, Any] = {"api_key": api_key}
    if base_url:
        kwargs["base_url"] = base_url
    if timeout is not None:
        kwargs["timeout"] = timeout
    return OpenAI(**kwargs)
