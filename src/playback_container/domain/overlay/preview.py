"""
Trickplay preview fetching while scrubbing.

Cancel-and-supersede: each request cancels the in-flight fetch and tags the
new one with a fresh token. A result is applied only if its task was not
cancelled and its token is still the latest, so at most one fetch's image is
ever shown.
"""

import asyncio
import itertools
from typing import Any, Callable, Optional

from loguru import logger

from .collaborators import PreviewImageProvider


class PreviewImageLoader:
    """Holds the latest preview image for the scrubbed position."""

    def __init__(self, on_change: Optional[Callable[[Any], None]] = None) -> None:
        self._on_change = on_change
        self._tokens = itertools.count(1)
        self._current_token = 0
        self._task: Optional[asyncio.Task] = None
        self.image: Any = None

    @property
    def current_token(self) -> int:
        return self._current_token

    @property
    def is_fetching(self) -> bool:
        return self._task is not None and not self._task.done()

    def request(
        self, provider: Optional[PreviewImageProvider], position: float
    ) -> Optional[asyncio.Task]:
        """Start fetching the preview for ``position``, superseding any earlier fetch."""
        self._cancel_task()
        token = next(self._tokens)
        self._current_token = token

        if provider is None:
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, skipping preview fetch")
            return None

        self._task = loop.create_task(self._fetch(provider, position, token))
        return self._task

    def clear(self, notify: bool = True) -> None:
        """Cancel any fetch and drop the current image.

        With ``notify=False`` the change callback is skipped; the caller
        publishes the new state itself.
        """
        self._cancel_task()
        self._current_token = next(self._tokens)
        self._set_image(None, notify=notify)

    async def _fetch(
        self, provider: PreviewImageProvider, position: float, token: int
    ) -> None:
        try:
            image = await provider.image_for(position)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Preview image fetch failed at {position:.1f}s")
            return

        if token != self._current_token:
            logger.debug(f"Discarding stale preview for {position:.1f}s (token {token})")
            return
        self._set_image(image)

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _set_image(self, image: Any, notify: bool = True) -> None:
        if image is self.image:
            return
        self.image = image
        if notify and self._on_change is not None:
            self._on_change(image)
