"""
Per-form verification session.

At most one verification is in flight per form. Uploading a new image
cancels the previous attempt, and a superseded attempt can never publish
its outcome over the newer one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from PIL import Image

from .models import VerificationOutcome
from .pipeline import DocumentVerificationPipeline

logger = logging.getLogger(__name__)


class VerificationSession:
    """Holds the claimed Ada number and the newest attempt's outcome."""

    def __init__(self, pipeline: DocumentVerificationPipeline, claimed_identifier: str):
        self.pipeline = pipeline
        self.claimed_identifier = claimed_identifier
        self.latest: Optional[VerificationOutcome] = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    async def submit(self, image: Image.Image | bytes) -> Optional[VerificationOutcome]:
        """Verify ``image``, superseding any attempt still running.

        Returns:
            The outcome, or None if a newer upload superseded this one.
        """
        self._generation += 1
        generation = self._generation

        if self._task is not None and not self._task.done():
            logger.info("New upload supersedes verification #%d", generation - 1)
            self._task.cancel()

        task = asyncio.create_task(
            self.pipeline.verify(image, self.claimed_identifier)
        )
        self._task = task

        try:
            outcome = await task
        except asyncio.CancelledError:
            if task.cancelled() and generation != self._generation:
                return None
            raise

        if generation != self._generation:
            return None

        self.latest = outcome
        return outcome

    def reset(self) -> None:
        """Forget the current outcome and cancel any attempt in flight."""
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.latest = None
