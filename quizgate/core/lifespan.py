import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from quizgate.api.client import LearningApiClient, TokenProvider
from quizgate.config import Settings, get_settings
from quizgate.core.logging import initialize_logging
from quizgate.services.lesson_view import LessonView
from quizgate.services.permutation import PermutationGenerator


@asynccontextmanager
async def lesson_view_session(
  settings: Settings | None = None, *, token_provider: TokenProvider | None = None, transport: httpx.AsyncBaseTransport | None = None
) -> AsyncIterator[LessonView]:
  """Set up logging and the API client, yield a lesson view, and close the client on exit."""
  settings = settings or get_settings()
  logger = logging.getLogger("quizgate.core.lifespan")

  # Initialize logging before the first request is issued.
  initialize_logging(settings)
  # A configured seed makes every shuffle reproducible across processes.
  generator = PermutationGenerator(settings.shuffle_seed)
  logger.info("Lesson view ready api=%s seeded=%s", settings.api_base_url, settings.shuffle_seed is not None)

  async with LearningApiClient.from_settings(settings, token_provider=token_provider, transport=transport) as client:
    yield LessonView(client, generator=generator)
