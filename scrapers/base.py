"""Common shape of the external context channels.

Every channel answers (aliases, concept name) with a block of prompt context
plus the sources it drew on. A channel never raises: missing credentials, no
results and network failures all come back as an empty `ChannelResult`.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from schemas.chunk import SourceRef
from scrapers.utils import DEFAULT_HEADERS

logger = logging.getLogger(__name__)


@dataclass
class ChannelResult:
    context_text: str = ""
    sources: list[SourceRef] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.context_text


class ContextChannel:
    """Base class: owns the HTTP client lifetime and the error boundary."""

    name = "channel"

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self._client = client
        self.timeout = timeout

    async def fetch(self, aliases: list[str], concept_name: str) -> ChannelResult:
        try:
            if self._client is not None:
                result = await self._fetch(self._client, aliases, concept_name)
            else:
                async with httpx.AsyncClient(
                    headers=DEFAULT_HEADERS, timeout=self.timeout, follow_redirects=True
                ) as client:
                    result = await self._fetch(client, aliases, concept_name)
        except Exception as e:
            logger.warning("%s channel failed for '%s': %s", self.name, concept_name, e)
            return ChannelResult()

        logger.info(
            "%s channel: %d sources for '%s'", self.name, len(result.sources), concept_name
        )
        return result

    async def _fetch(
        self, client: httpx.AsyncClient, aliases: list[str], concept_name: str
    ) -> ChannelResult:
        raise NotImplementedError
