import logging
from typing import Optional

import httpx

from .config import settings
from .errors import ResultDispatchFailure
from .models import SessionSummary, SubmitStatus

logger = logging.getLogger(__name__)


class ResultReporter:
    """One-shot, fire-and-forget POST of a finished game to the results sheet.

    The sheet endpoint does not send a readable response, so a request that
    leaves without a transport error counts as delivered. No retries.
    """

    def __init__(
        self,
        url: str = settings.RESULT_SINK_URL,
        timeout: float = settings.RESULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.status = SubmitStatus.IDLE
        self._round = 0
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def reset(self):
        # Submissions still in flight from an earlier game stop updating status
        self._round += 1
        self.status = SubmitStatus.IDLE

    @property
    def current_round(self) -> int:
        return self._round

    async def submit(
        self, summary: SessionSummary, submit_round: Optional[int] = None
    ) -> SubmitStatus:
        """Sends the summary. Status is only updated while ``submit_round`` is current."""
        if submit_round is None:
            submit_round = self._round
        if not self.url:
            logger.info("No result sink configured, skipping submission")
            return self.status

        if submit_round == self._round:
            self.status = SubmitStatus.PENDING
        try:
            await self._dispatch(summary)
        except ResultDispatchFailure as e:
            logger.error(f"Submission error: {e}")
            outcome = SubmitStatus.FAILED
        else:
            logger.info(
                f"Submitted result for {summary.student_name!r} "
                f"[Score: {summary.score}, Time: {summary.elapsed_seconds}s]"
            )
            outcome = SubmitStatus.DELIVERED

        if submit_round == self._round:
            self.status = outcome
        return outcome

    async def _dispatch(self, summary: SessionSummary):
        # text/plain keeps the sheet endpoint from needing a CORS preflight
        try:
            await self._get_client().post(
                self.url,
                content=summary.model_dump_json(by_alias=True),
                headers={"Content-Type": "text/plain"},
            )
        except httpx.HTTPError as e:
            raise ResultDispatchFailure(str(e) or type(e).__name__) from e
