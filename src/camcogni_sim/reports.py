"""Save-report workflow and AI reports viewer.

Both talk to the remote analysis service over HTTP:

- ``POST {base}/run-analysis`` starts an analysis job (the "save report" action)
- ``GET {base}/reports`` returns the generated reports as arbitrary JSON

The service is called without an authentication header.
"""

import asyncio
import html
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import httpx

from .config import APIConfig
from .errors import ReportsFetchError, SaveTriggerError
from .navigation import Navigator, View
from .randomness import RandomSource, SeededRandomSource

logger = logging.getLogger(__name__)


class AnalysisClient:
    """Async client for the analysis service."""

    def __init__(self, api_config: APIConfig, client: Optional[httpx.AsyncClient] = None):
        self.api_config = api_config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=api_config.timeout_s)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AnalysisClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _url(self, path: str) -> str:
        return f"{self.api_config.base_url.rstrip('/')}{path}"

    async def trigger_analysis(self) -> int:
        """POST the run-analysis trigger and return the HTTP status.

        Raises:
            SaveTriggerError: transport failure or any non-2xx status.
        """
        url = self._url(self.api_config.run_analysis_path)
        try:
            response = await self._client.post(
                url, headers={"Content-Type": "application/json"}
            )
        except httpx.HTTPError as e:
            raise SaveTriggerError(f"POST {url} failed: {e}") from e

        if not response.is_success:
            raise SaveTriggerError(
                f"POST {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.status_code

    async def fetch_reports(self) -> Any:
        """GET the AI reports document.

        Raises:
            ReportsFetchError: transport failure, error status or invalid JSON.
        """
        url = self._url(self.api_config.reports_path)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ReportsFetchError(f"GET {url} failed: {e}") from e


# =============================================================================
# Save-report workflow
# =============================================================================


class ReportState(Enum):
    """Report job lifecycle.

    Idle -> Saving, then Saved on success or back to Idle on failure.
    Saved is terminal.
    """

    IDLE = "IDLE"
    SAVING = "SAVING"
    SAVED = "SAVED"


@dataclass
class ReportResult:
    """Outcome of one save attempt."""

    state: ReportState
    job_id: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[SaveTriggerError] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.state == ReportState.SAVED and self.error is None and not self.skipped


class ReportWorkflow:
    """Idle -> Saving -> Saved, guarded against concurrent saves.

    On entering Saving the analysis trigger is posted once; the settle delay
    then always runs to completion. A successful trigger ends in Saved, a
    failed one returns to Idle. From Saved the only action is navigating to
    the historic summary.
    """

    def __init__(
        self,
        client: AnalysisClient,
        navigator: Optional[Navigator] = None,
        settle_delay_ms: int = 5000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        source: Optional[RandomSource] = None,
    ):
        self._client = client
        self._navigator = navigator
        self.settle_delay_ms = settle_delay_ms
        self._sleep = sleep
        self._faker = (source or SeededRandomSource()).faker()

        self._state = ReportState.IDLE
        self.job_id: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        self.last_result: Optional[ReportResult] = None

    @property
    def state(self) -> ReportState:
        return self._state

    @property
    def saving(self) -> bool:
        return self._state == ReportState.SAVING

    def _begin(self) -> bool:
        """Enter Saving if Idle. Runs synchronously so a second trigger sees Saving."""
        if self._state != ReportState.IDLE:
            logger.debug(f"Save ignored in state {self._state.name}")
            return False
        self._state = ReportState.SAVING
        self.job_id = self._faker.bothify("JOB-########").upper()
        logger.info(f"Saving report {self.job_id}: triggering analysis")
        return True

    def _skipped(self) -> ReportResult:
        return ReportResult(state=self._state, skipped=True)

    async def _run(self) -> ReportResult:
        status_code = None
        error = None
        try:
            try:
                status_code = await self._client.trigger_analysis()
            except SaveTriggerError as e:
                # Not shown to the user; surfaced to callers through the result
                logger.warning(f"Report {self.job_id} save failed: {e}")
                error = e

            await self._sleep(self.settle_delay_ms / 1000)

            if error is None:
                self._state = ReportState.SAVED
                logger.info(f"Report {self.job_id} saved")
            else:
                self._state = ReportState.IDLE
        finally:
            if self._state == ReportState.SAVING:
                self._state = ReportState.IDLE

        self.last_result = ReportResult(
            state=self._state, job_id=self.job_id, status_code=status_code, error=error
        )
        return self.last_result

    async def save(self) -> ReportResult:
        """Run a save to completion. A no-op (skipped result) unless Idle."""
        if not self._begin():
            return self._skipped()
        return await self._run()

    def start(self) -> "asyncio.Future[ReportResult]":
        """Schedule a save on the running loop and return its result future.

        While a save is in flight the same task is returned.
        """
        loop = asyncio.get_running_loop()
        if not self._begin():
            if self._task is not None and not self._task.done():
                return self._task
            future = loop.create_future()
            future.set_result(self._skipped())
            return future

        self._task = loop.create_task(self._run())
        return self._task

    def view_historic_summary(self) -> bool:
        """Leave for the historic summary. Only available once Saved."""
        if self._state != ReportState.SAVED:
            logger.debug(f"Historic summary not available in state {self._state.name}")
            return False
        if self._navigator is not None:
            self._navigator.navigate(View.HISTORIC_SUMMARY)
        return True


# =============================================================================
# AI reports viewer
# =============================================================================


REPORTS_DOCUMENT_TEMPLATE = """<html>
  <head>
    <title>AI Generated Reports</title>
    <style>
      body {{
        font-family: Arial, sans-serif;
        padding: 20px;
        background-color: #f5f5f5;
      }}
      pre {{
        background-color: white;
        padding: 20px;
        border-radius: 8px;
        box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        overflow-x: auto;
      }}
    </style>
  </head>
  <body>
    <h1>AI Generated Reports</h1>
    <pre>{body}</pre>
  </body>
</html>
"""


def render_reports_document(data: Any) -> str:
    """Render the raw reports JSON as a standalone HTML page."""
    body = html.escape(json.dumps(data, indent=2), quote=False)
    return REPORTS_DOCUMENT_TEMPLATE.format(body=body)


class ReportsViewer:
    """Fetches the AI reports and opens them as a document.

    This is the one failure in the system the user sees: a failed fetch
    raises a blocking alert.
    """

    FETCH_ERROR_MESSAGE = "Error fetching AI reports. Please try again."

    def __init__(
        self,
        client: AnalysisClient,
        open_document: Callable[[str], None],
        alert: Callable[[str], None],
    ):
        self._client = client
        self._open_document = open_document
        self._alert = alert

    async def show(self) -> Optional[str]:
        """Fetch and open the reports document; returns it, or None on failure."""
        try:
            data = await self._client.fetch_reports()
        except ReportsFetchError as e:
            logger.error(f"Error fetching reports: {e}")
            self._alert(self.FETCH_ERROR_MESSAGE)
            return None

        document = render_reports_document(data)
        self._open_document(document)
        return document
