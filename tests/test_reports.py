"""Tests for the analysis client, save-report workflow and reports viewer."""

import re

import httpx
import pytest

from camcogni_sim.config import APIConfig
from camcogni_sim.errors import ReportsFetchError, SaveTriggerError
from camcogni_sim.navigation import Navigator, View
from camcogni_sim.randomness import SeededRandomSource
from camcogni_sim.reports import (
    AnalysisClient,
    ReportResult,
    ReportState,
    ReportsViewer,
    ReportWorkflow,
    render_reports_document,
)

BASE_URL = "http://analysis.test:8000"


class RecordingHandler:
    """MockTransport handler that counts requests and replies with a fixed response."""

    def __init__(self, status_code=200, json=None, content=None, error=None):
        self.status_code = status_code
        self.json = json
        self.content = content
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(f"{self.error.__name__} for testing", request=request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.json if self.json is not None else {})


def make_client(handler) -> AnalysisClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AnalysisClient(APIConfig(base_url=BASE_URL), client=http)


class TestAnalysisClient:
    """Tests for AnalysisClient."""

    @pytest.mark.asyncio
    async def test_trigger_posts_without_body(self):
        handler = RecordingHandler(status_code=202)
        client = make_client(handler)

        status = await client.trigger_analysis()

        assert status == 202
        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/run-analysis"
        assert request.headers["Content-Type"] == "application/json"
        assert request.content == b""

    @pytest.mark.asyncio
    async def test_trigger_non_2xx_raises(self):
        client = make_client(RecordingHandler(status_code=503))

        with pytest.raises(SaveTriggerError) as exc_info:
            await client.trigger_analysis()

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_trigger_redirect_is_failure(self):
        client = make_client(RecordingHandler(status_code=302))

        with pytest.raises(SaveTriggerError):
            await client.trigger_analysis()

    @pytest.mark.asyncio
    async def test_trigger_network_error_raises(self):
        client = make_client(RecordingHandler(error=httpx.ConnectError))

        with pytest.raises(SaveTriggerError) as exc_info:
            await client.trigger_analysis()

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_fetch_reports_returns_json(self):
        handler = RecordingHandler(json={"reports": [{"id": 1}]})
        client = make_client(handler)

        data = await client.fetch_reports()

        assert data == {"reports": [{"id": 1}]}
        assert handler.requests[0].method == "GET"
        assert str(handler.requests[0].url) == f"{BASE_URL}/reports"
        assert "Authorization" not in handler.requests[0].headers

    @pytest.mark.asyncio
    async def test_fetch_reports_invalid_json_raises(self):
        client = make_client(RecordingHandler(content=b"<html>not json</html>"))

        with pytest.raises(ReportsFetchError):
            await client.fetch_reports()

    @pytest.mark.asyncio
    async def test_fetch_reports_error_status_raises(self):
        client = make_client(RecordingHandler(status_code=500))

        with pytest.raises(ReportsFetchError):
            await client.fetch_reports()


class TestReportWorkflow:
    """Tests for the Idle -> Saving -> Saved workflow."""

    @pytest.fixture
    def navigator(self):
        return Navigator(initial=View.BLUEPRINT)

    def make_workflow(self, handler, clock, navigator=None, source=None):
        return ReportWorkflow(
            make_client(handler),
            navigator=navigator,
            settle_delay_ms=5000,
            sleep=clock.sleep,
            source=source,
        )

    def test_initial_state_is_idle(self, clock):
        workflow = self.make_workflow(RecordingHandler(), clock)

        assert workflow.state == ReportState.IDLE
        assert workflow.saving is False

    @pytest.mark.asyncio
    async def test_success_saved_after_settle_delay(self, clock):
        handler = RecordingHandler(status_code=200)
        workflow = self.make_workflow(handler, clock)

        task = workflow.start()
        assert workflow.state == ReportState.SAVING

        await clock.wait_for_sleepers(1)
        assert len(handler.requests) == 1

        await clock.advance(4.0)
        assert workflow.state == ReportState.SAVING

        await clock.advance(1.0)
        result = await task

        assert workflow.state == ReportState.SAVED
        assert result.ok is True
        assert result.status_code == 200
        assert clock.now == 5.0

    @pytest.mark.asyncio
    async def test_failure_returns_to_idle(self, clock):
        handler = RecordingHandler(status_code=500)
        workflow = self.make_workflow(handler, clock)

        task = workflow.start()
        await clock.wait_for_sleepers(1)
        # The delay runs even though the trigger already failed
        assert workflow.state == ReportState.SAVING

        await clock.advance(5.0)
        result = await task

        assert workflow.state == ReportState.IDLE
        assert result.ok is False
        assert isinstance(result.error, SaveTriggerError)
        assert result.error.status_code == 500
        assert workflow.last_result is result

    @pytest.mark.asyncio
    async def test_network_error_returns_to_idle(self, clock):
        workflow = self.make_workflow(RecordingHandler(error=httpx.ConnectError), clock)

        task = workflow.start()
        await clock.wait_for_sleepers(1)
        await clock.advance(5.0)
        result = await task

        assert workflow.state == ReportState.IDLE
        assert result.status_code is None

    @pytest.mark.asyncio
    async def test_trigger_while_saving_is_noop(self, clock):
        handler = RecordingHandler(status_code=200)
        workflow = self.make_workflow(handler, clock)

        first = workflow.start()
        second = workflow.start()
        direct = await workflow.save()

        assert second is first
        assert direct.skipped is True
        assert direct.state == ReportState.SAVING

        await clock.wait_for_sleepers(1)
        await clock.advance(5.0)
        await first

        assert len(handler.requests) == 1
        assert clock.pending == 0

    @pytest.mark.asyncio
    async def test_retry_allowed_after_failure(self, clock):
        handler = RecordingHandler(status_code=500)
        workflow = self.make_workflow(handler, clock)

        task = workflow.start()
        await clock.wait_for_sleepers(1)
        await clock.advance(5.0)
        await task

        handler.status_code = 200
        task = workflow.start()
        await clock.wait_for_sleepers(1)
        await clock.advance(5.0)
        result = await task

        assert result.ok is True
        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_saved_is_terminal(self, clock):
        handler = RecordingHandler(status_code=200)
        workflow = self.make_workflow(handler, clock)

        task = workflow.start()
        await clock.wait_for_sleepers(1)
        await clock.advance(5.0)
        await task

        again = await workflow.start()

        assert again.skipped is True
        assert workflow.state == ReportState.SAVED
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_each_attempt_gets_a_job_id(self, clock):
        handler = RecordingHandler(status_code=500)
        workflow = self.make_workflow(handler, clock, source=SeededRandomSource(11))
        assert workflow.job_id is None

        task = workflow.start()
        first_id = workflow.job_id
        await clock.wait_for_sleepers(1)
        await clock.advance(5.0)
        failed = await task

        handler.status_code = 200
        task = workflow.start()
        await clock.wait_for_sleepers(1)
        await clock.advance(5.0)
        saved = await task

        assert re.fullmatch(r"JOB-\d{8}", first_id)
        assert failed.job_id == first_id
        assert saved.job_id == workflow.job_id
        assert saved.job_id != first_id

    @pytest.mark.asyncio
    async def test_job_id_reproducible_from_seed(self, clock):
        ids = []
        for _ in range(2):
            workflow = self.make_workflow(
                RecordingHandler(), clock, source=SeededRandomSource(11)
            )
            task = workflow.start()
            await clock.wait_for_sleepers(1)
            await clock.advance(5.0)
            ids.append((await task).job_id)

        assert ids[0] == ids[1]

    @pytest.mark.asyncio
    async def test_skipped_trigger_has_no_job_id(self, clock):
        workflow = self.make_workflow(RecordingHandler(), clock)

        task = workflow.start()
        skipped = await workflow.save()
        await clock.wait_for_sleepers(1)
        await clock.advance(5.0)
        await task

        assert skipped.skipped is True
        assert skipped.job_id is None

    @pytest.mark.asyncio
    async def test_view_historic_summary_only_when_saved(self, clock, navigator):
        workflow = self.make_workflow(RecordingHandler(), clock, navigator=navigator)

        assert workflow.view_historic_summary() is False
        assert navigator.current == View.BLUEPRINT

        task = workflow.start()
        await clock.wait_for_sleepers(1)
        await clock.advance(5.0)
        await task

        assert workflow.view_historic_summary() is True
        assert navigator.current == View.HISTORIC_SUMMARY


class TestReportResult:
    """Tests for ReportResult."""

    def test_skipped_is_not_ok(self):
        assert ReportResult(state=ReportState.SAVED, skipped=True).ok is False

    def test_saved_without_error_is_ok(self):
        assert ReportResult(state=ReportState.SAVED, status_code=200).ok is True


class TestReportsViewer:
    """Tests for the AI reports viewer."""

    @pytest.mark.asyncio
    async def test_show_opens_document(self):
        opened = []
        alerts = []
        viewer = ReportsViewer(
            make_client(RecordingHandler(json={"summary": "a < b"})),
            open_document=opened.append,
            alert=alerts.append,
        )

        document = await viewer.show()

        assert opened == [document]
        assert alerts == []
        assert "<title>AI Generated Reports</title>" in document
        assert "a &lt; b" in document

    @pytest.mark.asyncio
    async def test_show_alerts_on_failure(self):
        opened = []
        alerts = []
        viewer = ReportsViewer(
            make_client(RecordingHandler(error=httpx.ConnectError)),
            open_document=opened.append,
            alert=alerts.append,
        )

        document = await viewer.show()

        assert document is None
        assert opened == []
        assert alerts == ["Error fetching AI reports. Please try again."]


def test_render_reports_document_pretty_prints():
    document = render_reports_document({"a": [1, 2]})

    assert '"a": [\n' in document
