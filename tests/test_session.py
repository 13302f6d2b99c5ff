"""
Tests for session orchestration: refresh sequencing, saved hand-off, apply flow.
"""

import pytest

from jobboard import session as session_module
from jobboard.errors import HttpError, NetworkError, UnknownJob
from jobboard.session import JobBoardSession, LoadState, RefreshResponse
from jobboard.storage import PersistenceBridge


class ScriptedFetcher:
    """Returns (or raises) one prepared result per call."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        result = self.results[self.calls]
        self.calls += 1
        if isinstance(result, Exception):
            raise result
        return result


BATCH_A = [{"id": "a1", "title": "Old listing"}]
BATCH_B = [{"id": "b1", "title": "New listing", "company": "Acme"}, {"id": "b2", "title": "Other"}]


class TestRefresh:
    """Test refresh ordering and error recovery."""

    def test_refresh_loads_catalog(self, raw_batch):
        s = JobBoardSession(ScriptedFetcher(raw_batch))
        assert s.state == LoadState.IDLE
        assert s.refresh() is True
        assert s.state == LoadState.READY
        assert [j.title for j in s.catalog.visible_jobs()] == ["Dev", "Lead"]

    def test_stale_response_is_ignored(self):
        """The first-dispatched response arriving last must not win."""
        s = JobBoardSession(ScriptedFetcher(BATCH_A, BATCH_B))
        first = s.dispatch_refresh()
        second = s.dispatch_refresh()
        assert s.state == LoadState.LOADING

        slow = s.fetch_for(first)
        fast = s.fetch_for(second)

        assert s.deliver(fast) is True
        dropped = session_module.logger.metrics["stale_responses_dropped"]
        assert s.deliver(slow) is False
        assert session_module.logger.metrics["stale_responses_dropped"] == dropped + 1
        assert [j.id for j in s.catalog.all_jobs] == ["b1", "b2"]
        assert s.state == LoadState.READY

    def test_stale_error_does_not_clear_listing(self):
        s = JobBoardSession(ScriptedFetcher(NetworkError("down"), BATCH_B))
        first = s.dispatch_refresh()
        second = s.dispatch_refresh()
        slow = s.fetch_for(first)
        s.deliver(s.fetch_for(second))
        s.deliver(slow)
        assert len(s.catalog) == 2
        assert s.error is None

    @pytest.mark.parametrize("error", [NetworkError("down"), HttpError(500)])
    def test_fetch_error_shows_retry(self, error):
        s = JobBoardSession(ScriptedFetcher(BATCH_A, error, BATCH_B))
        s.refresh()
        s.refresh()
        assert s.state == LoadState.ERROR
        assert s.can_retry
        assert s.catalog.visible_jobs() == []
        assert s.error is error

        s.refresh()
        assert s.state == LoadState.READY
        assert not s.can_retry
        assert len(s.catalog) == 2

    def test_search_persists_across_refresh(self):
        s = JobBoardSession(ScriptedFetcher(BATCH_B, BATCH_B))
        s.refresh()
        assert [j.id for j in s.search("acme")] == ["b1"]
        s.refresh()
        assert [j.id for j in s.catalog.visible_jobs()] == ["b1"]

    def test_limit(self):
        s = JobBoardSession(ScriptedFetcher([{"id": str(i)} for i in range(10)]), limit=4)
        s.refresh()
        assert len(s.catalog) == 4

    def test_deliver_out_of_band_response(self):
        s = JobBoardSession(ScriptedFetcher())
        ticket = s.dispatch_refresh()
        assert s.deliver(RefreshResponse(ticket, jobs=())) is True
        assert s.state == LoadState.READY


class TestSavedFlow:
    """Test saving and the saved-view hand-off."""

    def test_toggle_saved(self):
        s = JobBoardSession(ScriptedFetcher(BATCH_B))
        s.refresh()
        assert s.toggle_saved("b1") is True
        assert s.saved.count == 1
        with pytest.raises(UnknownJob):
            s.toggle_saved("zzz")

    def test_saved_view_round_trip(self):
        s = JobBoardSession(ScriptedFetcher(BATCH_B))
        s.refresh()
        s.toggle_saved("b1")
        s.toggle_saved("b2")

        view = s.open_saved_view()
        view.remove("b1")
        assert s.saved.contains("b1")

        form = s.return_from_saved(view.close())
        assert form is None
        assert s.saved.ids() == ["b2"]

    def test_apply_from_saved_view(self):
        s = JobBoardSession(ScriptedFetcher(BATCH_B))
        s.refresh()
        s.toggle_saved("b1")
        view = s.open_saved_view()
        view.request_apply("b1")
        form = s.return_from_saved(view.close())
        assert form.job.id == "b1"

    def test_saved_state_restored_from_store(self, memory_store):
        first = JobBoardSession(ScriptedFetcher(BATCH_B), bridge=PersistenceBridge(memory_store))
        first.refresh()
        first.toggle_saved("b2")

        second = JobBoardSession(ScriptedFetcher(NetworkError("offline")), bridge=PersistenceBridge(memory_store))
        second.refresh()
        assert second.saved.contains("b2")
        assert [j.title for j in second.open_saved_view().visible_jobs()] == ["Other"]


class TestApplication:
    """Test opening the apply flow."""

    def test_open_application(self):
        s = JobBoardSession(ScriptedFetcher(BATCH_B))
        s.refresh()
        form = s.open_application("b1")
        assert form.job.company == "Acme"

    def test_saved_job_missing_from_listing(self):
        s = JobBoardSession(ScriptedFetcher(BATCH_B, BATCH_A))
        s.refresh()
        s.toggle_saved("b2")
        s.refresh()
        assert s.open_application("b2").job.title == "Other"

    def test_unknown_job(self):
        s = JobBoardSession(ScriptedFetcher(BATCH_B))
        s.refresh()
        with pytest.raises(UnknownJob):
            s.open_application("nope")
