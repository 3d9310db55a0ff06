from __future__ import annotations

import asyncio

import pytest

from db.graph_store import GraphStore
from models import ScrapeProgress
from pipelines.acquisition import AcquisitionController
from pipelines.errors import InvalidTransition, PersistenceFailure
from pipelines.progress import ProgressStore, transition
from pipelines.serializer import FifoSerializer
from sources.activities import ActivitiesSource
from sources.company_employees import CompanyEmployeesSource
from sources.connections import ConnectionsSource
from sources.html_snapshot import SnapshotPage


PROGRESS_KEY = "connections_scrape_progress"


def _cards(n: int) -> str:
    return "".join(
        f'<li class="mn-connection-card"><a href="/in/person-{i}/">'
        f'<span class="mn-connection-card__name">Person {i}</span></a></li>'
        for i in range(n)
    )


def _connections_page(*sizes: int, total: int | None = None) -> SnapshotPage:
    header = f'<div class="mn-connections__header"><h1>{total} Connections</h1></div>' if total else ""
    return SnapshotPage([f"{header}<ul>{_cards(n)}</ul>" for n in sizes])


async def _open(db_path: str):
    store = await GraphStore.open(db_path)
    controller = AcquisitionController(store, store.settings, FifoSerializer())
    return store, controller


def test_batches_of_fifty_and_rerun_is_idempotent(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            updates = []
            result = await controller.start(
                ConnectionsSource(), _connections_page(40, 90, 120, total=120), on_progress=updates.append
            )
            assert result.outcome == "complete"
            assert result.scraped == 120
            assert result.total_known == 120
            saved_marks = sorted({u.last_saved for u in updates if u.last_saved})
            assert saved_marks == [50, 100, 120]

            progress = await store.settings.get(PROGRESS_KEY)
            assert progress["status"] == "complete"
            assert progress["total_scraped"] == 120
            assert progress["last_scraped_id"] == "person-119"
            assert progress["total_known"] == 120

            again = await controller.start(ConnectionsSource(), _connections_page(120))
            assert again.outcome == "complete"
            assert again.scraped == 0
            assert await store.nodes.count() == 120
            for node in await store.all_nodes():
                assert node.degree in (1, 2, 3)
                assert 0 <= node.match_score <= 100
        finally:
            await store.close()

    asyncio.run(scenario())


def test_duplicate_cards_in_one_page_are_stored_once(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            page = SnapshotPage([f"<ul>{_cards(10)}{_cards(10)}</ul>"])
            result = await controller.start(ConnectionsSource(), page)
            assert result.scraped == 10
            assert await store.nodes.count() == 10
        finally:
            await store.close()

    asyncio.run(scenario())


def test_unusable_cards_are_skipped(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            broken = '<li class="mn-connection-card"><span>no link</span></li>'
            page = SnapshotPage([f"<ul>{_cards(3)}{broken}</ul>"])
            result = await controller.start(ConnectionsSource(), page)
            assert result.scraped == 3
            assert result.skipped == 1
        finally:
            await store.close()

    asyncio.run(scenario())


class _StopAfter(ConnectionsSource):
    """Requests a stop once a given card has been extracted."""

    def __init__(self, controller, stop_id: str):
        super().__init__()
        self.controller = controller
        self.stop_id = stop_id

    def extract(self, element):
        node = super().extract(element)
        if node is not None and node.id == self.stop_id:
            self.controller.stop()
        return node


def test_stop_flushes_partial_batch_then_resume_continues(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            result = await controller.start(_StopAfter(controller, "person-69"), _connections_page(120))
            assert result.outcome == "paused"
            assert await store.nodes.count() == 70
            progress = await store.settings.get(PROGRESS_KEY)
            assert progress["status"] == "paused"
            assert progress["total_scraped"] == 70
            assert progress["last_scraped_id"] == "person-69"

            before = await store.nodes.count()
            resumed = await controller.start(ConnectionsSource(), _connections_page(120), resume=True)
            assert resumed.outcome == "complete"
            # Already persisted cards are not emitted again
            assert resumed.scraped == 50
            assert await store.nodes.count() == before + 50
            progress = await store.settings.get(PROGRESS_KEY)
            assert progress["status"] == "complete"
            assert progress["total_scraped"] == 120
        finally:
            await store.close()

    asyncio.run(scenario())


def test_fresh_start_discards_prior_progress(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            await controller.start(_StopAfter(controller, "person-9"), _connections_page(30))
            result = await controller.start(ConnectionsSource(), _connections_page(30), resume=False)
            assert result.scraped == 20
            progress = await store.settings.get(PROGRESS_KEY)
            assert progress["total_scraped"] == 20
        finally:
            await store.close()

    asyncio.run(scenario())


def test_pause_blocks_without_exiting_until_resumed(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            state = {"paused_once": False}

            def on_progress(update):
                if update.last_saved == 50 and not state["paused_once"]:
                    state["paused_once"] = True
                    controller.pause()

            task = asyncio.create_task(
                controller.start(ConnectionsSource(), _connections_page(120), on_progress=on_progress)
            )
            while not controller.control.paused:
                await asyncio.sleep(0.01)
            # Give the run several poll cycles while paused
            await asyncio.sleep(0.1)
            assert not task.done()
            assert await store.nodes.count() == 50
            assert (await store.settings.get(PROGRESS_KEY))["status"] == "running"

            controller.resume()
            result = await asyncio.wait_for(task, timeout=10)
            assert result.outcome == "complete"
            assert result.scraped == 120
            assert await store.nodes.count() == 120
        finally:
            await store.close()

    asyncio.run(scenario())


class _FailingPersist(ConnectionsSource):
    """Fails the n-th persist call (1-based); 0 means every call fails."""

    def __init__(self, fail_on: int = 0):
        super().__init__()
        self.fail_on = fail_on
        self.calls = 0

    async def persist(self, store, batch):
        self.calls += 1
        if self.fail_on == 0 or self.calls == self.fail_on:
            raise PersistenceFailure("disk full")
        return await super().persist(store, batch)


def test_persistence_failure_marks_error_and_raises(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            with pytest.raises(PersistenceFailure):
                await controller.start(_FailingPersist(fail_on=2), _connections_page(120))
            progress = await store.settings.get(PROGRESS_KEY)
            assert progress["status"] == "error"
            assert "disk full" in progress["error"]
            assert progress["total_scraped"] == 50
            assert await store.nodes.count() == 50

            resumed = await controller.start(ConnectionsSource(), _connections_page(120), resume=True)
            assert resumed.scraped == 70
            assert (await store.settings.get(PROGRESS_KEY))["total_scraped"] == 120
        finally:
            await store.close()

    asyncio.run(scenario())


def test_retry_recovers_from_transient_error(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            source = _FailingPersist(fail_on=1)
            result = await controller.run_with_retry(source, _connections_page(30), max_retries=3)
            assert result.attempts == 2
            assert result.outcome == "complete"
            assert await store.nodes.count() == 30
        finally:
            await store.close()

    asyncio.run(scenario())


def test_retry_budget_exhausted_raises(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            source = _FailingPersist(fail_on=0)
            with pytest.raises(PersistenceFailure):
                await controller.run_with_retry(source, _connections_page(10), max_retries=3)
            assert source.calls == 3
        finally:
            await store.close()

    asyncio.run(scenario())


def test_empty_page_retried_when_policy_on(db_path, monkeypatch):
    monkeypatch.setenv("RETRY_ON_EMPTY", "true")
    from config.settings import get_settings
    get_settings.cache_clear()

    async def scenario():
        store, controller = await _open(db_path)
        try:
            page = SnapshotPage(["<div>nothing here</div>"])
            result = await controller.run_with_retry(ConnectionsSource(), page, max_retries=3)
            assert result.outcome == "empty"
            assert result.attempts == 3
            # No content means the progress record is never touched
            assert await store.settings.get(PROGRESS_KEY) is None
        finally:
            await store.close()

    asyncio.run(scenario())


def test_empty_page_not_retried_when_policy_off(db_path, monkeypatch):
    monkeypatch.setenv("RETRY_ON_EMPTY", "false")
    from config.settings import get_settings
    get_settings.cache_clear()

    async def scenario():
        store, controller = await _open(db_path)
        try:
            page = SnapshotPage(["<div>nothing here</div>"])
            result = await controller.run_with_retry(ConnectionsSource(), page, max_retries=3)
            assert result.outcome == "empty"
            assert result.attempts == 1
        finally:
            await store.close()

    asyncio.run(scenario())


def test_corrupt_progress_falls_back_to_fresh_run(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            await store.settings.set(PROGRESS_KEY, {"kind": "connections", "total_scraped": -5})
            result = await controller.start(ConnectionsSource(), _connections_page(10), resume=True)
            assert result.outcome == "complete"
            progress = await store.settings.get(PROGRESS_KEY)
            assert progress["total_scraped"] == 10

            await store.settings.set(PROGRESS_KEY, {"kind": "activities", "status": "paused", "total_scraped": 3})
            assert (await ProgressStore(store.settings, "connections").begin(resume=True)).total_scraped == 0

            # A row that is not even JSON is discarded the same way
            await store.conn.execute(
                "INSERT OR REPLACE INTO settings (key, value_json, updated_at) VALUES (?, ?, datetime('now'))",
                (PROGRESS_KEY, "{not json"),
            )
            await store.conn.commit()
            result = await controller.start(ConnectionsSource(), _connections_page(10), resume=True)
            assert result.outcome == "complete"
            assert (await store.settings.get(PROGRESS_KEY))["status"] == "complete"
        finally:
            await store.close()

    asyncio.run(scenario())


def test_progress_transitions():
    running = ScrapeProgress(kind="connections")
    paused = transition(running, "paused")
    assert transition(paused, "running").status == "running"
    with pytest.raises(InvalidTransition):
        transition(transition(running, "complete"), "running")
    with pytest.raises(InvalidTransition):
        transition(paused, "complete")


def test_run_safe_goes_through_serializer(db_path):
    async def scenario():
        store = await GraphStore.open(db_path)
        serializer = FifoSerializer(max_per_hour=10, min_delay_seconds=0, max_delay_seconds=0)
        first = AcquisitionController(store, store.settings, serializer)
        second = AcquisitionController(store, store.settings, serializer)
        try:
            a, b = await asyncio.gather(
                first.run_safe(ConnectionsSource(), _connections_page(20)),
                second.run_safe(ConnectionsSource(), _connections_page(20)),
            )
            assert sorted([a.scraped, b.scraped]) == [0, 20]
            assert serializer.get_stats()["request_count"] == 2
        finally:
            await store.close()

    asyncio.run(scenario())


def _employee_card(i: int) -> str:
    return (
        f'<li class="org-people-profile-card"><a class="app-aware-link" href="/in/emp-{i}/">p</a>'
        f'<div class="org-people-profile-card__profile-title">Employee {i}</div>'
        f'<div class="artdeco-entity-lockup__subtitle">Software Engineer</div></li>'
    )


def test_company_employees_accumulate_across_runs(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            header = '<h1 class="org-top-card-summary__title">Acme</h1>'
            first = SnapshotPage([header + "".join(_employee_card(i) for i in range(3))])
            await controller.start(CompanyEmployeesSource("acme"), first)
            company = await store.get_company("acme")
            assert company.company_name == "Acme"
            assert len(company.employees) == 3

            second = SnapshotPage([header + "".join(_employee_card(i) for i in range(4))])
            result = await controller.start(CompanyEmployeesSource("acme"), second)
            assert result.scraped == 1
            company = await store.get_company("acme")
            assert sorted(e.profile_id for e in company.employees) == ["emp-0", "emp-1", "emp-2", "emp-3"]
            assert all(e.department == "Engineering" for e in company.employees)
        finally:
            await store.close()

    asyncio.run(scenario())


def test_activities_feed_is_stored_once(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            items = "".join(
                f'<div class="feed-shared-update-v2" data-urn="urn:li:activity:{i}">'
                f'<div class="feed-shared-text">post {i}</div></div>'
                for i in range(5)
            )
            result = await controller.start(ActivitiesSource(profile_id="alice"), SnapshotPage([items]))
            assert result.scraped == 5
            again = await controller.start(ActivitiesSource(profile_id="alice"), SnapshotPage([items]))
            assert again.scraped == 0
            events = await store.activities_by_actor("alice")
            assert len(events) == 5
            assert all(e.target_id == "alice" for e in events)
        finally:
            await store.close()

    asyncio.run(scenario())


def test_stop_while_queued_is_honoured_when_the_run_starts(db_path):
    async def scenario():
        store = await GraphStore.open(db_path)
        serializer = FifoSerializer(max_per_hour=10, min_delay_seconds=0, max_delay_seconds=0)
        controller = AcquisitionController(store, store.settings, serializer)
        release = asyncio.Event()
        try:
            blocker = asyncio.create_task(serializer.enqueue(release.wait))
            await asyncio.sleep(0)
            queued = asyncio.create_task(controller.run_safe(ConnectionsSource(), _connections_page(10)))
            await asyncio.sleep(0)
            controller.stop()
            release.set()
            await blocker
            result = await asyncio.wait_for(queued, timeout=10)

            assert result.outcome == "paused"
            assert result.scraped == 0
            assert await store.nodes.count() == 0
            assert (await store.settings.get(PROGRESS_KEY))["status"] == "paused"

            # The next submission starts with a fresh control
            again = await controller.run_safe(ConnectionsSource(), _connections_page(10))
            assert again.outcome == "complete"
            assert again.scraped == 10
        finally:
            await store.close()

    asyncio.run(scenario())


class _Detached:
    """Element whose every read fails, as a node removed from the page would."""

    def select(self, locator):
        raise RuntimeError("element is detached")

    def text(self):
        raise RuntimeError("element is detached")

    def attr(self, name):
        raise RuntimeError("element is detached")


class _SometimesStale(ConnectionsSource):
    def __init__(self, stale_positions):
        super().__init__()
        self.stale_positions = set(stale_positions)
        self.calls = 0

    def extract(self, element):
        self.calls += 1
        if self.calls in self.stale_positions:
            raise RuntimeError("stale element")
        return super().extract(element)


def test_item_that_fails_to_extract_is_skipped(db_path):
    async def scenario():
        store, controller = await _open(db_path)
        try:
            result = await controller.start(_SometimesStale({3, 7}), _connections_page(10))
            assert result.outcome == "complete"
            assert result.scraped == 8
            assert result.skipped == 2
            assert await store.nodes.count() == 8
            assert (await store.settings.get(PROGRESS_KEY))["status"] == "complete"
        finally:
            await store.close()

    asyncio.run(scenario())


def test_detached_card_is_skipped_by_the_extractor():
    assert ConnectionsSource().extract(_Detached()) is None
    assert ActivitiesSource(profile_id="alice").extract(_Detached()) is not None
