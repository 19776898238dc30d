"""
tests/test_arbiter.py
──────────────────────
Tests for live / synthetic source selection and the consumer-side feed.
"""
import threading

from config.thresholds import ChannelThresholds, Thresholds
from src.analytics.trends import summarize
from src.data.models import DataSource, Reading
from src.services.arbiter import SOURCE_CHANGED, TELEMETRY_UPDATED
from src.services.broadcaster import CONNECTION_LOST, SENSOR_UPDATE
from src.services.runtime import MonitorRuntime


def _events(runtime):
    events = []
    runtime.arbiter.events.subscribe(events.append)
    return events


class TestStartup:
    def test_starts_synthetic_with_seed_history(self, runtime):
        assert runtime.arbiter.source == DataSource.SYNTHETIC
        assert runtime.arbiter.feed.running
        assert len(runtime.state.feed_history()) == 5

    def test_tick_is_consumed(self, runtime, clock):
        events = _events(runtime)
        clock.advance(2)
        reading = runtime.arbiter.feed.tick()
        update = runtime.state.feed_current()
        assert update.source == DataSource.SYNTHETIC
        assert update.reading == reading
        assert runtime.state.feed_history()[-1] == reading
        assert events[-1]["type"] == TELEMETRY_UPDATED
        assert events[-1]["data"]["source"] == "SYNTHETIC"

    def test_restart_while_running_is_noop(self, runtime):
        assert runtime.arbiter.start_synthetic() is False


class TestLiveTakeover:
    def test_valid_ingest_switches_to_live(self, runtime, clock, good_payload):
        events = _events(runtime)
        runtime.ingestion.ingest(good_payload)

        assert runtime.arbiter.source == DataSource.LIVE
        assert not runtime.arbiter.feed.running
        assert runtime.arbiter.feed.tick() is None

        update = runtime.state.feed_current()
        assert update.source == DataSource.LIVE
        assert update.reading.temperature == 22
        assert update.health.score == 100

        types = [e["type"] for e in events]
        assert types == [SOURCE_CHANGED, TELEMETRY_UPDATED]
        assert events[0]["data"] == {"source": "LIVE"}

    def test_second_live_reading_no_source_change(self, runtime, good_payload):
        runtime.ingestion.ingest(good_payload)
        events = _events(runtime)
        runtime.ingestion.ingest(good_payload)
        assert [e["type"] for e in events] == [TELEMETRY_UPDATED]

    def test_invalid_ingest_keeps_synthetic(self, runtime, dead_payload):
        runtime.ingestion.ingest(dead_payload)
        assert runtime.arbiter.source == DataSource.SYNTHETIC
        assert runtime.arbiter.feed.running

    def test_stale_run_reading_discarded(self, runtime, clock, good_payload):
        old_run = runtime.arbiter.feed.run_id
        stale = runtime.arbiter.feed.generator.next()
        runtime.ingestion.ingest(good_payload)
        before = runtime.state.feed_history()

        runtime.arbiter._on_synthetic(stale, old_run)

        assert runtime.state.feed_history() == before
        assert runtime.state.feed_current().source == DataSource.LIVE

    def test_live_reading_below_alert_min_raises_error(self, runtime, clock):
        runtime.state.clear_alerts()
        runtime.ingestion.ingest({"temperature": 10, "ph": 7.2, "temp_sensor_ok": True, "ph_sensor_ok": True})
        alerts = runtime.state.alerts()
        assert len(alerts) == 1
        assert alerts[0].severity.value == "error"
        assert alerts[0].message == "Temperature too low: 10.0°C"


class TestDisconnect:
    def test_disconnect_resumes_synthetic(self, runtime, clock, good_payload):
        runtime.ingestion.ingest(good_payload)
        events = _events(runtime)
        clock.advance(31)
        assert runtime.watchdog.check() is True

        assert runtime.arbiter.source == DataSource.SYNTHETIC
        assert runtime.arbiter.feed.running
        assert runtime.arbiter.feed.generator.previous == {"temperature": 21.0, "ph": 7.2}
        assert events[0]["type"] == SOURCE_CHANGED
        assert events[0]["data"] == {"source": "SYNTHETIC"}

    def test_policy_off_stays_live(self, clock, good_payload):
        from config.settings import Settings
        cfg = Settings()
        cfg.SEED_HISTORY_POINTS = 5
        cfg.RESUME_SYNTHETIC_ON_DISCONNECT = False
        rt = MonitorRuntime.build(cfg, clock=clock)
        rt.arbiter.start(background=False)
        try:
            rt.ingestion.ingest(good_payload)
            clock.advance(31)
            rt.watchdog.check()
            assert rt.arbiter.source == DataSource.LIVE
            assert not rt.arbiter.feed.running

            assert rt.arbiter.start_synthetic() is True
            assert rt.arbiter.source == DataSource.SYNTHETIC
        finally:
            rt.stop()

    def test_connection_lost_message_without_policy_is_ignored(self, runtime):
        runtime.arbiter.stop()
        runtime.state.set_source(DataSource.LIVE)
        runtime.arbiter._resume_on_disconnect = False
        runtime.arbiter.handle_message({"type": CONNECTION_LOST, "data": {}})
        assert runtime.arbiter.source == DataSource.LIVE


class TestSyntheticAlerts:
    def test_custom_thresholds_apply_to_synthetic(self, runtime, clock):
        tight = ChannelThresholds(min=0.0, max=1.0, alert_min=-1.0, alert_max=2.0)
        runtime.state.set_thresholds(Thresholds(temperature=tight, ph=runtime.state.thresholds.ph))
        runtime.state.clear_alerts()
        clock.advance(2)
        runtime.arbiter.feed.tick()
        update = runtime.state.feed_current()
        temp_alerts = [a for a in update.alerts if a.channel == "temperature"]
        assert len(temp_alerts) == 1
        assert temp_alerts[0].message.startswith("Temperature too high")
        assert runtime.state.alert_count() >= 1

    def test_accept_live_ignores_invalid_reading(self, runtime, clock):
        dead = Reading(timestamp=clock.now)
        assert runtime.arbiter.accept_live(dead) is None
        assert runtime.arbiter.source == DataSource.SYNTHETIC


class TestFeedHistoryOrder:
    def test_resume_after_disconnect_keeps_history_sorted(self, runtime, clock, good_payload):
        runtime.ingestion.ingest(good_payload)
        clock.advance(31)
        assert runtime.watchdog.check() is True

        history = runtime.state.feed_history()
        stamps = [r.timestamp for r in history]
        assert stamps == sorted(stamps)
        # seeded once at startup, not again on resume
        assert len(stamps) == 6
        assert summarize(history, clock.now)["temperature"].latest == 22

    def test_explicit_restart_does_not_reseed(self, runtime, good_payload):
        runtime.ingestion.ingest(good_payload)
        assert runtime.arbiter.start_synthetic() is True
        assert len(runtime.state.feed_history()) == 6

    def test_concurrent_ingests_keep_acceptance_order(self, runtime, clock, good_payload):
        entered = threading.Event()
        release = threading.Event()
        seen = []

        def slow(message):
            if message["type"] != SENSOR_UPDATE:
                return
            seen.append(message)
            if len(seen) == 1:
                entered.set()
                release.wait(timeout=5)

        runtime.broadcaster.subscribe(slow)
        first, second = clock.now + 1000, clock.now + 2000

        worker = threading.Thread(target=runtime.ingestion.ingest, args=(dict(good_payload, timestamp=first),))
        worker.start()
        try:
            assert entered.wait(timeout=5)
            runtime.ingestion.ingest(dict(good_payload, timestamp=second))
        finally:
            release.set()
            worker.join(timeout=5)

        assert [r.timestamp for r in runtime.state.history()] == [first, second]
        assert [r.timestamp for r in runtime.state.feed_history()[-2:]] == [first, second]
        assert runtime.state.feed_current().reading.timestamp == second
        assert runtime.state.snapshot().timestamp == second


class TestSubscription:
    def test_failed_resume_keeps_subscription(self, runtime, clock, good_payload, monkeypatch):
        runtime.ingestion.ingest(good_payload)

        def broken():
            raise RuntimeError("feed unavailable")

        monkeypatch.setattr(runtime.arbiter, "start_synthetic", broken)
        clock.advance(31)
        assert runtime.watchdog.check() is True

        assert runtime.arbiter.attached
        assert runtime.broadcaster.subscriber_count == 1
        assert runtime.websocket_clients == 0

    def test_attached_reflects_broadcaster(self, runtime):
        assert runtime.arbiter.attached
        runtime.broadcaster.unsubscribe(runtime.arbiter._handle)
        assert not runtime.arbiter.attached
        assert runtime.websocket_clients == 0

    def test_arbiter_failure_does_not_fail_ingest(self, runtime, good_payload, monkeypatch):
        def broken(reading):
            raise RuntimeError("boom")

        monkeypatch.setattr(runtime.arbiter, "admit_live", broken)
        ack = runtime.ingestion.ingest(good_payload)
        assert ack.accepted
        assert runtime.state.history_size() == 1
        assert runtime.state.snapshot().valid
