import pytest

from breathsync.core.contracts import QualityLevel, QualityPreset
from breathsync.performance.performance_sampler import PerformanceSampler
from breathsync.performance.quality_classifier import QualityClassifier
from breathsync.quality.preference_store import JsonPreferenceStore, MemoryPreferenceStore
from breathsync.quality.quality_config import DEFAULT_QUALITY_CONFIG
from breathsync.quality.quality_controller import QualityController


def make_controller(store, clock, window=10, min_samples=10, delay=3.0):
    return QualityController(
        store=store,
        sampler=PerformanceSampler(window_size=window),
        classifier=QualityClassifier(commit_delay_seconds=delay, min_samples=min_samples),
        clock=clock,
    )


def feed(controller, clock, delta_ms, frames):
    """Record frames, advancing the clock by each frame's duration."""
    states = []
    for _ in range(frames):
        clock.advance(delta_ms / 1000.0)
        states.append(controller.record_performance_sample(delta_ms))
    return states


def warm_to_high(controller, clock):
    feed(controller, clock, 16.6, 10)
    clock.advance(3.0)
    controller.record_performance_sample(16.6)
    assert controller.classified_level is QualityLevel.HIGH


class TestInitialState:

    def test_defaults_before_any_samples(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        assert controller.preset is QualityPreset.AUTO
        assert controller.performance_metrics is None
        assert controller.effective_level is QualityLevel.MEDIUM
        assert controller.get_config() == DEFAULT_QUALITY_CONFIG[QualityLevel.MEDIUM]

    def test_metrics_stay_none_during_warmup(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        states = feed(controller, fake_clock, 16.6, 9)
        assert states == [None] * 9
        assert controller.performance_metrics is None

    def test_first_classification_publishes_metrics(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        metrics = feed(controller, fake_clock, 16.6, 10)[-1]

        assert metrics is not None
        assert metrics.average_fps == pytest.approx(60.0, abs=0.5)
        assert metrics.normalized_score == pytest.approx(1.0)
        assert metrics.quality_level is QualityLevel.MEDIUM
        assert metrics.is_throttling is False
        assert controller.performance_metrics is metrics


class TestAutoQuality:

    def test_good_frames_upgrade_after_debounce(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        feed(controller, fake_clock, 16.6, 10)
        assert controller.effective_level is QualityLevel.MEDIUM

        warm_to_high(controller, fake_clock)
        assert controller.effective_level is QualityLevel.HIGH
        assert controller.get_config().particle_count == 500

    def test_sustained_slow_frames_downgrade_with_throttling_warning(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        warm_to_high(controller, fake_clock)

        states = feed(controller, fake_clock, 40.0, 120)

        assert any(s.is_throttling for s in states)
        assert controller.effective_level is QualityLevel.LOW
        assert controller.performance_metrics.is_throttling is False

    def test_single_outlier_frame_changes_nothing(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        warm_to_high(controller, fake_clock)

        metrics = controller.record_performance_sample(5000.0)
        assert metrics.is_throttling is False
        assert metrics.average_fps == pytest.approx(60.0, abs=0.5)
        assert controller.effective_level is QualityLevel.HIGH

    def test_sample_is_reflected_in_same_frame(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock, window=1, min_samples=1)
        assert controller.record_performance_sample(20.0).average_fps == pytest.approx(50.0)
        assert controller.record_performance_sample(25.0).average_fps == pytest.approx(40.0)

    def test_reset_performance(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        warm_to_high(controller, fake_clock)

        controller.reset_performance()
        assert controller.performance_metrics is None
        assert controller.classified_level is None
        assert controller.effective_level is QualityLevel.MEDIUM


class TestPreset:

    def test_explicit_preset_applies_immediately(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        warm_to_high(controller, fake_clock)

        controller.set_preset("low")
        assert controller.preset is QualityPreset.LOW
        assert controller.effective_level is QualityLevel.LOW
        assert controller.get_config().particle_count == 100

    def test_explicit_preset_ignores_measured_fps(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        controller.set_preset(QualityPreset.HIGH)
        feed(controller, fake_clock, 100.0, 200)

        assert controller.classified_level is QualityLevel.LOW
        assert controller.effective_level is QualityLevel.HIGH

    def test_auto_restores_classifier_control(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        controller.set_preset("low")
        warm_to_high(controller, fake_clock)
        assert controller.effective_level is QualityLevel.LOW

        controller.set_preset("auto")
        controller.record_performance_sample(16.6)
        assert controller.effective_level is controller.classified_level is QualityLevel.HIGH

    @pytest.mark.parametrize("bad", ["ultra", "", None, 3, "custom"])
    def test_invalid_preset_rejected(self, memory_store, fake_clock, bad):
        controller = make_controller(memory_store, fake_clock)
        with pytest.raises(ValueError):
            controller.set_preset(bad)
        assert controller.preset is QualityPreset.AUTO

    def test_preset_strings_are_normalized(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        controller.set_preset(" Medium ")
        assert controller.preset is QualityPreset.MEDIUM


class TestPersistence:

    def test_round_trip_across_reload(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        controller.set_preset("high")
        assert memory_store.get("quality-preset") == "high"

        reloaded = make_controller(memory_store, fake_clock)
        assert reloaded.preset is QualityPreset.HIGH
        assert reloaded.effective_level is QualityLevel.HIGH

    def test_round_trip_through_json_file(self, tmp_path, fake_clock):
        path = tmp_path / "prefs" / "preferences.json"
        make_controller(JsonPreferenceStore(path), fake_clock).set_preset("low")

        reloaded = make_controller(JsonPreferenceStore(path), fake_clock)
        assert reloaded.preset is QualityPreset.LOW

    def test_failing_store_is_ignored(self, failing_store, fake_clock):
        controller = make_controller(failing_store, fake_clock)
        assert controller.preset is QualityPreset.AUTO

        controller.set_preset("medium")
        assert failing_store.set_calls == 1
        assert controller.preset is QualityPreset.MEDIUM
        assert controller.effective_level is QualityLevel.MEDIUM

    def test_garbage_in_store_falls_back_to_auto(self, fake_clock):
        store = MemoryPreferenceStore({"quality-preset": "ultra"})
        assert make_controller(store, fake_clock).preset is QualityPreset.AUTO

    def test_custom_storage_key(self, fake_clock):
        store = MemoryPreferenceStore({"gfx": "low"})
        controller = QualityController(store=store, clock=fake_clock, storage_key="gfx")
        assert controller.preset is QualityPreset.LOW
        controller.set_preset("high")
        assert store.snapshot() == {"gfx": "high"}


class TestSubscribers:

    def test_listener_fires_on_preset_change_only_once(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        events = []
        controller.subscribe(events.append)

        controller.set_preset("low")
        controller.set_preset("low")

        assert len(events) == 1
        assert events[0].preset is QualityPreset.LOW
        assert events[0].effective_level is QualityLevel.LOW

    def test_listener_ignores_per_frame_fps_noise(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock, delay=100.0)
        events = []
        controller.subscribe(events.append)

        for i in range(50):
            delta = 18.0 if i % 2 else 20.0  # ~53 fps, inside medium's dead band
            fake_clock.advance(delta / 1000.0)
            controller.record_performance_sample(delta)

        # Metrics appearing is the only change
        assert len(events) == 1
        assert events[0].performance is not None

    def test_listener_sees_throttling_and_commit(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        warm_to_high(controller, fake_clock)

        events = []
        controller.subscribe(events.append)
        feed(controller, fake_clock, 40.0, 120)

        throttling = [e.performance.is_throttling for e in events]
        assert True in throttling
        assert events[-1].effective_level is QualityLevel.LOW

    def test_failing_listener_does_not_break_sampling(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        received = []

        def broken(snapshot):
            raise RuntimeError("boom")

        controller.subscribe(broken)
        controller.subscribe(received.append)
        controller.set_preset("high")
        assert len(received) == 1

    def test_unsubscribe(self, memory_store, fake_clock):
        controller = make_controller(memory_store, fake_clock)
        events = []
        unsubscribe = controller.subscribe(events.append)
        unsubscribe()
        controller.set_preset("low")
        assert events == []


def test_incomplete_quality_config_rejected(memory_store):
    partial = {QualityLevel.LOW: DEFAULT_QUALITY_CONFIG[QualityLevel.LOW]}
    with pytest.raises(ValueError):
        QualityController(quality_config=partial, store=memory_store)
