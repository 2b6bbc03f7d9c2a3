"""
Test Monitoring Pipeline (Without Camera, Model or Broker)
===========================================================

Exercises the hand-off buffer, shared status, worker loops and the capture
loop with in-process fakes for the detector, video source and publisher.

Usage:
    pytest test_pipeline.py
"""

import threading
import time

import numpy as np
import pytest
import supervision as sv

from zonesafe_zone import DetectionBox, SafetyStatus, Zone
from zonesafe_processor import (
    DetectorUnavailableError,
    FrameBuffer,
    InferenceWorker,
    SharedStatus,
    ShutdownCoordinator,
    TelemetryPublisher,
    ZoneSelection,
)
from zonesafe_processor.config import NotifierConfig, ZoneConfig
from zonesafe_processor.detector import boxes_from_detections
from zonesafe_processor.inference import Detector
from zonesafe_processor.service import ZoneNotifierService


def make_frame(width: int = 640, height: int = 480) -> np.ndarray:
    return np.zeros((height, width, 3), dtype=np.uint8)


class FakeDetector(Detector):
    """Returns fixed boxes, or raises when failing is set."""

    def __init__(self, boxes=None, elapsed_ms=12.5, failing=False):
        self.boxes = boxes or []
        self.elapsed_ms = elapsed_ms
        self.failing = failing
        self.calls = 0
        self.closed = False

    def infer(self, frame):
        self.calls += 1
        if self.failing:
            raise RuntimeError("inference backend crashed")
        return list(self.boxes), self.elapsed_ms

    def close(self):
        self.closed = True


class FakePublisher:
    """Records published statuses."""

    def __init__(self, connects=True, result=True, raises=False):
        self.connects = connects
        self.result = result
        self.raises = raises
        self.published = []
        self.connected = False
        self.disconnected = False
        self.on_disconnect = None

    def connect(self, timeout: float = 5.0) -> bool:
        self.connected = self.connects
        return self.connects

    def disconnect(self):
        if self.on_disconnect:
            self.on_disconnect()
        self.disconnected = True

    def publish_status(self, status):
        if self.raises:
            raise ConnectionError("broker gone")
        self.published.append(status)
        return self.result


class FakeVideoSource:
    """Yields a fixed number of frames (or forever), then end of stream."""

    def __init__(self, frames=None):
        self.frames = frames
        self.reads = 0
        self.released = False
        self.on_release = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.on_release:
            self.on_release()
        self.released = True

    def read(self):
        self.reads += 1
        if self.frames is not None and self.reads > self.frames:
            return None
        return make_frame()


def stop_after(shutdown: ShutdownCoordinator, calls: int):
    """Fake sleep that signals stop on its calls-th invocation."""
    count = {'n': 0}

    def sleep(seconds):
        count['n'] += 1
        if count['n'] >= calls:
            shutdown.signal_stop("test done")

    return sleep


# ─────────────────────────────────────────────────────────────────────────────
# FrameBuffer
# ─────────────────────────────────────────────────────────────────────────────

def test_frame_buffer_put_then_take():
    buffer = FrameBuffer()
    frame = make_frame()

    assert buffer.take() is None
    assert buffer.put(frame)
    assert buffer.take() is frame
    assert buffer.take() is None
    assert buffer.is_empty()


def test_frame_buffer_drops_when_occupied():
    buffer = FrameBuffer()
    first, second = make_frame(), make_frame()

    assert buffer.put(first)
    assert not buffer.put(second)
    assert buffer.take() is first

    stats = buffer.get_stats()
    assert stats == {'accepted': 1, 'dropped': 1, 'pending': False}


def test_frame_buffer_wait_take_times_out_when_empty():
    buffer = FrameBuffer()

    start = time.monotonic()
    assert buffer.wait_take(timeout=0.05) is None
    assert time.monotonic() - start >= 0.04


def test_frame_buffer_wait_take_wakes_on_put():
    buffer = FrameBuffer()
    frame = make_frame()
    timer = threading.Timer(0.05, buffer.put, args=(frame,))
    timer.start()

    try:
        assert buffer.wait_take(timeout=5.0) is frame
    finally:
        timer.cancel()


# ─────────────────────────────────────────────────────────────────────────────
# SharedStatus / ShutdownCoordinator / ZoneSelection
# ─────────────────────────────────────────────────────────────────────────────

def test_shared_status_initial_set_and_reset():
    shared = SharedStatus()
    assert shared.get() == SafetyStatus.clear()
    assert shared.get_perf() == ""

    previous = shared.set(SafetyStatus.alerting())
    assert previous == SafetyStatus.clear()
    assert shared.get() == SafetyStatus.alerting()

    shared.reset()
    assert shared.get() == SafetyStatus(safe=False, alert=False)

    shared.set_perf("Person inference time: 1.00 ms")
    assert shared.get_perf() == "Person inference time: 1.00 ms"


def test_shutdown_is_one_way_and_idempotent():
    shutdown = ShutdownCoordinator()
    assert shutdown.running()
    assert shutdown.reason is None

    assert shutdown.signal_stop("end of stream")
    assert not shutdown.signal_stop("operator exit")

    assert not shutdown.running()
    assert shutdown.reason == "end of stream"
    assert shutdown.wait(timeout=0)


def test_shared_status_snapshots_stay_consistent_under_concurrent_writes():
    shared = SharedStatus()
    done = threading.Event()
    seen = []

    def writer():
        for i in range(2000):
            shared.set(SafetyStatus.alerting() if i % 2 else SafetyStatus.clear())
        done.set()

    thread = threading.Thread(target=writer)
    thread.start()
    while not done.is_set():
        seen.append(shared.get())
    thread.join(timeout=5.0)
    seen.append(shared.get())

    assert shared.get() == SafetyStatus.alerting()
    assert all(status.safe == (not status.alert) for status in seen)


def test_zone_selection_replace_returns_previous():
    zones = ZoneSelection(Zone(1, 2, 3, 4))
    previous = zones.replace(Zone(10, 20, 30, 40))

    assert previous == Zone(1, 2, 3, 4)
    assert zones.get() == Zone(10, 20, 30, 40)


# ─────────────────────────────────────────────────────────────────────────────
# InferenceWorker
# ─────────────────────────────────────────────────────────────────────────────

def make_worker(detector, zone=Zone(100, 100, 50, 50), max_failures=10):
    shutdown = ShutdownCoordinator()
    worker = InferenceWorker(
        detector=detector,
        frame_buffer=FrameBuffer(),
        zones=ZoneSelection(zone),
        shared_status=SharedStatus(),
        shutdown=shutdown,
        poll_timeout=0.01,
        max_consecutive_failures=max_failures,
    )
    return worker, shutdown


def test_inference_worker_updates_status_and_perf():
    worker, _ = make_worker(FakeDetector([DetectionBox(100, 100, 50, 50)], elapsed_ms=12.5))

    assert worker.process_frame(make_frame())
    assert worker.shared_status.get() == SafetyStatus.alerting()
    assert worker.shared_status.get_perf() == "Person inference time: 12.50 ms"
    assert worker.frames_processed == 1

    worker.detector.boxes = [DetectionBox(0, 0, 10, 10)]
    assert worker.process_frame(make_frame())
    assert worker.shared_status.get() == SafetyStatus.clear()


def test_inference_worker_reads_current_zone():
    worker, _ = make_worker(FakeDetector([DetectionBox(300, 300, 20, 20)]))

    worker.process_frame(make_frame())
    assert worker.shared_status.get().safe

    worker.zones.replace(Zone(290, 290, 100, 100))
    worker.process_frame(make_frame())
    assert worker.shared_status.get().alert


def test_inference_failure_skips_frame():
    worker, shutdown = make_worker(FakeDetector(failing=True))
    worker.shared_status.set(SafetyStatus.alerting())

    assert not worker.process_frame(make_frame())
    assert worker.shared_status.get() == SafetyStatus.alerting()
    assert worker.error is None
    assert shutdown.running()


def test_inference_failure_counter_resets_on_success():
    detector = FakeDetector(failing=True)
    worker, shutdown = make_worker(detector, max_failures=2)

    worker.process_frame(make_frame())
    detector.failing = False
    worker.process_frame(make_frame())
    detector.failing = True
    worker.process_frame(make_frame())

    assert worker.error is None
    assert shutdown.running()


def test_repeated_inference_failures_stop_pipeline():
    worker, shutdown = make_worker(FakeDetector(failing=True), max_failures=3)

    for _ in range(3):
        worker.process_frame(make_frame())

    assert isinstance(worker.error, DetectorUnavailableError)
    assert not shutdown.running()
    assert shutdown.reason == "detector unavailable"


def test_inference_worker_thread_consumes_and_stops():
    worker, shutdown = make_worker(FakeDetector([DetectionBox(100, 100, 50, 50)]))
    worker.start()

    worker.frame_buffer.put(make_frame())
    deadline = time.monotonic() + 5.0
    while worker.frames_processed == 0 and time.monotonic() < deadline:
        time.sleep(0.01)

    shutdown.signal_stop("test done")
    assert worker.join(timeout=5.0)
    assert worker.frames_processed >= 1
    assert worker.shared_status.get().alert


# ─────────────────────────────────────────────────────────────────────────────
# TelemetryPublisher
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("intervals", [1, 3, 5])
def test_telemetry_publishes_once_per_interval(intervals):
    shutdown = ShutdownCoordinator()
    publisher = FakePublisher()
    shared = SharedStatus()
    telemetry = TelemetryPublisher(
        publisher, shared, shutdown, interval=1.0, sleep=stop_after(shutdown, intervals)
    )

    telemetry.run()

    assert telemetry.publish_count == intervals
    assert publisher.published == [SafetyStatus.clear()] * intervals


def test_telemetry_publishes_latest_snapshot():
    shutdown = ShutdownCoordinator()
    publisher = FakePublisher()
    shared = SharedStatus()
    telemetry = TelemetryPublisher(publisher, shared, shutdown)

    telemetry.publish_once()
    shared.set(SafetyStatus.alerting())
    telemetry.publish_once()

    assert publisher.published == [SafetyStatus.clear(), SafetyStatus.alerting()]


def test_telemetry_keeps_running_on_transport_errors():
    shutdown = ShutdownCoordinator()
    publisher = FakePublisher(raises=True)
    telemetry = TelemetryPublisher(
        publisher, SharedStatus(), shutdown, sleep=stop_after(shutdown, 4)
    )

    telemetry.run()

    assert telemetry.publish_count == 4
    assert telemetry.failure_count == 4


def test_telemetry_wait_wakes_on_stop():
    shutdown = ShutdownCoordinator()
    telemetry = TelemetryPublisher(FakePublisher(), SharedStatus(), shutdown, interval=60.0)

    telemetry.start()
    time.sleep(0.05)
    shutdown.signal_stop("test done")

    assert telemetry.join(timeout=2.0)
    assert telemetry.publish_count == 1


def test_worker_threads_are_joinable_after_stop():
    shutdown = ShutdownCoordinator()
    shared = SharedStatus()
    worker = InferenceWorker(
        FakeDetector(), FrameBuffer(), ZoneSelection(), shared, shutdown, poll_timeout=0.01
    )
    telemetry = TelemetryPublisher(FakePublisher(), shared, shutdown, interval=0.01)

    worker.start()
    telemetry.start()
    time.sleep(0.05)
    shutdown.signal_stop("test done")

    assert worker.join(timeout=5.0)
    assert telemetry.join(timeout=5.0)
    assert not worker.is_alive()
    assert not telemetry.is_alive()


# ─────────────────────────────────────────────────────────────────────────────
# Detector output conversion
# ─────────────────────────────────────────────────────────────────────────────

def test_boxes_from_detections_filters_class_and_confidence():
    detections = sv.Detections(
        xyxy=np.array([
            [100.0, 100.0, 150.0, 150.0],
            [0.0, 0.0, 10.0, 10.0],
            [200.0, 200.0, 260.0, 300.0],
        ]),
        confidence=np.array([0.9, 0.5, 0.8]),
        class_id=np.array([0, 0, 2]),
    )

    boxes = boxes_from_detections(detections, person_class_id=0, confidence=0.5)

    assert len(boxes) == 1
    box = boxes[0]
    assert (box.left, box.top, box.width, box.height) == (100, 100, 50, 50)
    assert box.confidence == pytest.approx(0.9)


def test_boxes_from_empty_detections():
    assert boxes_from_detections(sv.Detections.empty(), 0, 0.5) == []


# ─────────────────────────────────────────────────────────────────────────────
# ZoneNotifierService (headless)
# ─────────────────────────────────────────────────────────────────────────────

def make_service(detector, source, publisher, max_failures=10, **overrides):
    settings = dict(
        zone_config=ZoneConfig(100, 100, 50, 50),
        show_window=False,
        frame_poll_timeout=0.01,
        max_consecutive_failures=max_failures,
        join_timeout=5.0,
    )
    settings.update(overrides)
    config = NotifierConfig(**settings)
    service = ZoneNotifierService(
        config=config,
        status_publisher=publisher,
        detector=detector,
        video_source_factory=lambda _: source,
        sleep=lambda seconds: time.sleep(0.001),
    )
    service.setup()
    return service


def test_service_end_of_stream_releases_everything():
    detector = FakeDetector([DetectionBox(100, 100, 50, 50)])
    source = FakeVideoSource(frames=20)
    publisher = FakePublisher()
    service = make_service(detector, source, publisher)

    workers_alive_at_release = []
    source.on_release = lambda: workers_alive_at_release.append(
        service.inference_worker.is_alive() or service.telemetry.is_alive()
    )

    service.run()

    assert service.shutdown.reason == "end of stream"
    assert service.frames_captured == 20
    assert workers_alive_at_release == [False]
    assert source.released
    assert publisher.disconnected
    assert detector.closed


def test_service_stops_telemetry_before_disconnect_with_long_interval():
    source = FakeVideoSource(frames=3)
    publisher = FakePublisher()
    service = make_service(
        FakeDetector(), source, publisher, publish_interval=60.0, join_timeout=0.5
    )

    telemetry_alive_at_disconnect = []
    publisher.on_disconnect = lambda: telemetry_alive_at_disconnect.append(
        service.telemetry.is_alive()
    )

    start = time.monotonic()
    service.run()

    assert telemetry_alive_at_disconnect == [False]
    assert time.monotonic() - start < 5.0
    assert publisher.published


def test_service_runs_without_broker():
    source = FakeVideoSource(frames=5)
    publisher = FakePublisher(connects=False, result=False)
    service = make_service(FakeDetector(), source, publisher)

    service.run()

    assert not publisher.connected
    assert publisher.disconnected
    assert service.frames_captured == 5


def test_service_raises_when_detector_unusable():
    detector = FakeDetector(failing=True)
    source = FakeVideoSource(frames=None)
    service = make_service(detector, source, FakePublisher(), max_failures=2)

    with pytest.raises(DetectorUnavailableError):
        service.run()

    assert service.shutdown.reason == "detector unavailable"
    assert source.released
    assert detector.closed


def test_service_requires_setup():
    config = NotifierConfig(show_window=False)
    service = ZoneNotifierService(config, FakePublisher(), detector=FakeDetector())

    with pytest.raises(RuntimeError):
        service.run()
