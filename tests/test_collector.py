"""Tests for the system resource collectors."""

import time

from graphite_pusher import Pusher
from graphite_pusher.collector.base import path_component
from graphite_pusher.collector.cpu import CpuCollector
from graphite_pusher.collector.manager import CollectorManager, build_collectors
from graphite_pusher.collector.memory import MemoryCollector
from graphite_pusher.collector.network import NetworkCollector
from graphite_pusher.config import CollectorConfig
from graphite_pusher.sample import Sample

TS = 1700000000


def test_cpu_collector():
    collector = CpuCollector("hosts.test")
    assert collector.name == "cpu"
    samples = collector.collect(TS)
    assert len(samples) > 0
    assert all(isinstance(s, Sample) for s in samples)
    assert {s.timestamp for s in samples} == {TS}
    total = [s for s in samples if s.path == "hosts.test.cpu.total.usage_percent"]
    assert len(total) == 1
    assert 0 <= total[0].value <= 100
    assert any(s.path == "hosts.test.cpu.load_avg_1m" for s in samples)


def test_memory_collector():
    collector = MemoryCollector()
    assert collector.name == "memory"
    samples = collector.collect(TS)
    assert len(samples) == 5
    assert {s.timestamp for s in samples} == {TS}
    paths = {s.path for s in samples}
    assert "system.memory.usage_percent" in paths
    assert "system.swap.usage_percent" in paths


def test_network_collector():
    collector = NetworkCollector()
    assert collector.name == "network"
    samples = collector.collect(TS)
    # first call should have totals but no rates
    assert not [s for s in samples if s.path.endswith("_rate")]
    assert not [s for s in samples if ".lo." in s.path]
    # second call may produce rates but must not error
    second = collector.collect(TS + 1)
    assert all(s.timestamp == TS + 1 for s in second)


def test_empty_prefix():
    collector = MemoryCollector(prefix="")
    paths = {s.path for s in collector.collect(TS)}
    assert "memory.usage_percent" in paths
    assert "swap.usage_percent" in paths


def test_path_component():
    assert path_component("eth0") == "eth0"
    assert path_component("Wi-Fi 2") == "Wi-Fi_2"
    assert path_component("br.100") == "br_100"
    assert path_component("") == "_"


def test_build_collectors_follows_config():
    config = CollectorConfig(cpu=False, memory=True, network=True, prefix="hosts.web1")
    collectors = build_collectors(config)
    assert [c.name for c in collectors] == ["memory", "network"]
    assert all(c.prefix == "hosts.web1" for c in collectors)


def test_collect_once_shares_one_timestamp():
    config = CollectorConfig(enabled=True, cpu=True, memory=True, network=False)
    manager = CollectorManager(config, Pusher("127.0.0.1", 2004))
    samples = manager.collect_once()
    assert len(samples) > 0
    assert len({s.timestamp for s in samples}) == 1

    pinned = manager.collect_once(TS)
    assert {s.timestamp for s in pinned} == {TS}


def test_failing_collector_is_skipped():
    class Broken(MemoryCollector):
        @property
        def name(self):
            return "broken"

        def collect(self, timestamp):
            raise RuntimeError("sensor unavailable")

    config = CollectorConfig(enabled=True, cpu=False, memory=True, network=False)
    manager = CollectorManager(config, Pusher("127.0.0.1", 2004))
    manager._collectors.insert(0, Broken())
    samples = manager.collect_once(TS)
    assert len(samples) == 5
    assert all(s.path.startswith("system.") for s in samples)


def test_push_once_submits_to_pusher():
    config = CollectorConfig(enabled=True, cpu=False, memory=True, network=False)
    pusher = Pusher("127.0.0.1", 2004)
    manager = CollectorManager(config, pusher)
    assert manager.push_once() == 5
    assert pusher.pending == 5


def test_collector_manager_background():
    config = CollectorConfig(enabled=True, interval_seconds=0.05, cpu=False, memory=True, network=False)
    pusher = Pusher("127.0.0.1", 2004)
    manager = CollectorManager(config, pusher)
    manager.start()
    try:
        deadline = time.monotonic() + 5
        while pusher.pending < 10 and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        manager.stop()
    assert pusher.pending >= 10
    assert manager._thread is None


def test_collector_manager_disabled():
    config = CollectorConfig(enabled=False)
    pusher = Pusher("127.0.0.1", 2004)
    manager = CollectorManager(config, pusher)
    manager.start()
    assert manager._thread is None
    manager.stop()
    assert pusher.pending == 0
