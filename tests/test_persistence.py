import json

from udpinger.models import OUTCOME_TIMEOUT, ProbeResult, RunConfig, Summary
from udpinger.persistence import ResultWriter


def sample():
    config = RunConfig("127.0.0.1", 9000, count=2, period_ms=100, timeout_ms=50)
    summary = Summary(
        transmitted=2, received=1, lost=1, loss_percent=50, total_ms=120,
        min=8, avg=8.0, max=8, std=0.0, p50=8, p90=8, p99=8,
    )
    results = [
        ProbeResult(sequence=2, success=False, completion_timestamp=2.0, outcome=OUTCOME_TIMEOUT, error="no reply"),
        ProbeResult(sequence=1, success=True, latency_ms=8, completion_timestamp=1.0, send_timestamp=0.992),
    ]
    return config, summary, results


def test_save_and_load(tmp_path):
    path = tmp_path / "results.json"
    config, summary, results = sample()
    writer = ResultWriter(str(path))

    assert writer.save(config, summary, results) is True
    raw = json.loads(path.read_text())
    assert [r["sequence"] for r in raw["results"]] == [1, 2]

    loaded = writer.load()
    assert loaded["config"] == config
    assert loaded["summary"] == summary
    assert sorted(loaded["results"], key=lambda r: r.sequence) == sorted(results, key=lambda r: r.sequence)


def test_load_missing_file(tmp_path):
    assert ResultWriter(str(tmp_path / "absent.json")).load() is None


def test_load_corrupt_file(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    assert ResultWriter(str(path)).load() is None


def test_save_failure_is_not_fatal(tmp_path):
    config, summary, results = sample()
    writer = ResultWriter(str(tmp_path / "missing-dir" / "out.json"))
    assert writer.save(config, summary, results) is False
