# tests/monitoring/test_monitor.py
import numpy as np
import pytest

from proctrain.monitoring.histogram import AutoHistogram
from proctrain.monitoring.monitor import (
    BACKGROUND,
    OUTPUT_BINS,
    OUTPUT_RANGE,
    SIGNAL,
    MonitoringModule,
    SigBkg,
    TrainerMonitoring,
)


def _pair(n_bins=10, lo=0.0, hi=10.0, same_binning=False):
    bkg = AutoHistogram("v_bkg", "v background", n_bins)
    sig = AutoHistogram("v_sig", "v signal", n_bins)
    return SigBkg(histo=(bkg, sig), min=lo, max=hi, same_binning=same_binning)


def test_value_at_min_is_underflow_and_at_max_is_overflow():
    pair = _pair()

    pair.fill(0.0, True, 2.0)     # == min → underflow
    pair.fill(10.0, True, 3.0)    # == max → overflow
    pair.fill(5.0, True, 1.5)     # binned

    assert pair.underflow[SIGNAL] == 2.0
    assert pair.overflow[SIGNAL] == 3.0
    assert pair.entries[SIGNAL] == 3
    assert pair.entries[BACKGROUND] == 0

    pair.finalize()
    h = pair.histo[SIGNAL]

    assert h.get_bin_content(0) == 2.0
    assert h.get_bin_content(h.n_bins + 1) == 3.0
    assert h.contents[1:-1].sum() == pytest.approx(1.5)
    assert h.entries == 3


def test_underflow_per_class():
    pair = _pair()
    pair.fill(-1.0, False, 1.0)
    pair.fill(-2.0, True, 4.0)

    assert pair.underflow == [1.0, 4.0]


def test_same_binning_forces_shared_edges():
    pair = _pair(lo=-OUTPUT_RANGE, hi=OUTPUT_RANGE, same_binning=True)

    pair.fill(-3.0, False, 1.0)
    pair.fill(7.0, True, 1.0)
    pair.finalize()

    bkg, sig = pair.histo
    assert np.array_equal(bkg.edges, sig.edges)
    assert bkg.edges[0] == -3.0
    assert bkg.edges[-1] == 7.0

    # 零权重填充不改变内容，entries 只计本类
    assert bkg.contents.sum() == pytest.approx(1.0)
    assert sig.contents.sum() == pytest.approx(1.0)
    assert bkg.entries == 1 and sig.entries == 1


def test_independent_binning_without_shared_flag():
    pair = _pair(lo=-np.inf, hi=np.inf)
    pair.fill(-3.0, False, 1.0)
    pair.fill(7.0, True, 1.0)
    pair.finalize()

    bkg, sig = pair.histo
    assert not np.array_equal(bkg.edges, sig.edges)


def test_histogram_rejects_fill_after_finalize():
    h = AutoHistogram("h", "h", 5)
    h.fill(1.0)
    h.finalize()
    with pytest.raises(RuntimeError):
        h.fill(2.0)


def test_empty_histogram_finalizes():
    h = AutoHistogram("h", "h", 5)
    h.finalize()
    assert h.contents.sum() == 0.0
    assert len(h.contents) == 7


def test_book_bin_sets_output_mode():
    module = MonitoringModule("output")
    sets = module.book_bin_sets(["a", "b"], output=True)

    assert len(sets) == 2
    assert set(module.histograms) == {"a_bkg", "a_sig", "b_bkg", "b_sig"}
    assert sets[0].same_binning
    assert sets[0].min == -OUTPUT_RANGE
    assert sets[0].histo[0].n_bins == OUTPUT_BINS


def test_book_bin_sets_input_mode_unbounded():
    sets = MonitoringModule("input_p").book_bin_sets(["a"], output=False)
    assert sets[0].min == -np.inf and sets[0].max == np.inf
    assert not sets[0].same_binning


def test_trainer_monitoring_booking_rules():
    mon = TrainerMonitoring(enabled=True)
    assert mon.book("input_a") is not None
    assert mon.book("input_a") is None

    assert TrainerMonitoring(enabled=False).book("input_a") is None


def test_write_and_read_parquet(tmp_path):
    mon = TrainerMonitoring()
    module = mon.book("input_p")
    pair = module.book_bin_sets(["x"], output=False)[0]
    for v, t in [(1.0, True), (2.0, False), (3.0, True)]:
        pair.fill(v, t, 1.0)
    pair.finalize()

    path = mon.write(tmp_path / "mon.parquet")
    df = TrainerMonitoring.read(path)

    assert len(df) == 2 * (pair.histo[0].n_bins + 2)
    sig = df[df["histogram"] == "x_sig"]
    assert sig["content"].sum() == pytest.approx(2.0)
    assert set(sig["entries"]) == {2}
    assert set(df["module"]) == {"input_p"}


def test_histogram_buffer_stays_bounded():
    rng = np.random.default_rng(5)
    values = rng.normal(0.0, 1.0, size=20_000)
    weights = rng.uniform(0.5, 1.5, size=20_000)

    h = AutoHistogram("h", "h", 50, buffer_size=500)
    for v, w in zip(values, weights):
        h.fill(v, w)
        assert h.buffered < 500

    h.finalize()

    # 缓存之后的填充落入 under/overflow，总和不丢
    assert h.contents.sum() == pytest.approx(weights.sum())
    assert h.entries == 20_000
    assert h.buffered == 0


def test_histogram_range_from_first_buffer():
    h = AutoHistogram("h", "h", 10, buffer_size=2)
    h.fill(0.0, 1.0)
    h.fill(10.0, 1.0)   # buffer 满，range = [0, 10]
    h.fill(-5.0, 2.0)
    h.fill(10.0, 3.0)   # 上边界，进入最后一个 bin
    h.fill(11.0, 4.0)
    h.finalize()

    assert h.edges[0] == 0.0 and h.edges[-1] == 10.0
    assert h.get_bin_content(0) == 2.0
    assert h.get_bin_content(10) == 1.0 + 3.0
    assert h.get_bin_content(11) == 4.0


def test_shared_binning_with_many_fills():
    module = MonitoringModule("output")
    pair = module.book_bin_sets(["score"], output=True)[0]

    rng = np.random.default_rng(9)
    total = [0.0, 0.0]
    for i, v in enumerate(rng.normal(0.0, 1.0, size=5_000)):
        target = i % 2 == 0
        pair.fill(float(v), target, 1.0)
        total[SIGNAL if target else BACKGROUND] += 1.0

    bkg, sig = pair.histo
    assert bkg.buffered < bkg.buffer_size
    pair.finalize()

    assert np.array_equal(bkg.edges, sig.edges)
    assert bkg.contents.sum() == pytest.approx(total[BACKGROUND])
    assert sig.contents.sum() == pytest.approx(total[SIGNAL])
