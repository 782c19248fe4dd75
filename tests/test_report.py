import pandas as pd
import pytest

from conftest import write_log
from fstrace.record import filesystem_record, stream_record
from fstrace.report import TraceAnalyzer


@pytest.fixture()
def trace_file(tmp_path):
    records = [
        stream_record(1, "n1", "/a", "read", 100, 0, 100, -1, 100, 10),
        stream_record(1, "n1", "/a", "read", 100, 100, 150, -1, 50, 20),
        stream_record(1, "n1", "/a", "close", 100, 150, -100000, -1, -1, 5),
        filesystem_record(2, "n2", "/a", "open", 100, 30),
    ]
    return write_log(tmp_path / "q55_run1.log", records, noise=["INFO unrelated"])


@pytest.fixture()
def analyzer(trace_file):
    analyzer = TraceAnalyzer(trace_file)
    analyzer.load_data()
    return analyzer


def test_compute_statistics(analyzer):
    results = analyzer.compute_statistics(("read", "close"))

    assert list(results) == ["bytes", "time", "time:read", "time:close"]
    assert results["bytes"].per_node == {"n1": 150, "n2": 0}
    assert results["time"].total == 65
    assert results["time:read"].per_node == {"n1": 30}
    assert analyzer.operations == {"read", "close", "open"}


def test_summary_row(analyzer):
    results = analyzer.compute_statistics(("read", "close"))

    row = analyzer.summary_row("run1", results)

    assert row == "run1,q55_run1.log,4,150,37,4,all,65,16,2,read,30,15,1,close,5,5"


def test_print_summary(analyzer, capsys):
    analyzer.print_summary(analyzer.compute_statistics())

    out = capsys.readouterr().out
    assert "Data read per node : count=4, total=150, mean=37" in out
    assert "n1 --> 150" in out
    assert "Time taken per node: operation(open)" in out
    assert "n1 --> 3 (1 distinct)" in out


def test_export_results(analyzer, tmp_path):
    output = tmp_path / "results.csv"

    analyzer.export_results(analyzer.compute_statistics(("read",)), output)

    df = pd.read_csv(output)
    row = df[(df["Statistic"] == "Data read per node") & (df["Node"] == "n1")].iloc[0]
    assert row["Value"] == 150
    assert set(df["Operation"].dropna()) == {"read"}


def test_generate_visualizations(analyzer, tmp_path):
    written = analyzer.generate_visualizations(analyzer.compute_statistics(), tmp_path / "plots")

    assert len(written) == 3
    for path in written:
        assert (tmp_path / "plots" / path.split("/")[-1]).exists()


def test_visualizations_skipped_without_data(tmp_path):
    empty = tmp_path / "empty.log"
    empty.write_text("nothing to see\n")
    analyzer = TraceAnalyzer(empty)
    analyzer.load_data()

    assert analyzer.generate_visualizations(analyzer.compute_statistics(), tmp_path) == []
