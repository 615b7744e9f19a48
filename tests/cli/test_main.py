import json
import pytest
import yaml
from pathlib import Path
from pyv_csim.cli.main import main, build_parser


@pytest.fixture
def trace_file(tmp_path: Path) -> Path:
    trace = tmp_path / "dirty.trace"
    trace.write_text("S 0,1\nL 1,1\n")
    return trace


def test_run_prints_summary(trace_file, capsys):
    rc = main(["run", "-s", "0", "-E", "1", "-b", "0", "-t", str(trace_file)])

    assert rc == 0
    out = capsys.readouterr().out
    assert "hits:0 misses:2 evictions:1 dirty_bytes_in_cache:0 dirty_bytes_evicted:1" in out


def test_run_with_yaml_config(trace_file, tmp_path: Path, capsys):
    cfg = tmp_path / "cache.yaml"
    with open(cfg, "w") as f:
        yaml.dump({"set_bits": 1, "associativity": 1, "block_bits": 0,
                   "trace": str(trace_file)}, f)

    rc = main(["run", "-c", str(cfg)])

    assert rc == 0
    # addresses 0 and 1 land in different sets
    assert "hits:0 misses:2 evictions:0 dirty_bytes_in_cache:1 dirty_bytes_evicted:0" \
        in capsys.readouterr().out


def test_run_writes_report(trace_file, tmp_path: Path):
    report_dir = tmp_path / "out"
    rc = main(["run", "-s", "0", "-E", "2", "-b", "0", "-t", str(trace_file),
               "--report", str(report_dir), "--check-invariants"])

    assert rc == 0
    report = json.loads((report_dir / "report.json").read_text())
    assert report["stats"]["misses"] == 2
    assert (report_dir / "report.html").exists()


def test_run_missing_trace_fails(tmp_path: Path, caplog):
    rc = main(["run", "-s", "0", "-E", "1", "-b", "0", "-t", str(tmp_path / "nope.trace")])
    assert rc == 1
    assert "Error opening" in caplog.text


def test_run_without_trace_fails(caplog):
    assert main(["run", "-s", "0", "-E", "1", "-b", "0"]) == 1
    assert "trace file is required" in caplog.text


def test_run_rejects_zero_associativity(trace_file, caplog):
    rc = main(["run", "-s", "0", "-E", "0", "-b", "0", "-t", str(trace_file)])
    assert rc == 1
    assert "Associativity" in caplog.text


def test_run_reports_bad_trace_line(tmp_path: Path, caplog):
    trace = tmp_path / "bad.trace"
    trace.write_text("L 0,1\nX 4,1\n")
    rc = main(["run", "-s", "0", "-E", "1", "-b", "0", "-t", str(trace)])
    assert rc == 1
    assert "line 2: Invalid operator" in caplog.text


def test_verbose_flag_is_optional():
    args = build_parser().parse_args(["run", "-t", "x.trace"])
    assert args.verbose is None
    args = build_parser().parse_args(["run", "-v", "-t", "x.trace"])
    assert args.verbose is True


def test_decode(capsys):
    rc = main(["decode", "-s", "3", "-b", "6", "1f6a"])
    assert rc == 0
    # 0x1f6a = 0b1111_101_101010: tag 0b1111, set 5, offset 42
    assert capsys.readouterr().out.strip() == "address: 0x1f6a set: 5 tag: 0xf offset: 42"


def test_decode_rejects_bad_address(caplog):
    assert main(["decode", "-s", "1", "-b", "1", "xyz"]) == 1


def test_run_rejects_mistyped_yaml_value(trace_file, tmp_path: Path, caplog):
    cfg = tmp_path / "cache.yaml"
    cfg.write_text("set_bits: '2'\n")

    rc = main(["run", "-c", str(cfg), "-t", str(trace_file)])

    assert rc == 1
    assert "Config key 'set_bits'" in caplog.text


def test_run_ignores_yaml_key_shadowing_method(trace_file, tmp_path: Path, capsys, caplog):
    cfg = tmp_path / "cache.yaml"
    cfg.write_text("geometry: 3\n")

    rc = main(["run", "-c", str(cfg), "-s", "0", "-E", "1", "-b", "0", "-t", str(trace_file)])

    assert rc == 0
    assert "Ignoring unknown config key 'geometry'" in caplog.text
    assert "hits:0 misses:2 evictions:1" in capsys.readouterr().out


def test_run_rejects_address_width_beyond_tag_storage(trace_file, tmp_path: Path, caplog):
    cfg = tmp_path / "cache.yaml"
    cfg.write_text("address_width: 72\n")

    rc = main(["run", "-c", str(cfg), "-s", "0", "-E", "1", "-b", "0", "-t", str(trace_file)])

    assert rc == 1
    assert "Address width" in caplog.text


@pytest.mark.parametrize("address, extra", [
    ("-1", []),
    ("100", ["--address-width", "8"]),
])
def test_decode_rejects_out_of_range_address(address, extra, capsys, caplog):
    rc = main(["decode", "-s", "1", "-b", "1", *extra, address])
    assert rc == 1
    assert "does not fit" in caplog.text
    assert capsys.readouterr().out == ""


def test_decode_accepts_largest_address(capsys):
    rc = main(["decode", "-s", "0", "-b", "0", "--address-width", "8", "ff"])
    assert rc == 0
    assert "tag: 0xff" in capsys.readouterr().out
