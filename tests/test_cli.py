import gzip
import logging
import struct

import pytest

from layoutdump.binary.codecs.bytecursor import ByteCursor
from layoutdump.binary.reader import detect_format, dump_file
from layoutdump.cli import main, main_gds2, main_oas
from streams import gds_record, oasis_file

GDS = gds_record(0x00, 0x02, struct.pack(">h", 600)) + gds_record(0x04, 0x00)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    # the CLI configures the root logger against the captured stderr
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_detect_format():
    assert detect_format(ByteCursor(oasis_file())) == "oasis"
    assert detect_format(ByteCursor(GDS)) == "gds2"
    assert detect_format(ByteCursor(b"")) == "gds2"


def test_dump_file_in_memory_and_gzip():
    lines = []
    assert dump_file(GDS, write_line=lines.append) == "gds2"
    plain = list(lines)

    lines.clear()
    assert dump_file(gzip.compress(GDS), write_line=lines.append) == "gds2"
    assert lines == plain

    lines.clear()
    assert dump_file(gzip.compress(oasis_file()), write_line=lines.append) == "oasis"
    assert lines[0].endswith("magic bytes")


def test_dump_file_rejects_unknown_format():
    with pytest.raises(ValueError):
        dump_file(GDS, fmt="cif", write_line=lambda _: None)


def test_cli_dumps_file(tmp_path, capsys):
    p = tmp_path / "lib.gds"
    p.write_bytes(GDS)
    assert main([str(p)]) == 0
    out = capsys.readouterr().out
    assert "HEADER" in out
    assert out.splitlines()[-1].endswith("ENDLIB")


def test_cli_gzip_file(tmp_path, capsys):
    p = tmp_path / "chip.oas.gz"
    p.write_bytes(gzip.compress(oasis_file()))
    assert main_oas([str(p)]) == 0
    assert capsys.readouterr().out.splitlines()[-1].endswith("tail")


def test_cli_width_and_short_mode(tmp_path, capsys):
    p = tmp_path / "chip.oas"
    p.write_bytes(oasis_file())
    assert main(["-n", "4", "-s", str(p)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "000000000   25 53 45 4d  magic bytes"
    assert out[1] == "000000004 + ..."


def test_cli_forced_format(tmp_path, capsys):
    p = tmp_path / "chip.oas"
    p.write_bytes(oasis_file())
    assert main(["-f", "gds2", str(p)]) == 2
    assert "*** ERROR:" in capsys.readouterr().err


def test_cli_format_error(tmp_path, capsys):
    p = tmp_path / "lib.gds"
    p.write_bytes(GDS + b"\x00" * 8)
    assert main_oas([str(p)]) == 2
    err = capsys.readouterr().err
    assert "*** ERROR: Format error (missing magic bytes) (position=13)" in err


def test_cli_usage_and_bad_width(tmp_path, capsys):
    assert main([]) == 1
    assert main_gds2(["-h"]) == 1

    p = tmp_path / "lib.gds"
    p.write_bytes(GDS)
    assert main_gds2(["-n", "0", str(p)]) == 2
    assert "Invalid width specification" in capsys.readouterr().err


def test_cli_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.gds")]) == 2
    assert "*** ERROR:" in capsys.readouterr().err
