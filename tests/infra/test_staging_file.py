from __future__ import annotations

import pytest

from endpoint_shuffle.errors import StagingError
from endpoint_shuffle.infra import StagingFile


def test_write_all_overwrites_previous_contents(staging) -> None:
    assert staging.write_all(["http://a.com", "http://b.com", "http://c.com"]) == 3
    assert staging.write_all(["http://d.com"]) == 1
    assert staging.path.read_text(encoding="utf-8") == "http://d.com\n"
    assert staging.read_all() == ["http://d.com"]


def test_write_all_with_empty_list_truncates(staging) -> None:
    staging.write_all(["http://a.com"])
    staging.write_all([])
    assert staging.read_all() == []
    assert not staging.path.with_name(f".{staging.path.name}.tmp").exists()


def test_read_all_keeps_raw_lines(staging) -> None:
    staging.path.parent.mkdir(parents=True, exist_ok=True)
    staging.path.write_text("a.com\n\n  b.com  \r\nhttps://c.com", encoding="utf-8")
    assert staging.read_all() == ["a.com", "", "  b.com  ", "https://c.com"]


def test_missing_file_raises_staging_error(tmp_path) -> None:
    staging = StagingFile(tmp_path / "absent.txt")
    assert not staging.exists()
    with pytest.raises(StagingError):
        staging.read_all()


def test_unwritable_target_raises_staging_error(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    staging = StagingFile(blocker / "urls.txt")
    with pytest.raises(StagingError):
        staging.write_all(["http://a.com"])


def test_undecodable_bytes_raise_staging_error(staging) -> None:
    staging.path.parent.mkdir(parents=True, exist_ok=True)
    staging.path.write_bytes(b"a.com\n\xff\xfe.com\n")
    with pytest.raises(StagingError, match="failed to read"):
        staging.read_all()
