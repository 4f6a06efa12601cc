import gzip
from datetime import date
from pathlib import Path

import pytest

import create_mock_logs
from log_backup import extract_date_from_filename


@pytest.mark.parametrize(
    "pattern, expected",
    [
        ("app-YYYYMMDD.log.gz", "app-20240305.log.gz"),
        ("nginx-YYYY-MM-DD.log", "nginx-2024-03-05.log"),
        ("access_YYYY/MM/DD.log.gz", "access_2024/03/05.log.gz"),
        ("system_YYYY_MM_DD.log.gz", "system_2024_03_05.log.gz"),
    ],
)
def test_render_filename(pattern: str, expected: str) -> None:
    assert create_mock_logs.render_filename(pattern, date(2024, 3, 5)) == expected


def test_render_filename_requires_token() -> None:
    with pytest.raises(ValueError):
        create_mock_logs.render_filename("app.log", date(2024, 3, 5))


def test_make_mock_log_writes_gzip(tmp_path: Path) -> None:
    log_path = create_mock_logs.make_mock_log(
        tmp_path, "app-YYYYMMDD.log.gz", date(2024, 3, 5), lines=3
    )

    assert log_path == tmp_path / "app-20240305.log.gz"
    with gzip.open(log_path, "rt", encoding="utf-8") as handle:
        lines = handle.read().splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("2024-03-05")
    assert extract_date_from_filename(log_path.name) == date(2024, 3, 5)


def test_make_mock_log_creates_nested_directories(tmp_path: Path) -> None:
    log_path = create_mock_logs.make_mock_log(tmp_path, "access_YYYY/MM/DD.log", date(2024, 3, 5))

    assert log_path == tmp_path / "access_2024" / "03" / "05.log"
    assert log_path.read_text().count("\n") == 10


def test_main_creates_files_going_back_in_time(tmp_path: Path) -> None:
    exit_code = create_mock_logs.main(
        [
            "--directory",
            str(tmp_path),
            "--pattern",
            "web-YYYY-MM-DD.log",
            "--count",
            "3",
            "--step-days",
            "7",
            "--start-days-ago",
            "1",
        ],
        today=date(2024, 12, 15),
    )

    assert exit_code == 0
    assert sorted(path.name for path in tmp_path.iterdir()) == [
        "web-2024-11-30.log",
        "web-2024-12-07.log",
        "web-2024-12-14.log",
    ]


@pytest.mark.parametrize(
    "extra_args",
    [
        ["--count", "0"],
        ["--step-days", "0"],
        ["--start-days-ago", "-1"],
        ["--pattern", "app.log"],
    ],
)
def test_main_rejects_invalid_arguments(tmp_path: Path, extra_args) -> None:
    assert create_mock_logs.main(["--directory", str(tmp_path), *extra_args]) == 2
