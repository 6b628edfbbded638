from pathlib import Path

import pytest

from tracker.config import DELETE_CASCADE, TrackerConfig, reset_config


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def tracker_config(tmp_path: Path) -> TrackerConfig:
    return TrackerConfig(
        api_url="http://store.test",
        api_timeout_seconds=5,
        data_dir=tmp_path / "data",
        host="127.0.0.1",
        port=3000,
        max_body_bytes=1024,
        delete_policy=DELETE_CASCADE,
        log_level="INFO",
        log_dir=None,
    )


SAMPLE_CSV = (
    "Name,Task ID,Release Version,Feature Area,Section/Column,Due Date,Parent task,Assignee,Notes,Comment\n"
    "Child,,R1,Auth,In Progress,2024-05-01,Parent,bo,,\n"
    "Parent,T-1,R1,Auth,Not Started,2024-06-01,,al,note a,comment b\n"
    ",,R2,,,,,,,\n"
    "Orphan,,R2,,Complete,,Missing,,,\n"
)


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV
