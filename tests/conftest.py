"""Pytest configuration: repo root on sys.path, Lambda source and snapshot fixtures."""

import importlib.util
import json
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so `infrastructure` is importable
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

LAMBDA_DIR = ROOT_DIR / "lambda"
SNAPSHOT_DIR = Path(__file__).resolve().parent / "__snapshots__"


def pytest_addoption(parser):
    parser.addoption(
        "--snapshot-update",
        action="store_true",
        default=False,
        help="Rewrite stored template snapshots",
    )


def _load_script(filename: str, module_name: str):
    # Inline sources have hyphenated file names, so load them by path
    spec = importlib.util.spec_from_file_location(module_name, LAMBDA_DIR / filename)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def ec2_start():
    return _load_script("lambda-ec2-start.py", "lambda_ec2_start")


@pytest.fixture
def ec2_stop():
    return _load_script("lambda-ec2-stop.py", "lambda_ec2_stop")


@pytest.fixture
def snapshot(request):
    """Compare data with tests/__snapshots__/<name>.json; --snapshot-update rewrites it."""
    update = request.config.getoption("--snapshot-update")

    def _match(name: str, data: dict) -> None:
        path = SNAPSHOT_DIR / f"{name}.json"
        if update:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
            return
        if not path.exists():
            pytest.fail(f"Snapshot {path.name} not found; run pytest --snapshot-update to record it")
        assert data == json.loads(path.read_text(encoding="utf-8"))

    return _match
