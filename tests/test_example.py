from __future__ import annotations

import importlib.util
from pathlib import Path

from binmlp.logger import setup_logging

EXAMPLE = Path(__file__).resolve().parent.parent / 'example.py'


def _load_example():
    spec = importlib.util.spec_from_file_location('binmlp_example', EXAMPLE)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_example_writes_only_to_temp_dir(tmp_path, monkeypatch) -> None:
    out_dir = tmp_path / 'out'
    out_dir.mkdir()
    work = tmp_path / 'work'
    work.mkdir()
    monkeypatch.chdir(work)
    example = _load_example()
    monkeypatch.setattr(example.tempfile, 'gettempdir', lambda: str(out_dir))
    try:
        example.main()
    finally:
        setup_logging(stdout=False)
    assert list(work.iterdir()) == []
    names = {p.name for p in out_dir.iterdir()}
    assert {'binmlp_progress.txt', 'binmlp_example.hdf5', 'log.txt'} <= names
