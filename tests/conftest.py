"""Shared Peak sources and helpers for the test-suite."""
from __future__ import annotations

from pathlib import Path
from typing import Dict

import pytest

QUEUE_SOURCE = """\
public class Queue<T> {
    List<T> items;
    public Queue() {
        items = new List<T>();
    }
}
"""

DICT_SOURCE = """\
public class Dict<K, V> {
    Queue<K> keys;
    Map<K, V> data;
}
"""

MAIN_SOURCE = """\
public class Main {
    Dict<String, Integer> d = new Dict<String, Integer>();
}
"""

UTIL_SOURCE = """\
public class Util {
    public static <K> List<K> wrap(K value) {
        return new List<K>{ value };
    }
}
"""


@pytest.fixture
def queue_source() -> str:
    return QUEUE_SOURCE


@pytest.fixture
def dict_source() -> str:
    return DICT_SOURCE


@pytest.fixture
def main_source() -> str:
    return MAIN_SOURCE


@pytest.fixture
def util_source() -> str:
    return UTIL_SOURCE


@pytest.fixture
def write_tree(tmp_path: Path):
    """Write {relative path: content} below tmp_path and return tmp_path."""
    def _write(files: Dict[str, str]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path
    return _write

