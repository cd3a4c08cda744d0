"""Root conftest.py for the instrlink monorepo.

Puts every package's ``src`` directory on the import path, registers the
custom markers, and marks tests that stand in mocks for real transports with
``uses_mock`` so hardware-free coverage can be told apart from bench runs.
"""

from __future__ import annotations

import ast
import inspect
import sys
import textwrap
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.nodes import Item


PROJECT_ROOT = Path(__file__).parent
for pkg_dir in sorted(PROJECT_ROOT.glob("instrlink-*/src")):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))

# Names whose appearance in a test body means a transport was faked.
MOCK_NAMES = frozenset(
    {
        "MagicMock",
        "Mock",
        "patch",
        "create_autospec",
        "mocker",
        "RecordingConnector",
        "StubConnector",
    }
)


def pytest_configure(config: Config) -> None:
    """Register custom markers.

    Args:
        config: pytest configuration object.
    """
    config.addinivalue_line("markers", "uses_mock: Test fakes the transport layer")
    config.addinivalue_line("markers", "integration: Test requires a connected instrument")
    config.addinivalue_line("markers", "slow: Slow-running test")


def _names_used(source: str) -> set[str]:
    """Return every identifier and attribute name referenced in *source*."""
    try:
        tree = ast.parse(textwrap.dedent(source))
    except SyntaxError:
        return set()
    names: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name):
            names.add(node.id)
        elif isinstance(node, ast.Attribute):
            names.add(node.attr)
        elif isinstance(node, ast.arg):
            names.add(node.arg)
    return names


def _uses_mock(item: Item) -> bool:
    """Check whether a collected test fakes its transport.

    Args:
        item: pytest test item.

    Returns:
        True if the test body or its module helpers reference a mock.
    """
    obj = getattr(item, "obj", None)
    if obj is None:
        return False
    try:
        source = inspect.getsource(obj)
    except (OSError, TypeError):
        return False
    names = _names_used(source)
    if names & MOCK_NAMES:
        return True
    # Module-level helpers such as _make_mock_pyvisa() hide the mock itself.
    return any("mock" in name.lower() for name in names)


def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Auto-detect and mark tests that use mocking.

    Args:
        config: pytest configuration object.
        items: List of collected test items.
    """
    for item in items:
        if item.get_closest_marker("uses_mock") is None and _uses_mock(item):
            item.add_marker(pytest.mark.uses_mock)


def pytest_report_header(config: Config) -> list[str]:
    """Add a header line naming the suite."""
    return ["instrlink monorepo test suite"]
