"""Basic smoke tests."""

import voru


def test_version_defined() -> None:
    assert isinstance(voru.__version__, str)
