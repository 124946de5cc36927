# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""
 Pytest configuration for copy-to-image tests.

Registers custom markers:
- integration: requires Docker engine
- slow: long build/pull

Provides `fake_engine`, an in-memory container engine recording every call it receives.
"""

from typing import Any, Dict, List, Tuple

import pytest
from docker.errors import APIError


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers so --strict-markers doesn’t error."""
    config.addinivalue_line("markers", "integration: requires Docker engine")
    config.addinivalue_line("markers", "slow: long build/pull")


class FakeEngine:
    """A scripted container engine.

    Each operation appends `(name, kwargs)` to `calls`. Setting `fail[name]` makes that
    operation raise `APIError` with the given message; `exit_status` is what the wait returns.
    """

    def __init__(self, config: Dict[str, Any] | None = None) -> None:
        self.image_config: Dict[str, Any] = config if config is not None else {}
        self.exit_status = 0
        self.fail: Dict[str, str] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if name in self.fail:
            raise APIError(self.fail[name])

    def names(self) -> List[str]:
        """Names of the operations called, in order."""
        return [name for name, _ in self.calls]

    def call(self, name: str) -> Dict[str, Any]:
        """Arguments of the first call to the named operation."""
        return next(kwargs for called, kwargs in self.calls if called == name)

    def inspect_image(self, image: str) -> Dict[str, Any]:
        self._record("inspect_image", image=image)
        return {"Id": "sha256:old", "Config": self.image_config}

    def create_container(self, image, user, entrypoint, binds) -> str:
        self._record("create_container", image=image, user=user, entrypoint=entrypoint, binds=binds)
        return "c0ffee"

    def start_container(self, container_id: str) -> None:
        self._record("start_container", container_id=container_id)

    def wait_container(self, container_id: str, timeout: float | None = None) -> int:
        self._record("wait_container", container_id=container_id, timeout=timeout)
        return self.exit_status

    def commit_container(self, container_id, repository, tag, run_config) -> str:
        self._record(
            "commit_container",
            container_id=container_id,
            repository=repository,
            tag=tag,
            run_config=run_config,
        )
        return "sha256:new"

    def remove_container(self, container_id: str) -> None:
        self._record("remove_container", container_id=container_id)


@pytest.fixture
def fake_engine() -> FakeEngine:
    """A fake engine whose image has a typical run configuration and no entrypoint."""
    return FakeEngine(
        config={
            "User": "app",
            "Env": ["PATH=/usr/local/bin:/usr/bin:/bin"],
            "Cmd": ["serve"],
            "Entrypoint": None,
            "Labels": {"org.example.team": "infra"},
        }
    )
