"""Shared fixtures: an in-memory management client."""

from __future__ import annotations

from typing import Any, List, Tuple

import pytest

from hdinsight_cli.cluster.models import ClusterDescriptor
from hdinsight_cli.service.client import ListClustersResult, StatusResult


def _cluster(name: str, state: str = "Operational", **kwargs: Any) -> ClusterDescriptor:
    kwargs.setdefault("location", "westus")
    return ClusterDescriptor(name=name, state=state, **kwargs)


class FakeClient:
    """Scripted ManagementClient.

    ``list_responses`` / ``validate_responses`` are consumed front to back;
    the last entry repeats.  Entries may be exceptions, which are raised.
    """

    def __init__(self) -> None:
        self.list_responses: List[Any] = [ListClustersResult(status_code=200)]
        self.validate_responses: List[Any] = [StatusResult(status_code=200)]
        self.create_status = 202
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    @staticmethod
    def _next(responses: List[Any]) -> Any:
        item = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(item, BaseException):
            raise item
        return item

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]

    def list_clusters(self) -> ListClustersResult:
        self.calls.append(("list_clusters", ()))
        return self._next(self.list_responses)

    def create_cluster(self, request: Any) -> StatusResult:
        self.calls.append(("create_cluster", (request,)))
        return StatusResult(status_code=self.create_status)

    def delete_cluster(self, name: str, location: str) -> None:
        self.calls.append(("delete_cluster", (name, location)))

    def validate_location(self, location: str) -> StatusResult:
        self.calls.append(("validate_location", (location,)))
        return self._next(self.validate_responses)

    def register_location(self, location: str) -> None:
        self.calls.append(("register_location", (location,)))


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def make_cluster():
    """Factory for ClusterDescriptor (default location westus, Operational)."""
    return _cluster
