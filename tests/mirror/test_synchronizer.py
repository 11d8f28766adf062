"""Tests for creating and updating the mirror branch."""

from __future__ import annotations

import pytest

from src.mirror.errors import TransportError
from src.mirror.synchronizer import STAGE, MirrorSynchronizer, sync

from .conftest import FORK_URL, HEAD_SHA, STALE_SHA, FakeGateway


class TestFirstMirror:
    def test_creates_branch_and_pushes(self, gateway: FakeGateway) -> None:
        outcome = MirrorSynchronizer(gateway).sync(FORK_URL, "feature-x", HEAD_SHA)

        assert outcome.is_first_mirror is True
        assert outcome.commit_sha == HEAD_SHA
        assert outcome.commit_short_sha == HEAD_SHA[:7]
        assert gateway.calls == [
            ("branch_exists", "feature-x"),
            ("fetch_ref", FORK_URL, "feature-x", "feature-x", True),
            ("push_ref", "feature-x", False),
        ]
        assert gateway.upstream["feature-x"] == HEAD_SHA


class TestUpdate:
    def test_updates_through_temp_branch_and_force_pushes(self) -> None:
        gateway = FakeGateway(upstream_branches={"feature-x"})

        outcome = MirrorSynchronizer(gateway).sync(FORK_URL, "feature-x", HEAD_SHA)

        assert outcome.is_first_mirror is False
        assert gateway.calls == [
            ("branch_exists", "feature-x"),
            ("fetch_ref", FORK_URL, "feature-x", "temp-feature-x", True),
            ("force_branch", "feature-x", "temp-feature-x"),
            ("delete_branch", "temp-feature-x"),
            ("push_ref", "feature-x", True),
        ]
        assert gateway.upstream["feature-x"] == HEAD_SHA
        assert "temp-feature-x" not in gateway.local

    def test_custom_temp_prefix(self) -> None:
        gateway = FakeGateway(upstream_branches={"feature-x"})

        sync(gateway, FORK_URL, "feature-x", HEAD_SHA, temp_branch_prefix="mirror-tmp/")

        assert ("force_branch", "feature-x", "mirror-tmp/feature-x") in gateway.calls

    def test_repeated_update_leaves_same_tip(self) -> None:
        gateway = FakeGateway(upstream_branches={"feature-x"})
        synchronizer = MirrorSynchronizer(gateway)

        synchronizer.sync(FORK_URL, "feature-x", HEAD_SHA)
        first_tip = gateway.upstream["feature-x"]
        synchronizer.sync(FORK_URL, "feature-x", HEAD_SHA)

        assert first_tip == gateway.upstream["feature-x"] == HEAD_SHA
        assert first_tip != STALE_SHA


@pytest.mark.parametrize("upstream", [set(), {"feature-x"}])
def test_first_mirror_matches_branch_absence(upstream: set[str]) -> None:
    gateway = FakeGateway(upstream_branches=set(upstream))
    outcome = sync(gateway, FORK_URL, "feature-x", HEAD_SHA)
    assert outcome.is_first_mirror is (not upstream)


@pytest.mark.parametrize("operation", ["branch_exists", "fetch_ref", "push_ref"])
def test_failures_become_transport_errors(operation: str) -> None:
    gateway = FakeGateway()
    gateway.fail(operation, "remote hung up")

    with pytest.raises(TransportError) as excinfo:
        sync(gateway, FORK_URL, "feature-x", HEAD_SHA)

    assert excinfo.value.stage == STAGE
    assert "remote hung up" in str(excinfo.value)


def test_fetch_failure_leaves_upstream_untouched() -> None:
    gateway = FakeGateway(upstream_branches={"feature-x"})
    gateway.fail("fetch_ref")

    with pytest.raises(TransportError):
        sync(gateway, FORK_URL, "feature-x", HEAD_SHA)

    assert gateway.operations("push_ref") == []
    assert gateway.upstream["feature-x"] == STALE_SHA
