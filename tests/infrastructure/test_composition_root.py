"""Tests for composition root DI container."""

from unittest.mock import patch

import pytest

from systemd_rollout.application.use_cases.update_host import HostUpdater
from systemd_rollout.composition_root import (
    RolloutContainer,
    create_container,
    fabric_session_factory,
)
from systemd_rollout.domain.errors import ConfigurationError
from systemd_rollout.infrastructure.adapters.archive_transfer import ArchiveTransfer
from systemd_rollout.infrastructure.adapters.fabric_session import FabricRemoteSession


class TestCompositionRoot:
    def test_create_container(self, make_target, make_session, run_context):
        targets = [make_target("10.0.0.1"), make_target("10.0.0.2")]

        container = create_container(targets, run_context, session_factory=lambda t: make_session())

        assert isinstance(container, RolloutContainer)
        assert container.run_context is run_context
        assert [u.host for u in container.updaters] == ["10.0.0.1", "10.0.0.2"]
        assert all(isinstance(u, HostUpdater) for u in container.updaters)
        assert container.rolling_update is not None

    def test_nothing_shared_between_hosts(self, make_target, make_session, run_context):
        targets = [make_target("10.0.0.1"), make_target("10.0.0.2")]

        first, second = create_container(
            targets, run_context, session_factory=lambda t: make_session()
        ).updaters

        assert first.session is not second.session
        assert first.stager is not second.stager
        assert first.health_checker is not second.health_checker
        assert isinstance(first.stager, ArchiveTransfer)

    def test_fabric_sessions_by_default(self, make_target, run_context):
        targets = [make_target("10.0.0.1"), make_target("10.0.0.2")]
        key = object()
        path = "systemd_rollout.composition_root.load_private_key"
        with patch(path, return_value=key) as load:
            container = create_container(targets, run_context)

        load.assert_called_once_with(targets[0].private_key)
        session = container.updaters[0].session
        assert isinstance(session, FabricRemoteSession)
        assert session.target is targets[0]
        assert session._pkey is key

    def test_bad_key_fails_before_connecting(self, make_target):
        with pytest.raises(ConfigurationError):
            fabric_session_factory([make_target(private_key="/nonexistent/id_ed25519")])
