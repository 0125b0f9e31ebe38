"""Tests du gestionnaire de service."""

from unittest.mock import MagicMock, patch

import pytest

from client_service.core.binary import ClientBinaryNotFound
from client_service.core.config import ServiceConfig
from client_service.services.service_manager import ServiceManager

from conftest import CLIENT_BIN, completed, make_node


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[chef_client]\n")
    return path


def make_manager(config_path, node=None, dry_run=True, content=None):
    if content is not None:
        config_path.write_text(content)
    return ServiceManager(ServiceConfig(str(config_path)), node=node or make_node(), dry_run=dry_run)


class TestInitialisation:
    def test_attributes_from_node_and_overrides(self, config_path):
        manager = make_manager(config_path, content="[chef_client]\ninterval = 600\n")

        assert manager.init_style == "init"
        assert manager.attributes["interval"] == 600
        assert manager.fork_overridden is False

    def test_node_overrides(self, config_path):
        manager = make_manager(config_path, content="[node]\nplatform = arch\n")

        assert manager.node.platform == "arch"
        assert manager.init_style == "arch"

    def test_fork_override_detected(self, config_path):
        manager = make_manager(config_path, content="[chef_client]\nfork = false\n")

        assert manager.fork_overridden is True


class TestInstall:
    def test_dry_run_install(self, config_path, located_client, fake_run):
        manager = make_manager(config_path)

        assert manager.install_service() is True

        report = manager.last_report
        assert report.dry_run
        assert report.was_updated("template[/etc/init.d/chef-client]", "create")
        assert report.was_updated("service[chef-client]", "restart")
        assert manager.attributes["bin"] == CLIENT_BIN

    def test_requires_admin(self, config_path, located_client):
        manager = make_manager(config_path, dry_run=False)

        with patch.object(ServiceManager, "is_admin", return_value=False):
            assert manager.install_service() is False

        located_client.assert_not_called()

    def test_missing_binary_propagates(self, config_path):
        manager = make_manager(config_path)

        with patch("client_service.recipes.service.locate_client_binary",
                   side_effect=ClientBinaryNotFound([CLIENT_BIN])):
            with pytest.raises(ClientBinaryNotFound):
                manager.install_service()

    def test_configuration_error_returns_false(self, config_path, located_client):
        manager = make_manager(config_path, node=make_node("freebsd", "9.1"),
                               content="[chef_client]\ninit_style = init\n")

        assert manager.install_service() is False


class TestRepository:
    def test_nothing_to_configure(self, config_path):
        assert make_manager(config_path).configure_repository() is True

    def test_apt(self, config_path, fake_run):
        manager = make_manager(config_path, content="[chef_client]\nrepository_style = apt\n")

        with patch("client_service.resources.files.requests.get",
                   return_value=MagicMock(content=b"key")):
            assert manager.configure_repository() is True

        assert manager.last_report.was_updated("file[/etc/apt/sources.list.d/opscode.list]")
        fake_run.assert_not_called()

    def test_missing_codename(self, config_path):
        manager = make_manager(config_path, node=make_node(codename=None),
                               content="[chef_client]\nrepository_style = apt\n")

        assert manager.configure_repository() is False


class TestLifecycle:
    def test_status(self, config_path, located_client, fake_run):
        fake_run.return_value = completed(returncode=3)
        manager = make_manager(config_path)

        with patch("client_service.services.base_service.find_client_processes", return_value=[]):
            status = manager.get_service_status()

        assert status["init_style"] == "init"
        assert status["running"] is False
        assert status["platform"] == "ubuntu"
        assert status["client_bin"] == CLIENT_BIN

    def test_status_with_unsupported_family(self, config_path, located_client):
        manager = make_manager(config_path, node=make_node("freebsd", "9.1"),
                               content="[chef_client]\ninit_style = init\n")

        status = manager.get_service_status()

        assert status["installed"] is False
        assert "freebsd" in status["error"]

    def test_start_dry_run(self, config_path, located_client, fake_run):
        fake_run.return_value = completed(returncode=3)
        manager = make_manager(config_path)

        assert manager.start_service() is True
        assert [call[0][0] for call in fake_run.call_args_list] == [["/etc/init.d/chef-client", "status"]]

    def test_start_without_binary(self, config_path, fake_run):
        fake_run.return_value = completed(returncode=3)
        manager = make_manager(config_path)

        with patch("client_service.recipes.service.locate_client_binary",
                   side_effect=ClientBinaryNotFound([CLIENT_BIN])):
            assert manager.start_service() is True


class TestClientRun:
    def test_client_command(self, config_path):
        manager = make_manager(config_path, content=(
            "[chef_client]\nlog_file = client.log\nenvironment = production\n"
        ))

        assert manager.client_command() == [
            "/usr/bin/chef-client", "-c", "/etc/chef/client.rb",
            "-L", "/var/log/chef/client.log", "-E", "production",
        ]

    def test_client_command_minimal(self, config_path):
        assert make_manager(config_path).client_command() == [
            "/usr/bin/chef-client", "-c", "/etc/chef/client.rb",
        ]

    def test_run_once_dry_run(self, config_path):
        with patch("client_service.services.service_manager.subprocess.run") as run:
            assert make_manager(config_path).run_client_once() == 0

        run.assert_not_called()

    def test_run_once(self, config_path):
        with patch("client_service.services.service_manager.subprocess.run",
                   return_value=completed(returncode=1)) as run:
            assert make_manager(config_path, dry_run=False).run_client_once() == 1

        assert run.call_args[0][0][0] == "/usr/bin/chef-client"

    def test_scheduler(self, config_path, located_client):
        manager = make_manager(config_path, content="[chef_client]\ninterval = 120\nsplay = 0\n")

        scheduler = manager.create_scheduler()

        assert scheduler.interval == 120
        assert scheduler.splay == 0
        assert scheduler.run_callback == manager.run_client_once
