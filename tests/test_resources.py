"""Tests du moteur de convergence et des ressources de fichiers."""

import logging
import os
import stat
from unittest.mock import MagicMock, patch

import pytest
import requests

from client_service.resources import (
    ConvergeReport,
    Converger,
    Directory,
    Execute,
    File,
    Link,
    Log,
    Notification,
    RemoteFile,
    Resource,
    ResourceCollection,
    ResourceError,
    Template,
    User,
)
from client_service.resources.templates import TemplateRenderer

from conftest import completed, make_node


class Recorder(Resource):
    """Ressource de test qui trace ses déclenchements"""

    resource_type = 'recorder'
    allowed_actions = ('touch', 'nothing')
    default_action = 'nothing'

    def __init__(self, name, calls, **kwargs):
        super().__init__(name, **kwargs)
        self.calls = calls

    def action_touch(self, context):
        self.calls.append(self.name)
        return True


def converge(context, *resources):
    collection = ResourceCollection()
    for resource in resources:
        collection.add(resource)
    return Converger(collection, context).converge()


def _mode(path):
    return stat.S_IMODE(os.stat(path).st_mode)


# ---------------------------------------------------------------------------
# Ressources de base
# ---------------------------------------------------------------------------


class TestResource:
    def test_key(self):
        assert Directory("/etc/chef").key == "directory[/etc/chef]"

    def test_invalid_action(self):
        with pytest.raises(ResourceError, match="invalide"):
            Directory("/etc/chef", action="explode")

    def test_invalid_timing(self):
        with pytest.raises(ResourceError):
            Notification("restart", "service[chef-client]", timing="later")

    def test_notifies_is_chainable(self):
        resource = File("/tmp/x").notifies("restart", "service[chef-client]")

        assert resource.describe()["notifies"] == [("restart", "service[chef-client]", "delayed")]

    def test_notifies_from_constructor(self):
        resource = File("/tmp/x", notifies=[("run", "execute[a]", "immediately")])

        assert resource.notifications[0].timing == "immediately"


class TestCollection:
    def test_duplicate_declaration(self):
        collection = ResourceCollection()
        collection.add(Directory("/etc/chef"))

        with pytest.raises(ResourceError, match="déjà déclarée"):
            collection.add(Directory("/etc/chef"))

    def test_lookup_and_order(self):
        collection = ResourceCollection()
        collection.add(Directory("/b"))
        collection.add(File("/a"))

        assert collection.keys() == ["directory[/b]", "file[/a]"]
        assert "file[/a]" in collection
        assert len(collection.of_type("file")) == 1
        with pytest.raises(ResourceError):
            collection.lookup("file[/missing]")

    def test_validate_unknown_target(self, make_context):
        resource = File("/tmp/x").notifies("restart", "service[chef-client]")

        with pytest.raises(ResourceError, match="inconnue"):
            converge(make_context(), resource)

    def test_validate_invalid_action_on_target(self, make_context, tmp_path):
        calls = []
        resource = File(str(tmp_path / "x")).notifies("restart", "recorder[r]")

        with pytest.raises(ResourceError, match="invalide"):
            converge(make_context(), resource, Recorder("r", calls))


# ---------------------------------------------------------------------------
# Fichiers, répertoires, liens
# ---------------------------------------------------------------------------


class TestDirectory:
    def test_create_recursive_and_idempotent(self, make_context, tmp_path):
        path = str(tmp_path / "a" / "b")
        context = make_context()

        first = converge(context, Directory(path, recursive=True, mode=0o700))
        second = converge(context, Directory(path, recursive=True, mode=0o700))

        assert os.path.isdir(path)
        assert _mode(path) == 0o700
        assert first.updated_count == 1
        assert second.updated_count == 0

    def test_non_recursive_missing_parent(self, make_context, tmp_path):
        with pytest.raises(ResourceError):
            converge(make_context(), Directory(str(tmp_path / "a" / "b")))

    def test_mode_fix_on_existing_directory(self, make_context, tmp_path):
        path = tmp_path / "conf"
        path.mkdir(mode=0o700)

        report = converge(make_context(), Directory(str(path), mode="0755"))

        assert report.updated_count == 1
        assert _mode(str(path)) == 0o755

    def test_delete(self, make_context, tmp_path):
        path = tmp_path / "gone"
        path.mkdir()
        (path / "file").write_text("x")

        converge(make_context(), Directory(str(path), recursive=True, action="delete"))

        assert not path.exists()


class TestFile:
    def test_create_update_and_idempotence(self, make_context, tmp_path):
        path = str(tmp_path / "client.rb")
        context = make_context()

        assert converge(context, File(path, content="a\n")).updated_count == 1
        assert converge(context, File(path, content="a\n")).updated_count == 0
        assert converge(context, File(path, content="b\n")).updated_count == 1

        with open(path) as f:
            assert f.read() == "b\n"

    def test_new_file_default_mode(self, make_context, tmp_path):
        path = str(tmp_path / "client.rb")

        converge(make_context(), File(path, content="x"))

        assert _mode(path) == 0o644

    def test_existing_mode_kept_on_update(self, make_context, tmp_path):
        path = tmp_path / "script"
        path.write_text("old")
        path.chmod(0o750)

        converge(make_context(), File(str(path), content="new"))

        assert _mode(str(path)) == 0o750

    def test_explicit_mode(self, make_context, tmp_path):
        path = str(tmp_path / "script")

        converge(make_context(), File(path, content="#!/bin/sh\n", mode=0o755))

        assert _mode(path) == 0o755

    def test_bytes_content(self, make_context, tmp_path):
        path = tmp_path / "data.plist"

        converge(make_context(), File(str(path), content=b"\x00\x01"))

        assert path.read_bytes() == b"\x00\x01"

    def test_dry_run_reports_without_writing(self, make_context, tmp_path):
        path = tmp_path / "client.rb"

        report = converge(make_context(dry_run=True), File(str(path), content="x"))

        assert not path.exists()
        assert report.dry_run
        assert report.was_updated(f"file[{path}]", "create")
        assert "seraient modifiées" in report.summary()

    def test_delete(self, make_context, tmp_path):
        path = tmp_path / "old.conf"
        path.write_text("x")
        context = make_context()

        assert converge(context, File(str(path), action="delete")).updated_count == 1
        assert converge(context, File(str(path), action="delete")).updated_count == 0
        assert not path.exists()


class TestLink:
    def test_create_and_idempotence(self, make_context, tmp_path):
        target = tmp_path / "sv" / "chef-client"
        target.mkdir(parents=True)
        path = str(tmp_path / "chef-client")
        context = make_context()

        assert converge(context, Link(path, to=str(target))).updated_count == 1
        assert converge(context, Link(path, to=str(target))).updated_count == 0
        assert os.readlink(path) == str(target)

    def test_repoints_existing_link(self, make_context, tmp_path):
        path = tmp_path / "link"
        path.symlink_to(tmp_path / "old")

        converge(make_context(), Link(str(path), to=str(tmp_path / "new")))

        assert os.readlink(str(path)) == str(tmp_path / "new")

    def test_refuses_to_replace_regular_file(self, make_context, tmp_path):
        path = tmp_path / "file"
        path.write_text("x")

        with pytest.raises(ResourceError, match="n'est pas un lien"):
            converge(make_context(), Link(str(path), to="/elsewhere"))

    def test_delete(self, make_context, tmp_path):
        path = tmp_path / "link"
        path.symlink_to(tmp_path)

        converge(make_context(), Link(str(path), to="", action="delete"))

        assert not os.path.lexists(str(path))


class TestTemplate:
    @pytest.fixture
    def renderer(self, tmp_path):
        templates = tmp_path / "templates"
        templates.mkdir()
        (templates / "hello.j2").write_text(
            "{{ greeting }} {{ node.platform }} {{ node.chef_client.interval }}\n"
        )
        return TemplateRenderer(str(templates))

    def test_renders_node_and_variables(self, make_context, renderer, tmp_path):
        path = tmp_path / "out"

        converge(make_context(renderer=renderer),
                 Template(str(path), "hello.j2", variables={"greeting": "bonjour"}))

        assert path.read_text() == "bonjour ubuntu 1800\n"

    def test_missing_variable(self, make_context, renderer, tmp_path):
        with pytest.raises(ResourceError, match="hello.j2"):
            converge(make_context(renderer=renderer), Template(str(tmp_path / "out"), "hello.j2"))

    def test_missing_template(self, make_context, renderer, tmp_path):
        with pytest.raises(ResourceError):
            converge(make_context(renderer=renderer), Template(str(tmp_path / "out"), "absent.j2"))


class TestRemoteFile:
    def test_download(self, make_context, tmp_path):
        response = MagicMock(content=b"-----BEGIN PGP-----")
        path = tmp_path / "key"

        with patch("client_service.resources.files.requests.get", return_value=response) as get:
            report = converge(make_context(), RemoteFile(str(path), "http://example.com/key"))

        get.assert_called_once_with("http://example.com/key", timeout=30)
        response.raise_for_status.assert_called_once()
        assert path.read_bytes() == b"-----BEGIN PGP-----"
        assert report.updated_count == 1

    def test_http_error(self, make_context, tmp_path):
        with patch("client_service.resources.files.requests.get",
                   side_effect=requests.ConnectionError("refused")):
            with pytest.raises(ResourceError, match="téléchargement"):
                converge(make_context(), RemoteFile(str(tmp_path / "key"), "http://example.com/key"))


# ---------------------------------------------------------------------------
# Notifications et gardes
# ---------------------------------------------------------------------------


class TestNotifications:
    def test_immediate_runs_before_next_resource(self, make_context, tmp_path):
        calls = []
        first = File(str(tmp_path / "a"), content="a").notifies("touch", "recorder[r]", "immediately")
        second = Recorder("second", calls, action="touch")

        converge(make_context(), first, second, Recorder("r", calls))

        assert calls == ["r", "second"]

    def test_delayed_runs_once_at_end(self, make_context, tmp_path):
        calls = []
        first = File(str(tmp_path / "a"), content="a").notifies("touch", "recorder[r]")
        second = File(str(tmp_path / "b"), content="b").notifies("touch", "recorder[r]")
        last = Recorder("last", calls, action="touch")

        report = converge(make_context(), first, second, Recorder("r", calls), last)

        assert calls == ["last", "r"]
        assert report.was_updated("recorder[r]", "touch")

    def test_no_notification_without_change(self, make_context, tmp_path):
        path = tmp_path / "a"
        path.write_text("a")
        calls = []
        unchanged = File(str(path), content="a").notifies("touch", "recorder[r]", "immediately")

        converge(make_context(), unchanged, Recorder("r", calls))

        assert calls == []

    def test_notification_chain(self, make_context, tmp_path):
        calls = []
        source = File(str(tmp_path / "a"), content="a").notifies("touch", "recorder[middle]", "immediately")
        middle = Recorder("middle", calls).notifies("touch", "recorder[end]")

        converge(make_context(), source, middle, Recorder("end", calls))

        assert calls == ["middle", "end"]


class TestGuards:
    def test_only_if_false(self, make_context, tmp_path):
        path = tmp_path / "a"

        converge(make_context(), File(str(path), content="a", only_if=lambda: False))

        assert not path.exists()

    def test_not_if_true(self, make_context, tmp_path):
        path = tmp_path / "a"

        converge(make_context(), File(str(path), content="a", not_if=lambda: True))

        assert not path.exists()

    def test_string_guard_uses_exit_code(self, make_context, fake_run, tmp_path):
        path = tmp_path / "a"
        fake_run.return_value = completed(returncode=1)

        converge(make_context(), File(str(path), content="a", only_if="test -f /etc/chef/client.rb"))

        assert not path.exists()
        assert fake_run.call_args[0][0] == "test -f /etc/chef/client.rb"
        assert fake_run.call_args[1]["shell"] is True


# ---------------------------------------------------------------------------
# Commandes, utilisateurs, logs
# ---------------------------------------------------------------------------


class TestExecute:
    def test_runs_shell_command(self, make_context, fake_run):
        report = converge(make_context(), Execute("apt-get update"))

        assert fake_run.call_args[0][0] == "apt-get update"
        assert fake_run.call_args[1]["shell"] is True
        assert report.was_updated("execute[apt-get update]", "run")

    def test_failure(self, make_context, fake_run):
        fake_run.return_value = completed(returncode=2, stderr="E: lock held\n")

        with pytest.raises(ResourceError, match="lock held"):
            converge(make_context(), Execute("update", command="apt-get update"))

    def test_dry_run_does_not_execute(self, make_context, fake_run):
        report = converge(make_context(dry_run=True), Execute("apt-get update"))

        fake_run.assert_not_called()
        assert report.updated_count == 1

    def test_action_nothing(self, make_context, fake_run):
        converge(make_context(), Execute("apt-get update", action="nothing"))

        fake_run.assert_not_called()


class TestUser:
    def test_existing_user_untouched(self, make_context, fake_run):
        with patch.object(User, "exists", return_value=True):
            report = converge(make_context(), User("chef", system=True))

        fake_run.assert_not_called()
        assert report.updated_count == 0

    def test_creates_missing_user(self, make_context, fake_run):
        with patch.object(User, "exists", return_value=False):
            converge(make_context(), User("chef", system=True, shell="/bin/false", home="/var/lib/chef"))

        assert fake_run.call_args[0][0] == [
            "useradd", "--system", "-s", "/bin/false", "-d", "/var/lib/chef", "chef",
        ]

    def test_platform_commands(self):
        user = User("chef", system=True, shell="/bin/false")

        assert user._create_command("freebsd") == ["pw", "useradd", "chef", "-s", "/bin/false"]
        assert user._create_command("openbsd") == ["useradd", "-r", "-s", "/bin/false", "chef"]

    def test_skipped_on_macos(self, make_context, fake_run):
        with patch.object(User, "exists", return_value=False):
            report = converge(make_context(node=make_node("mac_os_x", "10.8.2")), User("chef"))

        fake_run.assert_not_called()
        assert report.updated_count == 0


class TestLog:
    def test_writes_at_level(self, make_context, caplog):
        caplog.set_level(logging.INFO, logger="ChefClientService")

        converge(make_context(), Log("configurez rc.local", level="warning"))

        assert ("ChefClientService", logging.WARNING, "configurez rc.local") in caplog.record_tuples

    def test_unknown_level(self):
        with pytest.raises(ResourceError):
            Log("message", level="loud")


class TestConvergeReport:
    def test_summary(self):
        report = ConvergeReport()
        report.total = 3
        report.record(Directory("/etc/chef"), "create")

        assert report.summary() == "1/3 ressources modifiées"
        assert report.was_updated("directory[/etc/chef]")
        assert not report.was_updated("directory[/etc/chef]", "delete")
