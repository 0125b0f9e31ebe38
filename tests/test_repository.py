"""Tests de la recette du dépôt APT Opscode."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from client_service.core.config import ConfigurationError
from client_service.recipes.base import Recipe
from client_service.recipes.repository import (
    APT_KEY_URL,
    SOURCES_LIST,
    apt_source_line,
    compile_repository_recipe,
)
from client_service.resources import Converger

from conftest import make_attributes, make_node


def _recipe(codename="precise", **overrides):
    node = make_node(codename=codename)
    return Recipe(node, make_attributes(node, **overrides))


class TestDeclaration:
    def test_source_line(self):
        assert apt_source_line("precise") == "deb http://apt.opscode.com precise-0.10 main\n"

    def test_nothing_without_style(self):
        assert len(compile_repository_recipe(_recipe()).collection) == 0

    def test_unknown_style_warns(self, caplog):
        caplog.set_level(logging.WARNING, logger="ChefClientService")

        recipe = compile_repository_recipe(_recipe(repository_style="yum"))

        assert len(recipe.collection) == 0
        assert "yum" in caplog.text

    def test_apt_resources(self):
        collection = compile_repository_recipe(_recipe(repository_style="apt")).collection

        assert collection.keys() == [
            "directory[/var/cache/chef]",
            "remote_file[/var/cache/chef/opscode.gpg.key]",
            "execute[add opscode apt key]",
            f"file[{SOURCES_LIST}]",
            "execute[apt-get update]",
        ]

        key = collection.lookup("remote_file[/var/cache/chef/opscode.gpg.key]")
        assert key.source == APT_KEY_URL
        assert key.describe()["notifies"] == [("run", "execute[add opscode apt key]", "immediately")]

        add_key = collection.lookup("execute[add opscode apt key]")
        assert add_key.command == "apt-key add /var/cache/chef/opscode.gpg.key"
        assert add_key.actions == ["nothing"]

        sources = collection.lookup(f"file[{SOURCES_LIST}]")
        assert sources.content == "deb http://apt.opscode.com precise-0.10 main\n"
        assert sources.describe()["notifies"] == [("run", "execute[apt-get update]", "immediately")]
        assert collection.lookup("execute[apt-get update]").actions == ["nothing"]

    def test_cache_directory_not_redeclared(self):
        recipe = _recipe(repository_style="apt")
        recipe.directory("/var/cache/chef", owner="root")

        compile_repository_recipe(recipe)

        assert len(recipe.collection.of_type("directory")) == 1

    def test_missing_codename(self):
        with pytest.raises(ConfigurationError, match="lsb_codename"):
            compile_repository_recipe(_recipe(codename=None, repository_style="apt"))


class TestConvergence:
    def test_key_and_update_only_on_change(self, make_context, fake_run, tmp_path):
        sources_list = tmp_path / "opscode.list"
        response = MagicMock(content=b"-----BEGIN PGP PUBLIC KEY BLOCK-----")

        def converge():
            recipe = _recipe(repository_style="apt", cache_path=str(tmp_path / "cache"))
            compile_repository_recipe(recipe)
            context = make_context(node=recipe.node, attributes=recipe.attributes)
            return Converger(recipe.collection, context).converge()

        with patch("client_service.recipes.repository.SOURCES_LIST", str(sources_list)), \
                patch("client_service.resources.files.requests.get", return_value=response):
            first = converge()
            first_commands = [call[0][0] for call in fake_run.call_args_list]
            fake_run.reset_mock()
            second = converge()

        key_path = tmp_path / "cache" / "opscode.gpg.key"
        assert first_commands == [f"apt-key add {key_path}", "apt-get update"]
        assert sources_list.read_text() == "deb http://apt.opscode.com precise-0.10 main\n"
        assert first.was_updated("execute[apt-get update]", "run")

        fake_run.assert_not_called()
        assert second.updated_count == 0
