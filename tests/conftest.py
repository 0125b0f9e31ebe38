"""Fixtures partagées par les tests."""

import logging
import subprocess
from unittest.mock import patch

import pytest

from client_service.core.attributes import default_attributes
from client_service.core.logger import LOGGER_NAME
from client_service.core.platform import NodeInfo
from client_service.resources import RunContext


CLIENT_BIN = "/usr/bin/chef-client"


def make_node(platform="ubuntu", version="12.04", codename="precise", chef_version="11.4.0", **kwargs):
    return NodeInfo(platform, version, lsb_codename=codename, chef_version=chef_version, **kwargs)


def make_attributes(node, **overrides):
    attributes = default_attributes(node)
    attributes['bin'] = CLIENT_BIN
    attributes.update(overrides)
    return attributes


def completed(cmd=None, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(cmd or [], returncode, stdout=stdout, stderr=stderr)


@pytest.fixture(autouse=True)
def reset_logger():
    """Le logger nommé est global : on retire les handlers ajoutés par un test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def logger():
    return logging.getLogger(LOGGER_NAME)


@pytest.fixture
def node():
    return make_node()


@pytest.fixture
def make_context(logger):
    def _make(node=None, attributes=None, dry_run=False, renderer=None):
        node = node or make_node()
        attributes = attributes if attributes is not None else make_attributes(node)
        return RunContext(node, attributes, logger, dry_run=dry_run, renderer=renderer)
    return _make


@pytest.fixture
def fake_run():
    """Remplace subprocess.run du moteur de convergence"""
    with patch("client_service.resources.runner.subprocess.run") as run:
        run.return_value = completed()
        yield run


@pytest.fixture
def located_client():
    """chef-client toujours trouvé, version non détectable"""
    with patch("client_service.recipes.service.locate_client_binary", return_value=CLIENT_BIN) as locate, \
            patch("client_service.recipes.service.detect_client_version", return_value=None):
        yield locate
