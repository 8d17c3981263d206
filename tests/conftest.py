"""Fixtures compartidas: repositorio en memoria, reloj fijo, notificador."""

from unittest.mock import MagicMock

import pytest

from pqr_seguimiento.application.config import Catalogs
from pqr_seguimiento.application.lifecycle import CaseLifecycleController, LifecycleContext
from tests.factories import FIXED_NOW, FakeCaseRepository


@pytest.fixture
def repository():
    return FakeCaseRepository()


@pytest.fixture
def notifier():
    mock = MagicMock()
    mock.confirm.return_value = True
    return mock


@pytest.fixture
def context(repository, notifier):
    return LifecycleContext(
        repository=repository,
        notifier=notifier,
        catalogs=Catalogs(),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def controller(context):
    return CaseLifecycleController(context)
