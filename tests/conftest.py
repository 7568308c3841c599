from importlib import import_module

import pytest
from django.conf import settings

from calendar_portlet.servicios.adapters import AdapterRegistry
from tests.fakes import FakeAdapter


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def adapter_registry(fake_adapter):
    reg = AdapterRegistry()
    reg.register("fake", lambda: fake_adapter)
    return reg


@pytest.fixture
def session():
    engine = import_module(settings.SESSION_ENGINE)
    return engine.SessionStore()


@pytest.fixture
def portal_request(rf, session):
    """Factory de requests GET con sesión y usuario anónimo."""
    from django.contrib.auth.models import AnonymousUser

    def _make(**params):
        request = rf.get("/calendar/", params)
        request.session = session
        request.user = AnonymousUser()
        return request

    return _make
