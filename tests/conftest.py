from __future__ import annotations

import logging

import pytest

from didstream.services.device import DeviceClient
from didstream.services.gateway import GatewayClient
from didstream.services.identity import Identity, generate_identity
from didstream.services.testing.gateway_double import FakeGateway

BASE_URL = "http://gateway.test"


@pytest.fixture()
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def gateway(fake_gateway: FakeGateway):
    client = GatewayClient(BASE_URL, timeout=2.0, transport=fake_gateway.transport)
    yield client
    client.close()


@pytest.fixture()
def identity() -> Identity:
    return generate_identity()


@pytest.fixture()
def device(identity: Identity, gateway: GatewayClient) -> DeviceClient:
    return DeviceClient(identity=identity, gateway=gateway, interval=0.01)


@pytest.fixture(autouse=True)
def _reset_didstream_logger():
    yield
    logger = logging.getLogger("didstream")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
