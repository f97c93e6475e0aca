"""
Pytest fixtures and config.
"""

import dataclasses
import sys
from collections.abc import Generator
from typing import Any

import hypothesis
import pytest
from aiosmtpd.controller import Controller as SMTPDController

from smtpsend import Address, Config, Credentials, ServerAddress

from .mocks import MockSMTP
from .smtpd import ReceivedMessage, RecordingAuthenticator, RecordingHandler


IS_PYPY = hasattr(sys, "pypy_version_info")

# pypy can take a while to generate data, so don't fail the test due to health checks.
if IS_PYPY:
    base_settings = hypothesis.settings(
        suppress_health_check=(hypothesis.HealthCheck.too_slow,)
    )
else:
    base_settings = hypothesis.settings()
hypothesis.settings.register_profile("dev", parent=base_settings, max_examples=10)
hypothesis.settings.register_profile("ci", parent=base_settings, max_examples=100)


def pytest_addoption(parser: Any) -> None:
    parser.addoption(
        "--bind-addr",
        action="store",
        default="127.0.0.1",
        help="address to bind on for network tests",
    )


# Session scoped static values #


@pytest.fixture(scope="session")
def bind_address(request: pytest.FixtureRequest) -> str:
    """Server side address for socket binding"""
    return str(request.config.getoption("--bind-addr"))


@pytest.fixture(scope="session")
def hostname(bind_address: str) -> str:
    return bind_address


@pytest.fixture(scope="session")
def sender_str() -> str:
    return "sender@example.com"


@pytest.fixture(scope="session")
def recipient_str() -> str:
    return "recipient@example.com"


@pytest.fixture(scope="session")
def auth_username() -> str:
    return "test"


@pytest.fixture(scope="session")
def auth_password() -> str:
    return "test"


# Environment #


@pytest.fixture(scope="function")
def environ() -> dict[str, str]:
    """An empty environment, so that the real one never leaks credentials in."""
    return {}


# Config #


@pytest.fixture(scope="function")
def config(sender_str: str, recipient_str: str) -> Config:
    return Config(
        sender=Address("", sender_str),
        to=(Address("", recipient_str),),
        cc=(),
        bcc=(),
        server=ServerAddress("smtp.example.com", 587),
        subject="A message",
        message="Hello World",
    )


@pytest.fixture(scope="function")
def auth_config(config: Config, auth_username: str, auth_password: str) -> Config:
    return dataclasses.replace(
        config, credentials=Credentials(auth_username, auth_password)
    )


# Clients #


@pytest.fixture(scope="function")
def mock_smtp(request: pytest.FixtureRequest) -> MockSMTP:
    mock_options_marker = request.node.get_closest_marker("mock_smtp_options")
    if mock_options_marker is None:
        mock_options = {}
    else:
        mock_options = mock_options_marker.kwargs

    return MockSMTP(**mock_options)


# Servers #


@pytest.fixture(scope="function")
def received_messages() -> list[ReceivedMessage]:
    return []


@pytest.fixture(scope="function")
def smtpd_handler(received_messages: list[ReceivedMessage]) -> RecordingHandler:
    return RecordingHandler(received_messages)


@pytest.fixture(scope="function")
def smtpd_authenticator(
    auth_username: str, auth_password: str
) -> RecordingAuthenticator:
    return RecordingAuthenticator(auth_username, auth_password)


@pytest.fixture(scope="function")
def smtpd_controller(
    request: pytest.FixtureRequest,
    bind_address: str,
    unused_tcp_port: int,
    smtpd_handler: RecordingHandler,
    smtpd_authenticator: RecordingAuthenticator,
) -> Generator[SMTPDController, None, None]:
    smtpd_options_marker = request.node.get_closest_marker("smtpd_options")
    if smtpd_options_marker is None:
        smtpd_options = {}
    else:
        smtpd_options = smtpd_options_marker.kwargs

    # Without TLS, AUTH is only advertised when it isn't required to follow STARTTLS
    controller = SMTPDController(
        smtpd_handler,
        hostname=bind_address,
        port=unused_tcp_port,
        authenticator=smtpd_authenticator,
        auth_require_tls=not smtpd_options.get("auth", False),
    )
    controller.start()

    yield controller

    controller.stop()


@pytest.fixture(scope="function")
def smtpd_server_port(smtpd_controller: SMTPDController) -> int:
    port: int = smtpd_controller.port
    return port
