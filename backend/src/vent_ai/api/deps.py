"""FastAPI dependencies resolving services from application state."""

from starlette.requests import HTTPConnection

from vent_ai.core.config import Settings
from vent_ai.oracle.base import BaseOracle
from vent_ai.store.message_store import MessageStore


def get_app_settings(connection: HTTPConnection) -> Settings:
    return connection.app.state.settings


def get_store(connection: HTTPConnection) -> MessageStore:
    return connection.app.state.store


def get_oracle(connection: HTTPConnection) -> BaseOracle:
    return connection.app.state.oracle
