"""
Unit tests for the PostgreSQL testcontainer startup helper.
"""

import pytest
import testcontainers.postgres
from docker.errors import DockerException

from tests.conftest import start_postgres_container


@pytest.mark.unit
class TestPostgresContainerStartup:
    """Missing Docker skips instead of erroring."""

    def test_constructor_failure_skips(self, monkeypatch):
        def _no_docker(*args, **kwargs):
            raise DockerException("Error while fetching server API version")

        monkeypatch.setattr(testcontainers.postgres, "PostgresContainer", _no_docker)

        with pytest.raises(pytest.skip.Exception, match="unavailable"):
            start_postgres_container()

    def test_start_failure_skips(self, monkeypatch, mocker):
        container = mocker.MagicMock()
        container.start.side_effect = DockerException("daemon not running")
        monkeypatch.setattr(
            testcontainers.postgres, "PostgresContainer", mocker.MagicMock(return_value=container)
        )

        with pytest.raises(pytest.skip.Exception):
            start_postgres_container()

    def test_started_container_is_returned(self, monkeypatch, mocker):
        container = mocker.MagicMock()
        factory = mocker.MagicMock(return_value=container)
        monkeypatch.setattr(testcontainers.postgres, "PostgresContainer", factory)

        assert start_postgres_container() is container
        factory.assert_called_once_with(image="postgres:17-alpine", driver="asyncpg")
        container.start.assert_called_once()
