"""Integration test fixtures: real Redis via testcontainers.

Requires Docker to be running.
Run with: pytest tests/integration -v
"""

import pytest

from oura.store import RedisKeyStore


def _docker_available() -> bool:
    try:
        import docker

        docker.from_env().ping()
    except Exception:
        return False
    return True


@pytest.fixture(scope="session")
def redis_container():
    """Session-scoped Redis container."""
    if not _docker_available():
        pytest.skip("Docker is not available")

    from testcontainers.redis import RedisContainer

    with RedisContainer("redis:7-alpine") as container:
        yield container


@pytest.fixture(scope="session")
def redis_url(redis_container):
    host = redis_container.get_container_host_ip()
    port = redis_container.get_exposed_port(6379)
    return f"redis://{host}:{port}/0"


@pytest.fixture
async def redis_store(redis_url):
    """Fresh store per test; the database is flushed on teardown."""
    store = RedisKeyStore(redis_url)
    yield store
    await store._client.flushdb()
    await store.close()
