"""Health endpoint tests."""

from sqlalchemy.exc import OperationalError


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_without_database(client):
    response = client.get("/health/ready")
    assert response.status_code == 503
    assert response.json() == {"status": "not_ready"}


class _UnreachableSession:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def execute(self, statement):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))


def test_ready_when_database_unreachable(app, client):
    app.state.session_factory = _UnreachableSession
    response = client.get("/health/ready")
    assert response.status_code == 503
    assert response.json() == {"status": "not_ready"}
