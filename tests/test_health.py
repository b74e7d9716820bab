"""Tests for health check endpoints."""
from rice_ledger.config import get_settings


def test_health_check(client):
    response = client.get("/api/v1/health/")
    
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_readiness_checks_only_the_database(client):
    """Test readiness reports the database and nothing else."""
    response = client.get("/api/v1/health/ready")
    
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"] == {"database": True}


def test_root_describes_the_ledger_api(client):
    """Test root endpoint points at docs and health."""
    settings = get_settings()
    
    data = client.get("/").json()
    
    assert data["name"] == settings.APP_NAME
    assert data["version"] == settings.APP_VERSION
    assert data["health"] == "/api/v1/health"
