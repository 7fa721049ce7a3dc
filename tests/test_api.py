"""API endpoint tests."""


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_organization(client):
    """Test creating an organization."""
    response = client.post("/api/v1/organizations", json={"name": "Corner Bistro"})
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Corner Bistro"
    assert "id" in data


def test_list_organizations(client, org_headers, other_org_headers):
    """Test listing organizations."""
    response = client.get("/api/v1/organizations")
    assert response.status_code == 200
    assert [org["name"] for org in response.json()] == ["Other Kitchen", "Test Kitchen"]


def test_current_organization(client, org_headers):
    """Test reading the organization selected by the header."""
    response = client.get("/api/v1/organizations/current", headers=org_headers)
    assert response.status_code == 200
    assert response.json()["id"] == org_headers.organization_id


def test_missing_organization_header(client):
    """Test that scoped endpoints require the organization header."""
    response = client.get("/api/v1/recipes")
    assert response.status_code == 422
