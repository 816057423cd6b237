from tests.utils.test_utils import assert_response_success


def test_health_check(client):
    response = client.get("/health")

    assert_response_success(response)
    assert response.json() == {"status": "ok"}
