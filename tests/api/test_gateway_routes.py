"""Tests for GET /api/yellow/gateway."""

import pytest


class TestDescribeGateway:

    def test_defaults_to_checkout_title(self, client):
        response = client.get("/api/yellow/gateway")

        assert response.status_code == 200
        assert "what is bitcoin?" in response.json()["data"]["title"]

    def test_admin_context(self, client):
        data = client.get("/api/yellow/gateway", params={"context": "admin"}).json()["data"]
        assert data["title"] == "Bitcoin Payment"

    @pytest.mark.parametrize("context", ["checkout", "payment_form"])
    def test_storefront_contexts(self, client, context):
        data = client.get("/api/yellow/gateway", params={"context": context}).json()["data"]
        assert "what is bitcoin?" in data["title"]

    def test_unknown_context_rejected(self, client):
        assert client.get("/api/yellow/gateway", params={"context": "email"}).status_code == 422
