"""
tests/test_api.py
=================
HTTP surface of the phonebook: status codes, response bodies and
error payloads, exercised through FastAPI's TestClient against an
in-memory database.
"""

import os
import sys
import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from phonebook_api.app.core.db import StoreError
from phonebook_api.app.main import create_app

UNKNOWN_ID = "0" * 32


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        self.app = create_app(":memory:")
        context = TestClient(self.app)
        self.client = context.__enter__()
        self.addCleanup(context.__exit__, None, None, None)

    def create(self, name="Arto Hellas", number="040-1234556"):
        return self.client.post("/api/persons", json={"name": name, "number": number})


class TestPersonsCrud(ApiTestCase):

    def test_create_then_fetch(self):
        response = self.create()
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(set(body), {"id", "name", "number"})
        fetched = self.client.get(f"/api/persons/{body['id']}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json(), body)

    def test_list_returns_wire_records_in_insertion_order(self):
        self.create("Arto Hellas", "040-1234556")
        self.create("Ada Lovelace", "39-445323523")
        response = self.client.get("/api/persons")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([p["name"] for p in response.json()], ["Arto Hellas", "Ada Lovelace"])
        for person in response.json():
            self.assertNotIn("_id", person)
            self.assertNotIn("revision", person)

    def test_versioned_prefix_serves_same_data(self):
        created = self.create().json()
        self.assertEqual(self.client.get("/api/v1/persons").json(), [created])

    def test_update_replaces_fields(self):
        created = self.create().json()
        response = self.client.put(
            f"/api/persons/{created['id']}", json={"name": "Arto Vihavainen", "number": "045-1232456"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"id": created["id"], "name": "Arto Vihavainen", "number": "045-1232456"})

    def test_delete_then_everything_is_not_found(self):
        created = self.create().json()
        response = self.client.delete(f"/api/persons/{created['id']}")
        self.assertEqual(response.status_code, 204)
        self.assertEqual(response.content, b"")
        self.assertEqual(self.client.get(f"/api/persons/{created['id']}").status_code, 404)
        second = self.client.delete(f"/api/persons/{created['id']}")
        self.assertEqual(second.status_code, 404)
        self.assertEqual(second.json(), {"error": "Person not found", "kind": "NotFound"})


class TestErrors(ApiTestCase):

    def test_missing_fields(self):
        response = self.client.post("/api/persons", json={"name": "Arto Hellas"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Name and number are required", "kind": "MissingField"})

    def test_absent_or_null_body_counts_as_missing_fields(self):
        expected = {"error": "Name and number are required", "kind": "MissingField"}
        responses = [
            self.client.post("/api/persons"),
            self.client.post("/api/persons", content=b"null", headers={"content-type": "application/json"}),
            self.client.put(f"/api/persons/{UNKNOWN_ID}"),
            self.client.put(f"/api/persons/{UNKNOWN_ID}", content=b"null", headers={"content-type": "application/json"}),
        ]
        for response in responses:
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json(), expected)

    def test_invalid_number(self):
        response = self.create("Alice", "12-34567")
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["kind"], "ValidationError")
        self.assertEqual(body["field"], "number")
        self.assertIn("12-34567 is not a valid phone number!", body["error"])

    def test_short_name(self):
        response = self.create("Al", "123-4567890")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field"], "name")

    def test_duplicate_name(self):
        self.create()
        response = self.create()
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json(), {"error": "Name already exists", "kind": "DuplicateName"})

    def test_malformed_id(self):
        for method in ("get", "delete"):
            with self.subTest(method=method):
                response = getattr(self.client, method)("/api/persons/12345")
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json(), {"error": "Malformatted ID", "kind": "MalformedIdentifier"})

    def test_update_unknown_id(self):
        response = self.client.put(f"/api/persons/{UNKNOWN_ID}", json={"name": "Alice", "number": "12-345678"})
        self.assertEqual(response.status_code, 404)

    def test_wrong_body_types_are_bad_requests(self):
        response = self.client.post("/api/persons", json={"name": 123, "number": "12-345678"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["kind"], "ValidationError")
        self.assertEqual(response.json()["field"], "name")

    def test_storage_failure_is_not_leaked(self):
        with patch.object(self.app.state.store, "find_all", AsyncMock(side_effect=StoreError("disk I/O error"))):
            response = self.client.get("/api/persons")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Server error", "kind": "StorageError"})

    def test_unknown_endpoint(self):
        for method, path in (("get", "/api/nothing"), ("post", "/info"), ("patch", "/api/persons")):
            with self.subTest(method=method, path=path):
                response = getattr(self.client, method)(path)
                self.assertEqual(response.status_code, 404)
                self.assertEqual(response.json(), {"error": "Unknown endpoint"})


class TestInfoAndHealth(ApiTestCase):

    def test_info_counts_entries(self):
        self.create("Arto Hellas", "040-1234556")
        self.create("Ada Lovelace", "39-445323523")
        response = self.client.get("/info")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/html"))
        self.assertIn("<p>Phonebook has info for 2 people</p>", response.text)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "OK", "database": "connected"})


if __name__ == "__main__":
    unittest.main()
