import base64
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from fastapi.testclient import TestClient

from storage_gateway.app import create_app
from storage_gateway.config import Settings, get_settings
from storage_gateway.dependencies import get_document_store, get_storage_client
from storage_gateway.documents import InMemoryDocumentStore
from storage_gateway.errors import ConfigurationError
from storage_gateway.firestore_rest import FirestoreFetchError, FirestoreSanitizeError
from storage_gateway.storage import InMemoryStorageClient


class FailingStorageClient(InMemoryStorageClient):
    def __init__(self, message: str):
        super().__init__(bucket_name="test-bucket")
        self.message = message

    def sign_get_url(self, path, expires_at):
        raise ValueError(self.message)


class FailingDocumentStore(InMemoryDocumentStore):
    def add(self, payload):
        raise RuntimeError("deadline exceeded")

    def list_all(self):
        raise RuntimeError("unavailable")


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.app = create_app()
        self.storage = InMemoryStorageClient(bucket_name="test-bucket")
        self.store = InMemoryDocumentStore()
        self.settings = Settings(
            _env_file=None,
            bucket_name="test-bucket",
            firebase_project_id="demo-project",
        )
        self.app.dependency_overrides[get_storage_client] = lambda: self.storage
        self.app.dependency_overrides[get_document_store] = lambda: self.store
        self.app.dependency_overrides[get_settings] = lambda: self.settings
        self.client = TestClient(self.app)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_url_returns_signed_and_raw_urls(self):
        before = datetime.now(timezone.utc)
        response = self.client.get("/url/reports/q1.pdf")
        after = datetime.now(timezone.utc)

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(
            payload["raw_url"],
            "https://storage.googleapis.com/test-bucket/reports/q1.pdf",
        )
        self.assertIn("reports/q1.pdf", payload["signed_url"])
        expires = int(payload["signed_url"].split("Expires=")[1].split("&")[0])
        self.assertGreaterEqual(expires, int((before + timedelta(seconds=30)).timestamp()))
        self.assertLessEqual(expires, int((after + timedelta(seconds=30)).timestamp()))

    def test_url_with_empty_filename_is_rejected(self):
        response = self.client.get("/url/")
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_url_with_blank_filename_is_rejected(self):
        response = self.client.get("/url/%20")
        self.assertEqual(response.status_code, 400)

    def test_url_signing_failure_exposes_message(self):
        self.storage = FailingStorageClient("invalid signature")
        response = self.client.get("/url/photo.png")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "invalid signature"})

    def test_download_signed_redirects(self):
        response = self.client.get("/download-signed/photo.png", follow_redirects=False)
        self.assertEqual(response.status_code, 302)
        self.assertTrue(
            response.headers["location"].startswith(
                "https://example.test/storage/test-bucket/photo.png?Expires="
            )
        )
        self.assertEqual(
            response.headers["content-disposition"],
            "attachment; filename=\"photo.png\"; filename*=UTF-8''photo.png",
        )
        self.assertEqual(response.headers["content-type"], "application/octet-stream")

    def test_download_non_ascii_filename(self):
        for path in ("/download-signed/", "/download-unsigned/"):
            response = self.client.get(
                path + "%E6%8A%A5%E5%91%8A.pdf", follow_redirects=False
            )
            self.assertEqual(response.status_code, 302)
            self.assertEqual(
                response.headers["content-disposition"],
                "attachment; filename=\"__.pdf\"; "
                "filename*=UTF-8''%E6%8A%A5%E5%91%8A.pdf",
            )
            self.assertIn("%E6%8A%A5%E5%91%8A.pdf", response.headers["location"])

    def test_download_signed_token_expired(self):
        self.storage = FailingStorageClient("oauth2: token expired and refresh failed")
        response = self.client.get("/download-signed/photo.png", follow_redirects=False)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Token expired"})

    def test_download_signed_no_keys(self):
        self.storage = FailingStorageClient("No keys found in private key data")
        response = self.client.get("/download-signed/photo.png", follow_redirects=False)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "No keys available"})

    def test_download_unsigned_redirects_to_raw_url(self):
        response = self.client.get("/download-unsigned/photo.png", follow_redirects=False)
        self.assertEqual(response.status_code, 302)
        self.assertEqual(
            response.headers["location"],
            "https://storage.googleapis.com/test-bucket/photo.png",
        )

    def test_upload_stubs_echo_filename(self):
        for path in ("/upload-signed", "/upload-unsigned"):
            response = self.client.post(
                path, files={"file": ("notes.txt", b"hello", "text/plain")}
            )
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json()["file"], "notes.txt")
            self.assertIn("message", response.json())
        self.assertEqual(self.storage.stored_objects, {})

    def test_upload_without_file_is_rejected(self):
        response = self.client.post("/upload-signed")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "file is required"})

    def test_upload_base64_stores_png(self):
        data = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 16).decode()
        response = self.client.post(
            "/upload-base64", json={"file_name": "pic", "base64_data": data}
        )
        self.assertEqual(response.status_code, 200)
        url = response.json()["url"]
        self.assertTrue(url.startswith("https://storage.googleapis.com/test-bucket/"))
        self.assertTrue(url.endswith(".png"))

        (path, (content, content_type)), = self.storage.stored_objects.items()
        self.assertEqual(len(path), 128 + len(".png"))
        self.assertEqual(content_type, "image/png")
        self.assertTrue(content.startswith(b"\x89PNG"))

    def test_upload_base64_unsupported_format(self):
        data = base64.b64encode(b"GIF89a").decode()
        response = self.client.post(
            "/upload-base64", json={"file_name": "pic", "base64_data": data}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "unsupported base64 format"})

    def test_upload_base64_requires_fields(self):
        response = self.client.post("/upload-base64", json={"file_name": "pic"})
        self.assertEqual(response.status_code, 422)
        self.assertIn("base64_data", response.json()["error"])

    def test_add_then_list_documents(self):
        before = datetime.now(timezone.utc)
        response = self.client.post("/data-firestore-sdk/hello-world")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), {"message": "Data added to Firestore with timestamp"}
        )

        listing = self.client.get("/data-firestore-sdk")
        self.assertEqual(listing.status_code, 200)
        documents = listing.json()["data"]
        self.assertEqual(len(documents), 1)
        self.assertEqual(documents[0]["queryData"], "hello-world")
        self.assertIn("id", documents[0])
        stamp = datetime.fromisoformat(documents[0]["timestamp"].replace("Z", "+00:00"))
        self.assertGreaterEqual(stamp, before)

    def test_list_documents_empty(self):
        response = self.client.get("/data-firestore-sdk")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"data": []})

    def test_document_store_failures_are_generic(self):
        self.store = FailingDocumentStore()
        response = self.client.post("/data-firestore-sdk/x")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to add data to Firestore"})

        response = self.client.get("/data-firestore-sdk")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(), {"error": "Failed to fetch data from Firestore"}
        )

    @patch("storage_gateway.routes.firestore_rest.fetch_collection_fields")
    def test_rest_proxy_returns_fields(self, mock_fetch):
        mock_fetch.return_value = [{"queryData": {"stringValue": "a"}}]
        response = self.client.get("/data-firestore-url-unsigned")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), {"data": [{"queryData": {"stringValue": "a"}}]}
        )
        mock_fetch.assert_called_once_with(
            "https://firestore.googleapis.com/v1",
            "demo-project",
            "tes",
            timeout=30,
        )

    @patch("storage_gateway.routes.firestore_rest.fetch_collection_fields")
    def test_rest_proxy_fetch_failure(self, mock_fetch):
        mock_fetch.side_effect = FirestoreFetchError("connection refused")
        response = self.client.get("/data-firestore-url-unsigned")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(), {"error": "Failed to fetch data from Firestore"}
        )

    @patch("storage_gateway.routes.firestore_rest.fetch_collection_fields")
    def test_rest_proxy_sanitize_failure(self, mock_fetch):
        mock_fetch.side_effect = FirestoreSanitizeError("not a JSON object")
        response = self.client.get("/data-firestore-url-unsigned")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to sanitize data"})

    def test_unknown_route_uses_error_shape(self):
        response = self.client.get("/does-not-exist")
        self.assertEqual(response.status_code, 404)
        self.assertIn("error", response.json())


class StartupTests(unittest.TestCase):
    @patch("storage_gateway.app.get_storage_client")
    def test_startup_fails_without_credentials(self, mock_storage):
        mock_storage.side_effect = ConfigurationError(
            "Missing required configuration: BUCKET_NAME"
        )
        with self.assertRaises(ConfigurationError):
            with TestClient(create_app()):
                pass

    @patch("storage_gateway.app.get_document_store")
    @patch("storage_gateway.app.get_storage_client")
    def test_startup_builds_clients(self, mock_storage, mock_store):
        mock_storage.return_value = InMemoryStorageClient()
        mock_store.return_value = InMemoryDocumentStore()
        with TestClient(create_app()) as client:
            self.assertEqual(client.get("/health").status_code, 200)
        mock_storage.assert_called_once()
        mock_store.assert_called_once()


if __name__ == "__main__":
    unittest.main()
