"""
Test Configuration and Fixtures
"""
import base64

import pytest

from cleansong import create_app
from cleansong.services.freeconvert_service import FreeConvertCompressor, FreeConvertSettings

UPLOAD_URL = "https://s3.freeconvert.test/upload/abc"
EXPORT_URL = "https://cdn.freeconvert.test/out/audio.mp3"
AUDIO_BYTES = b"ID3\x03\x00\x00\x00fake-mp3-frames\xff\xfb\x90\x00" * 4


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text="", content=b"", headers=None):
        self.status_code = status_code
        self.headers = headers or {}
        self._json = json_data
        self.text = text
        self.content = content

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json


def created_job_doc(job_id="job_123"):
    return {
        "id": job_id,
        "status": "created",
        "tasks": {
            "import": {
                "operation": "import/upload",
                "status": "waiting",
                "result": {
                    "form": {
                        "url": UPLOAD_URL,
                        "parameters": {
                            "expires": "1760000000",
                            "size_limit": "1073741824",
                            "max_file_count": "1",
                            "signature": "d2f1c0",
                        },
                    }
                },
            },
            "compress": {"operation": "compress", "status": "created"},
            "export-url": {"operation": "export/url", "status": "created"},
        },
    }


def polled_job_doc(status, job_id="job_123", export_url=EXPORT_URL):
    export_result = {"files": [{"filename": "audio.mp3", "url": export_url}]} if export_url else {}
    return {
        "id": job_id,
        "status": status,
        "tasks": [
            {"name": "import", "operation": "import/upload", "status": "completed"},
            {"name": "compress", "operation": "compress", "status": status},
            {"name": "export-url", "operation": "export/url", "status": status, "result": export_result},
        ],
    }


class FakeFreeConvert:
    """Scripted stand-in for ``requests.Session`` talking to FreeConvert."""

    def __init__(self, statuses=("completed",), create_doc=None, upload_status=200,
                 export_content=b"compressed-bytes", export_url=EXPORT_URL, download_status=200,
                 create_error=None, create_json=True, upload_error=None, poll_http_status=200):
        self.statuses = list(statuses)
        self.create_doc = created_job_doc() if create_doc is None else create_doc
        self.upload_status = upload_status
        self.export_content = export_content
        self.export_url = export_url
        self.download_status = download_status
        self.create_error = create_error
        self.create_json = create_json
        self.upload_error = upload_error
        self.poll_http_status = poll_http_status
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        if url.endswith("/process/jobs"):
            if self.create_error:
                raise self.create_error
            if not self.create_json:
                return FakeResponse(status_code=502, text="<html>502 Bad Gateway</html>")
            return FakeResponse(json_data=self.create_doc)
        if self.upload_error:
            raise self.upload_error
        return FakeResponse(status_code=self.upload_status, text="<Error>SignatureDoesNotMatch</Error>")

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        if "/process/jobs/" in url:
            if self.poll_http_status >= 400:
                return FakeResponse(status_code=self.poll_http_status, text='{"message": "Unauthorized"}')
            i = min(len(self.poll_calls) - 1, len(self.statuses) - 1)
            return FakeResponse(json_data=polled_job_doc(self.statuses[i], export_url=self.export_url))
        return FakeResponse(status_code=self.download_status, content=self.export_content, text="gone")

    @property
    def poll_calls(self):
        return [c for c in self.calls if c[0] == "GET" and "/process/jobs/" in c[1]]

    @property
    def upload_calls(self):
        return [c for c in self.calls if c[0] == "POST" and c[1] == UPLOAD_URL]


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)

    @property
    def total(self):
        return sum(self.calls)


@pytest.fixture
def settings():
    return FreeConvertSettings(api_key="fc-test-key", base_url="https://api.freeconvert.test/v1")


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def make_compressor(settings, sleeper):
    """Build a compressor around a FakeFreeConvert session"""
    def factory(**fake_kwargs):
        fake = FakeFreeConvert(**fake_kwargs)
        return FreeConvertCompressor(settings, session=fake, sleep=sleeper), fake
    return factory


@pytest.fixture
def audio_data_url():
    return "data:audio/mp3;base64," + base64.b64encode(AUDIO_BYTES).decode("ascii")


@pytest.fixture(scope="function")
def app():
    """Create application for testing"""
    app = create_app("testing")
    app.config["TESTING"] = True
    yield app


@pytest.fixture(scope="function")
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def fake_freeconvert(app, sleeper):
    """Route /api/compress through a FakeFreeConvert session"""
    fake = FakeFreeConvert()
    app.extensions["cleansong"]["compressor_factory"] = (
        lambda s: FreeConvertCompressor(s, session=fake, sleep=sleeper)
    )
    return fake
