from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from core.settings import Settings, StorageSettings, UploadSettings
from services.api.main import create_app
from tests.utils_storage import BUCKET, SAMPLE_PDF, TickingClock


@pytest.fixture()
def sample_pdf() -> bytes:
    return SAMPLE_PDF


@pytest.fixture()
def storage_root(tmp_path: Path) -> Path:
    return tmp_path / "pdfs"


@pytest.fixture()
def settings(storage_root: Path) -> Settings:
    return Settings(
        storage=StorageSettings(backend="filesystem", root=storage_root),
        upload=UploadSettings(),
    )


@pytest.fixture()
def app(settings: Settings):
    application = create_app(settings)
    application.state.document_service.clock = TickingClock()
    return application


@pytest_asyncio.fixture()
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest.fixture()
def s3_client(monkeypatch):
    boto3 = pytest.importorskip("boto3")
    moto = pytest.importorskip("moto")

    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")

    with moto.mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture()
def s3_store(s3_client):
    from core.storage.s3 import S3DocumentStore

    return S3DocumentStore(BUCKET, client=s3_client)
