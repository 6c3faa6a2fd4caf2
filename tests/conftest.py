import io
import uuid
from datetime import datetime, timezone

import pytest
from PIL import Image

from shelfscan.database.models import DetectionJobRecord


def _encode(fmt: str, size: tuple[int, int] = (64, 48), color: str = "navy") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture()
def jpeg_bytes() -> bytes:
    """A small valid JPEG."""
    return _encode("JPEG")


@pytest.fixture()
def png_bytes() -> bytes:
    """A small valid PNG."""
    return _encode("PNG")


@pytest.fixture()
def large_jpeg_bytes() -> bytes:
    """A JPEG big enough that thumbnailing actually resizes it."""
    return _encode("JPEG", size=(1600, 1200), color="darkred")


def make_job(**overrides: object) -> DetectionJobRecord:
    now = datetime.now(timezone.utc)
    job_id = str(overrides.pop("id", uuid.uuid4()))
    owner_id = str(overrides.pop("owner_id", uuid.uuid4()))
    defaults: dict[str, object] = {
        "status": "processing",
        "stage": "queued",
        "progress": 0,
        "image_ref": f"{owner_id}/{job_id}.jpg",
        "image_storage_path": f"{owner_id}/{job_id}.jpg",
        "image_mime_type": "image/jpeg",
        "created_at": now,
        "updated_at": now,
    }
    defaults.update(overrides)
    return DetectionJobRecord(id=job_id, owner_id=owner_id, **defaults)  # type: ignore[arg-type]
