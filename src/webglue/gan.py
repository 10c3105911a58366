"""
Image-to-image GAN inference on DeepAI (toonify, colorizer, super resolution, ...).

POST https://api.deepai.org/api/<model> with the `api-key` header and the image as
a URL form field or a multipart upload. A good answer is {"id": ..., "output_url": ...};
failures come back as {"err": ...} or {"status": ...} without an output_url.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel

from . import _http
from ._schema import parse_as
from .config import get_api_keys
from .errors import ParseError, ServiceError

logger = logging.getLogger(__name__)

SERVICE = "gan"
API_URL = "https://api.deepai.org/api"
MODELS = ("toonify", "colorizer", "torch-srgan", "waifu2x", "deepdream", "cyberpunk-generator")

ImageInput = Union[str, Path, bytes]


class GanResult(BaseModel):
    id: Optional[str] = None
    output_url: str


def parse_result(payload: Any) -> GanResult:
    if isinstance(payload, dict) and not payload.get("output_url"):
        err = payload.get("err") or payload.get("status") or payload.get("error")
        if err:
            raise ServiceError(SERVICE, str(err), payload=payload)
    return parse_as(GanResult, payload, SERVICE)


def run_gan(model: str, image: ImageInput, *, api_key: Optional[str] = None) -> GanResult:
    """Run `model` on an image given as a URL, a local path or raw bytes."""
    if not model or "/" in model:
        raise ValueError(f"invalid model name: {model!r}")
    key = api_key or get_api_keys().require("deepai_api_key")
    url = f"{API_URL}/{model}"
    headers = {"api-key": key}
    if isinstance(image, str) and image.startswith(("http://", "https://")):
        payload = _http.post_json(url, service=SERVICE, headers=headers, data={"image": image}, check=False)
    else:
        if isinstance(image, bytes):
            files = {"image": ("image", image)}
        else:
            path = Path(image)
            if not path.is_file():
                raise FileNotFoundError(path)
            files = {"image": (path.name, path.read_bytes())}
        payload = _http.post_json(url, service=SERVICE, headers=headers, files=files, check=False)
    result = parse_result(payload)
    logger.info("[gan] %s finished: %s", model, result.output_url)
    return result


def download_gan_output(result: GanResult, out_path: Path) -> Path:
    with _http.request("GET", result.output_url, service=SERVICE, stream=True) as resp:
        if not resp.headers.get("Content-Type", "").startswith("image/"):
            raise ParseError(SERVICE, f"output is not an image ({resp.headers.get('Content-Type')})")
        return _http.save_stream(resp, Path(out_path))
