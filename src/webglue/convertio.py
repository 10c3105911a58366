"""
File conversion with the Convertio REST API.

Flow:
- start: POST /convert with the file (remote URL, or local file/bytes as base64)
- wait: poll GET /convert/<id>/status until step == "finish"
- download: GET /convert/<id>/dl/base64 and decode data.content
- delete: DELETE /convert/<id> to free the slot early

Every answer is wrapped as {"code": 200, "status": "ok", "data": {...}} or
{"code": 4xx, "status": "error", "error": "..."}.
"""
from __future__ import annotations

import base64
import logging
import threading
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel

from . import _http
from ._schema import parse_as
from .config import get_api_keys
from .errors import ParseError, ServiceError
from .polling import PollingJob, PollResult, PollSettings

logger = logging.getLogger(__name__)

SERVICE = "convertio"
API_URL = "https://api.convertio.co"

FileInput = Union[str, Path, bytes]


class ConversionStatus(BaseModel):
    id: str
    step: str
    percent: Optional[float] = None
    output_url: Optional[str] = None
    output_size: Optional[int] = None

    @property
    def finished(self) -> bool:
        return self.step == "finish"


class _Output(BaseModel):
    url: Optional[str] = None
    size: Optional[Union[int, str]] = None


class _StatusData(BaseModel):
    id: str
    step: str
    step_percent: Optional[float] = None
    output: Optional[_Output] = None


class _StartData(BaseModel):
    id: str


class _DownloadData(BaseModel):
    id: Optional[str] = None
    encode: Optional[str] = None
    content: str


def unwrap(payload: Any) -> Any:
    """Return payload["data"], raising ServiceError for error envelopes."""
    if not isinstance(payload, dict):
        raise ParseError(SERVICE, "expected a JSON object")
    if payload.get("status") == "error" or payload.get("error"):
        code = payload.get("code")
        raise ServiceError(
            SERVICE,
            str(payload.get("error") or "conversion error"),
            status_code=code if isinstance(code, int) else None,
            payload=payload,
        )
    if "data" not in payload:
        raise ParseError(SERVICE, "missing data")
    return payload["data"]


def _is_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def parse_status(payload: Any) -> ConversionStatus:
    data = parse_as(_StatusData, unwrap(payload), SERVICE)
    size = None
    if data.output is not None and data.output.size not in (None, ""):
        try:
            size = int(data.output.size)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            size = None
    return ConversionStatus(
        id=data.id,
        step=data.step,
        percent=data.step_percent,
        output_url=data.output.url if data.output else None,
        output_size=size,
    )


class Conversion:
    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        settings: Optional[PollSettings] = None,
        base_url: str = API_URL,
    ) -> None:
        self.api_key = api_key or get_api_keys().require("convertio_api_key")
        self.settings = settings or PollSettings()
        self.base_url = base_url.rstrip("/")
        self.id: Optional[str] = None
        self.last_status: Optional[ConversionStatus] = None

    def _require_id(self) -> str:
        if not self.id:
            raise RuntimeError("conversion not started; call start() first")
        return self.id

    def start(self, file: FileInput, output_format: str, *, filename: Optional[str] = None) -> str:
        body: dict = {"apikey": self.api_key, "outputformat": output_format.lower().lstrip(".")}
        if _is_url(file):
            body["input"] = "url"
            body["file"] = file
        else:
            if isinstance(file, bytes):
                if not filename:
                    raise ValueError("filename is required when converting raw bytes")
                raw = file
            else:
                path = Path(file)
                raw = path.read_bytes()
                filename = filename or path.name
            body["input"] = "base64"
            body["file"] = base64.b64encode(raw).decode("ascii")
            body["filename"] = filename
        payload = _http.post_json(f"{self.base_url}/convert", service=SERVICE, json=body, check=False)
        self.id = parse_as(_StartData, unwrap(payload), SERVICE).id
        logger.info("[convertio] Started conversion %s -> %s", self.id, body["outputformat"])
        return self.id

    def status(self) -> ConversionStatus:
        job_id = self._require_id()
        payload = _http.get_json(f"{self.base_url}/convert/{job_id}/status", service=SERVICE, check=False)
        self.last_status = parse_status(payload)
        return self.last_status

    def _poll(self) -> PollResult[ConversionStatus]:
        st = self.status()
        if st.step == "error":
            return PollResult(error=f"conversion {st.id} reported step 'error'")
        logger.debug("[convertio] %s: step=%s %s%%", st.id, st.step, st.percent)
        return PollResult(done=st.finished, value=st)

    def wait(self, cancel_event: Optional[threading.Event] = None) -> ConversionStatus:
        self._require_id()
        job: PollingJob[ConversionStatus] = PollingJob(
            self._poll, name=SERVICE, settings=self.settings, cancel_event=cancel_event
        )
        return job.run()

    def download(self, out_path: Optional[Path] = None) -> bytes:
        job_id = self._require_id()
        payload = _http.get_json(f"{self.base_url}/convert/{job_id}/dl/base64", service=SERVICE, check=False)
        data = parse_as(_DownloadData, unwrap(payload), SERVICE)
        try:
            content = base64.b64decode(data.content)
        except ValueError as e:
            raise ParseError(SERVICE, f"content is not base64 ({e})") from e
        if out_path is not None:
            out_path = Path(out_path)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_bytes(content)
            logger.info("[convertio] Saved %s (%d bytes)", out_path, len(content))
        return content

    def delete(self) -> None:
        job_id = self._require_id()
        resp = _http.request("DELETE", f"{self.base_url}/convert/{job_id}", service=SERVICE, check=False)
        unwrap(_http.decode_json(resp, SERVICE))
        logger.info("[convertio] Deleted conversion %s", job_id)


def convert_file(
    file: FileInput,
    output_format: str,
    out_path: Optional[Path] = None,
    *,
    api_key: Optional[str] = None,
    filename: Optional[str] = None,
    settings: Optional[PollSettings] = None,
    cancel_event: Optional[threading.Event] = None,
) -> bytes:
    """Convert `file` to `output_format` and return the converted bytes (also written to out_path if given)."""
    conv = Conversion(api_key, settings=settings)
    conv.start(file, output_format, filename=filename)
    conv.wait(cancel_event=cancel_event)
    return conv.download(out_path)
