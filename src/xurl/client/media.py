"""Chunked media upload state machine.

:class:`MediaUploader` drives the four-step upload protocol against
``/2/media/upload``::

    CREATED -> INITIALIZED -> APPENDING -> FINALIZED -> (PROCESSING -> SUCCEEDED | FAILED)

1. ``initialize`` declares the total size, media type and category and
   returns the media id that every later step needs.
2. ``append`` sends the file in 4 MiB multipart segments, numbered from 0.
3. ``finalize`` closes the upload.
4. Optionally, ``STATUS`` is polled until processing reports
   ``succeeded`` or ``failed``, sleeping for the server-suggested interval
   (at least one second) between polls. There is no attempt cap.

Any failure aborts the whole upload; nothing is retried at this layer.
"""

from __future__ import annotations

import json
import os
import time
from enum import Enum
from typing import Any, Callable, Optional
from urllib.parse import parse_qsl

from pydantic import BaseModel

from xurl.client.api_client import ApiClient
from xurl.exceptions import IOError_, JSONError, MediaError
from xurl.models import MultipartOptions, RequestOptions
from xurl.output import get_output

MEDIA_ENDPOINT = "/2/media/upload"
CHUNK_SIZE = 4 * 1024 * 1024

DEFAULT_MEDIA_TYPE = "video/mp4"
DEFAULT_MEDIA_CATEGORY = "amplify_video"


class MediaUploadState(str, Enum):
    CREATED = "created"
    INITIALIZED = "initialized"
    APPENDING = "appending"
    FINALIZED = "finalized"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class MediaUploadSession(BaseModel):
    """Progress of one upload."""

    media_id: Optional[str] = None
    source_size: int = 0
    bytes_sent: int = 0
    segment_index: int = 0
    state: MediaUploadState = MediaUploadState.CREATED


class MediaUploader:
    """Upload one file through the media endpoints.

    Args:
        client: An entered :class:`~xurl.client.api_client.ApiClient`.
        file_path: File to upload. May be empty when only checking the
            status of an existing media id.
        chunk_size: Segment size in bytes.
        sleep: Called with the poll interval in seconds (tests stub it).
        **request_fields: Extra :class:`~xurl.models.RequestOptions`
            fields applied to every step (``headers``, ``auth_type``,
            ``username``, ``app_name``, ``verbose``, ``trace``).

    Raises:
        IOError_: If *file_path* cannot be accessed.
        MediaError: If *file_path* is not a regular file.
    """

    def __init__(
        self,
        client: ApiClient,
        file_path: str = "",
        chunk_size: int = CHUNK_SIZE,
        sleep: Callable[[float], None] = time.sleep,
        **request_fields: Any,
    ) -> None:
        self._client = client
        self._file_path = file_path
        self._chunk_size = chunk_size
        self._sleep = sleep
        self._fields = request_fields
        self.session = MediaUploadSession()

        if file_path:
            try:
                info = os.stat(file_path)
            except OSError as exc:
                raise IOError_(f"Error accessing file {file_path}: {exc}") from exc
            if not os.path.isfile(file_path):
                raise MediaError(f"{file_path} is not a regular file")
            self.session.source_size = info.st_size

    @property
    def media_id(self) -> Optional[str]:
        return self.session.media_id

    @media_id.setter
    def media_id(self, value: str) -> None:
        self.session.media_id = value

    # ------------------------------------------------------------------ #
    # Protocol steps
    # ------------------------------------------------------------------ #

    def init(
        self,
        media_type: str = DEFAULT_MEDIA_TYPE,
        media_category: str = DEFAULT_MEDIA_CATEGORY,
    ) -> Any:
        """Declare the upload and store the returned media id.

        Raises:
            JSONError: If the response is not a JSON object.
            MediaError: If the response carries no ``data.id``.
        """
        get_output().debug("Initializing media upload...")
        body = {
            "total_bytes": self.session.source_size,
            "media_type": media_type,
            "media_category": media_category,
        }
        response = self._client.send_request(
            self._options("POST", f"{MEDIA_ENDPOINT}/initialize", data=_json(body))
        )
        if not isinstance(response, dict):
            raise JSONError(f"Initialize response is not a JSON object: {_json(response)}")
        data = response.get("data")
        media_id = data.get("id") if isinstance(data, dict) else None
        if not media_id:
            raise MediaError("Initialize response did not include a media id")
        self.session.media_id = str(media_id)
        self.session.state = MediaUploadState.INITIALIZED
        return response

    def append(self) -> None:
        """Send the file in fixed-size segments with increasing ``segment_index``."""
        media_id = self._require_media_id()
        output = get_output()
        file_name = os.path.basename(self._file_path)

        try:
            f = open(self._file_path, "rb")
        except OSError as exc:
            raise IOError_(f"Error opening file {self._file_path}: {exc}") from exc

        with f:
            while True:
                try:
                    chunk = f.read(self._chunk_size)
                except OSError as exc:
                    raise IOError_(f"Error reading file {self._file_path}: {exc}") from exc
                if not chunk:
                    break

                self.session.state = MediaUploadState.APPENDING
                self._client.send_multipart_request(
                    MultipartOptions(
                        method="POST",
                        endpoint=f"{MEDIA_ENDPOINT}/{media_id}/append",
                        form_fields={"segment_index": str(self.session.segment_index)},
                        file_field="media",
                        file_name=file_name,
                        file_data=chunk,
                        **self._fields,
                    )
                )
                self.session.bytes_sent += len(chunk)
                self.session.segment_index += 1

                if self.session.source_size:
                    percent = self.session.bytes_sent / self.session.source_size * 100
                    output.debug(
                        f"Uploaded {self.session.bytes_sent} of {self.session.source_size} bytes ({percent:.2f}%)"
                    )

    def finalize(self) -> Any:
        """Close the upload. Sends no body."""
        media_id = self._require_media_id()
        get_output().debug("Finalizing media upload...")
        response = self._client.send_request(
            self._options("POST", f"{MEDIA_ENDPOINT}/{media_id}/finalize")
        )
        self.session.state = MediaUploadState.FINALIZED
        return response

    def check_status(self) -> Any:
        media_id = self._require_media_id()
        return self._client.send_request(
            self._options("GET", f"{MEDIA_ENDPOINT}?command=STATUS&media_id={media_id}")
        )

    def wait_for_processing(self) -> Any:
        """Poll the status endpoint until processing finishes.

        Returns:
            The final status response.

        Raises:
            MediaError: If processing reports ``failed``.
        """
        self._require_media_id()
        output = get_output()
        self.session.state = MediaUploadState.PROCESSING

        while True:
            response = self.check_status()
            info = _processing_info(response)
            state = info.get("state")

            if state == "succeeded":
                self.session.state = MediaUploadState.SUCCEEDED
                return response
            if state == "failed":
                self.session.state = MediaUploadState.FAILED
                raise MediaError(f"Media processing failed: {_json(response)}")

            try:
                delay = int(info.get("check_after_secs") or 0)
            except (TypeError, ValueError):
                delay = 0
            delay = max(delay, 1)
            output.debug(
                f"Media processing in progress ({info.get('progress_percent', 0)}%), "
                f"checking again in {delay} seconds..."
            )
            self._sleep(delay)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _options(self, method: str, endpoint: str, data: str = "") -> RequestOptions:
        return RequestOptions(method=method, endpoint=endpoint, data=data, **self._fields)

    def _require_media_id(self) -> str:
        if not self.session.media_id:
            raise MediaError("Media ID not set, call init first")
        return self.session.media_id


def execute_media_upload(
    client: ApiClient,
    file_path: str,
    media_type: str = DEFAULT_MEDIA_TYPE,
    media_category: str = DEFAULT_MEDIA_CATEGORY,
    wait_for_processing: bool = True,
    sleep: Callable[[float], None] = time.sleep,
    **request_fields: Any,
) -> str:
    """Upload *file_path* end to end and print the responses.

    Processing is awaited only when requested and the category is a
    video category.

    Returns:
        The media id.
    """
    output = get_output()
    uploader = MediaUploader(client, file_path, sleep=sleep, **request_fields)
    uploader.init(media_type, media_category)
    uploader.append()
    output.format_response(uploader.finalize())

    if wait_for_processing and "video" in media_category:
        output.format_response(uploader.wait_for_processing())

    media_id = uploader.media_id or ""
    output.success(f"Media uploaded successfully! Media ID: {media_id}")
    return media_id


def execute_media_status(
    client: ApiClient,
    media_id: str,
    wait: bool = False,
    sleep: Callable[[float], None] = time.sleep,
    **request_fields: Any,
) -> Any:
    """Print (and return) the processing status of *media_id*."""
    uploader = MediaUploader(client, sleep=sleep, **request_fields)
    uploader.media_id = media_id
    response = uploader.wait_for_processing() if wait else uploader.check_status()
    get_output().format_response(response)
    return response


def _processing_info(response: Any) -> dict[str, Any]:
    data = response.get("data") if isinstance(response, dict) else None
    info = data.get("processing_info") if isinstance(data, dict) else None
    return info if isinstance(info, dict) else {}


def _json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


# ------------------------------------------------------------------ #
# Raw append requests (``xurl request .../append -F FILE``)
# ------------------------------------------------------------------ #


def extract_media_id(url: str) -> str:
    """Return the media id named by a media endpoint URL, or ``""``.

    The id is taken from the ``/{id}/append`` or ``/{id}/finalize`` path
    segment, falling back to a ``media_id`` query parameter.
    """
    if not url or MEDIA_ENDPOINT not in url or url.endswith(f"{MEDIA_ENDPOINT}/initialize"):
        return ""

    path, _, query = url.partition("?")
    _, sep, rest = path.partition(f"{MEDIA_ENDPOINT}/")
    if sep:
        for suffix in ("/append", "/finalize"):
            idx = rest.find(suffix)
            if idx != -1:
                return rest[:idx]

    for key, value in parse_qsl(query):
        if key == "media_id":
            return value
    return ""


def extract_command(url: str) -> str:
    """Classify a media endpoint URL as ``initialize``, ``append``, ``finalize`` or ``status``."""
    path = url.partition("?")[0]
    _, sep, rest = path.partition(f"{MEDIA_ENDPOINT}/")
    if not sep:
        return "status" if MEDIA_ENDPOINT in path else ""
    if "/append" in rest:
        return "append"
    if "/finalize" in rest:
        return "finalize"
    if rest == "initialize":
        return "initialize"
    return "status"


def extract_segment_index(data: str) -> str:
    """Return ``segment_index`` from a JSON request body, or ``""``."""
    try:
        payload = json.loads(data)
    except ValueError:
        return ""
    if not isinstance(payload, dict) or "segment_index" not in payload:
        return ""
    return str(payload["segment_index"])


def is_media_append_request(url: str, media_file: str) -> bool:
    return bool(media_file) and extract_command(url) == "append"


def handle_media_append_request(options: RequestOptions, media_file: str, client: ApiClient) -> Any:
    """Send *media_file* as one append segment for the media id in the URL.

    The segment index comes from the JSON body (default ``0``).

    Raises:
        MediaError: If the URL names no media id.
    """
    if not extract_media_id(options.endpoint):
        raise MediaError("media_id is required for append endpoint")

    segment_index = extract_segment_index(options.data) or "0"
    multipart = MultipartOptions(
        **options.model_dump(exclude={"data"}),
        form_fields={"segment_index": segment_index},
        file_field="media",
        file_path=media_file,
        file_name=os.path.basename(media_file),
    )
    return client.send_multipart_request(multipart)
