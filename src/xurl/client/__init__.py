"""HTTP layer: request dispatch, request routing and chunked media upload."""

from xurl.client.api_client import ApiClient, iter_stream_lines, process_response
from xurl.client.execute import handle_request, is_streaming_endpoint
from xurl.client.media import MediaUploader, execute_media_status, execute_media_upload

__all__ = [
    "ApiClient",
    "MediaUploader",
    "execute_media_status",
    "execute_media_upload",
    "handle_request",
    "is_streaming_endpoint",
    "iter_stream_lines",
    "process_response",
]
