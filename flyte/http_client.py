"""A small JSON-oriented HTTP client for talking to the API."""

from __future__ import annotations

import json
import warnings
from typing import Any, Mapping, Optional
from urllib.parse import urljoin

import requests

MEDIA_TYPE_JSON = "application/json"
MULTIPART_FILE_FIELD = "value"
MULTIPART_FILE_NAME = "test_file_item"


class HttpClient:
    """HTTP client with a timeout that does not verify TLS certificates."""

    def __init__(self, timeout: float = 15.0) -> None:
        self.timeout = timeout
        self._session = requests.Session()
        self._session.verify = False

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", message="Unverified HTTPS request")
            return self._session.request(method, url, timeout=self.timeout, **kwargs)

    def post(self, url: str, body: str) -> requests.Response:
        """POST a JSON text body."""
        return self._request(
            "POST", url, data=body.encode("utf-8"), headers={"Content-Type": MEDIA_TYPE_JSON}
        )

    def post_resource(self, url: str, body: str) -> str:
        """POST a JSON text body and return the absolute URL from the Location header."""
        response = self.post(url, body)
        location = response.headers.get("Location")
        if not location:
            raise LookupError("http: no Location header in response")
        return urljoin(response.url or url, location)

    def post_json(self, url: str, payload: Any) -> requests.Response:
        """POST a value serialised as JSON."""
        try:
            body = json.dumps(payload)
        except (TypeError, ValueError) as err:
            raise ValueError(f"cannot marshal body '{payload!r}': {err}") from err
        return self._request(
            "POST", url, data=body.encode("utf-8"), headers={"Content-Type": MEDIA_TYPE_JSON}
        )

    def post_with_json_response(self, url: str, body: str) -> Any:
        """POST a JSON text body and return the decoded JSON response."""
        response = self.post(url, body)
        return self._decode(url, response)

    def put_multipart(
        self,
        url: str,
        form: Optional[Mapping[str, str]],
        file_content: bytes,
        file_content_type: str,
    ) -> requests.Response:
        """PUT a multipart form: the file as field 'value', then the form fields."""
        parts: list[tuple[str, tuple[Optional[str], Any, Optional[str]]]] = [
            (MULTIPART_FILE_FIELD, (MULTIPART_FILE_NAME, bytes(file_content), file_content_type))
        ]
        parts.extend((name, (None, value, None)) for name, value in (form or {}).items())
        return self._request("PUT", url, files=parts)

    def get_json(self, url: str) -> Any:
        """GET a URL and return the decoded JSON response."""
        return self._decode(url, self.get(url))

    def get(self, url: str) -> requests.Response:
        """GET a URL, asking for JSON."""
        return self._request("GET", url, headers={"Accept": MEDIA_TYPE_JSON})

    def delete(self, url: str) -> requests.Response:
        """DELETE a URL."""
        return self._request("DELETE", url)

    @staticmethod
    def _decode(url: str, response: requests.Response) -> Any:
        try:
            return json.loads(response.content)
        except ValueError as err:
            raise ValueError(f'could not deserialise response from "{url}": {err}') from err