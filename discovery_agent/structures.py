from typing import Mapping, Optional

import requests


class FlatResponse:
    """ Emulates as much of a Requests response as the directory client needs, for both sync and async calls."""

    def __init__(self, headers: Mapping[str, str], url: str, status_code: int, content: bytes,
                 encoding: Optional[str] = None, reason: Optional[str] = None):
        self.headers = headers
        self.url = url
        self.status_code = status_code
        self.content = content
        self.encoding = encoding
        self.reason: Optional[str] = reason

    def __repr__(self):
        return f"<FlatResponse [{self.status_code}] {self.url}>"

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    @classmethod
    def from_requests(cls, response: requests.Response) -> "FlatResponse":
        return cls(
            headers=response.headers,
            url=response.url,
            status_code=response.status_code,
            content=response.content,
            encoding=response.encoding,
            reason=response.reason,
        )
