from __future__ import annotations

import inspect
from typing import Awaitable, Callable, List, Union

from declarest.core.messages import Request, Response

Handler = Callable[[Request], Union[Response, Awaitable[Response]]]


class MockTransport:
    """
    In-memory transport driven by a handler callable.
    The handler may be sync or async; exceptions it raises propagate to the caller.
    Every request seen is appended to `requests`.
    """

    def __init__(self, handler: Handler):
        self.handler = handler
        self.requests: List[Request] = []

    async def execute(self, request: Request) -> Response:
        self.requests.append(request)
        result = self.handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def aclose(self) -> None:
        return None


__all__ = ["MockTransport", "Handler"]
