from __future__ import annotations

import logging
import time
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from .builder import bind_arguments, build_request
from .codec import Codec
from .decoder import StatusPolicy, decode_response, is_success_status
from .descriptors import MethodDescriptor
from .errors import ClientError, TransportError
from .messages import Response
from .observability import elapsed_ms, log_event, new_request_id
from .transport import Transport


class Dispatcher:
    """
    Runs one logical call: build -> transport.execute -> status policy -> decode.
    - A BuildError never reaches the transport
    - Anything a transport raises that is not a ClientError becomes TransportError
    - Holds no per-call state, so one instance serves concurrent calls
    """

    def __init__(
        self,
        *,
        base_url: str,
        transport: Transport,
        codec: Codec,
        status_policy: StatusPolicy = is_success_status,
        default_headers: Iterable[Tuple[str, str]] = (),
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = base_url
        self.transport = transport
        self.codec = codec
        self.status_policy = status_policy
        self.default_headers = tuple(default_headers)
        self.log = logger or logging.getLogger("declarest.dispatcher")

    async def invoke(
        self,
        descriptor: MethodDescriptor,
        args: Sequence[Any] = (),
        kwargs: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        request_id = new_request_id()
        start = time.perf_counter()
        fields = {
            "request_id": request_id,
            "method": descriptor.name,
            "verb": descriptor.verb.value,
            "endpoint": descriptor.path_template,
        }

        status: Any = None
        try:
            values = bind_arguments(descriptor, args, kwargs)
            request = build_request(
                descriptor,
                self.base_url,
                values,
                self.codec,
                default_headers=self.default_headers,
            )
            response = await self._execute(descriptor, request)
            status = response.status
            result = decode_response(
                response,
                descriptor,
                self.codec,
                request=request,
                status_policy=self.status_policy,
            )
        except ClientError as exc:
            log_event(
                "client_call",
                self.log,
                status=status if status is not None else "error",
                duration_ms=elapsed_ms(start),
                error_type=type(exc).__name__,
                **fields,
            )
            raise

        log_event(
            "client_call",
            self.log,
            status=status,
            duration_ms=elapsed_ms(start),
            **fields,
        )
        return result

    async def _execute(self, descriptor: MethodDescriptor, request) -> Response:
        try:
            response = await self.transport.execute(request)
        except ClientError as exc:
            if exc.method_name is None:
                exc.method_name = descriptor.name
            raise
        except Exception as exc:
            raise TransportError(
                f"Transport failed calling {request.method.value} {request.url}: {exc}",
                method_name=descriptor.name,
            ) from exc

        if not isinstance(response, Response):
            raise TransportError(
                f"Transport returned {type(response).__name__}, expected Response",
                method_name=descriptor.name,
            )
        return response


__all__ = ["Dispatcher"]
