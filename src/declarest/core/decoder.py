from __future__ import annotations

from typing import Any, Callable

from .codec import Codec
from .descriptors import MethodDescriptor, ReturnKind
from .errors import ClientError, ShapeError, UnsuccessfulStatusError
from .messages import Request, Response

StatusPolicy = Callable[[int], bool]


def is_success_status(status: int) -> bool:
    return 200 <= status < 300


def decode_response(
    response: Response,
    descriptor: MethodDescriptor,
    codec: Codec,
    *,
    request: Request | None = None,
    status_policy: StatusPolicy = is_success_status,
) -> Any:
    """
    Decode a transport response according to the descriptor's return kind.
    - RAW_RESPONSE hands back the response untouched, whatever its status
    - statuses rejected by the policy raise UnsuccessfulStatusError
    - NO_BODY yields None; TYPED_BODY goes through the codec
    """
    kind = descriptor.return_kind
    if kind is ReturnKind.RAW_RESPONSE:
        return response

    if not status_policy(response.status):
        raise UnsuccessfulStatusError(
            status_code=response.status,
            body=response.body,
            method=descriptor.verb.value,
            url=request.url if request is not None else descriptor.path_template,
            response=response,
            method_name=descriptor.name,
        )

    if kind is ReturnKind.NO_BODY:
        return None

    try:
        return codec.deserialize(response.body, descriptor.return_type)
    except ClientError as exc:
        if exc.method_name is None:
            exc.method_name = descriptor.name
        raise
    except Exception as exc:
        raise ShapeError(
            f"{descriptor.name}: cannot decode response body: {exc}",
            method_name=descriptor.name,
        ) from exc


__all__ = ["StatusPolicy", "is_success_status", "decode_response"]
