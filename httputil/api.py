# httputil/api.py

import threading
from typing import Any, Optional

from httputil.client import Client, Headers
from httputil.core.config import get_base_url
from httputil.response import Response
from httputil.tracing import RequestContext

_default_client: Optional[Client] = None
_default_lock = threading.Lock()


def get_default_client() -> Client:
    """Client partagé, configuré par HTTPUTIL_BASE_URL / HTTPUTIL_TIMEOUT au premier appel."""
    global _default_client
    with _default_lock:
        if _default_client is None:
            _default_client = Client(base_url=get_base_url())
        return _default_client


def set_default_client(client: Optional[Client]) -> None:
    """
    Remplace le client partagé (None : reconstruit depuis la configuration au prochain appel).

    Le client remplacé est fermé ; il ne doit plus être utilisé par l'appelant.
    """
    global _default_client
    with _default_lock:
        previous, _default_client = _default_client, client
    if previous is not None and previous is not client:
        previous.close()


def get(url: str, headers: Headers = None, body: Any = None) -> Response:
    return get_default_client().do("GET", url, headers, body)


def get_ctx(ctx: Optional[RequestContext], op_name: str, url: str,
            headers: Headers = None, body: Any = None) -> Response:
    return get_default_client().do_ctx(ctx, op_name, "GET", url, headers, body)


def post(url: str, headers: Headers = None, body: Any = None) -> Response:
    return get_default_client().do("POST", url, headers, body)


def post_ctx(ctx: Optional[RequestContext], op_name: str, url: str,
             headers: Headers = None, body: Any = None) -> Response:
    return get_default_client().do_ctx(ctx, op_name, "POST", url, headers, body)


def head(url: str, headers: Headers = None, body: Any = None) -> Response:
    return get_default_client().do("HEAD", url, headers, body)


def head_ctx(ctx: Optional[RequestContext], op_name: str, url: str,
             headers: Headers = None, body: Any = None) -> Response:
    return get_default_client().do_ctx(ctx, op_name, "HEAD", url, headers, body)


def put(url: str, headers: Headers = None, body: Any = None) -> Response:
    return get_default_client().do("PUT", url, headers, body)


def put_ctx(ctx: Optional[RequestContext], op_name: str, url: str,
            headers: Headers = None, body: Any = None) -> Response:
    return get_default_client().do_ctx(ctx, op_name, "PUT", url, headers, body)


def delete(url: str, headers: Headers = None, body: Any = None) -> Response:
    return get_default_client().do("DELETE", url, headers, body)


def delete_ctx(ctx: Optional[RequestContext], op_name: str, url: str,
               headers: Headers = None, body: Any = None) -> Response:
    return get_default_client().do_ctx(ctx, op_name, "DELETE", url, headers, body)
