# httputil/client.py

import re
from typing import Any, Dict, Mapping, Optional

import httpx
from opentelemetry import trace

from httputil.body import MarshalFunc, default_marshal, encode_body
from httputil.core.config import get_timeout
from httputil.core.exceptions import BodyReadError, RequestBuildError
from httputil.core.logger import get_logger
from httputil.response import Response, UnmarshalFunc
from httputil.tracing import ReadTimer, RequestContext, child_span

logger = get_logger(__name__)

Headers = Optional[Mapping[str, str]]

# token RFC 7230 (section 3.2.6)
METHOD_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


class _BaseClient:
    """Configuration et construction des requêtes, communes aux clients sync et async."""

    _asynchronous = False

    def __init__(self, transport, base_url: str = "",
                 marshal_func: Optional[MarshalFunc] = None,
                 unmarshal_func: Optional[UnmarshalFunc] = None,
                 tracer_provider: Optional[trace.TracerProvider] = None):
        self.transport = transport
        # Préfixe concaténé tel quel au chemin de chaque appel
        self.base_url = base_url or ""
        self.marshal_func = marshal_func
        self.unmarshal_func = unmarshal_func
        self.tracer_provider = tracer_provider

    def get_marshal_func(self) -> MarshalFunc:
        if self.marshal_func is not None:
            return self.marshal_func
        return default_marshal

    def _make_request(self, method: str, url: str, headers: Headers, body: Any,
                      timeout: Optional[float] = None) -> httpx.Request:
        content = encode_body(body, self.get_marshal_func(), asynchronous=self._asynchronous)

        if self.base_url:
            url = self.base_url + url
        if not method:
            raise RequestBuildError(f"Méthode HTTP manquante pour {url}")
        if not METHOD_TOKEN.fullmatch(method):
            raise RequestBuildError(f"Méthode HTTP invalide {method!r} pour {url}")

        kwargs: Dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            return self.transport.build_request(
                method.upper(), url, headers=dict(headers or {}), content=content, **kwargs
            )
        except httpx.InvalidURL as e:
            raise RequestBuildError(f"Requête invalide {method} {url}: {e}") from e

    def _new_response(self, raw: httpx.Response, body: bytes) -> Response:
        logger.debug(f"⬅️ Response {raw.status_code} ({len(body)} bytes)")
        return Response(raw, body, unmarshal_func=self.unmarshal_func)


class Client(_BaseClient):
    """
    Façade synchrone au-dessus de httpx.Client.

    Le corps de chaque réponse est entièrement lu puis le flux est fermé
    avant de rendre la main : Response ne fait plus aucune I/O.
    """

    def __init__(self, transport: Optional[httpx.Client] = None, base_url: str = "",
                 marshal_func: Optional[MarshalFunc] = None,
                 unmarshal_func: Optional[UnmarshalFunc] = None,
                 tracer_provider: Optional[trace.TracerProvider] = None):
        if transport is None:
            transport = httpx.Client(timeout=get_timeout())
        super().__init__(transport, base_url, marshal_func, unmarshal_func, tracer_provider)

    def do(self, method: str, url: str, headers: Headers = None, body: Any = None) -> Response:
        request = self._make_request(method, url, headers, body)
        return self.do_req(request)

    def do_ctx(self, ctx: Optional[RequestContext], op_name: str, method: str, url: str,
               headers: Headers = None, body: Any = None) -> Response:
        """
        Comme do(), avec un span enfant op_name si ctx porte un span actif,
        et le timeout de ctx appliqué à la requête.
        """
        if ctx is None:
            return self.do(method, url, headers, body)

        request = self._make_request(method, url, headers, body, timeout=ctx.timeout)
        with child_span(ctx, op_name, self.tracer_provider) as span:
            if span is None or not span.is_recording():
                return self.do_req(request)

            timer = ReadTimer(op_name)
            request.extensions["trace"] = timer.hook
            try:
                return self.do_req(request)
            finally:
                timer.log_time_spent(span)

    def do_req(self, request: httpx.Request) -> Response:
        logger.debug(f"➡️ {request.method} {request.url}")

        # Les erreurs de transport (connexion, timeout...) remontent telles quelles
        raw = self.transport.send(request, stream=True)
        try:
            body = raw.read()
        except httpx.HTTPError as e:
            raise BodyReadError(f"Lecture du corps impossible ({request.method} {request.url}): {e}") from e
        finally:
            raw.close()

        return self._new_response(raw, body)

    def do_json(self, method: str, url: str, headers: Headers, body: Any, target: Any) -> Any:
        """Appel + contrôle du statut 200 + décodage vers target."""
        resp = self.do(method, url, headers, body)
        resp.ok()
        return resp.json(target)

    def do_json_ctx(self, ctx: Optional[RequestContext], op_name: str, method: str, url: str,
                    headers: Headers, body: Any, target: Any) -> Any:
        resp = self.do_ctx(ctx, op_name, method, url, headers, body)
        resp.ok()
        return resp.json(target)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class AsyncClient(_BaseClient):
    """Façade asynchrone au-dessus de httpx.AsyncClient, mêmes opérations que Client."""

    _asynchronous = True

    def __init__(self, transport: Optional[httpx.AsyncClient] = None, base_url: str = "",
                 marshal_func: Optional[MarshalFunc] = None,
                 unmarshal_func: Optional[UnmarshalFunc] = None,
                 tracer_provider: Optional[trace.TracerProvider] = None):
        if transport is None:
            transport = httpx.AsyncClient(timeout=get_timeout())
        super().__init__(transport, base_url, marshal_func, unmarshal_func, tracer_provider)

    async def do(self, method: str, url: str, headers: Headers = None, body: Any = None) -> Response:
        request = self._make_request(method, url, headers, body)
        return await self.do_req(request)

    async def do_ctx(self, ctx: Optional[RequestContext], op_name: str, method: str, url: str,
                     headers: Headers = None, body: Any = None) -> Response:
        if ctx is None:
            return await self.do(method, url, headers, body)

        request = self._make_request(method, url, headers, body, timeout=ctx.timeout)
        with child_span(ctx, op_name, self.tracer_provider) as span:
            if span is None or not span.is_recording():
                return await self.do_req(request)

            timer = ReadTimer(op_name)
            request.extensions["trace"] = timer.ahook
            try:
                return await self.do_req(request)
            finally:
                timer.log_time_spent(span)

    async def do_req(self, request: httpx.Request) -> Response:
        logger.debug(f"➡️ {request.method} {request.url}")

        raw = await self.transport.send(request, stream=True)
        try:
            body = await raw.aread()
        except httpx.HTTPError as e:
            raise BodyReadError(f"Lecture du corps impossible ({request.method} {request.url}): {e}") from e
        finally:
            await raw.aclose()

        return self._new_response(raw, body)

    async def do_json(self, method: str, url: str, headers: Headers, body: Any, target: Any) -> Any:
        resp = await self.do(method, url, headers, body)
        resp.ok()
        return resp.json(target)

    async def do_json_ctx(self, ctx: Optional[RequestContext], op_name: str, method: str, url: str,
                          headers: Headers, body: Any, target: Any) -> Any:
        resp = await self.do_ctx(ctx, op_name, method, url, headers, body)
        resp.ok()
        return resp.json(target)

    async def aclose(self) -> None:
        await self.transport.aclose()

    # Support du bloc 'async with', comme le client httpx sous-jacent
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
