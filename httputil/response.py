# httputil/response.py

from typing import Any, Callable, Optional, Protocol, runtime_checkable

import httpx
import pydantic_core
from pydantic import TypeAdapter

from httputil.core.exceptions import DecodeError, UnexpectedStatusError

UnmarshalFunc = Callable[[bytes, Any], Any]


@runtime_checkable
class ResponseValidator(Protocol):
    """Capacité optionnelle d'une cible décodée : valider la réponse après décodage."""

    def validate_response(self, resp: "Response") -> None:
        ...


def default_unmarshal(data: bytes, target: Any) -> Any:
    """
    Décodage JSON par défaut.

    - dict / list existants : remplis sur place et retournés
    - type ou annotation (modèle pydantic, dataclass, dict[str, int]...) :
      validé avec pydantic.TypeAdapter et retourné
    """
    if isinstance(target, dict):
        value = pydantic_core.from_json(data)
        if not isinstance(value, dict):
            raise TypeError(f"JSON object expected, got {type(value).__name__}")
        target.clear()
        target.update(value)
        return target

    if isinstance(target, list):
        value = pydantic_core.from_json(data)
        if not isinstance(value, list):
            raise TypeError(f"JSON array expected, got {type(value).__name__}")
        target[:] = value
        return target

    return TypeAdapter(target).validate_json(data)


class Response:
    """
    Réponse httpx dont le corps a été entièrement lu avant la fermeture du flux.

    Le corps est figé (bytes) ; body, ok(), check() et json() ne font aucune I/O.
    """

    def __init__(self, raw: httpx.Response, body: bytes, unmarshal_func: Optional[UnmarshalFunc] = None):
        self.raw = raw
        self._body = body
        self.unmarshal_func = unmarshal_func

    def __repr__(self) -> str:
        return f"<Response [{self.status}] {self.method} {self.url}>"

    # ---------------- Accesseurs ----------------
    @property
    def body(self) -> bytes:
        return self._body

    @property
    def text(self) -> str:
        return self._body.decode(self.raw.encoding or "utf-8", errors="replace")

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def status(self) -> str:
        """Ligne de statut, ex: '200 OK'."""
        return f"{self.raw.status_code} {self.raw.reason_phrase}".strip()

    @property
    def headers(self) -> httpx.Headers:
        return self.raw.headers

    @property
    def request(self) -> httpx.Request:
        return self.raw.request

    @property
    def method(self) -> str:
        return self.raw.request.method

    @property
    def url(self) -> str:
        return str(self.raw.request.url)

    # ---------------- Contrôle du statut ----------------
    def ok(self) -> None:
        """Lève UnexpectedStatusError si le statut n'est pas exactement 200."""
        if self.status_code != httpx.codes.OK:
            raise self.code_error()

    def check(self, *codes: int) -> None:
        """Lève UnexpectedStatusError si le statut ne fait pas partie de codes."""
        if self.status_code in codes:
            return
        raise self.code_error()

    def code_error(self) -> UnexpectedStatusError:
        return UnexpectedStatusError(
            method=self.method,
            url=self.url,
            status=self.status,
            status_code=self.status_code,
            body=self._body,
        )

    # ---------------- Décodage ----------------
    def json(self, target: Any) -> Any:
        """
        Décode le corps vers target et retourne la valeur décodée.

        Sans cible (None) rien n'est décodé. Si la valeur décodée implémente
        validate_response(resp), son résultat (exception) devient celui de l'appel.
        """
        if target is None:
            return None

        try:
            value = self.get_unmarshal_func()(self._body, target)
        except Exception as e:
            raise DecodeError(e, self._body) from e

        if isinstance(value, ResponseValidator):
            value.validate_response(self)
        return value

    def get_unmarshal_func(self) -> UnmarshalFunc:
        if self.unmarshal_func is not None:
            return self.unmarshal_func
        return default_unmarshal
