# httputil/body.py

import asyncio
import inspect
from typing import Any, AsyncIterator, Callable, Iterator, Optional, Union

import pydantic_core

from httputil.core.exceptions import BodyEncodeError

MarshalFunc = Callable[[Any], Union[bytes, str]]
Content = Union[bytes, Iterator[bytes], AsyncIterator[bytes]]

CHUNK_SIZE = 64 * 1024


def default_marshal(value: Any) -> bytes:
    """Sérialisation JSON par défaut (dict, list, modèles pydantic, dataclasses...)."""
    return pydantic_core.to_json(value)


def is_reader(data: Any) -> bool:
    return callable(getattr(data, "read", None))


def _to_bytes(chunk: Union[bytes, str]) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


def iter_reader(reader: Any) -> Iterator[bytes]:
    """Lit un objet file-like par blocs, sans le charger entièrement en mémoire."""
    while True:
        chunk = reader.read(CHUNK_SIZE)
        if not chunk:
            return
        yield _to_bytes(chunk)


async def aiter_reader(reader: Any) -> AsyncIterator[bytes]:
    """
    Equivalent asynchrone de iter_reader ; accepte un read() synchrone ou une coroutine.

    Un read() synchrone est exécuté dans un thread pour ne pas bloquer la boucle.
    """
    is_async = inspect.iscoroutinefunction(reader.read)
    while True:
        if is_async:
            chunk = await reader.read(CHUNK_SIZE)
        else:
            chunk = await asyncio.to_thread(reader.read, CHUNK_SIZE)
        if not chunk:
            return
        yield _to_bytes(chunk)


def encode_body(data: Any, marshal_func: Optional[MarshalFunc] = None, *, asynchronous: bool = False) -> Optional[Content]:
    """
    Transforme une valeur arbitraire en contenu transmissible par httpx.

    - None, "" ou b"" : pas de corps (None)
    - objet avec read() : flux transmis tel quel (itérateur de blocs)
    - str / bytes non vides : corps littéral
    - toute autre valeur : sérialisée par marshal_func (JSON par défaut)

    :param asynchronous: produit un itérateur asynchrone pour les flux (AsyncClient)
    """
    if data is None:
        return None

    if is_reader(data):
        return aiter_reader(data) if asynchronous else iter_reader(data)

    if isinstance(data, str):
        return data.encode("utf-8") if data else None

    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data) if len(data) > 0 else None

    marshal = marshal_func or default_marshal
    try:
        encoded = marshal(data)
    except Exception as e:
        raise BodyEncodeError(f"Impossible de sérialiser le corps ({type(data).__name__}): {e}") from e
    return _to_bytes(encoded)
