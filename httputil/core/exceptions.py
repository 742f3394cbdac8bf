# httputil/core/exceptions.py
class APIError(Exception):
    """Erreur levée par la façade HTTP (hors erreurs de transport httpx)"""
    pass


class RequestBuildError(APIError):
    """Méthode ou URL refusée lors de la construction de la requête."""
    pass


class BodyEncodeError(APIError):
    """Echec de la sérialisation du corps de la requête."""
    pass


class BodyReadError(APIError):
    """Echec de la lecture du corps de la réponse (statut et headers déjà reçus)."""
    pass


class UnexpectedStatusError(APIError):
    """Code de statut non attendu par l'appelant (voir Response.ok / Response.check)."""

    def __init__(self, method: str, url: str, status: str, status_code: int, body: bytes):
        self.method = method
        self.url = url
        self.status = status
        self.status_code = status_code
        self.body = body
        text = body.decode("utf-8", errors="replace")
        super().__init__(f"HTTP {method} {url}\nUnexpected Response: {status}\n{text}")


class DecodeError(APIError):
    """Corps de réponse impossible à décoder vers la cible demandée."""

    def __init__(self, error: Exception, body: bytes):
        self.error = error
        self.body = body
        super().__init__(f"{error}: {body.decode('utf-8', errors='replace')}")


class UnexpectedBodyError(APIError):
    """Enveloppe code/message/data sans code."""

    def __init__(self, body: bytes):
        self.body = body
        super().__init__(f"Unexpected response body: {body.decode('utf-8', errors='replace')}")


class ApplicationError(APIError):
    """Erreur applicative renvoyée par le serveur dans l'enveloppe code/message."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")
