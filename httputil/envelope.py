# httputil/envelope.py

from typing import Any, Generic, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from httputil.core.exceptions import ApplicationError, UnexpectedBodyError
from httputil.response import Response

DataT = TypeVar("DataT")


class CodeMessageData(BaseModel, Generic[DataT]):
    """
    Enveloppe conventionnelle {code, message, data}.

    code == "ok" : succès ; code vide : corps inattendu ; autre : erreur applicative.
    Typage de data via CodeMessageData[MonModele].
    """
    code: str                   = Field("", validation_alias=AliasChoices("code", "Code"))
    message: str                = Field("", validation_alias=AliasChoices("message", "Message"))
    data: Optional[DataT]       = Field(None, validation_alias=AliasChoices("data", "Data"))

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("code", "message", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        # un null JSON vaut chaîne vide
        return "" if value is None else value

    def validate_response(self, resp: Response) -> None:
        if self.code == "ok":
            return
        if self.code == "":
            raise UnexpectedBodyError(resp.body)
        raise ApplicationError(self.code, self.message)


# Enveloppe sans typage de data
RawCodeMessageData = CodeMessageData[Any]
