from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter


class LiteralSecret(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: Literal["literal"] = "literal"
    value: str
    encrypted: bool | None = None


class EnvironmentSecret(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: Literal["environment"] = "environment"
    variable_name: str


class BackendSecret(BaseModel):
    """Reference into a named secret store, e.g. ``kubernetes``."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    name: str = Field(validation_alias="type")

    @property
    def parameters(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


SECRET_TAGS = ("literal", "environment", "backend")


def _secret_tag(value: Any) -> str | None:
    if isinstance(value, BackendSecret):
        return "backend"
    if isinstance(value, BaseModel):
        return getattr(value, "type", None)
    if not isinstance(value, dict):
        return None

    tag = value.get("type")
    if not isinstance(tag, str) or not tag:
        return None
    return tag if tag in ("literal", "environment") else "backend"


SecretRef = Annotated[
    Union[
        Annotated[LiteralSecret, Tag("literal")],
        Annotated[EnvironmentSecret, Tag("environment")],
        Annotated[BackendSecret, Tag("backend")],
    ],
    Discriminator(_secret_tag),
]

_secret_ref_adapter: TypeAdapter[Any] = TypeAdapter(SecretRef)


def parse_secret_ref(value: Any) -> LiteralSecret | EnvironmentSecret | BackendSecret:
    return _secret_ref_adapter.validate_python(value)
