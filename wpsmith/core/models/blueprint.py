"""
Blueprint model — the project's Playground configuration document.

``blueprint.json`` follows the WordPress Playground blueprint format so
the same file can be handed to ``@wp-playground/cli``.  wpsmith's own
settings live under the reserved ``wpsmith`` key, away from the
upstream schema.

Steps are a tagged union on the ``step`` key.  Known step kinds get a
typed model when they fit it; anything else (an unknown kind, or a known
kind in a shape wpsmith does not model, such as a ``vfs`` resource or the
``pluginZipFile`` form) is kept verbatim as a ``GenericStep`` so a
blueprint written for a newer Playground survives a load/save cycle.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    SerializerFunctionWrapHandler,
    Tag,
    ValidationError,
    model_serializer,
)

BLUEPRINT_SCHEMA = "https://playground.wordpress.net/blueprint-schema.json"

DEFAULT_PHP_VERSION = "8.3"
DEFAULT_WP_VERSION = "latest"
DEFAULT_PORT = 9400


class _CamelModel(BaseModel):
    """Blueprint JSON is camelCase; attributes are snake_case."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @model_serializer(mode="wrap")
    def _omit_unset_none(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        # Declared optionals never given a value are left out; explicit nulls and extras stay
        data = handler(self)
        for name, field in type(self).model_fields.items():
            if name in self.model_fields_set or getattr(self, name, None) is not None:
                continue
            data.pop(name, None)
            if field.alias:
                data.pop(field.alias, None)
        return data


# ── Resources ───────────────────────────────────────────────────


class PluginData(_CamelModel):
    resource: str = "wordpress.org/plugins"
    slug: str | None = None
    url: str | None = None


class ThemeData(_CamelModel):
    resource: str = "wordpress.org/themes"
    slug: str | None = None
    url: str | None = None


# ── Steps ───────────────────────────────────────────────────────


class LoginStep(_CamelModel):
    step: Literal["login"] = "login"
    username: str | None = None
    password: str | None = None


class InstallPluginStep(_CamelModel):
    step: Literal["installPlugin"] = "installPlugin"
    plugin_data: PluginData = Field(alias="pluginData")


class InstallThemeStep(_CamelModel):
    step: Literal["installTheme"] = "installTheme"
    theme_data: ThemeData = Field(alias="themeData")


class SetSiteOptionsStep(_CamelModel):
    step: Literal["setSiteOptions"] = "setSiteOptions"
    options: dict[str, Any] = Field(default_factory=dict)


class RunPHPStep(_CamelModel):
    step: Literal["runPHP"] = "runPHP"
    code: str


class GenericStep(_CamelModel):
    """Any step wpsmith does not model; extra keys are preserved."""

    step: str


_STEP_MODELS: dict[str, type[_CamelModel]] = {
    "login": LoginStep,
    "installPlugin": InstallPluginStep,
    "installTheme": InstallThemeStep,
    "setSiteOptions": SetSiteOptionsStep,
    "runPHP": RunPHPStep,
}


def _step_kind(value: Any) -> str:
    """Union tag for ``value``: its step kind if the typed model accepts it."""
    if isinstance(value, BaseModel):
        kind = getattr(value, "step", None)
        model = _STEP_MODELS.get(kind)
        return kind if model is not None and isinstance(value, model) else "other"

    if not isinstance(value, dict):
        return "other"
    kind = value.get("step")
    model = _STEP_MODELS.get(kind) if isinstance(kind, str) else None
    if model is None:
        return "other"
    try:
        model.model_validate(value)
    except ValidationError:
        return "other"
    return kind


BlueprintStep = Annotated[
    Union[
        Annotated[LoginStep, Tag("login")],
        Annotated[InstallPluginStep, Tag("installPlugin")],
        Annotated[InstallThemeStep, Tag("installTheme")],
        Annotated[SetSiteOptionsStep, Tag("setSiteOptions")],
        Annotated[RunPHPStep, Tag("runPHP")],
        Annotated[GenericStep, Tag("other")],
    ],
    Discriminator(_step_kind),
]


# ── Document ────────────────────────────────────────────────────


class PreferredVersions(_CamelModel):
    php: str = DEFAULT_PHP_VERSION
    wp: str = DEFAULT_WP_VERSION


class WpsmithSettings(_CamelModel):
    """The extension block: settings only wpsmith reads."""

    port: int = DEFAULT_PORT


class Blueprint(_CamelModel):
    """Root configuration document, serialized to ``blueprint.json``.

    Field order matters: ``$schema`` is declared first so it is the
    first key of the dumped JSON.
    """

    schema_: str = Field(default=BLUEPRINT_SCHEMA, alias="$schema")
    landing_page: str | None = Field(default=None, alias="landingPage")
    preferred_versions: PreferredVersions = Field(
        default_factory=PreferredVersions, alias="preferredVersions",
    )
    features: dict[str, Any] | None = None
    steps: list[BlueprintStep] | None = None
    wpsmith: WpsmithSettings = Field(default_factory=WpsmithSettings)

    @property
    def port(self) -> int:
        return self.wpsmith.port

    def to_json_dict(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys; unset optionals are left out."""
        return self.model_dump(mode="json", by_alias=True)


def default_blueprint_dict() -> dict[str, Any]:
    """The hardcoded defaults, as a plain JSON dict."""
    return Blueprint().to_json_dict()
