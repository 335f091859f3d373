from __future__ import annotations

from pathlib import Path

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from contract.catalog import DIAGNOSTIC_CATALOG

CONFIG_FILENAME = "selectorlint.toml"


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ParameterDef(_StrictModel):
    """A declared parameter of a watched method."""

    name: str = Field(description="Parameter name as declared")
    type: str = Field(default="", description="Declared parameter type")


class MethodDef(_StrictModel):
    """A configuration method whose selector argument must be checked."""

    name: str = Field(description="Method name (e.g., 'Ignore')")
    declaring_type: str = Field(
        description="Static class declaring the method (e.g., 'TransformationMapExtensions')"
    )
    parameters: list[ParameterDef] = Field(
        description="Declared parameters in order, receiver first"
    )
    selector_parameter: str = Field(
        default="selector",
        description="Name of the parameter taking the selector lambda",
    )
    diagnostics: list[str] = Field(
        description="Diagnostic ids emitted for an invalid selector, in order"
    )
    allows_ordinary: bool = Field(default=True)
    allows_extension: bool = Field(default=True)
    receiver_types: list[str] = Field(
        default_factory=list,
        description="Extra receiver types accepted for the extension form",
    )
    returns_receiver: bool = Field(
        default=True,
        description="Whether the method returns its receiver (fluent chaining)",
    )

    @field_validator("diagnostics")
    @classmethod
    def validate_diagnostics(cls, v: list[str]) -> list[str]:
        if not v:
            msg = "diagnostics must name at least one diagnostic id"
            raise ValueError(msg)
        for diagnostic_id in v:
            if diagnostic_id not in DIAGNOSTIC_CATALOG:
                msg = (
                    f"Unknown diagnostic id '{diagnostic_id}'. "
                    f"Valid ids: {', '.join(sorted(DIAGNOSTIC_CATALOG))}"
                )
                raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_selector_parameter(self) -> MethodDef:
        names = [parameter.name for parameter in self.parameters]
        if len(set(names)) != len(names):
            msg = f"Duplicate parameter names for method '{self.name}'"
            raise ValueError(msg)
        if self.selector_parameter not in names:
            msg = (
                f"selector_parameter '{self.selector_parameter}' is not a "
                f"parameter of method '{self.name}'"
            )
            raise ValueError(msg)
        if self.allows_extension and names[0] == self.selector_parameter:
            msg = "The extension receiver cannot be the selector parameter"
            raise ValueError(msg)
        return self


class RulesConfig(_StrictModel):
    """Configuration for the selector rules."""

    max_chain_depth: int = Field(
        default=1,
        ge=0,
        description="Maximum member accesses in a selector chain (0 = unlimited)",
    )
    match_unresolved_receivers: bool = Field(
        default=False,
        description="Match calls whose receiver or declaring type is unresolved",
    )
    workers: int = Field(
        default=1,
        ge=1,
        description="Worker threads used to analyze files",
    )
    methods: list[MethodDef] = Field(
        default_factory=list,
        description="Additional watched methods",
    )


class SelectorLintConfig(_StrictModel):
    """Configuration for selector-lint runs."""

    output_dir: str = Field(
        default=".selectorlint",
        description="Output directory for generated reports",
    )
    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to include (empty = all C# files)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude",
    )
    rules: RulesConfig = Field(
        default_factory=RulesConfig,
        description="Selector rule settings",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def resolve_output_dir(root: Path, output_dir: str) -> Path:
    """Resolve a config-provided output_dir safely within the repo root.

    The config output_dir must be a non-empty relative path that remains
    within the repository root after resolution. Absolute paths and paths
    that escape the root are rejected.
    """
    if not output_dir:
        msg = "output_dir must be a non-empty relative path"
        raise ConfigError(msg)

    if output_dir.startswith("~"):
        msg = "output_dir must be a relative path within the repo root"
        raise ConfigError(msg)

    output_path = Path(output_dir)
    if output_path.is_absolute():
        msg = "output_dir must be a relative path within the repo root"
        raise ConfigError(msg)

    try:
        resolved_root = root.resolve()
        resolved_output = (resolved_root / output_path).resolve()
    except OSError as exc:
        msg = f"Failed to resolve output_dir '{output_dir}': {exc}"
        raise ConfigError(msg) from exc

    try:
        resolved_output.relative_to(resolved_root)
    except ValueError as exc:
        msg = f"output_dir '{output_dir}' escapes the repository root"
        raise ConfigError(msg) from exc

    return resolved_output


def load_config(root: Path) -> SelectorLintConfig:
    """Load configuration from selectorlint.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return SelectorLintConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return SelectorLintConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
