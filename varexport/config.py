"""
Formatter configuration.

``FormatterConfig`` is immutable; the ``with_*`` helpers return copies.
"""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FormatterMode(str, Enum):
    """Output layout of exported values."""
    STANDARD = "standard"
    PRETTY = "pretty"


class FormatterConfig(BaseModel):
    """Options shared by every formatter of one export call."""
    model_config = ConfigDict(frozen=True)

    mode: FormatterMode = FormatterMode.STANDARD
    indent: str = "    "
    max_depth: int = Field(default=100, ge=1)
    sort_keys: bool = False
    trailing_comma: bool = False

    @property
    def pretty(self) -> bool:
        return self.mode is FormatterMode.PRETTY

    def with_mode(self, mode):
        return self.model_copy(update={"mode": FormatterMode(mode)})

    def with_indent(self, indent):
        return self.model_copy(update={"indent": indent})

    def with_max_depth(self, max_depth):
        # Goes through validation so the lower bound still holds
        return FormatterConfig(**{**self.model_dump(), "max_depth": max_depth})

    def with_sort_keys(self, sort_keys):
        return self.model_copy(update={"sort_keys": sort_keys})

    def with_trailing_comma(self, trailing_comma):
        return self.model_copy(update={"trailing_comma": trailing_comma})


DEFAULT_CONFIG = FormatterConfig()
