"""ConditionalUint: the MPD schema's union of unsignedInt and boolean.

Attributes such as ``segmentAlignment`` and ``subsegmentAlignment`` are
declared in DASH-MPD.xsd as ``ConditionalUintType``, whose lexical space
is either a base-10 unsigned integer or a boolean literal. Neither the
ElementTree API nor pydantic can express that declaratively, so this
type implements both directions of the conversion itself.
"""

import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..shared.exceptions import MPDParseError

UINT64_MAX = 2**64 - 1

_UINT_RE = re.compile(r"[0-9]+")

# XML Schema boolean; "1" and "0" are claimed by the integer alternative first.
_BOOL_LITERALS = {"true": True, "false": False}


class ConditionalUint(BaseModel):
    """Holds at most one of an unsigned integer or a boolean.

    Both alternatives absent is valid: the attribute is omitted on write
    and consumers of the produced document treat it as ``false``.

    Example:
        >>> ConditionalUint.parse("true", "segmentAlignment").to_attr()
        'true'
        >>> ConditionalUint.parse("2", "segmentAlignment").uint
        2
        >>> ConditionalUint().to_attr() is None
        True
    """

    model_config = ConfigDict(frozen=True, strict=True)

    uint: Annotated[int, Field(ge=0, le=UINT64_MAX)] | None = Field(
        default=None,
        description="Unsigned integer alternative",
    )
    flag: bool | None = Field(
        default=None,
        description="Boolean alternative",
    )

    @model_validator(mode="after")
    def validate_single_alternative(self) -> "ConditionalUint":
        """Ensure the two alternatives are never held together."""
        if self.uint is not None and self.flag is not None:
            raise ValueError("ConditionalUint holds either uint or flag, not both")
        return self

    @classmethod
    def from_uint(cls, value: int) -> "ConditionalUint":
        return cls(uint=value)

    @classmethod
    def from_bool(cls, value: bool) -> "ConditionalUint":
        return cls(flag=value)

    @property
    def is_set(self) -> bool:
        """True when either alternative is present."""
        return self.uint is not None or self.flag is not None

    def to_attr(self) -> str | None:
        """Render the attribute text, or None when the attribute is omitted."""
        if self.uint is not None:
            return str(self.uint)
        if self.flag is not None:
            return "true" if self.flag else "false"
        return None

    @classmethod
    def parse(
        cls,
        text: str,
        attribute: str,
        element: str | None = None,
    ) -> "ConditionalUint":
        """Decode attribute text, trying the integer alternative first.

        Args:
            text: Raw attribute value
            attribute: Attribute name, reported on failure
            element: Owning element name, reported on failure

        Returns:
            ConditionalUint holding exactly one alternative

        Raises:
            MPDParseError: If the text is neither an unsigned integer nor a boolean
        """
        if _UINT_RE.fullmatch(text) and int(text) <= UINT64_MAX:
            return cls(uint=int(text))

        if text in _BOOL_LITERALS:
            return cls(flag=_BOOL_LITERALS[text])

        details = {"attribute": attribute, "value": text}
        if element is not None:
            details["element"] = element
        raise MPDParseError(
            f"Invalid value {text!r} for attribute '{attribute}': "
            "expected unsigned integer or boolean",
            details,
        )
