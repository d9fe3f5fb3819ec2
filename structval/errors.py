"""Error types.

FieldError is the unit of output: one failed rule at one resolved path.
The rest are exceptions raised at the edges of a run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from .kinds import Kind


@dataclass(frozen=True)
class FieldError:
    """A single validation failure at a fully resolved path.

    Attributes:
        tag: Rule identifier that failed. For struct-level errors this is
            whatever the callback chose, not necessarily a known rule.
        actual_tag: Tag as written before any alias expansion. Same as
            `tag` for struct-level errors.
        namespace: Path built from display names, e.g. "User.Addresses[0].City".
        struct_namespace: Same path built from attribute names.
        field: Leaf segment of `namespace`.
        struct_field: Leaf segment of `struct_namespace`.
        kind: Kind of the offending value after extraction.
        value: The offending value. None when `kind` is INVALID.
        type: Type of the offending value. None when `kind` is INVALID.
        param: Rule parameter. Always empty for struct-level errors.
    """
    tag: str
    actual_tag: str
    namespace: str
    struct_namespace: str
    field: str
    struct_field: str
    kind: Kind
    value: Any = None
    type: type | None = None
    param: str = ""

    def __str__(self) -> str:
        return (f"Key: '{self.namespace}' Error:Field validation for "
                f"'{self.field}' failed on the '{self.tag}' tag")


class ValidationErrors(Exception):
    """Raised when a validation run collected one or more FieldErrors.

    Iterates over the errors in the order they were reported, so it can be
    handed directly to StructLevel.report_validation_errors().
    """

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        msg = f"{len(self.errors)} validation error(s):\n"
        msg += "\n".join(f"  {e}" for e in self.errors)
        super().__init__(msg)

    def __iter__(self) -> Iterator[FieldError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)


class InvalidValidationError(TypeError):
    """Raised when Validate.struct() is given something that is not a struct."""

    def __init__(self, value: Any) -> None:
        self.type = None if value is None else type(value)
        name = "nil" if self.type is None else self.type.__name__
        super().__init__(f"validator: cannot validate ({name}), expected a dataclass instance")


class StructLevelError(RuntimeError):
    """Raised when a struct-level callback fails while a run is in progress."""

    def __init__(self, namespace: str, callback: Any, cause: BaseException) -> None:
        self.namespace = namespace
        self.callback = callback
        name = getattr(callback, "__qualname__", repr(callback))
        super().__init__(f"Struct-level validation '{name}' failed at '{namespace}': {cause}")
