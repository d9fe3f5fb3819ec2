"""Struct-level validation: the capability surface and the run context.

A struct-level callback receives a StructLevel: a narrow read/report view
over the run's ValidationContext. It can look at where it is in the
object graph (top, parent, current), extract types the same way the
engine does, and report failures. Reported paths are always relative to
the struct being validated, so the same callback works at any depth:

    @validate.struct_validation(User)
    def check_user(sl: StructLevel) -> None:
        user = sl.current
        if not user.name and not user.email:
            sl.report_error(user.name, "Name", "name", "name_or_email")

Types can also validate themselves by implementing Validatable, with no
registration. Both paths report only through the StructLevel.
"""

from __future__ import annotations

import dataclasses
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Protocol, runtime_checkable

from .errors import FieldError
from .kinds import Kind, TypeRegistry
from .namespace import render

if TYPE_CHECKING:
    from .validator import Validate


class StructLevel(Protocol):
    """What a struct-level callback can see and do."""

    @property
    def validator(self) -> Validate:
        """The engine running this validation, for sub-validations."""
        ...

    @property
    def top(self) -> Any:
        """The root value of the run. Can be the same as `current`."""
        ...

    @property
    def parent(self) -> Any:
        """The value containing the current struct (the root at root level).

        Only meaningful inside a callback; do not hold on to it.
        """
        ...

    @property
    def current(self) -> Any:
        """The struct being validated."""
        ...

    def extract_type(self, value: Any) -> tuple[Any, Kind, bool]:
        """Dereference pointer-like and custom types.

        Returns the underlying value, its kind, and whether the original
        value was nullable.
        """
        ...

    def report_error(self, field_value: Any, field_name: str, alt_name: str, tag: str) -> None:
        """Report a failure on a single field.

        `field_name` and `alt_name` are appended to the current display and
        attribute namespaces; pass "FirstName" or "Names[0]" depending on
        the nesting. `alt_name` defaults to `field_name` when empty. `tag`
        can be an existing rule name or anything the caller makes up.
        """
        ...

    def report_validation_errors(self, relative_namespace: str,
                                 relative_actual_namespace: str,
                                 errs: Iterable[FieldError]) -> None:
        """Merge errors from a separate validation into this run.

        The relative namespaces are inserted between the current namespace
        and each error's own; they are usually empty unless the errors came
        from a value deeper than the current struct.
        """
        ...


StructLevelFunc = Callable[[StructLevel], None]


@runtime_checkable
class Validatable(Protocol):
    """A type that validates itself, exactly like a registered StructLevelFunc."""

    def validate_struct(self, sl: StructLevel) -> None:
        ...


class ValidationContext:
    """Mutable state of one validation run. Implements StructLevel.

    Created fresh for every Validate.struct() call and never shared. The
    engine moves the position around (descend, enter); callbacks only read
    it and append errors.

    The display and attribute namespace stacks always hold the same number
    of segments; they differ only in the text of individual segments.
    """

    def __init__(self, validate: Validate, registry: TypeRegistry, top: Any) -> None:
        self._validate = validate
        self._registry = registry
        self._top = top
        self._parent: Any = top
        self._current: Any = top
        self._ns: list[str] = []
        self._struct_ns: list[str] = []
        self.errors: list[FieldError] = []

    # --- Position ---

    @property
    def validator(self) -> Validate:
        return self._validate

    @property
    def top(self) -> Any:
        return self._top

    @property
    def parent(self) -> Any:
        return self._parent

    @property
    def current(self) -> Any:
        return self._current

    @property
    def namespace(self) -> str:
        return render(self._ns)

    @property
    def struct_namespace(self) -> str:
        return render(self._struct_ns)

    @contextmanager
    def descend(self, name: str, alt_name: str | None = None) -> Iterator[None]:
        """Push one segment onto both namespaces for the duration of the block."""
        self._ns.append(name)
        self._struct_ns.append(alt_name if alt_name is not None else name)
        try:
            yield
        finally:
            self._ns.pop()
            self._struct_ns.pop()

    def enter(self, parent: Any, current: Any) -> None:
        """Point the context at a struct before its callbacks run."""
        self._parent = parent
        self._current = current

    # --- Capability surface ---

    def extract_type(self, value: Any) -> tuple[Any, Kind, bool]:
        return self._registry.extract(value)

    def report_error(self, field_value: Any, field_name: str, alt_name: str, tag: str) -> None:
        value, kind, _ = self.extract_type(field_value)

        if not alt_name:
            alt_name = field_name

        error = FieldError(
            tag=tag,
            actual_tag=tag,
            namespace=render([*self._ns, field_name]),
            struct_namespace=render([*self._struct_ns, alt_name]),
            field=field_name,
            struct_field=alt_name,
            kind=kind,
        )
        # INVALID means there is nothing to read a value or type from
        if kind is not Kind.INVALID:
            error = dataclasses.replace(error, value=value, type=type(value))
        self.errors.append(error)

    def report_validation_errors(self, relative_namespace: str,
                                 relative_actual_namespace: str,
                                 errs: Iterable[FieldError]) -> None:
        """Each incoming namespace already ends with its field; it is not appended again."""
        # Snapshot first: `errs` may be self.errors itself.
        # Merged copies only; the caller's batch may be reported elsewhere too
        for err in list(errs):
            self.errors.append(dataclasses.replace(
                err,
                namespace=render([*self._ns, relative_namespace, err.namespace]),
                struct_namespace=render([*self._struct_ns, relative_actual_namespace,
                                         err.struct_namespace]),
            ))
