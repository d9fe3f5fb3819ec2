"""The traversal engine.

Validate walks a dataclass depth-first and runs struct-level validations
on every struct it meets:

    validate = Validate()
    validate.register_struct_validation(check_user, User)
    errors = validate.struct(user, raise_on_error=False)

For each struct, its public fields are visited first (recursing into
nested structs, sequences, mappings and references), then the struct's
own callbacks run: the registered StructLevelFunc, then validate_struct()
if the type implements Validatable. Errors from the whole walk are
returned in the order they were reported.

Registration is not thread-safe; finish it before validating from
several threads. Validation itself is: every struct() call gets its own
ValidationContext.
"""

import dataclasses
import logging
from typing import Any, Callable

from .errors import FieldError, InvalidValidationError, StructLevelError, ValidationErrors
from .kinds import CustomTypeFunc, Dereferencer, Kind, TypeRegistry
from .namespace import index_segment
from .struct_level import StructLevelFunc, Validatable, ValidationContext

logger = logging.getLogger(__name__)

# Display name for a dataclass field. "" means use the attribute name,
# "-" means skip the field entirely.
TagNameFunc = Callable[[dataclasses.Field], str]

SKIP_FIELD = "-"


class Validate:
    """Struct-level validation engine.

    Args:
        tag_name_func: Maps a dataclass field to its display name, used in
            FieldError.namespace. Attribute names are always used for
            FieldError.struct_namespace.
        dive: Descend into list, tuple and dict elements. Elements are
            addressed as "Field[0]" or "Field[key]".
        registry: Unwrap strategies for pointer-like and custom types.
            Defaults to a fresh TypeRegistry with the built-in strategies.
    """

    def __init__(
        self,
        *,
        tag_name_func: TagNameFunc | None = None,
        dive: bool = True,
        registry: TypeRegistry | None = None,
    ) -> None:
        self._tag_name_func = tag_name_func
        self._dive = dive
        self._registry = registry if registry is not None else TypeRegistry()
        self._struct_level: dict[type, StructLevelFunc] = {}

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    # --- Registration ---

    def register_struct_validation(self, fn: StructLevelFunc, *types: type) -> None:
        """Run `fn` on every instance of `types` met during validation.

        Replaces any callback previously registered for the same type.
        """
        if not types:
            raise ValueError("register_struct_validation needs at least one type")
        for t in types:
            self._struct_level[t] = fn
            logger.debug("Registered struct-level validation %s for %s",
                         getattr(fn, "__qualname__", fn), t.__qualname__)

    def struct_validation(self, *types: type) -> Callable[[StructLevelFunc], StructLevelFunc]:
        """Decorator form of register_struct_validation().

        Usage:
            @validate.struct_validation(User)
            def check_user(sl: StructLevel) -> None:
                ...
        """
        def decorator(fn: StructLevelFunc) -> StructLevelFunc:
            self.register_struct_validation(fn, *types)
            return fn
        return decorator

    def register_custom_type_func(self, fn: CustomTypeFunc, *types: type) -> None:
        """Validate instances of `types` as the value `fn` returns for them."""
        self._registry.register_custom_type(fn, *types)

    def register_indirection(self, fn: Dereferencer, *types: type) -> None:
        """Follow instances of `types` like pointers; `fn` returns the referent or None."""
        self._registry.register_indirection(fn, *types)

    # --- Validation ---

    def struct(self, value: Any, *, raise_on_error: bool = True) -> list[FieldError]:
        """Validate a struct and everything reachable from it.

        Args:
            value: A dataclass instance, or a reference to one.
            raise_on_error: Raise ValidationErrors if anything was reported.
                Set to False to collect without raising.

        Returns:
            All reported errors, in report order. Empty means valid.

        Raises:
            InvalidValidationError: If `value` does not resolve to a struct.
            ValidationErrors: If errors were reported and raise_on_error is set.
            StructLevelError: If a struct-level callback raised.
        """
        current, kind, _ = self._registry.extract(value)
        if kind is not Kind.STRUCT:
            raise InvalidValidationError(current)

        ctx = ValidationContext(self, self._registry, current)
        with ctx.descend(type(current).__name__):
            self._validate_struct(ctx, current, current, active=set())

        logger.debug("Validated %s: %d error(s)", type(current).__name__, len(ctx.errors))
        if ctx.errors and raise_on_error:
            raise ValidationErrors(ctx.errors)
        return ctx.errors

    def _validate_struct(self, ctx: ValidationContext, parent: Any, current: Any,
                         active: set[int]) -> None:
        # A struct already on the current path would recurse forever
        if id(current) in active:
            return
        active.add(id(current))
        try:
            for f in dataclasses.fields(current):
                if f.name.startswith("_"):
                    continue
                name = self._display_name(f)
                if name == SKIP_FIELD:
                    continue
                with ctx.descend(name, f.name):
                    self._traverse(ctx, current, getattr(current, f.name), active)

            self._run_struct_level(ctx, parent, current)
        finally:
            active.discard(id(current))

    def _traverse(self, ctx: ValidationContext, parent: Any, value: Any,
                  active: set[int]) -> None:
        current, kind, _ = self._registry.extract(value)

        if kind is Kind.STRUCT:
            self._validate_struct(ctx, parent, current, active)
        elif not self._dive:
            return
        elif kind in (Kind.LIST, Kind.TUPLE):
            for i, item in enumerate(current):
                with ctx.descend(index_segment(i)):
                    self._traverse(ctx, parent, item, active)
        elif kind is Kind.MAP:
            for key, item in current.items():
                with ctx.descend(index_segment(key)):
                    self._traverse(ctx, parent, item, active)

    def _run_struct_level(self, ctx: ValidationContext, parent: Any, current: Any) -> None:
        callbacks: list[StructLevelFunc] = []
        fn = self._lookup_struct_level(type(current))
        if fn is not None:
            callbacks.append(fn)
        if isinstance(current, Validatable):
            callbacks.append(current.validate_struct)

        ctx.enter(parent, current)
        for cb in callbacks:
            try:
                cb(ctx)
            except Exception as exc:
                raise StructLevelError(ctx.namespace, cb, exc) from exc

    def _lookup_struct_level(self, typ: type) -> StructLevelFunc | None:
        for klass in typ.__mro__:
            fn = self._struct_level.get(klass)
            if fn is not None:
                return fn
        return None

    def _display_name(self, f: dataclasses.Field) -> str:
        if self._tag_name_func is not None:
            name = self._tag_name_func(f)
            if name:
                return name
        return f.name
