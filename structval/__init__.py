"""Struct-level validation for dataclass object graphs.

Custom validation logic runs against a whole struct rather than a single
field, and reports errors whose paths merge into the run's namespace no
matter how deeply the struct is nested:

    from structval import Validate, StructLevel

    validate = Validate()

    @validate.struct_validation(User)
    def check_user(sl: StructLevel) -> None:
        if sl.current.age < 0:
            sl.report_error(sl.current.age, "Age", "age", "gte")

    errors = validate.struct(user, raise_on_error=False)
    # errors[0].namespace == "User.Age"

Modules:
    kinds.py         Kind enum and pointer/custom-type extraction
    namespace.py     path grammar ("Users[2].Name")
    struct_level.py  StructLevel surface, Validatable, ValidationContext
    validator.py     Validate, the traversal engine
    errors.py        FieldError and exceptions
"""

from .errors import (  # noqa: F401
    FieldError,
    InvalidValidationError,
    StructLevelError,
    ValidationErrors,
)
from .kinds import Kind, TypeRegistry, kind_of  # noqa: F401
from .struct_level import (  # noqa: F401
    StructLevel,
    StructLevelFunc,
    Validatable,
    ValidationContext,
)
from .validator import Validate  # noqa: F401

__version__ = "0.1.0"
