from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""FieldDefinition model for the CSV import reconciliation engine.

A FieldDefinition describes one target field of an import form: its id, the
human label shown in mapping/preview screens, the declared value type and the
validation rule the Field Validator dispatches on.

Rules are a closed enum attached to each definition (not matched by field id
at validation time), so adding a rule without a validator handler fails at
import time of the validator module.
"""

__all__ = [
    "ValueType",
    "FieldRule",
    "FieldDefinition",
]


class ValueType(Enum):
    """Declared value type of a target field."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    ENUM = "enum"
    BOOLEAN = "boolean"
    REFERENCE = "reference"


class FieldRule(Enum):
    """Validation rule variants understood by the Field Validator.

    - PRESENCE: text/reference; required fields must be non-empty after trim
    - NON_NEGATIVE_NUMBER: numeric and >= 0 (dimensions, weight, quantity)
    - POSITIVE_NUMBER: numeric and > 0 (loading priority)
    - CHOICE: case-insensitive member of the definition's options
    - STRICT_BOOLEAN: upper-cased value is exactly TRUE or FALSE
    - CALENDAR_DATE: parses as a real calendar date
    - ADDRESS: free-text address, at least 5 characters after trim
    - EMAIL: local@domain.tld shape
    - NAME: person/company name, at least 2 characters after trim
    """
    PRESENCE = "presence"
    NON_NEGATIVE_NUMBER = "non_negative_number"
    POSITIVE_NUMBER = "positive_number"
    CHOICE = "choice"
    STRICT_BOOLEAN = "strict_boolean"
    CALENDAR_DATE = "calendar_date"
    ADDRESS = "address"
    EMAIL = "email"
    NAME = "name"


_DEFAULT_RULES: dict[ValueType, FieldRule] = {
    ValueType.TEXT: FieldRule.PRESENCE,
    ValueType.REFERENCE: FieldRule.PRESENCE,
    ValueType.NUMBER: FieldRule.NON_NEGATIVE_NUMBER,
    ValueType.DATE: FieldRule.CALENDAR_DATE,
    ValueType.ENUM: FieldRule.CHOICE,
    ValueType.BOOLEAN: FieldRule.STRICT_BOOLEAN,
}


@dataclass(frozen=True)
class FieldDefinition:
    """Immutable target field of an import form.

    Attributes:
        id: Field id used in mappings and handed to the import executor
        label: Human label, also used by the auto-mapper for header matching
        value_type: Declared value type
        required: Field must be mapped (batch level) and non-empty (row level)
        rule: Validation rule; derived from value_type when omitted
        options: Allowed values for CHOICE fields (lower-case)
        unique: Value must not repeat within the batch or in storage
        allow_blank: Optional field may be left empty even when mapped
        priority: Auto-mapper tie-break within the required/optional group
            (lower wins). None keeps catalog order.
    """
    id: str
    label: str
    value_type: ValueType = ValueType.TEXT
    required: bool = False
    rule: FieldRule | None = None
    options: tuple[str, ...] = ()
    unique: bool = False
    allow_blank: bool = True
    priority: int | None = None

    @property
    def effective_rule(self) -> FieldRule:
        if self.rule is not None:
            return self.rule
        return _DEFAULT_RULES[self.value_type]

    @property
    def blank_is_error(self) -> bool:
        """Empty cell for this field is a validation failure when mapped."""
        return self.required or not self.allow_blank
