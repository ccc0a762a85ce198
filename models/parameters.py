"""
Parameter Store

Holds the user-defined named numeric values that formulas can reference,
alongside the reserved names of the builtin inputs.
"""

import logging
import re
import uuid
from dataclasses import dataclass, replace
from typing import Dict, Iterator, List, Optional

from models.exceptions import InvalidNameError, InvalidValueError
from models.inputs import BUILTIN_INPUTS, BUILTIN_NAMES, is_numeric_text, parse_number

logger = logging.getLogger(__name__)

_DISALLOWED_NAME_CHARS = re.compile(r'[^A-Za-z0-9_]')
_IDENTIFIER_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def sanitize_name(text: str) -> str:
    """Strip every character outside [A-Za-z0-9_]."""
    return _DISALLOWED_NAME_CHARS.sub('', text or '')


@dataclass(frozen=True)
class Parameter:
    """A named numeric value usable inside formulas."""
    id: str
    name: str
    label: str
    value: str = ""  # kept as typed; see numeric_value
    unit: str = ""
    description: str = ""
    builtin: bool = False

    @property
    def numeric_value(self) -> float:
        return parse_number(self.value)


class ParameterStore:
    """Owns custom parameters and guards the builtin names."""

    EDITABLE_FIELDS = ('label', 'name', 'value', 'unit', 'description')

    def __init__(self, reserved_names=BUILTIN_NAMES):
        self.reserved_names = frozenset(reserved_names)
        self._parameters: Dict[str, Parameter] = {}

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._parameters.values())

    def __len__(self) -> int:
        return len(self._parameters)

    def __contains__(self, param_id: str) -> bool:
        return param_id in self._parameters

    def get(self, param_id: str) -> Parameter:
        if param_id not in self._parameters:
            raise KeyError(f"Parameter {param_id} not found")
        return self._parameters[param_id]

    @staticmethod
    def builtin_parameters() -> List[Parameter]:
        """Descriptors for the builtin inputs (values live in OperationalInputs)."""
        return [
            Parameter(id=f.name, name=f.name, label=f.label, unit=f.unit,
                      description=f.category, builtin=True)
            for f in BUILTIN_INPUTS
        ]

    def _validate_name(self, raw_name: str, exclude_id: Optional[str] = None) -> str:
        name = sanitize_name(raw_name)
        if not name:
            raise InvalidNameError("Parameter name cannot be empty")
        if not _IDENTIFIER_RE.match(name):
            raise InvalidNameError(
                f"Parameter name '{name}' must not start with a digit"
            )
        if name in self.reserved_names:
            raise InvalidNameError(
                f"Parameter name '{name}' is reserved for a builtin input"
            )
        for param in self._parameters.values():
            if param.name == name and param.id != exclude_id:
                raise InvalidNameError(f"Parameter name '{name}' already exists")
        return name

    @staticmethod
    def _validate_value(text: str) -> str:
        if not is_numeric_text(text):
            raise InvalidValueError(
                f"Parameter value '{text}' must be digits with an optional decimal point"
            )
        return text

    def add(self, label: str, name: str, value: str = "",
            unit: str = "", description: str = "") -> Parameter:
        """
        Add a custom parameter.

        Raises:
            InvalidNameError: if the sanitized name is empty, not an identifier,
                or already used by a builtin or custom parameter.
            InvalidValueError: if value is not plain numeric text.
        """
        clean_name = self._validate_name(name)
        self._validate_value(value)
        param = Parameter(
            id=uuid.uuid4().hex,
            name=clean_name,
            label=label.strip() or clean_name,
            value=value,
            unit=unit,
            description=description,
        )
        self._parameters[param.id] = param
        logger.debug("Added parameter %s (%s)", param.name, param.id)
        return param

    def edit(self, param_id: str, **fields) -> Parameter:
        """Update fields of a custom parameter; nothing changes on error."""
        current = self.get(param_id)
        unknown = set(fields) - set(self.EDITABLE_FIELDS)
        if unknown:
            raise TypeError(f"Cannot edit parameter fields: {sorted(unknown)}")

        if 'name' in fields:
            fields['name'] = self._validate_name(fields['name'], exclude_id=param_id)
        if 'value' in fields:
            self._validate_value(fields['value'])
        if 'label' in fields:
            fields['label'] = fields['label'].strip() or fields.get('name', current.name)

        updated = replace(current, **fields)
        self._parameters[param_id] = updated
        logger.debug("Edited parameter %s", param_id)
        return updated

    def remove(self, param_id: str) -> Parameter:
        param = self.get(param_id)
        del self._parameters[param_id]
        logger.debug("Removed parameter %s", param.name)
        return param

    def set_value(self, param_id: str, text: str) -> bool:
        """
        Set a parameter's raw text value.

        Only digits with an optional single decimal point (or empty text) are
        accepted; anything else leaves the store untouched and returns False.
        """
        current = self.get(param_id)
        if not is_numeric_text(text):
            return False
        self._parameters[param_id] = replace(current, value=text)
        return True

    def values(self) -> Dict[str, float]:
        """Custom parameter values keyed by name."""
        return {p.name: p.numeric_value for p in self._parameters.values()}
