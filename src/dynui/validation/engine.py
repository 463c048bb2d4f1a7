"""Property validation engine."""

import logging
from threading import RLock
from typing import TYPE_CHECKING, Any

from .result import ValidationResult
from .validators import default_validators

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .validators import PropertyValidator

logger = logging.getLogger(__name__)


class PropertyValidationEngine:
    """Ordered chain of property validators.

    Every applicable validator runs and results are merged. A validator
    raising an exception contributes an error naming it instead of
    aborting the pass.
    """

    def __init__(self, validators: 'Iterable[PropertyValidator] | None' = None) -> None:
        """Initialize an engine.

        Args:
            validators: Initial validators; the built-in set when omitted.
        """
        self._lock = RLock()
        self._validators = list(default_validators() if validators is None else validators)

    @property
    def validators(self) -> tuple['PropertyValidator', ...]:
        """Registered validators in evaluation order."""
        with self._lock:
            return tuple(self._validators)

    def register(self, validator: 'PropertyValidator') -> None:
        """Register a validator ahead of all existing ones."""
        with self._lock:
            self._validators.insert(0, validator)

    def remove(self, validator: 'PropertyValidator') -> bool:
        """Remove a validator.

        Returns:
            True if the validator was registered.
        """
        with self._lock:
            if validator not in self._validators:
                return False
            self._validators.remove(validator)
            return True

    def validate(self, node: Any, name: str,  # noqa: ANN401
                 value: str | None) -> ValidationResult:
        """Validate a raw property value.

        Args:
            node: Node being built.
            name: Property name as written in the source.
            value: Raw value.

        Returns:
            Merged errors and warnings of all applicable validators.
        """
        result = ValidationResult()
        node_type = type(node)

        for validator in self.validators:
            try:
                if validator.can_validate(node_type, name):
                    result = result.merge(validator.validate(node, name, value))

            except Exception as error:  # noqa: BLE001
                logger.debug('Validator %r failed on %s', validator, name, exc_info=True)
                result.add_error(f'Error in validator {type(validator).__name__}: {error}')

        return result
