"""Command templates and builders for the native control transport."""

from typing import Any, Dict, Optional, Tuple
from dataclasses import dataclass, field


class CommandError(Exception):
    """Base exception for command-related errors."""
    pass


class ValidationError(CommandError):
    """Raised when command validation fails."""
    pass


@dataclass(frozen=True)
class Command:
    """Control request builder with validation.

    A command is a method name on the native side plus keyword arguments.
    Builders return new commands, templates below are never mutated.
    """
    method: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    _valid_options: Optional[Dict[str, Any]] = None

    def _validate_option(self, opt: str, value: Any) -> None:
        """Validate option and its value if validation rules exist."""
        if self._valid_options is None:
            return

        if opt not in self._valid_options:
            valid_opts = ", ".join(self._valid_options.keys()) or "none"
            raise ValidationError(
                f"Invalid option '{opt}' for command {self.method}. "
                f"Valid options are: {valid_opts}"
            )

        expected_type = self._valid_options[opt]
        if value is not None and not isinstance(value, expected_type):
            raise ValidationError(
                f"Invalid value {value!r} for option '{opt}'. "
                f"Expected {getattr(expected_type, '__name__', expected_type)}"
            )

    def _validate_method(self) -> None:
        if not self.method or not self.method.strip():
            raise ValidationError("Command method cannot be empty")

    @classmethod
    def from_str(cls, method: str, valid_options: Optional[Dict[str, Any]] = None) -> 'Command':
        """Create command template with optional validation rules."""
        command = cls(method.strip(), {}, valid_options)
        command._validate_method()
        return command

    def with_option(self, opt: str, value: Any = None) -> 'Command':
        """Add option with validation."""
        self._validate_option(opt, value)
        return Command(self.method, {**self.arguments, opt: value}, self._valid_options)

    def with_options(self, **kwargs: Any) -> 'Command':
        """Add multiple options with validation."""
        for opt, value in kwargs.items():
            self._validate_option(opt, value)
        return Command(self.method, {**self.arguments, **kwargs}, self._valid_options)

    def build(self) -> Tuple[str, Optional[Dict[str, Any]]]:
        """Get final (method, arguments) pair, arguments is None when empty."""
        self._validate_method()
        return self.method, dict(self.arguments) if self.arguments else None


INITIALIZE_OPTIONS = {
    'group_identifier': str,
    'provider_bundle_identifier': str,
    'localized_description': str,
}

CONNECT_OPTIONS = {
    'config': str,
    'name': str,
    'username': str,
    'password': str,
    'bypass_packages': list,
}

STATUS_OPTIONS = {
    'platform': str,
}

NO_OPTIONS: Dict[str, Any] = {}


INITIALIZE = Command.from_str("initialize", valid_options=INITIALIZE_OPTIONS)

CONNECT = Command.from_str("connect", valid_options=CONNECT_OPTIONS)

DISCONNECT = Command.from_str("disconnect", valid_options=NO_OPTIONS)

STAGE = Command.from_str("stage", valid_options=NO_OPTIONS)

STATUS = Command.from_str("status", valid_options=STATUS_OPTIONS)

REQUEST_PERMISSION = Command.from_str("request_permission", valid_options=NO_OPTIONS)
