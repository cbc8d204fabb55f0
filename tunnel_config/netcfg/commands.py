"""Command templates and builders for route and netsh."""

from typing import List, Optional, Dict
from dataclasses import dataclass

from .exceptions import TunnelConfigError


class ValidationError(TunnelConfigError):
    """Raised when command validation fails."""
    pass


@dataclass
class Command:
    """Command builder with validation."""
    base_cmd: List[str]
    _valid_options: Optional[Dict[str, type]] = None

    def _validate_option(self, opt: str, value: Optional[str]) -> None:
        """Validate option and its value if validation rules exist."""
        if self._valid_options is not None:
            if opt not in self._valid_options:
                valid_opts = ", ".join(self._valid_options.keys())
                raise ValidationError(
                    f"Invalid option '{opt}' for command {' '.join(self.base_cmd)}. "
                    f"Valid options are: {valid_opts}"
                )

            if value is not None:
                expected_type = self._valid_options[opt]
                try:
                    expected_type(value)
                except ValueError:
                    raise ValidationError(
                        f"Invalid value '{value}' for option '{opt}'. Expected {expected_type.__name__}"
                    )

    def _validate_executable(self) -> None:
        """Validate that base command exists."""
        if not self.base_cmd:
            raise ValidationError("Command cannot be empty")

    @classmethod
    def from_str(cls, cmd: str, valid_options: Optional[Dict[str, type]] = None) -> 'Command':
        """Create command from string with optional validation rules."""
        command = cls(cmd.split(), valid_options)
        command._validate_executable()
        return command

    def with_arg(self, arg: str) -> 'Command':
        """Add single argument."""
        return Command(self.base_cmd + [str(arg)], self._valid_options)

    def with_args(self, *args: str) -> 'Command':
        """Add multiple arguments."""
        return Command(self.base_cmd + [str(a) for a in args], self._valid_options)

    def with_option(self, opt: str, value: str) -> 'Command':
        """Add a netsh style ``opt=value`` setting."""
        self._validate_option(opt, str(value))
        return Command(self.base_cmd + [f"{opt}={value}"], self._valid_options)

    def with_options(self, **kwargs: str) -> 'Command':
        """Add multiple ``opt=value`` settings, in keyword order."""
        cmd = self
        for opt, value in kwargs.items():
            cmd = cmd.with_option(opt, value)
        return cmd

    def with_keyword(self, keyword: str, value: str) -> 'Command':
        """Add a route style ``KEYWORD value`` pair."""
        self._validate_option(keyword, str(value))
        return Command(self.base_cmd + [keyword, str(value)], self._valid_options)

    def build(self) -> List[str]:
        """Get final command list."""
        self._validate_executable()
        return list(self.base_cmd)


NETSH_OPTIONS = {
    'mtu': int,
    'metric': int,
    'gwmetric': int,
    'store': str,
    'gateway': str,
    'validate': str,
}

ROUTE_OPTIONS = {
    'mask': str,
    'metric': int,
    'if': int,
}


CHCP = Command.from_str("chcp")

ROUTE = Command.from_str("route", valid_options=ROUTE_OPTIONS)
ROUTE_ADD = ROUTE.with_arg("add")
ROUTE_DELETE = ROUTE.with_arg("delete")
ROUTE_PRINT = ROUTE.with_arg("print")

NETSH = Command.from_str("netsh interface", valid_options=NETSH_OPTIONS)
# Legacy "ip" context is an alias of ipv4 that still accepts the
# positional gateway form of "set address"
NETSH_IP = NETSH.with_arg("ip")
NETSH_IPV4 = NETSH.with_arg("ipv4")
NETSH_IPV6 = NETSH.with_arg("ipv6")

NETSH_IPV6_SHOW_ROUTE = NETSH_IPV6.with_args("show", "route")
