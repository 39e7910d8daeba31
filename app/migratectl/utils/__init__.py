"""Console output, external tools and run logging."""

from migratectl.utils.formatting import (
    console,
    err_console,
    format_duration,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from migratectl.utils.shell import (
    CommandResult,
    command_exists,
    powershell_command,
    run_command,
)

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "err_console",
    "format_duration",
    "format_size",
    "powershell_command",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
]
