"""Shell execution utilities.

Provides bounded subprocess execution for probing PHP executables
and querying system tools.
"""

import shutil
import subprocess
from dataclasses import dataclass

# Text output: undecodable bytes become U+FFFD
OUTPUT_ENCODING = "utf-8"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command (empty when discarded).
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


@dataclass(frozen=True, slots=True)
class BinaryCommandResult:
    """Result of a command whose stdout is kept as raw bytes.

    Attributes:
        stdout: Undecoded standard output.
        stderr: Standard error, decoded leniently for diagnostics.
        returncode: Exit code of the command.
    """

    stdout: bytes
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
    discard_stderr: bool = False,
    input_text: str | None = None,
) -> CommandResult:
    """Execute a command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.
        discard_stderr: Send the child's stderr to the null device. Used when
            probing third-party executables whose warnings must not leak.
        input_text: Optional text fed to the command's stdin.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL if discard_stderr else subprocess.PIPE,
        stdin=None if input_text is not None else subprocess.DEVNULL,
        input=input_text,
        text=True,
        encoding=OUTPUT_ENCODING,
        errors="replace",
        check=check,
        timeout=timeout,
        cwd=cwd,
    )
    return CommandResult(
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        returncode=result.returncode,
    )


def run_binary_command(
    args: list[str],
    *,
    timeout: float | None = 60.0,
    input_bytes: bytes | None = None,
) -> BinaryCommandResult:
    """Execute a command without decoding its stdout.

    Used where the exact bytes matter, such as streaming file content
    through `sudo cat` and `sudo tee`. No newline translation happens in
    either direction.

    Args:
        args: Command and arguments to execute.
        timeout: Maximum time in seconds to wait for command.
        input_bytes: Optional bytes fed to the command's stdin.

    Returns:
        BinaryCommandResult with raw stdout.

    Raises:
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=None if input_bytes is not None else subprocess.DEVNULL,
        input=input_bytes,
        timeout=timeout,
    )
    return BinaryCommandResult(
        stdout=result.stdout or b"",
        stderr=(result.stderr or b"").decode(OUTPUT_ENCODING, errors="replace"),
        returncode=result.returncode,
    )


def which(name: str, path: str | None = None) -> str | None:
    """Locate an executable on PATH.

    Args:
        name: Executable name.
        path: Optional PATH string to search instead of the process PATH.

    Returns:
        Absolute path of the executable, or None if not found.
    """
    return shutil.which(name, path=path)


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return which(name) is not None
