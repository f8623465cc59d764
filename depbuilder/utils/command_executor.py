import subprocess
from collections import namedtuple
from ..cli_logger import logger
from ..errors import ExternalCommandFailure


class CommandResult(namedtuple("CommandResult", ["stdout", "stderr", "returncode"])):
    __slots__ = ()

    @property
    def ok(self):
        return self.returncode == 0


def run_shell_command(command, stream_output=False, env=None, cwd=None):
    """
    Executes a command without raising, with optional live output.

    Args:
        command (list): The command to execute as a list of strings.
        stream_output (bool): If True, each output line is echoed through the logger
            as it arrives; stderr is merged into stdout.
        env (dict, optional): A dictionary of environment variables.
        cwd (str, optional): The working directory for the command.

    Returns:
        CommandResult: (stdout, stderr, returncode). A command that cannot be
        started reports a return code of -1.
    """
    try:
        if stream_output:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                bufsize=1,
                universal_newlines=True,
                env=env,
                cwd=cwd
            )
            lines = []
            for line in process.stdout:
                lines.append(line)
                logger.step_info(line.rstrip(), indent=4)
            process.wait()
            return CommandResult("".join(lines), "", process.returncode)

        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            env=env,
            stdin=subprocess.DEVNULL,
            check=False,
            cwd=cwd
        )
        return CommandResult(result.stdout, result.stderr, result.returncode)

    except FileNotFoundError as e:
        logger.error(f"Command not found: {e.filename}")
        return CommandResult("", str(e), -1)
    except OSError as e:
        logger.error(f"Could not run {' '.join(command)}: {e}")
        return CommandResult("", str(e), -1)


def run_checked(step, command, cwd=None, env=None, verbose=False):
    """Run one toolchain step and raise ExternalCommandFailure unless it succeeds."""
    logger.info(f"  - Running {step}: {' '.join(command)}")
    result = run_shell_command(command, stream_output=verbose, env=env, cwd=cwd)
    if not result.ok:
        logger.error(f"{step} failed (Exit Code: {result.returncode}):")
        if result.stdout and not verbose:
            logger.error(f"Stdout:\n{result.stdout}")
        if result.stderr:
            logger.error(f"Stderr:\n{result.stderr}")
        raise ExternalCommandFailure(step, result.returncode)
    return result
