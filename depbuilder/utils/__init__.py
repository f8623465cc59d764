from .command_executor import CommandResult, run_shell_command, run_checked
from .file_manager import _safe_join, _safe_extract_zip, _safe_extract_tar, download, extract, remove_path
