import os
import requests
import zipfile
import tarfile
import shutil
import contextlib
from ..cli_logger import logger
from ..errors import ExternalCommandFailure

# -------------------- Helpers: safe paths & extraction --------------------

def _safe_join(base, *paths):
    """Safely join paths, preventing path traversal attacks."""
    base = os.path.abspath(base)
    final = os.path.abspath(os.path.join(base, *paths))
    if not final.startswith(base + os.sep) and final != base:
        raise IOError(f"Unsafe path detected: {final}")
    return final

def _safe_extract_zip(zip_ref: zipfile.ZipFile, dest_dir: str, log_each=False):
    """Safely extract a zip file, preventing zip slip attacks."""
    for member in zip_ref.infolist():
        target_path = _safe_join(dest_dir, member.filename)
        if member.is_dir():
            if log_each:
                logger.step_info(f"creating: {member.filename}", indent=3)
            os.makedirs(target_path, exist_ok=True)
            continue
        os.makedirs(os.path.dirname(target_path), exist_ok=True)
        if log_each:
            logger.step_info(f"extracting: {member.filename}", indent=2)
        with zip_ref.open(member, 'r') as src, open(target_path, 'wb') as out:
            shutil.copyfileobj(src, out)
        # Preserve file permissions
        mode = member.external_attr >> 16
        if mode:
            os.chmod(target_path, mode)

def _safe_extract_tar(tar_ref: tarfile.TarFile, dest_dir: str, log_each=False):
    """Extract a tar file with the "data" filter.

    Member modes and mtimes are kept. Absolute names, ".." traversal and
    links resolving outside ``dest_dir`` raise tarfile.FilterError.
    """
    if not hasattr(tarfile, "data_filter"):
        raise ExternalCommandFailure("Extracting archive", detail="this Python lacks tarfile extraction filters")
    if log_each:
        for member in tar_ref.getmembers():
            logger.step_info(f"extracting: {member.name}", indent=2)
    tar_ref.extractall(dest_dir, filter="data")


def remove_path(path):
    """Remove a file or directory tree; a missing path is not an error."""
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        elif os.path.lexists(path):
            os.remove(path)
    except OSError as e:
        raise ExternalCommandFailure(f"Removing {path}", detail=str(e)) from e


def extract(filepath, dest_dir, verbose=False):
    """Extracts an archive file into ``dest_dir`` and returns ``dest_dir``.

    The archive itself is left in place.
    """
    os.makedirs(dest_dir, exist_ok=True)
    filename = os.path.basename(filepath)
    logger.step_info(f"Archive:  {filename}")

    try:
        if tarfile.is_tarfile(filepath):
            with tarfile.open(filepath, 'r:*') as tar:
                _safe_extract_tar(tar, dest_dir, log_each=verbose)
        elif zipfile.is_zipfile(filepath):
            with zipfile.ZipFile(filepath, 'r') as zip_ref:
                _safe_extract_zip(zip_ref, dest_dir, log_each=verbose)
        else:
            raise ExternalCommandFailure(f"Extracting {filename}", detail="unsupported archive type")
    except (zipfile.BadZipFile, tarfile.TarError, OSError) as e:
        raise ExternalCommandFailure(f"Extracting {filename}", detail=str(e)) from e

    logger.success(f"Successfully extracted to {dest_dir}")
    return dest_dir

# -------------------- Download --------------------

def download(url, dest_dir, filename=None, timeout=60):
    """Download ``url`` into ``dest_dir`` and return the file path."""
    os.makedirs(dest_dir, exist_ok=True)
    if filename is None:
        filename = url.split('/')[-1]
    filepath = os.path.join(dest_dir, filename)
    temp_filepath = filepath + ".tmp"

    try:
        with requests.get(url, stream=True, timeout=timeout) as r:
            r.raise_for_status()
            total_size = int(r.headers.get('content-length', 0))

            with open(temp_filepath, 'wb') as f:
                chunks = logger.progress(
                    r.iter_content(chunk_size=1024 * 256),  # 256KB chunks
                    description=f"Downloading {filename}",
                    total=total_size,
                )
                for chunk in chunks:
                    if chunk:  # keep-alive chunks may be empty
                        f.write(chunk)

        # Atomic rename
        os.replace(temp_filepath, filepath)
    except (requests.exceptions.RequestException, OSError) as e:
        with contextlib.suppress(OSError):
            if os.path.exists(temp_filepath):
                os.remove(temp_filepath)
        raise ExternalCommandFailure(f"Downloading {url}", detail=str(e)) from e

    return filepath
