"""Release artifact download and extraction."""

from __future__ import annotations

import os
import platform
import zipfile
from pathlib import Path

import httpx
import structlog

from snapwatch.core.errors import NodeSetupError

logger = structlog.get_logger(__name__)

DOWNLOAD_TIMEOUT = 300.0

_ARCHITECTURES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


def platform_parts() -> tuple[str, str]:
    """
    Get the (os, arch) pair used in release artifact names.

    Raises:
        NodeSetupError: On an unsupported operating system or architecture
    """
    system = platform.system().lower()
    if system not in ("linux", "darwin"):
        raise NodeSetupError(f"operating system not supported: only linux and darwin supported, got {system}")

    machine = platform.machine().lower()
    arch = _ARCHITECTURES.get(machine)
    if arch is None:
        raise NodeSetupError(f"system architecture not supported: only amd64 and arm64 supported, got {machine}")

    return system, arch


def artifact_url(repository: str, version: str, kind: str, os_name: str, arch: str) -> str:
    """Build the download URL of one release zip."""
    return f"https://github.com/{repository}/releases/download/{version}/{kind}-{os_name}-{arch}.zip"


async def download_file(url: str, output: Path, transport: httpx.AsyncBaseTransport | None = None) -> None:
    """
    Stream a URL to a file.

    Raises:
        NodeSetupError: On a network error or a non-200 response
    """
    logger.info("Downloading file", url=url, output=str(output))

    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(DOWNLOAD_TIMEOUT),
            follow_redirects=True,
            transport=transport,
        ) as client:
            async with client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise NodeSetupError(
                        f"invalid response status code for {url}: got {response.status_code}, expected 200"
                    )
                with open(output, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
    except httpx.HTTPError as e:
        raise NodeSetupError(f"failed to download {url}: {e}") from e
    except OSError as e:
        raise NodeSetupError(f"failed to write {output}: {e}") from e


def unzip_file(archive: Path, output_dir: Path) -> None:
    """
    Extract a zip archive, keeping unix permissions.

    Raises:
        NodeSetupError: On a corrupt archive or a member escaping output_dir
    """
    root = output_dir.resolve()
    root.mkdir(parents=True, exist_ok=True)

    try:
        with zipfile.ZipFile(archive) as zf:
            for member in zf.infolist():
                target = (root / member.filename).resolve()
                if not target.is_relative_to(root):
                    raise NodeSetupError(f"invalid file path for file {member.filename}: {target}")

                if member.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(member) as src, open(target, "wb") as dst:
                    while chunk := src.read(1024 * 1024):
                        dst.write(chunk)

                mode = (member.external_attr >> 16) & 0o777
                if mode:
                    os.chmod(target, mode)
    except zipfile.BadZipFile as e:
        raise NodeSetupError(f"failed to open zip file {archive}: {e}") from e
    except OSError as e:
        raise NodeSetupError(f"failed to extract {archive}: {e}") from e
