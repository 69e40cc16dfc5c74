"""Tests for local node preparation."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from snapwatch.core.errors import CommandError, NodeSetupError
from snapwatch.core.models.config import PostgreSQLCredentials
from snapwatch.core.models.statistics import RestartSnapshot
from snapwatch.core.node.setup import LocalNodeSetup
from snapwatch.core.storage.paths import PathManager
from tests.pytest_plugins.mock_services import make_network_config

MODULE = "snapwatch.core.node.setup"
SNAPSHOT = RestartSnapshot(height=4000, hash="ABCDEF")


def _setup(paths: PathManager) -> LocalNodeSetup:
    resolver = MagicMock()
    resolver.app_version = AsyncMock(return_value="v0.75.8")
    resolver.consensus_height = AsyncMock(return_value=10_000)
    resolver.chain_id = AsyncMock(return_value="mainnet-0011")
    resolver.healthy_rpc_peers = AsyncMock(return_value=["api0.test:26657"])

    selector = MagicMock()
    selector.select_restart_snapshot = AsyncMock(return_value=SNAPSHOT)

    return LocalNodeSetup(
        network=make_network_config(),
        paths=paths,
        resolver=resolver,
        selector=selector,
        credentials=PostgreSQLCredentials(),
    )


def _fake_unzip(archive: Path, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    kind = archive.stem
    (output_dir / kind).write_text("binary")


class TestDownloadBinary:
    """Tests for binary download."""

    @pytest.mark.asyncio
    async def test_downloads_and_extracts(self, paths: PathManager):
        setup = _setup(paths)
        paths.create_directory_structure()

        with (
            patch(f"{MODULE}.platform_parts", return_value=("linux", "amd64")),
            patch(f"{MODULE}.download_file", AsyncMock()) as download,
            patch(f"{MODULE}.unzip_file", side_effect=_fake_unzip),
        ):
            binary = await setup.download_binary("visor", "v0.75.8")

        assert binary == paths.visor_bin
        url = download.await_args.args[0]
        assert url == "https://github.com/vegaprotocol/vega/releases/download/v0.75.8/visor-linux-amd64.zip"

    @pytest.mark.asyncio
    async def test_archive_without_binary(self, paths: PathManager):
        setup = _setup(paths)
        paths.create_directory_structure()

        with (
            patch(f"{MODULE}.platform_parts", return_value=("linux", "amd64")),
            patch(f"{MODULE}.download_file", AsyncMock()),
            patch(f"{MODULE}.unzip_file"),
        ):
            with pytest.raises(NodeSetupError, match="does not contain"):
                await setup.download_binary("vega", "v0.75.8")


class TestInitNode:
    """Tests for node home initialization."""

    @pytest.mark.asyncio
    async def test_recreates_homes(self, paths: PathManager):
        setup = _setup(paths)
        stale = paths.vega_home / "stale"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")

        with patch(f"{MODULE}.execute_binary", AsyncMock(return_value="")) as execute:
            await setup.init_node("mainnet-0011")

        assert not stale.exists()
        commands = [call.args for call in execute.await_args_list]
        assert commands[0][0] == paths.visor_bin
        assert commands[0][1][:2] == ["init", "--with-data-node"]
        assert commands[1][1][-1] == "full"
        assert commands[2][1] == ["datanode", "init", "--home", str(paths.vega_home), "mainnet-0011"]

    @pytest.mark.asyncio
    async def test_command_failure(self, paths: PathManager):
        setup = _setup(paths)
        failure = CommandError(["vega", "init"], 1, "already initialised")

        with patch(f"{MODULE}.execute_binary", AsyncMock(side_effect=failure)):
            with pytest.raises(NodeSetupError, match="failed to initialize vegavisor"):
                await setup.init_node("mainnet-0011")


class TestSetup:
    """Tests for the end to end preparation."""

    @pytest.mark.asyncio
    async def test_setup(self, paths: PathManager):
        setup = _setup(paths)

        with (
            patch.object(setup, "download_binary", AsyncMock()) as download,
            patch.object(setup, "init_node", AsyncMock()) as init,
            patch.object(setup, "download_genesis", AsyncMock()) as genesis,
            patch(f"{MODULE}.update_configs") as update,
        ):
            details = await setup.setup()

        assert [call.args for call in download.await_args_list] == [("vega", "v0.75.8"), ("visor", "v0.75.8")]
        init.assert_awaited_once_with("mainnet-0011")
        genesis.assert_awaited_once()
        assert update.call_args.kwargs["snapshot"] == SNAPSHOT
        assert update.call_args.kwargs["rpc_peers"] == ["api0.test:26657"]

        assert details.chain_id == "mainnet-0011"
        assert details.network_height == 10_000
        assert details.start_command == [str(paths.visor_bin), "run", "--home", str(paths.visor_home)]
        assert details.to_dict()["restart_snapshot"] == {"height": 4000, "hash": "ABCDEF", "core_version": ""}
