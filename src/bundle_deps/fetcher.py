"""Fetch every bundled dependency concurrently."""
import asyncio
import shutil
from pathlib import Path
from typing import Any, Awaitable, List, Optional, Union

import aiohttp

from bundle_deps.archives import extract_all
from bundle_deps.binding import bind_kubectl_to_kuberlr
from bundle_deps.config import FetchSettings, load_versions
from bundle_deps.constants import DASHBOARD_DIR_NAME, KUBECTL_STABLE_URL
from bundle_deps.errors import InstallError
from bundle_deps.fetching import fetch_one, fetch_text
from bundle_deps.logging import get_logger
from bundle_deps.platforms import create_download_context, exe_name, find_home, is_host_platform
from bundle_deps.tools import (
    credential_helper_specs,
    docker_buildx_spec,
    docker_cli_spec,
    docker_compose_spec,
    ecr_credential_helper_spec,
    helm_spec,
    kubectl_spec,
    kuberlr_spec,
    rancher_dashboard_spec,
    steve_spec,
    trivy_spec,
)
from bundle_deps.types import (
    ArchiveKind,
    DependencyPlatform,
    DependencyVersions,
    DownloadContext,
)

logger = get_logger(__name__)


def _make_dirs(*paths: Path) -> None:
    for path in paths:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create directory", path=str(path), error=str(e))
            raise InstallError(str(path), e) from e


async def gather_settled(*aws: Awaitable[Any]) -> List[Any]:
    """Run ``aws`` concurrently and raise the first failure.

    Siblings are not cancelled. The call only returns or raises once every
    awaitable has finished, so shared resources such as the HTTP session
    outlive all of them. Later failures are logged and dropped.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception as e:
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception) and result is not e:
                logger.warning(
                    "Additional fetch failure",
                    error_type=result.__class__.__name__,
                    error_message=str(result),
                )
        raise


async def fetch_kuberlr_and_kubectl(
    session: aiohttp.ClientSession,
    context: DownloadContext,
    versions: DependencyVersions,
    overwrite: bool = False,
) -> Path:
    """Install kuberlr, expose it as kubectl, and prime kuberlr's kubectl cache."""
    kuberlr_path = await fetch_one(session, kuberlr_spec(context, versions), overwrite)
    kubectl_path = context.bin_dir / exe_name(context, "kubectl")
    bind_kubectl_to_kuberlr(kuberlr_path, kubectl_path, context.on_windows)

    # The managed kubectl only helps when the bundle runs on this machine
    if is_host_platform(context.platform):
        kube_version = (await fetch_text(session, KUBECTL_STABLE_URL)).strip()
        home = find_home(context.on_windows)
        await fetch_one(session, kubectl_spec(context, kube_version, home), overwrite)

    return kubectl_path


async def fetch_rancher_dashboard(
    session: aiohttp.ClientSession,
    context: DownloadContext,
    versions: DependencyVersions,
) -> Optional[Path]:
    """Download and unpack the dashboard bundle unless it is already unpacked."""
    dashboard_dir = context.resources_dir / DASHBOARD_DIR_NAME
    if dashboard_dir.exists():
        logger.info("Already exists, not re-downloading", path=str(dashboard_dir))
        return None

    spec = rancher_dashboard_spec(context, versions)
    tarball = await fetch_one(session, spec, overwrite=True)

    _make_dirs(dashboard_dir)
    try:
        extract_all(tarball, ArchiveKind.TAR_GZ, dashboard_dir)
    except Exception:
        # A half-populated directory would make every later run skip
        shutil.rmtree(dashboard_dir, ignore_errors=True)
        raise
    finally:
        tarball.unlink(missing_ok=True)

    return dashboard_dir


async def fetch_credential_helpers(
    session: aiohttp.ClientSession,
    context: DownloadContext,
    versions: DependencyVersions,
    overwrite: bool = False,
) -> List[Path]:
    specs = credential_helper_specs(context, versions)
    return await gather_settled(*(fetch_one(session, spec, overwrite) for spec in specs))


async def fetch_all(
    context: DownloadContext,
    versions: DependencyVersions,
    settings: FetchSettings,
) -> None:
    """Fetch every dependency; the first failure fails the whole run.

    Sibling downloads are not cancelled when one fails; the session stays
    open until they finish.
    """
    _make_dirs(context.bin_dir, context.internal_dir)
    overwrite = settings.overwrite

    logger.info(
        "Fetching dependencies",
        platform=context.dependency_platform.value,
        arch=context.arch,
        bin_dir=str(context.bin_dir),
        internal_dir=str(context.internal_dir),
    )

    timeout = aiohttp.ClientTimeout(total=settings.timeout)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        await gather_settled(
            fetch_kuberlr_and_kubectl(session, context, versions, overwrite),
            fetch_one(session, helm_spec(context, versions), overwrite),
            fetch_one(session, docker_cli_spec(context, versions), overwrite),
            fetch_one(session, docker_buildx_spec(context, versions), overwrite),
            fetch_one(session, docker_compose_spec(context, versions), overwrite),
            fetch_one(session, trivy_spec(context, versions), overwrite),
            fetch_one(session, steve_spec(context, versions), overwrite),
            fetch_rancher_dashboard(session, context, versions),
            fetch_credential_helpers(session, context, versions, overwrite),
            fetch_one(session, ecr_credential_helper_spec(context, versions), overwrite),
        )

    logger.info("All dependencies fetched", platform=context.dependency_platform.value)


async def download_dependencies(
    raw_platform: Union[DependencyPlatform, str],
    versions: Optional[DependencyVersions] = None,
    settings: Optional[FetchSettings] = None,
) -> DownloadContext:
    """Resolve the platform and fetch everything into the resources tree."""
    settings = settings or FetchSettings.from_env()
    versions = versions or load_versions()
    context = create_download_context(raw_platform, settings.resources_dir, settings.arch)
    await fetch_all(context, versions, settings)
    return context
