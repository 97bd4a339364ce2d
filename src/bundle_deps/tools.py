"""Tool specifications for every bundled dependency.

Each builder turns version pins and a download context into the
``ToolSpec`` describing where the tool lives upstream, how its checksum is
published and where it lands in the bundle.
"""
from pathlib import Path
from typing import List

from bundle_deps.constants import (
    CREDENTIAL_HELPER_RELEASES,
    CREDENTIAL_HELPERS,
    DASHBOARD_ASSET,
    DASHBOARD_RELEASES,
    DOCKER_BUILDX_RELEASES,
    DOCKER_CLI_RELEASES,
    DOCKER_COMPOSE_RELEASES,
    ECR_CREDENTIAL_HELPER_BASE,
    HELM_BASE,
    KUBERLR_RELEASES,
    KUBERNETES_BASE,
    STEVE_RELEASES,
    TRIVY_RELEASES,
)
from bundle_deps.platforms import arch_name, exe_name
from bundle_deps.types import (
    ArchiveKind,
    ChecksumSource,
    DependencyPlatform,
    DependencyVersions,
    DownloadContext,
    KubePlatform,
    ToolSpec,
)


def _archive_kind(context: DownloadContext) -> ArchiveKind:
    return ArchiveKind.ZIP if context.on_windows else ArchiveKind.TAR_GZ


def kuberlr_spec(context: DownloadContext, versions: DependencyVersions) -> ToolSpec:
    # Always amd64: kubectl releases before v1.21.0 have no arm64 builds.
    arch = arch_name("amd64")
    platform_dir = f"kuberlr_{versions.kuberlr}_{context.kube_platform.value}_{arch}"
    archive = _archive_kind(context)
    return ToolSpec(
        name="kuberlr",
        version=versions.kuberlr,
        url_template=KUBERLR_RELEASES + "/v{version}/{platform_dir}.{ext}",
        url_values={"platform_dir": platform_dir, "ext": archive.value},
        checksum=ChecksumSource.manifest(
            KUBERLR_RELEASES + "/v{version}/checksums.txt", "{platform_dir}"
        ),
        archive=archive,
        entry_name=f"{platform_dir}/{exe_name(context, 'kuberlr')}",
        destination=context.bin_dir / exe_name(context, "kuberlr"),
    )


def kubectl_spec(context: DownloadContext, kube_version: str, home: Path) -> ToolSpec:
    """kubectl placed in kuberlr's cache of versioned binaries."""
    kube_platform = context.kube_platform.value
    arch = arch_name(context.arch)
    managed_dir = home / ".kuberlr" / f"{kube_platform}-{arch}"
    return ToolSpec(
        name="kubectl",
        version=kube_version,
        url_template=KUBERNETES_BASE + "/{version}/bin/{os}/{arch}/{executable}",
        url_values={
            "os": kube_platform,
            "arch": arch,
            "executable": exe_name(context, "kubectl"),
        },
        checksum=ChecksumSource.sidecar("{url}.sha256"),
        destination=managed_dir / exe_name(context, f"kubectl{kube_version.lstrip('v')}"),
    )


def helm_spec(context: DownloadContext, versions: DependencyVersions) -> ToolSpec:
    kube_platform = context.kube_platform.value
    arch = arch_name(context.arch)
    return ToolSpec(
        name="helm",
        version=versions.helm,
        url_template=HELM_BASE + "/helm-v{version}-{os}-{arch}.tar.gz",
        url_values={"os": kube_platform, "arch": arch},
        checksum=ChecksumSource.sidecar("{url}.sha256sum"),
        archive=ArchiveKind.TAR_GZ,
        entry_name=f"{kube_platform}-{arch}/{exe_name(context, 'helm')}",
        destination=context.bin_dir / exe_name(context, "helm"),
    )


def docker_cli_spec(context: DownloadContext, versions: DependencyVersions) -> ToolSpec:
    if context.dependency_platform == DependencyPlatform.WSL:
        docker_platform = "wsl"
    else:
        docker_platform = context.kube_platform.value
    executable = exe_name(context, f"docker-{docker_platform}-{arch_name(context.arch)}")
    return ToolSpec(
        name="docker",
        version=versions.docker_cli,
        url_template=DOCKER_CLI_RELEASES + "/v{version}/{executable}",
        url_values={"executable": executable},
        checksum=ChecksumSource.manifest(
            DOCKER_CLI_RELEASES + "/v{version}/sha256sum.txt", "{executable}"
        ),
        destination=context.bin_dir / exe_name(context, "docker"),
    )


def docker_buildx_spec(context: DownloadContext, versions: DependencyVersions) -> ToolSpec:
    kube_platform = context.kube_platform.value
    executable = exe_name(
        context,
        f"buildx-v{versions.docker_buildx}.{kube_platform}-{arch_name(context.arch)}",
    )
    if context.kube_platform == KubePlatform.DARWIN:
        checksum = ChecksumSource.unverified(
            "docker/buildx publishes no checksums for darwin builds "
            "(https://github.com/docker/buildx/issues/945)"
        )
    else:
        checksum = ChecksumSource.manifest(
            DOCKER_BUILDX_RELEASES + "/v{version}/checksums.txt", "{executable}"
        )
    return ToolSpec(
        name="docker-buildx",
        version=versions.docker_buildx,
        url_template=DOCKER_BUILDX_RELEASES + "/v{version}/{executable}",
        url_values={"executable": executable},
        checksum=checksum,
        destination=context.bin_dir / exe_name(context, "docker-buildx"),
    )


def docker_compose_spec(context: DownloadContext, versions: DependencyVersions) -> ToolSpec:
    cpu = arch_name(context.arch, "compose")
    executable = exe_name(context, f"docker-compose-{context.kube_platform.value}-{cpu}")
    return ToolSpec(
        name="docker-compose",
        version=versions.docker_compose,
        url_template=DOCKER_COMPOSE_RELEASES + "/v{version}/{executable}",
        url_values={"executable": executable},
        checksum=ChecksumSource.manifest("{url}.sha256", "{executable}"),
        destination=context.bin_dir / exe_name(context, "docker-compose"),
    )


def trivy_spec(context: DownloadContext, versions: DependencyVersions) -> ToolSpec:
    # Trivy always runs inside the VM, so this is the linux build whatever
    # the host platform.
    basename = f"trivy_{versions.trivy}_{arch_name(context.arch, 'trivy')}"
    return ToolSpec(
        name="trivy",
        version=versions.trivy,
        url_template=TRIVY_RELEASES + "/v{version}/{basename}.tar.gz",
        url_values={"basename": basename},
        checksum=ChecksumSource.manifest(
            TRIVY_RELEASES + "/v{version}/trivy_{version}_checksums.txt",
            "{basename}.tar.gz",
        ),
        archive=ArchiveKind.TAR_GZ,
        entry_name="trivy",
        destination=context.internal_dir / "trivy",
    )


def steve_spec(context: DownloadContext, versions: DependencyVersions) -> ToolSpec:
    executable = f"steve-{context.kube_platform.value}-{arch_name(context.arch)}"
    return ToolSpec(
        name="steve",
        version=versions.steve,
        url_template=STEVE_RELEASES + "/{version}/{executable}.tar.gz",
        url_values={"executable": executable},
        checksum=ChecksumSource.manifest("{url}.sha512sum", "{executable}"),
        algorithm="sha512",
        archive=ArchiveKind.TAR_GZ,
        destination=context.internal_dir / exe_name(context, "steve"),
    )


def rancher_dashboard_spec(context: DownloadContext, versions: DependencyVersions) -> ToolSpec:
    """The dashboard tarball; the fetcher unpacks it next to the platform dirs."""
    return ToolSpec(
        name="rancher-dashboard",
        version=versions.rancher_dashboard,
        url_template=DASHBOARD_RELEASES + "/{version}/{asset}.tar.gz",
        url_values={"asset": DASHBOARD_ASSET},
        checksum=ChecksumSource.manifest("{url}.sha512sum", "{asset}"),
        algorithm="sha512",
        destination=context.resources_dir / "rancher-dashboard.tgz",
        executable=False,
    )


def credential_helper_specs(
    context: DownloadContext, versions: DependencyVersions
) -> List[ToolSpec]:
    archive = _archive_kind(context)
    specs = []
    for base_name in CREDENTIAL_HELPERS[context.platform.value]:
        specs.append(ToolSpec(
            name=base_name,
            version=versions.docker_credential_helpers,
            url_template=CREDENTIAL_HELPER_RELEASES + "/v{version}/{base}-v{version}-{arch}.{ext}",
            url_values={
                "base": base_name,
                "arch": arch_name(context.arch),
                "ext": archive.value,
            },
            checksum=ChecksumSource.unverified(
                "docker-credential-helpers releases up to v0.6.4 ship without checksum files"
            ),
            archive=archive,
            destination=context.bin_dir / exe_name(context, base_name),
        ))
    return specs


def ecr_credential_helper_spec(
    context: DownloadContext, versions: DependencyVersions
) -> ToolSpec:
    ecr_platform = "windows" if context.on_windows else context.platform.value
    bin_name = exe_name(context, "docker-credential-ecr-login")
    return ToolSpec(
        name="docker-credential-ecr-login",
        version=versions.ecr_credential_helper,
        url_template=ECR_CREDENTIAL_HELPER_BASE + "/{version}/{os}-{arch}/{executable}",
        url_values={
            "os": ecr_platform,
            "arch": arch_name(context.arch),
            "executable": bin_name,
        },
        checksum=ChecksumSource.sidecar("{url}.sha256"),
        destination=context.bin_dir / bin_name,
    )
