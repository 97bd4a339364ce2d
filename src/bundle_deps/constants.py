"""Release hosting locations for bundled tools."""

GITHUB_RELEASES = "https://github.com/{owner}/{repo}/releases/download"

KUBERLR_RELEASES = GITHUB_RELEASES.format(owner="flavio", repo="kuberlr")
DOCKER_CLI_RELEASES = GITHUB_RELEASES.format(owner="rancher-sandbox", repo="rancher-desktop-docker-cli")
DOCKER_BUILDX_RELEASES = GITHUB_RELEASES.format(owner="docker", repo="buildx")
DOCKER_COMPOSE_RELEASES = GITHUB_RELEASES.format(owner="docker", repo="compose")
CREDENTIAL_HELPER_RELEASES = GITHUB_RELEASES.format(owner="docker", repo="docker-credential-helpers")
TRIVY_RELEASES = GITHUB_RELEASES.format(owner="aquasecurity", repo="trivy")
STEVE_RELEASES = GITHUB_RELEASES.format(owner="rancher-sandbox", repo="rancher-desktop-steve")
DASHBOARD_RELEASES = GITHUB_RELEASES.format(owner="rancher-sandbox", repo="dashboard")

HELM_BASE = "https://get.helm.sh"
KUBERNETES_BASE = "https://dl.k8s.io"
KUBECTL_STABLE_URL = f"{KUBERNETES_BASE}/release/stable.txt"
ECR_CREDENTIAL_HELPER_BASE = "https://amazon-ecr-credential-helper-releases.s3.us-east-2.amazonaws.com"

DASHBOARD_ASSET = "rancher-dashboard-desktop-embed"
DASHBOARD_DIR_NAME = "rancher-dashboard"

CREDENTIAL_HELPERS = {
    "linux": ["docker-credential-secretservice", "docker-credential-pass"],
    "darwin": ["docker-credential-osxkeychain"],
    "win32": ["docker-credential-wincred"],
}

DEFAULT_VERSIONS_FILE = "dependencies.toml"
APP_NAME = "bundle-deps"
