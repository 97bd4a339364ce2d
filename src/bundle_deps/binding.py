"""Expose kuberlr under the kubectl name."""
import os
import shutil
from pathlib import Path

from bundle_deps.errors import InstallError
from bundle_deps.logging import get_logger

logger = get_logger(__name__)

KUBERLR_LINK_TARGET = "kuberlr"


def bind_kubectl_to_kuberlr(kuberlr_path: Path, kubectl_path: Path, on_windows: bool) -> Path:
    """Make ``kubectl_path`` run kuberlr.

    Windows bundles get a copy of ``kuberlr.exe``. Everywhere else
    ``kubectl`` is a relative symlink to the sibling ``kuberlr``; a link
    found pointing anywhere else is replaced.
    """
    try:
        if on_windows:
            shutil.copyfile(kuberlr_path, kubectl_path)
            logger.debug("Copied kuberlr to kubectl", source=str(kuberlr_path), dest=str(kubectl_path))
            return kubectl_path

        if kubectl_path.is_symlink():
            actual_target = os.readlink(kubectl_path)
            if actual_target == KUBERLR_LINK_TARGET:
                return kubectl_path
            logger.info(
                "Deleting symlink pointing to the wrong target",
                path=str(kubectl_path),
                target=actual_target,
            )
            kubectl_path.unlink()
        elif kubectl_path.exists():
            logger.info("Replacing file with kuberlr symlink", path=str(kubectl_path))
            kubectl_path.unlink()

        kubectl_path.symlink_to(KUBERLR_LINK_TARGET)
    except OSError as e:
        logger.error("Failed to bind kubectl", path=str(kubectl_path), error=str(e))
        raise InstallError(str(kubectl_path), e) from e

    logger.debug("Linked kubectl to kuberlr", path=str(kubectl_path))
    return kubectl_path
