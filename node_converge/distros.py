"""Operating system distributions and CPU architectures of a node."""

from enum import StrEnum

__all__ = [
    "Distribution",
    "Architecture",
]


class Distribution(StrEnum):
    """Host operating system distribution."""

    DEBIAN9 = "debian9"
    DEBIAN10 = "debian10"
    XENIAL = "xenial"
    BIONIC = "bionic"
    FOCAL = "focal"
    AMAZON_LINUX2 = "amazonlinux2"
    RHEL7 = "rhel7"
    CENTOS7 = "centos7"
    RHEL8 = "rhel8"
    CENTOS8 = "centos8"
    FLATCAR = "flatcar"
    CONTAINER_OS = "containeros"

    @property
    def is_debian_family(self) -> bool:
        """Distributions managed with dpkg/apt."""
        return self in _DEBIAN_FAMILY

    @property
    def is_rhel_family(self) -> bool:
        """Distributions managed with rpm/yum."""
        return self in _RHEL_FAMILY

    @property
    def is_immutable(self) -> bool:
        """Distributions that ship the container runtime with the image."""
        return self in (Distribution.FLATCAR, Distribution.CONTAINER_OS)


_DEBIAN_FAMILY = frozenset(
    {
        Distribution.DEBIAN9,
        Distribution.DEBIAN10,
        Distribution.XENIAL,
        Distribution.BIONIC,
        Distribution.FOCAL,
    }
)
_RHEL_FAMILY = frozenset(
    {
        Distribution.AMAZON_LINUX2,
        Distribution.RHEL7,
        Distribution.CENTOS7,
        Distribution.RHEL8,
        Distribution.CENTOS8,
    }
)


class Architecture(StrEnum):
    """CPU architecture of a node."""

    AMD64 = "amd64"
    ARM64 = "arm64"
