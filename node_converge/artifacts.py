"""Built-in catalog of containerd artifacts.

When adding the next version, copy the previous entry, replace the version
and update the hash of the downloaded artifact.
"""

from .catalog import ArtifactCatalog, ArtifactRecord, InstallMechanism
from .distros import Architecture, Distribution

__all__ = [
    "CONTAINERD_PACKAGE",
    "CONTAINERD_CATALOG",
]

CONTAINERD_PACKAGE = "containerd.io"

_DOCKER_DEBIAN = "https://download.docker.com/linux/debian/dists"
_DOCKER_UBUNTU = "https://download.docker.com/linux/ubuntu/dists"
_DOCKER_CENTOS = "https://download.docker.com/linux/centos/7/x86_64/stable/Packages"
_CRI_RELEASE = "https://storage.googleapis.com/cri-containerd-release"


def _generic(version: str, hash: str) -> ArtifactRecord:
    """Plain archive release for any amd64 distribution."""
    return ArtifactRecord(
        name=CONTAINERD_PACKAGE,
        package_version=version,
        install=InstallMechanism.ARCHIVE,
        architectures=(Architecture.AMD64,),
        source=f"{_CRI_RELEASE}/cri-containerd-{version}.linux-amd64.tar.gz",
        hash=hash,
    )


CONTAINERD_CATALOG = ArtifactCatalog(
    records=(
        # 1.2.4 - Debian Stretch
        ArtifactRecord(
            name=CONTAINERD_PACKAGE,
            package_version="1.2.4",
            version="1.2.4-1",
            distros=(Distribution.DEBIAN9,),
            architectures=(Architecture.AMD64,),
            source=f"{_DOCKER_DEBIAN}/stretch/pool/stable/amd64/containerd.io_1.2.4-1_amd64.deb",
            hash="48c6ab0c908316af9a183de5aad64703bc516bdf",
        ),
        # 1.2.10 - Debian Stretch
        ArtifactRecord(
            name=CONTAINERD_PACKAGE,
            package_version="1.2.10",
            version="1.2.10-3",
            distros=(Distribution.DEBIAN9,),
            architectures=(Architecture.AMD64,),
            source=f"{_DOCKER_DEBIAN}/stretch/pool/stable/amd64/containerd.io_1.2.10-3_amd64.deb",
            hash="186f2f2c570f37b363102e6b879073db6dec671d",
        ),
        # 1.2.10 - Debian Buster
        ArtifactRecord(
            name=CONTAINERD_PACKAGE,
            package_version="1.2.10",
            version="1.2.10-3",
            distros=(Distribution.DEBIAN10,),
            architectures=(Architecture.AMD64,),
            source=f"{_DOCKER_DEBIAN}/buster/pool/stable/amd64/containerd.io_1.2.10-3_amd64.deb",
            hash="365e4a7541ce2cf3c3036ea2a9bf6b40a50893a8",
        ),
        # 1.2.10 - Ubuntu Xenial
        ArtifactRecord(
            name=CONTAINERD_PACKAGE,
            package_version="1.2.10",
            version="1.2.10-3",
            distros=(Distribution.XENIAL,),
            architectures=(Architecture.AMD64,),
            source=f"{_DOCKER_UBUNTU}/xenial/pool/stable/amd64/containerd.io_1.2.10-3_amd64.deb",
            hash="b64e7170d9176bc38967b2e12147c69b65bdd0fc",
        ),
        # 1.2.10 - Ubuntu Bionic
        ArtifactRecord(
            name=CONTAINERD_PACKAGE,
            package_version="1.2.10",
            version="1.2.10-3",
            distros=(Distribution.BIONIC,),
            architectures=(Architecture.AMD64,),
            source=f"{_DOCKER_UBUNTU}/bionic/pool/stable/amd64/containerd.io_1.2.10-3_amd64.deb",
            hash="f4c941807310e3fa470dddfb068d599174a3daec",
        ),
        # 1.2.10 - CentOS / RHEL 7
        ArtifactRecord(
            name=CONTAINERD_PACKAGE,
            package_version="1.2.10",
            version="1.2.10",
            distros=(Distribution.RHEL7, Distribution.CENTOS7),
            architectures=(Architecture.AMD64,),
            source=f"{_DOCKER_CENTOS}/containerd.io-1.2.10-3.2.el7.x86_64.rpm",
            hash="f6447e84479df3a58ce04a3da87ccc384663493b",
        ),
        # 1.2.10 - CentOS / RHEL 8
        ArtifactRecord(
            name=CONTAINERD_PACKAGE,
            package_version="1.2.10",
            version="1.2.10",
            distros=(Distribution.RHEL8, Distribution.CENTOS8),
            architectures=(Architecture.AMD64,),
            source=f"{_DOCKER_CENTOS}/containerd.io-1.2.10-3.2.el7.x86_64.rpm",
            hash="f6447e84479df3a58ce04a3da87ccc384663493b",
        ),
        # 1.2.10 - Linux Generic
        #
        # AmazonLinux2: the CentOS 7 package depends on container-selinux
        # UbuntuFocal: no focal version available at download.docker.com
        ArtifactRecord(
            name=CONTAINERD_PACKAGE,
            package_version="1.2.10",
            install=InstallMechanism.ARCHIVE,
            distros=(Distribution.AMAZON_LINUX2, Distribution.FOCAL),
            architectures=(Architecture.AMD64,),
            source=f"{_CRI_RELEASE}/cri-containerd-1.2.10.linux-amd64.tar.gz",
            hash="c84c29dcd1867a6ee9899d2106ab4f28854945f6",
        ),
        _generic("1.2.11", "c98c9fdfd0984557e5b1a1f209213d2d8ad8471c"),
        _generic("1.2.12", "9455ca2508ad57438cb02a986ba763033bcb05f7"),
        _generic("1.2.13", "70ee2821e26116b0cddc679d14806fd20d25d65c"),
        _generic("1.3.2", "f451d46280104588f236bee277bca1da8babc0e8"),
        _generic("1.3.3", "921b74e84da366ec3eaa72ff97fa8d6ae56834c6"),
        _generic("1.3.4", "ce518d8091ffdd40caa7f386c742d9b1d03e01b5"),
    )
)
