"""Builder installing and configuring the containerd runtime.

Installs the containerd artifacts selected from the catalog for the node's
distribution and architecture, along with the service unit and the sysconfig
file holding the daemon flags. Distributions that ship containerd with the
image only get a drop-in configuring the existing service.
"""

import logging

from node_converge import flagbuilder
from node_converge.artifacts import CONTAINERD_CATALOG
from node_converge.catalog import ArtifactCatalog, ArtifactRecord
from node_converge.cluster import ContainerdConfig
from node_converge.config import ConvergeConfig
from node_converge.exceptions import ConfigurationError, MissingArtifactError
from node_converge.systemd import Manifest
from node_converge.tasks import Archive, Chattr, File, Package, Service, Task

from .builder import register_builder
from .context import BuilderScope

__all__ = [
    "ContainerdBuilder",
]

_LOGGER = logging.getLogger(__name__)

LICENSE_PATH = "/usr/share/doc/containerd/apache.txt"
CONFIG_PATH = "/etc/containerd/config-kops.toml"
SYSCONFIG_PATH = "/etc/sysconfig/containerd"
DROP_IN_PATH = "/etc/systemd/system/containerd.service.d/10-kops.conf"
CNI_TEMPLATE_PATH = "/etc/containerd/cni-config.template"
SERVICE_NAME = "containerd.service"

# Plain archives put binaries in /usr/local, the service expects /usr
ARCHIVE_MAP_FILES = {
    "./usr/local/bin": "/usr",
    "./usr/local/sbin": "/usr",
}

APACHE2_LICENSE = """\
                                 Apache License
                           Version 2.0, January 2004
                        http://www.apache.org/licenses/

   Licensed under the Apache License, Version 2.0 (the "License");
   you may not use this file except in compliance with the License.
   You may obtain a copy of the License at

       http://www.apache.org/licenses/LICENSE-2.0

   Unless required by applicable law or agreed to in writing, software
   distributed under the License is distributed on an "AS IS" BASIS,
   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
   See the License for the specific language governing permissions and
   limitations under the License.
"""

KUBENET_CNI_TEMPLATE = """\
{
    "cniVersion": "0.3.1",
    "name": "kubenet",
    "plugins": [
        {
            "type": "bridge",
            "bridge": "cbr0",
            "mtu": 1460,
            "addIf": "eth0",
            "isGateway": true,
            "ipMasq": true,
            "promiscMode": true,
            "ipam": {
                "type": "host-local",
                "subnet": "{{.PodCIDR}}",
                "routes": [{ "dst": "0.0.0.0/0" }]
            }
        }
    ]
}"""


class ContainerdBuilder:
    """Emits the tasks that install and configure containerd."""

    name = "containerd"

    def __init__(
        self,
        catalog: ArtifactCatalog = CONTAINERD_CATALOG,
        fail_on_missing_artifact: bool = False,
    ) -> None:
        """Initialize ContainerdBuilder."""
        self._catalog = catalog
        self._fail_on_missing_artifact = fail_on_missing_artifact

    def build(self, scope: BuilderScope) -> None:
        """Emit tasks for the containerd daemon."""
        node = scope.node
        config = node.cluster.containerd_config
        if config.skip_install:
            _LOGGER.info("SkipInstall is set to true; won't install containerd")
            return

        if node.distribution.is_immutable:
            _LOGGER.info("Detected %s; won't install containerd", node.distribution)
            self._build_drop_in(scope)
            self._build_sysconfig(scope, config)
            return

        scope.add_task(File(path=LICENSE_PATH, contents=APACHE2_LICENSE))
        scope.add_task(File(path=CONFIG_PATH, contents=config.config_override or ""))

        version = self._version(config)
        records = self._catalog.select(node.distribution, node.architecture, version)
        # Some distributions need more than one artifact, so every match is installed
        for record in records:
            self._build_install(scope, record)
        if not records:
            message = (
                f"Did not find containerd package for {node.distribution} "
                f"{node.architecture} {version}"
            )
            if self._fail_on_missing_artifact:
                raise MissingArtifactError(message)
            scope.warn(message)

        scope.add_task(self._build_service())
        self._build_sysconfig(scope, config)

        cluster = node.cluster
        if cluster.container_runtime == "containerd" and cluster.networking_spec.uses_kubenet:
            scope.add_task(File(path=CNI_TEMPLATE_PATH, contents=KUBENET_CNI_TEMPLATE))

    def _version(self, config: ContainerdConfig) -> str:
        if not config.version:
            raise ConfigurationError("error finding containerd version")
        return config.version

    def _build_install(self, scope: BuilderScope, record: ArtifactRecord) -> None:
        install_task: Task
        if record.plain_archive:
            install_task = Archive(
                name=record.name,
                source=record.source,
                hash=record.hash,
                target_dir="/",
                map_files=dict(ARCHIVE_MAP_FILES),
            )
        else:
            extra_packages = [
                Package(
                    name=extra.name,
                    version=extra.version,
                    source=extra.source,
                    hash=extra.hash,
                    prevent_start=True,
                )
                for extra in record.extra_packages
            ]
            for extra_package in extra_packages:
                scope.add_task(extra_package)
            install_task = Package(
                name=record.name,
                version=record.version,
                source=record.source,
                hash=record.hash,
                prevent_start=True,
                requires=tuple(extra.identity for extra in extra_packages),
            )
        scope.add_task(install_task)

        for action in record.post_install:
            scope.add_task(
                Chattr(
                    file=action.file,
                    mode=action.mode,
                    requires=(install_task.identity,),
                )
            )

        for dependency in record.dependencies:
            scope.add_task(Package(name=dependency))

    def _build_service(self) -> Service:
        manifest = Manifest()
        manifest.set("Unit", "Description", "containerd container runtime")
        manifest.set("Unit", "Documentation", "https://containerd.io")
        manifest.set("Unit", "After", "network.target local-fs.target")

        manifest.set("Service", "EnvironmentFile", SYSCONFIG_PATH)
        manifest.set("Service", "EnvironmentFile", "/etc/environment")
        manifest.set("Service", "ExecStartPre", "-/sbin/modprobe overlay")
        manifest.set(
            "Service",
            "ExecStart",
            f'/usr/bin/containerd -c {CONFIG_PATH} "$CONTAINERD_OPTS"',
        )
        manifest.set("Service", "Restart", "always")
        manifest.set("Service", "RestartSec", "5")
        # systemd must not reset the cgroups of containers
        manifest.set("Service", "Delegate", "yes")
        manifest.set("Service", "KillMode", "process")
        manifest.set("Service", "OOMScoreAdjust", "-999")
        manifest.set("Service", "LimitNOFILE", "1048576")
        manifest.set("Service", "LimitNPROC", "infinity")
        manifest.set("Service", "LimitCORE", "infinity")
        manifest.set("Service", "TasksMax", "infinity")

        manifest.set("Install", "WantedBy", "multi-user.target")

        definition = manifest.render()
        _LOGGER.debug("Built service manifest %s\n%s", SERVICE_NAME, definition)
        return Service(name=SERVICE_NAME, definition=definition)

    def _build_drop_in(self, scope: BuilderScope) -> None:
        lines = [
            "[Service]",
            f"EnvironmentFile={SYSCONFIG_PATH}",
            "EnvironmentFile=/etc/environment",
            "TasksMax=infinity",
        ]
        scope.add_task(
            File(
                path=DROP_IN_PATH,
                contents="\n".join(lines),
                after_files=(SYSCONFIG_PATH,),
                on_change_execute=(
                    ("systemctl", "daemon-reload"),
                    ("systemctl", "restart", SERVICE_NAME),
                    # Restarted in the background, the configuration service is
                    # a oneshot unit waiting on this run to finish
                    ("systemctl", "restart", "kops-configuration.service", "&"),
                ),
            )
        )

    def _build_sysconfig(self, scope: BuilderScope, config: ContainerdConfig) -> None:
        flags = flagbuilder.build_flags(config)
        scope.add_task(File(path=SYSCONFIG_PATH, contents=f"CONTAINERD_OPTS={flags}"))


@register_builder("containerd")
def _containerd_builder(config: ConvergeConfig) -> ContainerdBuilder:
    catalog = (
        ArtifactCatalog.from_file(config.catalog) if config.catalog else CONTAINERD_CATALOG
    )
    return ContainerdBuilder(
        catalog=catalog, fail_on_missing_artifact=config.fail_on_missing_artifact
    )
