"""
Derived-config resolver — pure functions from stored config to derived fields.

Nothing here touches the filesystem, the context or its inputs: the
same record and flags always produce an equal result, so tasks may
call these as often as they like.

    derive(app_record, flags)         → per-application derived fields
    derive_deployment(record)         → deployment derived fields
    deployment_flags(record)          → GlobalFlags from deployment answers
    with_app_capabilities(flags, ...) → GlobalFlags + capabilities of the apps
    select_scripts(generator_type)    → ScriptSelection (k8s vs helm)
    platform_constants(generator_type)→ API versions and chart versions
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from kubegen.core.errors import ConfigInvalid
from kubegen.core.models.config import ConfigRecord
from kubegen.core.models.context import GlobalFlags, ScriptSelection

DerivedFields = dict[str, Any]

GENERATOR_TYPES = ("k8s", "helm")
APPLICATION_TYPES = ("monolith", "gateway", "microservice")
BUILD_TOOLS = ("maven", "gradle")
KAFKA = "kafka"

CLUSTERED_PEER_COUNT = 3
SINGLE_PEER_COUNT = 1

KUBECTL_APPLY_SCRIPT = "kubectl-knative-apply.sh"
HELM_APPLY_SCRIPT = "helm-knative-apply.sh"
HELM_UPGRADE_SCRIPT = "helm-knative-upgrade.sh"

_JIB_CACHE_DIRS = {"maven": "target/jib-cache", "gradle": "build/jib-cache"}

KUBERNETES_CONSTANTS: dict[str, str] = {
    "KUBERNETES_CORE_API_VERSION": "v1",
    "KUBERNETES_BATCH_API_VERSION": "batch/v1",
    "KUBERNETES_DEPLOYMENT_API_VERSION": "apps/v1",
    "KUBERNETES_STATEFULSET_API_VERSION": "apps/v1",
    "KUBERNETES_INGRESS_API_VERSION": "networking.k8s.io/v1",
    "KUBERNETES_ISTIO_NETWORKING_API_VERSION": "networking.istio.io/v1beta1",
    "KUBERNETES_RBAC_API_VERSION": "rbac.authorization.k8s.io/v1",
    "KNATIVE_SERVING_API_VERSION": "serving.knative.dev/v1",
}

HELM_CONSTANTS: dict[str, str] = {
    "HELM_KAFKA": "^0.20.1",
    "HELM_ELASTICSEARCH": "^1.32.0",
    "HELM_PROMETHEUS": "^9.2.0",
    "HELM_GRAFANA": "^4.0.0",
    "HELM_MYSQL": "^1.4.0",
    "HELM_MARIADB": "^6.12.2",
    "HELM_POSTGRESQL": "^6.5.3",
    "HELM_MONGODB_REPLICASET": "^3.10.1",
    "HELM_COUCHBASE_OPERATOR": "^2.2.1",
}


def db_peer_count(clustered: bool) -> int:
    """Database replica count: 3 when clustered, 1 otherwise."""
    return CLUSTERED_PEER_COUNT if clustered else SINGLE_PEER_COUNT


def target_image_name(base_name: str, docker_repository_name: str = "") -> str:
    """Image name pushed to the registry, e.g. ``myrepo/gateway``."""
    name = base_name.lower()
    return f"{docker_repository_name}/{name}" if docker_repository_name else name


def _valid_port(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    return isinstance(value, int) and 0 < value < 65536


def validate_app_record(record: ConfigRecord) -> None:
    """Reject application records the manifests cannot be built from."""
    if not record.get("baseName"):
        raise ConfigInvalid("missing baseName", key=f"{record.target_id}:baseName")

    app_type = record.get("applicationType", "monolith")
    if app_type not in APPLICATION_TYPES:
        raise ConfigInvalid(
            f"unknown applicationType '{app_type}'", key=f"{record.target_id}:applicationType",
        )

    build_tool = record.get("buildTool", "maven")
    if build_tool not in BUILD_TOOLS:
        raise ConfigInvalid(f"unknown buildTool '{build_tool}'", key=f"{record.target_id}:buildTool")

    if "serverPort" in record.values and not _valid_port(record.values["serverPort"]):
        raise ConfigInvalid(
            f"serverPort must be a port number, got {record.values['serverPort']!r}",
            key=f"{record.target_id}:serverPort",
        )


def derive(record: ConfigRecord, flags: GlobalFlags) -> DerivedFields:
    """Derived fields of one application record."""
    values = record.snapshot()
    base_name = str(values.get("baseName", record.target_id))
    app_type = values.get("applicationType", "monolith")
    build_tool = values.get("buildTool", "maven")
    prod_db = values.get("prodDatabaseType", "no")
    auth = values.get("authenticationType", "jwt")
    clustered = bool(values.get("clusteredDb")) or record.target_id in flags.clustered_db_apps

    derived: DerivedFields = {
        "lowercaseBaseName": base_name.lower(),
        "applicationTypeMonolith": app_type == "monolith",
        "applicationTypeGateway": app_type == "gateway",
        "applicationTypeMicroservice": app_type == "microservice",
        "buildToolMaven": build_tool == "maven",
        "buildToolGradle": build_tool == "gradle",
        "jibCacheDir": _JIB_CACHE_DIRS.get(build_tool, _JIB_CACHE_DIRS["maven"]),
        "prodDatabaseType": prod_db,
        "databaseTypeSql": prod_db in ("postgresql", "mysql", "mariadb", "mssql", "oracle"),
        "databaseTypeNo": prod_db == "no",
        "messageBrokerKafka": values.get("messageBroker") == KAFKA,
        "authenticationTypeOauth2": auth == "oauth2",
        "authenticationTypeJwt": auth == "jwt",
        "serverPort": int(values.get("serverPort", 8080)),
        "clusteredDb": clustered,
        "dbPeerCount": db_peer_count(clustered),
        "generatorTypeHelm": flags.generator_type == "helm",
    }
    return derived


def deployment_flags(record: ConfigRecord | Mapping[str, Any]) -> GlobalFlags:
    """GlobalFlags inputs taken from the deployment answers."""
    values = record.snapshot() if isinstance(record, ConfigRecord) else dict(record)
    generator_type = values.get("generatorType", "k8s")
    if generator_type not in GENERATOR_TYPES:
        raise ConfigInvalid(f"unknown generator type '{generator_type}'", key="generatorType")

    return GlobalFlags(
        generator_type=generator_type,
        docker_repository_name=str(values.get("dockerRepositoryName") or ""),
        istio=bool(values.get("istio", True)),
        monitoring=str(values.get("monitoring", "no")),
        clustered_db_apps=list(values.get("clusteredDbApps") or []),
        requires_admin_password=values.get("serviceDiscoveryType") == "eureka",
    )


def with_app_capabilities(flags: GlobalFlags, apps: Iterable[Mapping[str, Any]]) -> GlobalFlags:
    """Copy of ``flags`` with capability flags set from apps' derived fields."""
    apps = list(apps)
    return flags.model_copy(update={
        "use_kafka": flags.use_kafka or any(a.get("messageBrokerKafka") for a in apps),
    })


def derive_deployment(record: ConfigRecord) -> DerivedFields:
    """Derived fields of the deployment record."""
    values = record.snapshot()
    flags = deployment_flags(record)
    namespace = values.get("kubernetesNamespace", "default")
    ingress_domain = values.get("ingressDomain", "")

    return {
        "generatorTypeK8s": flags.generator_type == "k8s",
        "generatorTypeHelm": flags.generator_type == "helm",
        "kubernetesNamespace": namespace,
        "kubernetesNamespaceDefault": namespace == "default",
        "usesIngressDomain": bool(ingress_domain),
        "deploymentApplicationTypeMicroservice": values.get("deploymentApplicationType", "microservice") == "microservice",
        "monitoringPrometheus": flags.monitoring == "prometheus",
        "serviceDiscoveryEureka": values.get("serviceDiscoveryType") == "eureka",
        "serviceDiscoveryConsul": values.get("serviceDiscoveryType") == "consul",
        "expectedScripts": list(select_scripts(flags.generator_type).scripts),
    }


def select_scripts(generator_type: str) -> ScriptSelection:
    """The deploy script set for a platform type."""
    if generator_type == "k8s":
        return ScriptSelection(generator_type="k8s", scripts=(KUBECTL_APPLY_SCRIPT,))
    if generator_type == "helm":
        return ScriptSelection(
            generator_type="helm", scripts=(HELM_APPLY_SCRIPT, HELM_UPGRADE_SCRIPT),
        )
    raise ConfigInvalid(f"unknown generator type '{generator_type}'", key="generatorType")


def platform_constants(generator_type: str) -> dict[str, str]:
    """API versions, plus chart versions for Helm output."""
    constants = dict(KUBERNETES_CONSTANTS)
    if generator_type == "helm":
        constants.update(HELM_CONSTANTS)
    return constants
