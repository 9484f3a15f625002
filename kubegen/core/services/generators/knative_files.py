"""
Knative manifest generation — context → list of GeneratedFile.

Output layout (k8s):
    namespace.yml                      (non-default namespace only)
    registry-knative/jwt-secret.yml
    messagebroker-knative/kafka.yml    (any app uses Kafka)
    knative-config/config-domain.yml   (ingress domain set)
    <app>-knative/service.yml
    <app>-knative/<app>-<db>.yml       (apps with a database)
    <app>-knative/servicemonitor.yml   (prometheus monitoring)
    kubectl-knative-apply.sh
    README.md

Output layout (helm):
    csvc-knative/{Chart.yaml,values.yaml,requirements.yaml,templates/jwt-secret.yml}
    <app>-knative/{Chart.yaml,values.yaml,requirements.yaml,templates/service.yml}
    helm-knative-apply.sh
    helm-knative-upgrade.sh
    README.md

The script set always matches ``ctx.script_selection``.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import yaml

from kubegen.core.errors import InternalFault
from kubegen.core.models.context import GenerationContext
from kubegen.core.models.target import GenerationTarget
from kubegen.core.models.template import GeneratedFile
from kubegen.core.services.derive import (
    HELM_APPLY_SCRIPT,
    HELM_UPGRADE_SCRIPT,
    KUBECTL_APPLY_SCRIPT,
)

logger = logging.getLogger(__name__)

DOCKER_CONTAINERS = {
    "postgresql": "postgres:16.2",
    "mysql": "mysql:8.3.0",
    "mariadb": "mariadb:11.2.2",
    "mongodb": "mongo:7.0.5",
    "cassandra": "cassandra:4.1.4",
    "couchbase": "couchbase/server:7.2.4",
    "neo4j": "neo4j:5.16.0",
    "kafka": "confluentinc/cp-kafka:7.6.0",
}

_DB_PORTS = {
    "postgresql": 5432,
    "mysql": 3306,
    "mariadb": 3306,
    "mongodb": 27017,
    "cassandra": 9042,
    "couchbase": 8091,
    "neo4j": 7687,
}

# Helm chart dependency per database: (chart, repository, version constant)
_DB_CHARTS = {
    "postgresql": ("postgresql", "https://charts.bitnami.com/bitnami", "HELM_POSTGRESQL"),
    "mysql": ("mysql", "https://charts.bitnami.com/bitnami", "HELM_MYSQL"),
    "mariadb": ("mariadb", "https://charts.bitnami.com/bitnami", "HELM_MARIADB"),
    "mongodb": ("mongodb-replicaset", "https://charts.helm.sh/stable", "HELM_MONGODB_REPLICASET"),
    "couchbase": ("couchbase-operator", "https://couchbase-partners.github.io/helm-charts/", "HELM_COUCHBASE_OPERATOR"),
}


def _dump(*documents: dict[str, Any]) -> str:
    return yaml.safe_dump_all(documents, default_flow_style=False, sort_keys=False)


def _app_dir(app: GenerationTarget) -> str:
    return f"{app.get('lowercaseBaseName', app.name)}-knative"


def _namespace(ctx: GenerationContext) -> str:
    return ctx.deployment.get("kubernetesNamespace", "default")


def _image(ctx: GenerationContext, name: str) -> str:
    return ctx.constants.get("dockerContainers", DOCKER_CONTAINERS).get(name, DOCKER_CONTAINERS[name])


def _jwt_secret_b64(ctx: GenerationContext) -> str:
    secret = ctx.deployment.config.get("jwtSecretKey", "")
    return base64.b64encode(str(secret).encode()).decode()


# ── Manifests (k8s) ─────────────────────────────────────────────────


def knative_service(ctx: GenerationContext, app: GenerationTarget) -> dict[str, Any]:
    """Knative Service for one application."""
    name = app.get("lowercaseBaseName", app.name)
    env = [
        {"name": "SPRING_PROFILES_ACTIVE", "value": "prod"},
        {"name": "JAVA_OPTS", "value": "-Xmx256m -Xms256m"},
        {
            "name": "JHIPSTER_SECURITY_AUTHENTICATION_JWT_BASE64_SECRET",
            "valueFrom": {"secretKeyRef": {"name": "jwt-secret", "key": "secret"}},
        },
    ]
    if app.get("messageBrokerKafka"):
        env.append({"name": "SPRING_KAFKA_BOOTSTRAP_SERVERS", "value": "jhipster-kafka:9092"})
    db = app.get("prodDatabaseType", "no")
    if db in _DB_PORTS:
        port = _DB_PORTS[db]
        env.append({"name": "DATABASE_HOST", "value": f"{name}-{db}"})
        env.append({"name": "DATABASE_PORT", "value": str(port)})

    return {
        "apiVersion": ctx.constants.get("KNATIVE_SERVING_API_VERSION", "serving.knative.dev/v1"),
        "kind": "Service",
        "metadata": {"name": name, "namespace": _namespace(ctx)},
        "spec": {
            "template": {
                "spec": {
                    "containers": [{
                        "image": app.get("targetImageName", name),
                        "ports": [{"containerPort": app.get("serverPort", 8080)}],
                        "env": env,
                        "resources": {
                            "requests": {"memory": "512Mi", "cpu": "500m"},
                            "limits": {"memory": "1Gi", "cpu": "1"},
                        },
                        "readinessProbe": {
                            "httpGet": {"path": "/management/health/readiness"},
                            "initialDelaySeconds": 20,
                        },
                    }],
                },
            },
        },
    }


def database_manifests(ctx: GenerationContext, app: GenerationTarget) -> str | None:
    """StatefulSet + Service for an app's database, ``dbPeerCount`` replicas."""
    db = app.get("prodDatabaseType", "no")
    if db not in _DB_PORTS:
        return None
    image, port = _image(ctx, db), _DB_PORTS[db]
    name = f"{app.get('lowercaseBaseName', app.name)}-{db}"
    namespace = _namespace(ctx)
    labels = {"app": name}
    statefulset = {
        "apiVersion": ctx.constants.get("KUBERNETES_STATEFULSET_API_VERSION", "apps/v1"),
        "kind": "StatefulSet",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "serviceName": name,
            "replicas": app.get("dbPeerCount", 1),
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": labels},
                "spec": {"containers": [{
                    "name": db,
                    "image": image,
                    "ports": [{"containerPort": port}],
                }]},
            },
        },
    }
    service = {
        "apiVersion": ctx.constants.get("KUBERNETES_CORE_API_VERSION", "v1"),
        "kind": "Service",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"selector": labels, "ports": [{"port": port}], "clusterIP": "None"},
    }
    return _dump(statefulset, service)


def kafka_manifests(ctx: GenerationContext) -> str:
    namespace = _namespace(ctx)
    labels = {"app": "jhipster-kafka"}
    statefulset = {
        "apiVersion": ctx.constants.get("KUBERNETES_STATEFULSET_API_VERSION", "apps/v1"),
        "kind": "StatefulSet",
        "metadata": {"name": "jhipster-kafka", "namespace": namespace},
        "spec": {
            "serviceName": "jhipster-kafka",
            "replicas": 1,
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": labels},
                "spec": {"containers": [{
                    "name": "kafka",
                    "image": _image(ctx, "kafka"),
                    "ports": [{"containerPort": 9092}],
                }]},
            },
        },
    }
    service = {
        "apiVersion": ctx.constants.get("KUBERNETES_CORE_API_VERSION", "v1"),
        "kind": "Service",
        "metadata": {"name": "jhipster-kafka", "namespace": namespace},
        "spec": {"selector": labels, "ports": [{"port": 9092}]},
    }
    return _dump(statefulset, service)


def _k8s_files(ctx: GenerationContext) -> list[GeneratedFile]:
    files: list[GeneratedFile] = []
    namespace = _namespace(ctx)
    applied: list[str] = []

    if namespace != "default":
        files.append(GeneratedFile(
            path="namespace.yml",
            content=_dump({
                "apiVersion": ctx.constants.get("KUBERNETES_CORE_API_VERSION", "v1"),
                "kind": "Namespace",
                "metadata": {"name": namespace, "labels": {"istio-injection": "enabled"}},
            }),
            reason=f"namespace {namespace}",
        ))
        applied.append("namespace.yml")

    files.append(GeneratedFile(
        path="registry-knative/jwt-secret.yml",
        content=_dump({
            "apiVersion": ctx.constants.get("KUBERNETES_CORE_API_VERSION", "v1"),
            "kind": "Secret",
            "metadata": {"name": "jwt-secret", "namespace": namespace},
            "type": "Opaque",
            "data": {"secret": _jwt_secret_b64(ctx)},
        }),
        reason="JWT signing secret",
    ))
    applied.append("registry-knative/")

    if ctx.flags.use_kafka:
        files.append(GeneratedFile(
            path="messagebroker-knative/kafka.yml", content=kafka_manifests(ctx), reason="Kafka broker",
        ))
        applied.append("messagebroker-knative/")

    domain = ctx.deployment.config.get("ingressDomain", "")
    if domain:
        files.append(GeneratedFile(
            path="knative-config/config-domain.yml",
            content=_dump({
                "apiVersion": ctx.constants.get("KUBERNETES_CORE_API_VERSION", "v1"),
                "kind": "ConfigMap",
                "metadata": {"name": "config-domain", "namespace": "knative-serving"},
                "data": {domain: ""},
            }),
            reason=f"Knative domain {domain}",
        ))
        applied.append("knative-config/")

    for app in ctx.apps:
        folder = _app_dir(app)
        files.append(GeneratedFile(
            path=f"{folder}/service.yml", content=_dump(knative_service(ctx, app)),
            reason=f"Knative service {app.name}",
        ))
        db = database_manifests(ctx, app)
        if db is not None:
            files.append(GeneratedFile(
                path=f"{folder}/{app.get('lowercaseBaseName', app.name)}-{app.get('prodDatabaseType')}.yml",
                content=db,
                reason=f"{app.get('prodDatabaseType')} for {app.name}",
            ))
        if ctx.flags.monitoring == "prometheus":
            files.append(GeneratedFile(
                path=f"{folder}/servicemonitor.yml",
                content=_dump({
                    "apiVersion": "monitoring.coreos.com/v1",
                    "kind": "ServiceMonitor",
                    "metadata": {"name": app.get("lowercaseBaseName", app.name), "namespace": namespace},
                    "spec": {
                        "selector": {"matchLabels": {"serving.knative.dev/service": app.get("lowercaseBaseName", app.name)}},
                        "endpoints": [{"path": "/management/prometheus", "port": "http"}],
                    },
                }),
                reason=f"Prometheus scraping for {app.name}",
            ))
        applied.append(f"{folder}/")

    lines = [
        "#!/bin/bash",
        "# Files are ordered so that namespaces and shared resources exist before the services.",
        f"# Usage: bash {KUBECTL_APPLY_SCRIPT}",
        "",
        *(f"kubectl apply -f {item}" for item in applied),
        "",
    ]
    files.append(GeneratedFile(
        path=KUBECTL_APPLY_SCRIPT, content="\n".join(lines), executable=True, reason="kubectl apply script",
    ))
    return files


# ── Charts (helm) ───────────────────────────────────────────────────

_SERVICE_TEMPLATE = """\
apiVersion: serving.knative.dev/v1
kind: Service
metadata:
  name: {{ .Values.name }}
  namespace: {{ .Release.Namespace }}
spec:
  template:
    spec:
      containers:
        - image: {{ .Values.image.repository }}:{{ .Values.image.tag }}
          ports:
            - containerPort: {{ .Values.service.port }}
          env:
            - name: SPRING_PROFILES_ACTIVE
              value: prod
            - name: JHIPSTER_SECURITY_AUTHENTICATION_JWT_BASE64_SECRET
              valueFrom:
                secretKeyRef:
                  name: jwt-secret
                  key: secret
"""

_JWT_SECRET_TEMPLATE = """\
apiVersion: v1
kind: Secret
metadata:
  name: jwt-secret
  namespace: {{ .Release.Namespace }}
type: Opaque
data:
  secret: {{ .Values.jwt.secret }}
"""


def _chart(name: str, description: str) -> str:
    return _dump({
        "apiVersion": "v2",
        "name": name,
        "description": description,
        "type": "application",
        "version": "0.1.0",
        "appVersion": "1.0.0",
    })


def _split_image(image: str) -> tuple[str, str]:
    """'repo:tag' → (repo, tag); no tag → 'latest'."""
    last = image.rsplit("/", 1)[-1]
    if ":" in last:
        repo, tag = image.rsplit(":", 1)
        return repo, tag
    return image, "latest"


def _helm_files(ctx: GenerationContext) -> list[GeneratedFile]:
    files: list[GeneratedFile] = []
    namespace = _namespace(ctx)

    csvc_requirements: list[dict[str, Any]] = []
    if ctx.flags.use_kafka:
        csvc_requirements.append({
            "name": "kafka",
            "version": ctx.constants.get("HELM_KAFKA", ""),
            "repository": "https://charts.bitnami.com/bitnami",
            "condition": "kafka.enabled",
        })
    if ctx.flags.monitoring == "prometheus":
        csvc_requirements.append({
            "name": "prometheus",
            "version": ctx.constants.get("HELM_PROMETHEUS", ""),
            "repository": "https://prometheus-community.github.io/helm-charts",
        })
    files.extend([
        GeneratedFile(path="csvc-knative/Chart.yaml", content=_chart("csvc-knative", "Common services")),
        GeneratedFile(
            path="csvc-knative/values.yaml",
            content=_dump({
                "jwt": {"secret": _jwt_secret_b64(ctx)},
                "kafka": {"enabled": ctx.flags.use_kafka},
            }),
        ),
        GeneratedFile(
            path="csvc-knative/requirements.yaml", content=_dump({"dependencies": csvc_requirements}),
        ),
        GeneratedFile(path="csvc-knative/templates/jwt-secret.yml", content=_JWT_SECRET_TEMPLATE),
    ])

    for app in ctx.apps:
        folder = _app_dir(app)
        repo, tag = _split_image(app.get("targetImageName", app.name))
        requirements: list[dict[str, Any]] = []
        db = app.get("prodDatabaseType", "no")
        if db in _DB_CHARTS:
            chart, repository, constant = _DB_CHARTS[db]
            requirements.append({
                "name": chart,
                "version": ctx.constants.get(constant, ""),
                "repository": repository,
                "condition": f"{chart}.enabled",
            })
        values: dict[str, Any] = {
            "name": app.get("lowercaseBaseName", app.name),
            "image": {"repository": repo, "tag": tag},
            "service": {"port": app.get("serverPort", 8080)},
        }
        if db in _DB_CHARTS:
            values[_DB_CHARTS[db][0]] = {"enabled": True, "replicaCount": app.get("dbPeerCount", 1)}

        files.extend([
            GeneratedFile(path=f"{folder}/Chart.yaml", content=_chart(folder, f"Knative chart for {app.name}")),
            GeneratedFile(path=f"{folder}/values.yaml", content=_dump(values)),
            GeneratedFile(path=f"{folder}/requirements.yaml", content=_dump({"dependencies": requirements})),
            GeneratedFile(path=f"{folder}/templates/service.yml", content=_SERVICE_TEMPLATE),
        ])

    charts = ["csvc-knative", *(_app_dir(app) for app in ctx.apps)]
    ns_flag = f" --namespace {namespace}" if namespace != "default" else ""

    apply_lines = ["#!/bin/bash", f"# Usage: bash {HELM_APPLY_SCRIPT}", ""]
    upgrade_lines = ["#!/bin/bash", f"# Usage: bash {HELM_UPGRADE_SCRIPT}", ""]
    if namespace != "default":
        apply_lines.append(f"kubectl create namespace {namespace} --dry-run=client -o yaml | kubectl apply -f -")
    for chart in charts:
        apply_lines.append(f"helm dependency update ./{chart}")
        apply_lines.append(f"helm install {chart} ./{chart}{ns_flag}")
        upgrade_lines.append(f"helm dependency update ./{chart}")
        upgrade_lines.append(f"helm upgrade --install {chart} ./{chart}{ns_flag}")
    apply_lines.append("")
    upgrade_lines.append("")

    files.append(GeneratedFile(
        path=HELM_APPLY_SCRIPT, content="\n".join(apply_lines), executable=True, reason="helm install script",
    ))
    files.append(GeneratedFile(
        path=HELM_UPGRADE_SCRIPT, content="\n".join(upgrade_lines), executable=True, reason="helm upgrade script",
    ))
    return files


def _readme(ctx: GenerationContext) -> GeneratedFile:
    scripts = ctx.script_selection.scripts if ctx.script_selection else ()
    lines = [
        "# Knative deployment",
        "",
        f"Generated for: {', '.join(app.name for app in ctx.apps) or '(no applications)'}",
        f"Namespace: {_namespace(ctx)}",
        "",
        "## Deploy",
        "",
        *(f"    bash {script}" for script in scripts),
        "",
    ]
    return GeneratedFile(path="README.md", content="\n".join(lines), reason="usage notes")


def generate_files(ctx: GenerationContext) -> list[GeneratedFile]:
    """All files for the context's platform type."""
    selection = ctx.script_selection
    if selection is None:
        raise InternalFault("no script selection; the Preparing phase did not run")

    files = _helm_files(ctx) if selection.generator_type == "helm" else _k8s_files(ctx)
    files.append(_readme(ctx))

    scripts = {f.path for f in files if f.executable}
    if scripts != set(selection.scripts):
        raise InternalFault(f"generated scripts {sorted(scripts)} do not match {list(selection.scripts)}")

    logger.debug("Prepared %d files (%s)", len(files), selection.generator_type)
    return files
