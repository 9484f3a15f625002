"""
Application records and prompt answers shared by the generator tests.
"""

from typing import Any

GATEWAY = {
    "baseName": "gateway",
    "applicationType": "gateway",
    "buildTool": "maven",
    "prodDatabaseType": "postgresql",
    "serviceDiscoveryType": "eureka",
    "authenticationType": "jwt",
    "serverPort": 8080,
}

STORE = {
    "baseName": "store",
    "applicationType": "microservice",
    "buildTool": "gradle",
    "prodDatabaseType": "mongodb",
    "messageBroker": "kafka",
    "serviceDiscoveryType": "eureka",
    "serverPort": 8081,
}

FIRST_RUN_ANSWERS: dict[str, Any] = {
    "directoryPath": "../",
    "appsFolders": ["gateway", "store"],
    "generatorType": "k8s",
    "clusteredDbApps": ["store"],
    "adminPassword": "s3cret",
    "kubernetesNamespace": "demo",
    "dockerRepositoryName": "myrepo",
    "dockerPushCommand": "docker push",
}
