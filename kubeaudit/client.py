"""Reading supported resources from a running Kubernetes cluster."""

from __future__ import annotations

import base64
import copy
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable
from urllib.parse import quote

import requests
import yaml

from kubeaudit import k8stypes
from kubeaudit.k8stypes import Resource
from kubeaudit.options import package_logger
from kubeaudit.runtime import get_object_meta

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"
DEFAULT_TIMEOUT = 30.0


class NoReadableKubeConfigError(OSError):
    """Raised when a kubeconfig file cannot be opened."""

    def __init__(self, message: str = "unable to open kubeconfig file") -> None:
        super().__init__(message)


@dataclass
class ClientOptions:
    """Options for reading resources; an empty namespace means all namespaces."""

    namespace: str = ""


@dataclass
class RestConfig:
    """How to reach and authenticate with a Kubernetes API server."""

    host: str
    bearer_token: str | None = None
    ca_file: str | None = None
    cert_file: str | None = None
    key_file: str | None = None
    username: str | None = None
    password: str | None = None
    insecure: bool = False


class Clientset:
    """A minimal client for the Kubernetes REST API."""

    def __init__(self, config: RestConfig, timeout: float = DEFAULT_TIMEOUT) -> None:
        if not config.host:
            raise ValueError("invalid configuration: no server host was provided")
        self.config = config
        self.timeout = timeout
        self.session = requests.Session()
        if config.ca_file:
            self.session.verify = config.ca_file
        else:
            self.session.verify = not config.insecure
        if config.cert_file:
            self.session.cert = (
                (config.cert_file, config.key_file) if config.key_file else config.cert_file
            )
        if config.bearer_token:
            self.session.headers["Authorization"] = f"Bearer {config.bearer_token}"
        elif config.username is not None:
            self.session.auth = (config.username, config.password or "")

    def _url(self, path: str) -> str:
        return self.config.host.rstrip("/") + path

    def list(
        self,
        group_version: str,
        plural: str,
        namespace: str = "",
        field_selector: str = "",
    ) -> list[dict[str, Any]]:
        """Return the items of a resource list, optionally in one namespace."""
        prefix = "/apis/" if "/" in group_version else "/api/"
        path = prefix + group_version
        if namespace:
            path += "/namespaces/" + quote(namespace, safe="")
        path += "/" + plural
        params = {"fieldSelector": field_selector} if field_selector else None
        response = self.session.get(self._url(path), params=params, timeout=self.timeout)
        response.raise_for_status()
        body = response.json()
        items = body.get("items") if isinstance(body, dict) else None
        return [item for item in items or [] if isinstance(item, dict)]

    def server_version(self) -> dict[str, Any]:
        """Return the version information reported by the API server."""
        response = self.session.get(self._url("/version"), timeout=self.timeout)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError("unexpected server version response")
        return body


@dataclass
class InClusterClient:
    """Builds a configuration from the service account of the pod it runs in."""

    token_path: str = f"{SERVICE_ACCOUNT_DIR}/token"
    ca_path: str = f"{SERVICE_ACCOUNT_DIR}/ca.crt"
    environ: dict[str, str] | None = field(default=None, repr=False)

    def in_cluster_config(self) -> RestConfig:
        """Return the in-cluster configuration; raise if not inside a cluster."""
        env = os.environ if self.environ is None else self.environ
        host = env.get("KUBERNETES_SERVICE_HOST", "")
        port = env.get("KUBERNETES_SERVICE_PORT", "")
        if not host or not port:
            raise RuntimeError(
                "unable to load in-cluster configuration, KUBERNETES_SERVICE_HOST and "
                "KUBERNETES_SERVICE_PORT must be defined"
            )
        token = Path(self.token_path).read_text(encoding="utf-8").strip()
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        ca_file = self.ca_path if Path(self.ca_path).is_file() else None
        return RestConfig(host=f"https://{host}:{port}", bearer_token=token, ca_file=ca_file)


DEFAULT_CLIENT = InClusterClient()


def _resolve(path: str, base: Path) -> str:
    candidate = Path(os.path.expanduser(path))
    if not candidate.is_absolute():
        candidate = base / candidate
    return str(candidate)


def _materialize(data: str, suffix: str) -> str:
    decoded = base64.b64decode(data)
    with tempfile.NamedTemporaryFile("wb", suffix=suffix, delete=False) as handle:
        handle.write(decoded)
        return handle.name


def _named(entries: Any, name: str, key: str) -> dict[str, Any]:
    for entry in entries or []:
        if isinstance(entry, dict) and entry.get("name") == name:
            value = entry.get(key)
            return value if isinstance(value, dict) else {}
    raise ValueError(f'invalid configuration: {key} "{name}" not found')


def _config_from_kubeconfig(path: Path) -> RestConfig:
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, UnicodeDecodeError) as err:
        raise ValueError(f"invalid kubeconfig {path}: {err}") from err
    if not isinstance(document, dict):
        raise ValueError(f"invalid kubeconfig {path}: expected a mapping")
    context_name = document.get("current-context")
    if not context_name:
        raise ValueError("invalid configuration: no configuration has been provided")
    context = _named(document.get("contexts"), context_name, "context")
    cluster = _named(document.get("clusters"), context.get("cluster", ""), "cluster")
    user_name = context.get("user")
    user = _named(document.get("users"), user_name, "user") if user_name else {}

    server = cluster.get("server")
    if not server:
        raise ValueError("invalid configuration: no server found for cluster")
    base = path.parent

    ca_file = None
    if cluster.get("certificate-authority-data"):
        ca_file = _materialize(cluster["certificate-authority-data"], ".crt")
    elif cluster.get("certificate-authority"):
        ca_file = _resolve(cluster["certificate-authority"], base)

    cert_file = None
    if user.get("client-certificate-data"):
        cert_file = _materialize(user["client-certificate-data"], ".crt")
    elif user.get("client-certificate"):
        cert_file = _resolve(user["client-certificate"], base)

    key_file = None
    if user.get("client-key-data"):
        key_file = _materialize(user["client-key-data"], ".key")
    elif user.get("client-key"):
        key_file = _resolve(user["client-key"], base)

    token = user.get("token")
    if not token and user.get("tokenFile"):
        token = Path(_resolve(user["tokenFile"], base)).read_text(encoding="utf-8").strip()

    return RestConfig(
        host=str(server),
        bearer_token=token or None,
        ca_file=ca_file,
        cert_file=cert_file,
        key_file=key_file,
        username=user.get("username"),
        password=user.get("password"),
        insecure=bool(cluster.get("insecure-skip-tls-verify", False)),
    )


def _default_kubeconfig() -> Path | None:
    env_paths = os.environ.get("KUBECONFIG", "")
    for entry in env_paths.split(os.pathsep):
        if entry and Path(entry).is_file():
            return Path(entry)
    home_config = Path(os.path.expanduser("~")) / ".kube" / "config"
    return home_config if home_config.is_file() else None


def new_kube_client_local(config_path: str) -> Clientset:
    """Return a client configured from a kubeconfig file, or the default one."""
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise NoReadableKubeConfigError()
        return Clientset(_config_from_kubeconfig(path))

    default = _default_kubeconfig()
    if default is not None:
        return Clientset(_config_from_kubeconfig(default))
    try:
        return Clientset(DEFAULT_CLIENT.in_cluster_config())
    except (OSError, RuntimeError) as err:
        raise ValueError("invalid configuration: no configuration has been provided") from err


def new_kube_client_cluster(client: Any) -> Clientset:
    """Return a client configured from the cluster the process runs in."""
    config = client.in_cluster_config()
    package_logger().info("Running inside cluster, using the cluster config")
    return Clientset(config)


def is_running_in_cluster(client: Any) -> bool:
    """Return True if an in-cluster configuration can be obtained."""
    try:
        client.in_cluster_config()
    except Exception:
        return False
    return True


def _list_resources(
    clientset: Any,
    group_version: str,
    plural: str,
    namespace: str,
    factory: Callable[[], Resource],
    field_selector: str = "",
) -> list[Resource]:
    try:
        items = clientset.list(group_version, plural, namespace, field_selector)
    except (requests.RequestException, OSError, ValueError) as err:
        package_logger().error("%s", err)
        return []
    template = factory()
    resources = []
    for item in items:
        resource = copy.deepcopy(item)
        # The API omits the type information on list items, so fill it in.
        resource["apiVersion"] = template["apiVersion"]
        resource["kind"] = template["kind"]
        resources.append(resource)
    return resources


def get_daemon_sets(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return all DaemonSets."""
    return _list_resources(
        clientset, "apps/v1", "daemonsets", options.namespace, k8stypes.new_daemon_set
    )


def get_deployments(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return all Deployments."""
    return _list_resources(
        clientset, "apps/v1", "deployments", options.namespace, k8stypes.new_deployment
    )


def get_pods(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return all Pods."""
    return _list_resources(clientset, "v1", "pods", options.namespace, k8stypes.new_pod)


def get_pod_templates(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return all PodTemplates."""
    return _list_resources(
        clientset, "v1", "podtemplates", options.namespace, k8stypes.new_pod_template
    )


def get_replication_controllers(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return all ReplicationControllers."""
    return _list_resources(
        clientset,
        "v1",
        "replicationcontrollers",
        options.namespace,
        k8stypes.new_replication_controller,
    )


def get_stateful_sets(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return all StatefulSets."""
    return _list_resources(
        clientset, "apps/v1", "statefulsets", options.namespace, k8stypes.new_stateful_set
    )


def get_cron_jobs(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return all CronJobs."""
    return _list_resources(
        clientset, "batch/v1beta1", "cronjobs", options.namespace, k8stypes.new_cron_job
    )


def get_network_policies(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return all NetworkPolicies."""
    return _list_resources(
        clientset,
        "networking.k8s.io/v1",
        "networkpolicies",
        options.namespace,
        k8stypes.new_network_policy,
    )


def get_service_accounts(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return all ServiceAccounts."""
    return _list_resources(
        clientset, "v1", "serviceaccounts", options.namespace, k8stypes.new_service_account
    )


def get_namespaces(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return all Namespaces, or only the one named in the options."""
    field_selector = f"metadata.name={options.namespace}" if options.namespace else ""
    return _list_resources(
        clientset, "v1", "namespaces", "", k8stypes.new_namespace, field_selector
    )


def _exclude_generated(resources: list[Resource]) -> list[Resource]:
    """Drop resources owned by another resource (eg. pods of a deployment)."""
    return [
        resource
        for resource in resources
        if not (get_object_meta(resource) or {}).get("ownerReferences")
    ]


def get_all_resources(clientset: Any, options: ClientOptions) -> list[Resource]:
    """Return every supported resource that was not generated by another."""
    getters = (
        get_daemon_sets,
        get_deployments,
        get_pods,
        get_pod_templates,
        get_replication_controllers,
        get_stateful_sets,
        get_network_policies,
        get_cron_jobs,
        get_service_accounts,
        get_namespaces,
    )
    resources = [resource for getter in getters for resource in getter(clientset, options)]
    return _exclude_generated(resources)


def get_kubernetes_version(clientset: Any) -> dict[str, Any]:
    """Return the version information of the API server."""
    return clientset.server_version()