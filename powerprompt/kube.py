"""The kubernetes segment: current cluster and namespace."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from .environment import home_env_name
from .segment import Segment

_EKS_ARN = re.compile(r"arn:aws:eks:[A-Za-z0-9-]+:[0-9]+:cluster/(.*)")
_KUBE_ICON = "\u2388"


@dataclass
class KubeContext:
    """One named context of a kubeconfig file."""

    name: str = ""
    cluster: str = ""
    namespace: str = ""
    user: str = ""


@dataclass
class KubeConfig:
    """The contexts of a kubeconfig file and the one in use."""

    contexts: list[KubeContext] = field(default_factory=list)
    current_context: str = ""


def _scalar(value: Any, what: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        raise ValueError(f"{what} must be a scalar")
    return str(value)


def _mapping(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a mapping")
    return value


def _context(item: Any) -> KubeContext:
    data = _mapping(item, "a context")
    details = _mapping(data.get("context"), "context")
    return KubeContext(
        name=_scalar(data.get("name"), "name"),
        cluster=_scalar(details.get("cluster"), "cluster"),
        namespace=_scalar(details.get("namespace"), "namespace"),
        user=_scalar(details.get("user"), "user"),
    )


def read_kube_config(path: str) -> KubeConfig:
    """Parse a kubeconfig file; raises OSError, yaml.YAMLError or ValueError."""
    with open(os.path.abspath(path), encoding="utf-8") as handle:
        data = _mapping(yaml.safe_load(handle), "a kubeconfig")
    contexts = data.get("contexts")
    if contexts is None:
        contexts = []
    if not isinstance(contexts, list):
        raise ValueError("contexts must be a list")
    return KubeConfig(
        contexts=[_context(item) for item in contexts],
        current_context=_scalar(data.get("current-context"), "current-context"),
    )


def shorten_cluster(
    cluster: str, shorten_gke: bool, shorten_openshift: bool, shorten_eks: bool
) -> str:
    """Shorten GKE, OpenShift and EKS cluster names as configured."""
    if shorten_gke and cluster.startswith("gke"):
        parts = cluster.split("_")
        if len(parts) > 3:
            cluster = "_".join(parts[3:])
    if shorten_openshift:
        parts = cluster.split("/")
        if len(parts) == 3:
            cluster = parts[1].split(":", 1)[0]
    if shorten_eks:
        match = _EKS_ARN.fullmatch(cluster)
        if match:
            cluster = match.group(1)
    return cluster


def _merged_config() -> KubeConfig:
    home = os.environ.get(home_env_name(), "")
    paths = os.environ.get("KUBECONFIG", "").split(":")
    paths.append(os.path.join(home, ".kube", "config"))
    merged = KubeConfig()
    for path in paths:
        try:
            config = read_kube_config(path)
        except (OSError, ValueError, yaml.YAMLError):
            continue
        merged.contexts.extend(config.contexts)
        if merged.current_context == "":
            merged.current_context = config.current_context
    return merged


def segment_kube(p: Any) -> list[Segment]:
    """The current kubernetes cluster and namespace."""
    config = _merged_config()
    cluster = namespace = ""
    for context in config.contexts:
        if context.name == config.current_context:
            cluster, namespace = context.name, context.namespace
            break

    cfg = p.cfg
    cluster = shorten_cluster(
        cluster, cfg.shorten_gke_names, cfg.shorten_openshift_names, cfg.shorten_eks_names
    )

    segments: list[Segment] = []
    if cluster != "":
        segments.append(
            Segment(
                name="kube-cluster",
                content=f"{_KUBE_ICON} {cluster}",
                foreground=p.theme.kube_cluster_fg,
                background=p.theme.kube_cluster_bg,
            )
        )
    if namespace != "":
        content = namespace if segments else f"{_KUBE_ICON} {namespace}"
        segments.append(
            Segment(
                name="kube-namespace",
                content=content,
                foreground=p.theme.kube_namespace_fg,
                background=p.theme.kube_namespace_bg,
            )
        )
    return segments