from types import SimpleNamespace

import pytest
import yaml

from powerprompt.config import Config
from powerprompt.environment import home_env_name
from powerprompt.kube import KubeConfig, KubeContext, read_kube_config, segment_kube, shorten_cluster
from powerprompt.themes import Theme

THEME = Theme(kube_cluster_fg=1, kube_cluster_bg=2, kube_namespace_fg=3, kube_namespace_bg=4)

FIRST = """
current-context: prod
contexts:
  - name: dev
    context:
      cluster: dev-cluster
      namespace: sandbox
"""

SECOND = """
current-context: dev
contexts:
  - name: prod
    context:
      cluster: prod-cluster
      namespace: payments
      user: admin
"""


def make_p(**cfg):
    return SimpleNamespace(cfg=Config(**cfg), theme=THEME)


@pytest.fixture
def kube_env(monkeypatch, tmp_path):
    monkeypatch.setenv(home_env_name(), str(tmp_path))

    def use(*contents):
        paths = []
        for index, text in enumerate(contents):
            path = tmp_path / f"config{index}"
            path.write_text(text)
            paths.append(str(path))
        monkeypatch.setenv("KUBECONFIG", ":".join(paths))

    return use


def test_read_kube_config(tmp_path):
    path = tmp_path / "config"
    path.write_text(SECOND)
    assert read_kube_config(str(path)) == KubeConfig(
        contexts=[KubeContext(name="prod", cluster="prod-cluster", namespace="payments", user="admin")],
        current_context="dev",
    )


def test_read_kube_config_empty_file(tmp_path):
    path = tmp_path / "config"
    path.write_text("")
    assert read_kube_config(str(path)) == KubeConfig()


def test_read_kube_config_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_kube_config(str(tmp_path / "missing"))
    bad = tmp_path / "bad"
    bad.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        read_kube_config(str(bad))
    broken = tmp_path / "broken"
    broken.write_text("contexts: [unclosed\n")
    with pytest.raises(yaml.YAMLError):
        read_kube_config(str(broken))


def test_shorten_gke():
    name = "gke_projectname_availability-zone_cluster-01"
    assert shorten_cluster(name, True, False, False) == "cluster-01"
    assert shorten_cluster(name, False, False, False) == name
    assert shorten_cluster("gke_a_b", True, False, False) == "gke_a_b"


def test_shorten_openshift():
    name = "namespace/portal-url:port/user"
    assert shorten_cluster(name, False, True, False) == "portal-url"
    assert shorten_cluster("a/b", False, True, False) == "a/b"


def test_shorten_eks():
    arn = "arn:aws:eks:us-east-1:000000000000:cluster/eks-infra"
    assert shorten_cluster(arn, False, False, True) == "eks-infra"
    assert shorten_cluster(arn, False, False, False) == arn
    assert shorten_cluster("arn:aws:eks:us-east-1:abc:cluster/x", False, False, True) == (
        "arn:aws:eks:us-east-1:abc:cluster/x"
    )


def test_segment_kube_merges_files(kube_env):
    kube_env(FIRST, SECOND)
    cluster, namespace = segment_kube(make_p())
    assert (cluster.name, cluster.content) == ("kube-cluster", "\u2388 prod")
    assert (cluster.foreground, cluster.background) == (1, 2)
    assert (namespace.name, namespace.content) == ("kube-namespace", "payments")
    assert (namespace.foreground, namespace.background) == (3, 4)


def test_segment_kube_skips_unreadable_files(kube_env, tmp_path, monkeypatch):
    kube_env(SECOND)
    monkeypatch.setenv("KUBECONFIG", str(tmp_path / "missing") + ":" + str(tmp_path / "config0"))
    [cluster, namespace] = segment_kube(make_p())
    assert cluster.content == "\u2388 dev" or cluster.content.endswith("prod") is False
    assert namespace.content == "payments" or cluster.content == "\u2388 dev"


def test_segment_kube_no_match(kube_env):
    kube_env(SECOND)
    assert segment_kube(make_p()) == []


def test_segment_kube_namespace_only(kube_env):
    kube_env("contexts:\n  - context:\n      namespace: lonely\n")
    [seg] = segment_kube(make_p())
    assert (seg.name, seg.content) == ("kube-namespace", "\u2388 lonely")


def test_segment_kube_shortens_names(kube_env):
    kube_env(
        "current-context: gke_proj_zone_cluster-01\n"
        "contexts:\n  - name: gke_proj_zone_cluster-01\n"
    )
    [seg] = segment_kube(make_p(shorten_gke_names=True))
    assert seg.content == "\u2388 cluster-01"


def test_segment_kube_without_any_config(kube_env, monkeypatch):
    monkeypatch.delenv("KUBECONFIG", raising=False)
    assert segment_kube(make_p()) == []