"""Kubeconfig entries for control planes reached through a proxy.

A control plane entry is a cluster, a user and a context sharing one name.
It can be spliced into an existing kubeconfig file and made current.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import yaml

# Format of the cluster/user/context name for a control plane
KUBECONFIG_KEY_FMT = "xpstate-{}"

# Appended to the proxy path to reach the control plane's API server
K8S_RESOURCE = "k8s"

# kubeconfig files hold credentials
KUBECONFIG_MODE = 0o600

_SECTIONS = (("clusters", "cluster"), ("users", "user"), ("contexts", "context"))


def empty_kubeconfig() -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "preferences": {},
        "clusters": [],
        "users": [],
        "contexts": [],
        "current-context": "",
    }


def control_plane_key(cp_id: str) -> str:
    return KUBECONFIG_KEY_FMT.format(cp_id.replace("/", "-"))


def build_control_plane_kubeconfig(proxy_url: str, cp_id: str, token: str) -> dict[str, Any]:
    """Build a kubeconfig with one entry for a control plane.

    Args:
        proxy_url: Base URL of the proxy in front of the control planes
        cp_id: Control plane identifier, e.g. "acme/prod"
        token: Bearer token for the proxy

    Returns:
        kubeconfig document whose current context is the new entry
    """
    key = control_plane_key(cp_id)
    parts = urlsplit(proxy_url)
    path = "/".join(p for p in (parts.path.strip("/"), cp_id.strip("/"), K8S_RESOURCE) if p)
    server = urlunsplit((parts.scheme, parts.netloc, "/" + path, parts.query, parts.fragment))

    conf = empty_kubeconfig()
    conf["clusters"].append({"name": key, "cluster": {"server": server}})
    conf["users"].append({"name": key, "user": {"token": token}})
    conf["contexts"].append({"name": key, "context": {"cluster": key, "user": key}})
    conf["current-context"] = key
    return conf


def load_kubeconfig(path: str | Path) -> dict[str, Any]:
    """Load a kubeconfig file, or an empty kubeconfig if the file does not exist."""
    path = Path(path)
    if not path.exists():
        return empty_kubeconfig()
    with open(path) as f:
        conf = yaml.safe_load(f) or {}
    if not isinstance(conf, dict):
        raise ValueError(f"{path} is not a kubeconfig file")
    for section, _ in _SECTIONS:
        conf[section] = conf.get(section) or []
    return conf


def merge_kubeconfig(base: dict[str, Any], entries: dict[str, Any]) -> dict[str, Any]:
    """Merge the named entries of one kubeconfig into another.

    Entries with the same name are replaced in place, new ones appended.
    The current context of entries becomes the current context.
    """
    merged = dict(base)
    for section, _ in _SECTIONS:
        existing = list(merged.get(section) or [])
        index = {item.get("name"): i for i, item in enumerate(existing)}
        for item in entries.get(section) or []:
            if item.get("name") in index:
                existing[index[item["name"]]] = item
            else:
                index[item.get("name")] = len(existing)
                existing.append(item)
        merged[section] = existing
    if entries.get("current-context"):
        merged["current-context"] = entries["current-context"]
    return merged


def apply_control_plane_kubeconfig(conf: dict[str, Any], existing_path: str | Path) -> Path:
    """Splice a control plane kubeconfig into an existing file and make it current.

    The file is created if missing and always left with mode 0600.

    Returns:
        Path of the written file
    """
    path = Path(existing_path).expanduser()
    merged = merge_kubeconfig(load_kubeconfig(path), conf)

    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KUBECONFIG_MODE)
    with os.fdopen(fd, "w") as f:
        os.fchmod(f.fileno(), KUBECONFIG_MODE)
        yaml.safe_dump(merged, f, default_flow_style=False, sort_keys=False)
    return path
