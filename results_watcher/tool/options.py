"""Flags and wiring shared by the commands that reconcile runs."""

import argparse
from argparse import ArgumentParser, BooleanOptionalAction
from dataclasses import dataclass
import logging
import pathlib
from typing import Any

from results_watcher.cluster import KubectlResourceClient, ResourceClient
from results_watcher.config import WatcherConfig, parse_duration
from results_watcher.exceptions import InputException
from results_watcher.reconciler import Reconciler
from results_watcher.resource import RESOURCES, TEKTON_GROUP
from results_watcher.storage import FileResultsClient, ResultsClient

_LOGGER = logging.getLogger(__name__)


def duration_arg(value: str) -> Any:
    """Argparse type for Go style durations."""
    try:
        return parse_duration(value)
    except InputException as err:
        raise argparse.ArgumentTypeError(str(err)) from err


def add_storage_flags(args: ArgumentParser) -> None:
    """Add flags selecting the results storage directory."""
    args.add_argument(
        "--storage-dir",
        help="Directory holding archived Results and Records",
        type=pathlib.Path,
        default=None,
    )


def add_reconciler_flags(args: ArgumentParser) -> None:
    """Add flags that configure how runs are reconciled."""
    args.add_argument(
        "--config",
        help="Path to a YAML configuration file",
        type=pathlib.Path,
        default=None,
    )
    args.add_argument(
        "--resource",
        "-r",
        dest="resources",
        choices=sorted(RESOURCES),
        action="append",
        default=None,
        help="Resource type to reconcile, may be repeated (default: all)",
    )
    args.add_argument(
        "--namespace",
        "-n",
        help="Only reconcile runs in this namespace",
        default=None,
    )
    args.add_argument(
        "--kube-context",
        help="The kubeconfig context to use",
        default=None,
    )
    args.add_argument(
        "--disable-annotation-update",
        action=BooleanOptionalAction,
        default=None,
        help="Archive runs without writing Result/Record annotations to them",
    )
    args.add_argument(
        "--completed-resource-grace-period",
        type=duration_arg,
        default=None,
        help=(
            "How long to keep completed, unowned runs before deleting them "
            "(e.g. 10m). Zero disables deletion, negative deletes immediately."
        ),
    )
    add_storage_flags(args)


def build_config(**kwargs: Any) -> WatcherConfig:
    """Load the configuration file and apply flag overrides."""
    config = WatcherConfig()
    if (path := kwargs.get("config")) is not None:
        try:
            content = pathlib.Path(path).read_text()
        except OSError as err:
            raise InputException(f"Unable to read config {path}: {err}") from err
        config = WatcherConfig.parse_yaml(content)
    if kwargs.get("resources"):
        config.resources = kwargs["resources"]
    if kwargs.get("namespace"):
        config.namespace = kwargs["namespace"]
    if kwargs.get("kube_context"):
        config.kube_context = kwargs["kube_context"]
    if kwargs.get("storage_dir") is not None:
        config.storage_dir = str(kwargs["storage_dir"])
    if kwargs.get("disable_annotation_update") is not None:
        config.reconciler.disable_annotation_update = kwargs[
            "disable_annotation_update"
        ]
    if kwargs.get("completed_resource_grace_period") is not None:
        config.reconciler.completed_resource_grace_period = kwargs[
            "completed_resource_grace_period"
        ]
    if kwargs.get("workers") is not None:
        config.controller.workers = kwargs["workers"]
    if kwargs.get("resync_period") is not None:
        config.controller.resync_period = kwargs["resync_period"]
    for resource in config.resources:
        if resource not in RESOURCES:
            raise InputException(
                f"Unsupported resource '{resource}', "
                f"expected one of {sorted(RESOURCES)}"
            )
    return config


def results_client(config: WatcherConfig) -> ResultsClient:
    """Return the storage client for the configured directory."""
    return FileResultsClient(pathlib.Path(config.storage_dir))


@dataclass
class Binding:
    """A resource type wired to the clients that reconcile it."""

    resource: str
    resources: ResourceClient
    reconciler: Reconciler


def build_bindings(config: WatcherConfig) -> list[Binding]:
    """Create a Reconciler per configured resource type."""
    results = results_client(config)
    bindings = []
    for resource in config.resources:
        resources = KubectlResourceClient(
            f"{resource}.{TEKTON_GROUP}", context=config.kube_context
        )
        bindings.append(
            Binding(
                resource=resource,
                resources=resources,
                reconciler=Reconciler(resources, results, config.reconciler),
            )
        )
    return bindings
