"""Entry point for the standalone pod routes agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

from cloud_provider import RoutesProvider, build_neutron_provider
from pod_routes.backends.memory import InMemoryCloud, build_memory_backends
from pod_routes.errors import PodRoutesError
from pod_routes.model import Route

from .config import AgentConfig, BackendConfig, load_config
from .watchers import FileRouteWatcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _build_backends(config: BackendConfig):
    if config.type == "memory":
        cloud = InMemoryCloud()
        for node in config.nodes:
            cloud.add_node(node.name, node.address, port_id=node.port_id)
        return cloud, build_memory_backends(cloud)

    from pod_routes.backends.openstack import OpenStackCompute, OpenStackNetwork, connect

    conn = connect(config.cloud)
    return None, (OpenStackCompute(conn), OpenStackNetwork(conn))


def build_provider(config: AgentConfig) -> RoutesProvider:
    cloud, (compute, network) = _build_backends(config.backend)
    if cloud is not None:
        cloud.add_router(config.router.router_id, config.backend.routes)
    return build_neutron_provider(compute, network, config.router, config.networking)


def _cmd_list(provider: RoutesProvider, config: AgentConfig, args) -> int:
    for route in provider.list_routes(config.cluster_name):
        marker = " blackhole" if route.blackhole else ""
        print(f"{route.destination_cidr}\t{route.target_node}{marker}")
    return 0


def _cmd_create(provider: RoutesProvider, config: AgentConfig, args) -> int:
    route = Route(destination_cidr=args.cidr, target_node=args.node)
    provider.create_route(config.cluster_name, args.cidr, route)
    return 0


def _cmd_delete(provider: RoutesProvider, config: AgentConfig, args) -> int:
    route = Route(destination_cidr=args.cidr, target_node=args.node, blackhole=args.blackhole)
    provider.delete_route(config.cluster_name, route)
    return 0


def _cmd_run(provider: RoutesProvider, config: AgentConfig, args) -> int:
    stop_event = Event()

    watchers = []
    for watcher_cfg in config.watchers:
        if watcher_cfg.type == "file":
            watcher = FileRouteWatcher(
                provider=provider,
                cluster_name=config.cluster_name,
                path=watcher_cfg.path,
                interval=watcher_cfg.interval,
                stop_event=stop_event,
                cluster_cidrs=config.cluster_cidrs,
            )
        else:
            raise ValueError(f"unsupported watcher type '{watcher_cfg.type}'")
        # Perform an initial poll so we react immediately
        try:
            watcher.poll()
        except Exception:  # pragma: no cover - logged inside watcher
            LOG.exception("initial poll failed for watcher %s", watcher_cfg.path)
        watcher.start()
        watchers.append(watcher)

    if not watchers:
        LOG.warning("no watchers configured; agent will idle")

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    for watcher in watchers:
        watcher.join()

    LOG.info("pod routes agent stopped")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage pod routes on a Neutron router")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/pod-routes/agent.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List routes on the router")
    list_cmd.set_defaults(handler=_cmd_list)

    create_cmd = commands.add_parser("create", help="Create a route to a node")
    create_cmd.add_argument("cidr", help="Pod CIDR of the node")
    create_cmd.add_argument("node", help="Target node name")
    create_cmd.set_defaults(handler=_cmd_create)

    delete_cmd = commands.add_parser("delete", help="Delete a route")
    delete_cmd.add_argument("cidr", help="Pod CIDR of the node")
    delete_cmd.add_argument("node", help="Target node name, or next hop for blackholes")
    delete_cmd.add_argument(
        "--blackhole",
        action="store_true",
        help="Treat NODE as the raw next hop of an orphaned route",
    )
    delete_cmd.set_defaults(handler=_cmd_delete)

    run_cmd = commands.add_parser("run", help="Reconcile continuously from watchers")
    run_cmd.set_defaults(handler=_cmd_run)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    config = load_config(args.config)

    try:
        provider = build_provider(config)
        return args.handler(provider, config, args)
    except PodRoutesError as exc:
        LOG.error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
