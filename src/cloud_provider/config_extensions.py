"""oslo.config options for hosting the Neutron route provider.

Services that already load their configuration through oslo.config (the way
OpenStack agents do) register these options and build the provider straight
from ``CONF`` instead of going through the standalone agent's YAML file.
"""

from oslo_config import cfg

from pod_routes.model import NetworkingOpts, RouterOpts

from .neutron import build_neutron_provider

route_opts = [
    cfg.StrOpt('router_id',
               default=None,
               help='ID of the Neutron router carrying the pod routes. '
                    'Route management cannot be enabled without it.'),
]

networking_opts = [
    cfg.BoolOpt('ipv6_support_disabled',
                default=False,
                help='Ignore IPv6 addresses of servers when selecting '
                     'node addresses.'),
    cfg.ListOpt('public_network_name',
                default=[],
                help='Networks whose addresses are reported as ExternalIP.'),
    cfg.ListOpt('internal_network_name',
                default=[],
                help='Networks whose addresses are reported as InternalIP. '
                     'When empty, every non-public network qualifies.'),
    cfg.StrOpt('address_sort_order',
               default='',
               help='Comma or space separated CIDRs. Node addresses inside '
                    'earlier CIDRs are preferred as next hops. '
                    'Example: "10.0.0.0/8, 192.168.0.0/16"'),
]


def register_route_opts(conf=cfg.CONF):
    """Register the route and networking option groups on ``conf``.

    Each call registers fresh group objects; overrides set on one
    ``ConfigOpts`` never show up on another.
    """
    conf.register_group(cfg.OptGroup('route', title='Pod route options'))
    conf.register_opts(route_opts, group='route')
    conf.register_group(
        cfg.OptGroup('networking', title='Node address options'))
    conf.register_opts(networking_opts, group='networking')


def router_opts_from_conf(conf=cfg.CONF):
    return RouterOpts(router_id=conf.route.router_id or '')


def networking_opts_from_conf(conf=cfg.CONF):
    """Translate the ``[networking]`` group into :class:`NetworkingOpts`."""
    group = conf.networking
    return NetworkingOpts(
        ipv6_support_disabled=group.ipv6_support_disabled,
        public_network_names=tuple(group.public_network_name),
        internal_network_names=tuple(group.internal_network_name),
        address_sort_order=group.address_sort_order or '',
    )


def build_routes_provider(conf, compute, network):
    """Build a route provider from an oslo.config ``conf``.

    Raises ConfigurationError when ``[route] router_id`` is not set.
    """
    return build_neutron_provider(
        compute,
        network,
        router_opts_from_conf(conf),
        networking_opts_from_conf(conf),
    )
