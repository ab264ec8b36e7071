"""Pod-network routes on an OpenStack Neutron router.

This package keeps a cluster's per-node pod routes in sync with a Neutron
router.  For each node it maintains:

* a static route on the configured router forwarding the node's pod CIDR to
  the node's primary address; and
* an allowed-address-pair for the pod CIDR on the node's port, so Neutron's
  anti-spoofing rules let pod traffic leave the node.

The two updates are not transactional.  :class:`pod_routes.routes.Routes`
applies them in order and rolls the router back when the port update fails.

Nova and Neutron are reached through the small backend contracts in
:mod:`pod_routes.backends`, which keeps the package importable and testable
without a cloud.
"""

from .errors import (  # noqa: F401
    BackendError,
    CompensationFailure,
    ConfigurationError,
    InvalidRoute,
    MultipleResults,
    NoAddressFound,
    NotFound,
    OperationCancelled,
    PodRoutesError,
)
from .model import NetworkingOpts, Route, RouterOpts  # noqa: F401
from .routes import Routes  # noqa: F401

__all__ = [
    "BackendError",
    "CompensationFailure",
    "ConfigurationError",
    "InvalidRoute",
    "MultipleResults",
    "NetworkingOpts",
    "NoAddressFound",
    "NotFound",
    "OperationCancelled",
    "PodRoutesError",
    "Route",
    "RouterOpts",
    "Routes",
]
