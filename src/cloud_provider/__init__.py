"""Cloud provider integration surface for the Neutron pod route reconciler.

A cluster route controller only sees the :class:`RoutesProvider` contract.
:mod:`cloud_provider.neutron` adapts :class:`pod_routes.routes.Routes` to it,
and :mod:`cloud_provider.config_extensions` wires it to oslo.config for hosts
that configure themselves the OpenStack way.
"""

from .base import RoutesProvider  # noqa: F401
from .neutron import NeutronRoutesProvider, build_neutron_provider  # noqa: F401

__all__ = [
    "NeutronRoutesProvider",
    "RoutesProvider",
    "build_neutron_provider",
]
