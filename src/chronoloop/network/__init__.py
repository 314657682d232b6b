"""Reference network engine implementing the network collaborator interface."""

from chronoloop.network.reference import NetLayer, Projection, ReferenceNetwork, sigmoid_relay

__all__ = [
    "NetLayer",
    "Projection",
    "ReferenceNetwork",
    "sigmoid_relay",
]
