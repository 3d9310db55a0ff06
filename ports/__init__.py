from .page import PageElement, HostPage
from .serializer import SerializerPort
from .kv import KeyValuePort
from .repos import GraphStorePort
from .source import AcquisitionSourcePort

__all__ = [
    "PageElement",
    "HostPage",
    "SerializerPort",
    "KeyValuePort",
    "GraphStorePort",
    "AcquisitionSourcePort",
]
