__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .bus import bus
from .messaging import MessageBus, MessageStore

__all__ = ["bus", "MessageBus", "MessageStore"]
