from json_pilot.surface.memory import InMemoryNotification, InMemoryNotifier, InMemorySurface

__all__ = [
    "InMemoryNotification",
    "InMemoryNotifier",
    "InMemorySurface",
]
