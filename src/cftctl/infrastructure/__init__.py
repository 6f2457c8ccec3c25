"""Infrastructure layer — template loading, project discovery, graph engine.

This layer depends on stdlib and third-party libs (ruamel.yaml, NetworkX).
It may import domain models, never services, commands, or output.
"""
