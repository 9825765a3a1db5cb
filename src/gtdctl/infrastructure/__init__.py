"""Infrastructure layer: filesystem I/O, scanning, indexing, writing.

This layer depends on domain, config models and third-party libs
(ruamel.yaml, Jinja2). It must never import from services, commands, or
output. The service layer bridges between it and the CLI.
"""
