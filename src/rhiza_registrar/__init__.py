"""Rhiza registrar.

Registers declarative rhiza workflow definitions with Arke:
- `$VAR` placeholders resolved from the environment and `.env`
- step-graph reference checks before anything touches the network
- create / update / unchanged decided against local per-network state
- dry runs that report field-level changes without applying them
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
