"""Registration pipeline and its CLI.

- `definition`: placeholder resolution, the typed workflow model and graph checks
- `sync`: registration state, diffing and the create/update/unchanged decision
- `arke`: the HTTP client used for the remote side
"""
