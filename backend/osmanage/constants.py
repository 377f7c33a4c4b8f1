"""
Instance directory layout and shared constants.

An instance directory is rendered by the setup tooling and looks like::

    my.instance.dir.org/
        namespace.yaml
        stack/<service>-deployment.yaml ...
        secrets/tls-letsencrypt-secret.yaml   (only after a stop)
"""

# Instance directory structure
NAMESPACE_YAML = "namespace.yaml"
STACK_DIR_NAME = "stack"
SECRETS_DIR_NAME = "secrets"
DEPLOYMENT_FILE_TEMPLATE = "{service}-deployment.yaml"
TLS_CERT_SECRET_YAML = "tls-letsencrypt-secret.yaml"

MANIFEST_SUFFIXES = (".yaml", ".yml")

# Separator stripped from the directory name to build the namespace
NAMESPACE_SEPARATOR = "."

# File permissions
SECRETS_DIR_PERM = 0o700
SECRET_FILE_PERM = 0o600

# Status printouts
ICON_READY = "✓"
ICON_NOT_READY = "✗"

# Server populated metadata that must not be sent back with an apply
SERVER_SIDE_METADATA = (
    "managedFields",
    "resourceVersion",
    "uid",
    "creationTimestamp",
    "selfLink",
    "generation",
)

NODE_PRESSURE_CONDITIONS = (
    "MemoryPressure",
    "DiskPressure",
    "PIDPressure",
    "NetworkUnavailable",
)
