"""Numeric process exit codes used by the ``wxapi`` command line.

Each constant maps to an error category and is referenced by the
corresponding :class:`~wxapi.exceptions.WxAPIError` subclass, so shell
scripts can branch on the failure class without parsing stderr.

Example::

    $ wxapi token fetch
    $ echo $?
    3   # EXIT_CREDENTIAL_UNAVAILABLE -- no usable access token
"""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CREDENTIAL_UNAVAILABLE = 3
"""No valid access token could be produced."""

EXIT_API_ERROR = 5
"""The remote API answered with an error code or an undecodable body."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error or unexpected HTTP status occurred."""

EXIT_EXTENSION_ERROR = 10
"""An extension failed to load or collided with an existing method."""
