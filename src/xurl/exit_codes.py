"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to one error category and is referenced by the
corresponding :class:`~xurl.exceptions.XurlError` subclass, so shell
wrappers can branch on the failure class without parsing stderr.

Example::

    $ xurl request /2/users/me
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- no usable credential
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""No credential could be resolved, or an authorization flow failed."""

EXIT_STORE_ERROR = 4
"""The credential store rejected an operation or could not be parsed."""

EXIT_API_ERROR = 5
"""The remote API answered with a structured error payload."""

EXIT_HTTP_ERROR = 6
"""A transport-level failure, or an error status with a non-JSON body."""

EXIT_IO_ERROR = 7
"""A local file or stream could not be read or written."""

EXIT_JSON_ERROR = 8
"""A payload that should have been JSON was malformed."""

EXIT_MEDIA_ERROR = 9
"""A media upload step failed or processing ended in the failed state."""

EXIT_INTERRUPTED = 130
"""The process was interrupted with Ctrl-C."""
