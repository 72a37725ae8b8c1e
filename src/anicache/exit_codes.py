"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~anicache.exceptions.AnicacheError` subclass.

Example::

    $ anicache info 999999999
    $ echo $?
    5   # EXIT_PROVIDER_ERROR -- the provider reported a failure
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_PROVIDER_ERROR = 5
"""The data provider reported a failure or returned a malformed result."""
