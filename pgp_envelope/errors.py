# Copyright (C) 2012 W. Trevor King <wking@tremily.us>
#
# This file is part of pgp-envelope.
#
# pgp-envelope is free software: you can redistribute it and/or modify it
# under the terms of the GNU General Public License as published by the Free
# Software Foundation, either version 3 of the License, or (at your option)
# any later version.
#
# pgp-envelope is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or
# FITNESS FOR A PARTICULAR PURPOSE.  See the GNU General Public License for
# more details.
#
# You should have received a copy of the GNU General Public License along with
# pgp-envelope.  If not, see <http://www.gnu.org/licenses/>.

"""Errors raised while talking to the OpenPGP engine.

Outgoing operations (sign, encrypt) raise ``EngineOperationFailed``.
Incoming operations (verify, decrypt) never raise; their failures end
up in a ``Verdict``.
"""


class Error (Exception):
    pass


class EngineError (Error):
    """A single engine call failed.

    >>> e = EngineError('decrypt', 'No secret key')
    >>> e.operation
    'decrypt'
    >>> str(e)
    'No secret key'
    """
    def __init__(self, operation, message):
        super(EngineError, self).__init__(message)
        self.operation = operation
        self.message = message


class EngineUnavailable (EngineError):
    """The engine library is missing or unusable."""


class EngineOperationFailed (Error):
    pass


class DecryptionFailed (EngineError):
    """The engine could not decrypt a message."""


class KeyUnresolvable (Error):
    def __init__(self, fingerprint, message=None):
        if message is None:
            message = 'no public key available for {}'.format(fingerprint)
        super(KeyUnresolvable, self).__init__(message)
        self.fingerprint = fingerprint


class Result (object):
    """Outcome of one engine call: a value or a classified error.

    >>> r = Result.success(b'sig')
    >>> r.ok, r.value
    (True, b'sig')
    >>> r = Result.failure(EngineError('sign', 'bad passphrase'))
    >>> r.ok
    False
    >>> r
    <Result error=EngineError('bad passphrase')>
    >>> r.unwrap()  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    pgp_envelope.errors.EngineError: bad passphrase
    """
    def __init__(self, value=None, error=None):
        self.value = value
        self.error = error

    @classmethod
    def success(cls, value):
        return cls(value=value)

    @classmethod
    def failure(cls, error):
        return cls(error=error)

    @property
    def ok(self):
        return self.error is None

    def unwrap(self):
        if self.error is not None:
            raise self.error
        return self.value

    def __repr__(self):
        if self.ok:
            return '<{} value={!r}>'.format(type(self).__name__, self.value)
        return '<{} error={}({!r})>'.format(
            type(self).__name__, type(self.error).__name__, str(self.error))


if __name__ == '__main__':
    import doctest
    doctest.testmod()
