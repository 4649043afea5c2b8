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

"""Verdicts and the per-signature records they are built from.
"""

import collections as _collections


VALID = 'valid'
VALID_UNTRUSTED = 'valid_untrusted'
INVALID = 'invalid'
UNKNOWN = 'unknown'
STATUSES = (VALID, VALID_UNTRUSTED, INVALID, UNKNOWN)

# ordered, compare with < and >=
VALIDITY_NONE = 0
VALIDITY_UNKNOWN = 1
VALIDITY_MARGINAL = 2
VALIDITY_FULL = 3

STATUS_OK = 'ok'
STATUS_BAD_SIGNATURE = 'bad-signature'
STATUS_EXPIRED_SIGNATURE = 'expired-signature'
STATUS_EXPIRED_KEY = 'expired-key'
STATUS_REVOKED_KEY = 'revoked-key'
STATUS_NO_PUBLIC_KEY = 'no-public-key'
STATUS_ERROR = 'error'

ERROR_NONE = 'none'
ERROR_BAD_SIGNATURE = 'bad-signature'
ERROR_OTHER = 'other-error'


class Verdict (_collections.namedtuple(
        'Verdict', ['status', 'summary', 'lines'])):
    """Aggregate outcome of a verify or decrypt call.

    >>> v = Verdict(VALID, 'Good signature from Jack', ['line 1', 'line 2'])
    >>> v.lines
    ('line 1', 'line 2')
    >>> v.valid, v.trusted
    (True, True)
    >>> Verdict(VALID_UNTRUSTED, 'Good signature from Jill').trusted
    False
    >>> Verdict('maybe', 'Perhaps')
    Traceback (most recent call last):
      ...
    ValueError: unknown verdict status 'maybe'
    """
    __slots__ = ()

    def __new__(cls, status, summary, lines=()):
        if status not in STATUSES:
            raise ValueError('unknown verdict status {!r}'.format(status))
        return super(Verdict, cls).__new__(cls, status, summary, tuple(lines))

    @property
    def valid(self):
        return self.status in (VALID, VALID_UNTRUSTED)

    @property
    def trusted(self):
        return self.status == VALID

    def __str__(self):
        return '\n'.join(['[{}] {}'.format(self.status, self.summary)] +
                         list(self.lines))


def cant_find_engine(name):
    return "Can't find the {}.".format(name)


def unknown_status(lines=()):
    """
    >>> unknown_status([cant_find_engine('gpg (GPGME) Python bindings')])  # doctest: +NORMALIZE_WHITESPACE
    Verdict(status='unknown',
            summary='Unable to determine validity of cryptographic signature',
            lines=("Can't find the gpg (GPGME) Python bindings.",))
    """
    return Verdict(
        UNKNOWN, 'Unable to determine validity of cryptographic signature',
        lines)


def decryption_failed(message):
    return Verdict(INVALID, 'This message could not be decrypted', [message])


def decrypted_for_display():
    return Verdict(VALID, 'This message has been decrypted for display')


class SignatureRecord (_collections.namedtuple(
        'SignatureRecord',
        ['fingerprint', 'timestamp', 'validity', 'status'])):
    """One signature as reported by the engine.

    ``timestamp`` is in seconds since the epoch.  User IDs come from the
    key, looked up separately.

    >>> sig = SignatureRecord('4332B6E3', 1332358207, VALIDITY_FULL)
    >>> sig.status
    'ok'
    >>> SignatureRecord._fields
    ('fingerprint', 'timestamp', 'validity', 'status')
    >>> sig.trusted, sig.error_class()
    (True, 'none')
    >>> sig._replace(validity=VALIDITY_UNKNOWN).trusted
    False
    >>> sig._replace(status=STATUS_BAD_SIGNATURE).error_class()
    'bad-signature'
    >>> sig._replace(status=STATUS_REVOKED_KEY).error_class()
    'other-error'
    """
    __slots__ = ()

    def __new__(cls, fingerprint, timestamp, validity=VALIDITY_UNKNOWN,
                status=STATUS_OK):
        return super(SignatureRecord, cls).__new__(
            cls, fingerprint, timestamp, validity, status)

    @property
    def trusted(self):
        return self.validity >= VALIDITY_MARGINAL

    def error_class(self):
        if self.status == STATUS_OK:
            return ERROR_NONE
        if self.status == STATUS_BAD_SIGNATURE:
            return ERROR_BAD_SIGNATURE
        return ERROR_OTHER


if __name__ == '__main__':
    import doctest
    doctest.testmod()
