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

"""Public keys as seen by the signature interpreter.

Keys are read-only snapshots produced by an engine's ``lookup_key``.
"""

import functools as _functools


class SubKey (object):
    """The crypographic key portion of an OpenPGP key.

    >>> s = SubKey('B2EDBE0E771A4B8708DD16A7511AEDA64332B6E3', algorithm='RSA')
    >>> s
    <SubKey 4332B6E3>
    >>> s.keyid
    '511AEDA64332B6E3'
    >>> s.matches('511aeda64332b6e3'), s.matches('4332B6E3')
    (True, False)
    """
    def __init__(self, fingerprint=None, keyid=None, algorithm=None):
        self.fingerprint = fingerprint
        if keyid is None and fingerprint:
            keyid = fingerprint[-16:]
        self.keyid = keyid
        self.algorithm = algorithm

    def matches(self, fingerprint):
        """True if ``fingerprint`` is this subkey's fingerprint or long id."""
        if not fingerprint:
            return False
        fingerprint = fingerprint.upper()
        return fingerprint in (
            (self.fingerprint or '').upper(), (self.keyid or '').upper())

    def __str__(self):
        return '<{} {}>'.format(type(self).__name__, self.fingerprint[-8:])

    def __repr__(self):
        return str(self)


class UserID (object):
    def __init__(self, uid=None, name=None, email=None, comment=None):
        self.uid = uid
        self.name = name
        self.email = email
        self.comment = comment

    def __str__(self):
        return '<{} {}>'.format(type(self).__name__, self.name or self.uid)

    def __repr__(self):
        return str(self)


@_functools.total_ordering
class Key (object):
    """A public key with its subkeys and user IDs.

    The first subkey is the primary key and the first user ID the
    primary user ID.  Keys compare by primary fingerprint.

    >>> key = Key(
    ...     subkeys=[
    ...         SubKey('B2EDBE0E771A4B8708DD16A7511AEDA64332B6E3', algorithm='RSA'),
    ...         SubKey('0F3A2C1D9E8B7A6F5E4D3C2B1A0918272F73DE2E', algorithm='ElGamal')],
    ...     uids=[UserID('Jack <jack@hill.org>', name='Jack')])
    >>> key
    <Key 4332B6E3>
    >>> key.primary_uid
    'Jack <jack@hill.org>'
    >>> key.subkey_for('1A0918272F73DE2E')
    <SubKey 2F73DE2E>
    >>> print(key.subkey_for('DEADBEEFDEADBEEF'))
    None
    >>> other = Key([SubKey('9BF067B7F84FF7EE0C42C06328FCBC52E750652E')])
    >>> sorted([key, other])
    [<Key E750652E>, <Key 4332B6E3>]
    """
    def __init__(self, subkeys=None, uids=None):
        if subkeys is None:
            subkeys = []
        self.subkeys = subkeys
        if uids is None:
            uids = []
        self.uids = uids

    @property
    def fingerprint(self):
        if self.subkeys:
            return self.subkeys[0].fingerprint
        return None

    @property
    def primary_uid(self):
        if self.uids:
            return self.uids[0].uid
        return None

    def subkey_for(self, fingerprint):
        for subkey in self.subkeys:
            if subkey.matches(fingerprint):
                return subkey
        return None

    def __str__(self):
        return '<{} {}>'.format(
            type(self).__name__, (self.fingerprint or '')[-8:])

    def __repr__(self):
        return str(self)

    def __eq__(self, other):
        if self.fingerprint and getattr(other, 'fingerprint', None):
            return self.fingerprint == other.fingerprint
        return self is other

    def __lt__(self, other):
        other_fingerprint = getattr(other, 'fingerprint', None)
        return (self.fingerprint or '') < (other_fingerprint or '')

    def __hash__(self):
        if self.fingerprint:
            return int(self.fingerprint, 16)
        return id(self)


if __name__ == '__main__':
    import doctest
    doctest.testmod()
