# Copyright (C) 2014 Johannes Schlatow <johannes.schlatow@googlemail.com>
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

"""Turn the signatures from one verify or decrypt call into a ``Verdict``.

A bad signature anywhere makes the verdict invalid; any other error
makes it unknown.  Otherwise it is valid, and trusted only if every
signing key is at least marginally valid.  The summary always comes
from the first signature.
"""

import re as _re
import time as _time

from . import LOG as _LOG
from . import notice as _notice
from .errors import Error as _Error
from .errors import KeyUnresolvable as _KeyUnresolvable
from .hooks import CryptoHooks as _CryptoHooks


TIME_FORMAT = '%a %d %b %Y %H:%M:%S %Z'
UNTRUSTED_WARNING = [
    'WARNING: This key is not certified with a trusted signature!',
    'There is no indication that the signature belongs to the owner',
    ]
NOT_SIGNED = "message wasn't signed"

_KEYID = _re.compile(r'((?:from|key) )[0-9A-F]{16} ')

_DESCRIPTIONS = {
    _notice.STATUS_OK: 'Good signature from {}',
    _notice.STATUS_BAD_SIGNATURE: 'Bad signature from {}',
    _notice.STATUS_EXPIRED_SIGNATURE: 'Expired signature from {}',
    _notice.STATUS_EXPIRED_KEY: 'Signature made from expired key {}',
    _notice.STATUS_REVOKED_KEY: 'Signature made from revoked key {}',
    _notice.STATUS_NO_PUBLIC_KEY: 'No public key for {}',
    }


def describe_signature(signature, key=None):
    """One line, in the engine's words, about ``signature``.

    >>> from pgp_envelope.key import Key, SubKey, UserID
    >>> key = Key([SubKey('B2EDBE0E771A4B8708DD16A7511AEDA64332B6E3')],
    ...           [UserID('Jack <jack@hill.org>')])
    >>> sig = _notice.SignatureRecord(key.fingerprint, 0)
    >>> describe_signature(sig, key)
    'Good signature from 511AEDA64332B6E3 Jack <jack@hill.org>'
    >>> describe_signature(sig._replace(status=_notice.STATUS_ERROR))
    'Signature error from B2EDBE0E771A4B8708DD16A7511AEDA64332B6E3'
    """
    if key is not None and key.subkeys:
        source = '{} {}'.format(key.subkeys[0].keyid, key.primary_uid or '')
    else:
        source = signature.fingerprint
    template = _DESCRIPTIONS.get(signature.status, 'Signature error from {}')
    return template.format(source).rstrip()

def simplify_sig_line(line):
    """Remove the hex key id after 'from ' or 'key '.

    >>> simplify_sig_line('Good signature from 511AEDA64332B6E3 Jack <jack@hill.org>')
    'Good signature from Jack <jack@hill.org>'
    """
    return _KEYID.sub(r'\1', line, count=1)

def key_type(key, fingerprint):
    """
    >>> from pgp_envelope.key import Key, SubKey
    >>> key = Key([SubKey('B2EDBE0E771A4B8708DD16A7511AEDA64332B6E3', algorithm='RSA')])
    >>> key_type(key, '511AEDA64332B6E3')
    'RSA '
    >>> key_type(key, 'DEADBEEF')
    ''
    >>> key_type(None, 'DEADBEEF')
    ''
    """
    if key is None:
        return ''
    subkey = key.subkey_for(fingerprint)
    if subkey is None or not subkey.algorithm:
        return ''
    return subkey.algorithm + ' '

def _time_line(signature, key):
    made = _time.strftime(TIME_FORMAT, _time.localtime(signature.timestamp))
    return 'Signature made {} using {}key ID {}'.format(
        made, key_type(key, signature.fingerprint),
        signature.fingerprint[-8:])

def signature_output_lines(signature, key, hooks=None):
    """Return ``(lines, trusted)`` for one signature.

    ``key`` is None when the signing key could not be found; such a
    signature is never trusted.
    """
    if hooks is None:
        hooks = _CryptoHooks()
    if key is not None:
        first_sig = _KEYID.sub(
            r'\1"', describe_signature(signature, key), count=1) + '"'
    else:
        first_sig = 'No public key available for {}'.format(
            signature.fingerprint)
    output_lines = [_time_line(signature, key), first_sig]

    trusted = False
    if key is not None:
        for aka in key.uids[1:]:
            output_lines.append('                aka "{}"'.format(aka.uid))
        if signature.trusted:
            trusted = True
        else:
            output_lines.extend(UNTRUSTED_WARNING)
        extra = hooks.augment_signature_detail(signature, key)
        if extra:
            output_lines.extend(extra)
    return (output_lines, trusted)

def _resolve(lookup_key, fingerprint):
    try:
        key = lookup_key(fingerprint)
        if key is None:
            raise _KeyUnresolvable(fingerprint)
    except _Error as e:
        _LOG.debug('signature key {}: {}'.format(fingerprint, e))
        return None
    return key

def interpret(signatures, lookup_key, hooks=None):
    """Combine ``signatures`` into one ``Verdict``.

    ``lookup_key(fingerprint)`` returns a ``Key``, None, or raises an
    ``Error``; the last two downgrade just that signature.

    >>> interpret([], lambda fpr: None)
    Verdict(status='valid', summary="message wasn't signed", lines=())
    >>> sig = _notice.SignatureRecord(
    ...     'B2EDBE0E771A4B8708DD16A7511AEDA64332B6E3', 0,
    ...     validity=_notice.VALIDITY_FULL, status=_notice.STATUS_BAD_SIGNATURE)
    >>> verdict = interpret([sig], lambda fpr: None)
    >>> verdict.status, verdict.summary
    ('invalid', 'Bad signature from B2EDBE0E771A4B8708DD16A7511AEDA64332B6E3')
    >>> verdict.lines[1]
    'No public key available for B2EDBE0E771A4B8708DD16A7511AEDA64332B6E3'
    """
    if hooks is None:
        hooks = _CryptoHooks()
    signatures = list(signatures)
    if not signatures:
        return _notice.Verdict(_notice.VALID, NOT_SIGNED)

    bad = other = False
    all_trusted = True
    all_output_lines = []
    keys = []
    for signature in signatures:
        key = _resolve(lookup_key, signature.fingerprint)
        keys.append(key)
        output_lines,trusted = signature_output_lines(signature, key, hooks)
        all_output_lines.extend(output_lines)
        all_trusted = all_trusted and trusted
        error = signature.error_class()
        if error == _notice.ERROR_BAD_SIGNATURE:
            bad = True
        elif error == _notice.ERROR_OTHER:
            other = True

    summary = simplify_sig_line(describe_signature(signatures[0], keys[0]))
    if not bad and not other:
        if all_trusted:
            status = _notice.VALID
        else:
            status = _notice.VALID_UNTRUSTED
        return _notice.Verdict(status, summary, all_output_lines)
    elif bad:
        return _notice.Verdict(_notice.INVALID, summary, all_output_lines)
    return _notice.unknown_status(all_output_lines)


if __name__ == '__main__':
    import doctest
    doctest.testmod()
