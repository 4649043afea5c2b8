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

"""Sign, encrypt, verify and decrypt messages for a mail client.

Build one ``CryptoManager`` when the client starts and hand it to
whatever needs it.  The engine is not safe for concurrent use, so all
engine calls go through the manager's lock.  Every call blocks (gpg may
be waiting for a passphrase); run them off any thread that has to stay
responsive.

Outgoing calls raise ``EngineOperationFailed`` when gpg fails, since
the user can retry or give up sending.  Incoming calls always return
something to display.
"""

import collections as _collections
from email import message_from_bytes as _message_from_bytes
from email.message import Message as _Message
import locale as _locale
import threading as _threading

from . import LOG as _LOG
from . import notice as _notice
from .account import AccountStore as _AccountStore
from .account import signing_options as _signing_options
from .config import get_accounts as _get_accounts
from .config import get_gpg_params as _get_gpg_params
from .engine import GPGMEEngine as _GPGMEEngine
from .envelope import build_encrypted as _build_encrypted
from .envelope import build_signed as _build_signed
from .envelope import encrypted_parts as _encrypted_parts
from .envelope import signed_parts as _signed_parts
from .errors import EngineError as _EngineError
from .errors import EngineOperationFailed as _EngineOperationFailed
from .errors import Result as _Result
from .hooks import CryptoHooks as _CryptoHooks
from .mail import canonicalize as _canonicalize
from .mail import decanonicalize as _decanonicalize
from .mail import find_charset as _find_charset
from .mail import part_body as _part_body
from .mail import payload_bytes as _payload_bytes
from .verify import interpret as _interpret


OUTGOING_MESSAGE_OPERATIONS = _collections.OrderedDict([
    ('sign', 'Sign'),
    ('sign_and_encrypt', 'Sign and encrypt'),
    ('encrypt', 'Encrypt only'),
    ])

MIME_VERSION_HEADER = b'MIME-Version: 1.0\n'

Decryption = _collections.namedtuple(
    'Decryption', ['notice', 'verdict', 'message'])


def encryption_recipients(sender, recipients):
    """Everyone in ``recipients``, plus the sender.

    >>> encryption_recipients('me@big.edu', ['you@big.edu'])
    ['you@big.edu', 'me@big.edu']
    >>> encryption_recipients('me@big.edu', ['me@big.edu', 'you@big.edu'])
    ['me@big.edu', 'you@big.edu']
    """
    recipients = list(recipients)
    if sender not in recipients:
        recipients.append(sender)
    return recipients

def repair_if_needed(text, message):
    r"""Reparse ``text`` as MIME if it claims to be multipart but isn't.

    Some clients encrypt an inner multipart payload without a
    MIME-Version header.  Returns ``(text, message)``, reparsed at most
    once.

    >>> text = b'Content-Type: multipart/mixed; boundary="b"\n\n--b\n\nHi\n--b--\n'
    >>> message = _Message()
    >>> message['Content-Type'] = 'multipart/mixed; boundary="b"'
    >>> message.set_payload('--b\n\nHi\n--b--\n')
    >>> message.is_multipart()
    False
    >>> text, message = repair_if_needed(text, message)
    >>> text[:18]
    b'MIME-Version: 1.0\n'
    >>> message.is_multipart()
    True
    """
    if (message.get_content_maintype() == 'multipart'
            and not message.is_multipart()):
        _LOG.debug('decrypted payload is not MIME, adding MIME-Version')
        text = MIME_VERSION_HEADER + text
        message = _message_from_bytes(text)
    return (text, message)

def _as_message(payload):
    if isinstance(payload, _Message):
        return payload
    return _message_from_bytes(_payload_bytes(payload))

def _armored_message(ciphertext, plain):
    charset = _find_charset(ciphertext)
    default = _locale.getpreferredencoding(False)
    try:
        text = plain.decode(charset or default)
    except (LookupError, UnicodeDecodeError) as e:
        _LOG.info('cannot decode with {}: {}'.format(charset or default, e))
        text = plain.decode(default, 'replace')
    message = _Message()
    message.set_payload(text)
    return message


class CryptoManager (object):
    def __init__(self, engine=None, accounts=None, hooks=None):
        if engine is None:
            engine = _GPGMEEngine()
        if accounts is None:
            accounts = _AccountStore()
        if hooks is None:
            hooks = _CryptoHooks()
        self.engine = engine
        self.accounts = accounts
        self.hooks = hooks
        self._lock = _threading.Lock()
        self._available = bool(engine.available())

    @classmethod
    def from_config(cls, config, hooks=None):
        binary,home = _get_gpg_params(config)
        return cls(
            engine=_GPGMEEngine(binary=binary, home=home),
            accounts=_get_accounts(config), hooks=hooks)

    def have_crypto(self):
        return self._available

    def _unavailable(self):
        return _notice.unknown_status(
            [_notice.cant_find_engine(self.engine.name)])

    def _options(self, operation, options):
        replacement = self.hooks.adjust_options(operation, dict(options))
        if replacement is None:
            return options
        return replacement

    def _call(self, operation, method, *args, **kwargs):
        _LOG.debug('{} via {}'.format(operation, self.engine.name))
        with self._lock:
            try:
                return _Result.success(method(*args, **kwargs))
            except _EngineError as e:
                _LOG.info('Error while running gpg: {}'.format(e))
                return _Result.failure(e)

    def _lookup_key(self, fingerprint):
        return self._call(
            'lookup_key', self.engine.lookup_key, fingerprint).unwrap()

    def interpret(self, signatures):
        return _interpret(signatures, self._lookup_key, self.hooks)

    def sign(self, from_address, to, payload):
        """Return ``payload`` wrapped in a multipart/signed envelope.

        A ``str`` or ``bytes`` payload is parsed as MIME text first, and
        that message is both what gets signed and the first part.
        """
        if not self._available:
            return self._unavailable()
        options = {'armor': True, 'textmode': True}
        options.update(_signing_options(from_address, self.accounts))
        options = self._options('sign', options)
        # the signature covers exactly the part that goes on the wire
        message = _as_message(payload)
        result = self._call(
            'sign', self.engine.sign,
            _canonicalize(_payload_bytes(message)), options)
        if not result.ok:
            raise _EngineOperationFailed(
                'GPG command failed. See log for details.') from result.error
        return _build_signed(message, result.value)

    def encrypt(self, from_address, to, payload, sign=False):
        """Return ``payload`` wrapped in a multipart/encrypted envelope.

        The sender is always added to the recipients so the sent copy
        stays readable.
        """
        if not self._available:
            return self._unavailable()
        options = {'armor': True, 'textmode': True}
        if sign:
            options.update(_signing_options(from_address, self.accounts))
            options['sign'] = True
        options = self._options('encrypt', options)
        recipients = encryption_recipients(from_address, to)
        result = self._call(
            'encrypt', self.engine.encrypt, recipients,
            _canonicalize(_payload_bytes(payload)), options)
        if not result.ok:
            raise _EngineOperationFailed(
                'GPG command failed. See log for details.') from result.error
        return _build_encrypted(result.value)

    def sign_and_encrypt(self, from_address, to, payload):
        return self.encrypt(from_address, to, payload, sign=True)

    def outgoing(self, operation, from_address, to, payload):
        """Run one of ``OUTGOING_MESSAGE_OPERATIONS`` by name.

        >>> CryptoManager().outgoing('shred', 'me@big.edu', [], 'Hi')
        Traceback (most recent call last):
          ...
        ValueError: unknown outgoing operation 'shred'
        """
        if operation not in OUTGOING_MESSAGE_OPERATIONS:
            raise ValueError(
                'unknown outgoing operation {!r}'.format(operation))
        return getattr(self, operation)(from_address, to, payload)

    def verify(self, payload, signature, detached=True):
        """Return a ``Verdict`` for ``signature``.

        With ``detached=False`` the signature carries its own data and
        ``payload`` is ignored.
        """
        if not self._available:
            return self._unavailable()
        options = self._options('verify', {})
        if isinstance(signature, _Message):
            signature = _part_body(signature)
        else:
            signature = _payload_bytes(signature)
        signed = None
        if detached:
            signed = _canonicalize(_payload_bytes(payload))
        result = self._call(
            'verify', self.engine.verify, signature, signed, options,
            detached=detached)
        if not result.ok:
            return _notice.unknown_status([str(result.error)])
        plain,signatures = result.value
        return self.interpret(signatures)

    def decrypt(self, payload, armor=False):
        """Decrypt ``payload``, returning a ``Decryption``.

        ``armor`` is true for inline PGP (the body is the armored
        text itself) and false for the octet-stream part of a
        multipart/encrypted message.  When decryption is impossible,
        ``notice`` explains why and the other two fields are None.
        """
        if not self._available:
            return Decryption(self._unavailable(), None, None)
        options = self._options('decrypt', {})
        if isinstance(payload, _Message):
            ciphertext = _part_body(payload)
        else:
            ciphertext = _payload_bytes(payload)
        result = self._call(
            'decrypt', self.engine.decrypt_and_verify,
            _canonicalize(ciphertext), options)
        if not result.ok:
            return Decryption(
                _notice.decryption_failed(str(result.error)), None, None)
        plain,signatures = result.value
        verdict = self.interpret(signatures)

        if armor:
            message = _armored_message(ciphertext, plain)
        else:
            text = _decanonicalize(plain)
            text,message = repair_if_needed(text, _message_from_bytes(text))
        return Decryption(_notice.decrypted_for_display(), verdict, message)

    def verify_message(self, message):
        """Verify a received multipart/signed ``message``."""
        body,signature = _signed_parts(message)
        return self.verify(body, signature)

    def decrypt_message(self, message):
        """Decrypt a received multipart/encrypted ``message``."""
        control,body = _encrypted_parts(message)
        return self.decrypt(body)


if __name__ == '__main__':
    import doctest
    doctest.testmod()
