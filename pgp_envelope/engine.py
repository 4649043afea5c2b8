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

"""The OpenPGP engine: what ``CryptoManager`` needs from it.

``Engine`` is the contract.  ``GPGMEEngine`` implements it on top of
the ``gpg`` (GPGME) Python bindings, which are optional: without them
the engine reports itself unavailable.
"""

import shutil as _shutil

try:
    import gpg as _gpg
except ImportError:
    _gpg = None

from . import LOG as _LOG
from . import notice as _notice
from .errors import DecryptionFailed as _DecryptionFailed
from .errors import EngineError as _EngineError
from .errors import EngineUnavailable as _EngineUnavailable
from .key import Key as _Key
from .key import SubKey as _SubKey
from .key import UserID as _UserID


class Engine (object):
    """Interface to an OpenPGP backend.

    Every method may raise ``EngineError``.  Options are plain dicts;
    the keys understood are 'armor', 'textmode', 'signers' (list of key
    ids or addresses), 'sign' and 'always_trust'.
    """
    name = 'OpenPGP engine'

    def available(self):
        return False

    def sign(self, payload, options):
        """Return a detached signature over ``payload``."""
        raise NotImplementedError()

    def encrypt(self, recipients, payload, options):
        """Return ``payload`` encrypted to ``recipients``."""
        raise NotImplementedError()

    def decrypt_and_verify(self, ciphertext, options):
        """Return ``(plaintext, [SignatureRecord, ...])``."""
        raise NotImplementedError()

    def verify(self, signature, payload, options, detached=True):
        """Return ``(plaintext, [SignatureRecord, ...])``.

        With ``detached=False``, ``signature`` holds the signed data
        and ``payload`` is ignored.
        """
        raise NotImplementedError()

    def lookup_key(self, fingerprint):
        """Return a ``Key`` for ``fingerprint``, or None if unknown."""
        raise NotImplementedError()


class GPGMEEngine (Engine):
    name = 'gpg (GPGME) Python bindings'

    def __init__(self, binary=None, home=None):
        self.binary = binary
        self.home = home

    def available(self):
        if _gpg is None:
            _LOG.info("can't import the gpg bindings")
            return False
        try:
            version = _gpg.core.check_version(None)
            binary = self.binary or _shutil.which('gpg2')
            if binary:
                _gpg.core.set_engine_info(
                    _gpg.constants.protocol.OpenPGP, binary, self.home)
        except _gpg.errors.GpgError as e:
            _LOG.info('GPGME is not usable: {}'.format(e))
            return False
        _LOG.debug('using GPGME {} ({})'.format(version, binary or 'gpg'))
        return True

    def _require(self, operation):
        if _gpg is None:
            raise _EngineUnavailable(
                operation, "can't import the gpg bindings")

    def _context(self, options):
        return _gpg.Context(
            armor=bool(options.get('armor', False)),
            textmode=bool(options.get('textmode', False)),
            home_dir=self.home)

    def _keys(self, ctx, operation, patterns, secret=False):
        keys = []
        for pattern in patterns:
            found = list(ctx.keylist(pattern, secret=secret))
            if not found:
                raise _EngineError(
                    operation, 'no {}key found for {}'.format(
                        'secret ' if secret else '', pattern))
            keys.append(found[0])
        return keys

    def sign(self, payload, options):
        self._require('sign')
        try:
            ctx = self._context(options)
            if options.get('signers'):
                ctx.signers = self._keys(
                    ctx, 'sign', options['signers'], secret=True)
            signature,result = ctx.sign(
                payload, mode=_gpg.constants.sig.mode.DETACH)
        except _gpg.errors.GpgError as e:
            raise _EngineError('sign', str(e)) from e
        return signature

    def encrypt(self, recipients, payload, options):
        self._require('encrypt')
        try:
            ctx = self._context(options)
            keys = self._keys(ctx, 'encrypt', recipients)
            sign = bool(options.get('sign', False))
            if sign and options.get('signers'):
                ctx.signers = self._keys(
                    ctx, 'encrypt', options['signers'], secret=True)
            cipher,result,sign_result = ctx.encrypt(
                payload, recipients=keys, sign=sign,
                always_trust=bool(options.get('always_trust', False)))
        except _gpg.errors.GpgError as e:
            raise _EngineError('encrypt', str(e)) from e
        return cipher

    def decrypt_and_verify(self, ciphertext, options):
        self._require('decrypt')
        try:
            ctx = self._context(options)
            try:
                plain,result,verify_result = ctx.decrypt(
                    ciphertext, verify=True)
            except _gpg.errors.BadSignatures as e:
                # decrypted fine, the signatures go to the interpreter
                plain,result,verify_result = e.results
        except _gpg.errors.GpgError as e:
            raise _DecryptionFailed('decrypt', str(e)) from e
        return (plain, [signature_record(s) for s in verify_result.signatures])

    def verify(self, signature, payload, options, detached=True):
        self._require('verify')
        try:
            ctx = self._context(options)
            try:
                if detached:
                    plain,verify_result = ctx.verify(
                        payload, signature=signature)
                else:
                    plain,verify_result = ctx.verify(signature)
            except _gpg.errors.BadSignatures as e:
                plain,verify_result = e.results
        except _gpg.errors.GpgError as e:
            raise _EngineError('verify', str(e)) from e
        if detached:
            plain = payload
        return (plain, [signature_record(s) for s in verify_result.signatures])

    def lookup_key(self, fingerprint):
        self._require('lookup_key')
        ctx = _gpg.Context(home_dir=self.home)
        try:
            key = ctx.get_key(fingerprint)
        except _gpg.errors.KeyNotFound:
            return None
        except _gpg.errors.GpgError as e:
            raise _EngineError('lookup_key', str(e)) from e
        return key_info(key)


def _validity_levels():
    v = _gpg.constants.validity
    return {
        v.UNKNOWN: _notice.VALIDITY_UNKNOWN,
        v.UNDEFINED: _notice.VALIDITY_UNKNOWN,
        v.NEVER: _notice.VALIDITY_NONE,
        v.MARGINAL: _notice.VALIDITY_MARGINAL,
        v.FULL: _notice.VALIDITY_FULL,
        v.ULTIMATE: _notice.VALIDITY_FULL,
        }

def _status_codes():
    e = _gpg.errors
    return {
        e.NO_ERROR: _notice.STATUS_OK,
        e.BAD_SIGNATURE: _notice.STATUS_BAD_SIGNATURE,
        e.SIG_EXPIRED: _notice.STATUS_EXPIRED_SIGNATURE,
        e.KEY_EXPIRED: _notice.STATUS_EXPIRED_KEY,
        e.CERT_REVOKED: _notice.STATUS_REVOKED_KEY,
        e.NO_PUBKEY: _notice.STATUS_NO_PUBLIC_KEY,
        }

def _algorithm_names():
    pk = _gpg.constants.pk
    return {
        pk.RSA: 'RSA',
        pk.RSA_E: 'RSA',
        pk.RSA_S: 'RSA',
        pk.DSA: 'DSA',
        pk.ELG: 'ElGamal',
        pk.ELG_E: 'ElGamal',
        pk.ECDSA: 'ECDSA',
        pk.EDDSA: 'EdDSA',
        pk.ECDH: 'ECDH',
        }

def signature_record(sig):
    """Translate a GPGME signature into a ``SignatureRecord``."""
    code = _gpg.gpgme.gpgme_err_code(sig.status)
    return _notice.SignatureRecord(
        fingerprint=sig.fpr,
        timestamp=sig.timestamp,
        validity=_validity_levels().get(
            sig.validity, _notice.VALIDITY_UNKNOWN),
        status=_status_codes().get(code, _notice.STATUS_ERROR))

def key_info(key):
    """Translate a GPGME key into a ``Key``."""
    names = _algorithm_names()
    subkeys = [
        _SubKey(fingerprint=s.fpr, keyid=s.keyid,
                algorithm=names.get(s.pubkey_algo))
        for s in key.subkeys]
    uids = [
        _UserID(uid=u.uid, name=u.name, email=u.email, comment=u.comment)
        for u in key.uids]
    return _Key(subkeys=subkeys, uids=uids)
