"""
In-memory stand-ins for the OpenPGP engine.
"""

from pgp_envelope.engine import Engine
from pgp_envelope.errors import EngineError
from pgp_envelope.key import Key, SubKey, UserID
from pgp_envelope import notice


JACK_FPR = 'B2EDBE0E771A4B8708DD16A7511AEDA64332B6E3'
JILL_FPR = '9BF067B7F84FF7EE0C42C06328FCBC52E750652E'
STRANGER_FPR = '0123456789ABCDEF0123456789ABCDEF01234567'

SIGNATURE = (
    b'-----BEGIN PGP SIGNATURE-----\n'
    b'\n'
    b'iQEcBAEBAgAGBQJPaiw/AAoJEFEa7aZDMrbj93gH/1fQPXLjUTpONJUTmvGoMLNA\n'
    b'=rRBP\n'
    b'-----END PGP SIGNATURE-----\n')
CIPHERTEXT = (
    b'-----BEGIN PGP MESSAGE-----\n'
    b'\n'
    b'hQEMA1Ea7aZDMrbjAQf/TAqLjksZSJxSqkBxYT5gtLQoXY6isvRZg2apjs7CW0y2\n'
    b'=bZI+\n'
    b'-----END PGP MESSAGE-----\n')


class FakeEngine(Engine):
    """In-memory engine recording every call."""

    name = 'fake engine'

    def __init__(self, available=True, plaintext=b'', signatures=(),
                 keys=None, broken_keys=(), fail=()):
        self._available = available
        self.plaintext = plaintext
        self.signatures = list(signatures)
        self.keys = keys or {}
        self.broken_keys = set(broken_keys)
        self.fail = set(fail)
        self.calls = []
        self.lock_probe = None

    def _record(self, operation, *args):
        locked = self.lock_probe() if self.lock_probe else None
        self.calls.append((operation, args, locked))
        if operation in self.fail:
            raise EngineError(operation, '{} exploded'.format(operation))

    def available(self):
        return self._available

    def sign(self, payload, options):
        self._record('sign', payload, options)
        return SIGNATURE

    def encrypt(self, recipients, payload, options):
        self._record('encrypt', recipients, payload, options)
        return CIPHERTEXT

    def decrypt_and_verify(self, ciphertext, options):
        self._record('decrypt', ciphertext, options)
        return (self.plaintext, list(self.signatures))

    def verify(self, signature, payload, options, detached=True):
        self._record('verify', signature, payload, options, detached)
        return (payload, list(self.signatures))

    def lookup_key(self, fingerprint):
        self._record('lookup_key', fingerprint)
        if fingerprint in self.broken_keys:
            raise EngineError('lookup_key', 'keyring locked')
        return self.keys.get(fingerprint)

    def operations(self):
        return [call[0] for call in self.calls]


def make_key(fingerprint, *uids):
    return Key(subkeys=[SubKey(fingerprint, algorithm='RSA')],
               uids=[UserID(uid) for uid in uids])


def make_signature(fingerprint=JACK_FPR, validity=notice.VALIDITY_FULL,
                   status=notice.STATUS_OK, timestamp=1332358207):
    return notice.SignatureRecord(
        fingerprint, timestamp, validity=validity, status=status)
