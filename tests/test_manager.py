"""
Tests for CryptoManager, driven by an in-memory engine.
"""

from configparser import ConfigParser
from email import message_from_bytes
from email.message import Message

import pytest

from pgp_envelope import engine as engine_module
from pgp_envelope import manager as manager_module
from pgp_envelope import notice
from pgp_envelope.account import AccountIdentity, AccountStore
from pgp_envelope.engine import GPGMEEngine
from pgp_envelope.envelope import build_encrypted, build_signed
from pgp_envelope.errors import EngineError, EngineOperationFailed
from pgp_envelope.hooks import CryptoHooks
from pgp_envelope.mail import encodedMIMEText, flatten
from pgp_envelope.manager import (
    CryptoManager, OUTGOING_MESSAGE_OPERATIONS)

from fakes import CIPHERTEXT, JACK_FPR, SIGNATURE, FakeEngine, make_signature


INNER_MULTIPART = (
    b'Content-Type: multipart/mixed; boundary="inner"\r\n'
    b'\r\n'
    b'--inner\r\n'
    b'Content-Type: text/plain; charset="us-ascii"\r\n'
    b'\r\n'
    b'Part A\r\n'
    b'--inner\r\n'
    b'Content-Type: text/plain; charset="us-ascii"\r\n'
    b'\r\n'
    b'Part B\r\n'
    b'--inner--\r\n')


@pytest.fixture
def accounts():
    return AccountStore([
        AccountIdentity('jack@hill.org', gpgkey='4332B6E3'),
        AccountIdentity('jill@hill.org'),
        ])


@pytest.fixture
def manager(engine, accounts):
    manager = CryptoManager(engine=engine, accounts=accounts)
    engine.lock_probe = manager._lock.locked
    return manager


class TestSign:
    """Outgoing multipart/signed."""

    def test_envelope(self, manager):
        message = encodedMIMEText('Hi\nBye')
        signed = manager.sign('jack@hill.org', ['jill@hill.org'], message)
        assert signed.get_content_type() == 'multipart/signed'
        assert signed.get_param('protocol') == 'application/pgp-signature'
        body, signature = signed.get_payload()
        assert body is message
        assert signature.get_content_type() == 'application/pgp-signature'
        assert signature.get_filename() == 'signature.asc'
        assert signature.get_payload(decode=True) == SIGNATURE

    def test_payload_is_canonical(self, manager, engine):
        manager.sign('jack@hill.org', [], 'Hi\nBye\n')
        operation, (payload, options), locked = engine.calls[0]
        assert operation == 'sign'
        # parsed as a message without headers
        assert payload == b'\r\nHi\r\nBye\r\n'
        assert locked

    @pytest.mark.parametrize('payload', [
        'Hi\nBye\n',
        b'Hi\nBye\n',
        'Content-Type: text/plain\n\nHi\nBye\n',
        encodedMIMEText('Hi\nBye'),
        ], ids=['text', 'bytes', 'mime-text', 'message'])
    def test_signed_bytes_are_received_bytes(self, manager, engine, payload):
        signed = manager.sign('jack@hill.org', ['jill@hill.org'], payload)
        received = message_from_bytes(flatten(signed))
        manager.verify_message(received)
        assert engine.operations() == ['sign', 'verify']
        signed_bytes = engine.calls[0][1][0]
        verified_bytes = engine.calls[1][1][1]
        assert signed_bytes == verified_bytes

    def test_account_key_is_signer(self, manager, engine):
        manager.sign('jack@hill.org', [], 'Hi')
        options = engine.calls[0][1][1]
        assert options == {
            'armor': True, 'textmode': True, 'signers': ['4332B6E3']}

    def test_sender_address_is_signer(self, manager, engine):
        manager.sign('jill@hill.org', [], 'Hi')
        assert engine.calls[0][1][1]['signers'] == ['jill@hill.org']

    def test_single_account_uses_engine_default(self, engine):
        manager = CryptoManager(
            engine=engine,
            accounts=AccountStore([AccountIdentity('jill@hill.org')]))
        manager.sign('jill@hill.org', [], 'Hi')
        assert 'signers' not in engine.calls[0][1][1]

    def test_failure_is_raised(self, keys, accounts):
        manager = CryptoManager(
            engine=FakeEngine(keys=keys, fail=['sign']), accounts=accounts)
        with pytest.raises(EngineOperationFailed) as excinfo:
            manager.sign('jack@hill.org', [], 'Hi')
        assert isinstance(excinfo.value.__cause__, EngineError)


class TestEncrypt:
    """Outgoing multipart/encrypted."""

    def test_envelope(self, manager):
        encrypted = manager.encrypt(
            'jack@hill.org', ['jill@hill.org'], encodedMIMEText('Hi'))
        assert encrypted.get_content_type() == 'multipart/encrypted'
        assert encrypted.get_param('protocol') == 'application/pgp-encrypted'
        control, body = encrypted.get_payload()
        assert control.get_content_type() == 'application/pgp-encrypted'
        assert control.get_payload() == 'Version: 1\n'
        assert body.get_content_type() == 'application/octet-stream'
        assert body.get_filename() == 'msg.asc'
        assert body.get('Content-Disposition').startswith('inline')
        assert body.get_payload(decode=True) == CIPHERTEXT

    def test_sender_is_a_recipient(self, manager, engine):
        manager.encrypt(
            'jack@hill.org', ['jill@hill.org', 'john@doe.net'], 'Hi')
        recipients = engine.calls[0][1][0]
        assert set(recipients) == {
            'jill@hill.org', 'john@doe.net', 'jack@hill.org'}

    def test_encrypt_only_does_not_sign(self, manager, engine):
        manager.encrypt('jack@hill.org', ['jill@hill.org'], 'Hi')
        options = engine.calls[0][1][2]
        assert 'sign' not in options
        assert 'signers' not in options

    def test_sign_and_encrypt(self, manager, engine):
        manager.sign_and_encrypt('jack@hill.org', ['jill@hill.org'], 'Hi')
        options = engine.calls[0][1][2]
        assert options['sign'] is True
        assert options['signers'] == ['4332B6E3']

    def test_failure_is_raised(self, keys, accounts):
        manager = CryptoManager(
            engine=FakeEngine(keys=keys, fail=['encrypt']), accounts=accounts)
        with pytest.raises(EngineOperationFailed):
            manager.encrypt('jack@hill.org', ['jill@hill.org'], 'Hi')

    def test_outgoing_dispatch(self, manager, engine):
        assert list(OUTGOING_MESSAGE_OPERATIONS) == [
            'sign', 'sign_and_encrypt', 'encrypt']
        envelope = manager.outgoing(
            'sign_and_encrypt', 'jack@hill.org', ['jill@hill.org'], 'Hi')
        assert envelope.get_content_type() == 'multipart/encrypted'
        assert engine.operations() == ['encrypt']


class TestVerify:
    """Incoming detached signatures."""

    def test_verdict(self, keys):
        engine = FakeEngine(keys=keys, signatures=[make_signature()])
        manager = CryptoManager(engine=engine)
        verdict = manager.verify('Hi\n', SIGNATURE)
        assert verdict.status == notice.VALID
        operation, args, locked = engine.calls[0]
        signature, payload, options, detached = args
        assert (signature, payload, detached) == (SIGNATURE, b'Hi\r\n', True)
        assert engine.operations() == ['verify', 'lookup_key']

    def test_engine_failure_is_unknown(self, keys):
        manager = CryptoManager(engine=FakeEngine(keys=keys, fail=['verify']))
        verdict = manager.verify('Hi\n', SIGNATURE)
        assert verdict.status == notice.UNKNOWN
        assert verdict.lines == ('verify exploded',)

    def test_verify_message(self, keys):
        engine = FakeEngine(keys=keys, signatures=[make_signature()])
        manager = CryptoManager(engine=engine)
        signed = build_signed(encodedMIMEText('Hi'), SIGNATURE)
        verdict = manager.verify_message(signed)
        assert verdict.status == notice.VALID
        assert engine.calls[0][1][0] == SIGNATURE


class TestDecrypt:
    """Incoming encrypted messages."""

    def test_unsigned(self, keys):
        plaintext = b'Content-Type: text/plain\r\n\r\nHi\r\n'
        manager = CryptoManager(
            engine=FakeEngine(keys=keys, plaintext=plaintext))
        decryption = manager.decrypt(CIPHERTEXT)
        assert decryption.notice.status == notice.VALID
        assert decryption.notice.summary == (
            'This message has been decrypted for display')
        assert decryption.verdict.summary == "message wasn't signed"
        assert decryption.message.get_payload() == 'Hi\n'

    def test_signed(self, keys):
        engine = FakeEngine(
            keys=keys, plaintext=b'Hi', signatures=[make_signature()])
        decryption = CryptoManager(engine=engine).decrypt(CIPHERTEXT)
        assert decryption.notice.status == notice.VALID
        assert decryption.verdict.status == notice.VALID
        assert decryption.verdict.summary == (
            'Good signature from Jack <jack@hill.org>')
        assert engine.operations() == ['decrypt', 'lookup_key']

    def test_bad_signature_still_decrypts(self, keys):
        engine = FakeEngine(
            keys=keys, plaintext=b'Hi',
            signatures=[make_signature(status=notice.STATUS_BAD_SIGNATURE)])
        decryption = CryptoManager(engine=engine).decrypt(CIPHERTEXT)
        assert decryption.notice.status == notice.VALID
        assert decryption.verdict.status == notice.INVALID
        assert decryption.message is not None

    def test_failure_is_a_notice(self, keys):
        engine = FakeEngine(keys=keys, fail=['decrypt'])
        decryption = CryptoManager(engine=engine).decrypt(CIPHERTEXT)
        assert decryption.notice.status == notice.INVALID
        assert decryption.notice.summary == (
            'This message could not be decrypted')
        assert decryption.notice.lines == ('decrypt exploded',)
        assert decryption.verdict is None
        assert decryption.message is None

    def test_ciphertext_is_canonical(self, engine):
        CryptoManager(engine=engine).decrypt(CIPHERTEXT)
        ciphertext = engine.calls[0][1][0]
        assert b'\r\n' in ciphertext
        assert b'\n' not in ciphertext.replace(b'\r\n', b'')

    def test_multipart_plaintext(self, keys):
        engine = FakeEngine(keys=keys, plaintext=INNER_MULTIPART)
        decryption = CryptoManager(engine=engine).decrypt(CIPHERTEXT)
        message = decryption.message
        assert message.is_multipart()
        parts = [part.get_payload() for part in message.get_payload()]
        assert parts == ['Part A', 'Part B']

    def test_missing_mime_version_is_repaired(self, keys, monkeypatch):
        parsed = []

        def parse(text):
            parsed.append(text)
            if len(parsed) == 1:
                # as parsed by a reader that needs MIME-Version
                message = Message()
                message['Content-Type'] = 'multipart/mixed; boundary="inner"'
                message.set_payload('--inner\n\nPart A\n--inner--\n')
                return message
            return message_from_bytes(text)

        monkeypatch.setattr(manager_module, '_message_from_bytes', parse)
        engine = FakeEngine(keys=keys, plaintext=INNER_MULTIPART)
        decryption = CryptoManager(engine=engine).decrypt(CIPHERTEXT)
        assert len(parsed) == 2
        assert parsed[1] == b'MIME-Version: 1.0\n' + parsed[0]
        assert decryption.message.is_multipart()
        assert decryption.message['MIME-Version'] == '1.0'

    def test_repair_reparses_at_most_once(self, keys, monkeypatch):
        parsed = []

        def parse(text):
            parsed.append(text)
            return message_from_bytes(text)

        monkeypatch.setattr(manager_module, '_message_from_bytes', parse)
        plaintext = b'Content-Type: multipart/mixed\r\n\r\nno boundary\r\n'
        engine = FakeEngine(keys=keys, plaintext=plaintext)
        decryption = CryptoManager(engine=engine).decrypt(CIPHERTEXT)
        assert parsed == [
            b'Content-Type: multipart/mixed\n\nno boundary\n',
            b'MIME-Version: 1.0\nContent-Type: multipart/mixed\n\n'
            b'no boundary\n',
            ]
        assert decryption.notice.status == notice.VALID
        assert not decryption.message.is_multipart()

    def test_armor_charset(self, keys):
        ciphertext = CIPHERTEXT.replace(
            b'-----\n\n', b'-----\nCharset: ISO-8859-1\n\n', 1)
        engine = FakeEngine(keys=keys, plaintext=b'caf\xe9\n')
        decryption = CryptoManager(engine=engine).decrypt(
            ciphertext, armor=True)
        assert decryption.message.get_payload() == 'caf\xe9\n'
        assert not decryption.message.is_multipart()

    def test_armor_is_not_parsed_as_mime(self, keys):
        engine = FakeEngine(keys=keys, plaintext=INNER_MULTIPART)
        decryption = CryptoManager(engine=engine).decrypt(
            CIPHERTEXT, armor=True)
        assert not decryption.message.is_multipart()

    def test_decrypt_message(self, keys):
        engine = FakeEngine(keys=keys, plaintext=b'Hi')
        manager = CryptoManager(engine=engine)
        decryption = manager.decrypt_message(build_encrypted(CIPHERTEXT))
        assert decryption.notice.status == notice.VALID
        assert engine.calls[0][1][0] == CIPHERTEXT.replace(b'\n', b'\r\n')

    def test_decrypt_message_rejects_plain_mail(self, engine):
        with pytest.raises(ValueError):
            CryptoManager(engine=engine).decrypt_message(encodedMIMEText('Hi'))


class TestUnavailable:
    """Without an engine nothing raises."""

    @pytest.fixture
    def manager(self):
        return CryptoManager(engine=FakeEngine(available=False))

    def _check(self, verdict):
        assert verdict.status == notice.UNKNOWN
        assert "Can't find the fake engine." in verdict.lines

    def test_have_crypto(self, manager):
        assert not manager.have_crypto()

    def test_sign(self, manager):
        self._check(manager.sign('jack@hill.org', [], 'Hi'))

    def test_encrypt(self, manager):
        self._check(manager.encrypt('jack@hill.org', ['jill@hill.org'], 'Hi'))
        self._check(manager.sign_and_encrypt(
                'jack@hill.org', ['jill@hill.org'], 'Hi'))

    def test_verify(self, manager):
        self._check(manager.verify('Hi', SIGNATURE))

    def test_decrypt(self, manager):
        decryption = manager.decrypt(CIPHERTEXT)
        self._check(decryption.notice)
        assert decryption.message is None

    def test_engine_not_called(self, manager):
        manager.verify('Hi', SIGNATURE)
        manager.decrypt(CIPHERTEXT)
        assert manager.engine.calls == []


class TestHooks:
    """Options and signature detail customization."""

    def test_options_replaced(self, keys, accounts):
        seen = []

        class AlwaysTrust(CryptoHooks):
            def adjust_options(self, operation, options):
                seen.append(operation)
                return dict(options, always_trust=True)

        engine = FakeEngine(keys=keys)
        manager = CryptoManager(
            engine=engine, accounts=accounts, hooks=AlwaysTrust())
        manager.encrypt('jack@hill.org', ['jill@hill.org'], 'Hi')
        manager.sign('jack@hill.org', [], 'Hi')
        manager.verify('Hi', SIGNATURE)
        manager.decrypt(CIPHERTEXT)
        assert seen == ['encrypt', 'sign', 'verify', 'decrypt']
        assert engine.calls[0][1][2]['always_trust'] is True
        assert engine.calls[3][1][1] == {'always_trust': True}

    def test_default_options_kept(self, manager, engine):
        manager.decrypt(CIPHERTEXT)
        assert engine.calls[0][1][1] == {}

    def test_signature_detail(self, keys):
        class Fingerprints(CryptoHooks):
            def augment_signature_detail(self, signature, key):
                return ['fingerprint {}'.format(key.fingerprint)]

        engine = FakeEngine(keys=keys, signatures=[make_signature()])
        manager = CryptoManager(engine=engine, hooks=Fingerprints())
        verdict = manager.verify('Hi', SIGNATURE)
        assert verdict.lines[-1] == 'fingerprint {}'.format(JACK_FPR)


class TestLocking:
    """Engine calls are serialized."""

    def test_every_engine_call_holds_the_lock(self, manager, engine):
        engine.signatures = [make_signature()]
        engine.plaintext = b'Hi'
        manager.sign('jack@hill.org', [], 'Hi')
        manager.verify('Hi', SIGNATURE)
        manager.decrypt(CIPHERTEXT)
        assert engine.operations() == [
            'sign', 'verify', 'lookup_key', 'decrypt', 'lookup_key']
        assert all(locked for operation, args, locked in engine.calls)

    def test_lock_released_after_failure(self, keys):
        engine = FakeEngine(keys=keys, fail=['sign'])
        manager = CryptoManager(engine=engine)
        with pytest.raises(EngineOperationFailed):
            manager.sign('jack@hill.org', [], 'Hi')
        assert not manager._lock.locked()


def test_from_config(monkeypatch):
    monkeypatch.setattr(engine_module, '_gpg', None)
    config = ConfigParser()
    config.read_string('\n'.join([
        '[gpg]',
        'binary: /opt/gnupg/bin/gpg2',
        '[account home]',
        'email: jack@hill.org',
        'gpgkey: 4332B6E3',
        ]))
    manager = CryptoManager.from_config(config)
    assert isinstance(manager.engine, GPGMEEngine)
    assert manager.engine.binary == '/opt/gnupg/bin/gpg2'
    assert manager.accounts.default_account.gpgkey == '4332B6E3'
