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

"""Build and take apart PGP/MIME envelopes (RFC 3156).
"""

from email.encoders import encode_7or8bit as _encode_7or8bit
from email.mime.application import MIMEApplication as _MIMEApplication
from email.mime.multipart import MIMEMultipart as _MIMEMultipart


SIGNATURE_TYPE = 'application/pgp-signature'
SIGNATURE_FILENAME = 'signature.asc'
CONTROL_TYPE = 'application/pgp-encrypted'
CONTROL_BODY = 'Version: 1\n'
CIPHERTEXT_TYPE = 'application/octet-stream'
CIPHERTEXT_FILENAME = 'msg.asc'


def _ascii(data):
    if isinstance(data, bytes):
        return str(data, 'us-ascii')
    return data

def build_signed(payload, signature):
    r"""Wrap ``payload`` and its detached ``signature``.

    multipart/signed
    +-> payload                    (unchanged)
    +-> application/pgp-signature  (signature.asc)

    >>> from pgp_envelope.mail import encodedMIMEText
    >>> message = encodedMIMEText('Hi\nBye')
    >>> signature = '\n'.join([
    ...     '-----BEGIN PGP SIGNATURE-----',
    ...     '',
    ...     'iQEcBAEBAgAGBQJPaiw/AAoJEFEa7aZDMrbj93gH/1fQPXLjUTpONJUTmvGoMLNA',
    ...     '=rRBP',
    ...     '-----END PGP SIGNATURE-----',
    ...     '']).encode('us-ascii')
    >>> signed = build_signed(message, signature)
    >>> signed.set_boundary('boundsep')
    >>> print(signed.as_string())  # doctest: +NORMALIZE_WHITESPACE, +REPORT_UDIFF
    Content-Type: multipart/signed; protocol="application/pgp-signature"; boundary="boundsep"
    MIME-Version: 1.0
    <BLANKLINE>
    --boundsep
    Content-Type: text/plain; charset="us-ascii"
    MIME-Version: 1.0
    Content-Transfer-Encoding: 7bit
    Content-Disposition: inline
    <BLANKLINE>
    Hi
    Bye
    --boundsep
    Content-Type: application/pgp-signature; name="signature.asc"
    MIME-Version: 1.0
    Content-Transfer-Encoding: 7bit
    Content-Description: OpenPGP digital signature
    Content-Disposition: attachment; filename="signature.asc"
    <BLANKLINE>
    -----BEGIN PGP SIGNATURE-----
    <BLANKLINE>
    iQEcBAEBAgAGBQJPaiw/AAoJEFEa7aZDMrbj93gH/1fQPXLjUTpONJUTmvGoMLNA
    =rRBP
    -----END PGP SIGNATURE-----
    <BLANKLINE>
    --boundsep--
    <BLANKLINE>
    >>> signed.get_payload(0) is message
    True
    """
    sig = _MIMEApplication(
        _data=_ascii(signature),
        _subtype='pgp-signature; name="{}"'.format(SIGNATURE_FILENAME),
        _encoder=_encode_7or8bit)
    sig['Content-Description'] = 'OpenPGP digital signature'
    sig.add_header(
        'Content-Disposition', 'attachment', filename=SIGNATURE_FILENAME)

    msg = _MIMEMultipart('signed', protocol=SIGNATURE_TYPE)
    msg.attach(payload)
    msg.attach(sig)
    return msg

def build_encrypted(ciphertext):
    r"""Wrap armored ``ciphertext``.

    multipart/encrypted
    +-> application/pgp-encrypted  (control information)
    +-> application/octet-stream   (msg.asc)

    >>> ciphertext = '\n'.join([
    ...     '-----BEGIN PGP MESSAGE-----',
    ...     '',
    ...     'hQEMA1Ea7aZDMrbjAQf/TAqLjksZSJxSqkBxYT5gtLQoXY6isvRZg2apjs7CW0y2',
    ...     '=bZI+',
    ...     '-----END PGP MESSAGE-----',
    ...     ''])
    >>> encrypted = build_encrypted(ciphertext)
    >>> encrypted.set_boundary('boundsep')
    >>> print(encrypted.as_string())  # doctest: +NORMALIZE_WHITESPACE, +REPORT_UDIFF
    Content-Type: multipart/encrypted; protocol="application/pgp-encrypted"; boundary="boundsep"
    MIME-Version: 1.0
    <BLANKLINE>
    --boundsep
    Content-Type: application/pgp-encrypted
    MIME-Version: 1.0
    Content-Transfer-Encoding: 7bit
    Content-Disposition: attachment
    <BLANKLINE>
    Version: 1
    <BLANKLINE>
    --boundsep
    Content-Type: application/octet-stream
    MIME-Version: 1.0
    Content-Transfer-Encoding: 7bit
    Content-Disposition: inline; filename="msg.asc"
    <BLANKLINE>
    -----BEGIN PGP MESSAGE-----
    <BLANKLINE>
    hQEMA1Ea7aZDMrbjAQf/TAqLjksZSJxSqkBxYT5gtLQoXY6isvRZg2apjs7CW0y2
    =bZI+
    -----END PGP MESSAGE-----
    <BLANKLINE>
    --boundsep--
    <BLANKLINE>
    """
    control = _MIMEApplication(
        _data=CONTROL_BODY,
        _subtype='pgp-encrypted',
        _encoder=_encode_7or8bit)
    control['Content-Disposition'] = 'attachment'
    enc = _MIMEApplication(
        _data=_ascii(ciphertext),
        _subtype='octet-stream',
        _encoder=_encode_7or8bit)
    enc.add_header(
        'Content-Disposition', 'inline', filename=CIPHERTEXT_FILENAME)
    msg = _MIMEMultipart('encrypted', protocol=CONTROL_TYPE)
    msg.attach(control)
    msg.attach(enc)
    return msg

def encrypted_parts(message):
    """Return the (control, ciphertext) parts of a received envelope.

    >>> control, body = encrypted_parts(build_encrypted('ciphertext'))
    >>> control.get_content_type(), body.get_content_type()
    ('application/pgp-encrypted', 'application/octet-stream')
    >>> from pgp_envelope.mail import encodedMIMEText
    >>> encrypted_parts(encodedMIMEText('Hi'))
    Traceback (most recent call last):
      ...
    ValueError: not multipart/encrypted: text/plain
    """
    ct = message.get_content_type()
    if ct != 'multipart/encrypted' or not message.is_multipart():
        raise ValueError('not multipart/encrypted: {}'.format(ct))
    params = dict(message.get_params())
    if params.get('protocol', None) != CONTROL_TYPE:
        raise ValueError('unsupported protocol {}'.format(
                params.get('protocol', None)))
    control = body = None
    for part in message.get_payload():
        if part.is_multipart():
            raise ValueError('unexpected multipart {} part'.format(
                    part.get_content_type()))
        ct = part.get_content_type()
        if ct == CONTROL_TYPE:
            if control is not None:
                raise ValueError('multiple {} parts'.format(CONTROL_TYPE))
            control = part
        elif ct == CIPHERTEXT_TYPE:
            if body is not None:
                raise ValueError('multiple {} parts'.format(CIPHERTEXT_TYPE))
            body = part
        else:
            raise ValueError('unnecessary {} part'.format(ct))
    if control is None:
        raise ValueError('missing {} part'.format(CONTROL_TYPE))
    if body is None:
        raise ValueError('missing {} part'.format(CIPHERTEXT_TYPE))
    return (control, body)

def signed_parts(message):
    """Return the (body, signature) parts of a received envelope.

    >>> from pgp_envelope.mail import encodedMIMEText
    >>> body, signature = signed_parts(build_signed(encodedMIMEText('Hi'), 'sig'))
    >>> body.get_payload(), signature.get_payload()
    ('Hi', 'sig')
    """
    ct = message.get_content_type()
    if ct != 'multipart/signed' or not message.is_multipart():
        raise ValueError('not multipart/signed: {}'.format(ct))
    params = dict(message.get_params())
    if params.get('protocol', None) != SIGNATURE_TYPE:
        raise ValueError('unsupported protocol {}'.format(
                params.get('protocol', None)))
    body = signature = None
    for part in message.get_payload():
        ct = part.get_content_type()
        if ct == SIGNATURE_TYPE:
            if signature is not None:
                raise ValueError('multiple {} parts'.format(SIGNATURE_TYPE))
            signature = part
        else:
            if body is not None:
                raise ValueError('multiple non-signature parts')
            body = part
    if body is None:
        raise ValueError('missing body part')
    if signature is None:
        raise ValueError('missing {} part'.format(SIGNATURE_TYPE))
    return (body, signature)


if __name__ == '__main__':
    import doctest
    doctest.testmod()
