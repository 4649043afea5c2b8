# -*- coding: utf-8 -*-
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

"""Message bodies in and out of OpenPGP canonical form.

Detached signatures are computed over CRLF text, so anything handed
to the engine goes through ``canonicalize`` first, and anything parsed
back as a message goes through ``decanonicalize``.
"""

from email.generator import BytesGenerator as _BytesGenerator
from email.message import Message as _Message
from email.mime.text import MIMEText as _MIMEText
from email import policy as _email_policy
import io as _io
import re as _re


ENCODING = 'utf-8'

_BARE_LF = _re.compile(r'(?<!\r)\n')
_BARE_LF_BYTES = _re.compile(br'(?<!\r)\n')
_CHARSET = _re.compile(r'^Charset: (.+)$')


def canonicalize(body):
    r"""Turn every bare ``\n`` in ``body`` into ``\r\n``.

    >>> canonicalize('Hi\nBye\n')
    'Hi\r\nBye\r\n'
    >>> canonicalize(b'\n\nalready\r\ndone\r\n')
    b'\r\n\r\nalready\r\ndone\r\n'
    >>> canonicalize(canonicalize('a\nb')) == canonicalize('a\nb')
    True
    """
    if isinstance(body, bytes):
        return _BARE_LF_BYTES.sub(b'\r\n', body)
    return _BARE_LF.sub('\r\n', body)

def decanonicalize(body):
    r"""Turn every ``\r\n`` in ``body`` back into ``\n``.

    >>> decanonicalize(b'Hi\r\nBye\r\n')
    b'Hi\nBye\n'
    >>> decanonicalize(canonicalize('one\ntwo\r\nthree'))
    'one\ntwo\nthree'
    """
    if isinstance(body, bytes):
        return body.replace(b'\r\n', b'\n')
    return body.replace('\r\n', '\n')

def flatten(message):
    r"""Flatten a message to bytes.

    >>> message = encodedMIMEText('Hi\nBye')
    >>> flatten(message)  # doctest: +ELLIPSIS
    b'Content-Type: text/plain; charset="us-ascii"\r\nMIME-Version: ...'
    """
    bytesio = _io.BytesIO()
    generator = _BytesGenerator(bytesio, policy=_email_policy.SMTP)
    generator.flatten(message)
    return bytesio.getvalue()

def payload_bytes(payload):
    r"""Return the bytes of ``payload`` to hand to the engine.

    Messages are flattened; strings are encoded as UTF-8.

    >>> payload_bytes('Hi\n')
    b'Hi\n'
    >>> payload_bytes(b'Hi\n')
    b'Hi\n'
    >>> payload_bytes(encodedMIMEText('Hi'))  # doctest: +ELLIPSIS
    b'Content-Type: text/plain; ...\r\n\r\nHi'
    """
    if isinstance(payload, _Message):
        return flatten(payload)
    if isinstance(payload, str):
        return payload.encode(ENCODING)
    return bytes(payload)

def part_body(part):
    """Return the decoded body of a non-multipart ``part`` as bytes.

    >>> part_body(encodedMIMEText('Джон'))
    b'\\xd0\\x94\\xd0\\xb6\\xd0\\xbe\\xd0\\xbd'
    """
    body = part.get_payload(decode=True)
    if body is None:
        body = b''
    return body

def find_charset(text):
    r"""Return the ``Charset:`` armor header in ``text``, if any.

    Some clients put it in front of the base64 block of an inline
    PGP message.

    >>> find_charset('-----BEGIN PGP MESSAGE-----\nCharset: ISO-8859-1\n\nhQEM')
    'ISO-8859-1'
    >>> print(find_charset('-----BEGIN PGP MESSAGE-----\n\nhQEM'))
    None
    """
    if isinstance(text, bytes):
        text = text.decode('us-ascii', 'replace')
    for line in text.split('\n'):
        match = _CHARSET.match(line.rstrip('\r'))
        if match:
            return match.group(1).strip()
    return None

def guess_encoding(text):
    r"""The narrowest charset that can carry ``text``.

    >>> guess_encoding('Hi')
    'us-ascii'
    >>> guess_encoding('Джон')
    'utf-8'
    """
    try:
        text.encode('us-ascii')
    except UnicodeEncodeError:
        return ENCODING
    return 'us-ascii'

def encodedMIMEText(body, encoding=None):
    """An inline text/plain part for ``body``.

    Non-ASCII bodies are base64 encoded.

    >>> message = encodedMIMEText('Hello')
    >>> print(message.as_string())  # doctest: +REPORT_UDIFF
    Content-Type: text/plain; charset="us-ascii"
    MIME-Version: 1.0
    Content-Transfer-Encoding: 7bit
    Content-Disposition: inline
    <BLANKLINE>
    Hello
    >>> encodedMIMEText('Джон')['Content-Transfer-Encoding']
    'base64'
    """
    if encoding is None:
        encoding = guess_encoding(body)
    message = _MIMEText(body, 'plain', encoding)
    message.add_header('Content-Disposition', 'inline')
    return message


if __name__ == '__main__':
    import doctest
    doctest.testmod()
