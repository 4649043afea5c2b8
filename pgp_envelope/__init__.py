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

"""PGP/MIME signing, encryption and signature verdicts for a mail client.
"""

import logging as _logging


__version__ = '0.5'


LOG = _logging.getLogger('pgp-envelope')
LOG.setLevel(_logging.ERROR)
LOG.addHandler(_logging.StreamHandler())


from .errors import (
    Error, EngineError, EngineUnavailable, EngineOperationFailed,
    DecryptionFailed, KeyUnresolvable, Result)
from .notice import (
    Verdict, SignatureRecord, VALID, VALID_UNTRUSTED, INVALID, UNKNOWN)
from .mail import canonicalize, decanonicalize, encodedMIMEText
from .envelope import build_signed, build_encrypted
from .hooks import CryptoHooks
from .account import AccountIdentity, AccountStore, signing_options
from .engine import Engine, GPGMEEngine
from .manager import (
    CryptoManager, Decryption, OUTGOING_MESSAGE_OPERATIONS, repair_if_needed)
